import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal

from google.api_core import exceptions as gcp_exceptions
from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter
from pydantic import ValidationError

from lbd_events.core.config import get_settings
from lbd_events.models.common import encode_timestamp, utcnow
from lbd_events.models.event import EVENT_CATEGORIES, Event, EventDraft, EventPatch, StatItem

logger = logging.getLogger(__name__)

TimeFilter = Literal["all", "upcoming", "past"]
EventStatus = Literal["live", "upcoming", "past"]

RECENT_EVENTS_LIMIT = 3


class EventOperationError(Exception):
    """The read or write against the events collection did not happen."""


class EventNotFoundError(Exception):
    def __init__(self, event_id: str) -> None:
        self.event_id = event_id
        super().__init__(f"Event {event_id} not found")


class EventRepository:
    """Sole writer of the ``events`` collection."""

    def __init__(self, client: firestore.Client, collection_name: str | None = None) -> None:
        self.client = client
        self.collection_name = collection_name or get_settings().events_collection

    @property
    def collection(self):
        return self.client.collection(self.collection_name)

    def create(self, draft: EventDraft) -> str:
        draft.ensure_valid()
        now = utcnow()
        data = {**draft.to_document(), "createdAt": now, "updatedAt": now}
        try:
            _, ref = self.collection.add(data)
        except gcp_exceptions.GoogleAPIError as exc:
            logger.exception("Error creating event")
            raise EventOperationError("Failed to create event") from exc
        logger.info("Created event %s (%s).", ref.id, draft.category)
        return ref.id

    def update(self, event_id: str, patch: EventPatch) -> None:
        data = patch.to_document()
        if "albumUrl" in data and not data["albumUrl"]:
            data["albumUrl"] = firestore.DELETE_FIELD
        data["updatedAt"] = utcnow()
        self._update(event_id, data, "Failed to update event")
        logger.info("Updated event %s fields=%s.", event_id, sorted(data))

    def update_stats_and_gallery(
        self,
        event_id: str,
        stats: Iterable[StatItem | dict[str, Any]],
        gallery: Iterable[str],
        album_url: str | None = None,
    ) -> None:
        data: dict[str, Any] = {
            "stats": [StatItem.model_validate(item).model_dump(by_alias=True) for item in stats],
            "gallery": list(gallery),
            "updatedAt": utcnow(),
        }
        if album_url is not None:
            data["albumUrl"] = album_url.strip() or firestore.DELETE_FIELD
        self._update(event_id, data, "Failed to update event stats")
        logger.info("Updated stats and gallery of event %s.", event_id)

    def delete(self, event_id: str) -> None:
        # Hard delete. CDN assets referenced by the event are left in place.
        try:
            self.collection.document(event_id).delete()
        except gcp_exceptions.GoogleAPIError as exc:
            logger.exception("Error deleting event %s", event_id)
            raise EventOperationError("Failed to delete event") from exc
        logger.info("Deleted event %s.", event_id)

    def get_all(self) -> list[Event]:
        query = self.collection.order_by("createdAt", direction=firestore.Query.DESCENDING)
        return self._fetch(query, "Failed to fetch events")

    def get_by_category(self, category: str) -> list[Event]:
        if category not in EVENT_CATEGORIES:
            raise ValueError(f"Unknown event category: {category}")
        query = self.collection.where(filter=FieldFilter("category", "==", category)).order_by(
            "createdAt", direction=firestore.Query.DESCENDING
        )
        return self._fetch(query, "Failed to fetch events by category")

    def get_by_id(self, event_id: str) -> Event | None:
        try:
            snapshot = self.collection.document(event_id).get()
        except gcp_exceptions.GoogleAPIError as exc:
            logger.exception("Error getting event %s", event_id)
            raise EventOperationError("Failed to fetch event") from exc
        if not snapshot.exists:
            return None
        try:
            return Event.from_document(snapshot.id, snapshot.to_dict() or {})
        except ValidationError as exc:
            logger.exception("Stored event %s could not be decoded", event_id)
            raise EventOperationError("Failed to fetch event") from exc

    def _update(self, event_id: str, data: dict[str, Any], message: str) -> None:
        try:
            self.collection.document(event_id).update(data)
        except gcp_exceptions.NotFound as exc:
            raise EventNotFoundError(event_id) from exc
        except gcp_exceptions.GoogleAPIError as exc:
            logger.exception("Error updating event %s", event_id)
            raise EventOperationError(message) from exc

    def _fetch(self, query, message: str) -> list[Event]:
        try:
            snapshots = list(query.stream())
        except gcp_exceptions.GoogleAPIError as exc:
            logger.exception(message)
            raise EventOperationError(message) from exc

        events: list[Event] = []
        for snapshot in snapshots:
            try:
                events.append(Event.from_document(snapshot.id, snapshot.to_dict() or {}))
            except ValidationError:
                logger.warning("Skipping event %s: stored document could not be decoded.", snapshot.id, exc_info=True)
        return events


def event_status(event: Event, now: datetime | None = None) -> EventStatus:
    now = encode_timestamp(now) if now else utcnow()
    if event.start_date <= now <= event.end_date:
        return "live"
    if event.start_date > now:
        return "upcoming"
    return "past"


def is_finished(event: Event, now: datetime | None = None) -> bool:
    now = encode_timestamp(now) if now else utcnow()
    return event.end_date < now


def filter_events(
    events: Iterable[Event],
    *,
    search: str | None = None,
    category: str | None = None,
    when: TimeFilter = "all",
    now: datetime | None = None,
) -> list[Event]:
    now = encode_timestamp(now) if now else utcnow()
    needle = search.strip().lower() if search else ""

    def matches(event: Event) -> bool:
        if needle and not (
            needle in event.title.lower()
            or needle in event.description.lower()
            or needle in event.location.details.lower()
            or any(needle in tag.lower() for tag in event.tags)
        ):
            return False
        if category and category != "all" and event.category != category:
            return False
        if when == "upcoming" and not event.start_date > now:
            return False
        if when == "past" and not event.end_date < now:
            return False
        return True

    return [event for event in events if matches(event)]


@dataclass
class EventSummary:
    total_events: int = 0
    total_attendees: int | float = 0
    upcoming_events: int = 0
    upcoming_by_category: dict[str, int] = field(default_factory=lambda: dict.fromkeys(EVENT_CATEGORIES, 0))
    recent: list[Event] = field(default_factory=list)


def _stat_number(value: str) -> float:
    try:
        number = float(value.strip() or 0)
    except ValueError:
        return 0.0
    return number if math.isfinite(number) else 0.0


def attendee_count(event: Event) -> float:
    """Numeric value of the first stat whose title mentions attendees; 0 when missing or not a number."""
    for item in event.stats:
        if "attendees" in item.title.lower():
            return _stat_number(item.value)
    return 0.0


def summarize_events(events: Iterable[Event], now: datetime | None = None) -> EventSummary:
    """Figures for the public landing page."""
    now = encode_timestamp(now) if now else utcnow()
    events = list(events)
    summary = EventSummary(total_events=len(events))

    total_attendees = 0.0
    for event in events:
        total_attendees += attendee_count(event)
        if event.start_date > now:
            summary.upcoming_events += 1
            summary.upcoming_by_category[event.category] += 1
    summary.total_attendees = int(total_attendees) if total_attendees.is_integer() else total_attendees

    summary.recent = sorted(events, key=lambda event: event.created_at, reverse=True)[:RECENT_EVENTS_LIMIT]
    return summary
