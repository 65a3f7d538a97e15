from datetime import datetime

from pydantic import field_validator

from lbd_events.models.event import (
    CamelModel,
    Event,
    EventDraft,
    EventPatch,
    StatItem,
    check_album_url,
    check_gallery_urls,
)
from lbd_events.services.events import EventStatus, EventSummary, event_status
from lbd_events.services.uploads import derive_optimized_url


class EventCreateRequest(EventDraft):
    pass


class EventUpdateRequest(EventPatch):
    pass


class EventCreateResponse(CamelModel):
    id: str


class EventOut(Event):
    status: EventStatus
    banner_thumbnail_url: str = ""

    @classmethod
    def from_event(cls, event: Event, now: datetime | None = None) -> "EventOut":
        return cls(
            **event.model_dump(),
            status=event_status(event, now),
            banner_thumbnail_url=derive_optimized_url(event.banner_url) if event.banner_url else "",
        )


class EventsSummaryOut(CamelModel):
    total_events: int
    total_attendees: int | float
    upcoming_events: int
    upcoming_by_category: dict[str, int]
    recent: list[EventOut]

    @classmethod
    def from_summary(cls, summary: EventSummary, now: datetime | None = None) -> "EventsSummaryOut":
        return cls(
            total_events=summary.total_events,
            total_attendees=summary.total_attendees,
            upcoming_events=summary.upcoming_events,
            upcoming_by_category=summary.upcoming_by_category,
            recent=[EventOut.from_event(event, now) for event in summary.recent],
        )


class EventStatsUpdateRequest(CamelModel):
    stats: list[StatItem] = []
    gallery: list[str] = []
    album_url: str | None = None

    @field_validator("stats")
    @classmethod
    def drop_blank_stats(cls, value: list[StatItem]) -> list[StatItem]:
        return [
            StatItem(title=item.title.strip(), value=item.value.strip())
            for item in value
            if item.title.strip() and item.value.strip()
        ]

    @field_validator("gallery")
    @classmethod
    def validate_gallery(cls, value: list[str]) -> list[str]:
        return check_gallery_urls(value)

    @field_validator("album_url")
    @classmethod
    def validate_album_url(cls, value: str | None) -> str | None:
        return check_album_url(value)


class OkResponse(CamelModel):
    ok: bool = True
