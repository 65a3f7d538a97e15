from __future__ import annotations

from datetime import UTC, datetime, timedelta
from pathlib import Path
import sys

from google.cloud.firestore_v1.base_query import FieldFilter

if __package__ is None or __package__ == "":
    sys.path.append(str(Path(__file__).resolve().parents[1]))

from lbd_events.core.config import get_settings
from lbd_events.db.firestore import get_client
from lbd_events.models.event import EventDraft, Location, StatItem
from lbd_events.services.events import EventRepository


DEMO_PREFIX = "[DEMO]"
DEMO_TAG = "demo"


def main() -> None:
    settings = get_settings()
    client = get_client()
    repo = EventRepository(client)

    collection = client.collection(settings.events_collection)
    stale = list(collection.where(filter=FieldFilter("tags", "array_contains", DEMO_TAG)).stream())
    for snapshot in stale:
        repo.delete(snapshot.id)

    now = datetime.now(UTC)
    event_templates = [
        ("Web3 Builders Conference", "conference", Location(type="physical", details="Lagos Innovation Hub")),
        ("Community Meetup", "meetup", Location(type="physical", details="Yaba Tech Cafe")),
        ("48h Hackathon", "hackathon", Location(type="physical", details="CcHUB, Yaba")),
        ("Smart Contracts Workshop", "workshop", Location(type="virtual", details="https://meet.example.com/lbd")),
        ("Builders Roundtable", "x-space", Location(type="virtual", details="https://x.com/i/spaces/demo")),
    ]

    created = 0
    for index, (title, category, location) in enumerate(event_templates):
        # Alternate between finished and upcoming events so both views have data.
        offset = timedelta(days=(index + 1) * (-7 if index % 2 == 0 else 7))
        start = (now + offset).replace(minute=0, second=0, microsecond=0)
        draft = EventDraft(
            title=f"{DEMO_PREFIX} {title}",
            category=category,
            description=f"**{title}** demo event.",
            start_date=start,
            end_date=start + timedelta(hours=4),
            location=location,
            registration_link="https://lu.ma/demo",
            tags=[DEMO_TAG, category],
        )
        event_id = repo.create(draft)
        if offset.days < 0:
            repo.update_stats_and_gallery(
                event_id,
                [StatItem(title="Attendees", value=str(50 + index * 25)), StatItem(title="Speakers", value="4")],
                [],
            )
        created += 1

    print(f"Demo data seeded: removed {len(stale)} and created {created} events.")


if __name__ == "__main__":
    main()
