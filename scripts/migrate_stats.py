"""Rewrite events whose ``stats`` still use the fixed attendees/engagement/feedback record."""

import argparse
import logging
from pathlib import Path
import sys

if __package__ is None or __package__ == "":
    sys.path.append(str(Path(__file__).resolve().parents[1]))

from lbd_events.core.config import get_settings
from lbd_events.core.logging import setup_logging
from lbd_events.db.firestore import get_client
from lbd_events.models.event import adapt_legacy_stats, is_legacy_stats

logger = logging.getLogger("migrate_stats")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--dry-run", action="store_true", help="Report affected events without writing.")
    return parser.parse_args()


def migrate(client, dry_run: bool = False) -> int:
    collection = client.collection(get_settings().events_collection)
    migrated = 0
    for snapshot in collection.stream():
        data = snapshot.to_dict() or {}
        if not is_legacy_stats(data.get("stats")):
            continue
        stats = adapt_legacy_stats(data["stats"])
        logger.info("Event %s: %s -> %s", snapshot.id, data["stats"], stats)
        if not dry_run:
            # updatedAt is left alone: the event content did not change.
            collection.document(snapshot.id).update({"stats": stats})
        migrated += 1
    return migrated


def main() -> None:
    args = parse_args()
    setup_logging()
    count = migrate(get_client(), dry_run=args.dry_run)
    suffix = " (dry run)" if args.dry_run else ""
    print(f"Migrated stats of {count} event(s){suffix}.")


if __name__ == "__main__":
    main()
