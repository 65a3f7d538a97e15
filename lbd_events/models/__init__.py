from lbd_events.models.admin import AdminProfile
from lbd_events.models.event import Event, EventDraft, EventPatch, Location, StatItem

__all__ = [
    "AdminProfile",
    "Event",
    "EventDraft",
    "EventPatch",
    "Location",
    "StatItem",
]
