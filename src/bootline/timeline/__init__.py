"""Timeline data model and interval extraction."""

from bootline.timeline.event_model import Actor, Color, Event, EventKind
from bootline.timeline.event_store import EventStore
from bootline.timeline.intervals import (
    BootMilestones,
    MissingReferenceError,
    UnitTimestamps,
    build_timeline,
)

__all__ = [
    "Actor",
    "BootMilestones",
    "Color",
    "Event",
    "EventKind",
    "EventStore",
    "MissingReferenceError",
    "UnitTimestamps",
    "build_timeline",
]
