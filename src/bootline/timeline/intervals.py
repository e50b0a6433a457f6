"""Derive timeline intervals from raw monotonic boot timestamps.

systemd reports each lifecycle transition as a monotonic microsecond
timestamp, with 0 meaning "never happened". The data sources turn that
sentinel into ``None`` via :func:`timestamp_or_none`, so everything here
works with explicit optionals.

Each service unit ends up in exactly one of four shapes:

- ``NoEvents``: not part of the boot (never activated, started after the
  default target, or its activation cannot be measured)
- ``ActivatingOnly``: activation was attempted but never completed
- ``ActivatingAndBounded``: became active and later left that state
- ``ActivatingAndEndless``: became active and is still active
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Union

from bootline.timeline.event_model import (
    ACTIVATING_COLOR,
    ACTIVE_COLOR,
    BOOT_STAGE_COLOR,
    Actor,
    Event,
)
from bootline.timeline.event_store import EventStore

logger = logging.getLogger(__name__)


class MissingReferenceError(ValueError):
    """The default target activation time is missing or malformed."""


def timestamp_or_none(raw: Union[int, str, None]) -> Optional[int]:
    """Convert a raw monotonic timestamp, mapping the 0 sentinel to None.

    Raises:
        ValueError: If the value is not an integer or is negative.
    """
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return None
    if isinstance(raw, bool):
        raise ValueError(f"Not a timestamp: {raw!r}")
    value = int(raw.strip()) if isinstance(raw, str) else int(raw)
    if value < 0:
        raise ValueError(f"Negative monotonic timestamp: {raw!r}")
    return value or None


@dataclass(frozen=True)
class UnitTimestamps:
    """The four lifecycle transitions of one unit."""

    name: str
    activating: Optional[int] = None  # inactive -> activating
    activated: Optional[int] = None  # activating -> active
    deactivating: Optional[int] = None  # active -> deactivating
    deactivated: Optional[int] = None  # deactivating -> inactive


@dataclass(frozen=True)
class BootMilestones:
    """Manager-level boot timestamps.

    Firmware and loader are measured backwards from kernel start; initrd
    and userspace forwards.
    """

    firmware: Optional[int] = None
    loader: Optional[int] = None
    initrd: Optional[int] = None
    userspace: Optional[int] = None


@dataclass(frozen=True)
class Interval:
    start: int
    duration: int


@dataclass(frozen=True)
class NoEvents:
    reason: str


@dataclass(frozen=True)
class ActivatingOnly:
    activating: Interval


@dataclass(frozen=True)
class ActivatingAndBounded:
    activating: Interval
    active: Interval


@dataclass(frozen=True)
class ActivatingAndEndless:
    activating: Interval
    active_start: int


Phases = Union[NoEvents, ActivatingOnly, ActivatingAndBounded, ActivatingAndEndless]


def _measure(start: int, end: Optional[int]) -> Optional[Interval]:
    """Interval from start to end, or None when the phase did not occur."""
    if end is None or end < start:
        return None
    return Interval(start=start, duration=end - start)


def _require_reference(default_target_reached: object) -> int:
    if default_target_reached is None:
        raise MissingReferenceError("default target activation time is missing")
    if isinstance(default_target_reached, bool) or not isinstance(default_target_reached, int):
        raise MissingReferenceError(
            f"default target activation time is not an integer: {default_target_reached!r}"
        )
    return default_target_reached


def classify_unit(unit: UnitTimestamps, default_target_reached: int) -> Phases:
    """Work out which phases of a unit belong on the boot timeline."""
    default_target_reached = _require_reference(default_target_reached)

    if unit.activating is None:
        return NoEvents("never activated")
    if unit.activating > default_target_reached:
        return NoEvents("activated after the default target")

    # A unit that failed before becoming active still gets a bar spanning
    # the attempted activation.
    activating_end = unit.activated if unit.activated is not None else unit.deactivated
    activating = _measure(unit.activating, activating_end)
    if activating is None:
        logger.debug(
            "%s: activating phase has no measurable end (activating=%s end=%s)",
            unit.name, unit.activating, activating_end,
        )
        return NoEvents("activating phase has no measurable end")

    if unit.activated is None:
        return ActivatingOnly(activating)

    if unit.deactivating is None or unit.activated > unit.deactivating:
        return ActivatingAndEndless(activating, unit.activated)

    deactivating = min(unit.deactivating, default_target_reached)
    active = _measure(unit.activated, deactivating)
    if active is None:
        logger.debug(
            "%s: active phase ends before it starts after clamping (activated=%s deactivating=%s)",
            unit.name, unit.activated, deactivating,
        )
        return ActivatingOnly(activating)
    return ActivatingAndBounded(activating, active)


def phases_to_events(phases: Phases) -> list[Event]:
    """Render hints for each phase shape."""
    if isinstance(phases, NoEvents):
        return []

    events = [
        Event.span(phases.activating.start, phases.activating.duration, ACTIVATING_COLOR)
    ]
    if isinstance(phases, ActivatingAndBounded):
        events.append(Event.span(phases.active.start, phases.active.duration, ACTIVE_COLOR))
    elif isinstance(phases, ActivatingAndEndless):
        events.append(Event.endless(phases.active_start, ACTIVE_COLOR))
    return events


BOOT_STAGES = ("firmware", "loader", "kernel", "initrd")


def boot_stage_events(milestones: BootMilestones) -> list[tuple[Actor, Event]]:
    """One bar per boot stage, always in firmware, loader, kernel, initrd order.

    Absent milestones collapse a stage to a zero-length bar.
    """
    firmware = milestones.firmware or 0
    loader = milestones.loader or 0
    userspace = milestones.userspace or 0
    # Without an initrd the kernel hands over straight to userspace
    initrd = milestones.initrd if milestones.initrd is not None else userspace

    stages = {
        "firmware": (-firmware, firmware - loader),
        "loader": (-loader, loader),
        "kernel": (0, initrd),
        "initrd": (initrd, userspace - initrd),
    }
    result: list[tuple[Actor, Event]] = []
    for name in BOOT_STAGES:
        start, duration = stages[name]
        result.append((Actor(name), Event.span(start, max(duration, 0), BOOT_STAGE_COLOR)))
    return result


def build_timeline(
    milestones: BootMilestones,
    units: Iterable[UnitTimestamps],
    default_target_reached: Optional[int],
) -> EventStore:
    """Build the boot timeline: boot stages first, then units in discovery order.

    Raises:
        MissingReferenceError: If the default target time is missing.
    """
    reference = _require_reference(default_target_reached)

    store = EventStore()
    for actor, event in boot_stage_events(milestones):
        store.add_event(store.register_actor(actor), event)

    skipped = 0
    for unit in units:
        events = phases_to_events(classify_unit(unit, reference))
        if not events:
            skipped += 1
            continue
        name = store.register_actor(Actor(unit.name))
        for event in events:
            store.add_event(name, event)

    logger.debug("Timeline has %d actors, %d units skipped", len(store), skipped)
    return store
