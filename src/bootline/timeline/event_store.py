"""Ordered, append-only store of actors and their events."""
from __future__ import annotations

from typing import Any, Iterator

from bootline.timeline.event_model import Actor, Event


class DuplicateActorError(ValueError):
    """An actor with the same name is already registered."""

    def __str__(self) -> str:
        return f"Actor already registered: {self.args[0]}"


class UnknownActorError(KeyError):
    """No actor with the given name is registered."""

    def __str__(self) -> str:
        return f"Unknown actor: {self.args[0]}"


class EventStore:
    """Actors and events in discovery order.

    Lanes are laid out top-to-bottom in the order actors were registered,
    and each actor's events keep the order they were added in.
    """

    def __init__(self) -> None:
        self._actors: dict[str, Actor] = {}
        self._events: dict[str, list[Event]] = {}

    def register_actor(self, actor: Actor) -> str:
        if actor.name in self._actors:
            raise DuplicateActorError(actor.name)
        self._actors[actor.name] = actor
        self._events[actor.name] = []
        return actor.name

    def add_event(self, name: str, event: Event) -> None:
        if name not in self._events:
            raise UnknownActorError(name)
        self._events[name].append(event)

    def actors(self) -> list[str]:
        return list(self._actors)

    def get_actor(self, name: str) -> Actor:
        try:
            return self._actors[name]
        except KeyError:
            raise UnknownActorError(name) from None

    def events_for(self, name: str) -> list[Event]:
        try:
            return list(self._events[name])
        except KeyError:
            raise UnknownActorError(name) from None

    def all_events(self) -> Iterator[Event]:
        for events in self._events.values():
            yield from events

    def __len__(self) -> int:
        return len(self._actors)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EventStore):
            return NotImplemented
        return (
            list(self._actors.values()) == list(other._actors.values())
            and list(self._events.items()) == list(other._events.items())
        )

    def first_event_time(self) -> int:
        """Earliest start, never later than time zero."""
        return min([0, *(e.start for e in self.all_events())])

    def last_event_time(self) -> int:
        """Latest known end, or 0 when nothing has an end."""
        ends = [e.end_time for e in self.all_events() if e.end_time is not None]
        return max(ends) if ends else 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "actors": [
                {
                    **self._actors[name].to_dict(),
                    "events": [e.to_dict() for e in self._events[name]],
                }
                for name in self._actors
            ]
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EventStore:
        store = cls()
        for entry in data.get("actors", []):
            name = store.register_actor(Actor.from_dict(entry))
            for event in entry.get("events", []):
                store.add_event(name, Event.from_dict(event))
        return store
