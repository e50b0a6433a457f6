"""Actors and events: the records handed to the renderer."""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, NamedTuple, Optional, Union


_RGB_RE = re.compile(r"^rgb\(\s*(\d{1,3})\s*,\s*(\d{1,3})\s*,\s*(\d{1,3})\s*\)$")
_HEX_RE = re.compile(r"^#([0-9a-fA-F]{2})([0-9a-fA-F]{2})([0-9a-fA-F]{2})$")


class Color(NamedTuple):
    """An RGB render hint."""

    r: int
    g: int
    b: int

    def __str__(self) -> str:
        return f"rgb({self.r},{self.g},{self.b})"

    @classmethod
    def parse(cls, text: str) -> Color:
        """Parse ``rgb(r,g,b)`` or ``#rrggbb``.

        Raises:
            ValueError: If the text is neither form or a channel is out of range.
        """
        text = text.strip()
        match = _RGB_RE.match(text)
        if match:
            channels = [int(c) for c in match.groups()]
        else:
            match = _HEX_RE.match(text)
            if not match:
                raise ValueError(f"Unrecognized color: {text!r}")
            channels = [int(c, 16) for c in match.groups()]
        if any(c > 255 for c in channels):
            raise ValueError(f"Color channel out of range: {text!r}")
        return cls(*channels)


BOOT_STAGE_COLOR = Color(150, 150, 150)
ACTIVATING_COLOR = Color(255, 0, 0)
ACTIVE_COLOR = Color(200, 150, 150)

# A Color, or any other CSS color text given on the command line
Paint = Union[Color, str]


def parse_paint(text: Optional[str]) -> Optional[Paint]:
    """A Color when the text parses as one, else the CSS color text itself."""
    if text is None:
        return None
    try:
        return Color.parse(text)
    except ValueError:
        return text


class EventKind(str, Enum):
    """Shape of an event on the time axis."""

    SPAN = "span"
    ENDLESS = "endless"
    INSTANT = "instant"


@dataclass(frozen=True)
class Event:
    """A colored interval (or point) on one actor's lane.

    Times are signed microseconds relative to kernel start. A span carries a
    non-negative duration; endless events and instants carry none.
    """

    start: int
    kind: EventKind = EventKind.SPAN
    duration: Optional[int] = None
    color: Optional[Paint] = None
    label: str = ""
    tooltip: Optional[str] = None

    def __post_init__(self) -> None:
        if self.kind is EventKind.SPAN:
            if self.duration is None:
                raise ValueError("A span event needs a duration")
            if self.duration < 0:
                raise ValueError(f"Negative duration: {self.duration}")
        elif self.duration is not None:
            raise ValueError(f"A {self.kind.value} event cannot have a duration")

    @classmethod
    def span(cls, start: int, duration: int, color: Optional[Paint] = None, **kwargs: Any) -> Event:
        return cls(start=start, kind=EventKind.SPAN, duration=duration, color=color, **kwargs)

    @classmethod
    def endless(cls, start: int, color: Optional[Paint] = None, **kwargs: Any) -> Event:
        return cls(start=start, kind=EventKind.ENDLESS, color=color, **kwargs)

    @classmethod
    def instant(cls, start: int, color: Optional[Paint] = None, **kwargs: Any) -> Event:
        return cls(start=start, kind=EventKind.INSTANT, color=color, **kwargs)

    @property
    def is_endless(self) -> bool:
        return self.kind is EventKind.ENDLESS

    @property
    def end_time(self) -> Optional[int]:
        """End of the event, or None when it has no known end."""
        if self.kind is EventKind.SPAN:
            return self.start + self.duration  # type: ignore[operator]
        if self.kind is EventKind.INSTANT:
            return self.start
        return None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"start": self.start, "kind": self.kind.value}
        if self.duration is not None:
            result["duration"] = self.duration
        if self.color is not None:
            result["color"] = str(self.color)
        if self.label:
            result["label"] = self.label
        if self.tooltip is not None:
            result["tooltip"] = self.tooltip
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Event:
        return cls(
            start=int(data["start"]),
            kind=EventKind(data.get("kind", EventKind.SPAN.value)),
            duration=data.get("duration"),
            color=parse_paint(data.get("color")),
            label=data.get("label", ""),
            tooltip=data.get("tooltip"),
        )


@dataclass(frozen=True)
class Actor:
    """A named lane. The name doubles as the lane identifier."""

    name: str
    tooltip: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"name": self.name}
        if self.tooltip is not None:
            result["tooltip"] = self.tooltip
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Actor:
        return cls(name=data["name"], tooltip=data.get("tooltip"))
