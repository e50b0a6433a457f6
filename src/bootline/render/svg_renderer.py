"""SVG timeline renderer.

Generates a standalone SVG document with:
- A heading (one text line per heading line)
- Vertical grid lines with labels on every full line
- One lane per actor that has events, in registration order
- The time-axis overlay (guide line, label and script)
- The timeline state as an embedded comment, so the document can be
  loaded, extended and re-rendered
"""
from __future__ import annotations

import html
import json
import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Optional

from bootline.render.overlay import ScaleConstants, format_elapsed, render_overlay_script
from bootline.timeline.event_model import Event, EventKind
from bootline.timeline.event_store import EventStore

logger = logging.getLogger(__name__)

APPROX_FONT_HEIGHT = 15.0
INSTANT_WIDTH = 1.0
STATE_MARKER = "bootline-state"

_CSS = """
        rect.span      { opacity: 0.7; }
        g.actor:hover rect { opacity: 1.0; }
        path           { stroke: rgb(64,64,64); stroke-width: 1; }
        path.subline   { stroke: rgb(224,224,224); stroke-width: 0.7; }
        text           { font-family: Verdana, Helvetica; font-size: 14px; }
        text.left      { text-anchor: start; }
        text.right     { text-anchor: end; }
        text.label     { font-size: 10px; }
        rect#indicator { fill: rgb(64,64,64); pointer-events: none; }
        text#indicator-text { font-size: 12px; pointer-events: none; }"""


@dataclass
class RenderOpts:
    """Layout options. Times in microseconds, sizes in pixels."""

    us_per_line: int = 1_000_000
    sublines: int = 10
    us_per_pixel: float = 10_000
    pixels_per_actor: float = 20.0
    actor_margin: float = 0.5
    actor_name_padding: float = 5.0
    top_margin: float = 20.0
    side_margin: float = 20.0
    heading: str = ""

    def __post_init__(self) -> None:
        if self.us_per_pixel <= 0:
            raise ValueError(f"us_per_pixel must be positive, got {self.us_per_pixel}")
        if self.us_per_line <= 0 or self.sublines <= 0:
            raise ValueError("us_per_line and sublines must be positive")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RenderOpts:
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


def _escape_comment(text: str) -> str:
    # "--" may not appear inside an XML comment; it can only occur within
    # JSON strings, where the escaped form decodes back to the same text.
    return text.replace("--", "-\\u002d")


def _fmt(value: float) -> str:
    """Compact coordinate formatting."""
    return f"{value:.3f}".rstrip("0").rstrip(".") if value % 1 else str(int(value))


class Renderer:
    """Turns an EventStore into an SVG document."""

    def __init__(self, opts: Optional[RenderOpts] = None) -> None:
        self.opts = opts or RenderOpts()

    def us_to_pixel(self, us: float) -> float:
        return us / self.opts.us_per_pixel

    def heading_height(self) -> float:
        heading_start = self.opts.top_margin + APPROX_FONT_HEIGHT
        lines = len(self.opts.heading.splitlines())
        # Skip a couple of "lines" after the heading text
        return heading_start + lines * APPROX_FONT_HEIGHT + 2 * APPROX_FONT_HEIGHT

    def scale_constants(self, store: EventStore) -> ScaleConstants:
        """Constants the overlay needs to map pixels back to time."""
        first = store.first_event_time()
        return ScaleConstants(
            us_per_pixel=self.opts.us_per_pixel,
            left_offset=self.opts.side_margin - self.us_to_pixel(first),
            header_height=self.heading_height(),
        )

    def _subline_step(self) -> int:
        return max(self.opts.us_per_line // self.opts.sublines, 1)

    def _last_time(self, store: EventStore) -> int:
        """Right end of the time axis.

        The axis always reaches time zero, and runs at least one subline past
        the latest endless event so that every endless bar is visible.
        """
        endless_ends = [e.start + self._subline_step() for e in store.all_events() if e.is_endless]
        return max([0, store.last_event_time(), *endless_ends])

    def _render_heading(self) -> list[str]:
        out = []
        y = self.opts.top_margin + APPROX_FONT_HEIGHT
        for line in self.opts.heading.splitlines():
            out.append(
                f'<text class="heading" x="{_fmt(self.opts.side_margin)}" y="{_fmt(y)}">'
                f"{html.escape(line)}</text>"
            )
            y += APPROX_FONT_HEIGHT
        return out

    def _render_lines(self, first: int, last: int, box_height: float) -> list[str]:
        line = self.opts.us_per_line
        first_bar = first - first % line
        last_bar = -(-last // line) * line
        step = self._subline_step()

        out = []
        for us in range(first_bar, last_bar + 1, step):
            x = _fmt(self.us_to_pixel(us))
            if us % line == 0:
                label = format_elapsed(us) if us else "0s"
                out.append(f'<text class="label" x="{x}" y="-5">{label}</text>')
                out.append(f'<path d="M{x},0 v{_fmt(box_height)}"/>')
            else:
                out.append(f'<path class="subline" d="M{x},0 v{_fmt(box_height)}"/>')
        return out

    def _render_event(self, event: Event, y: float, right_edge_px: float) -> str:
        x = self.us_to_pixel(event.start)
        if event.kind is EventKind.SPAN:
            width = self.us_to_pixel(event.duration)  # type: ignore[arg-type]
            css_class = "span"
        elif event.kind is EventKind.ENDLESS:
            width = max(right_edge_px - x, 0.0)
            css_class = "span endless"
        else:
            width = INSTANT_WIDTH
            css_class = "instant"

        height = self.opts.pixels_per_actor - 2 * self.opts.actor_margin
        attrs = (
            f'class="{css_class}" x="{_fmt(x)}" y="{_fmt(y + self.opts.actor_margin)}" '
            f'width="{_fmt(width)}" height="{_fmt(height)}"'
        )
        if event.color is not None:
            attrs += f' fill="{html.escape(str(event.color))}"'

        title = event.tooltip or event.label
        if title:
            return f"<rect {attrs}><title>{html.escape(title)}</title></rect>"
        return f"<rect {attrs}/>"

    def _render_actor(
        self,
        store: EventStore,
        name: str,
        y: float,
        left_edge_px: float,
        right_edge_px: float,
    ) -> list[str]:
        events = store.events_for(name)
        out = ['<g class="actor">']
        out.extend(self._render_event(e, y, right_edge_px) for e in events)

        start_px = self.us_to_pixel(events[0].start)
        # Labels in the right half of the chart grow leftwards
        if start_px < (left_edge_px + right_edge_px) / 2:
            css_class, padding = "left", self.opts.actor_name_padding
        else:
            css_class, padding = "right", -self.opts.actor_name_padding

        actor = store.get_actor(name)
        # Assume the font is about 80% of the lane height
        text_y = y + self.opts.pixels_per_actor * 0.8
        title = f"<title>{html.escape(actor.tooltip)}</title>" if actor.tooltip else ""
        out.append(
            f'<text class="{css_class}" x="{_fmt(start_px + padding)}" y="{_fmt(text_y)}">'
            f"{title}{html.escape(actor.name)}</text>"
        )

        out.append("</g>")
        return out

    def _state_comment(self, store: EventStore, right_edge: Optional[int]) -> str:
        state = {"opts": asdict(self.opts), "store": store.to_dict(), "right_edge": right_edge}
        return f"<!-- {STATE_MARKER} {_escape_comment(json.dumps(state))} -->"

    def render_svg(self, store: EventStore, right_edge: Optional[int] = None) -> str:
        """Render the timeline as an SVG document string.

        Args:
            store: Actors and events to draw.
            right_edge: Time the chart must extend to at least (the default
                target activation time for boot timelines). Endless events
                run to the chart's right edge.
        """
        first = store.first_event_time()
        last = self._last_time(store)
        if right_edge is not None:
            last = max(last, right_edge)

        left_edge_px = self.us_to_pixel(first)
        right_edge_px = self.us_to_pixel(last)
        box_width = right_edge_px - left_edge_px

        # Actors without events get no lane
        actors = [name for name in store.actors() if store.events_for(name)]
        box_height = len(actors) * self.opts.pixels_per_actor
        heading_height = self.heading_height()
        constants = self.scale_constants(store)

        width = box_width + 2 * self.opts.side_margin
        height = box_height + heading_height + self.opts.top_margin

        parts = [
            f'<svg xmlns="http://www.w3.org/2000/svg" width="{_fmt(width)}" height="{_fmt(height)}">',
            self._state_comment(store, right_edge),
            f"<defs><style>{_CSS}\n</style></defs>",
            *self._render_heading(),
            f'<g transform="translate({_fmt(constants.left_offset)}, {_fmt(heading_height)})">',
            *self._render_lines(first, last, box_height),
        ]

        y = 0.0
        for name in actors:
            parts.extend(self._render_actor(store, name, y, left_edge_px, right_edge_px))
            y += self.opts.pixels_per_actor
        parts.append("</g>")

        parts.append(
            f'<rect id="indicator" x="0" y="{_fmt(heading_height)}" width="1" '
            f'height="{_fmt(box_height)}"/>'
        )
        parts.append('<text id="indicator-text" x="0" y="0"></text>')
        parts.append(f"<script><![CDATA[{render_overlay_script(constants)}]]></script>")
        parts.append("</svg>")

        logger.debug(
            "Rendered %d actors, %.1fx%.1f px, left offset %.1f",
            len(actors), width, height, constants.left_offset,
        )
        return "\n".join(parts) + "\n"

    def render(self, path: str | Path, store: EventStore, right_edge: Optional[int] = None) -> Path:
        """Render and write the document to ``path``."""
        path = Path(path)
        path.write_text(self.render_svg(store, right_edge), encoding="utf-8")
        return path
