"""Time-axis overlay: elapsed time under the pointer.

The rendered document carries a script that keeps a vertical guide and a
label glued to the cursor and shows the elapsed time at the cursor's
horizontal position. The same rules are modelled here in Python so they can
be tested without a browser; :func:`render_overlay_script` produces the
script with the renderer's scale constants baked in.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Union

Number = Union[int, float]

LABEL_OFFSET = 10


def _js_number(value: Number) -> str:
    """Format a number the way a browser's ``String(number)`` does.

    Both print the shortest round-tripping digits, but JavaScript keeps plain
    decimal notation for magnitudes in [1e-6, 1e21) where ``repr`` already
    switches to an exponent below 1e-4 and from 1e16. Outside that range
    JavaScript writes exponents without zero padding (``1e-7``, ``1e+21``).
    """
    if not isinstance(value, float):
        return str(value)
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    text = repr(value)
    if "e" not in text:
        return text
    if 1e-6 <= abs(value) < 1e21:
        return format(Decimal(text), "f")
    mantissa, _, exponent = text.partition("e")
    return f"{mantissa}e{int(exponent):+d}"


def format_elapsed(us: Number) -> str:
    """Format microseconds as us, ms or s, without rounding."""
    magnitude = abs(us)
    if magnitude < 1000:
        return f"{_js_number(us)}us"
    if magnitude < 1_000_000:
        return f"{_js_number(us / 1000)}ms"
    return f"{_js_number(us / 1_000_000)}s"


@dataclass(frozen=True)
class ScaleConstants:
    """Coordinate contract between the renderer and the overlay."""

    us_per_pixel: float
    left_offset: float  # x of time zero, in document pixels
    header_height: float  # y where the guide starts

    def elapsed_at(self, x: Number) -> Number:
        return (x - self.left_offset) * self.us_per_pixel


@dataclass(frozen=True)
class Indicator:
    """Where the guide and its label are drawn, and what the label says."""

    x: Number
    y: Number
    label_x: Number
    label_y: Number
    label: str


@dataclass(frozen=True)
class OverlayState:
    """Last pointer position (document coordinates) and scroll offset."""

    pointer_x: Number = 0
    pointer_y: Number = 0
    scroll_top: Number = 0
    scroll_left: Number = 0


def render_indicator(constants: ScaleConstants, x: Number, y: Number) -> Indicator:
    return Indicator(
        x=x,
        y=constants.header_height,
        label_x=x + LABEL_OFFSET,
        label_y=y - LABEL_OFFSET,
        label=format_elapsed(constants.elapsed_at(x)),
    )


def on_pointer_move(
    state: OverlayState, constants: ScaleConstants, x: Number, y: Number
) -> tuple[OverlayState, Indicator]:
    return replace(state, pointer_x=x, pointer_y=y), render_indicator(constants, x, y)


def on_scroll(
    state: OverlayState, constants: ScaleConstants, top: Number, left: Number
) -> tuple[OverlayState, Indicator]:
    """Move the indicator by the scroll delta.

    The viewport moved under a stationary pointer, so the pointer now sits
    over a different document location.
    """
    x = state.pointer_x + (left - state.scroll_left)
    y = state.pointer_y + (top - state.scroll_top)
    new_state = OverlayState(pointer_x=x, pointer_y=y, scroll_top=top, scroll_left=left)
    return new_state, render_indicator(constants, x, y)


class OverlayController:
    """Owns one overlay state and applies input events to it in turn."""

    def __init__(self, constants: ScaleConstants, state: OverlayState | None = None) -> None:
        self.constants = constants
        self.state = state or OverlayState()
        self.indicator: Indicator | None = None

    def pointer_move(self, x: Number, y: Number) -> Indicator:
        self.state, self.indicator = on_pointer_move(self.state, self.constants, x, y)
        return self.indicator

    def scroll(self, top: Number, left: Number) -> Indicator:
        self.state, self.indicator = on_scroll(self.state, self.constants, top, left)
        return self.indicator


# Placeholders are substituted by render_overlay_script
_OVERLAY_JS = """
function formatElapsed(us) {
    const magnitude = Math.abs(us);
    if (magnitude < 1000) {
        return `${us}us`;
    } else if (magnitude < 1000000) {
        return `${us / 1000}ms`;
    }
    return `${us / 1000000}s`;
}

const overlay = {
    usPerPixel: __US_PER_PIXEL__,
    leftOffset: __LEFT_OFFSET__,
    headerHeight: __HEADER_HEIGHT__,
    pointer: {x: 0, y: 0},
    scroll: {top: 0, left: 0},

    render(x, y) {
        const indicator = document.getElementById("indicator");
        indicator.setAttribute("x", x);
        indicator.setAttribute("y", this.headerHeight);

        const text = document.getElementById("indicator-text");
        text.setAttribute("x", x + __LABEL_OFFSET__);
        text.setAttribute("y", y - __LABEL_OFFSET__);
        text.textContent = formatElapsed((x - this.leftOffset) * this.usPerPixel);
        this.pointer = {x: x, y: y};
    },

    onPointerMove(e) {
        this.render(e.pageX, e.pageY);
    },

    onScroll() {
        const root = document.documentElement;
        const top = root.scrollTop;
        const left = root.scrollLeft;
        this.render(this.pointer.x + (left - this.scroll.left),
                    this.pointer.y + (top - this.scroll.top));
        this.scroll = {top: top, left: left};
    },
};

document.addEventListener("mousemove", (e) => overlay.onPointerMove(e));
document.addEventListener("scroll", () => overlay.onScroll());
"""


def render_overlay_script(constants: ScaleConstants) -> str:
    """The overlay script with the scale constants baked in."""
    return (
        _OVERLAY_JS
        .replace("__US_PER_PIXEL__", _js_number(constants.us_per_pixel))
        .replace("__LEFT_OFFSET__", _js_number(constants.left_offset))
        .replace("__HEADER_HEIGHT__", _js_number(constants.header_height))
        .replace("__LABEL_OFFSET__", str(LABEL_OFFSET))
    )
