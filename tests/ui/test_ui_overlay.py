"""Playwright tests for the overlay script in rendered documents.

These open a rendered SVG in a real browser and drive the pointer and
scroll position. Run with:

    pytest tests/ui/ -m ui --browser chromium -v
"""
from __future__ import annotations

from pathlib import Path

import pytest

# Skip if playwright not installed
pytest.importorskip("playwright")

from playwright.sync_api import Page, expect

from bootline.render.svg_renderer import RenderOpts, Renderer
from bootline.timeline.event_model import Actor, Event
from bootline.timeline.event_store import EventStore

pytestmark = pytest.mark.ui

LANES = 80


@pytest.fixture
def chart(tmp_path: Path) -> Path:
    """A chart starting at time zero and taller than the viewport."""
    store = EventStore()
    for i in range(LANES):
        name = store.register_actor(Actor(f"unit-{i}.service"))
        store.add_event(name, Event.span(i * 50_000, 200_000))
    return Renderer(RenderOpts(heading="ui test")).render(tmp_path / "chart.svg", store, 10_000_000)


@pytest.fixture
def js_errors(page: Page) -> list[str]:
    errors: list[str] = []
    page.on("pageerror", lambda err: errors.append(str(err)))
    return errors


def test_label_follows_pointer(page: Page, chart: Path, js_errors: list[str]) -> None:
    page.set_viewport_size({"width": 800, "height": 600})
    page.goto(chart.as_uri())

    # Time zero sits at the side margin (20px)
    page.mouse.move(120, 100)
    label = page.locator("#indicator-text")
    expect(label).to_have_text("1s")
    expect(label).to_have_attribute("x", "130")
    expect(page.locator("#indicator")).to_have_attribute("x", "120")

    page.mouse.move(25, 100)
    expect(label).to_have_text("50ms")
    assert js_errors == []


def test_vertical_scroll_keeps_label(page: Page, chart: Path, js_errors: list[str]) -> None:
    page.set_viewport_size({"width": 800, "height": 600})
    page.goto(chart.as_uri())

    page.mouse.move(120, 100)
    label = page.locator("#indicator-text")
    expect(label).to_have_attribute("y", "90")

    page.evaluate("window.scrollTo(0, 300)")
    expect(label).to_have_attribute("y", "390")
    expect(label).to_have_text("1s")
    assert js_errors == []
