"""Tests for the SVG renderer and embedded document state."""
from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from pathlib import Path

import pytest

from bootline.render.document import DocumentStateError, load_document
from bootline.render.svg_renderer import (
    APPROX_FONT_HEIGHT,
    RenderOpts,
    Renderer,
)
from bootline.timeline.event_model import Actor, Color, Event
from bootline.timeline.event_store import EventStore

SVG_NS = "{http://www.w3.org/2000/svg}"


def _store() -> EventStore:
    store = EventStore()
    store.register_actor(Actor("firmware"))
    store.add_event("firmware", Event.span(-2_000_000, 1_000_000, Color(150, 150, 150)))
    store.register_actor(Actor("kernel", tooltip="Linux kernel"))
    store.add_event("kernel", Event.span(0, 500_000, Color(150, 150, 150)))
    store.register_actor(Actor("journald.service"))
    store.add_event("journald.service", Event.span(500_000, 100_000, Color(255, 0, 0)))
    store.add_event("journald.service", Event.endless(600_000, Color(200, 150, 150)))
    return store


def _parse(svg: str) -> ET.Element:
    return ET.fromstring(svg)


def _rects(root: ET.Element, css_class: str) -> list[ET.Element]:
    return [
        r for r in root.iter(f"{SVG_NS}rect")
        if css_class in r.get("class", "").split()
    ]


class TestRenderOpts:
    """Tests for RenderOpts."""

    def test_defaults(self) -> None:
        opts = RenderOpts()
        assert opts.us_per_line == 1_000_000
        assert opts.sublines == 10
        assert opts.us_per_pixel == 10_000

    def test_rejects_non_positive_scale(self) -> None:
        with pytest.raises(ValueError):
            RenderOpts(us_per_pixel=0)

    def test_from_dict_ignores_unknown_keys(self) -> None:
        opts = RenderOpts.from_dict({"heading": "h", "bogus": 1})
        assert opts.heading == "h"


class TestLayout:
    """Tests for document geometry."""

    def test_heading_height_grows_with_lines(self) -> None:
        one = Renderer(RenderOpts(heading="a")).heading_height()
        two = Renderer(RenderOpts(heading="a\nb")).heading_height()
        assert two - one == APPROX_FONT_HEIGHT

    def test_scale_constants_account_for_negative_start(self) -> None:
        renderer = Renderer()
        constants = renderer.scale_constants(_store())
        # 2s before kernel start at 10ms per pixel
        assert constants.left_offset == 20 + 200
        assert constants.us_per_pixel == 10_000
        assert constants.header_height == renderer.heading_height()

    def test_document_size(self) -> None:
        root = _parse(Renderer().render_svg(_store()))
        # -2s .. 0.7s (one subline past the endless start) is 270px plus
        # side margins; three lanes below the heading
        assert float(root.get("width")) == 270 + 40
        assert float(root.get("height")) == 3 * 20 + Renderer().heading_height() + 20

    def test_right_edge_extends_chart(self) -> None:
        root = _parse(Renderer().render_svg(_store(), right_edge=1_000_000))
        assert float(root.get("width")) == 300 + 40


class TestActors:
    """Tests for lanes and bars."""

    def test_lanes_in_insertion_order(self) -> None:
        root = _parse(Renderer().render_svg(_store()))
        groups = [g for g in root.iter(f"{SVG_NS}g") if g.get("class") == "actor"]
        # The actor tooltip is a <title> child; the name is the trailing text
        names = [list(g.find(f"{SVG_NS}text").itertext())[-1] for g in groups]
        assert names == ["firmware", "kernel", "journald.service"]

    def test_actor_tooltip(self) -> None:
        root = _parse(Renderer().render_svg(_store()))
        titles = [t.text for t in root.iter(f"{SVG_NS}title")]
        assert titles == ["Linux kernel"]

    def test_span_geometry(self) -> None:
        root = _parse(Renderer().render_svg(_store()))
        spans = _rects(root, "span")
        firmware = spans[0]
        assert float(firmware.get("x")) == -200
        assert float(firmware.get("width")) == 100
        assert float(firmware.get("y")) == 0.5
        assert firmware.get("fill") == "rgb(150,150,150)"

    def test_endless_runs_to_right_edge(self) -> None:
        root = _parse(Renderer().render_svg(_store(), right_edge=1_000_000))
        (endless,) = _rects(root, "endless")
        assert float(endless.get("x")) == 60
        assert float(endless.get("x")) + float(endless.get("width")) == 100

    def test_endless_after_last_bounded_end_is_visible(self) -> None:
        store = EventStore()
        store.register_actor(Actor("firmware"))
        store.add_event("firmware", Event.span(-8_500_000, 5_400_000))
        store.add_event("firmware", Event.endless(200_000))
        root = _parse(Renderer().render_svg(store))

        (endless,) = _rects(root, "endless")
        assert float(endless.get("x")) == 20
        assert float(endless.get("width")) == 10
        # The axis reaches past time zero
        labels = [t.text for t in root.iter(f"{SVG_NS}text") if t.get("class") == "label"]
        assert "0s" in labels and "1s" in labels

    def test_axis_includes_time_zero(self) -> None:
        store = EventStore()
        store.register_actor(Actor("firmware"))
        store.add_event("firmware", Event.span(-3_000_000, 1_000_000))
        root = _parse(Renderer().render_svg(store))
        # -3s .. 0s
        assert float(root.get("width")) == 300 + 40

    def test_actors_without_events_get_no_lane(self) -> None:
        store = _store()
        store.register_actor(Actor("empty.service"))
        root = _parse(Renderer().render_svg(store))

        groups = [g for g in root.iter(f"{SVG_NS}g") if g.get("class") == "actor"]
        assert len(groups) == 3
        assert float(root.get("height")) == 3 * 20 + Renderer().heading_height() + 20

    def test_empty_chart(self) -> None:
        store = EventStore()
        store.register_actor(Actor("kernel"))
        root = _parse(Renderer().render_svg(store))
        assert not [g for g in root.iter(f"{SVG_NS}g") if g.get("class") == "actor"]

    def test_instant_marker(self) -> None:
        store = EventStore()
        store.register_actor(Actor("mark"))
        store.add_event("mark", Event.instant(100_000))
        root = _parse(Renderer().render_svg(store))
        (instant,) = _rects(root, "instant")
        assert float(instant.get("x")) == 10

    def test_tooltips(self) -> None:
        store = EventStore()
        store.register_actor(Actor("a", tooltip="lane <a>"))
        store.add_event("a", Event.span(0, 10, tooltip="bar & more"))
        svg = Renderer().render_svg(store)
        root = _parse(svg)
        titles = [t.text for t in root.iter(f"{SVG_NS}title")]
        assert titles == ["bar & more", "lane <a>"]

    def test_label_side_follows_position(self) -> None:
        store = EventStore()
        store.register_actor(Actor("early"))
        store.add_event("early", Event.span(0, 100_000))
        store.register_actor(Actor("late"))
        store.add_event("late", Event.span(900_000, 100_000))
        root = _parse(Renderer().render_svg(store))
        classes = [
            g.find(f"{SVG_NS}text").get("class")
            for g in root.iter(f"{SVG_NS}g") if g.get("class") == "actor"
        ]
        assert classes == ["left", "right"]


class TestGrid:
    """Tests for grid lines."""

    def test_full_lines_are_labelled(self) -> None:
        root = _parse(Renderer().render_svg(_store(), right_edge=1_000_000))
        labels = [t.text for t in root.iter(f"{SVG_NS}text") if t.get("class") == "label"]
        assert labels == ["-2s", "-1s", "0s", "1s"]

    def test_sublines(self) -> None:
        root = _parse(Renderer().render_svg(_store(), right_edge=1_000_000))
        sublines = [p for p in root.iter(f"{SVG_NS}path") if p.get("class") == "subline"]
        # 3 seconds of 10 sublines each, minus the 4 full lines
        assert len(sublines) == 31 - 4


class TestOverlayElements:
    """The overlay's fixed elements and script are embedded."""

    def test_indicator_elements(self) -> None:
        root = _parse(Renderer().render_svg(_store()))
        ids = {el.get("id") for el in root.iter() if el.get("id")}
        assert {"indicator", "indicator-text"} <= ids

    def test_script_has_constants(self) -> None:
        svg = Renderer().render_svg(_store())
        assert "usPerPixel: 10000," in svg
        assert "leftOffset: 220," in svg
        assert re.search(r"headerHeight: \d+(\.\d+)?,", svg)


class TestDocumentState:
    """Tests for saving and re-loading the embedded state."""

    def test_round_trip(self, tmp_path: Path) -> None:
        path = tmp_path / "chart.svg"
        renderer = Renderer(RenderOpts(heading="Linux host 6.8 #1 SMP", us_per_pixel=5000))
        renderer.render(path, _store(), right_edge=4_200_000)

        loaded, store, right_edge = load_document(path)
        assert loaded.opts == renderer.opts
        assert store == _store()
        assert right_edge == 4_200_000

    def test_double_dash_in_names_survives(self, tmp_path: Path) -> None:
        store = EventStore()
        store.register_actor(Actor("dev-disk-by\\x2duuid--x.device", tooltip="a --> b"))
        path = Renderer().render(tmp_path / "chart.svg", store)

        text = path.read_text(encoding="utf-8")
        comment = text.split("<!--", 1)[1].split("-->", 1)[0]
        assert "--" not in comment

        _, loaded, _ = load_document(path)
        assert loaded.get_actor("dev-disk-by\\x2duuid--x.device").tooltip == "a --> b"

    def test_missing_state(self, tmp_path: Path) -> None:
        path = tmp_path / "plain.svg"
        path.write_text('<svg xmlns="http://www.w3.org/2000/svg"/>', encoding="utf-8")
        with pytest.raises(DocumentStateError):
            load_document(path)

    def test_corrupt_state(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.svg"
        path.write_text("<svg><!-- bootline-state {not json -->\n</svg>", encoding="utf-8")
        with pytest.raises(DocumentStateError):
            load_document(path)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_document(tmp_path / "nope.svg")
