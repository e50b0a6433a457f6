"""Load the timeline state embedded in a rendered document."""
from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Optional

from bootline.render.svg_renderer import STATE_MARKER, RenderOpts, Renderer
from bootline.timeline.event_store import EventStore

_STATE_RE = re.compile(r"<!--\s*" + re.escape(STATE_MARKER) + r"\s(.*?)\s*-->", re.DOTALL)


class DocumentStateError(ValueError):
    """The document carries no readable timeline state."""


def load_document(path: str | Path) -> tuple[Renderer, EventStore, Optional[int]]:
    """Recover the renderer, store and right edge a document was rendered from.

    Raises:
        FileNotFoundError: If the document doesn't exist.
        DocumentStateError: If the state comment is missing or unreadable.
    """
    path = Path(path)
    text = path.read_text(encoding="utf-8")

    match = _STATE_RE.search(text)
    if match is None:
        raise DocumentStateError(f"No {STATE_MARKER} comment in {path}")

    try:
        state = json.loads(match.group(1))
        renderer = Renderer(RenderOpts.from_dict(state.get("opts", {})))
        store = EventStore.from_dict(state.get("store", {}))
    except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
        raise DocumentStateError(f"Unreadable timeline state in {path}: {e}") from e

    return renderer, store, state.get("right_edge")
