"""Load and save boot capture files.

A capture holds the raw timestamps one boot produced, so a timeline can be
rebuilt offline. Captures are YAML (JSON is accepted too, being a YAML
subset) and are validated against ``boot-capture.schema.json``.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml
from jsonschema import Draft202012Validator

from bootline.timeline.event_store import EventStore
from bootline.timeline.intervals import (
    BootMilestones,
    UnitTimestamps,
    build_timeline,
    timestamp_or_none,
)

SCHEMA_PATH = Path(__file__).resolve().parent.parent / "schemas" / "boot-capture.schema.json"

_MILESTONE_FIELDS = ("firmware", "loader", "initrd", "userspace")
_UNIT_FIELDS = ("activating", "activated", "deactivating", "deactivated")


class CaptureError(ValueError):
    """A capture file is unreadable or fails schema validation."""


@dataclass
class BootCapture:
    """Raw timestamps of one boot, sentinels already mapped to None."""

    default_target_reached: Optional[int]
    milestones: BootMilestones = field(default_factory=BootMilestones)
    units: list[UnitTimestamps] = field(default_factory=list)
    heading: str = ""

    def build(self) -> EventStore:
        """Run the interval extractor over this capture."""
        return build_timeline(self.milestones, self.units, self.default_target_reached)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "default_target_reached": self.default_target_reached,
            "milestones": {
                name: getattr(self.milestones, name) for name in _MILESTONE_FIELDS
            },
            "units": [
                {"name": unit.name, **{name: getattr(unit, name) for name in _UNIT_FIELDS}}
                for unit in self.units
            ],
        }
        if self.heading:
            result["heading"] = self.heading
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BootCapture:
        milestones = data.get("milestones", {})
        return cls(
            default_target_reached=timestamp_or_none(data.get("default_target_reached")),
            milestones=BootMilestones(
                **{name: timestamp_or_none(milestones.get(name)) for name in _MILESTONE_FIELDS}
            ),
            units=[
                UnitTimestamps(
                    name=unit["name"],
                    **{name: timestamp_or_none(unit.get(name)) for name in _UNIT_FIELDS},
                )
                for unit in data.get("units", [])
            ],
            heading=data.get("heading", ""),
        )


def validate_capture(data: Any) -> list[str]:
    """Validate capture data against the JSON schema. Returns errors (empty if valid)."""
    schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
    validator = Draft202012Validator(schema)
    return [f"{error.json_path}: {error.message}" for error in validator.iter_errors(data)]


def load_capture(path: str | Path) -> BootCapture:
    """Load and validate a capture file.

    Raises:
        FileNotFoundError: If the capture file doesn't exist
        CaptureError: If the file is malformed or fails schema validation
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(
            f"Capture file not found: {path}\n\n"
            f"Create one on the target machine with: bootline capture --out {path.name}"
        )

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise CaptureError(f"Invalid YAML in capture file {path}:\n{e}") from e

    if not isinstance(data, dict):
        raise CaptureError(f"Capture file must contain a mapping: {path}")

    errors = validate_capture(data)
    if errors:
        details = "\n".join(f"  - {e}" for e in errors[:5])
        raise CaptureError(f"Capture validation failed for {path}:\n{details}")

    return BootCapture.from_dict(data)


def save_capture(capture: BootCapture, path: str | Path) -> Path:
    """Write a capture as JSON (``.json`` suffix) or YAML (anything else)."""
    path = Path(path)
    data = capture.to_dict()
    if path.suffix == ".json":
        text = json.dumps(data, indent=2) + "\n"
    else:
        text = yaml.safe_dump(data, sort_keys=False)
    path.write_text(text, encoding="utf-8")
    return path
