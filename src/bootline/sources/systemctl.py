"""Query boot timestamps from systemd via ``systemctl``."""
from __future__ import annotations

import json
import logging
import platform
import subprocess
from typing import Optional

from bootline.sources.capture import BootCapture
from bootline.timeline.intervals import (
    BootMilestones,
    MissingReferenceError,
    UnitTimestamps,
    timestamp_or_none,
)

logger = logging.getLogger(__name__)

MILESTONE_PROPERTIES = {
    "firmware": "FirmwareTimestampMonotonic",
    "loader": "LoaderTimestampMonotonic",
    "initrd": "InitRDTimestampMonotonic",
    "userspace": "UserspaceTimestampMonotonic",
}

UNIT_PROPERTIES = {
    "activating": "InactiveExitTimestampMonotonic",
    "activated": "ActiveEnterTimestampMonotonic",
    "deactivating": "ActiveExitTimestampMonotonic",
    "deactivated": "InactiveEnterTimestampMonotonic",
}


class SystemctlError(RuntimeError):
    """systemctl failed or produced output that cannot be parsed."""


def parse_properties(output: str) -> dict[str, str]:
    """Parse ``systemctl show`` output (``Key=value`` per line)."""
    result: dict[str, str] = {}
    for line in output.splitlines():
        key, sep, value = line.partition("=")
        if sep:
            result[key.strip()] = value.strip()
    return result


def default_heading() -> str:
    """Equivalent of ``uname -a`` for the chart heading."""
    return " ".join(part for part in platform.uname() if part)


class SystemctlSource:
    """Collects a BootCapture from the running system."""

    def __init__(self, systemctl: str = "systemctl", timeout: float = 30) -> None:
        self.systemctl = systemctl
        self.timeout = timeout

    def _run(self, *args: str) -> str:
        cmd = [self.systemctl, *args]
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout)
        except FileNotFoundError as e:
            raise SystemctlError(f"{self.systemctl} not found") from e
        except subprocess.TimeoutExpired as e:
            raise SystemctlError(f"{' '.join(cmd)} timed out after {self.timeout}s") from e

        if result.returncode != 0:
            raise SystemctlError(
                f"{' '.join(cmd)} failed (exit {result.returncode}): {result.stderr.strip()}"
            )
        return result.stdout

    def _show(self, properties: list[str], unit: Optional[str] = None) -> dict[str, str]:
        args = ["show"]
        for prop in properties:
            args += ["-p", prop]
        if unit is not None:
            args += ["--", unit]
        return parse_properties(self._run(*args))

    def _timestamps(self, values: dict[str, str], mapping: dict[str, str], what: str) -> dict[str, Optional[int]]:
        result: dict[str, Optional[int]] = {}
        for field_name, prop in mapping.items():
            try:
                result[field_name] = timestamp_or_none(values.get(prop))
            except ValueError as e:
                raise SystemctlError(f"{what}: bad {prop} value {values.get(prop)!r}") from e
        return result

    def manager_milestones(self) -> BootMilestones:
        values = self._show(list(MILESTONE_PROPERTIES.values()))
        return BootMilestones(**self._timestamps(values, MILESTONE_PROPERTIES, "manager"))

    def default_target_reached(self, target: str = "default.target") -> int:
        """Activation time of the default target.

        Raises:
            MissingReferenceError: If the target has no usable activation time.
        """
        prop = UNIT_PROPERTIES["activated"]
        raw = self._show([prop], unit=target).get(prop)
        try:
            value = timestamp_or_none(raw)
        except ValueError as e:
            raise MissingReferenceError(f"{target}: malformed {prop} value {raw!r}") from e
        if value is None:
            raise MissingReferenceError(f"{target} has not been reached")
        return value

    def list_units(self) -> list[str]:
        output = self._run("list-units", "--all", "-o", "json")
        try:
            entries = json.loads(output)
            return [entry["unit"] for entry in entries]
        except (json.JSONDecodeError, KeyError, TypeError) as e:
            raise SystemctlError(f"Unexpected list-units output: {e}") from e

    def unit_timestamps(self, name: str) -> UnitTimestamps:
        values = self._show(list(UNIT_PROPERTIES.values()), unit=name)
        return UnitTimestamps(name=name, **self._timestamps(values, UNIT_PROPERTIES, name))

    def collect(self, heading: Optional[str] = None, target: str = "default.target") -> BootCapture:
        """Query everything a boot timeline needs."""
        reference = self.default_target_reached(target)
        milestones = self.manager_milestones()
        names = self.list_units()
        logger.info("Querying %d units", len(names))
        units = [self.unit_timestamps(name) for name in names]
        return BootCapture(
            default_target_reached=reference,
            milestones=milestones,
            units=units,
            heading=default_heading() if heading is None else heading,
        )
