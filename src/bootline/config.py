"""Bootline configuration management.

Handles:
- Data source mode (live systemctl vs capture file)
- .env file loading with precedence: CLI > .env > env vars
- Renderer scale
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any


class Mode(str, Enum):
    """Where timestamps come from."""

    LIVE = "live"
    FIXTURE = "fixture"


class InvalidModeError(ValueError):
    """BOOTLINE_MODE or --mode names no known mode."""

    def __init__(self, mode: str) -> None:
        super().__init__(f"Invalid mode {mode!r}, expected 'live' or 'fixture'")
        self.mode = mode


@dataclass
class Config:
    """Bootline runtime configuration."""

    mode: Mode = Mode.LIVE
    capture_path: Path | None = None
    systemctl: str = "systemctl"
    systemctl_timeout: float = 30.0
    default_target: str = "default.target"
    us_per_pixel: float = 10_000
    env_file_path: Path | None = None

    def is_live(self) -> bool:
        """Check if timestamps are queried from the running system."""
        return self.mode == Mode.LIVE

    def is_fixture(self) -> bool:
        """Check if timestamps come from a capture file."""
        return self.mode == Mode.FIXTURE


def parse_env_file(env_file: Path) -> dict[str, str]:
    """Parse a .env file into a dictionary.

    Supports:
    - KEY=value
    - KEY="quoted value"
    - KEY='single quoted'
    - export KEY=value
    - # comments
    - Empty lines
    """
    result: dict[str, str] = {}

    if not env_file.exists():
        return result

    for line in env_file.read_text(encoding="utf-8").splitlines():
        line = line.strip()

        if not line or line.startswith("#"):
            continue

        if line.startswith("export "):
            line = line[7:]

        if "=" not in line:
            continue

        key, _, value = line.partition("=")
        key = key.strip()
        value = value.strip()

        if (value.startswith('"') and value.endswith('"')) or (
            value.startswith("'") and value.endswith("'")
        ):
            value = value[1:-1]

        result[key] = value

    return result


def _find_env_file(start: Path | None = None) -> Path | None:
    """Find .env file by walking up directory tree.

    Stops at git root, home directory, or filesystem root.
    """
    current = (start or Path.cwd()).resolve()

    try:
        home = Path.home()
    except RuntimeError:
        home = None

    for _ in range(20):  # Max depth
        env_file = current / ".env"
        if env_file.exists():
            return env_file

        if home and current == home:
            break
        if current == current.parent:
            break
        # Stop at git root (but check .env first)
        if (current / ".git").exists():
            break

        current = current.parent

    return None


def _positive_number(env_vars: dict[str, str], key: str, default: float) -> float:
    raw = env_vars.get(key)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{key} must be a number, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{key} must be positive, got {raw!r}")
    return value


def load_config(
    mode: str | None = None,
    env_file: str | Path | None = None,
    cli_overrides: dict[str, Any] | None = None,
) -> Config:
    """Load configuration with precedence: CLI > .env > env vars.

    Args:
        mode: Explicit mode override (live or fixture)
        env_file: Path to .env file to load (default: search upwards from cwd)
        cli_overrides: Additional CLI-provided values keyed by Config field

    Returns:
        Loaded Config instance

    Raises:
        InvalidModeError: If the mode is neither live nor fixture
        ValueError: If a numeric value is invalid
    """
    cli_overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}

    env_vars = dict(os.environ)

    env_file_path: Path | None = Path(env_file) if env_file else _find_env_file()
    if env_file_path and env_file_path.exists():
        env_vars.update(parse_env_file(env_file_path))

    mode_value = mode or env_vars.get("BOOTLINE_MODE") or Mode.LIVE.value
    try:
        resolved_mode = Mode(mode_value)
    except ValueError:
        raise InvalidModeError(mode_value) from None

    capture = cli_overrides.get("capture_path") or env_vars.get("BOOTLINE_CAPTURE")

    config = Config(
        mode=resolved_mode,
        capture_path=Path(capture) if capture else None,
        systemctl=env_vars.get("BOOTLINE_SYSTEMCTL") or "systemctl",
        systemctl_timeout=_positive_number(env_vars, "BOOTLINE_SYSTEMCTL_TIMEOUT", 30.0),
        default_target=env_vars.get("BOOTLINE_DEFAULT_TARGET") or "default.target",
        us_per_pixel=_positive_number(env_vars, "BOOTLINE_US_PER_PIXEL", 10_000),
        env_file_path=env_file_path,
    )

    for key in ("systemctl", "default_target", "us_per_pixel"):
        if key in cli_overrides:
            setattr(config, key, cli_overrides[key])

    # A capture given on the command line implies fixture mode
    if mode is None and "capture_path" in cli_overrides:
        config.mode = Mode.FIXTURE

    return config
