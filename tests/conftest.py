"""Bootline test configuration and fixtures."""
from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

# Add src to path for imports
SRC_DIR = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(SRC_DIR))


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the fixtures directory path."""
    return Path(__file__).parent.parent / "fixtures"


@pytest.fixture
def sample_capture_path(fixtures_dir: Path) -> Path:
    """Return the path to sample_boot.yaml."""
    return fixtures_dir / "captures" / "sample_boot.yaml"


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep BOOTLINE_* variables and stray .env files out of tests."""
    for key in [k for k in os.environ if k.startswith("BOOTLINE_")]:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
