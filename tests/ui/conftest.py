"""Pytest configuration for UI tests.

Run UI tests with:
    pytest tests/ui/ -m ui --browser chromium -v

For debugging with a visible browser:
    pytest tests/ui/ -m ui --headed --browser chromium -v --slowmo 500
"""
from __future__ import annotations

import pytest


# Apply 'ui' marker to all tests in this directory
def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    """Add 'ui' marker to all tests in ui/ directory."""
    for item in items:
        if "ui" in item.path.parts:
            item.add_marker(pytest.mark.ui)
