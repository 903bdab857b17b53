# tests/crop_canvas/conftest.py
"""Fixtures for crop canvas tests."""
from __future__ import annotations

import sys
from pathlib import Path

import pytest


def pytest_configure() -> None:
    # Ensure cropwidgets package is importable when running tests from repo root.
    repo_root = Path(__file__).resolve().parents[2]
    src_dir = repo_root / "src"
    if src_dir.exists() and str(src_dir) not in sys.path:
        sys.path.insert(0, str(src_dir))


@pytest.fixture
def tracker():
    """Tracker with default config and an empty viewport."""
    from cropwidgets.crop_canvas.tracker import InteractionTracker

    return InteractionTracker()


@pytest.fixture
def mapper():
    """Mapper over a 200x100 canvas showing a 200x100 image."""
    from cropwidgets.crop_canvas.tracker import InteractionTracker
    from cropwidgets.crop_canvas.viewport_mapper import ViewportMapper

    m = ViewportMapper(InteractionTracker())
    m.set_canvas_extent(200, 100)
    m.set_image_extent(200, 100)
    return m
