"""Crop Canvas - rotate/zoom an image and draw a crop rectangle over it."""

from .geometry import AffineTransform, Point, Rect
from .tracker import (
    Anchor,
    ArrowKey,
    InteractionMode,
    InteractionTracker,
    PointerEvent,
    PointerEventType,
    TrackerConfig,
)
from .viewport_mapper import Extent, ViewportMapper, ViewportState

__all__ = [
    "AffineTransform",
    "Anchor",
    "ArrowKey",
    "Extent",
    "InteractionMode",
    "InteractionTracker",
    "Point",
    "PointerEvent",
    "PointerEventType",
    "Rect",
    "TrackerConfig",
    "ViewportMapper",
    "ViewportState",
]
