"""
cropwidgets: NiceGUI crop canvas for rotated and zoomed images.

This package provides:
- CropCanvasWidget: image viewer with an interactive crop rectangle,
  90 degree rotation animation and zoom
- The geometry/interaction core it is built on (AffineTransform, Rect,
  InteractionTracker, ViewportMapper), usable without NiceGUI
- Logging utilities for library and application use

For logging configuration in standalone scripts/demos:
    ```python
    from cropwidgets.utils.logging import configure_logging
    configure_logging(level="DEBUG")
    ```

When used as a library, logging is handled by the parent application's
configuration.
"""

import logging

from cropwidgets.utils.logging import configure_logging, get_logger

from cropwidgets.crop_canvas import (
    AffineTransform,
    InteractionMode,
    InteractionTracker,
    Rect,
    ViewportMapper,
)

# Ensure cropwidgets logger has NullHandler so logs don't propagate to root
# when no application has configured logging.
_logger = logging.getLogger("cropwidgets")
if not _logger.handlers:
    _logger.addHandler(logging.NullHandler())

__all__ = [
    "AffineTransform",
    "InteractionMode",
    "InteractionTracker",
    "Rect",
    "ViewportMapper",
    "configure_logging",
    "get_logger",
]

__version__ = "0.1.0"
