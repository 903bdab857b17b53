"""
Logging setup for cropwidgets.

Library modules only ever call ``get_logger(__name__)``; nothing under
``cropwidgets`` attaches handlers on import (the package root adds a
NullHandler). Demo scripts opt in with ``configure_logging()``.

The tracker logs every pointer-down and the viewport mapper every zoom and
rotation step at DEBUG, which floods the console while dragging. To look at
one part in isolation, name the submodules that should log at DEBUG while
the rest stays at the package level::

    configure_logging(level="INFO", debug_modules=["viewport_mapper"])

or from the shell::

    CROPWIDGETS_DEBUG=tracker,viewport_mapper python examples/sample_crop_canvas_widget.py
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Iterable, List, Optional, Union

PACKAGE_LOGGER = "cropwidgets"

DEFAULT_FMT = "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d:%(funcName)s: %(message)s"
DEFAULT_DATEFMT = "%Y-%m-%d %H:%M:%S"

LOG_LEVEL_ENV_VAR = "CROPWIDGETS_LOG_LEVEL"
DEBUG_MODULES_ENV_VAR = "CROPWIDGETS_DEBUG"

# Short names accepted by debug_modules, mapped to their logger names.
MODULE_ALIASES = {
    "geometry": "cropwidgets.crop_canvas.geometry",
    "tracker": "cropwidgets.crop_canvas.tracker",
    "viewport_mapper": "cropwidgets.crop_canvas.viewport_mapper",
    "widget": "cropwidgets.crop_canvas.crop_canvas_widget",
}


def resolve_module_logger(name: str) -> str:
    """Map a short submodule name ("tracker") or a dotted name to a logger name.

    Raises:
        ValueError: if ``name`` is neither a known alias nor under ``cropwidgets``.
    """
    name = name.strip()
    if name in MODULE_ALIASES:
        return MODULE_ALIASES[name]
    if name == PACKAGE_LOGGER or name.startswith(PACKAGE_LOGGER + "."):
        return name
    raise ValueError(
        f"unknown cropwidgets module {name!r}; expected one of "
        f"{sorted(MODULE_ALIASES)} or a 'cropwidgets.' logger name"
    )


def _debug_modules_from_env() -> List[str]:
    raw = os.environ.get(DEBUG_MODULES_ENV_VAR, "")
    return [part for part in (p.strip() for p in raw.split(",")) if part]


def configure_logging(
    level: Optional[Union[str, int]] = None,
    *,
    debug_modules: Optional[Iterable[str]] = None,
    fmt: Optional[str] = None,
    datefmt: Optional[str] = None,
    force: bool = False,
) -> None:
    """
    Send cropwidgets logs to stderr. Only the ``cropwidgets`` logger is touched.

    Parameters
    ----------
    level:
        Package level (e.g. "DEBUG", "INFO"). Defaults to CROPWIDGETS_LOG_LEVEL,
        or "INFO" if unset.
    debug_modules:
        Submodules to log at DEBUG regardless of ``level``: aliases from
        MODULE_ALIASES or full logger names. Defaults to the comma-separated
        CROPWIDGETS_DEBUG env var.
    fmt, datefmt:
        Formatter settings. Default to DEFAULT_FMT / DEFAULT_DATEFMT.
    force:
        If True, replace existing handlers. If False, an existing stderr
        handler is kept and no second one is added.
    """
    if level is None:
        level = os.environ.get(LOG_LEVEL_ENV_VAR, "INFO")
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    modules = list(debug_modules) if debug_modules is not None else _debug_modules_from_env()
    module_loggers = [resolve_module_logger(m) for m in modules]

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)
    for name in module_loggers:
        logging.getLogger(name).setLevel(logging.DEBUG)

    if force:
        for h in logger.handlers[:]:
            h.close()
            logger.removeHandler(h)
    elif any(
        isinstance(h, logging.StreamHandler) and h.stream is sys.stderr
        for h in logger.handlers
    ):
        return

    console = logging.StreamHandler(sys.stderr)
    # module overrides must get past the handler too
    console.setLevel(logging.DEBUG if module_loggers else level)
    console.setFormatter(
        logging.Formatter(
            fmt=fmt if fmt is not None else DEFAULT_FMT,
            datefmt=datefmt if datefmt is not None else DEFAULT_DATEFMT,
        )
    )
    logger.addHandler(console)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Logger for ``name``; the package logger when name is None."""
    return logging.getLogger(name if name is not None else PACKAGE_LOGGER)
