from __future__ import annotations

import logging
import os
import sys

DEBUG_ENV = "SASSA_DEBUG"

_TRUTHY = ("1", "true", "yes", "on")


def debug_enabled() -> bool:
    """Return True when step-by-step tracing was requested via SASSA_DEBUG."""
    return os.environ.get(DEBUG_ENV, "").strip().lower() in _TRUTHY


def set_debug(enabled: bool) -> None:
    if enabled:
        os.environ[DEBUG_ENV] = "1"
    else:
        os.environ.pop(DEBUG_ENV, None)


def configure_logging() -> None:
    """Route the ``sassa`` loggers to stderr, at DEBUG only when tracing is on."""
    logger = logging.getLogger("sassa")
    level = logging.DEBUG if debug_enabled() else logging.WARNING
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
        logger.addHandler(handler)

    for handler in logger.handlers:
        if isinstance(handler, logging.StreamHandler):
            handler.setStream(sys.stderr)
        handler.setLevel(level)
