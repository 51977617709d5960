"""Structured logging setup for voice-cal.

Every module logs through :func:`logging.getLogger` with ``__name__``; this
module attaches the single stderr handler with ISO 8601 timestamps and
pipe-separated fields.
"""

from __future__ import annotations

import logging
import sys

_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

# Marks the handler we own so repeated setup calls stay idempotent.
_HANDLER_ATTR = "_voice_cal_log_handler"


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger with the voice-cal formatter.

    Safe to call more than once: an existing voice-cal handler is reused
    and only its level is updated.

    Args:
        level: A standard logging level name (``"DEBUG"``, ``"INFO"``, ...).

    Raises:
        ValueError: If *level* is not a recognised logging level string.
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {level!r}")

    root = logging.getLogger()
    root.setLevel(numeric_level)

    for handler in root.handlers:
        if getattr(handler, _HANDLER_ATTR, False):
            handler.setLevel(numeric_level)
            return

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(numeric_level)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S"))

    setattr(handler, _HANDLER_ATTR, True)
    root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Return a named logger (thin wrapper over :func:`logging.getLogger`)."""
    return logging.getLogger(name)
