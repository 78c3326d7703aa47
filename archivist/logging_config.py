"""Loguru logging setup."""

import os
import sys
from typing import Any

from loguru import logger

LOG_FORMAT = "<level>{time:YYYY-MM-DD HH:mm:ss} | {name}:{function}:{line} | {message}</level>"


def setup_logging(level: str | None = None, sink: Any = None, fmt: str = LOG_FORMAT) -> int:
    """
    Route archivist logs to a single loguru sink.

    ``level`` falls back to ``LOG_LEVEL`` and then INFO. ``sink`` is anything
    loguru accepts (a stream, a path, a callable) and defaults to stderr.
    Colors are only used for terminal streams. Returns the handler id.
    """
    if level is None:
        level = os.environ.get("LOG_LEVEL", "INFO")
    if sink is None:
        sink = sys.stderr

    isatty = getattr(sink, "isatty", None)
    logger.remove()
    return logger.add(
        sink,
        format=fmt,
        level=level.upper(),
        colorize=bool(isatty and isatty()),
        backtrace=True,
        diagnose=False,
    )
