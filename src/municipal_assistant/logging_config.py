"""Loguru as the single log sink.

``setup_logging()`` installs one stderr sink (human-readable or JSON lines)
and reroutes the standard ``logging`` module into it, so uvicorn access
logs, OpenAI client retries and pymongo driver events share one stream.
"""

from __future__ import annotations

import inspect
import logging
import sys

from loguru import logger

_CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)

# Floors for chatty third-party loggers (pymongo emits every command at DEBUG)
_LIBRARY_LEVELS = {
    "pymongo": logging.WARNING,
    "httpcore": logging.INFO,
    "openai._base_client": logging.INFO,
}


class InterceptHandler(logging.Handler):
    """Forward stdlib ``logging`` records to loguru, keeping the caller's location."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = inspect.currentframe(), 0
        while frame and (depth == 0 or frame.f_code.co_filename == logging.__file__):
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(*, level: str = "INFO", json: bool = False) -> None:
    """Configure loguru and intercept stdlib logging.

    Args:
        level: Minimum level for the application's own messages.
        json: Emit one serialized JSON object per line (for log shippers).
    """
    logger.remove()
    if json:
        logger.add(sys.stderr, level=level, serialize=True)
    else:
        logger.add(sys.stderr, level=level, format=_CONSOLE_FORMAT, colorize=True)

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    # uvicorn installs its own handlers; strip them so records reach the root
    for name in ("uvicorn", "uvicorn.access", "uvicorn.error"):
        uv = logging.getLogger(name)
        uv.handlers.clear()
        uv.propagate = True

    for name, floor in _LIBRARY_LEVELS.items():
        logging.getLogger(name).setLevel(floor)
