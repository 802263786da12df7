"""Logging configuration using loguru.

Everything ends up in loguru: the daemon's own ``logger`` calls, plus stdlib
records from uvicorn, httpx and the ``execution`` modules (which log through
``logging.getLogger(__name__)``).  Output goes to stderr and, when
``PIPEFORGE_LOG_FILE`` is set, to a rotating file as well.
"""

from __future__ import annotations

import logging
import sys

from loguru import logger

_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)

# Library loggers that are chatty below WARNING.
_QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "asyncio")


class _InterceptHandler(logging.Handler):
    """Forward stdlib records to loguru, keeping the original call site."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(level: str = "INFO", log_file: str | None = None) -> None:
    """Install loguru sinks and route stdlib logging into them.

    Safe to call more than once; each call replaces the previous sinks.
    """
    level = level.upper()

    handlers: list[dict] = [{"sink": sys.stderr, "level": level, "format": _FORMAT}]
    if log_file:
        handlers.append({
            "sink": log_file,
            "level": level,
            "format": _FORMAT,
            "colorize": False,
            "rotation": "50 MB",
            "retention": 5,
            "enqueue": True,
        })
    logger.configure(handlers=handlers)

    logging.basicConfig(handlers=[_InterceptHandler()], level=0, force=True)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger.debug("Logging initialised (level={}, file={})", level, log_file or "-")
