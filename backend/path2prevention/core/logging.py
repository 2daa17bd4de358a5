"""Centralized Loguru configuration for the Path2Prevention API.

Loguru is configured once at import time and an intercept handler routes
records from the standard library ``logging`` module (uvicorn, SQLAlchemy,
sentence-transformers) through the same sink. Set ``LOG_LEVEL`` in the
environment to change verbosity.
"""

import logging
import os
import sys

from loguru import logger

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

logger.remove()

logger.add(
    sys.stdout,
    level=LOG_LEVEL,
    format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level} | {name} | {message}",
    backtrace=True,
    diagnose=False,
)


class InterceptHandler(logging.Handler):
    """Forward stdlib logging records to Loguru, keeping the caller frame."""

    def emit(
        self, record: logging.LogRecord
    ) -> None:  # pragma: no cover - simple routing
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


logging.basicConfig(handlers=[InterceptHandler()], level=LOG_LEVEL)

# NOTE: third-party loggers install their own handlers; replace them so every
# record ends up in the single Loguru sink.
_ROUTED_LOGGERS = (
    "uvicorn",
    "uvicorn.error",
    "uvicorn.access",
    "sqlalchemy.engine",
    "sentence_transformers",
)
for name in _ROUTED_LOGGERS:
    logging.getLogger(name).handlers = [InterceptHandler()]
    logging.getLogger(name).propagate = False
