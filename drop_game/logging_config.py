"""Centralized logging configuration for the drop game tools."""

from __future__ import annotations

import logging
import os
from typing import Optional

DEFAULT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
DEFAULT_DATEFMT = "%Y-%m-%d %H:%M:%S"


def configure_logging(
    *,
    level: Optional[str] = None,
    format: str = DEFAULT_FORMAT,
    datefmt: str = DEFAULT_DATEFMT,
) -> logging.Logger:
    """Configure logging for a drop game process.

    Args:
        level: Optional explicit log level. Falls back to ``DROP_LOG_LEVEL`` env
            var or WARNING when not provided.
        format: Log format string.
        datefmt: Date format string.

    Returns:
        The package logger (``drop_game``).
    """

    raw_level = level if level is not None else os.getenv("DROP_LOG_LEVEL")
    resolved_level = (raw_level or "WARNING").upper()
    logging.basicConfig(level=resolved_level, format=format, datefmt=datefmt)

    app_logger = logging.getLogger("drop_game")
    app_logger.setLevel(resolved_level)
    app_logger.debug("Logging configured at %s", resolved_level)
    return app_logger
