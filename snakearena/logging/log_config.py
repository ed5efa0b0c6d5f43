"""Centralized logging configuration for Snake Arena."""

from __future__ import annotations

import logging
import os
from typing import Optional

DEFAULT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
DEFAULT_DATEFMT = "%Y-%m-%d %H:%M:%S"

LOG_LEVEL_ENV = "SNAKEARENA_LOG_LEVEL"


def configure_logging(
    level: Optional[str] = None,
    format: str = DEFAULT_FORMAT,
    datefmt: str = DEFAULT_DATEFMT,
    default: str = "INFO",
) -> logging.Logger:
    """
    Configure application logging.

    Args:
        level: Explicit log level. Falls back to the SNAKEARENA_LOG_LEVEL
            environment variable, then `default`.
        format: Log format string.
        datefmt: Date format string.
        default: Level used when neither is set.

    Returns:
        The "snakearena" package logger.
    """
    raw_level = level if level is not None else os.getenv(LOG_LEVEL_ENV)
    resolved_level = (raw_level or default).upper()
    logging.basicConfig(level=resolved_level, format=format, datefmt=datefmt)

    app_logger = logging.getLogger("snakearena")
    app_logger.setLevel(resolved_level)
    app_logger.debug("Logging configured at %s", resolved_level)
    return app_logger
