"""Loguru sink configuration."""

from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger

from config import Settings

LOG_FORMAT = "<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {name} | {message}"


def configure_logging(settings: Settings) -> None:
    """Replace the default sink with stderr plus an optional rotating file."""
    logger.remove()
    logger.add(sys.stderr, level=settings.log_level, format=LOG_FORMAT)

    if settings.log_file:
        Path(settings.log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            settings.log_file,
            level=settings.log_level,
            rotation="10 MB",
            retention=5,
            encoding="utf-8",
        )
