"""Loguru sink configuration for the API process and CLI scripts."""

from __future__ import annotations

import sys

from loguru import logger

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> [<level>{level}</level>] "
    "<cyan>{name}</cyan>: {message}"
)


def configure_logging(level: str | None = None) -> None:
    """Replace loguru's default sink with a single stderr sink at ``level``."""

    from .config import get_settings

    resolved = (level or get_settings().log_level or "INFO").upper()
    logger.remove()
    logger.add(sys.stderr, level=resolved, format=LOG_FORMAT, backtrace=False)
