"""Logger factory and log-formatting helpers for the recovery pipeline."""

import logging
import sys
from typing import Optional

from analysis_recovery.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def resolve_level(level: Optional[str] = None) -> int:
    """Map a level name to its numeric value; unknown names fall back to INFO."""
    name = (level or settings.log_level).upper()
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.INFO


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """Get a logger writing to stdout.

    Args:
        name: Logger name (typically __name__ of the calling module)
        level: Optional level override; defaults to ``settings.log_level``

    Returns:
        logging.Logger: Logger with a single stdout handler
    """
    logger = logging.getLogger(name)
    logger.setLevel(resolve_level(level))

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(logger.level)
        handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(handler)

    return logger


def preview(text: str, limit: int) -> str:
    """Shorten raw upstream text for a log line.

    Args:
        text: Text to show
        limit: Maximum number of characters kept

    Returns:
        str: ``text`` unchanged if short enough, otherwise its head followed by
        a count of the omitted characters
    """
    if len(text) <= limit:
        return text
    return f"{text[:limit]}... (+{len(text) - limit} chars)"
