"""
Logger module - Centralized logging configuration for OverlayMap.
"""

import logging
import sys
from typing import Optional

from overlaymap.config import get_config


def _default_level() -> int:
    level = getattr(logging, get_config().logging.level, None)
    return level if isinstance(level, int) else logging.INFO


def get_logger(name: str, level: Optional[int] = None) -> logging.Logger:
    """
    Get a configured logger instance.

    Args:
        name: Logger name (typically __name__ of the calling module)
        level: Optional logging level (defaults to the configured level, then INFO)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    if level is not None:
        logger.setLevel(level)
    elif logger.level == logging.NOTSET:
        logger.setLevel(_default_level())

    return logger


# Module-level logger for OverlayMap
overlaymap_logger = get_logger("overlaymap")
