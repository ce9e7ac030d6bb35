"""
Logging utilities.

Every docqa module logs through ``logging.getLogger(__name__)``; these helpers
attach output to the shared ``docqa`` parent logger.
"""

import logging
import sys
from typing import TextIO

PACKAGE_LOGGER = "docqa"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def get_logger(name: str = PACKAGE_LOGGER, stream: TextIO | None = None) -> logging.Logger:
    """
    Get a logger that writes to ``stream`` (stderr by default).

    A handler is installed only on the first call for a given logger, so
    repeated pipeline construction does not duplicate output.

    Args:
        name: Logger name (usually __name__ or the package name)
        stream: Output stream for a newly installed handler

    Returns:
        Configured logger
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)

    return logger


def set_log_level(level: int | str) -> None:
    """
    Set the level of the ``docqa`` logger and so of every module under it.

    Args:
        level: Level number or name (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Raises:
        ValueError: If ``level`` is not a known level name
    """
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown log level: {level}")
        level = resolved

    get_logger(PACKAGE_LOGGER).setLevel(level)
