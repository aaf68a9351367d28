"""Logging helpers shared by every clusterlab module."""

import logging
import sys
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the given name."""
    return logging.getLogger(name)


def setup_logging(level: Optional[Union[int, str]] = None) -> None:
    """
    Configure root logging with a single stdout handler.

    Args:
        level: Logging level (int or name such as ``"DEBUG"``). Defaults to
            ``config.engine.log_level``.
    """
    if level is None:
        from ..config import config

        level = config.engine.log_level
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )
