"""Logging setup shared by the API and the command line client."""

import logging
from typing import Optional, Union

_LEVELS = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}

LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def coerce_level(value: Optional[Union[str, int]]) -> int:
    """Map a level name (or number) to a logging level, defaulting to INFO."""
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        return _LEVELS.get(value.upper().strip(), logging.INFO)
    return logging.INFO


def configure_logging(level: Optional[Union[str, int]] = None) -> None:
    """Install a single stream handler on the root logger.

    Calling this more than once only adjusts the level.
    """
    root = logging.getLogger()
    root.setLevel(coerce_level(level))
    if getattr(root, "_expiry_reader_configured", False):
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    root.addHandler(handler)
    setattr(root, "_expiry_reader_configured", True)
