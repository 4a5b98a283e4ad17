"""Logging utilities."""

import logging
import os
import sys

ROOT_LOGGER = "mdstream"
_LOG_LEVEL = os.environ.get("MDSTREAM_LOG_LEVEL", "WARNING").upper()
_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def get_logger(name: str, level: int | str | None = None) -> logging.Logger:
    """Get a logger under the package root, configuring the root handler once.

    Args:
        name: Logger name (typically __name__)
        level: Optional log level override for the package root

    Returns:
        Configured logger
    """
    root = logging.getLogger(ROOT_LOGGER)

    if not root.handlers:
        # stderr keeps CLI JSON output on stdout clean
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        root.addHandler(handler)

    if level is not None:
        set_level(level)
    elif root.level == logging.NOTSET:
        root.setLevel(getattr(logging, _LOG_LEVEL, logging.WARNING))

    return logging.getLogger(name)


def set_level(level: int | str) -> None:
    """Set the package root log level from a level name or number."""
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.WARNING)
    logging.getLogger(ROOT_LOGGER).setLevel(level)
