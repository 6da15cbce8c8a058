"""Application-wide logging configuration."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "studyplanner"

_LOGGER_INITIALIZED = False


def configure_logging(level: int | str = logging.WARNING) -> logging.Logger:
    """Attach a rich stderr handler to the package logger and return it."""
    global _LOGGER_INITIALIZED
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    if _LOGGER_INITIALIZED:
        return logger

    handler = RichHandler(console=Console(stderr=True), show_path=False, rich_tracebacks=True)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False

    _LOGGER_INITIALIZED = True
    logger.debug("Logging initialized at %s", level)
    return logger
