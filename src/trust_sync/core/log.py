"""Logging setup for the trust_sync package."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "trust_sync"


def configure_logging(verbose: bool = False) -> logging.Logger:
    """Attach a Rich stderr handler to the package logger.

    Safe to call repeatedly; only the level changes after the first call.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)

    # Prevent duplicate handlers if called again
    if logger.handlers:
        return logger

    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        show_time=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.propagate = False

    return logger
