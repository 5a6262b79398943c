"""Logging setup shared by the command-line scripts."""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logger(name: str | None = None, *, debug: bool = False) -> logging.Logger:
    """Attach one formatted stdout handler to a logger (idempotent)."""
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    log_level = logging.DEBUG if debug else logging.INFO
    logger.setLevel(log_level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(handler)
    return logger
