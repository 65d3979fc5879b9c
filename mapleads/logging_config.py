"""Logging configuration helpers for the MapLeads extractor.

Every module asks :func:`get_logger` for its logger; records go to the console
and to a size-rotated file under ``MAPLEADS_LOG_DIR`` (default ``logs``).
"""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler

LOG_DIR = os.getenv("MAPLEADS_LOG_DIR", "logs")
LOG_FILE = os.path.join(LOG_DIR, "mapleads.log")
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
DEFAULT_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

_CONFIGURED: set[str] = set()


def _build_handlers(level: str) -> list[logging.Handler]:
    os.makedirs(LOG_DIR, exist_ok=True)
    formatter = logging.Formatter(LOG_FORMAT)

    file_handler = RotatingFileHandler(
        LOG_FILE,
        maxBytes=1_000_000,
        backupCount=3,
        encoding="utf-8",
    )
    console_handler = logging.StreamHandler()

    handlers: list[logging.Handler] = [file_handler, console_handler]
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.setLevel(level)
    return handlers


def get_logger(name: str) -> logging.Logger:
    """Return a logger wired to the shared console and rotating file handlers."""
    logger = logging.getLogger(name)
    if name in _CONFIGURED:
        return logger

    logger.setLevel(DEFAULT_LEVEL)
    logger.propagate = False
    if not logger.handlers:
        for handler in _build_handlers(DEFAULT_LEVEL):
            logger.addHandler(handler)
    _CONFIGURED.add(name)
    return logger


def set_level(level: str | int) -> None:
    """Change the level of every logger handed out by :func:`get_logger`."""
    for name in _CONFIGURED:
        logger = logging.getLogger(name)
        logger.setLevel(level)
        for handler in logger.handlers:
            handler.setLevel(level)
