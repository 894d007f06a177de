"""Logging utilities built on top of :mod:`loguru`."""
from __future__ import annotations

import logging
import sys
from typing import Any, Optional, TextIO

from loguru import logger

LOG_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {name} - <level>{message}</level>"


class LoguruBridge(logging.Handler):
    """Forward standard-library log records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: Any = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        logger.opt(depth=6, exception=record.exc_info).log(level, record.getMessage())


def configure_logging(level: str = "INFO", sink: Optional[TextIO] = None) -> None:
    """Configure loguru and route the library's stdlib loggers through it."""

    logger.remove()
    logger.add(sink or sys.stderr, level=level.upper(), format=LOG_FORMAT, colorize=sink is None)
    logging.basicConfig(handlers=[LoguruBridge()], level=level.upper(), force=True)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a standard-library logger tied to loguru."""

    return logging.getLogger(name or __name__)
