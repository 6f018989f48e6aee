"""Logging helpers.

The library only creates named loggers; applications decide where records go.

Usage:
    from graphmapper.config import setup_logging, get_logger

    setup_logging(level="DEBUG", log_format="console")  # once, at startup
    logger = get_logger(__name__)
    logger.debug("Mapped %s", type(target).__name__, extra={"fields": 3})
"""

from __future__ import annotations

import logging
import sys
from typing import Literal

from pythonjsonlogger import json as json_logger

LOG_FORMAT_CONSOLE = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

ROOT_LOGGER_NAME = "graphmapper"


def setup_logging(
    level: str = "INFO",
    log_format: Literal["json", "console"] = "json",
    logger_name: str = ROOT_LOGGER_NAME,
) -> logging.Logger:
    """Attach a stdout handler to the package logger.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: 'json' for structured JSON lines, 'console' for human-readable.
        logger_name: Logger to configure. Defaults to the package logger.

    Returns:
        The configured logger.
    """
    logger = logging.getLogger(logger_name)
    logger.setLevel(level.upper())

    # Replace handlers from earlier calls to avoid duplicate lines
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level.upper())
    if log_format == "json":
        handler.setFormatter(_build_json_formatter())
    else:
        handler.setFormatter(logging.Formatter(LOG_FORMAT_CONSOLE, datefmt=LOG_DATE_FORMAT))
    logger.addHandler(handler)

    logger.debug(
        "Logging initialised",
        extra={"log_level": level.upper(), "log_format": log_format},
    )
    return logger


def get_logger(name: str) -> logging.Logger:
    """Return a named logger. Call with ``get_logger(__name__)`` in each module."""
    return logging.getLogger(name)


def _build_json_formatter() -> json_logger.JsonFormatter:
    return json_logger.JsonFormatter(
        fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt=LOG_DATE_FORMAT,
        rename_fields={
            "asctime": "timestamp",
            "levelname": "level",
            "name": "logger",
        },
    )
