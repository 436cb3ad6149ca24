"""Structured logging configuration for deploybot."""
from __future__ import annotations

import json
import logging

from .config import Settings

ROOT_LOGGER = "deploybot"


class JSONFormatter(logging.Formatter):
    """JSON formatter carrying the structured `extra` payload of a record."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "time": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "extra": getattr(record, "extra", {}),
        }
        if record.exc_info:
            log_data["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(log_data, default=str)


def setup_logging(settings: Settings) -> logging.Logger:
    """
    Configure the package logger once.

    - JSON lines when `log_json` is set, for log shippers
    - Human-readable console lines otherwise

    Returns:
        The configured `deploybot` logger
    """
    logger = logging.getLogger(ROOT_LOGGER)

    # Prevent duplicate handlers if already configured
    if logger.handlers:
        return logger

    logger.setLevel(settings.log_level.upper())
    logger.propagate = False

    handler = logging.StreamHandler()
    if settings.log_json:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s %(message)s", datefmt="%Y-%m-%d %H:%M:%S")
        )
    logger.addHandler(handler)
    return logger
