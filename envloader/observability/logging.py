"""Logging helpers for the library logger."""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

LOGGER_NAME = "envloader"
TEXT_FORMAT = "[%(asctime)s] %(message)s"

_configured = False


class JsonLogFormatter(logging.Formatter):
    """Format log records as JSON with a consistent schema."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.now(tz=timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack"] = record.stack_info

        reserved = _reserved_log_keys()
        for key, value in record.__dict__.items():
            if key in reserved or key in payload:
                continue
            try:
                json.dumps(value)
                payload[key] = value
            except TypeError:
                payload[key] = str(value)
        return json.dumps(payload, default=str)


class IsoTimestampFormatter(logging.Formatter):
    """Plain text formatter prefixing messages with an ISO 8601 timestamp."""

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        return datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(
            timespec="seconds"
        )


def _reserved_log_keys() -> set[str]:
    return {
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "message",
    }


def configure_logging(*, log_format: str = "text", level: str | int = logging.INFO) -> logging.Logger:
    """Attach a single stderr handler to the library logger.

    The logger stops propagating so hosts that install their own root handler
    (the Lambda runtime does) print each event once.
    """

    global _configured

    logger = logging.getLogger(LOGGER_NAME)
    if _configured:
        return logger

    handler = logging.StreamHandler(sys.stderr)
    if log_format == "json":
        handler.setFormatter(JsonLogFormatter())
    else:
        handler.setFormatter(IsoTimestampFormatter(TEXT_FORMAT))

    logger.handlers = [handler]
    logger.setLevel(level)
    logger.propagate = False

    _configured = True
    return logger


def reset_logging() -> None:
    """Undo :func:`configure_logging`."""

    global _configured

    logger = logging.getLogger(LOGGER_NAME)
    logger.handlers = []
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
    _configured = False


__all__ = [
    "IsoTimestampFormatter",
    "JsonLogFormatter",
    "LOGGER_NAME",
    "configure_logging",
    "reset_logging",
]
