"""Structured JSON logging: one event object per line."""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, TextIO

from pythonjsonlogger import jsonlogger

from qbank.core.config import settings

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# Transport-level loggers, held at WARNING or above
NOISY_LOGGERS = ("httpx", "httpcore")


class EventJsonFormatter(jsonlogger.JsonFormatter):
    """
    Emit ``event`` (the message) with UTC timestamp, level, logger and source location.

    ``service`` and ``env`` come from settings and are stamped on every line.
    Anything passed via ``extra={...}`` is merged at the top level.
    """

    def add_fields(self, log_record: dict[str, Any], record: logging.LogRecord, message_dict: dict) -> None:
        super().add_fields(log_record, record, message_dict)

        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        log_record["timestamp"] = created.isoformat(timespec="milliseconds")
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["event"] = record.getMessage()
        log_record["location"] = f"{record.module}:{record.funcName}:{record.lineno}"

        log_record.pop("message", None)
        log_record.pop("asctime", None)


def setup_logging(level: str | None = None, stream: TextIO | None = None) -> None:
    """
    Route all logging to a single JSON handler.

    Args:
        level: Level name, case-insensitive (defaults to settings.LOG_LEVEL)
        stream: Destination (defaults to stdout; the CLI passes stderr)

    Raises:
        ValueError: If the level name is not a standard logging level
    """
    level_name = (level or settings.LOG_LEVEL).upper()
    if level_name not in LOG_LEVELS:
        raise ValueError(f"Unknown log level '{level}', must be one of {', '.join(LOG_LEVELS)}")

    root_logger = logging.getLogger()
    root_logger.setLevel(level_name)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(
        EventJsonFormatter(static_fields={"service": settings.PROJECT_NAME, "env": settings.ENV})
    )
    root_logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(logging.WARNING, root_logger.level))


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance."""
    return logging.getLogger(name)
