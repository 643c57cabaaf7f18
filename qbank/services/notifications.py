"""Transient operator notifications."""

import itertools
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from qbank.core.logging import get_logger

logger = get_logger(__name__)

SUCCESS = "success"
INFO = "info"
WARNING = "warning"
ERROR = "error"

_LOG_LEVELS = {
    SUCCESS: logging.INFO,
    INFO: logging.INFO,
    WARNING: logging.WARNING,
    ERROR: logging.ERROR,
}


@dataclass
class Notification:
    id: int
    level: str
    message: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class Notifier:
    """Ordered list of dismissible notifications; each one is also logged."""

    def __init__(self):
        self._ids = itertools.count(1)
        self._items: list[Notification] = []

    def notify(self, level: str, message: str) -> Notification:
        if level not in _LOG_LEVELS:
            raise ValueError(f"Unknown notification level '{level}'")
        item = Notification(id=next(self._ids), level=level, message=message)
        self._items.append(item)
        logger.log(_LOG_LEVELS[level], message, extra={"notification_level": level})
        return item

    def success(self, message: str) -> Notification:
        return self.notify(SUCCESS, message)

    def info(self, message: str) -> Notification:
        return self.notify(INFO, message)

    def warning(self, message: str) -> Notification:
        return self.notify(WARNING, message)

    def error(self, message: str) -> Notification:
        return self.notify(ERROR, message)

    @property
    def active(self) -> list[Notification]:
        return list(self._items)

    @property
    def last(self) -> Notification | None:
        return self._items[-1] if self._items else None

    def dismiss(self, notification_id: int) -> bool:
        before = len(self._items)
        self._items = [n for n in self._items if n.id != notification_id]
        return len(self._items) != before

    def clear(self) -> None:
        self._items = []
