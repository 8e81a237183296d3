"""User-facing notifications raised by the intake flow (toasts in the UI)."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import UTC, datetime

from ticket_intake.logging import get_logger

logger = get_logger(__name__)


class NotificationLevel(enum.Enum):
    success = "success"
    error = "error"


@dataclass(frozen=True)
class Notification:
    level: NotificationLevel
    message: str
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class Notifier:
    """Collects notifications until the caller drains them."""

    def __init__(self) -> None:
        self._pending: list[Notification] = []

    def success(self, message: str) -> None:
        self._push(NotificationLevel.success, message)

    def error(self, message: str) -> None:
        self._push(NotificationLevel.error, message)

    def _push(self, level: NotificationLevel, message: str) -> None:
        logger.debug("intake_notification level=%s message=%s", level.value, message)
        self._pending.append(Notification(level=level, message=message))

    @property
    def pending(self) -> list[Notification]:
        return list(self._pending)

    def drain(self) -> list[Notification]:
        items, self._pending = self._pending, []
        return items
