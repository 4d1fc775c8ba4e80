"""
npc_engine/notifications.py -- Notification collaborator.

The engine never presents messages itself.  Components that need to tell
the user something (a failed load, a blocked step transition, a saved
record) call ``notify(message, level)`` on an object supplied by the
caller.  :class:`LoggingNotifier` is the default; the desktop app injects
its Qt event bus instead (``npc_app.services.event_bus``).
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)


class NotificationLevel(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@runtime_checkable
class Notifier(Protocol):
    def notify(self, message: str, level: NotificationLevel = NotificationLevel.INFO) -> None:
        ...


_LOG_LEVELS = {
    NotificationLevel.INFO: logging.INFO,
    NotificationLevel.SUCCESS: logging.INFO,
    NotificationLevel.WARNING: logging.WARNING,
    NotificationLevel.ERROR: logging.ERROR,
}


class LoggingNotifier:
    """Writes notifications to the log."""

    def __init__(self, log: logging.Logger = logger):
        self._log = log

    def notify(self, message: str, level: NotificationLevel = NotificationLevel.INFO) -> None:
        level = NotificationLevel(level)
        self._log.log(_LOG_LEVELS[level], "[%s] %s", level.value, message)


class RecordingNotifier:
    """Keeps every notification in memory.

    Useful for headless callers that want to show messages in bulk later
    (batch imports, command-line tools).
    """

    def __init__(self):
        self.messages: list[tuple[str, NotificationLevel]] = []

    def notify(self, message: str, level: NotificationLevel = NotificationLevel.INFO) -> None:
        self.messages.append((message, NotificationLevel(level)))

    def levels(self) -> list[NotificationLevel]:
        return [level for _, level in self.messages]

    def clear(self) -> None:
        self.messages.clear()
