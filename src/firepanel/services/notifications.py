"""
Notification Channels - fire-and-forget event delivery

Channels:
- MemoryChannel: bounded in-memory history (API / tests)
- CallbackChannel: forwards to a callable (UI toast bridge, etc.)
- LoggingChannel: writes events to the Python log
- NotificationManager: routes each event to all enabled channels

A failing channel is counted and logged; the failure never reaches the
state machine that emitted the event.
"""

import logging
from abc import ABC, abstractmethod
from collections import deque
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from ..domain.models import Notification


logger = logging.getLogger(__name__)


# =============================================================================
# Notification Channel base class
# =============================================================================

class NotificationChannel(ABC):
    """Base class for notification channels."""

    def __init__(self, name: str, enabled: bool = True):
        self.name = name
        self.enabled = enabled
        self.success_count = 0
        self.failure_count = 0
        self.last_send_time: Optional[datetime] = None
        self.last_error: Optional[str] = None

    @abstractmethod
    def send(self, notification: Notification) -> None:
        """Deliver one notification. May raise; the manager absorbs it."""

    def get_status(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "enabled": self.enabled,
            "success_count": self.success_count,
            "failure_count": self.failure_count,
            "last_send_time": self.last_send_time.isoformat() if self.last_send_time else None,
            "last_error": self.last_error,
        }

    def _record_success(self):
        self.success_count += 1
        self.last_send_time = datetime.now(timezone.utc)
        self.last_error = None

    def _record_failure(self, error: str):
        self.failure_count += 1
        self.last_error = error


class MemoryChannel(NotificationChannel):
    """Keeps the most recent notifications in memory, newest last."""

    def __init__(self, name: str = "memory", max_items: int = 200, enabled: bool = True):
        super().__init__(name, enabled)
        self.max_items = max_items
        self._items: deque[Notification] = deque(maxlen=max_items)

    def send(self, notification: Notification) -> None:
        self._items.append(notification)

    @property
    def notifications(self) -> List[Notification]:
        return list(self._items)

    def kinds(self) -> list:
        return [n.kind for n in self._items]

    def clear(self) -> None:
        self._items.clear()

    def get_status(self) -> Dict[str, Any]:
        status = super().get_status()
        status.update({
            "max_items": self.max_items,
            "stored": len(self._items),
        })
        return status


class CallbackChannel(NotificationChannel):
    """Forwards each notification to a callable."""

    def __init__(
        self,
        callback: Callable[[Notification], None],
        name: str = "callback",
        enabled: bool = True,
    ):
        super().__init__(name, enabled)
        self.callback = callback

    def send(self, notification: Notification) -> None:
        self.callback(notification)


class LoggingChannel(NotificationChannel):
    """Writes notifications to the log."""

    def __init__(self, name: str = "log", level: int = logging.INFO, enabled: bool = True):
        super().__init__(name, enabled)
        self.level = level

    def send(self, notification: Notification) -> None:
        logger.log(
            self.level,
            "[NOTIFY] %s/%s: %s - %s",
            notification.source.value,
            notification.kind.value,
            notification.title,
            notification.description,
        )


# =============================================================================
# Notification Manager
# =============================================================================

class NotificationManager:
    """
    Routes notifications to registered channels.

    Acts as the `notify(event)` sink for both state machines.
    """

    def __init__(self):
        self.channels: Dict[str, NotificationChannel] = {}
        self.total_sent = 0
        self.total_failed = 0

    def register_channel(self, channel: NotificationChannel):
        self.channels[channel.name] = channel
        logger.info("[NOTIFY] Registered channel: %s", channel.name)

    def unregister_channel(self, name: str):
        if name in self.channels:
            del self.channels[name]
            logger.info("[NOTIFY] Unregistered channel: %s", name)

    def get_channel(self, name: str) -> Optional[NotificationChannel]:
        return self.channels.get(name)

    def notify(self, notification: Notification) -> Dict[str, bool]:
        """Deliver to every enabled channel.

        Returns:
            Dict[channel_name, success]
        """
        results: Dict[str, bool] = {}
        for name, channel in self.channels.items():
            if not channel.enabled:
                continue
            try:
                channel.send(notification)
            except Exception as e:
                channel._record_failure(f"{type(e).__name__}: {e}")
                logger.error("[NOTIFY] Channel %s failed on %s: %s", name, notification.kind.value, e)
                results[name] = False
            else:
                channel._record_success()
                results[name] = True

        if results and all(results.values()):
            self.total_sent += 1
        elif results:
            self.total_failed += 1

        return results

    __call__ = notify

    def enable_channel(self, name: str):
        if name in self.channels:
            self.channels[name].enabled = True
            logger.info("[NOTIFY] Enabled channel: %s", name)

    def disable_channel(self, name: str):
        if name in self.channels:
            self.channels[name].enabled = False
            logger.info("[NOTIFY] Disabled channel: %s", name)

    def get_status(self) -> Dict[str, Any]:
        return {
            "total_sent": self.total_sent,
            "total_failed": self.total_failed,
            "channels": {
                name: channel.get_status()
                for name, channel in self.channels.items()
            },
        }
