"""In-app notification feed capped at the most recent entries."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import replace
from typing import Any

from argus_terminal.errors import CorruptionError, PersistenceError
from argus_terminal.logging import get_logger
from argus_terminal.persistence import NOTIFICATIONS_KEY, KeyValueStore

from .models import Notification, NotificationType

logger = get_logger(__name__, component="notifications")

MAX_NOTIFICATIONS = 50

NotificationListener = Callable[[tuple[Notification, ...]], None]


class Notifier:
    """
    Newest-first notification list.

    Listeners receive the full tuple after every change. When a store is
    given, the list is loaded from and saved to the ``notifications`` key.
    """

    def __init__(self, store: KeyValueStore | None = None, limit: int = MAX_NOTIFICATIONS) -> None:
        self._store = store
        self._limit = limit
        self._items: list[Notification] = []
        self._listeners: list[NotificationListener] = []

    @property
    def notifications(self) -> tuple[Notification, ...]:
        return tuple(self._items)

    def load(self) -> tuple[Notification, ...]:
        if self._store is None:
            return self.notifications
        try:
            payload = self._store.load(NOTIFICATIONS_KEY) or []
            self._items = [Notification.from_dict(item) for item in payload][: self._limit]
        except CorruptionError as exc:
            logger.warning("Saved notifications unreadable, starting empty", error=str(exc))
            self._items = []
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Discarding unreadable notifications", error=str(exc))
            self._items = []
        return self.notifications

    def notify(
        self,
        type: NotificationType | str,
        title: str,
        message: str,
        symbol: str | None = None,
    ) -> Notification:
        notification = Notification(
            type=NotificationType(type), title=title, message=message, symbol=symbol
        )
        self._items.insert(0, notification)
        del self._items[self._limit :]
        logger.info(
            title, notification_type=notification.type.value, symbol=symbol, detail=message
        )
        self._changed()
        return notification

    def mark_read(self, notification_id: str) -> bool:
        for index, item in enumerate(self._items):
            if item.id == notification_id:
                if not item.read:
                    self._items[index] = replace(item, read=True)
                    self._changed()
                return True
        return False

    def mark_all_read(self) -> None:
        self._items = [item if item.read else replace(item, read=True) for item in self._items]
        self._changed()

    def clear(self) -> None:
        self._items = []
        self._changed()

    def unread_count(self) -> int:
        return sum(1 for item in self._items if not item.read)

    def subscribe(self, listener: NotificationListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _changed(self) -> None:
        if self._store is not None:
            payload: list[dict[str, Any]] = [item.to_dict() for item in self._items]
            try:
                self._store.save(NOTIFICATIONS_KEY, payload)
            except PersistenceError as exc:
                logger.error(
                    "Failed to persist notifications", error=str(exc), key=NOTIFICATIONS_KEY
                )
        snapshot = self.notifications
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as exc:
                logger.error("Notification listener failed", error=str(exc))


__all__ = ["MAX_NOTIFICATIONS", "NotificationListener", "Notifier"]
