"""Best-effort publisher for the in-app realtime channel.

Messages are scheduled without waiting for delivery. Failures are logged and
dropped: the channel is at-most-once and never retried, unlike the push and
chat channels which keep failure records.
"""

from __future__ import annotations

import asyncio
import copy
import logging
from collections.abc import Coroutine
from typing import Any

from anyio import from_thread

from controls_dispatch.domain.entities import Notification

from .manager import NotificationConnectionManager, notification_manager

logger = logging.getLogger(__name__)


class NotificationPublisher:
    """Serialize realtime events and schedule their delivery."""

    def __init__(self, manager: NotificationConnectionManager) -> None:
        self._manager = manager
        self._pending: set[asyncio.Task[None]] = set()

    def notify_user(self, user_id: int, event_type: str, payload: Any) -> None:
        if not user_id:
            return
        message = {"type": event_type, "data": copy.deepcopy(payload)}
        self._schedule(self._manager.send_to_user(user_id, message), f"user {user_id}")

    def notify_group(self, group_name: str, event_type: str, payload: Any) -> None:
        message = {"type": event_type, "data": copy.deepcopy(payload)}
        self._schedule(self._manager.send_to_group(group_name, message), f"group {group_name}")

    def broadcast_all(self, event_type: str, payload: Any) -> None:
        message = {"type": event_type, "data": copy.deepcopy(payload)}
        self._schedule(self._manager.broadcast(message), "all users")

    def dispatch(self, notification: Notification) -> None:
        """Schedule ``notification`` to be delivered to its user."""

        self.notify_user(notification.user_id, "notification", serialize_notification(notification))

    def _schedule(self, coroutine: Coroutine[Any, Any, None], target: str) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            try:
                from_thread.run(_run_logged, coroutine, target)
            except RuntimeError:
                coroutine.close()
                logger.warning("No event loop available; realtime message to %s dropped", target)
            return

        task = loop.create_task(_run_logged(coroutine, target))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)


async def _run_logged(coroutine: Coroutine[Any, Any, None], target: str) -> None:
    try:
        await coroutine
    except Exception:
        logger.exception("Realtime delivery to %s failed", target)


def serialize_notification(notification: Notification) -> dict[str, Any]:
    """Return the websocket payload representation for ``notification``."""

    return {
        "id": notification.id,
        "user_id": notification.user_id,
        "event_type": notification.event_type,
        "title": notification.title,
        "message": notification.message,
        "payload": notification.payload or {},
        "created_at": notification.created_at.isoformat() if notification.created_at else None,
        "read_at": notification.read_at.isoformat() if notification.read_at else None,
    }


notification_publisher = NotificationPublisher(notification_manager)


def dispatch_notification(notification: Notification) -> None:
    """Public helper that delegates to the shared publisher instance."""

    notification_publisher.dispatch(notification)


__all__ = [
    "NotificationPublisher",
    "dispatch_notification",
    "notification_publisher",
    "serialize_notification",
]
