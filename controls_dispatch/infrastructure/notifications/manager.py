"""Connection management helpers for notification websockets."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, DefaultDict, Set

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class NotificationConnectionManager:
    """Manage active websocket connections grouped by user and by group name."""

    def __init__(self) -> None:
        self._connections: DefaultDict[int, Set[WebSocket]] = defaultdict(set)
        self._groups: DefaultDict[str, Set[int]] = defaultdict(set)

    async def connect(self, user_id: int, websocket: WebSocket) -> None:
        """Accept the websocket connection and register it for ``user_id``."""

        await websocket.accept()
        self._connections[user_id].add(websocket)

    def disconnect(self, user_id: int, websocket: WebSocket) -> None:
        """Remove ``websocket`` from the pool for ``user_id``."""

        connections = self._connections.get(user_id)
        if connections is None:
            return
        connections.discard(websocket)
        if not connections:
            self._connections.pop(user_id, None)

    def join_group(self, group_name: str, user_id: int) -> None:
        self._groups[group_name].add(user_id)

    def leave_group(self, group_name: str, user_id: int) -> None:
        members = self._groups.get(group_name)
        if members is None:
            return
        members.discard(user_id)
        if not members:
            self._groups.pop(group_name, None)

    def is_online(self, user_id: int) -> bool:
        return bool(self._connections.get(user_id))

    def online_user_ids(self) -> list[int]:
        return [user_id for user_id, sockets in self._connections.items() if sockets]

    async def send_to_user(self, user_id: int, message: dict[str, Any]) -> None:
        """Send ``message`` to every active connection for ``user_id``."""

        connections = list(self._connections.get(user_id, set()))
        for connection in connections:
            try:
                await connection.send_json(message)
            except Exception:
                logger.warning("Dropping websocket for user %s after a failed send", user_id)
                self.disconnect(user_id, connection)

    async def send_to_group(self, group_name: str, message: dict[str, Any]) -> None:
        for user_id in list(self._groups.get(group_name, set())):
            await self.send_to_user(user_id, message)

    async def broadcast(self, message: dict[str, Any]) -> None:
        for user_id in self.online_user_ids():
            await self.send_to_user(user_id, message)


notification_manager = NotificationConnectionManager()


__all__ = ["NotificationConnectionManager", "notification_manager"]
