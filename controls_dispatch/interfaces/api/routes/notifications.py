"""Endpoints and websocket handler for realtime notifications."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from sqlalchemy.orm import Session

from controls_dispatch.domain.entities import Notification
from controls_dispatch.infrastructure.database import SessionLocal, get_db
from controls_dispatch.infrastructure.notifications import notification_manager, serialize_notification
from controls_dispatch.infrastructure.repositories import NotificationRepository
from controls_dispatch.interfaces.api.dependencies import get_current_user_id
from controls_dispatch.interfaces.api.schemas import (
    CountResponse,
    NotificationMarkReadRequest,
    NotificationRead,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["notifications"])


def _notification_to_schema(notification: Notification) -> NotificationRead:
    return NotificationRead(
        id=notification.id or 0,
        user_id=notification.user_id,
        event_type=notification.event_type,
        title=notification.title,
        message=notification.message,
        payload=notification.payload or {},
        created_at=notification.created_at,
        read_at=notification.read_at,
    )


@router.get("/", response_model=list[NotificationRead])
def list_notifications(
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
) -> list[NotificationRead]:
    """Return the most recent notifications for the acting user."""

    notifications = NotificationRepository(db).list_for_user(user_id)
    return [_notification_to_schema(notification) for notification in notifications]


@router.post("/read", response_model=CountResponse)
def mark_notifications_read(
    payload: NotificationMarkReadRequest,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
) -> CountResponse:
    updated = NotificationRepository(db).mark_as_read(payload.unique_ids(), user_id=user_id)
    return CountResponse(count=updated)


def _parse_user_id(raw: str | None) -> int | None:
    try:
        return int(raw) if raw else None
    except ValueError:
        return None


@router.websocket("/ws")
async def notifications_websocket(websocket: WebSocket) -> None:
    """Stream notifications to the user named by the ``user_id`` query parameter."""

    user_id = _parse_user_id(websocket.query_params.get("user_id"))
    if user_id is None:
        await websocket.close(code=1008)
        return

    session = SessionLocal()
    try:
        pending_notifications = NotificationRepository(session).list_unread_for_user(user_id)
    except Exception:
        logger.exception("Could not load pending notifications for user %s", user_id)
        await websocket.close(code=1011)
        return
    finally:
        session.close()

    await notification_manager.connect(user_id, websocket)
    groups: set[str] = set()
    try:
        if pending_notifications:
            await websocket.send_json(
                {"type": "init", "data": [serialize_notification(n) for n in pending_notifications]}
            )
        while True:
            try:
                message = await websocket.receive_json()
            except WebSocketDisconnect:
                raise
            except ValueError:
                continue

            if not isinstance(message, dict):
                continue

            message_type = message.get("type")
            if message_type == "ping":
                await websocket.send_json({"type": "pong"})
                continue

            if message_type in ("join", "leave"):
                group = message.get("group")
                if not isinstance(group, str) or not group:
                    continue
                if message_type == "join":
                    notification_manager.join_group(group, user_id)
                    groups.add(group)
                else:
                    notification_manager.leave_group(group, user_id)
                    groups.discard(group)
                continue

            if message_type == "ack":
                ids = message.get("ids", [])
                if isinstance(ids, list) and ids:
                    ack_session = SessionLocal()
                    try:
                        NotificationRepository(ack_session).mark_as_read(ids, user_id=user_id)
                    finally:
                        ack_session.close()
    except WebSocketDisconnect:
        pass
    finally:
        notification_manager.disconnect(user_id, websocket)
        if not notification_manager.is_online(user_id):
            for group in groups:
                notification_manager.leave_group(group, user_id)
