"""Persistence helpers for delivery message records."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy.orm import Session

from controls_dispatch.domain.entities import (
    MESSAGE_STATUS_PENDING,
    MESSAGE_STATUS_SENT,
    TERMINAL_MESSAGE_STATUSES,
    DeliveryMessage,
)
from controls_dispatch.infrastructure.models import DeliveryMessageModel
from controls_dispatch.utils import (
    ensure_app_naive_datetime,
    ensure_app_timezone,
    now_in_app_timezone,
)


class DeliveryMessageRepository:
    """Append delivery records; terminal rows are never modified."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, message_id: int) -> DeliveryMessage | None:
        model = self.session.get(DeliveryMessageModel, message_id)
        return self._to_entity(model) if model else None

    def create(self, message: DeliveryMessage) -> DeliveryMessage:
        model = DeliveryMessageModel()
        self._apply_entity_to_model(model, message)
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def list_pending(self, *, limit: int = 100) -> Sequence[DeliveryMessage]:
        query = (
            self.session.query(DeliveryMessageModel)
            .filter(DeliveryMessageModel.status == MESSAGE_STATUS_PENDING)
            .order_by(DeliveryMessageModel.created_at, DeliveryMessageModel.id)
            .limit(limit)
        )
        return [self._to_entity(model) for model in query.all()]

    def list_between(
        self, start: datetime, end: datetime, *, channel: str | None = None
    ) -> Sequence[DeliveryMessage]:
        query = (
            self.session.query(DeliveryMessageModel)
            .filter(DeliveryMessageModel.created_at >= ensure_app_naive_datetime(start))
            .filter(DeliveryMessageModel.created_at < ensure_app_naive_datetime(end))
        )
        if channel:
            query = query.filter(DeliveryMessageModel.channel == channel)
        query = query.order_by(DeliveryMessageModel.created_at, DeliveryMessageModel.id)
        return [self._to_entity(model) for model in query.all()]

    def complete(
        self,
        message_id: int,
        *,
        status: str,
        status_code: int | None = None,
        error_message: str | None = None,
        response_time_ms: int | None = None,
        transport_message_id: str | None = None,
    ) -> DeliveryMessage:
        """Move a pending message to its terminal ``status``."""

        if status not in TERMINAL_MESSAGE_STATUSES:
            raise ValueError(f"Unsupported terminal status '{status}'")
        model = self.session.get(DeliveryMessageModel, message_id)
        if model is None:
            raise ValueError(f"Delivery message with id {message_id} not found")
        if model.status in TERMINAL_MESSAGE_STATUSES:
            raise ValueError(f"Delivery message {message_id} is already {model.status}")
        model.status = status
        model.status_code = status_code
        model.error_message = error_message
        model.response_time_ms = response_time_ms
        model.message_id = transport_message_id
        model.sent_at = ensure_app_naive_datetime(now_in_app_timezone())
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def mark_received(self, message_id: int, *, at: datetime) -> bool:
        """Stamp the first receipt of a sent message; ``False`` if already stamped."""

        model = self.session.get(DeliveryMessageModel, message_id)
        if model is None:
            raise ValueError(f"Delivery message with id {message_id} not found")
        if model.status != MESSAGE_STATUS_SENT:
            raise ValueError(f"Delivery message {message_id} was not sent")
        if model.received_at is not None:
            return False
        model.received_at = ensure_app_naive_datetime(at)
        self.session.commit()
        return True

    def list_terminal_ids_before(self, cutoff: datetime) -> list[int]:
        query = (
            self.session.query(DeliveryMessageModel.id)
            .filter(DeliveryMessageModel.status.in_(TERMINAL_MESSAGE_STATUSES))
            .filter(DeliveryMessageModel.created_at < ensure_app_naive_datetime(cutoff))
            .order_by(DeliveryMessageModel.id)
        )
        return [row[0] for row in query.all()]

    def delete(self, message_id: int) -> bool:
        model = self.session.get(DeliveryMessageModel, message_id)
        if model is None:
            return False
        self.session.delete(model)
        self.session.commit()
        return True

    @staticmethod
    def _apply_entity_to_model(model: DeliveryMessageModel, message: DeliveryMessage) -> None:
        model.endpoint_id = message.endpoint_id
        model.user_id = message.user_id
        model.channel = message.channel
        model.target = message.target
        model.payload = message.payload
        model.notification_type = message.notification_type
        model.status = message.status
        model.status_code = message.status_code
        model.error_message = message.error_message
        model.response_time_ms = message.response_time_ms
        model.message_id = message.message_id
        model.created_at = ensure_app_naive_datetime(message.created_at or now_in_app_timezone())
        model.sent_at = ensure_app_naive_datetime(message.sent_at)
        model.received_at = ensure_app_naive_datetime(message.received_at)

    @staticmethod
    def _to_entity(model: DeliveryMessageModel) -> DeliveryMessage:
        return DeliveryMessage(
            id=model.id,
            channel=model.channel,
            target=model.target,
            payload=model.payload,
            status=model.status,
            endpoint_id=model.endpoint_id,
            user_id=model.user_id,
            notification_type=model.notification_type,
            status_code=model.status_code,
            error_message=model.error_message,
            response_time_ms=model.response_time_ms,
            message_id=model.message_id,
            created_at=ensure_app_timezone(model.created_at),
            sent_at=ensure_app_timezone(model.sent_at),
            received_at=ensure_app_timezone(model.received_at),
        )


__all__ = ["DeliveryMessageRepository"]
