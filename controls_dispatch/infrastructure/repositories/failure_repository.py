"""Persistence helpers for failed deliveries awaiting replay."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime

from sqlalchemy.orm import Session

from controls_dispatch.domain.entities import FailureRecord
from controls_dispatch.infrastructure.models import DeliveryFailureModel
from controls_dispatch.utils import (
    ensure_app_naive_datetime,
    ensure_app_timezone,
    now_in_app_timezone,
)


class FailureRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, failure_id: int) -> FailureRecord | None:
        model = self.session.get(DeliveryFailureModel, failure_id)
        return self._to_entity(model) if model else None

    def append(self, failure: FailureRecord) -> FailureRecord:
        model = DeliveryFailureModel()
        self._apply_entity_to_model(model, failure)
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def list_unresolved_since(self, since: datetime) -> Sequence[FailureRecord]:
        query = (
            self.session.query(DeliveryFailureModel)
            .filter(DeliveryFailureModel.resolved.is_(False))
            .filter(DeliveryFailureModel.failed_at >= ensure_app_naive_datetime(since))
            .order_by(DeliveryFailureModel.failed_at, DeliveryFailureModel.id)
        )
        return [self._to_entity(model) for model in query.all()]

    def list_by_ids(self, failure_ids: Iterable[int]) -> Sequence[FailureRecord]:
        ids = sorted(set(failure_ids))
        if not ids:
            return []
        query = (
            self.session.query(DeliveryFailureModel)
            .filter(DeliveryFailureModel.id.in_(ids))
            .order_by(DeliveryFailureModel.id)
        )
        return [self._to_entity(model) for model in query.all()]

    def list_recent(
        self, *, resolved: bool | None = False, limit: int = 100
    ) -> Sequence[FailureRecord]:
        query = self.session.query(DeliveryFailureModel)
        if resolved is not None:
            query = query.filter(DeliveryFailureModel.resolved.is_(resolved))
        query = query.order_by(
            DeliveryFailureModel.failed_at.desc(), DeliveryFailureModel.id.desc()
        ).limit(limit)
        return [self._to_entity(model) for model in query.all()]

    def mark_resolved(self, failure_id: int, *, at: datetime) -> None:
        model = self.session.get(DeliveryFailureModel, failure_id)
        if model is None:
            raise ValueError(f"Failure record with id {failure_id} not found")
        model.resolved = True
        model.resolved_at = ensure_app_naive_datetime(at)
        self.session.commit()

    def abandon(
        self,
        failure_id: int,
        *,
        at: datetime,
        reason: str,
        status_code: int | None = None,
    ) -> None:
        """Close a failure that must not be retried again, keeping ``reason``."""

        model = self.session.get(DeliveryFailureModel, failure_id)
        if model is None:
            raise ValueError(f"Failure record with id {failure_id} not found")
        model.resolved = True
        model.resolved_at = ensure_app_naive_datetime(at)
        model.next_retry_at = None
        model.error_message = reason
        if status_code is not None:
            model.status_code = status_code
        self.session.commit()

    def schedule_retry(
        self,
        failure_id: int,
        *,
        retry_count: int,
        next_retry_at: datetime,
        error_message: str | None,
        status_code: int | None = None,
    ) -> None:
        model = self.session.get(DeliveryFailureModel, failure_id)
        if model is None:
            raise ValueError(f"Failure record with id {failure_id} not found")
        model.retry_count = retry_count
        model.next_retry_at = ensure_app_naive_datetime(next_retry_at)
        model.error_message = error_message
        model.status_code = status_code
        self.session.commit()

    def list_resolved_ids_before(self, cutoff: datetime) -> list[int]:
        query = (
            self.session.query(DeliveryFailureModel.id)
            .filter(DeliveryFailureModel.resolved.is_(True))
            .filter(DeliveryFailureModel.failed_at < ensure_app_naive_datetime(cutoff))
            .order_by(DeliveryFailureModel.id)
        )
        return [row[0] for row in query.all()]

    def delete(self, failure_id: int) -> bool:
        model = self.session.get(DeliveryFailureModel, failure_id)
        if model is None:
            return False
        self.session.delete(model)
        self.session.commit()
        return True

    @staticmethod
    def _apply_entity_to_model(model: DeliveryFailureModel, failure: FailureRecord) -> None:
        model.message_id = failure.message_id
        model.endpoint_id = failure.endpoint_id
        model.user_id = failure.user_id
        model.channel = failure.channel
        model.target = failure.target
        model.payload = failure.payload
        model.error_message = failure.error_message
        model.status_code = failure.status_code
        model.retry_count = failure.retry_count
        model.next_retry_at = ensure_app_naive_datetime(failure.next_retry_at)
        model.resolved = failure.resolved
        model.resolved_at = ensure_app_naive_datetime(failure.resolved_at)
        model.failed_at = ensure_app_naive_datetime(failure.failed_at or now_in_app_timezone())

    @staticmethod
    def _to_entity(model: DeliveryFailureModel) -> FailureRecord:
        return FailureRecord(
            id=model.id,
            channel=model.channel,
            target=model.target,
            payload=model.payload,
            error_message=model.error_message,
            status_code=model.status_code,
            message_id=model.message_id,
            endpoint_id=model.endpoint_id,
            user_id=model.user_id,
            retry_count=model.retry_count or 0,
            next_retry_at=ensure_app_timezone(model.next_retry_at),
            resolved=bool(model.resolved),
            resolved_at=ensure_app_timezone(model.resolved_at),
            failed_at=ensure_app_timezone(model.failed_at),
        )


__all__ = ["FailureRepository"]
