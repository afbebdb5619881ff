"""Persistence helpers for notification preferences."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy.orm import Session

from controls_dispatch.domain.entities import NotificationPreference
from controls_dispatch.infrastructure.models import NotificationPreferenceModel
from controls_dispatch.utils import (
    ensure_app_naive_datetime,
    ensure_app_timezone,
    now_in_app_timezone,
)


class PreferenceRepository:
    """Store at most one :class:`NotificationPreference` per user and type."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, user_id: int, notification_type: str) -> NotificationPreference | None:
        model = self._get_model(user_id, notification_type)
        return self._to_entity(model) if model else None

    def list_for_user(self, user_id: int) -> Sequence[NotificationPreference]:
        query = (
            self.session.query(NotificationPreferenceModel)
            .filter(NotificationPreferenceModel.user_id == user_id)
            .order_by(NotificationPreferenceModel.notification_type)
        )
        return [self._to_entity(model) for model in query.all()]

    def list_all(self) -> Sequence[NotificationPreference]:
        query = self.session.query(NotificationPreferenceModel).order_by(
            NotificationPreferenceModel.user_id, NotificationPreferenceModel.notification_type
        )
        return [self._to_entity(model) for model in query.all()]

    def upsert(self, preference: NotificationPreference) -> NotificationPreference:
        """Create the row for ``(user, type)`` or replace every field of it."""

        model = self._get_model(preference.user_id, preference.notification_type)
        now = ensure_app_naive_datetime(now_in_app_timezone())
        if model is None:
            model = NotificationPreferenceModel(created_at=now)
            self.session.add(model)
        else:
            model.updated_at = now
        self._apply_entity_to_model(model, preference)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def delete(self, user_id: int, notification_type: str) -> bool:
        model = self._get_model(user_id, notification_type)
        if model is None:
            return False
        self.session.delete(model)
        self.session.commit()
        return True

    def delete_for_user(self, user_id: int) -> int:
        deleted = (
            self.session.query(NotificationPreferenceModel)
            .filter(NotificationPreferenceModel.user_id == user_id)
            .delete(synchronize_session=False)
        )
        self.session.commit()
        return deleted

    def _get_model(self, user_id: int, notification_type: str) -> NotificationPreferenceModel | None:
        return (
            self.session.query(NotificationPreferenceModel)
            .filter(NotificationPreferenceModel.user_id == user_id)
            .filter(NotificationPreferenceModel.notification_type == notification_type)
            .first()
        )

    @staticmethod
    def _apply_entity_to_model(
        model: NotificationPreferenceModel, preference: NotificationPreference
    ) -> None:
        model.user_id = preference.user_id
        model.notification_type = preference.notification_type
        model.email_enabled = preference.email_enabled
        model.realtime_enabled = preference.realtime_enabled
        model.push_enabled = preference.push_enabled
        model.sms_enabled = preference.sms_enabled
        model.minimum_priority = preference.minimum_priority
        model.quiet_hours_start = preference.quiet_hours_start
        model.quiet_hours_end = preference.quiet_hours_end
        model.timezone = preference.timezone
        model.schedule = preference.schedule

    @staticmethod
    def _to_entity(model: NotificationPreferenceModel) -> NotificationPreference:
        return NotificationPreference(
            id=model.id,
            user_id=model.user_id,
            notification_type=model.notification_type,
            email_enabled=bool(model.email_enabled),
            realtime_enabled=bool(model.realtime_enabled),
            push_enabled=bool(model.push_enabled),
            sms_enabled=bool(model.sms_enabled),
            minimum_priority=model.minimum_priority,
            quiet_hours_start=model.quiet_hours_start,
            quiet_hours_end=model.quiet_hours_end,
            timezone=model.timezone or "UTC",
            schedule=model.schedule or "Always",
            created_at=ensure_app_timezone(model.created_at),
            updated_at=ensure_app_timezone(model.updated_at),
        )


__all__ = ["PreferenceRepository"]
