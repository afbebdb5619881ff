"""Persistence helpers for delivery endpoints."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import or_
from sqlalchemy.orm import Session

from controls_dispatch.domain.entities import DeliveryEndpoint, TargetFilter
from controls_dispatch.infrastructure.models import DeliveryEndpointModel
from controls_dispatch.utils import (
    ensure_app_naive_datetime,
    ensure_app_timezone,
    now_in_app_timezone,
)

_CATEGORY_COLUMNS = {
    "reports": DeliveryEndpointModel.enabled_for_reports,
    "approvals": DeliveryEndpointModel.enabled_for_approvals,
    "deadlines": DeliveryEndpointModel.enabled_for_deadlines,
    "announcements": DeliveryEndpointModel.enabled_for_announcements,
    "mentions": DeliveryEndpointModel.enabled_for_mentions,
    "reminders": DeliveryEndpointModel.enabled_for_reminders,
}

UPDATABLE_FIELDS = frozenset(
    {
        "name",
        "default_channel",
        "username",
        "icon_emoji",
        "device_type",
        "device_name",
        "is_active",
        "has_permission",
        "enabled_for_reports",
        "enabled_for_approvals",
        "enabled_for_deadlines",
        "enabled_for_announcements",
        "enabled_for_mentions",
        "enabled_for_reminders",
        "minimum_priority",
    }
)


class EndpointRepository:
    """Provide CRUD and targeting queries for :class:`DeliveryEndpoint` objects."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, endpoint_id: int) -> DeliveryEndpoint | None:
        model = self.session.get(DeliveryEndpointModel, endpoint_id)
        return self._to_entity(model) if model else None

    def get_by_endpoint(self, channel: str, endpoint: str) -> DeliveryEndpoint | None:
        model = (
            self.session.query(DeliveryEndpointModel)
            .filter(DeliveryEndpointModel.channel == channel)
            .filter(DeliveryEndpointModel.endpoint == endpoint)
            .first()
        )
        return self._to_entity(model) if model else None

    def list_by_ids(self, endpoint_ids: Iterable[int]) -> Sequence[DeliveryEndpoint]:
        ids = sorted({endpoint_id for endpoint_id in endpoint_ids if endpoint_id is not None})
        if not ids:
            return []
        query = (
            self.session.query(DeliveryEndpointModel)
            .filter(DeliveryEndpointModel.id.in_(ids))
            .order_by(DeliveryEndpointModel.id)
        )
        return [self._to_entity(model) for model in query.all()]

    def list(
        self,
        *,
        user_id: int | None = None,
        channels: Iterable[str] | None = None,
        device_type: str | None = None,
        is_active: bool | None = None,
        skip: int = 0,
        limit: int | None = 100,
    ) -> Sequence[DeliveryEndpoint]:
        query = self.session.query(DeliveryEndpointModel)
        if user_id is not None:
            query = query.filter(DeliveryEndpointModel.user_id == user_id)
        channel_list = list(channels or ())
        if channel_list:
            query = query.filter(DeliveryEndpointModel.channel.in_(channel_list))
        if device_type:
            query = query.filter(DeliveryEndpointModel.device_type == device_type.lower())
        if is_active is not None:
            query = query.filter(DeliveryEndpointModel.is_active.is_(is_active))
        query = query.order_by(DeliveryEndpointModel.id).offset(skip)
        if limit is not None:
            query = query.limit(limit)
        return [self._to_entity(model) for model in query.all()]

    def list_matching(
        self,
        target_filter: TargetFilter,
        *,
        recent_activity_days: int = 30,
        now: datetime | None = None,
    ) -> Sequence[DeliveryEndpoint]:
        """Return deliverable endpoints satisfying every filter dimension."""

        query = (
            self.session.query(DeliveryEndpointModel)
            .filter(DeliveryEndpointModel.is_active.is_(True))
            .filter(DeliveryEndpointModel.has_permission.is_(True))
        )
        if target_filter.user_ids:
            query = query.filter(DeliveryEndpointModel.user_id.in_(target_filter.user_ids))
        if target_filter.endpoint_ids:
            query = query.filter(DeliveryEndpointModel.id.in_(target_filter.endpoint_ids))
        if target_filter.channels:
            query = query.filter(DeliveryEndpointModel.channel.in_(target_filter.channels))
        if target_filter.device_types:
            query = query.filter(DeliveryEndpointModel.device_type.in_(target_filter.device_types))
        if target_filter.category:
            column = _CATEGORY_COLUMNS.get(target_filter.category.strip().lower())
            if column is not None:
                query = query.filter(column.is_(True))
        if target_filter.only_active_devices or target_filter.active_within_days:
            days = target_filter.active_within_days or recent_activity_days
            cutoff = ensure_app_naive_datetime((now or now_in_app_timezone()) - timedelta(days=days))
            query = query.filter(
                or_(
                    DeliveryEndpointModel.last_used_at.is_(None),
                    DeliveryEndpointModel.last_used_at >= cutoff,
                )
            )
        query = query.order_by(DeliveryEndpointModel.id)
        return [self._to_entity(model) for model in query.all()]

    def count_active_for_user(self, user_id: int, channel: str) -> int:
        return (
            self.session.query(DeliveryEndpointModel)
            .filter(DeliveryEndpointModel.user_id == user_id)
            .filter(DeliveryEndpointModel.channel == channel)
            .filter(DeliveryEndpointModel.is_active.is_(True))
            .count()
        )

    def oldest_active_for_user(self, user_id: int, channel: str) -> DeliveryEndpoint | None:
        model = (
            self.session.query(DeliveryEndpointModel)
            .filter(DeliveryEndpointModel.user_id == user_id)
            .filter(DeliveryEndpointModel.channel == channel)
            .filter(DeliveryEndpointModel.is_active.is_(True))
            .order_by(DeliveryEndpointModel.created_at, DeliveryEndpointModel.id)
            .first()
        )
        return self._to_entity(model) if model else None

    def create(self, endpoint: DeliveryEndpoint) -> DeliveryEndpoint:
        model = DeliveryEndpointModel()
        self._apply_entity_to_model(model, endpoint, include_creation_fields=True)
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def update(self, endpoint: DeliveryEndpoint) -> DeliveryEndpoint:
        if endpoint.id is None:
            raise ValueError("Endpoint id is required for updates")
        model = self.session.get(DeliveryEndpointModel, endpoint.id)
        if model is None:
            raise ValueError(f"Endpoint with id {endpoint.id} not found")
        self._apply_entity_to_model(model, endpoint, include_creation_fields=False)
        model.updated_at = ensure_app_naive_datetime(now_in_app_timezone())
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def apply_changes(self, endpoint_id: int, changes: dict[str, Any]) -> DeliveryEndpoint | None:
        """Set the whitelisted ``changes`` on one endpoint row."""

        model = self.session.get(DeliveryEndpointModel, endpoint_id)
        if model is None:
            return None
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Unsupported endpoint fields: {', '.join(sorted(unknown))}")
        for field_name, value in changes.items():
            setattr(model, field_name, value)
        model.updated_at = ensure_app_naive_datetime(now_in_app_timezone())
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def set_active(self, endpoint_ids: Iterable[int], *, active: bool) -> int:
        ids = list(endpoint_ids)
        if not ids:
            return 0
        values: dict[Any, Any] = {
            DeliveryEndpointModel.is_active: active,
            DeliveryEndpointModel.updated_at: ensure_app_naive_datetime(now_in_app_timezone()),
        }
        if active:
            values[DeliveryEndpointModel.has_permission] = True
        updated = (
            self.session.query(DeliveryEndpointModel)
            .filter(DeliveryEndpointModel.id.in_(ids))
            .update(values, synchronize_session=False)
        )
        self.session.commit()
        return updated

    def delete(self, endpoint_id: int) -> bool:
        model = self.session.get(DeliveryEndpointModel, endpoint_id)
        if model is None:
            return False
        self.session.delete(model)
        self.session.commit()
        return True

    def delete_many(self, endpoint_ids: Iterable[int]) -> int:
        ids = list(endpoint_ids)
        if not ids:
            return 0
        deleted = (
            self.session.query(DeliveryEndpointModel)
            .filter(DeliveryEndpointModel.id.in_(ids))
            .delete(synchronize_session=False)
        )
        self.session.commit()
        return deleted

    def record_success(self, endpoint_id: int, *, at: datetime) -> None:
        model = self.session.get(DeliveryEndpointModel, endpoint_id)
        if model is None:
            return
        model.successful_deliveries = (model.successful_deliveries or 0) + 1
        model.last_used_at = ensure_app_naive_datetime(at)
        model.last_error = None
        self.session.commit()

    def record_failure(self, endpoint_id: int, *, error: str | None, permanent: bool = False) -> None:
        """Count a failed delivery; a permanent failure also retires the endpoint."""

        model = self.session.get(DeliveryEndpointModel, endpoint_id)
        if model is None:
            return
        model.failed_deliveries = (model.failed_deliveries or 0) + 1
        model.last_error = error
        if permanent:
            model.is_active = False
            model.has_permission = False
            model.updated_at = ensure_app_naive_datetime(now_in_app_timezone())
        self.session.commit()

    @staticmethod
    def _apply_entity_to_model(
        model: DeliveryEndpointModel,
        endpoint: DeliveryEndpoint,
        *,
        include_creation_fields: bool,
    ) -> None:
        if include_creation_fields:
            model.created_at = ensure_app_naive_datetime(
                endpoint.created_at or now_in_app_timezone()
            )
        model.user_id = endpoint.user_id
        model.channel = endpoint.channel
        model.name = endpoint.name
        model.endpoint = endpoint.endpoint
        model.p256dh_key = endpoint.p256dh_key
        model.auth_key = endpoint.auth_key
        model.default_channel = endpoint.default_channel
        model.username = endpoint.username
        model.icon_emoji = endpoint.icon_emoji
        model.device_type = endpoint.device_type.lower() if endpoint.device_type else None
        model.device_name = endpoint.device_name
        model.user_agent = endpoint.user_agent
        model.is_active = endpoint.is_active
        model.has_permission = endpoint.has_permission
        model.enabled_for_reports = endpoint.enabled_for_reports
        model.enabled_for_approvals = endpoint.enabled_for_approvals
        model.enabled_for_deadlines = endpoint.enabled_for_deadlines
        model.enabled_for_announcements = endpoint.enabled_for_announcements
        model.enabled_for_mentions = endpoint.enabled_for_mentions
        model.enabled_for_reminders = endpoint.enabled_for_reminders
        model.minimum_priority = endpoint.minimum_priority
        model.successful_deliveries = endpoint.successful_deliveries
        model.failed_deliveries = endpoint.failed_deliveries
        model.last_error = endpoint.last_error
        model.last_used_at = ensure_app_naive_datetime(endpoint.last_used_at)

    @staticmethod
    def _to_entity(model: DeliveryEndpointModel) -> DeliveryEndpoint:
        return DeliveryEndpoint(
            id=model.id,
            channel=model.channel,
            endpoint=model.endpoint,
            user_id=model.user_id,
            name=model.name,
            p256dh_key=model.p256dh_key,
            auth_key=model.auth_key,
            default_channel=model.default_channel,
            username=model.username,
            icon_emoji=model.icon_emoji,
            device_type=model.device_type,
            device_name=model.device_name,
            user_agent=model.user_agent,
            is_active=bool(model.is_active),
            has_permission=bool(model.has_permission),
            enabled_for_reports=bool(model.enabled_for_reports),
            enabled_for_approvals=bool(model.enabled_for_approvals),
            enabled_for_deadlines=bool(model.enabled_for_deadlines),
            enabled_for_announcements=bool(model.enabled_for_announcements),
            enabled_for_mentions=bool(model.enabled_for_mentions),
            enabled_for_reminders=bool(model.enabled_for_reminders),
            minimum_priority=model.minimum_priority or "Low",
            successful_deliveries=model.successful_deliveries or 0,
            failed_deliveries=model.failed_deliveries or 0,
            last_error=model.last_error,
            last_used_at=ensure_app_timezone(model.last_used_at),
            created_at=ensure_app_timezone(model.created_at),
            updated_at=ensure_app_timezone(model.updated_at),
        )


__all__ = ["EndpointRepository", "UPDATABLE_FIELDS"]
