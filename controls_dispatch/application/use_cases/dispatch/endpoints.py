"""Use cases managing push subscriptions and other delivery endpoints."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import replace
from typing import Any

from sqlalchemy.orm import Session

from controls_dispatch.domain.entities import (
    CHANNEL_PUSH,
    NOTIFICATION_CATEGORIES,
    DeliveryEndpoint,
    NotificationPriority,
)
from controls_dispatch.domain.errors import EndpointNotFoundError, EndpointValidationError
from controls_dispatch.infrastructure.channels import validate_https_url
from controls_dispatch.infrastructure.repositories import UPDATABLE_FIELDS, EndpointRepository

logger = logging.getLogger(__name__)


def _category_flags(categories: Mapping[str, bool] | None) -> dict[str, bool]:
    flags = {f"enabled_for_{name}": True for name in NOTIFICATION_CATEGORIES}
    for name, enabled in (categories or {}).items():
        key = f"enabled_for_{name.strip().lower()}"
        if key not in flags:
            raise EndpointValidationError(f"Unknown notification category '{name}'")
        flags[key] = bool(enabled)
    return flags


def _ensure_priority(value: str) -> str:
    if not NotificationPriority.is_valid(value):
        raise EndpointValidationError(f"Invalid priority '{value}'")
    return NotificationPriority.parse(value).label


def register_push_subscription(
    session: Session,
    *,
    user_id: int,
    endpoint: str,
    p256dh_key: str,
    auth_key: str,
    device_type: str | None = None,
    device_name: str | None = None,
    user_agent: str | None = None,
    categories: Mapping[str, bool] | None = None,
    minimum_priority: str = "Low",
    max_subscriptions: int = 10,
) -> DeliveryEndpoint:
    """Create or refresh the subscription for ``endpoint``.

    Registering an endpoint that already exists reassigns it to ``user_id``
    and reactivates it. When a new subscription would exceed
    ``max_subscriptions`` the user's oldest active one is deactivated.
    """

    address = validate_https_url(endpoint, label="Subscription endpoint")
    if not p256dh_key or not auth_key:
        raise EndpointValidationError("Subscription keys are required")

    repository = EndpointRepository(session)
    values: dict[str, Any] = {
        "user_id": user_id,
        "p256dh_key": p256dh_key,
        "auth_key": auth_key,
        "device_type": device_type.lower() if device_type else None,
        "device_name": device_name,
        "user_agent": user_agent,
        "is_active": True,
        "has_permission": True,
        "minimum_priority": _ensure_priority(minimum_priority),
        **_category_flags(categories),
    }

    existing = repository.get_by_endpoint(CHANNEL_PUSH, address)
    if existing is not None:
        refreshed = repository.update(replace(existing, **values))
        logger.info("Refreshed push subscription %s for user %s", refreshed.id, user_id)
        return refreshed

    if repository.count_active_for_user(user_id, CHANNEL_PUSH) >= max_subscriptions:
        oldest = repository.oldest_active_for_user(user_id, CHANNEL_PUSH)
        if oldest is not None:
            repository.set_active([oldest.id], active=False)
            logger.info(
                "Deactivated push subscription %s for user %s to stay within %s devices",
                oldest.id,
                user_id,
                max_subscriptions,
            )

    created = repository.create(
        DeliveryEndpoint(id=None, channel=CHANNEL_PUSH, endpoint=address, **values)
    )
    logger.info("Created push subscription %s for user %s", created.id, user_id)
    return created


def get_endpoint(session: Session, *, endpoint_id: int, user_id: int | None = None) -> DeliveryEndpoint:
    endpoint = EndpointRepository(session).get(endpoint_id)
    if endpoint is None or (user_id is not None and endpoint.user_id != user_id):
        raise EndpointNotFoundError(f"Endpoint {endpoint_id} not found")
    return endpoint


def update_endpoint(
    session: Session,
    *,
    endpoint_id: int,
    changes: Mapping[str, Any],
    user_id: int | None = None,
) -> DeliveryEndpoint:
    """Apply the non-``None`` ``changes`` to the endpoint."""

    get_endpoint(session, endpoint_id=endpoint_id, user_id=user_id)
    effective = {key: value for key, value in changes.items() if value is not None}
    unknown = set(effective) - UPDATABLE_FIELDS
    if unknown:
        raise EndpointValidationError(f"Unsupported endpoint fields: {', '.join(sorted(unknown))}")
    if "minimum_priority" in effective:
        effective["minimum_priority"] = _ensure_priority(effective["minimum_priority"])
    if "device_type" in effective:
        effective["device_type"] = effective["device_type"].lower()
    updated = EndpointRepository(session).apply_changes(endpoint_id, effective)
    if updated is None:
        raise EndpointNotFoundError(f"Endpoint {endpoint_id} not found")
    return updated


def delete_endpoint(session: Session, *, endpoint_id: int, user_id: int | None = None) -> bool:
    repository = EndpointRepository(session)
    endpoint = repository.get(endpoint_id)
    if endpoint is None or (user_id is not None and endpoint.user_id != user_id):
        return False
    deleted = repository.delete(endpoint_id)
    logger.info("Deleted %s endpoint %s", endpoint.channel, endpoint_id)
    return deleted


def list_user_endpoints(
    session: Session, *, user_id: int, channels: Iterable[str] | None = None
) -> list[DeliveryEndpoint]:
    return list(EndpointRepository(session).list(user_id=user_id, channels=channels, limit=None))


def search_endpoints(
    session: Session,
    *,
    user_id: int | None = None,
    channels: Iterable[str] | None = None,
    device_type: str | None = None,
    is_active: bool | None = None,
    skip: int = 0,
    limit: int = 100,
) -> list[DeliveryEndpoint]:
    if skip < 0 or limit <= 0:
        raise ValueError("Pagination values must be positive")
    return list(
        EndpointRepository(session).list(
            user_id=user_id,
            channels=channels,
            device_type=device_type,
            is_active=is_active,
            skip=skip,
            limit=limit,
        )
    )


__all__ = [
    "delete_endpoint",
    "get_endpoint",
    "list_user_endpoints",
    "register_push_subscription",
    "search_endpoints",
    "update_endpoint",
]
