"""Target resolution for outbound notifications."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime

from sqlalchemy.orm import Session

from controls_dispatch.domain.entities import (
    CHANNEL_PUSH,
    DeliveryEndpoint,
    OutboundNotification,
    TargetFilter,
)
from controls_dispatch.infrastructure.repositories import EndpointRepository


def resolve_targets(
    session: Session,
    notification: OutboundNotification,
    target_filter: TargetFilter,
    *,
    recent_activity_days: int = 30,
    now: datetime | None = None,
) -> list[DeliveryEndpoint]:
    """Return the deliverable endpoints matching ``target_filter`` and the priority.

    The notification category narrows the filter when the filter does not set
    its own category.
    """

    if target_filter.category is None and notification.category:
        target_filter = replace(target_filter, category=notification.category)
    candidates = EndpointRepository(session).list_matching(
        target_filter, recent_activity_days=recent_activity_days, now=now
    )
    return [
        endpoint
        for endpoint in candidates
        if endpoint.is_deliverable()
        and endpoint.accepts_category(target_filter.category)
        and endpoint.accepts_priority(notification.priority)
    ]


def endpoint_group(channel: str, endpoint_id: int | None) -> str:
    """Statistics bucket: all push devices share one, each webhook has its own."""

    if channel == CHANNEL_PUSH:
        return "all"
    return f"webhook:{endpoint_id}"


def endpoint_group_for(endpoint: DeliveryEndpoint) -> str:
    return endpoint_group(endpoint.channel, endpoint.id)


__all__ = ["endpoint_group", "endpoint_group_for", "resolve_targets"]
