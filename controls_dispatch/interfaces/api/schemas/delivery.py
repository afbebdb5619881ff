"""Schemas describing sends, bulk operations, failures and statistics."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from controls_dispatch.domain.entities import (
    NotificationAction,
    NotificationFact,
    NotificationPriority,
    OutboundNotification,
    TargetFilter,
)


class ActionPayload(BaseModel):
    action: str | None = None
    title: str = Field(..., min_length=1)
    url: str | None = None


class NotificationPayload(BaseModel):
    """Logical notification accepted by the send endpoints."""

    title: str = Field(..., max_length=200)
    body: str = Field(..., min_length=1)
    notification_type: str = "General"
    priority: str = "Medium"
    category: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)
    variables: dict[str, Any] = Field(default_factory=dict)
    icon: str | None = None
    badge: str | None = None
    image: str | None = None
    url: str | None = None
    tag: str | None = None
    require_interaction: bool = False
    silent: bool = False
    actions: list[ActionPayload] = Field(default_factory=list)
    facts: dict[str, str] = Field(default_factory=dict)
    use_rich_card: bool = False
    message_type: str | None = None
    theme_color: str | None = None
    chat_channel: str | None = None
    username: str | None = None
    icon_emoji: str | None = None
    icon_url: str | None = None
    thread_ts: str | None = None

    def to_notification(self, *, user_id: int | None = None) -> OutboundNotification:
        return OutboundNotification(
            title=self.title,
            body=self.body,
            notification_type=self.notification_type,
            priority=NotificationPriority.parse(self.priority),
            category=self.category,
            data=dict(self.data),
            variables=dict(self.variables),
            icon=self.icon,
            badge=self.badge,
            image=self.image,
            url=self.url,
            tag=self.tag,
            require_interaction=self.require_interaction,
            silent=self.silent,
            actions=tuple(
                NotificationAction(
                    action=item.action or f"action_{index}", title=item.title, url=item.url
                )
                for index, item in enumerate(self.actions)
            ),
            facts=tuple(NotificationFact(name, value) for name, value in self.facts.items()),
            use_rich_card=self.use_rich_card,
            message_type=self.message_type,
            theme_color=self.theme_color,
            chat_channel=self.chat_channel,
            username=self.username,
            icon_emoji=self.icon_emoji,
            icon_url=self.icon_url,
            thread_ts=self.thread_ts,
            user_id=user_id,
        )


class TargetFilterPayload(BaseModel):
    user_ids: list[int] = Field(default_factory=list)
    endpoint_ids: list[int] = Field(default_factory=list)
    channels: list[str] = Field(default_factory=list)
    device_types: list[str] = Field(default_factory=list)
    category: str | None = None
    only_active_devices: bool = False
    active_within_days: int | None = Field(default=None, gt=0)

    def to_filter(self) -> TargetFilter:
        return TargetFilter.build(**self.model_dump())


class SendRequest(BaseModel):
    notification: NotificationPayload
    target: TargetFilterPayload = Field(default_factory=TargetFilterPayload)


class DeliveryReportRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    success: bool
    total_targeted: int
    successful_deliveries: int
    failed_deliveries: int
    success_rate: float
    delivery_time_ms: int
    errors: list[str]
    notification_id: str | None = None
    message: str | None = None


class BulkOperationRequest(BaseModel):
    operation: str = Field(..., description="activate, deactivate, delete, update or test")
    endpoint_ids: list[int] = Field(..., min_length=1)
    update: dict[str, Any] | None = None
    notification: NotificationPayload | None = None


class BulkOperationResultRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    operation: str
    total_items: int
    found_items: int
    successful_items: int
    failed_items: int
    success_rate: float
    errors: list[str]


class FailureRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    channel: str
    target: str
    error_message: str | None = None
    status_code: int | None = None
    endpoint_id: int | None = None
    user_id: int | None = None
    retry_count: int
    next_retry_at: datetime | None = None
    resolved: bool
    resolved_at: datetime | None = None
    failed_at: datetime | None = None


class RetryRequest(BaseModel):
    failure_ids: list[int] | None = Field(
        default=None, description="Failures to retry; omit to retry recent unresolved failures"
    )


class RetrySummaryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    attempted: int
    retried_count: int
    errors: list[str]


class ReceiptRead(BaseModel):
    message_id: int
    counted: bool


class DailyStatRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    stat_date: date
    channel: str
    sent: int
    failed: int
    received: int
    average_response_ms: float


class AggregateStatsRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    start_date: date
    end_date: date
    total_sent: int
    total_failed: int
    total_received: int
    success_rate: float
    average_response_ms: float
    min_response_ms: int | None = None
    max_response_ms: int | None = None
    by_channel: dict[str, dict[str, int]]
    daily: list[DailyStatRead]


class SubscriptionStatsRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_endpoints: int
    active_endpoints: int
    inactive_endpoints: int
    by_device_type: dict[str, int]
    by_channel: dict[str, int]
    successful_deliveries: int
    failed_deliveries: int
    success_rate: float


__all__ = [
    "ActionPayload",
    "AggregateStatsRead",
    "BulkOperationRequest",
    "BulkOperationResultRead",
    "DailyStatRead",
    "DeliveryReportRead",
    "FailureRead",
    "NotificationPayload",
    "ReceiptRead",
    "RetryRequest",
    "RetrySummaryRead",
    "SendRequest",
    "SubscriptionStatsRead",
    "TargetFilterPayload",
]
