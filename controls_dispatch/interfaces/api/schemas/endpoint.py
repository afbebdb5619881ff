"""Schemas for push subscriptions and chat webhooks."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class PushSubscriptionKeys(BaseModel):
    p256dh: str = Field(..., min_length=1, description="Client public key")
    auth: str = Field(..., min_length=1, description="Client authentication secret")


class PushSubscriptionCreate(BaseModel):
    """Subscription object produced by the browser's PushManager."""

    endpoint: str = Field(..., min_length=1, description="Push service URL")
    keys: PushSubscriptionKeys
    device_type: str | None = Field(default=None, max_length=50)
    device_name: str | None = Field(default=None, max_length=100)
    user_agent: str | None = Field(default=None, max_length=500)
    categories: dict[str, bool] | None = Field(
        default=None, description="Category switches; missing categories stay enabled"
    )
    minimum_priority: str = "Low"


class EndpointUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str | None = None
    device_name: str | None = None
    default_channel: str | None = None
    username: str | None = None
    icon_emoji: str | None = None
    is_active: bool | None = None
    minimum_priority: str | None = None
    enabled_for_reports: bool | None = None
    enabled_for_approvals: bool | None = None
    enabled_for_deadlines: bool | None = None
    enabled_for_announcements: bool | None = None
    enabled_for_mentions: bool | None = None
    enabled_for_reminders: bool | None = None

    def changes(self) -> dict[str, object]:
        return self.model_dump(exclude_none=True)


class EndpointRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    channel: str
    endpoint: str
    user_id: int | None
    name: str | None = None
    device_type: str | None = None
    device_name: str | None = None
    default_channel: str | None = None
    username: str | None = None
    icon_emoji: str | None = None
    is_active: bool
    has_permission: bool
    enabled_for_reports: bool
    enabled_for_approvals: bool
    enabled_for_deadlines: bool
    enabled_for_announcements: bool
    enabled_for_mentions: bool
    enabled_for_reminders: bool
    minimum_priority: str
    successful_deliveries: int
    failed_deliveries: int
    success_rate: float
    last_error: str | None = None
    last_used_at: datetime | None = None
    created_at: datetime | None = None


class WebhookCreate(BaseModel):
    channel: str = Field(..., description="slack or teams")
    url: str = Field(..., min_length=1, description="Incoming webhook URL")
    name: str = Field(..., min_length=1, max_length=100)
    default_channel: str | None = None
    username: str | None = None
    icon_emoji: str | None = None
    minimum_priority: str = "Low"
    test_connection: bool = True


class ConnectionTestRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    success: bool
    response_time_ms: int
    status_message: str


class WebhookRegistration(BaseModel):
    webhook: EndpointRead
    test: ConnectionTestRead | None = None


class EndpointTestRequest(BaseModel):
    """Test a stored endpoint by id or a chat URL before registering it."""

    endpoint_id: int | None = None
    channel: str | None = None
    url: str | None = None


__all__ = [
    "EndpointRead",
    "EndpointTestRequest",
    "EndpointUpdate",
    "PushSubscriptionCreate",
    "PushSubscriptionKeys",
    "ConnectionTestRead",
    "WebhookCreate",
    "WebhookRegistration",
]
