"""Schemas for notification preferences."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class PreferenceWrite(BaseModel):
    """Full set of values stored for one notification type."""

    email_enabled: bool = True
    realtime_enabled: bool = True
    push_enabled: bool = False
    sms_enabled: bool = False
    minimum_priority: str = "Medium"
    quiet_hours_start: str | None = Field(default=None, description="HH:MM")
    quiet_hours_end: str | None = Field(default=None, description="HH:MM")
    timezone: str = "UTC"
    schedule: str = "Always"


class PreferenceUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    email_enabled: bool | None = None
    realtime_enabled: bool | None = None
    push_enabled: bool | None = None
    sms_enabled: bool | None = None
    minimum_priority: str | None = None
    quiet_hours_start: str | None = None
    quiet_hours_end: str | None = None
    timezone: str | None = None
    schedule: str | None = None

    def changes(self) -> dict[str, object]:
        return self.model_dump(exclude_unset=True)


class PreferenceRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int | None = None
    user_id: int
    notification_type: str
    email_enabled: bool
    realtime_enabled: bool
    push_enabled: bool
    sms_enabled: bool
    minimum_priority: str
    quiet_hours_start: str | None = None
    quiet_hours_end: str | None = None
    timezone: str
    schedule: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class QuietHoursUpdate(BaseModel):
    start: str | None = Field(default=None, description="HH:MM, empty to clear")
    end: str | None = Field(default=None, description="HH:MM, empty to clear")
    timezone: str | None = None


class NotificationTypeRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    type: str
    display_name: str
    description: str
    category: str
    email_enabled: bool
    realtime_enabled: bool
    push_enabled: bool
    sms_enabled: bool
    priority: str


class PreferenceStatsRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_preferences: int
    email_enabled_count: int
    realtime_enabled_count: int
    push_enabled_count: int
    sms_enabled_count: int
    has_quiet_hours: bool
    most_common_priority: str
    last_updated: datetime | None = None


class DeliveryDecisionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    email: bool
    realtime: bool
    push: bool
    sms: bool
    in_quiet_hours: bool


class CountResponse(BaseModel):
    count: int


__all__ = [
    "CountResponse",
    "DeliveryDecisionRead",
    "NotificationTypeRead",
    "PreferenceRead",
    "PreferenceStatsRead",
    "PreferenceUpdate",
    "PreferenceWrite",
    "QuietHoursUpdate",
]
