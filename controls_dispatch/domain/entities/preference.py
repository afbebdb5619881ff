"""Notification preferences and the default table applied in their absence."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import datetime

from .channel import CHANNEL_EMAIL, CHANNEL_PUSH, CHANNEL_REALTIME, CHANNEL_SMS

DEFAULT_TIMEZONE = "UTC"
DEFAULT_SCHEDULE = "Always"


@dataclass
class NotificationPreference:
    """Per user, per notification type delivery settings."""

    id: int | None
    user_id: int
    notification_type: str
    email_enabled: bool = True
    realtime_enabled: bool = True
    push_enabled: bool = False
    sms_enabled: bool = False
    minimum_priority: str = "Medium"
    quiet_hours_start: str | None = None
    quiet_hours_end: str | None = None
    timezone: str = DEFAULT_TIMEZONE
    schedule: str = DEFAULT_SCHEDULE
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def channel_enabled(self, channel: str) -> bool:
        toggles = {
            CHANNEL_EMAIL: self.email_enabled,
            CHANNEL_REALTIME: self.realtime_enabled,
            CHANNEL_PUSH: self.push_enabled,
            CHANNEL_SMS: self.sms_enabled,
        }
        return toggles.get(channel, False)

    def has_quiet_hours(self) -> bool:
        return bool(self.quiet_hours_start and self.quiet_hours_end)


@dataclass(frozen=True)
class NotificationTypeDefault:
    """System default settings for one notification type."""

    type: str
    display_name: str
    description: str
    category: str
    email_enabled: bool
    realtime_enabled: bool
    push_enabled: bool
    priority: str
    sms_enabled: bool = False


class NotificationTypeDefaults:
    """Lookup table of :class:`NotificationTypeDefault` keyed by type."""

    def __init__(self, entries: Iterable[NotificationTypeDefault]) -> None:
        self._entries = {entry.type: entry for entry in entries}

    @classmethod
    def standard(cls) -> "NotificationTypeDefaults":
        return cls(STANDARD_NOTIFICATION_TYPES)

    def get(self, notification_type: str) -> NotificationTypeDefault | None:
        return self._entries.get(notification_type)

    def __contains__(self, notification_type: object) -> bool:
        return notification_type in self._entries

    def __iter__(self) -> Iterator[NotificationTypeDefault]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def types(self) -> list[str]:
        return list(self._entries)

    def build_preference(self, user_id: int, notification_type: str) -> NotificationPreference:
        """Return an unsaved preference populated from the default entry."""

        entry = self._entries.get(notification_type)
        if entry is None:
            raise ValueError(f"Unknown notification type: {notification_type}")
        return NotificationPreference(
            id=None,
            user_id=user_id,
            notification_type=entry.type,
            email_enabled=entry.email_enabled,
            realtime_enabled=entry.realtime_enabled,
            push_enabled=entry.push_enabled,
            sms_enabled=entry.sms_enabled,
            minimum_priority=entry.priority,
        )


STANDARD_NOTIFICATION_TYPES: tuple[NotificationTypeDefault, ...] = (
    NotificationTypeDefault(
        type="ReportGenerated",
        display_name="Report Generated",
        description="Notification when a report generation is completed",
        category="Reports",
        email_enabled=True,
        realtime_enabled=True,
        push_enabled=False,
        priority="Medium",
    ),
    NotificationTypeDefault(
        type="ReportFailed",
        display_name="Report Generation Failed",
        description="Notification when a report generation fails",
        category="Reports",
        email_enabled=True,
        realtime_enabled=True,
        push_enabled=True,
        priority="High",
    ),
    NotificationTypeDefault(
        type="SystemMaintenance",
        display_name="System Maintenance",
        description="Notification about scheduled system maintenance",
        category="System",
        email_enabled=True,
        realtime_enabled=False,
        push_enabled=False,
        priority="Low",
    ),
    NotificationTypeDefault(
        type="SecurityAlert",
        display_name="Security Alert",
        description="Critical security notifications",
        category="Security",
        email_enabled=True,
        realtime_enabled=True,
        push_enabled=True,
        priority="Critical",
    ),
    NotificationTypeDefault(
        type="UserAccountUpdate",
        display_name="Account Updates",
        description="Notifications about account changes",
        category="Account",
        email_enabled=True,
        realtime_enabled=True,
        push_enabled=False,
        priority="Medium",
    ),
    NotificationTypeDefault(
        type="DataExport",
        display_name="Data Export",
        description="Notification when data export is completed",
        category="Data",
        email_enabled=True,
        realtime_enabled=True,
        push_enabled=False,
        priority="Medium",
    ),
    NotificationTypeDefault(
        type="ReportSubmitted",
        display_name="Report Submitted",
        description="A report in your department is waiting for review",
        category="Approvals",
        email_enabled=True,
        realtime_enabled=True,
        push_enabled=True,
        priority="Medium",
    ),
    NotificationTypeDefault(
        type="ReportApproved",
        display_name="Report Approved",
        description="One of your reports was approved",
        category="Approvals",
        email_enabled=True,
        realtime_enabled=True,
        push_enabled=False,
        priority="Medium",
    ),
    NotificationTypeDefault(
        type="ReportRejected",
        display_name="Report Rejected",
        description="One of your reports was rejected and needs changes",
        category="Approvals",
        email_enabled=True,
        realtime_enabled=True,
        push_enabled=True,
        priority="High",
    ),
    NotificationTypeDefault(
        type="DueDateReminder",
        display_name="Due Date Reminder",
        description="A report you own is due soon",
        category="Deadlines",
        email_enabled=True,
        realtime_enabled=True,
        push_enabled=False,
        priority="Medium",
    ),
    NotificationTypeDefault(
        type="ReportOverdue",
        display_name="Report Overdue",
        description="A report you own is past its due date",
        category="Deadlines",
        email_enabled=True,
        realtime_enabled=True,
        push_enabled=True,
        priority="High",
    ),
    NotificationTypeDefault(
        type="ReviewPending",
        display_name="Review Pending",
        description="A report assigned to you still waits for review",
        category="Reminders",
        email_enabled=True,
        realtime_enabled=True,
        push_enabled=False,
        priority="Medium",
    ),
)


__all__ = [
    "DEFAULT_SCHEDULE",
    "DEFAULT_TIMEZONE",
    "NotificationPreference",
    "NotificationTypeDefault",
    "NotificationTypeDefaults",
    "STANDARD_NOTIFICATION_TYPES",
]
