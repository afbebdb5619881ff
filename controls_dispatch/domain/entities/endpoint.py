"""Domain entity representing a delivery endpoint."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from .channel import NOTIFICATION_CATEGORIES
from .priority import NotificationPriority


@dataclass
class DeliveryEndpoint:
    """A single addressable target: a push device or a chat webhook.

    ``endpoint`` holds the push service URL for devices and the incoming
    webhook URL for chat channels. ``user_id`` is empty for system webhooks.
    """

    id: int | None
    channel: str
    endpoint: str
    user_id: int | None = None
    name: str | None = None
    p256dh_key: str | None = None
    auth_key: str | None = None
    default_channel: str | None = None
    username: str | None = None
    icon_emoji: str | None = None
    device_type: str | None = None
    device_name: str | None = None
    user_agent: str | None = None
    is_active: bool = True
    has_permission: bool = True
    enabled_for_reports: bool = True
    enabled_for_approvals: bool = True
    enabled_for_deadlines: bool = True
    enabled_for_announcements: bool = True
    enabled_for_mentions: bool = True
    enabled_for_reminders: bool = True
    minimum_priority: str = "Low"
    successful_deliveries: int = 0
    failed_deliveries: int = 0
    last_error: str | None = None
    last_used_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def is_deliverable(self) -> bool:
        return self.is_active and self.has_permission

    def accepts_category(self, category: str | None) -> bool:
        """Return ``True`` when the endpoint has ``category`` switched on."""

        if not category:
            return True
        normalized = category.strip().lower()
        if normalized not in NOTIFICATION_CATEGORIES:
            return True
        return bool(getattr(self, f"enabled_for_{normalized}"))

    def accepts_priority(self, priority: NotificationPriority | str) -> bool:
        return NotificationPriority.parse(priority) >= NotificationPriority.parse(
            self.minimum_priority
        )

    @property
    def success_rate(self) -> float:
        total = self.successful_deliveries + self.failed_deliveries
        if total == 0:
            return 0.0
        return round(self.successful_deliveries / total * 100, 2)


__all__ = ["DeliveryEndpoint"]
