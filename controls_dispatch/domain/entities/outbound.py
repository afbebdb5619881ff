"""Outbound notifications and the filter selecting their endpoints."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .priority import NotificationPriority


@dataclass(frozen=True)
class NotificationAction:
    """A button rendered next to the notification."""

    action: str
    title: str
    url: str | None = None


@dataclass(frozen=True)
class NotificationFact:
    name: str
    value: str


@dataclass(frozen=True)
class OutboundNotification:
    """A logical notification before it is rendered for a channel.

    ``variables`` fill ``{{name}}`` and ``{name}`` placeholders in the title
    and body of chat messages. The chat options (``chat_channel`` to
    ``thread_ts``) only affect Slack payloads.
    """

    title: str
    body: str
    notification_type: str = "General"
    priority: NotificationPriority = NotificationPriority.MEDIUM
    category: str | None = None
    notification_id: str | None = None
    data: dict[str, Any] = field(default_factory=dict)
    variables: dict[str, Any] = field(default_factory=dict)
    icon: str | None = None
    badge: str | None = None
    image: str | None = None
    url: str | None = None
    tag: str | None = None
    require_interaction: bool = False
    silent: bool = False
    actions: tuple[NotificationAction, ...] = ()
    facts: tuple[NotificationFact, ...] = ()
    use_rich_card: bool = False
    message_type: str | None = None
    theme_color: str | None = None
    chat_channel: str | None = None
    username: str | None = None
    icon_emoji: str | None = None
    icon_url: str | None = None
    thread_ts: str | None = None
    user_id: int | None = None


@dataclass(frozen=True)
class TargetFilter:
    """Conjunctive endpoint filter; empty dimensions impose no constraint."""

    user_ids: frozenset[int] = frozenset()
    endpoint_ids: frozenset[int] = frozenset()
    channels: frozenset[str] = frozenset()
    device_types: frozenset[str] = frozenset()
    category: str | None = None
    only_active_devices: bool = False
    active_within_days: int | None = None

    @classmethod
    def build(
        cls,
        *,
        user_ids=None,
        endpoint_ids=None,
        channels=None,
        device_types=None,
        category: str | None = None,
        only_active_devices: bool = False,
        active_within_days: int | None = None,
    ) -> "TargetFilter":
        return cls(
            user_ids=frozenset(user_ids or ()),
            endpoint_ids=frozenset(endpoint_ids or ()),
            channels=frozenset(channels or ()),
            device_types=frozenset(d.lower() for d in device_types or ()),
            category=category,
            only_active_devices=only_active_devices,
            active_within_days=active_within_days,
        )


__all__ = [
    "NotificationAction",
    "NotificationFact",
    "OutboundNotification",
    "TargetFilter",
]
