"""Delivery channel identifiers."""

from __future__ import annotations

CHANNEL_EMAIL = "email"
CHANNEL_REALTIME = "realtime"
CHANNEL_PUSH = "push"
CHANNEL_SMS = "sms"
CHANNEL_SLACK = "slack"
CHANNEL_TEAMS = "teams"

# Channels a user toggles per notification type.
PREFERENCE_CHANNELS = (CHANNEL_EMAIL, CHANNEL_REALTIME, CHANNEL_PUSH, CHANNEL_SMS)
# Channels backed by a registered endpoint row.
ENDPOINT_CHANNELS = (CHANNEL_PUSH, CHANNEL_SLACK, CHANNEL_TEAMS)
CHAT_CHANNELS = (CHANNEL_SLACK, CHANNEL_TEAMS)
QUIET_HOURS_CHANNELS = frozenset({CHANNEL_EMAIL, CHANNEL_PUSH})

NOTIFICATION_CATEGORIES = (
    "reports",
    "approvals",
    "deadlines",
    "announcements",
    "mentions",
    "reminders",
)


__all__ = [
    "CHANNEL_EMAIL",
    "CHANNEL_REALTIME",
    "CHANNEL_PUSH",
    "CHANNEL_SMS",
    "CHANNEL_SLACK",
    "CHANNEL_TEAMS",
    "PREFERENCE_CHANNELS",
    "ENDPOINT_CHANNELS",
    "CHAT_CHANNELS",
    "QUIET_HOURS_CHANNELS",
    "NOTIFICATION_CATEGORIES",
]
