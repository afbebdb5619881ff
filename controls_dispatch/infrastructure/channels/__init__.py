"""Channel delivery adapters and their helpers."""

from .base import PERMANENT_FAILURE_STATUS_CODES, ChannelAdapter, WebhookChannelAdapter
from .formatting import THEME_COLORS, message_type_for, render_template, theme_color_for
from .push import PushChannelAdapter
from .rate_limit import ChatRateLimiter
from .registry import ChannelAdapterRegistry, build_channel_registry
from .slack import SlackChannelAdapter
from .teams import TeamsChannelAdapter
from .validation import (
    SLACK_WEBHOOK_HOSTS,
    TEAMS_WEBHOOK_HOSTS,
    validate_https_url,
    validate_slack_channel,
    validate_webhook_url,
)

__all__ = [
    "PERMANENT_FAILURE_STATUS_CODES",
    "ChannelAdapter",
    "WebhookChannelAdapter",
    "THEME_COLORS",
    "message_type_for",
    "render_template",
    "theme_color_for",
    "PushChannelAdapter",
    "ChatRateLimiter",
    "ChannelAdapterRegistry",
    "build_channel_registry",
    "SlackChannelAdapter",
    "TeamsChannelAdapter",
    "SLACK_WEBHOOK_HOSTS",
    "TEAMS_WEBHOOK_HOSTS",
    "validate_https_url",
    "validate_slack_channel",
    "validate_webhook_url",
]
