"""Slack incoming-webhook adapter."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from controls_dispatch.domain.entities import CHANNEL_SLACK, OutboundNotification

from .base import WebhookChannelAdapter, encode_payload
from .formatting import render_template, theme_color_for, truncate
from .validation import SLACK_WEBHOOK_HOSTS


class SlackChannelAdapter(WebhookChannelAdapter):
    """Render Slack messages as plain text or as a colored attachment."""

    channel = CHANNEL_SLACK
    provider = "Slack"
    allowed_hosts = SLACK_WEBHOOK_HOSTS

    def build_payload(
        self, message: OutboundNotification, *, sent_at: datetime | None = None
    ) -> str:
        title = render_template(message.title, message.variables)
        text = truncate(render_template(message.body, message.variables), self._max_message_length)

        body: dict[str, Any] = {}
        if message.use_rich_card:
            body["text"] = title or text
            body["attachments"] = [self._attachment(message, title, text)]
        else:
            body["text"] = f"*{title}*\n{text}" if title else text

        for key, value in (
            ("channel", message.chat_channel),
            ("username", message.username),
            ("icon_emoji", message.icon_emoji),
            ("icon_url", message.icon_url),
            ("thread_ts", message.thread_ts),
        ):
            if value:
                body[key] = value
        return encode_payload(body)

    @staticmethod
    def _attachment(message: OutboundNotification, title: str, text: str) -> dict[str, Any]:
        color = theme_color_for(
            message.notification_type,
            message_type=message.message_type,
            override=message.theme_color,
        )
        attachment: dict[str, Any] = {"color": f"#{color}", "title": title, "text": text}
        if message.url:
            attachment["title_link"] = message.url
        if message.facts:
            attachment["fields"] = [
                {"title": fact.name, "value": render_template(fact.value, message.variables), "short": True}
                for fact in message.facts
            ]
        buttons = [action for action in message.actions if action.url]
        if buttons:
            attachment["actions"] = [
                {"type": "button", "text": action.title, "url": action.url} for action in buttons
            ]
        return attachment


__all__ = ["SlackChannelAdapter"]
