"""Microsoft Teams incoming-webhook adapter."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from controls_dispatch.domain.entities import CHANNEL_TEAMS, OutboundNotification

from .base import WebhookChannelAdapter, encode_payload
from .formatting import render_template, theme_color_for, truncate
from .validation import TEAMS_WEBHOOK_HOSTS

ADAPTIVE_CARD_CONTENT_TYPE = "application/vnd.microsoft.card.adaptive"
ADAPTIVE_CARD_SCHEMA = "http://adaptivecards.io/schemas/adaptive-card.json"


class TeamsChannelAdapter(WebhookChannelAdapter):
    """Render Teams messages as a MessageCard, or an Adaptive Card when rich."""

    channel = CHANNEL_TEAMS
    provider = "Microsoft Teams"
    allowed_hosts = TEAMS_WEBHOOK_HOSTS

    def build_payload(
        self, message: OutboundNotification, *, sent_at: datetime | None = None
    ) -> str:
        title = render_template(message.title, message.variables)
        text = truncate(render_template(message.body, message.variables), self._max_message_length)
        facts = [
            (fact.name, render_template(fact.value, message.variables)) for fact in message.facts
        ]
        actions = [(action.title, action.url) for action in message.actions if action.url]
        if message.url and not actions:
            actions.append(("View details", message.url))
        color = theme_color_for(
            message.notification_type,
            message_type=message.message_type,
            override=message.theme_color,
        )

        if message.use_rich_card:
            body = self._adaptive_card(title, text, facts, actions)
        else:
            body = self._message_card(title, text, color, facts, actions)
        return encode_payload(body)

    @staticmethod
    def _message_card(
        title: str,
        text: str,
        color: str,
        facts: list[tuple[str, str]],
        actions: list[tuple[str, str]],
    ) -> dict[str, Any]:
        card: dict[str, Any] = {
            "@type": "MessageCard",
            "@context": "https://schema.org/extensions",
            "summary": title or text[:100],
            "themeColor": color,
            "title": title,
            "text": text,
        }
        if facts:
            card["sections"] = [{"facts": [{"name": name, "value": value} for name, value in facts]}]
        if actions:
            card["potentialAction"] = [
                {"@type": "OpenUri", "name": name, "targets": [{"os": "default", "uri": url}]}
                for name, url in actions
            ]
        return card

    @staticmethod
    def _adaptive_card(
        title: str,
        text: str,
        facts: list[tuple[str, str]],
        actions: list[tuple[str, str]],
    ) -> dict[str, Any]:
        elements: list[dict[str, Any]] = []
        if title:
            elements.append({"type": "TextBlock", "text": title, "weight": "Bolder", "size": "Medium", "wrap": True})
        elements.append({"type": "TextBlock", "text": text, "wrap": True})
        if facts:
            elements.append(
                {"type": "FactSet", "facts": [{"title": name, "value": value} for name, value in facts]}
            )
        content: dict[str, Any] = {
            "$schema": ADAPTIVE_CARD_SCHEMA,
            "type": "AdaptiveCard",
            "version": "1.3",
            "body": elements,
        }
        if actions:
            content["actions"] = [
                {"type": "Action.OpenUrl", "title": name, "url": url} for name, url in actions
            ]
        return {
            "type": "message",
            "attachments": [{"contentType": ADAPTIVE_CARD_CONTENT_TYPE, "content": content}],
        }


__all__ = ["ADAPTIVE_CARD_CONTENT_TYPE", "TeamsChannelAdapter"]
