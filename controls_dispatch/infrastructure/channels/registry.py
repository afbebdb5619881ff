"""Adapter lookup keyed by channel tag."""

from __future__ import annotations

from collections.abc import Iterable

import httpx

from controls_dispatch.config import Settings, get_settings
from controls_dispatch.domain.errors import EndpointValidationError

from .base import ChannelAdapter
from .push import PushChannelAdapter
from .slack import SlackChannelAdapter
from .teams import TeamsChannelAdapter


class ChannelAdapterRegistry:
    def __init__(self, adapters: Iterable[ChannelAdapter]) -> None:
        self._adapters = {adapter.channel: adapter for adapter in adapters}

    def get(self, channel: str) -> ChannelAdapter:
        adapter = self._adapters.get(channel)
        if adapter is None:
            raise EndpointValidationError(f"Unsupported channel '{channel}'")
        return adapter

    def channels(self) -> list[str]:
        return list(self._adapters)

    def __contains__(self, channel: object) -> bool:
        return channel in self._adapters


def build_channel_registry(
    settings: Settings | None = None, *, client: httpx.AsyncClient | None = None
) -> ChannelAdapterRegistry:
    """Build the push, Slack and Teams adapters from ``settings``."""

    settings = settings or get_settings()
    webhook_options = {
        "timeout": settings.delivery_timeout_seconds,
        "client": client,
        "max_message_length": settings.max_message_length,
    }
    return ChannelAdapterRegistry(
        [
            PushChannelAdapter(
                vapid_private_key=settings.vapid_private_key,
                vapid_subject=settings.vapid_subject,
                ttl_seconds=settings.push_ttl_seconds,
                timeout=settings.delivery_timeout_seconds,
                default_icon=settings.push_default_icon,
                default_badge=settings.push_default_badge,
            ),
            SlackChannelAdapter(**webhook_options),
            TeamsChannelAdapter(**webhook_options),
        ]
    )


__all__ = ["ChannelAdapterRegistry", "build_channel_registry"]
