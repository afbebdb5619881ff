"""Synchronous validation of endpoint addresses."""

from __future__ import annotations

from collections.abc import Sequence
from urllib.parse import urlparse

from controls_dispatch.domain.errors import EndpointValidationError

SLACK_WEBHOOK_HOSTS = ("hooks.slack.com",)
TEAMS_WEBHOOK_HOSTS = ("outlook.office.com", "outlook.office365.com", "webhook.office.com")


def _host_matches(host: str, allowed_hosts: Sequence[str]) -> bool:
    return any(host == allowed or host.endswith("." + allowed) for allowed in allowed_hosts)


def validate_https_url(url: str | None, *, label: str = "Endpoint URL") -> str:
    """Return the stripped ``url`` when it is an absolute https URL."""

    candidate = (url or "").strip()
    if not candidate:
        raise EndpointValidationError(f"{label} is required")
    parsed = urlparse(candidate)
    if not parsed.scheme or not parsed.netloc:
        raise EndpointValidationError(f"{label} must be an absolute URL")
    if parsed.scheme.lower() != "https":
        raise EndpointValidationError(f"{label} must use HTTPS")
    return candidate


def validate_webhook_url(url: str | None, *, provider: str, allowed_hosts: Sequence[str]) -> str:
    """Validate a chat webhook URL before any network call is made."""

    candidate = validate_https_url(url, label="Webhook URL")
    host = (urlparse(candidate).hostname or "").lower()
    if not _host_matches(host, allowed_hosts):
        raise EndpointValidationError(f"URL does not appear to be a valid {provider} webhook")
    return candidate


def validate_slack_channel(channel: str | None, allowed_channels: Sequence[str]) -> None:
    """Reject Slack channel overrides outside the configured allow-list."""

    if not channel or not allowed_channels:
        return
    normalized = {name.lstrip("#").lower() for name in allowed_channels}
    if channel.lstrip("#").lower() not in normalized:
        raise EndpointValidationError(f"Channel '{channel}' is not in the allowed channels list")


__all__ = [
    "SLACK_WEBHOOK_HOSTS",
    "TEAMS_WEBHOOK_HOSTS",
    "validate_https_url",
    "validate_slack_channel",
    "validate_webhook_url",
]
