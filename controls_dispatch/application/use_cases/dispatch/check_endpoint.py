"""Connectivity test against a single endpoint."""

from __future__ import annotations

import logging
from dataclasses import replace

from sqlalchemy.orm import Session

from controls_dispatch.domain.entities import (
    CHANNEL_PUSH,
    DeliveryEndpoint,
    EndpointCheckResult,
    NotificationPriority,
    OutboundNotification,
)
from controls_dispatch.domain.errors import EndpointValidationError
from controls_dispatch.infrastructure.channels import ChannelAdapterRegistry
from controls_dispatch.infrastructure.repositories import EndpointRepository

logger = logging.getLogger(__name__)

TEST_MESSAGE = "Test message from Project Controls Reporting Tool"
TEST_USERNAME = "ProjectControlsBot"
TEST_ICON_EMOJI = ":gear:"
TEST_SUCCESS_MESSAGE = "Webhook test successful"


def build_test_notification(title: str = "Test Message", body: str = TEST_MESSAGE) -> OutboundNotification:
    return OutboundNotification(
        title=title,
        body=body,
        notification_type="Test",
        priority=NotificationPriority.HIGH,
        tag="test",
        data={"test": True},
        username=TEST_USERNAME,
        icon_emoji=TEST_ICON_EMOJI,
    )


async def check_endpoint(
    session: Session,
    *,
    registry: ChannelAdapterRegistry,
    endpoint_id: int | None = None,
    channel: str | None = None,
    url: str | None = None,
) -> EndpointCheckResult:
    """Send a test message to a stored endpoint or to a bare webhook URL.

    An address that fails validation is reported without any network call.
    """

    if endpoint_id is not None:
        endpoint = EndpointRepository(session).get(endpoint_id)
        if endpoint is None:
            return EndpointCheckResult(False, 0, "Webhook not found")
    else:
        if not channel:
            return EndpointCheckResult(False, 0, "A channel is required to test a URL")
        if channel == CHANNEL_PUSH:
            return EndpointCheckResult(False, 0, "Push subscriptions can only be tested once registered")
        endpoint = DeliveryEndpoint(id=None, channel=channel, endpoint=url or "")

    try:
        adapter = registry.get(endpoint.channel)
        address = adapter.validate_endpoint(endpoint.endpoint)
    except EndpointValidationError as exc:
        return EndpointCheckResult(False, 0, str(exc))
    if address != endpoint.endpoint:
        endpoint = replace(endpoint, endpoint=address)

    payload = adapter.build_payload(build_test_notification())
    outcome = await adapter.send(endpoint, payload)
    if not outcome.success:
        logger.info("Test of %s endpoint %s failed: %s", endpoint.channel, endpoint.id, outcome.error)
    return EndpointCheckResult(
        outcome.success,
        outcome.latency_ms,
        TEST_SUCCESS_MESSAGE if outcome.success else outcome.error or "Webhook test failed",
    )


__all__ = ["TEST_MESSAGE", "build_test_notification", "check_endpoint"]
