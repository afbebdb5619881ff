"""Concurrent delivery of one notification to every matching endpoint."""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from collections.abc import Sequence
from dataclasses import replace
from datetime import datetime

from sqlalchemy.orm import Session

from controls_dispatch.domain.entities import (
    NO_TARGETS_MESSAGE,
    DeliveryEndpoint,
    DeliveryReport,
    OutboundNotification,
    SendOutcome,
    TargetFilter,
)
from controls_dispatch.domain.errors import EndpointValidationError
from controls_dispatch.infrastructure.channels import ChannelAdapterRegistry
from controls_dispatch.infrastructure.channels.base import elapsed_ms
from controls_dispatch.utils import now_in_app_timezone

from .recorder import DeliveryRecorder
from .targets import resolve_targets

logger = logging.getLogger(__name__)


class FanOutDispatcher:
    """Send a notification to its targets with bounded concurrency.

    Network calls run concurrently behind a semaphore; every database write
    happens after all of them finished, on the caller's session.
    """

    def __init__(
        self,
        session: Session,
        *,
        registry: ChannelAdapterRegistry,
        max_concurrency: int = 5,
        recent_activity_days: int = 30,
    ) -> None:
        if max_concurrency <= 0:
            raise ValueError("max_concurrency must be positive")
        self.session = session
        self.registry = registry
        self.max_concurrency = max_concurrency
        self.recent_activity_days = recent_activity_days

    async def send(
        self,
        notification: OutboundNotification,
        target_filter: TargetFilter | None = None,
    ) -> DeliveryReport:
        if not notification.notification_id:
            notification = replace(notification, notification_id=uuid.uuid4().hex)
        report = DeliveryReport(notification_id=notification.notification_id)
        started = time.perf_counter()
        try:
            targets = resolve_targets(
                self.session,
                notification,
                target_filter or TargetFilter(),
                recent_activity_days=self.recent_activity_days,
            )
            if not targets:
                report.message = NO_TARGETS_MESSAGE
                return report
            await self.deliver(notification, targets, report)
        except Exception as exc:
            logger.exception("Unexpected error sending notification %s", notification.notification_id)
            report.add_error(f"Internal error: {exc}")
        finally:
            report.delivery_time_ms = elapsed_ms(started)
        logger.info(
            "Notification %s delivered to %s of %s endpoints",
            notification.notification_id,
            report.successful_deliveries,
            report.total_targeted,
        )
        return report

    async def deliver(
        self,
        notification: OutboundNotification,
        targets: Sequence[DeliveryEndpoint],
        report: DeliveryReport,
    ) -> None:
        """Send to ``targets`` and fold the outcomes into ``report``."""

        report.total_targeted = len(targets)
        attempted_at = now_in_app_timezone()
        payloads = self._render_payloads(notification, targets, attempted_at)
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def deliver_one(endpoint: DeliveryEndpoint) -> SendOutcome:
            rendered = payloads[endpoint.channel]
            if isinstance(rendered, SendOutcome):
                return rendered
            async with semaphore:
                return await self.registry.get(endpoint.channel).send(endpoint, rendered)

        results = await asyncio.gather(
            *(deliver_one(endpoint) for endpoint in targets), return_exceptions=True
        )

        recorder = DeliveryRecorder(self.session)
        for endpoint, result in zip(targets, results):
            if isinstance(result, BaseException):
                logger.error(
                    "Adapter for %s raised while sending to endpoint %s",
                    endpoint.channel,
                    endpoint.id,
                    exc_info=result,
                )
                outcome = SendOutcome.failed(f"Internal error: {result}")
            else:
                outcome = result
            report.record(outcome)
            payload = payloads[endpoint.channel]
            if isinstance(payload, SendOutcome):
                continue
            try:
                recorder.record(
                    endpoint,
                    payload,
                    outcome,
                    attempted_at=attempted_at,
                    notification_type=notification.notification_type,
                )
            except Exception as exc:
                self.session.rollback()
                logger.exception("Failed to record delivery for endpoint %s", endpoint.id)
                report.add_error(f"Failed to record delivery for endpoint {endpoint.id}: {exc}")

    def _render_payloads(
        self,
        notification: OutboundNotification,
        targets: Sequence[DeliveryEndpoint],
        attempted_at: datetime,
    ) -> dict[str, str | SendOutcome]:
        payloads: dict[str, str | SendOutcome] = {}
        for channel in {endpoint.channel for endpoint in targets}:
            try:
                adapter = self.registry.get(channel)
            except EndpointValidationError as exc:
                payloads[channel] = SendOutcome.failed(str(exc))
                continue
            try:
                payloads[channel] = adapter.build_payload(notification, sent_at=attempted_at)
            except Exception as exc:
                logger.exception(
                    "Could not render %s payload for %s", channel, notification.notification_id
                )
                payloads[channel] = SendOutcome.failed(f"Internal error: {exc}")
        return payloads


__all__ = ["FanOutDispatcher"]
