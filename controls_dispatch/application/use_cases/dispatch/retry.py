"""Replay of failed deliveries from their stored payloads."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from datetime import timedelta

from sqlalchemy.orm import Session

from controls_dispatch.domain.entities import (
    CHANNEL_PUSH,
    DeliveryEndpoint,
    FailureRecord,
    RetrySummary,
)
from controls_dispatch.infrastructure.channels import ChannelAdapterRegistry
from controls_dispatch.infrastructure.repositories import EndpointRepository, FailureRepository
from controls_dispatch.utils import now_in_app_timezone

logger = logging.getLogger(__name__)


def next_retry_delay(retry_count: int) -> timedelta:
    return timedelta(minutes=2**retry_count)


class RetrySweep:
    """Resend stored payloads verbatim to the endpoint that rejected them."""

    def __init__(
        self,
        session: Session,
        *,
        registry: ChannelAdapterRegistry,
        lookback_hours: int = 24,
        delay_ms: int = 1000,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.session = session
        self.registry = registry
        self.lookback_hours = lookback_hours
        self.delay_ms = delay_ms
        self._sleep = sleep
        self._failures = FailureRepository(session)
        self._endpoints = EndpointRepository(session)

    async def retry_failed(
        self,
        failure_ids: Iterable[int] | None = None,
        *,
        user_id: int | None = None,
    ) -> RetrySummary:
        """Retry the given failures, or the unresolved ones from the lookback window."""

        if failure_ids is None:
            since = now_in_app_timezone() - timedelta(hours=self.lookback_hours)
            failures = self._failures.list_unresolved_since(since)
        else:
            failures = [
                failure
                for failure in self._failures.list_by_ids(failure_ids)
                if not failure.resolved
            ]
        if user_id is not None:
            failures = [failure for failure in failures if failure.user_id == user_id]

        summary = RetrySummary(attempted=len(failures))
        last_channel: str | None = None
        for failure in failures:
            if last_channel == failure.channel and self.delay_ms > 0:
                await self._sleep(self.delay_ms / 1000)
            last_channel = failure.channel
            try:
                if await self._retry_one(failure, summary):
                    summary.retried_count += 1
            except Exception as exc:
                self.session.rollback()
                logger.exception("Unexpected error retrying failure %s", failure.id)
                summary.errors.append(f"Exception retrying failure {failure.id}: {exc}")

        logger.info(
            "Retried %s out of %s failed deliveries (%s errors)",
            summary.retried_count,
            summary.attempted,
            len(summary.errors),
        )
        return summary

    async def _retry_one(self, failure: FailureRecord, summary: RetrySummary) -> bool:
        if not failure.payload:
            summary.errors.append(f"Cannot retry failure {failure.id}: no payload stored")
            return False
        endpoint = self._endpoint_for(failure)
        if endpoint is None:
            summary.errors.append(f"Cannot retry failure {failure.id}: endpoint no longer exists")
            return False
        if not endpoint.is_deliverable():
            reason = "endpoint is inactive or lost permission"
            self._failures.abandon(failure.id, at=now_in_app_timezone(), reason=reason)
            summary.errors.append(f"Abandoned failure {failure.id}: {reason}")
            return False

        adapter = self.registry.get(failure.channel)
        outcome = await adapter.send(endpoint, failure.payload)
        now = now_in_app_timezone()
        if outcome.success:
            self._failures.mark_resolved(failure.id, at=now)
            if endpoint.id is not None:
                self._endpoints.record_success(endpoint.id, at=now)
            return True

        if endpoint.id is not None:
            self._endpoints.record_failure(
                endpoint.id, error=outcome.error, permanent=outcome.permanent
            )
        if outcome.permanent:
            self._failures.abandon(
                failure.id,
                at=now,
                reason=outcome.error or "permanent failure",
                status_code=outcome.status_code,
            )
            summary.errors.append(
                f"Abandoned failure {failure.id} after permanent error: {outcome.error}"
            )
            return False

        retry_count = failure.retry_count + 1
        self._failures.schedule_retry(
            failure.id,
            retry_count=retry_count,
            next_retry_at=now + next_retry_delay(retry_count),
            error_message=outcome.error,
            status_code=outcome.status_code,
        )
        summary.errors.append(f"Retry failed for failure {failure.id}: {outcome.error}")
        return False

    def _endpoint_for(self, failure: FailureRecord) -> DeliveryEndpoint | None:
        if failure.endpoint_id is not None:
            endpoint = self._endpoints.get(failure.endpoint_id)
            if endpoint is not None:
                return endpoint
        if failure.channel == CHANNEL_PUSH:
            return None
        return DeliveryEndpoint(
            id=None,
            channel=failure.channel,
            endpoint=failure.target,
            user_id=failure.user_id,
        )


__all__ = ["RetrySweep", "next_retry_delay"]
