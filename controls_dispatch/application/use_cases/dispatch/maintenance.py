"""Background sweeps: queued messages, retention cleanup and statistics rebuilds."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Protocol

from sqlalchemy.orm import Session

from controls_dispatch.domain.entities import (
    MESSAGE_STATUS_FAILED,
    MESSAGE_STATUS_PENDING,
    MESSAGE_STATUS_SENT,
    DailyStat,
    DeliveryMessage,
    OutboundNotification,
    SendOutcome,
)
from controls_dispatch.infrastructure.channels import ChannelAdapterRegistry
from controls_dispatch.infrastructure.repositories import (
    DailyStatRepository,
    DeliveryMessageRepository,
    EndpointRepository,
    FailureRepository,
)
from controls_dispatch.utils import get_app_timezone, now_in_app_timezone

from .recorder import DeliveryRecorder
from .targets import endpoint_group

logger = logging.getLogger(__name__)


class CancelSignal(Protocol):
    def is_set(self) -> bool:
        ...


@dataclass
class PendingSweepSummary:
    processed: int = 0
    sent: int = 0
    failed: int = 0
    cancelled: bool = False


@dataclass
class CleanupSummary:
    messages_deleted: int = 0
    failures_deleted: int = 0
    stats_deleted: int = 0
    cancelled: bool = False


def _cancelled(cancel_event: CancelSignal | None) -> bool:
    return cancel_event is not None and cancel_event.is_set()


def enqueue_message(
    session: Session,
    *,
    registry: ChannelAdapterRegistry,
    endpoint_id: int,
    notification: OutboundNotification,
) -> DeliveryMessage:
    """Render ``notification`` for the endpoint and store it as pending."""

    endpoint = EndpointRepository(session).get(endpoint_id)
    if endpoint is None:
        raise ValueError(f"Endpoint {endpoint_id} not found")
    payload = registry.get(endpoint.channel).build_payload(
        notification, sent_at=now_in_app_timezone()
    )
    return DeliveryMessageRepository(session).create(
        DeliveryMessage(
            id=None,
            channel=endpoint.channel,
            target=endpoint.endpoint,
            payload=payload,
            status=MESSAGE_STATUS_PENDING,
            endpoint_id=endpoint.id,
            user_id=endpoint.user_id,
            notification_type=notification.notification_type,
        )
    )


async def process_pending_messages(
    session: Session,
    *,
    registry: ChannelAdapterRegistry,
    cancel_event: CancelSignal | None = None,
    limit: int = 100,
) -> PendingSweepSummary:
    """Send queued messages oldest first until done, ``limit`` or cancellation.

    Cancellation is observed between messages; a message already handed to
    its transport is always recorded.
    """

    summary = PendingSweepSummary()
    messages = DeliveryMessageRepository(session)
    endpoints = EndpointRepository(session)
    recorder = DeliveryRecorder(session)

    for message in messages.list_pending(limit=limit):
        if _cancelled(cancel_event):
            summary.cancelled = True
            logger.info("Pending message sweep cancelled after %s messages", summary.processed)
            break
        summary.processed += 1
        endpoint = endpoints.get(message.endpoint_id) if message.endpoint_id is not None else None
        if endpoint is None or not endpoint.is_deliverable():
            reason = "Endpoint no longer exists" if endpoint is None else "Endpoint is inactive"
            messages.complete(message.id, status=MESSAGE_STATUS_FAILED, error_message=reason)
            summary.failed += 1
            continue

        try:
            outcome = await registry.get(endpoint.channel).send(endpoint, message.payload)
        except Exception as exc:
            logger.exception("Unexpected error sending queued message %s", message.id)
            outcome = SendOutcome.failed(f"Internal error: {exc}")
        try:
            recorder.record(
                endpoint,
                message.payload,
                outcome,
                attempted_at=now_in_app_timezone(),
                notification_type=message.notification_type,
                pending_message_id=message.id,
            )
        except Exception:
            session.rollback()
            logger.exception("Failed to record queued message %s", message.id)
            summary.failed += 1
            continue
        if outcome.success:
            summary.sent += 1
        else:
            summary.failed += 1

    logger.info(
        "Processed %s queued messages (%s sent, %s failed)",
        summary.processed,
        summary.sent,
        summary.failed,
    )
    return summary


def cleanup_old_data(
    session: Session,
    *,
    retention_days: int = 90,
    cancel_event: CancelSignal | None = None,
) -> CleanupSummary:
    """Delete terminal messages, resolved failures and daily stats past retention."""

    if retention_days <= 0:
        raise ValueError("retention_days must be positive")
    summary = CleanupSummary()
    cutoff = now_in_app_timezone() - timedelta(days=retention_days)

    messages = DeliveryMessageRepository(session)
    failures = FailureRepository(session)
    stats = DailyStatRepository(session)
    batches = (
        ("messages_deleted", messages.list_terminal_ids_before(cutoff), messages.delete),
        ("failures_deleted", failures.list_resolved_ids_before(cutoff), failures.delete),
        ("stats_deleted", stats.list_ids_before(cutoff.date()), stats.delete),
    )
    for counter, ids, delete in batches:
        for item_id in ids:
            if _cancelled(cancel_event):
                summary.cancelled = True
                logger.info("Retention cleanup cancelled: %s", summary)
                return summary
            if delete(item_id):
                setattr(summary, counter, getattr(summary, counter) + 1)

    logger.info(
        "Retention cleanup removed %s messages, %s failures and %s daily stats",
        summary.messages_deleted,
        summary.failures_deleted,
        summary.stats_deleted,
    )
    return summary


def rebuild_daily_statistics(
    session: Session,
    *,
    day: date,
    cancel_event: CancelSignal | None = None,
) -> list[DailyStat]:
    """Recompute the daily stat rows of ``day`` from its terminal delivery messages."""

    start = datetime.combine(day, time.min, tzinfo=get_app_timezone())
    rows = DeliveryMessageRepository(session).list_between(start, start + timedelta(days=1))

    groups: dict[tuple[str, str], DailyStat] = {}
    for message in rows:
        if message.status not in (MESSAGE_STATUS_SENT, MESSAGE_STATUS_FAILED):
            continue
        group = endpoint_group(message.channel, message.endpoint_id)
        stat = groups.get((message.channel, group))
        if stat is None:
            stat = DailyStat(id=None, channel=message.channel, endpoint_group=group, stat_date=day)
            groups[(message.channel, group)] = stat
        if message.status == MESSAGE_STATUS_SENT:
            stat.sent += 1
        else:
            stat.failed += 1
        if message.received_at is not None:
            stat.received += 1
        if message.response_time_ms is not None:
            latency = message.response_time_ms
            stat.total_response_ms += latency
            stat.min_response_ms = latency if stat.min_response_ms is None else min(stat.min_response_ms, latency)
            stat.max_response_ms = latency if stat.max_response_ms is None else max(stat.max_response_ms, latency)

    repository = DailyStatRepository(session)
    rebuilt: list[DailyStat] = []
    for key in sorted(groups):
        if _cancelled(cancel_event):
            logger.info("Statistics rebuild for %s cancelled after %s groups", day, len(rebuilt))
            break
        rebuilt.append(repository.replace(groups[key]))
    return rebuilt


__all__ = [
    "CancelSignal",
    "CleanupSummary",
    "PendingSweepSummary",
    "cleanup_old_data",
    "enqueue_message",
    "process_pending_messages",
    "rebuild_daily_statistics",
]
