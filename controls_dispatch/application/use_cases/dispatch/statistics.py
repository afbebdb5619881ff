"""Daily delivery counters and the aggregates built from them."""

from __future__ import annotations

from collections import Counter, defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta

from sqlalchemy.orm import Session

from controls_dispatch.domain.entities import AggregateStats, DailyStat, DailyStatSummary
from controls_dispatch.infrastructure.repositories import (
    DailyStatRepository,
    DeliveryMessageRepository,
    EndpointRepository,
)
from controls_dispatch.utils import now_in_app_timezone

from .targets import endpoint_group

DEFAULT_STATS_WINDOW_DAYS = 30


@dataclass
class SubscriptionStats:
    total_endpoints: int = 0
    active_endpoints: int = 0
    inactive_endpoints: int = 0
    by_device_type: dict[str, int] = field(default_factory=dict)
    by_channel: dict[str, int] = field(default_factory=dict)
    successful_deliveries: int = 0
    failed_deliveries: int = 0

    @property
    def success_rate(self) -> float:
        total = self.successful_deliveries + self.failed_deliveries
        if total == 0:
            return 0.0
        return round(self.successful_deliveries / total * 100, 2)


class StatisticsAggregator:
    """Record per day outcomes and aggregate them over date ranges."""

    def __init__(self, session: Session) -> None:
        self.session = session
        self._stats = DailyStatRepository(session)

    def record(
        self,
        *,
        channel: str,
        endpoint_group: str,
        success: bool,
        latency_ms: int | None,
        day: date | None = None,
    ) -> DailyStat:
        return self._stats.increment(
            channel=channel,
            endpoint_group=endpoint_group,
            stat_date=day or now_in_app_timezone().date(),
            sent=1 if success else 0,
            failed=0 if success else 1,
            response_ms=latency_ms,
        )

    def record_received(
        self,
        *,
        channel: str,
        endpoint_group: str,
        count: int = 1,
        day: date | None = None,
    ) -> DailyStat:
        return self._stats.increment(
            channel=channel,
            endpoint_group=endpoint_group,
            stat_date=day or now_in_app_timezone().date(),
            received=count,
        )

    def get_stats(
        self,
        start: date | None = None,
        end: date | None = None,
        *,
        channel: str | None = None,
    ) -> AggregateStats:
        end = end or now_in_app_timezone().date()
        start = start or end - timedelta(days=DEFAULT_STATS_WINDOW_DAYS)
        if start > end:
            raise ValueError("Start date must not be after end date")

        rows = self._stats.list_between(start, end, channel=channel)
        stats = AggregateStats(start_date=start, end_date=end)
        total_response = 0
        by_day: dict[tuple[date, str], list[DailyStat]] = defaultdict(list)
        by_channel: dict[str, Counter] = defaultdict(Counter)

        for row in rows:
            stats.total_sent += row.sent
            stats.total_failed += row.failed
            stats.total_received += row.received
            total_response += row.total_response_ms
            if row.min_response_ms is not None:
                stats.min_response_ms = (
                    row.min_response_ms
                    if stats.min_response_ms is None
                    else min(stats.min_response_ms, row.min_response_ms)
                )
            if row.max_response_ms is not None:
                stats.max_response_ms = (
                    row.max_response_ms
                    if stats.max_response_ms is None
                    else max(stats.max_response_ms, row.max_response_ms)
                )
            by_day[(row.stat_date, row.channel)].append(row)
            by_channel[row.channel].update(sent=row.sent, failed=row.failed, received=row.received)

        attempts = stats.total_sent + stats.total_failed
        stats.average_response_ms = round(total_response / attempts, 2) if attempts else 0.0
        stats.by_channel = {name: dict(counts) for name, counts in sorted(by_channel.items())}
        stats.daily = [_summarize_day(day, name, group) for (day, name), group in sorted(by_day.items())]
        return stats

    def subscription_stats(self, *, channel: str | None = None) -> SubscriptionStats:
        endpoints = EndpointRepository(self.session).list(
            channels=[channel] if channel else None, limit=None
        )
        stats = SubscriptionStats(total_endpoints=len(endpoints))
        device_types: Counter = Counter()
        channels: Counter = Counter()
        for endpoint in endpoints:
            if endpoint.is_active:
                stats.active_endpoints += 1
            else:
                stats.inactive_endpoints += 1
            device_types[endpoint.device_type or "unknown"] += 1
            channels[endpoint.channel] += 1
            stats.successful_deliveries += endpoint.successful_deliveries
            stats.failed_deliveries += endpoint.failed_deliveries
        stats.by_device_type = dict(device_types)
        stats.by_channel = dict(channels)
        return stats


def record_delivery_receipt(
    session: Session, *, message_id: int, user_id: int | None = None
) -> bool:
    """Count a client's receipt of a sent message once, on the day it was sent.

    Returns ``False`` when the receipt was already counted.
    """

    messages = DeliveryMessageRepository(session)
    message = messages.get(message_id)
    if message is None or (user_id is not None and message.user_id not in (None, user_id)):
        raise ValueError(f"Delivery message with id {message_id} not found")
    if not messages.mark_received(message_id, at=now_in_app_timezone()):
        return False
    sent_on = (message.created_at or now_in_app_timezone()).date()
    StatisticsAggregator(session).record_received(
        channel=message.channel,
        endpoint_group=endpoint_group(message.channel, message.endpoint_id),
        day=sent_on,
    )
    return True


def _summarize_day(day: date, channel: str, rows: list[DailyStat]) -> DailyStatSummary:
    sent = sum(row.sent for row in rows)
    failed = sum(row.failed for row in rows)
    total_response = sum(row.total_response_ms for row in rows)
    attempts = sent + failed
    return DailyStatSummary(
        stat_date=day,
        channel=channel,
        sent=sent,
        failed=failed,
        received=sum(row.received for row in rows),
        average_response_ms=round(total_response / attempts, 2) if attempts else 0.0,
    )


__all__ = [
    "DEFAULT_STATS_WINDOW_DAYS",
    "StatisticsAggregator",
    "SubscriptionStats",
    "record_delivery_receipt",
]
