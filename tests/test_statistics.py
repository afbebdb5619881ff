from datetime import date, datetime

import pytest

from controls_dispatch.application.use_cases.dispatch import (
    StatisticsAggregator,
    rebuild_daily_statistics,
    record_delivery_receipt,
)
from controls_dispatch.domain.entities import (
    CHANNEL_PUSH,
    CHANNEL_SLACK,
    CHANNEL_TEAMS,
    DeliveryMessage,
)
from controls_dispatch.infrastructure.repositories import DeliveryMessageRepository
from controls_dispatch.utils import get_app_timezone

DAY_ONE = date(2024, 6, 1)
DAY_TWO = date(2024, 6, 2)


def test_aggregate_stats_over_a_range(session):
    aggregator = StatisticsAggregator(session)
    aggregator.record(channel=CHANNEL_PUSH, endpoint_group="all", success=True, latency_ms=10, day=DAY_ONE)
    aggregator.record(channel=CHANNEL_PUSH, endpoint_group="all", success=False, latency_ms=30, day=DAY_ONE)
    aggregator.record(channel=CHANNEL_SLACK, endpoint_group="webhook:1", success=True, latency_ms=50, day=DAY_TWO)
    aggregator.record(channel=CHANNEL_SLACK, endpoint_group="webhook:2", success=True, latency_ms=70, day=DAY_TWO)

    stats = aggregator.get_stats(DAY_ONE, DAY_TWO)

    assert (stats.total_sent, stats.total_failed) == (3, 1)
    assert stats.success_rate == 75.0
    assert stats.average_response_ms == 40.0
    assert (stats.min_response_ms, stats.max_response_ms) == (10, 70)
    assert stats.by_channel[CHANNEL_SLACK]["sent"] == 2
    assert [(d.stat_date, d.channel, d.sent) for d in stats.daily] == [
        (DAY_ONE, CHANNEL_PUSH, 1),
        (DAY_TWO, CHANNEL_SLACK, 2),
    ]


def test_channel_filter_and_empty_range(session):
    aggregator = StatisticsAggregator(session)
    aggregator.record(channel=CHANNEL_PUSH, endpoint_group="all", success=True, latency_ms=5, day=DAY_ONE)
    aggregator.record(channel=CHANNEL_TEAMS, endpoint_group="webhook:3", success=True, latency_ms=5, day=DAY_ONE)

    teams_only = aggregator.get_stats(DAY_ONE, DAY_ONE, channel=CHANNEL_TEAMS)
    empty = aggregator.get_stats(DAY_TWO, DAY_TWO)

    assert teams_only.total_sent == 1
    assert list(teams_only.by_channel) == [CHANNEL_TEAMS]
    assert empty.total_sent == 0
    assert empty.success_rate == 0.0
    assert empty.min_response_ms is None


def test_start_after_end_is_rejected(session):
    with pytest.raises(ValueError):
        StatisticsAggregator(session).get_stats(DAY_TWO, DAY_ONE)


def test_subscription_stats(session, add_endpoint):
    add_endpoint(device_type="mobile", successful_deliveries=3, failed_deliveries=1)
    add_endpoint(is_active=False)
    add_endpoint(CHANNEL_SLACK, user_id=None)

    push = StatisticsAggregator(session).subscription_stats(channel=CHANNEL_PUSH)
    everything = StatisticsAggregator(session).subscription_stats()

    assert (push.total_endpoints, push.active_endpoints, push.inactive_endpoints) == (2, 1, 1)
    assert push.by_device_type == {"mobile": 1, "desktop": 1}
    assert push.success_rate == 75.0
    assert everything.by_channel == {CHANNEL_PUSH: 2, CHANNEL_SLACK: 1}


def _sent_message(session, *, channel=CHANNEL_PUSH, endpoint_id=None, user_id=1, status="sent"):
    return DeliveryMessageRepository(session).create(
        DeliveryMessage(
            id=None,
            channel=channel,
            target="https://push.example.com/push/1",
            payload="{}",
            status=status,
            endpoint_id=endpoint_id,
            user_id=user_id,
            response_time_ms=20,
            created_at=datetime(2024, 6, 1, 9, 0, tzinfo=get_app_timezone()),
        )
    )


def test_receipt_is_counted_once_on_the_send_day(session):
    message = _sent_message(session)

    assert record_delivery_receipt(session, message_id=message.id, user_id=1) is True
    assert record_delivery_receipt(session, message_id=message.id, user_id=1) is False

    stats = StatisticsAggregator(session).get_stats(DAY_ONE, DAY_ONE)
    assert stats.total_received == 1
    assert stats.by_channel[CHANNEL_PUSH]["received"] == 1
    assert DeliveryMessageRepository(session).get(message.id).received_at is not None


def test_receipt_for_unsent_or_foreign_message_is_rejected(session):
    failed = _sent_message(session, status="failed")
    foreign = _sent_message(session, user_id=2)

    with pytest.raises(ValueError, match="was not sent"):
        record_delivery_receipt(session, message_id=failed.id)
    with pytest.raises(ValueError, match="not found"):
        record_delivery_receipt(session, message_id=foreign.id, user_id=1)
    with pytest.raises(ValueError, match="not found"):
        record_delivery_receipt(session, message_id=999)


def test_rebuild_keeps_received_counts(session):
    message = _sent_message(session, channel=CHANNEL_SLACK, endpoint_id=4)
    _sent_message(session, channel=CHANNEL_SLACK, endpoint_id=4)
    record_delivery_receipt(session, message_id=message.id)

    rebuilt = rebuild_daily_statistics(session, day=DAY_ONE)

    assert [(row.endpoint_group, row.sent, row.received) for row in rebuilt] == [("webhook:4", 2, 1)]
