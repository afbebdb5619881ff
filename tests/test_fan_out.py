"""Tests for the concurrent fan-out dispatcher."""

from __future__ import annotations

import asyncio
import json

import pytest

from controls_dispatch.application.use_cases.dispatch import FanOutDispatcher
from controls_dispatch.domain.entities import (
    CHANNEL_PUSH,
    CHANNEL_SLACK,
    NO_TARGETS_MESSAGE,
    NotificationPriority,
    OutboundNotification,
    SendOutcome,
    TargetFilter,
)
from controls_dispatch.infrastructure.models import DeliveryFailureModel, DeliveryMessageModel
from controls_dispatch.infrastructure.repositories import DailyStatRepository, EndpointRepository
from controls_dispatch.utils import now_in_app_timezone


def _notification(**overrides) -> OutboundNotification:
    values = {"title": "Report ready", "body": "Your monthly report is ready."}
    values.update(overrides)
    return OutboundNotification(**values)


def test_rejects_non_positive_concurrency(session, registry):
    with pytest.raises(ValueError):
        FanOutDispatcher(session, registry=registry, max_concurrency=0)


def test_sends_to_every_target_within_the_concurrency_bound(session, registry, push_adapter, add_endpoint):
    push_adapter.delay = 0.01
    endpoints = [add_endpoint() for _ in range(5)]
    dispatcher = FanOutDispatcher(session, registry=registry, max_concurrency=2)

    report = asyncio.run(dispatcher.send(_notification(), TargetFilter.build(user_ids=[1])))

    assert report.total_targeted == 5
    assert report.successful_deliveries == 5
    assert report.failed_deliveries == 0
    assert report.success_rate == 100.0
    assert report.notification_id
    assert push_adapter.max_in_flight <= 2
    assert {address for address, _ in push_adapter.sent} == {e.endpoint for e in endpoints}
    assert session.query(DeliveryMessageModel).count() == 5

    repository = EndpointRepository(session)
    for endpoint in endpoints:
        refreshed = repository.get(endpoint.id)
        assert refreshed.successful_deliveries == 1
        assert refreshed.last_used_at is not None

    stat = DailyStatRepository(session).get(CHANNEL_PUSH, "all", now_in_app_timezone().date())
    assert stat.sent == 5
    assert stat.failed == 0


def test_payload_is_rendered_once_per_channel(session, registry, push_adapter, add_endpoint):
    add_endpoint()
    add_endpoint()
    dispatcher = FanOutDispatcher(session, registry=registry)

    asyncio.run(dispatcher.send(_notification(title="Same"), TargetFilter.build(user_ids=[1])))

    payloads = {payload for _, payload in push_adapter.sent}
    assert len(payloads) == 1
    assert json.loads(payloads.pop())["title"] == "Same"


def test_zero_targets_returns_informational_report(session, registry, push_adapter):
    dispatcher = FanOutDispatcher(session, registry=registry)

    report = asyncio.run(dispatcher.send(_notification(), TargetFilter.build(user_ids=[99])))

    assert report.total_targeted == 0
    assert report.success_rate == 0.0
    assert report.message == NO_TARGETS_MESSAGE
    assert report.errors == []
    assert push_adapter.sent == []


def test_transient_failure_is_kept_for_retry(session, registry, push_adapter, add_endpoint):
    failing = add_endpoint()
    add_endpoint()
    push_adapter.outcomes[failing.endpoint] = SendOutcome.failed(
        "HTTP 500: upstream error", latency_ms=30, status_code=500
    )
    dispatcher = FanOutDispatcher(session, registry=registry)

    report = asyncio.run(dispatcher.send(_notification(), TargetFilter.build(user_ids=[1])))

    assert report.successful_deliveries == 1
    assert report.failed_deliveries == 1
    assert report.errors == ["HTTP 500: upstream error"]
    assert not report.success

    failure = session.query(DeliveryFailureModel).one()
    assert failure.endpoint_id == failing.id
    assert failure.status_code == 500
    assert failure.resolved is False
    sent_payload = dict(push_adapter.sent)[failing.endpoint]
    assert failure.payload == sent_payload

    refreshed = EndpointRepository(session).get(failing.id)
    assert refreshed.is_active is True
    assert refreshed.failed_deliveries == 1
    assert refreshed.last_error == "HTTP 500: upstream error"


def test_permanent_failure_retires_the_endpoint(session, registry, push_adapter, add_endpoint):
    gone = add_endpoint()
    push_adapter.outcomes[gone.endpoint] = SendOutcome.failed(
        "Subscription expired", status_code=410, permanent=True
    )
    dispatcher = FanOutDispatcher(session, registry=registry)

    report = asyncio.run(dispatcher.send(_notification(), TargetFilter.build(user_ids=[1])))

    assert report.failed_deliveries == 1
    refreshed = EndpointRepository(session).get(gone.id)
    assert refreshed.is_active is False
    assert refreshed.has_permission is False
    assert session.query(DeliveryFailureModel).count() == 0

    second = asyncio.run(dispatcher.send(_notification(), TargetFilter.build(user_ids=[1])))
    assert second.total_targeted == 0


def test_adapter_exception_is_reported_per_endpoint(session, registry, push_adapter, add_endpoint):
    broken = add_endpoint()
    healthy = add_endpoint()
    push_adapter.outcomes[broken.endpoint] = RuntimeError("boom")
    dispatcher = FanOutDispatcher(session, registry=registry)

    report = asyncio.run(dispatcher.send(_notification(), TargetFilter.build(user_ids=[1])))

    assert report.total_targeted == 2
    assert report.successful_deliveries == 1
    assert report.failed_deliveries == 1
    assert "Internal error: boom" in report.errors
    statuses = {
        row.endpoint_id: row.status for row in session.query(DeliveryMessageModel).all()
    }
    assert statuses == {broken.id: "failed", healthy.id: "sent"}


def test_priority_and_category_narrow_the_targets(session, registry, push_adapter, add_endpoint):
    add_endpoint(minimum_priority="High")
    muted = add_endpoint(enabled_for_reports=False)
    open_endpoint = add_endpoint()
    dispatcher = FanOutDispatcher(session, registry=registry)

    report = asyncio.run(
        dispatcher.send(
            _notification(priority=NotificationPriority.MEDIUM, category="reports"),
            TargetFilter.build(user_ids=[1]),
        )
    )

    assert report.total_targeted == 1
    assert [address for address, _ in push_adapter.sent] == [open_endpoint.endpoint]
    assert muted.endpoint not in dict(push_adapter.sent)


def test_mixed_channels_use_each_adapter(session, registry, push_adapter, slack_adapter, add_endpoint):
    add_endpoint()
    webhook = add_endpoint(CHANNEL_SLACK, user_id=None)
    dispatcher = FanOutDispatcher(session, registry=registry)

    report = asyncio.run(dispatcher.send(_notification()))

    assert report.total_targeted == 2
    assert len(push_adapter.sent) == 1
    assert [address for address, _ in slack_adapter.sent] == [webhook.endpoint]
    stat = DailyStatRepository(session).get(
        CHANNEL_SLACK, f"webhook:{webhook.id}", now_in_app_timezone().date()
    )
    assert stat.sent == 1


def test_render_failure_only_fails_that_channel(
    session, registry, push_adapter, slack_adapter, add_endpoint, monkeypatch
):
    add_endpoint()
    webhook = add_endpoint(CHANNEL_SLACK, user_id=None)

    def unrenderable(message, *, sent_at=None):
        raise TypeError("Object of type date is not JSON serializable")

    monkeypatch.setattr(push_adapter, "build_payload", unrenderable)
    dispatcher = FanOutDispatcher(session, registry=registry)

    report = asyncio.run(dispatcher.send(_notification()))

    assert report.total_targeted == 2
    assert report.successful_deliveries == 1
    assert report.failed_deliveries == 1
    assert report.successful_deliveries + report.failed_deliveries == report.total_targeted
    assert report.errors == ["Internal error: Object of type date is not JSON serializable"]
    assert push_adapter.sent == []
    assert [address for address, _ in slack_adapter.sent] == [webhook.endpoint]


def test_two_expired_and_three_live_subscriptions(session, registry, push_adapter, add_endpoint):
    endpoints = [add_endpoint() for _ in range(5)]
    expired, live = endpoints[:2], endpoints[2:]
    for endpoint in expired:
        push_adapter.outcomes[endpoint.endpoint] = SendOutcome.failed(
            "HTTP 410: subscription expired", status_code=410, permanent=True
        )
    dispatcher = FanOutDispatcher(session, registry=registry)

    report = asyncio.run(dispatcher.send(_notification(), TargetFilter.build(user_ids=[1])))

    assert report.total_targeted == 5
    assert report.successful_deliveries == 3
    assert report.failed_deliveries == 2
    assert report.success_rate == 60.0
    repository = EndpointRepository(session)
    for endpoint in expired:
        refreshed = repository.get(endpoint.id)
        assert refreshed.is_active is False
        assert refreshed.failed_deliveries == 1
    for endpoint in live:
        refreshed = repository.get(endpoint.id)
        assert refreshed.is_active is True
        assert refreshed.successful_deliveries == 1
    stat = DailyStatRepository(session).get(CHANNEL_PUSH, "all", now_in_app_timezone().date())
    assert (stat.sent, stat.failed) == (3, 2)
