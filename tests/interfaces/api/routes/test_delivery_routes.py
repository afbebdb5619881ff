"""Integration tests for delivery statistics and the retry sweep routes."""

from __future__ import annotations

from datetime import date

from controls_dispatch.application.use_cases.dispatch import StatisticsAggregator
from controls_dispatch.domain.entities import CHANNEL_PUSH, CHANNEL_SLACK, SendOutcome
from controls_dispatch.infrastructure.models import DeliveryMessageModel

HEADERS = {"X-User-Id": "1"}


def test_stats_over_an_explicit_range(client, session):
    aggregator = StatisticsAggregator(session)
    aggregator.record(
        channel=CHANNEL_PUSH, endpoint_group="all", success=True, latency_ms=20, day=date(2024, 6, 1)
    )
    aggregator.record(
        channel=CHANNEL_SLACK, endpoint_group="webhook:1", success=False, latency_ms=40, day=date(2024, 6, 2)
    )

    response = client.get(
        "/deliveries/stats", params={"start": "2024-06-01", "end": "2024-06-02"}, headers=HEADERS
    )

    assert response.status_code == 200
    stats = response.json()
    assert (stats["total_sent"], stats["total_failed"]) == (1, 1)
    assert stats["success_rate"] == 50.0
    assert [day["channel"] for day in stats["daily"]] == [CHANNEL_PUSH, CHANNEL_SLACK]


def test_stats_with_reversed_range_is_a_bad_request(client):
    response = client.get(
        "/deliveries/stats", params={"start": "2024-06-02", "end": "2024-06-01"}, headers=HEADERS
    )

    assert response.status_code == 400


def test_failed_push_can_be_listed_and_retried(client, push_adapter, add_endpoint):
    endpoint = add_endpoint(user_id=1)
    push_adapter.outcomes[endpoint.endpoint] = SendOutcome.failed("HTTP 503: busy", status_code=503)
    client.post(
        "/push/send",
        json={"notification": {"title": "Hi", "body": "Report ready"}},
        headers=HEADERS,
    )

    failures = client.get("/deliveries/failures", headers=HEADERS).json()
    assert len(failures) == 1
    assert failures[0]["status_code"] == 503
    assert failures[0]["endpoint_id"] == endpoint.id

    del push_adapter.outcomes[endpoint.endpoint]
    response = client.post(
        "/deliveries/failures/retry", json={"failure_ids": [failures[0]["id"]]}, headers=HEADERS
    )

    assert response.status_code == 200
    assert response.json() == {"attempted": 1, "retried_count": 1, "errors": []}
    assert client.get("/deliveries/failures", headers=HEADERS).json() == []
    resolved = client.get("/deliveries/failures", params={"resolved": True}, headers=HEADERS).json()
    assert [item["id"] for item in resolved] == [failures[0]["id"]]


def test_receipt_counts_toward_received_stats(client, session, add_endpoint):
    add_endpoint(user_id=1)
    client.post(
        "/push/send",
        json={"notification": {"title": "Hi", "body": "Report ready"}},
        headers=HEADERS,
    )
    message = session.query(DeliveryMessageModel).one()

    first = client.post(f"/deliveries/messages/{message.id}/receipt", headers=HEADERS)
    repeat = client.post(f"/deliveries/messages/{message.id}/receipt", headers=HEADERS)
    foreign = client.post(f"/deliveries/messages/{message.id}/receipt", headers={"X-User-Id": "2"})

    assert first.json() == {"message_id": message.id, "counted": True}
    assert repeat.json() == {"message_id": message.id, "counted": False}
    assert foreign.status_code == 400
    stats = client.get("/deliveries/stats", headers=HEADERS).json()
    assert stats["total_received"] == 1
