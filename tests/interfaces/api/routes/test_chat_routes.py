"""Integration tests for the chat webhook, message and template routes."""

from __future__ import annotations

from controls_dispatch.application.use_cases.dispatch import (
    TEMPLATE_NOT_FOUND_MESSAGE,
    WEBHOOK_NOT_FOUND_MESSAGE,
)
from controls_dispatch.config import Settings
from controls_dispatch.domain.entities import SendOutcome
from controls_dispatch.interfaces.api.dependencies import get_app_settings

HEADERS = {"X-User-Id": "1"}
SLACK_URL = "https://hooks.slack.com/services/T000/B000/XXXX"
MESSAGE = {"title": "Heads up", "body": "Report {report} is late", "variables": {"report": "R-1"}}


def _create_webhook(client, **overrides):
    payload = {"channel": "slack", "url": SLACK_URL, "name": "Controls", **overrides}
    response = client.post("/chat/webhooks", json=payload, headers=HEADERS)
    assert response.status_code == 201
    return response.json()


def test_create_webhook_runs_a_connection_test(client, slack_adapter):
    registration = _create_webhook(client)

    assert registration["webhook"]["channel"] == "slack"
    assert registration["webhook"]["is_active"] is True
    assert registration["test"]["success"] is True
    assert len(slack_adapter.sent) == 1


def test_create_webhook_without_test(client, slack_adapter):
    registration = _create_webhook(client, test_connection=False)

    assert registration["test"] is None
    assert slack_adapter.sent == []


def test_invalid_webhooks_are_rejected(client):
    unsupported = client.post(
        "/chat/webhooks",
        json={"channel": "email", "url": SLACK_URL, "name": "Mail"},
        headers=HEADERS,
    )
    wrong_host = client.post(
        "/chat/webhooks",
        json={"channel": "teams", "url": SLACK_URL, "name": "Teams"},
        headers=HEADERS,
    )

    assert unsupported.status_code == 400
    assert wrong_host.status_code == 400
    assert client.get("/chat/webhooks", headers=HEADERS).json() == []


def test_update_test_and_delete_webhook(client):
    webhook_id = _create_webhook(client, test_connection=False)["webhook"]["id"]

    updated = client.patch(
        f"/chat/webhooks/{webhook_id}", json={"default_channel": "#controls"}, headers=HEADERS
    )
    tested = client.post(f"/chat/webhooks/{webhook_id}/test", headers=HEADERS)

    assert updated.status_code == 200
    assert updated.json()["default_channel"] == "#controls"
    assert tested.json()["status_message"] == "Webhook test successful"
    assert client.delete(f"/chat/webhooks/{webhook_id}", headers=HEADERS).status_code == 204
    assert client.delete(f"/chat/webhooks/{webhook_id}", headers=HEADERS).status_code == 404
    assert client.post(f"/chat/webhooks/{webhook_id}/test", headers=HEADERS).status_code == 404


def test_send_message_and_rate_limit(client, slack_adapter):
    webhook_id = _create_webhook(client, test_connection=False)["webhook"]["id"]
    request = {"webhook_id": webhook_id, "message": MESSAGE}

    first = client.post("/chat/messages", json=request, headers=HEADERS)
    second = client.post("/chat/messages", json=request, headers=HEADERS)
    third = client.post("/chat/messages", json=request, headers=HEADERS)

    assert first.status_code == 200
    assert first.json()["successful_deliveries"] == 1
    assert second.status_code == 200
    assert third.status_code == 429
    assert len(slack_adapter.sent) == 2


def test_send_to_unknown_webhook_is_not_found(client):
    response = client.post(
        "/chat/messages", json={"webhook_id": 42, "message": MESSAGE}, headers=HEADERS
    )

    assert response.status_code == 404
    assert response.json()["detail"] == WEBHOOK_NOT_FOUND_MESSAGE


def test_failed_send_returns_the_report(client, slack_adapter):
    webhook_id = _create_webhook(client, test_connection=False)["webhook"]["id"]
    slack_adapter.outcomes[SLACK_URL] = SendOutcome.failed("HTTP 500: boom", status_code=500)

    response = client.post(
        "/chat/messages", json={"webhook_id": webhook_id, "message": MESSAGE}, headers=HEADERS
    )

    assert response.status_code == 200
    assert response.json()["success"] is False
    assert response.json()["errors"] == ["HTTP 500: boom"]


def test_bulk_messages(client):
    client.app.dependency_overrides[get_app_settings] = lambda: Settings(
        database_url="sqlite://", rate_limit_delay_ms=0
    )
    webhook_id = _create_webhook(client, test_connection=False)["webhook"]["id"]

    response = client.post(
        "/chat/messages/bulk",
        json={"webhook_ids": [webhook_id, 999], "message": MESSAGE},
        headers=HEADERS,
    )

    assert response.status_code == 200
    result = response.json()
    assert (result["total_items"], result["found_items"], result["successful_items"]) == (2, 1, 1)


def test_template_lifecycle(client, slack_adapter):
    webhook_id = _create_webhook(client, test_connection=False)["webhook"]["id"]

    created = client.post(
        "/chat/templates",
        json={
            "name": "Late report",
            "channel": "slack",
            "message_template": "{owner}, please submit {{report}}.",
            "facts": {"Owner": "{owner}"},
        },
        headers=HEADERS,
    )
    assert created.status_code == 201
    template_id = created.json()["id"]
    assert created.json()["created_by"] == 1

    listed = client.get("/chat/templates", params={"channel": "slack"}, headers=HEADERS)
    assert [item["id"] for item in listed.json()] == [template_id]

    sent = client.post(
        f"/chat/templates/{template_id}/send",
        json={"webhook_id": webhook_id, "variables": {"owner": "Ana", "report": "R-9"}},
        headers=HEADERS,
    )
    assert sent.status_code == 200
    assert sent.json()["success"] is True
    assert len(slack_adapter.sent) == 1

    missing = client.post(
        "/chat/templates/999/send", json={"webhook_id": webhook_id}, headers=HEADERS
    )
    assert missing.status_code == 404
    assert missing.json()["detail"] == TEMPLATE_NOT_FOUND_MESSAGE


def test_template_for_unknown_channel_is_rejected(client):
    response = client.post(
        "/chat/templates",
        json={"name": "Fax", "channel": "fax", "message_template": "Hi"},
        headers=HEADERS,
    )

    assert response.status_code == 400
