"""Integration tests for the push subscription routes."""

from __future__ import annotations

from controls_dispatch.config import Settings
from controls_dispatch.domain.entities import SendOutcome
from controls_dispatch.interfaces.api.dependencies import get_app_settings

HEADERS = {"X-User-Id": "1"}
SUBSCRIPTION = {
    "endpoint": "https://fcm.googleapis.com/fcm/send/device-1",
    "keys": {"p256dh": "p256dh-key", "auth": "auth-key"},
    "device_type": "Mobile",
    "categories": {"reports": False},
    "minimum_priority": "medium",
}


def _subscribe(client, **overrides):
    payload = {**SUBSCRIPTION, **overrides}
    return client.post("/push/subscriptions", json=payload, headers=HEADERS)


def test_requests_without_user_header_are_rejected(client):
    response = client.get("/push/subscriptions")

    assert response.status_code == 401
    assert response.json()["detail"] == "Missing X-User-Id header"


def test_vapid_public_key(client):
    assert client.get("/push/vapid-public-key").status_code == 503

    client.app.dependency_overrides[get_app_settings] = lambda: Settings(
        database_url="sqlite://", vapid_private_key="private", vapid_public_key="public"
    )
    response = client.get("/push/vapid-public-key")

    assert response.status_code == 200
    assert response.json() == {"public_key": "public"}


def test_subscription_lifecycle(client):
    created = _subscribe(client)
    assert created.status_code == 201
    body = created.json()
    assert body["channel"] == "push"
    assert body["user_id"] == 1
    assert body["device_type"] == "mobile"
    assert body["enabled_for_reports"] is False
    assert body["minimum_priority"] == "Medium"

    listed = client.get("/push/subscriptions", headers=HEADERS).json()
    assert [item["id"] for item in listed] == [body["id"]]

    updated = client.patch(
        f"/push/subscriptions/{body['id']}", json={"device_name": "Phone"}, headers=HEADERS
    )
    assert updated.status_code == 200
    assert updated.json()["device_name"] == "Phone"

    assert client.delete(f"/push/subscriptions/{body['id']}", headers=HEADERS).status_code == 204
    assert client.delete(f"/push/subscriptions/{body['id']}", headers=HEADERS).status_code == 404


def test_invalid_subscription_is_a_bad_request(client):
    response = _subscribe(client, endpoint="http://insecure.example.com/push")

    assert response.status_code == 400
    assert "HTTPS" in response.json()["detail"]


def test_other_users_cannot_update_a_subscription(client):
    subscription_id = _subscribe(client).json()["id"]

    response = client.patch(
        f"/push/subscriptions/{subscription_id}",
        json={"device_name": "Stolen"},
        headers={"X-User-Id": "2"},
    )

    assert response.status_code == 404


def test_unknown_update_fields_are_rejected(client):
    subscription_id = _subscribe(client).json()["id"]

    response = client.patch(
        f"/push/subscriptions/{subscription_id}", json={"endpoint": "x"}, headers=HEADERS
    )

    assert response.status_code == 422


def test_send_fans_out_to_push_subscriptions(client, push_adapter, add_endpoint):
    add_endpoint(user_id=1)
    failing = add_endpoint(user_id=1)
    push_adapter.outcomes[failing.endpoint] = SendOutcome.failed("HTTP 500: down", status_code=500)

    response = client.post(
        "/push/send",
        json={"notification": {"title": "Hi", "body": "Report ready"}, "target": {"user_ids": [1]}},
        headers=HEADERS,
    )

    assert response.status_code == 200
    report = response.json()
    assert report["total_targeted"] == 2
    assert report["successful_deliveries"] == 1
    assert report["failed_deliveries"] == 1
    assert report["errors"] == ["HTTP 500: down"]
    assert len(push_adapter.sent) == 2


def test_connection_test_for_a_stored_subscription(client, push_adapter):
    subscription_id = _subscribe(client).json()["id"]

    response = client.post("/push/test", json={"endpoint_id": subscription_id}, headers=HEADERS)

    assert response.status_code == 200
    assert response.json()["success"] is True
    assert len(push_adapter.sent) == 1


def test_bulk_deactivate_and_stats(client):
    first = _subscribe(client).json()["id"]
    _subscribe(client, endpoint="https://fcm.googleapis.com/fcm/send/device-2")

    response = client.post(
        "/push/bulk",
        json={"operation": "deactivate", "endpoint_ids": [first, 999]},
        headers=HEADERS,
    )

    assert response.status_code == 200
    result = response.json()
    assert (result["total_items"], result["found_items"], result["successful_items"]) == (2, 1, 1)

    stats = client.get("/push/stats", headers=HEADERS).json()
    assert (stats["total_endpoints"], stats["active_endpoints"]) == (2, 1)
