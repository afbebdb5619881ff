"""Integration tests for the notification preference routes."""

from __future__ import annotations

from controls_dispatch.domain.entities import NotificationTypeDefaults

HEADERS = {"X-User-Id": "1"}
DEFAULTS = NotificationTypeDefaults.standard()


def test_notification_types_are_public(client):
    response = client.get("/preferences/types")

    assert response.status_code == 200
    assert {item["type"] for item in response.json()} >= {"ReportApproved", "ReportOverdue"}


def test_unstored_preference_falls_back_to_defaults(client):
    response = client.get("/preferences/ReportOverdue", headers=HEADERS)

    assert response.status_code == 200
    body = response.json()
    assert body["id"] is None
    assert body["push_enabled"] is True
    assert client.get("/preferences/NoSuchType", headers=HEADERS).status_code == 404


def test_replace_patch_and_delete(client):
    replaced = client.put(
        "/preferences/ReportApproved",
        json={"push_enabled": True, "minimum_priority": "high"},
        headers=HEADERS,
    )
    assert replaced.status_code == 200
    assert replaced.json()["minimum_priority"] == "High"

    patched = client.patch(
        "/preferences/ReportApproved", json={"email_enabled": False}, headers=HEADERS
    )
    assert patched.status_code == 200
    assert patched.json()["email_enabled"] is False
    assert patched.json()["push_enabled"] is True

    assert client.delete("/preferences/ReportApproved", headers=HEADERS).status_code == 204
    assert client.delete("/preferences/ReportApproved", headers=HEADERS).status_code == 404


def test_invalid_values_are_bad_requests(client):
    bad_priority = client.put(
        "/preferences/ReportApproved", json={"minimum_priority": "urgent"}, headers=HEADERS
    )
    bad_field = client.patch(
        "/preferences/ReportApproved", json={"colour": "blue"}, headers=HEADERS
    )
    missing = client.patch(
        "/preferences/ReportApproved", json={"email_enabled": False}, headers=HEADERS
    )

    assert bad_priority.status_code == 400
    assert bad_field.status_code == 422
    assert missing.status_code == 404


def test_defaults_quiet_hours_and_reset(client):
    created = client.post("/preferences/defaults", headers=HEADERS)
    assert created.json() == {"count": len(DEFAULTS)}
    assert len(client.get("/preferences/", headers=HEADERS).json()) == len(DEFAULTS)

    quiet = client.put(
        "/preferences/quiet-hours",
        json={"start": "22:00", "end": "07:00", "timezone": "Europe/Madrid"},
        headers=HEADERS,
    )
    assert quiet.json() == {"count": len(DEFAULTS)}
    summary = client.get("/preferences/summary", headers=HEADERS).json()
    assert summary["total_preferences"] == len(DEFAULTS)
    assert summary["has_quiet_hours"] is True

    bulk = client.post("/preferences/bulk", json={"sms_enabled": True}, headers=HEADERS)
    assert bulk.json() == {"count": len(DEFAULTS)}

    reset = client.post("/preferences/reset", headers=HEADERS)
    assert reset.status_code == 200
    assert client.get("/preferences/summary", headers=HEADERS).json()["sms_enabled_count"] == 0


def test_invalid_quiet_hours(client):
    response = client.put(
        "/preferences/quiet-hours", json={"start": "22:00", "end": None}, headers=HEADERS
    )

    assert response.status_code == 400


def test_delivery_decision_uses_defaults(client):
    response = client.get(
        "/preferences/decision/ReportApproved", params={"priority": "Critical"}, headers=HEADERS
    )

    assert response.status_code == 200
    decision = response.json()
    assert decision["email"] is True
    assert decision["realtime"] is True
    assert decision["push"] is False
    assert decision["sms"] is False
