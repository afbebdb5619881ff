"""Unit tests for the SendGrid email helper utilities."""

from __future__ import annotations

import json
import types

import pytest

from controls_dispatch.infrastructure import email as email_module


class DummySettings:
    sendgrid_api_key = "SG.fake"
    sendgrid_sender = "sender@example.com"


class RecordingClient:
    """Stand-in for ``SendGridAPIClient`` returning a canned response."""

    sent: list = []
    response = types.SimpleNamespace(status_code=202, body=None, headers={"X-Message-Id": "msg-42"})

    def __init__(self, api_key: str):
        self.api_key = api_key

    def send(self, message):
        self.sent.append(message)
        return self.response


@pytest.fixture()
def configured(monkeypatch: pytest.MonkeyPatch):
    RecordingClient.sent = []
    monkeypatch.setattr(email_module, "get_settings", lambda: DummySettings())
    monkeypatch.setattr(email_module, "SendGridAPIClient", RecordingClient)
    return RecordingClient


def test_send_email_without_configuration(monkeypatch: pytest.MonkeyPatch) -> None:
    """When SendGrid settings are missing the helper should exit early."""

    class Unconfigured:
        sendgrid_api_key = None
        sendgrid_sender = None

    monkeypatch.setattr(email_module, "get_settings", lambda: Unconfigured())

    result = email_module.send_email("user@example.com", "Subject", "<p>Body</p>")

    assert result.success is False
    assert result.error == "Email delivery is not configured"


def test_send_email_success(configured) -> None:
    """A 2xx SendGrid response returns the message id."""

    result = email_module.send_email("user@example.com", "Subject", "<p>Body</p>")

    assert result.success is True
    assert result.message_id == "msg-42"
    assert len(configured.sent) == 1


def test_send_email_reports_error_status(monkeypatch: pytest.MonkeyPatch, configured, caplog) -> None:
    monkeypatch.setattr(
        configured,
        "response",
        types.SimpleNamespace(status_code=400, body=b'{"errors": [{"message": "Bad to address"}]}'),
    )

    with caplog.at_level("ERROR"):
        result = email_module.send_email("user@example.com", "Subject", "<p>Body</p>")

    assert result.success is False
    assert result.error == "SendGrid status 400"
    assert "Bad to address" in caplog.text


def test_send_email_logs_forbidden_error(monkeypatch: pytest.MonkeyPatch, configured, caplog):
    """Forbidden responses from SendGrid should surface meaningful log details."""

    class FakeForbiddenError(Exception):
        status_code = 403
        body = json.dumps(
            {
                "errors": [
                    {
                        "message": "The provided authorization grant is invalid.",
                        "help": "https://sendgrid.com/docs/for-developers/sending-email/api-getting-started/",
                    }
                ]
            }
        ).encode()

    def failing_send(self, message):
        raise FakeForbiddenError()

    monkeypatch.setattr(configured, "send", failing_send)

    with caplog.at_level("ERROR"):
        result = email_module.send_email("user@example.com", "Subject", "<p>Body</p>")

    assert result.success is False
    assert result.error.startswith("SendGrid status 403")
    assert "authorization grant is invalid" in caplog.text


def test_render_notification_email_escapes_content() -> None:
    body = email_module.render_notification_email(
        "Report <Approved>",
        ["Hello Ana,", "Totals & notes look good."],
        action_label="Open report",
        action_url="https://controls.example.com/reports/1?tab=a&b=c",
    )

    assert "<h2>Report &lt;Approved&gt;</h2>" in body
    assert "<p>Totals &amp; notes look good.</p>" in body
    assert 'href="https://controls.example.com/reports/1?tab=a&amp;b=c"' in body
