import asyncio
import json
from datetime import datetime, timezone
from types import SimpleNamespace

import httpx
import pytest
from pywebpush import WebPushException

from controls_dispatch.domain.entities import (
    DeliveryEndpoint,
    NotificationAction,
    NotificationFact,
    NotificationPriority,
    OutboundNotification,
)
from controls_dispatch.domain.errors import EndpointValidationError, RateLimitExceededError
from controls_dispatch.infrastructure.channels import (
    ChatRateLimiter,
    PushChannelAdapter,
    SlackChannelAdapter,
    TeamsChannelAdapter,
    render_template,
    theme_color_for,
    validate_slack_channel,
)

SLACK_URL = "https://hooks.slack.com/services/T000/B000/XXXX"
TEAMS_URL = "https://acme.webhook.office.com/webhookb2/abc"


def _client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def _send(adapter, url, payload):
    return asyncio.run(adapter.send(DeliveryEndpoint(id=1, channel=adapter.channel, endpoint=url), payload))


def test_render_template_supports_both_placeholder_styles():
    rendered = render_template(
        "Report {{ name }} is due {due} ({missing})", {"name": "Q3", "due": "Friday"}
    )

    assert rendered == "Report Q3 is due Friday ({missing})"
    assert render_template(None, {"a": 1}) == ""


def test_theme_color_prefers_override_then_message_type():
    assert theme_color_for("ReportApproved") == "00FF00"
    assert theme_color_for("ReportApproved", message_type="error") == "FF0000"
    assert theme_color_for("Anything", override="#abcdef") == "ABCDEF"
    assert theme_color_for("Unmapped") == "0078D4"


def test_slack_plain_payload_with_variables_and_options():
    adapter = SlackChannelAdapter()
    message = OutboundNotification(
        title="Hello {{user}}",
        body="Report {report} approved",
        variables={"user": "Ana", "report": "R-7"},
        chat_channel="#controls",
        username="Bot",
    )

    body = json.loads(adapter.build_payload(message))

    assert body == {"text": "*Hello Ana*\nReport R-7 approved", "channel": "#controls", "username": "Bot"}


def test_slack_rich_payload_uses_a_colored_attachment():
    adapter = SlackChannelAdapter()
    message = OutboundNotification(
        title="Approved",
        body="Looks good",
        notification_type="ReportApproved",
        use_rich_card=True,
        url="https://app.example.com/reports/1",
        facts=(NotificationFact("Owner", "Ana"),),
        actions=(NotificationAction("open", "Open", "https://app.example.com/reports/1"),),
    )

    attachment = json.loads(adapter.build_payload(message))["attachments"][0]

    assert attachment["color"] == "#00FF00"
    assert attachment["title_link"] == "https://app.example.com/reports/1"
    assert attachment["fields"] == [{"title": "Owner", "value": "Ana", "short": True}]
    assert attachment["actions"][0]["url"] == "https://app.example.com/reports/1"


def test_slack_body_is_truncated_to_the_limit():
    adapter = SlackChannelAdapter(max_message_length=10)

    body = json.loads(adapter.build_payload(OutboundNotification(title="", body="x" * 50)))

    assert body["text"] == "xxxxxxx..."


def test_teams_message_card_and_adaptive_card():
    adapter = TeamsChannelAdapter()
    message = OutboundNotification(
        title="Overdue",
        body="Submit now",
        notification_type="DueDateReminder",
        url="https://app.example.com/reports/2",
    )

    card = json.loads(adapter.build_payload(message))
    assert card["@type"] == "MessageCard"
    assert card["themeColor"] == "FFAA00"
    assert card["potentialAction"][0]["targets"][0]["uri"] == "https://app.example.com/reports/2"

    rich = json.loads(
        adapter.build_payload(
            OutboundNotification(title="Overdue", body="Submit now", use_rich_card=True)
        )
    )
    attachment = rich["attachments"][0]
    assert attachment["contentType"] == "application/vnd.microsoft.card.adaptive"
    assert attachment["content"]["body"][0]["text"] == "Overdue"


@pytest.mark.parametrize(
    "adapter",
    [
        PushChannelAdapter(vapid_private_key="key", vapid_subject="mailto:ops@example.com"),
        SlackChannelAdapter(),
        TeamsChannelAdapter(),
    ],
    ids=["push", "slack", "teams"],
)
@pytest.mark.parametrize("rich", [False, True])
def test_same_message_and_time_render_identical_payloads(adapter, rich):
    sent_at = datetime(2024, 6, 3, 9, 30, tzinfo=timezone.utc)
    message = OutboundNotification(
        title="Report {{name}} overdue",
        body="Submit {name} by Friday",
        notification_type="ReportOverdue",
        priority=NotificationPriority.HIGH,
        data={"report_id": 10, "tags": ["q3", "audit"]},
        variables={"name": "Q3"},
        url="https://app.example.com/reports/10",
        facts=(NotificationFact("Owner", "Ana"), NotificationFact("Due", "{name}")),
        actions=(NotificationAction("open", "Open", "https://app.example.com/reports/10"),),
        use_rich_card=rich,
    )

    first = adapter.build_payload(message, sent_at=sent_at)
    second = adapter.build_payload(message, sent_at=sent_at)

    assert first.encode("utf-8") == second.encode("utf-8")


@pytest.mark.parametrize(
    "adapter, url, message",
    [
        (SlackChannelAdapter(), "http://hooks.slack.com/services/x", "HTTPS"),
        (SlackChannelAdapter(), "https://evil.example.com/services/x", "valid Slack webhook"),
        (TeamsChannelAdapter(), "https://hooks.slack.com/services/x", "valid Microsoft Teams webhook"),
        (SlackChannelAdapter(), "", "required"),
    ],
)
def test_webhook_urls_are_validated(adapter, url, message):
    with pytest.raises(EndpointValidationError, match=message):
        adapter.validate_endpoint(url)


def test_valid_webhook_urls_pass():
    assert SlackChannelAdapter().validate_endpoint(f" {SLACK_URL} ") == SLACK_URL
    assert TeamsChannelAdapter().validate_endpoint(TEAMS_URL) == TEAMS_URL


def test_slack_channel_allow_list():
    validate_slack_channel("#general", [])
    validate_slack_channel("General", ["#general"])
    with pytest.raises(EndpointValidationError, match="not in the allowed channels"):
        validate_slack_channel("#random", ["general"])


def test_webhook_send_success_posts_the_payload():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, text="ok", headers={"x-request-id": "req-1"})

    adapter = SlackChannelAdapter(client=_client(handler))
    outcome = _send(adapter, SLACK_URL, '{"text":"hi"}')

    assert outcome.success is True
    assert outcome.message_id == "req-1"
    assert outcome.status_code == 200
    assert seen[0].content == b'{"text":"hi"}'
    assert seen[0].headers["content-type"] == "application/json"


def test_webhook_gone_is_a_permanent_failure():
    adapter = TeamsChannelAdapter(client=_client(lambda request: httpx.Response(410, text="gone")))

    outcome = _send(adapter, TEAMS_URL, "{}")

    assert outcome.success is False
    assert outcome.permanent is True
    assert outcome.error == "HTTP 410: gone"


def test_webhook_server_error_is_transient():
    adapter = SlackChannelAdapter(client=_client(lambda request: httpx.Response(500)))

    outcome = _send(adapter, SLACK_URL, "{}")

    assert outcome.permanent is False
    assert outcome.error == "HTTP 500"


def test_webhook_timeout_is_reported():
    def handler(request):
        raise httpx.ReadTimeout("too slow", request=request)

    adapter = SlackChannelAdapter(timeout=5.0, client=_client(handler))

    outcome = _send(adapter, SLACK_URL, "{}")

    assert outcome.success is False
    assert outcome.error == "Request timed out after 5s"


def test_push_payload_carries_priority_and_defaults():
    adapter = PushChannelAdapter(vapid_private_key="key", vapid_subject="mailto:ops@example.com")
    message = OutboundNotification(
        title="Approved",
        body="Report approved",
        notification_type="ReportApproved",
        priority=NotificationPriority.HIGH,
        url="https://app.example.com/reports/3",
        tag="report-3",
        data={"report_id": 3},
    )

    body = json.loads(adapter.build_payload(message))

    assert body["icon"] == "/assets/logo.png"
    assert body["tag"] == "report-3"
    assert body["data"]["report_id"] == 3
    assert body["data"]["priority"] == "High"
    assert body["data"]["url"] == "https://app.example.com/reports/3"


def _subscription(**overrides):
    values = dict(
        id=5,
        channel="push",
        endpoint="https://fcm.googleapis.com/fcm/send/abc",
        p256dh_key="p256dh",
        auth_key="auth",
    )
    values.update(overrides)
    return DeliveryEndpoint(**values)


def test_push_without_vapid_key_fails_without_sending(monkeypatch):
    calls = []
    monkeypatch.setattr(
        "controls_dispatch.infrastructure.channels.push.webpush", lambda **kwargs: calls.append(kwargs)
    )
    adapter = PushChannelAdapter(vapid_private_key=None, vapid_subject="mailto:ops@example.com")

    outcome = asyncio.run(adapter.send(_subscription(), "{}"))

    assert outcome.error == "VAPID keys are not configured"
    assert calls == []


def test_push_missing_keys_is_permanent():
    adapter = PushChannelAdapter(vapid_private_key="key", vapid_subject="mailto:ops@example.com")

    outcome = asyncio.run(adapter.send(_subscription(auth_key=None), "{}"))

    assert outcome.permanent is True


def test_push_success_passes_vapid_claims(monkeypatch):
    calls = []

    def fake_webpush(**kwargs):
        calls.append(kwargs)
        return SimpleNamespace(status_code=201, headers={"Location": "push-id-1"})

    monkeypatch.setattr("controls_dispatch.infrastructure.channels.push.webpush", fake_webpush)
    adapter = PushChannelAdapter(
        vapid_private_key="key", vapid_subject="mailto:ops@example.com", ttl_seconds=60
    )

    outcome = asyncio.run(adapter.send(_subscription(), '{"title":"x"}'))

    assert outcome.success is True
    assert outcome.message_id == "push-id-1"
    assert outcome.status_code == 201
    assert calls[0]["vapid_claims"] == {"sub": "mailto:ops@example.com"}
    assert calls[0]["subscription_info"]["keys"] == {"p256dh": "p256dh", "auth": "auth"}
    assert calls[0]["ttl"] == 60


def test_push_expired_subscription_is_permanent(monkeypatch):
    def fake_webpush(**kwargs):
        raise WebPushException("Push failed: 410 Gone", response=SimpleNamespace(status_code=410))

    monkeypatch.setattr("controls_dispatch.infrastructure.channels.push.webpush", fake_webpush)
    adapter = PushChannelAdapter(vapid_private_key="key", vapid_subject="mailto:ops@example.com")

    outcome = asyncio.run(adapter.send(_subscription(), "{}"))

    assert outcome.success is False
    assert outcome.permanent is True
    assert outcome.status_code == 410


def test_rate_limiter_budget_is_per_user_and_webhook():
    limiter = ChatRateLimiter(2)

    limiter.acquire(1, SLACK_URL)
    limiter.acquire(1, SLACK_URL)
    assert limiter.remaining(1, SLACK_URL) == 0
    with pytest.raises(RateLimitExceededError, match="Maximum 2 messages per minute"):
        limiter.acquire(1, SLACK_URL)

    limiter.acquire(2, SLACK_URL)
    limiter.acquire(1, TEAMS_URL)
    limiter.acquire(None, SLACK_URL)
    assert limiter.remaining(2, SLACK_URL) == 1
    assert limiter.remaining(1, TEAMS_URL) == 1

    limiter.reset()
    assert limiter.remaining(1, SLACK_URL) == 2


def test_rate_limiter_rejects_the_31st_send_in_a_minute():
    limiter = ChatRateLimiter(30)

    for _ in range(30):
        limiter.acquire(7, SLACK_URL)

    with pytest.raises(RateLimitExceededError) as exc_info:
        limiter.acquire(7, SLACK_URL)
    assert str(exc_info.value) == (
        "Rate limit exceeded. Maximum 30 messages per minute per webhook."
    )
    assert limiter.remaining(7, SLACK_URL) == 0


def test_rate_limiter_requires_positive_budget():
    with pytest.raises(ValueError):
        ChatRateLimiter(0)
