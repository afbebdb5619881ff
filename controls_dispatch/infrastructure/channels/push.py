"""Web Push adapter using pywebpush."""

from __future__ import annotations

import logging
import time
import uuid
from datetime import datetime
from functools import partial
from typing import Any

from anyio import to_thread
from pywebpush import WebPushException, webpush

from controls_dispatch.domain.entities import (
    CHANNEL_PUSH,
    DeliveryEndpoint,
    OutboundNotification,
    SendOutcome,
)
from controls_dispatch.utils import now_in_app_timezone

from .base import PERMANENT_FAILURE_STATUS_CODES, ChannelAdapter, elapsed_ms, encode_payload
from .validation import validate_https_url

logger = logging.getLogger(__name__)

DEFAULT_ICON = "/assets/logo.png"
DEFAULT_BADGE = "/assets/badge.png"


class PushChannelAdapter(ChannelAdapter):
    """Send Web Push messages signed with the configured VAPID key.

    ``webpush`` is blocking, so every call runs in a worker thread. A 404 or
    410 from the push service means the browser dropped the subscription.
    """

    channel = CHANNEL_PUSH

    def __init__(
        self,
        *,
        vapid_private_key: str | None,
        vapid_subject: str,
        ttl_seconds: int = 86400,
        timeout: float = 30.0,
        default_icon: str = DEFAULT_ICON,
        default_badge: str = DEFAULT_BADGE,
    ) -> None:
        self._vapid_private_key = vapid_private_key
        self._vapid_subject = vapid_subject
        self._ttl_seconds = ttl_seconds
        self._timeout = timeout
        self._default_icon = default_icon
        self._default_badge = default_badge

    def validate_endpoint(self, address: str) -> str:
        return validate_https_url(address, label="Push endpoint")

    def build_payload(
        self, message: OutboundNotification, *, sent_at: datetime | None = None
    ) -> str:
        sent_at = sent_at or now_in_app_timezone()
        data = dict(message.data)
        data["timestamp"] = sent_at.isoformat()
        data["priority"] = message.priority.label
        data["type"] = message.notification_type

        body: dict[str, Any] = {
            "title": message.title,
            "body": message.body,
            "icon": message.icon or self._default_icon,
            "badge": message.badge or self._default_badge,
            "requireInteraction": message.require_interaction,
            "silent": message.silent,
            "data": data,
        }
        if message.image:
            body["image"] = message.image
        if message.url:
            body["url"] = message.url
            data.setdefault("url", message.url)
        if message.tag:
            body["tag"] = message.tag
        if message.actions:
            body["actions"] = [
                {"action": action.action, "title": action.title} for action in message.actions
            ]
        return encode_payload(body)

    async def send(self, endpoint: DeliveryEndpoint, payload: str) -> SendOutcome:
        if not self._vapid_private_key:
            return SendOutcome.failed("VAPID keys are not configured")
        if not (endpoint.p256dh_key and endpoint.auth_key):
            return SendOutcome.failed("Subscription keys are missing", permanent=True)

        subscription_info = {
            "endpoint": endpoint.endpoint,
            "keys": {"p256dh": endpoint.p256dh_key, "auth": endpoint.auth_key},
        }
        call = partial(
            webpush,
            subscription_info=subscription_info,
            data=payload,
            vapid_private_key=self._vapid_private_key,
            vapid_claims={"sub": self._vapid_subject},
            ttl=self._ttl_seconds,
            timeout=self._timeout,
        )

        started = time.perf_counter()
        try:
            response = await to_thread.run_sync(call)
        except WebPushException as exc:
            latency = elapsed_ms(started)
            status_code = exc.response.status_code if exc.response is not None else None
            permanent = status_code in PERMANENT_FAILURE_STATUS_CODES
            if permanent:
                logger.warning("Push subscription %s is gone (status %s)", endpoint.id, status_code)
            else:
                logger.warning("WebPush error for subscription %s: %s", endpoint.id, exc)
            return SendOutcome.failed(
                exc.message or str(exc),
                latency_ms=latency,
                status_code=status_code,
                permanent=permanent,
            )
        except Exception as exc:
            # Connection errors and timeouts raised by the underlying requests session.
            latency = elapsed_ms(started)
            logger.warning("Push transport error for subscription %s: %s", endpoint.id, exc)
            return SendOutcome.failed(str(exc) or exc.__class__.__name__, latency_ms=latency)

        latency = elapsed_ms(started)
        headers = getattr(response, "headers", None) or {}
        message_id = headers.get("Location") or uuid.uuid4().hex
        return SendOutcome.succeeded(
            message_id=message_id,
            latency_ms=latency,
            status_code=getattr(response, "status_code", None),
        )


__all__ = ["DEFAULT_BADGE", "DEFAULT_ICON", "PushChannelAdapter"]
