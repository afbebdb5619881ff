"""Common interface for channel delivery adapters."""

from __future__ import annotations

import json
import logging
import time
import uuid
from abc import ABC, abstractmethod
from collections.abc import Sequence
from datetime import datetime
from typing import Any

import httpx

from controls_dispatch.domain.entities import DeliveryEndpoint, OutboundNotification, SendOutcome

from .validation import validate_webhook_url

logger = logging.getLogger(__name__)

PERMANENT_FAILURE_STATUS_CODES = frozenset({404, 410})
_ERROR_BODY_LIMIT = 200


def elapsed_ms(started: float) -> int:
    return int(round((time.perf_counter() - started) * 1000))


def encode_payload(body: dict[str, Any]) -> str:
    return json.dumps(body, ensure_ascii=False, separators=(",", ":"))


class ChannelAdapter(ABC):
    """Build a channel's native payload and hand it to the channel transport.

    ``send`` never raises for delivery problems; it returns a
    :class:`SendOutcome` whose ``permanent`` flag marks endpoints that will
    never accept a message again.
    """

    channel: str

    @abstractmethod
    def build_payload(
        self, message: OutboundNotification, *, sent_at: datetime | None = None
    ) -> str:
        """Render ``message`` into the serialized body sent to every endpoint."""

    @abstractmethod
    async def send(self, endpoint: DeliveryEndpoint, payload: str) -> SendOutcome:
        """Deliver ``payload`` to ``endpoint``."""

    def validate_endpoint(self, address: str) -> str:
        return address


class WebhookChannelAdapter(ChannelAdapter):
    """Adapter for incoming-webhook chat channels posting JSON over HTTPS."""

    provider: str
    allowed_hosts: Sequence[str]

    def __init__(
        self,
        *,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
        max_message_length: int | None = 4000,
    ) -> None:
        self._timeout = timeout
        self._client = client
        self._max_message_length = max_message_length

    def validate_endpoint(self, address: str) -> str:
        return validate_webhook_url(address, provider=self.provider, allowed_hosts=self.allowed_hosts)

    async def send(self, endpoint: DeliveryEndpoint, payload: str) -> SendOutcome:
        url = endpoint.endpoint
        started = time.perf_counter()
        try:
            response = await self._post(url, payload)
        except httpx.TimeoutException:
            latency = elapsed_ms(started)
            logger.warning("%s webhook %s timed out after %sms", self.provider, endpoint.id, latency)
            return SendOutcome.failed(
                f"Request timed out after {self._timeout:g}s", latency_ms=latency
            )
        except httpx.HTTPError as exc:
            latency = elapsed_ms(started)
            logger.warning("%s webhook %s request failed: %s", self.provider, endpoint.id, exc)
            return SendOutcome.failed(
                f"Request failed: {exc or exc.__class__.__name__}", latency_ms=latency
            )

        latency = elapsed_ms(started)
        if 200 <= response.status_code < 300:
            return SendOutcome.succeeded(
                message_id=self._message_id(response),
                latency_ms=latency,
                status_code=response.status_code,
            )

        body = response.text[:_ERROR_BODY_LIMIT] if response.text else ""
        error = f"HTTP {response.status_code}: {body}" if body else f"HTTP {response.status_code}"
        permanent = response.status_code in PERMANENT_FAILURE_STATUS_CODES
        logger.warning(
            "%s webhook %s rejected the message (status %s, permanent=%s)",
            self.provider,
            endpoint.id,
            response.status_code,
            permanent,
        )
        return SendOutcome.failed(
            error, latency_ms=latency, status_code=response.status_code, permanent=permanent
        )

    async def _post(self, url: str, payload: str) -> httpx.Response:
        headers = {"Content-Type": "application/json"}
        if self._client is not None:
            return await self._client.post(url, content=payload, headers=headers, timeout=self._timeout)
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            return await client.post(url, content=payload, headers=headers)

    @staticmethod
    def _message_id(response: httpx.Response) -> str:
        return response.headers.get("x-request-id") or response.headers.get("request-id") or uuid.uuid4().hex


__all__ = [
    "ChannelAdapter",
    "PERMANENT_FAILURE_STATUS_CODES",
    "WebhookChannelAdapter",
    "elapsed_ms",
    "encode_payload",
]
