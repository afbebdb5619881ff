"""Shared fixtures: an in-memory database and scriptable channel adapters."""

from __future__ import annotations

import asyncio
import json
import os
from collections.abc import Callable
from datetime import datetime

import pytest

os.environ.setdefault("DATABASE_URL", "sqlite://")

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from controls_dispatch.domain.entities import (
    CHANNEL_PUSH,
    CHANNEL_SLACK,
    CHANNEL_TEAMS,
    DeliveryEndpoint,
    OutboundNotification,
    SendOutcome,
)
from controls_dispatch.infrastructure import models  # noqa: F401
from controls_dispatch.infrastructure.channels import ChannelAdapter, ChannelAdapterRegistry
from controls_dispatch.infrastructure.database import Base
from controls_dispatch.infrastructure.repositories import EndpointRepository


class ScriptedAdapter(ChannelAdapter):
    """Adapter whose outcomes are keyed by endpoint address.

    Addresses without a scripted outcome succeed. A scripted exception is
    raised from ``send``.
    """

    def __init__(self, channel: str, *, delay: float = 0.0) -> None:
        self.channel = channel
        self.delay = delay
        self.outcomes: dict[str, SendOutcome | Exception] = {}
        self.sent: list[tuple[str, str]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    def build_payload(
        self, message: OutboundNotification, *, sent_at: datetime | None = None
    ) -> str:
        return json.dumps({"title": message.title, "body": message.body})

    async def send(self, endpoint: DeliveryEndpoint, payload: str) -> SendOutcome:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            self.sent.append((endpoint.endpoint, payload))
            outcome = self.outcomes.get(endpoint.endpoint)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome or SendOutcome.succeeded(message_id="msg-1", latency_ms=12, status_code=201)
        finally:
            self.in_flight -= 1


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def session(session_factory) -> Session:
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def push_adapter() -> ScriptedAdapter:
    return ScriptedAdapter(CHANNEL_PUSH)


@pytest.fixture()
def slack_adapter() -> ScriptedAdapter:
    return ScriptedAdapter(CHANNEL_SLACK)


@pytest.fixture()
def teams_adapter() -> ScriptedAdapter:
    return ScriptedAdapter(CHANNEL_TEAMS)


@pytest.fixture()
def registry(push_adapter, slack_adapter, teams_adapter) -> ChannelAdapterRegistry:
    return ChannelAdapterRegistry([push_adapter, slack_adapter, teams_adapter])


@pytest.fixture()
def add_endpoint(session) -> Callable[..., DeliveryEndpoint]:
    """Persist an endpoint; push subscriptions get keys unless overridden."""

    counter = {"value": 0}

    def _add(channel: str = CHANNEL_PUSH, **overrides) -> DeliveryEndpoint:
        counter["value"] += 1
        values = {
            "user_id": 1,
            "endpoint": f"https://push.example.com/{channel}/{counter['value']}",
        }
        if channel == CHANNEL_PUSH:
            values.update(p256dh_key="p256dh-key", auth_key="auth-key", device_type="desktop")
        values.update(overrides)
        return EndpointRepository(session).create(DeliveryEndpoint(id=None, channel=channel, **values))

    return _add
