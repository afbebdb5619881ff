"""Test client wired to the in-memory database and scripted adapters."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from controls_dispatch.infrastructure.channels import ChatRateLimiter
from controls_dispatch.infrastructure.database import get_db
from controls_dispatch.interfaces.api.dependencies import get_channel_registry, get_rate_limiter
from main import create_app


@pytest.fixture()
def rate_limiter() -> ChatRateLimiter:
    return ChatRateLimiter(2)


@pytest.fixture()
def client(session_factory, registry, rate_limiter):
    """Return a test client whose sessions and adapters come from the fixtures."""

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app = create_app()
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_channel_registry] = lambda: registry
    app.dependency_overrides[get_rate_limiter] = lambda: rate_limiter

    with TestClient(app) as test_client:
        yield test_client
