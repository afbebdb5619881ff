"""FastAPI dependency utilities."""

from functools import lru_cache

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from controls_dispatch.application.use_cases.dispatch import FanOutDispatcher, RetrySweep
from controls_dispatch.application.use_cases.preferences import PreferenceResolver
from controls_dispatch.config import Settings, get_settings
from controls_dispatch.domain.entities import NotificationTypeDefaults
from controls_dispatch.infrastructure.channels import (
    ChannelAdapterRegistry,
    ChatRateLimiter,
    build_channel_registry,
)
from controls_dispatch.infrastructure.database import get_db
from controls_dispatch.infrastructure.repositories import PreferenceRepository


def get_current_user_id(
    x_user_id: int | None = Header(default=None, alias="X-User-Id"),
) -> int:
    """Return the acting user's id forwarded by the authentication gateway."""

    if x_user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Id header",
        )
    return x_user_id


def get_app_settings() -> Settings:
    return get_settings()


@lru_cache
def get_channel_registry() -> ChannelAdapterRegistry:
    """Return the shared adapter registry built from the current settings."""

    return build_channel_registry(get_settings())


@lru_cache
def get_rate_limiter() -> ChatRateLimiter:
    return ChatRateLimiter(get_settings().rate_limit_per_minute)


@lru_cache
def get_notification_defaults() -> NotificationTypeDefaults:
    return NotificationTypeDefaults.standard()


def get_dispatcher(
    db: Session = Depends(get_db),
    registry: ChannelAdapterRegistry = Depends(get_channel_registry),
    settings: Settings = Depends(get_app_settings),
) -> FanOutDispatcher:
    return FanOutDispatcher(
        db,
        registry=registry,
        max_concurrency=settings.max_concurrency,
        recent_activity_days=settings.recent_activity_days,
    )


def get_retry_sweep(
    db: Session = Depends(get_db),
    registry: ChannelAdapterRegistry = Depends(get_channel_registry),
    settings: Settings = Depends(get_app_settings),
) -> RetrySweep:
    return RetrySweep(
        db,
        registry=registry,
        lookback_hours=settings.failure_lookback_hours,
        delay_ms=settings.rate_limit_delay_ms,
    )


def get_preference_resolver(
    db: Session = Depends(get_db),
    defaults: NotificationTypeDefaults = Depends(get_notification_defaults),
) -> PreferenceResolver:
    return PreferenceResolver(PreferenceRepository(db), defaults)


__all__ = [
    "get_app_settings",
    "get_channel_registry",
    "get_current_user_id",
    "get_dispatcher",
    "get_notification_defaults",
    "get_preference_resolver",
    "get_rate_limiter",
    "get_retry_sweep",
]
