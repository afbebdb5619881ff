"""Application configuration settings."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = ".env"
ENV_FILE_ENCODING = "utf-8"


class Settings(BaseSettings):
    """Application configuration values loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=ENV_FILE, env_file_encoding=ENV_FILE_ENCODING)

    database_url: str = Field(
        description="Database connection URL used by SQLAlchemy to connect to the DB",
        min_length=1,
    )
    app_timezone: str = Field(
        default="UTC",
        description="IANA timezone used to timestamp persisted records",
    )
    app_base_url: str = Field(
        default="http://localhost:4200",
        description="Public URL of the client application, used for links in notifications",
    )
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:4200"],
        description="Origins allowed to call the API from a browser",
    )
    sendgrid_api_key: str | None = Field(
        default=None,
        description="SendGrid API key used for sending transactional emails via the REST API",
    )
    sendgrid_sender: str | None = Field(
        default=None,
        description="Email address that will appear as the sender of transactional messages",
        min_length=3,
    )
    vapid_private_key: str | None = Field(
        default=None,
        description="VAPID private key used to sign Web Push requests",
    )
    vapid_public_key: str | None = Field(
        default=None,
        description="VAPID public key handed to browsers when they subscribe",
    )
    vapid_subject: str = Field(
        default="mailto:notifications@example.com",
        description="Contact URI sent in the VAPID claims",
    )
    push_default_icon: str = Field(default="/assets/logo.png")
    push_default_badge: str = Field(default="/assets/badge.png")
    push_ttl_seconds: int = Field(
        default=86400,
        description="Seconds a push service keeps an undelivered message",
        gt=0,
    )
    max_subscriptions_per_user: int = Field(
        default=10,
        description="Maximum number of active push subscriptions kept per user",
        gt=0,
    )
    delivery_timeout_seconds: float = Field(
        default=30.0,
        description="Timeout applied to every outbound transport call",
        gt=0,
    )
    max_concurrency: int = Field(
        default=5,
        description="Maximum number of in-flight sends during a fan-out",
        gt=0,
    )
    rate_limit_per_minute: int = Field(
        default=30,
        description="Messages allowed per user and chat webhook within one minute",
        gt=0,
    )
    rate_limit_delay_ms: int = Field(
        default=1000,
        description="Pause inserted between consecutive chat sends in bulk and retry sweeps",
        ge=0,
    )
    allowed_slack_channels: list[str] = Field(
        default_factory=list,
        description="Slack channels messages may target; empty allows any channel",
    )
    max_message_length: int = Field(default=4000, gt=0)
    failure_lookback_hours: int = Field(default=24, gt=0)
    recent_activity_days: int = Field(default=30, gt=0)
    retention_days: int = Field(default=90, gt=0)
    pending_batch_size: int = Field(default=100, gt=0)
    reminder_days_before_due: int = Field(default=3, ge=0)

    @model_validator(mode="after")
    def _validate_credential_pairs(self) -> "Settings":
        if bool(self.sendgrid_api_key) ^ bool(self.sendgrid_sender):
            raise ValueError(
                "SENDGRID_API_KEY and SENDGRID_SENDER must both be provided to enable email"
            )
        if self.sendgrid_sender and "@" not in self.sendgrid_sender:
            raise ValueError("SENDGRID_SENDER must be a valid email address")
        if bool(self.vapid_private_key) ^ bool(self.vapid_public_key):
            raise ValueError(
                "VAPID_PRIVATE_KEY and VAPID_PUBLIC_KEY must both be provided to enable push"
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()


def reset_settings_cache() -> None:
    """Clear the settings cache to force reloading from the environment."""

    get_settings.cache_clear()


__all__ = ["Settings", "get_settings", "reset_settings_cache"]
