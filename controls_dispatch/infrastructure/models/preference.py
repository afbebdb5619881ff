"""SQLAlchemy model for per user notification preferences."""

from sqlalchemy import Boolean, Column, DateTime, Integer, String, UniqueConstraint

from controls_dispatch.infrastructure.database import Base
from controls_dispatch.utils import now_in_app_naive_datetime


class NotificationPreferenceModel(Base):
    """Database representation of a user's settings for one notification type."""

    __tablename__ = "notification_preference"
    __table_args__ = (
        UniqueConstraint("user_id", "notification_type", name="uq_preference_user_type"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    notification_type = Column(String(50), nullable=False)
    email_enabled = Column(Boolean, nullable=False, default=True)
    realtime_enabled = Column(Boolean, nullable=False, default=True)
    push_enabled = Column(Boolean, nullable=False, default=False)
    sms_enabled = Column(Boolean, nullable=False, default=False)
    minimum_priority = Column(String(20), nullable=False, default="Medium")
    quiet_hours_start = Column(String(5), nullable=True)
    quiet_hours_end = Column(String(5), nullable=True)
    timezone = Column(String(64), nullable=False, default="UTC")
    schedule = Column(String(50), nullable=False, default="Always")
    created_at = Column(DateTime(), nullable=False, default=now_in_app_naive_datetime)
    updated_at = Column(DateTime(), nullable=True)


__all__ = ["NotificationPreferenceModel"]
