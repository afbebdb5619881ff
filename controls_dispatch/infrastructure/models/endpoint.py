"""SQLAlchemy model for push subscriptions and chat webhooks."""

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text, UniqueConstraint

from controls_dispatch.infrastructure.database import Base
from controls_dispatch.utils import now_in_app_naive_datetime


class DeliveryEndpointModel(Base):
    """Database representation of a delivery endpoint."""

    __tablename__ = "delivery_endpoint"
    __table_args__ = (UniqueConstraint("channel", "endpoint", name="uq_delivery_endpoint_target"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=True, index=True)
    channel = Column(String(20), nullable=False, index=True)
    name = Column(String(120), nullable=True)
    endpoint = Column(String(1000), nullable=False)
    p256dh_key = Column(String(255), nullable=True)
    auth_key = Column(String(255), nullable=True)
    default_channel = Column(String(100), nullable=True)
    username = Column(String(100), nullable=True)
    icon_emoji = Column(String(50), nullable=True)
    device_type = Column(String(50), nullable=True)
    device_name = Column(String(120), nullable=True)
    user_agent = Column(String(500), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    has_permission = Column(Boolean, nullable=False, default=True)
    enabled_for_reports = Column(Boolean, nullable=False, default=True)
    enabled_for_approvals = Column(Boolean, nullable=False, default=True)
    enabled_for_deadlines = Column(Boolean, nullable=False, default=True)
    enabled_for_announcements = Column(Boolean, nullable=False, default=True)
    enabled_for_mentions = Column(Boolean, nullable=False, default=True)
    enabled_for_reminders = Column(Boolean, nullable=False, default=True)
    minimum_priority = Column(String(20), nullable=False, default="Low")
    successful_deliveries = Column(Integer, nullable=False, default=0)
    failed_deliveries = Column(Integer, nullable=False, default=0)
    last_error = Column(Text, nullable=True)
    last_used_at = Column(DateTime(), nullable=True)
    created_at = Column(DateTime(), nullable=False, default=now_in_app_naive_datetime)
    updated_at = Column(DateTime(), nullable=True)


__all__ = ["DeliveryEndpointModel"]
