"""SQLAlchemy models for delivery messages, failures and daily statistics."""

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)

from controls_dispatch.infrastructure.database import Base
from controls_dispatch.utils import now_in_app_naive_datetime


class DeliveryMessageModel(Base):
    """One rendered payload sent, or queued, for one endpoint."""

    __tablename__ = "delivery_message"

    id = Column(Integer, primary_key=True, index=True)
    endpoint_id = Column(Integer, ForeignKey("delivery_endpoint.id", ondelete="SET NULL"), nullable=True, index=True)
    user_id = Column(Integer, nullable=True, index=True)
    channel = Column(String(20), nullable=False, index=True)
    target = Column(String(1000), nullable=False)
    payload = Column(Text, nullable=False)
    notification_type = Column(String(50), nullable=True)
    status = Column(String(20), nullable=False, default="pending", index=True)
    status_code = Column(Integer, nullable=True)
    error_message = Column(Text, nullable=True)
    response_time_ms = Column(Integer, nullable=True)
    message_id = Column(String(255), nullable=True)
    created_at = Column(DateTime(), nullable=False, default=now_in_app_naive_datetime, index=True)
    sent_at = Column(DateTime(), nullable=True)
    received_at = Column(DateTime(), nullable=True)


class DeliveryFailureModel(Base):
    """A failed delivery stored with the exact payload for replay."""

    __tablename__ = "delivery_failure"

    id = Column(Integer, primary_key=True, index=True)
    message_id = Column(Integer, ForeignKey("delivery_message.id", ondelete="SET NULL"), nullable=True)
    endpoint_id = Column(Integer, nullable=True, index=True)
    user_id = Column(Integer, nullable=True)
    channel = Column(String(20), nullable=False)
    target = Column(String(1000), nullable=False)
    payload = Column(Text, nullable=True)
    error_message = Column(Text, nullable=True)
    status_code = Column(Integer, nullable=True)
    retry_count = Column(Integer, nullable=False, default=0)
    next_retry_at = Column(DateTime(), nullable=True)
    resolved = Column(Boolean, nullable=False, default=False, index=True)
    resolved_at = Column(DateTime(), nullable=True)
    failed_at = Column(DateTime(), nullable=False, default=now_in_app_naive_datetime, index=True)


class DeliveryDailyStatModel(Base):
    """Per day counters for one channel and endpoint group."""

    __tablename__ = "delivery_daily_stat"
    __table_args__ = (
        UniqueConstraint("channel", "endpoint_group", "stat_date", name="uq_daily_stat_key"),
    )

    id = Column(Integer, primary_key=True, index=True)
    channel = Column(String(20), nullable=False)
    endpoint_group = Column(String(50), nullable=False)
    stat_date = Column(Date, nullable=False, index=True)
    sent = Column(Integer, nullable=False, default=0)
    failed = Column(Integer, nullable=False, default=0)
    received = Column(Integer, nullable=False, default=0)
    total_response_ms = Column(Integer, nullable=False, default=0)
    min_response_ms = Column(Integer, nullable=True)
    max_response_ms = Column(Integer, nullable=True)


__all__ = ["DeliveryMessageModel", "DeliveryFailureModel", "DeliveryDailyStatModel"]
