"""Delivery attempt records, failure records and daily statistics."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

MESSAGE_STATUS_PENDING = "pending"
MESSAGE_STATUS_SENT = "sent"
MESSAGE_STATUS_FAILED = "failed"
TERMINAL_MESSAGE_STATUSES = frozenset({MESSAGE_STATUS_SENT, MESSAGE_STATUS_FAILED})


@dataclass
class DeliveryMessage:
    """One send of a rendered payload to one endpoint."""

    id: int | None
    channel: str
    target: str
    payload: str
    status: str = MESSAGE_STATUS_PENDING
    endpoint_id: int | None = None
    user_id: int | None = None
    notification_type: str | None = None
    status_code: int | None = None
    error_message: str | None = None
    response_time_ms: int | None = None
    message_id: str | None = None
    created_at: datetime | None = None
    sent_at: datetime | None = None
    received_at: datetime | None = None

    def is_terminal(self) -> bool:
        return self.status in TERMINAL_MESSAGE_STATUSES


@dataclass
class FailureRecord:
    """A failed delivery kept with its payload so it can be replayed."""

    id: int | None
    channel: str
    target: str
    payload: str | None
    error_message: str | None = None
    status_code: int | None = None
    message_id: int | None = None
    endpoint_id: int | None = None
    user_id: int | None = None
    retry_count: int = 0
    next_retry_at: datetime | None = None
    resolved: bool = False
    resolved_at: datetime | None = None
    failed_at: datetime | None = None


@dataclass
class DailyStat:
    """Per day counters for a channel and endpoint group."""

    id: int | None
    channel: str
    endpoint_group: str
    stat_date: date
    sent: int = 0
    failed: int = 0
    received: int = 0
    total_response_ms: int = 0
    min_response_ms: int | None = None
    max_response_ms: int | None = None

    @property
    def attempts(self) -> int:
        return self.sent + self.failed

    @property
    def average_response_ms(self) -> float:
        if self.attempts == 0:
            return 0.0
        return round(self.total_response_ms / self.attempts, 2)


__all__ = [
    "MESSAGE_STATUS_PENDING",
    "MESSAGE_STATUS_SENT",
    "MESSAGE_STATUS_FAILED",
    "TERMINAL_MESSAGE_STATUSES",
    "DeliveryMessage",
    "FailureRecord",
    "DailyStat",
]
