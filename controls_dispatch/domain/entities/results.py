"""Structured results returned by the dispatch operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Generic, TypeVar

T = TypeVar("T")

NO_TARGETS_MESSAGE = "No active endpoints found for the specified criteria"


def _rate(successful: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return round(min(successful, total) / total * 100, 2)


@dataclass(frozen=True)
class SendOutcome:
    """Result of handing one payload to one endpoint's transport."""

    success: bool
    message_id: str | None = None
    error: str | None = None
    latency_ms: int = 0
    status_code: int | None = None
    permanent: bool = False

    @classmethod
    def succeeded(
        cls, *, message_id: str | None, latency_ms: int, status_code: int | None = None
    ) -> "SendOutcome":
        return cls(True, message_id=message_id, latency_ms=latency_ms, status_code=status_code)

    @classmethod
    def failed(
        cls,
        error: str,
        *,
        latency_ms: int = 0,
        status_code: int | None = None,
        permanent: bool = False,
    ) -> "SendOutcome":
        return cls(
            False,
            error=error,
            latency_ms=latency_ms,
            status_code=status_code,
            permanent=permanent,
        )


@dataclass
class DeliveryReport:
    total_targeted: int = 0
    successful_deliveries: int = 0
    failed_deliveries: int = 0
    delivery_time_ms: int = 0
    errors: list[str] = field(default_factory=list)
    notification_id: str | None = None
    message: str | None = None

    @property
    def success_rate(self) -> float:
        return _rate(self.successful_deliveries, self.total_targeted)

    @property
    def success(self) -> bool:
        return not self.errors and self.failed_deliveries == 0

    def add_error(self, error: str | None) -> None:
        if error and error not in self.errors:
            self.errors.append(error)

    def record(self, outcome: SendOutcome) -> None:
        if outcome.success:
            self.successful_deliveries += 1
        else:
            self.failed_deliveries += 1
            self.add_error(outcome.error)


@dataclass(frozen=True)
class EndpointCheckResult:
    success: bool
    response_time_ms: int
    status_message: str


@dataclass
class BulkOperationResult:
    operation: str
    total_items: int = 0
    found_items: int = 0
    successful_items: int = 0
    failed_items: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def success_rate(self) -> float:
        return _rate(self.successful_items, self.total_items)


@dataclass
class RetrySummary:
    attempted: int = 0
    retried_count: int = 0
    errors: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class DailyStatSummary:
    stat_date: date
    channel: str
    sent: int
    failed: int
    received: int
    average_response_ms: float


@dataclass
class AggregateStats:
    start_date: date
    end_date: date
    total_sent: int = 0
    total_failed: int = 0
    total_received: int = 0
    average_response_ms: float = 0.0
    min_response_ms: int | None = None
    max_response_ms: int | None = None
    by_channel: dict[str, dict[str, int]] = field(default_factory=dict)
    daily: list[DailyStatSummary] = field(default_factory=list)

    @property
    def success_rate(self) -> float:
        return _rate(self.total_sent, self.total_sent + self.total_failed)


@dataclass(frozen=True)
class ServiceResult(Generic[T]):
    """Success flag plus either data or an error message."""

    success: bool
    data: T | None = None
    error_message: str | None = None

    @classmethod
    def ok(cls, data: T | None = None) -> "ServiceResult[T]":
        return cls(True, data=data)

    @classmethod
    def fail(cls, error_message: str, data: Any = None) -> "ServiceResult[T]":
        return cls(False, data=data, error_message=error_message)


__all__ = [
    "NO_TARGETS_MESSAGE",
    "SendOutcome",
    "DeliveryReport",
    "EndpointCheckResult",
    "BulkOperationResult",
    "RetrySummary",
    "DailyStatSummary",
    "AggregateStats",
    "ServiceResult",
]
