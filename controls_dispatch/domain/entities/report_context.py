"""Report details carried by workflow notifications."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class ReportNotificationContext:
    """Report and recipient fields needed to address one workflow message."""

    report_id: int
    title: str
    due_date: date | None
    recipient_id: int
    recipient_name: str
    recipient_email: str | None
    department: str | None = None


__all__ = ["ReportNotificationContext"]
