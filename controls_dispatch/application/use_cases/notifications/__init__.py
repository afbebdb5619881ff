"""Public helpers for emitting report workflow notifications."""

from .events import (
    WorkflowChannels,
    WorkflowMessage,
    build_report_context,
    notify_report_approved,
    notify_report_rejected,
    notify_report_submitted,
    send_due_reminders,
    send_overdue_notifications,
    send_review_pending_reminders,
)

__all__ = [
    "WorkflowChannels",
    "WorkflowMessage",
    "build_report_context",
    "notify_report_approved",
    "notify_report_rejected",
    "notify_report_submitted",
    "send_due_reminders",
    "send_overdue_notifications",
    "send_review_pending_reminders",
]
