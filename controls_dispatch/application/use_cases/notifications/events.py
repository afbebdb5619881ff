"""Report workflow notifications delivered over every channel a user allows."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import date

import anyio
from sqlalchemy.orm import Session

from controls_dispatch.application.use_cases.dispatch import FanOutDispatcher
from controls_dispatch.application.use_cases.preferences import PreferenceResolver
from controls_dispatch.config import get_settings
from controls_dispatch.domain.entities import (
    CHANNEL_EMAIL,
    CHANNEL_PUSH,
    CHANNEL_REALTIME,
    Notification,
    NotificationPriority,
    OutboundNotification,
    ReportNotificationContext,
    TargetFilter,
    User,
)
from controls_dispatch.infrastructure.email import EmailResult, render_notification_email, send_email
from controls_dispatch.infrastructure.notifications import dispatch_notification
from controls_dispatch.infrastructure.repositories import NotificationRepository, UserRepository
from controls_dispatch.utils import now_in_app_timezone

logger = logging.getLogger(__name__)

EmailSender = Callable[[str, str, str], EmailResult]


@dataclass(frozen=True)
class WorkflowMessage:
    notification_type: str
    event_type: str
    priority: NotificationPriority
    category: str
    title: str
    message: str


@dataclass
class WorkflowChannels:
    """Collaborators used to reach a recipient on each channel."""

    resolver: PreferenceResolver
    dispatcher: FanOutDispatcher | None = None
    email_sender: EmailSender = send_email
    base_url: str = field(default_factory=lambda: get_settings().app_base_url)

    def report_url(self, report_id: int) -> str:
        return f"{self.base_url.rstrip('/')}/reports/{report_id}"


def build_report_context(
    user: User, *, report_id: int, title: str, due_date: date | None = None
) -> ReportNotificationContext:
    return ReportNotificationContext(
        report_id=report_id,
        title=title,
        due_date=due_date,
        recipient_id=user.id,
        recipient_name=user.name,
        recipient_email=user.email,
        department=user.department,
    )


def _persist_notification(
    session: Session, context: ReportNotificationContext, message: WorkflowMessage
) -> Notification:
    notification = Notification(
        id=None,
        user_id=context.recipient_id,
        event_type=message.event_type,
        title=message.title,
        message=message.message,
        payload={
            "report_id": context.report_id,
            "notification_type": message.notification_type,
            "priority": message.priority.label,
            "category": message.category,
        },
        created_at=now_in_app_timezone(),
        read_at=None,
    )
    saved = NotificationRepository(session).create(notification)
    dispatch_notification(saved)
    return saved


async def _deliver(
    session: Session,
    context: ReportNotificationContext,
    message: WorkflowMessage,
    channels: WorkflowChannels,
) -> None:
    resolver = channels.resolver
    recipient = context.recipient_id
    url = channels.report_url(context.report_id)

    if resolver.should_deliver(recipient, message.notification_type, message.priority, CHANNEL_REALTIME):
        _persist_notification(session, context, message)

    if context.recipient_email and resolver.should_deliver(
        recipient, message.notification_type, message.priority, CHANNEL_EMAIL
    ):
        body = render_notification_email(
            message.title,
            [f"Hello {context.recipient_name},", message.message],
            action_label="Open report",
            action_url=url,
        )
        result = await anyio.to_thread.run_sync(
            channels.email_sender, context.recipient_email, message.title, body
        )
        if not result.success:
            logger.warning(
                "Email for %s to user %s was not sent: %s",
                message.notification_type,
                recipient,
                result.error,
            )

    if channels.dispatcher is not None and resolver.should_deliver(
        recipient, message.notification_type, message.priority, CHANNEL_PUSH
    ):
        await channels.dispatcher.send(
            OutboundNotification(
                title=message.title,
                body=message.message,
                notification_type=message.notification_type,
                priority=message.priority,
                category=message.category,
                url=url,
                tag=f"report-{context.report_id}",
                data={"report_id": context.report_id},
                user_id=recipient,
            ),
            TargetFilter.build(user_ids=[recipient], channels=[CHANNEL_PUSH]),
        )


async def _notify_each(
    session: Session,
    contexts: Iterable[ReportNotificationContext],
    build: Callable[[ReportNotificationContext], WorkflowMessage],
    channels: WorkflowChannels,
) -> int:
    sent = 0
    for context in contexts:
        try:
            await _deliver(session, context, build(context), channels)
        except Exception:
            session.rollback()
            logger.exception(
                "Error notifying user %s about report %s", context.recipient_id, context.report_id
            )
            continue
        sent += 1
    return sent


def _with_comments(text: str, label: str, comments: str | None) -> str:
    return f"{text} {label}: {comments}" if comments else text


async def notify_report_submitted(
    session: Session,
    *,
    report_id: int,
    title: str,
    submitter_id: int,
    channels: WorkflowChannels,
    due_date: date | None = None,
) -> bool:
    """Tell the reviewers of the submitter's department that a report awaits review."""

    try:
        users = UserRepository(session)
        submitter = users.get(submitter_id)
        if submitter is None:
            logger.info("Submitter %s not found; report %s not announced", submitter_id, report_id)
            return False
        reviewers = [
            reviewer
            for reviewer in users.list_reviewers(submitter.department)
            if reviewer.id != submitter.id
        ]
        message = WorkflowMessage(
            notification_type="ReportSubmitted",
            event_type="report.submitted",
            priority=NotificationPriority.MEDIUM,
            category="approvals",
            title="Report Submitted for Review",
            message=f"Report '{title}' has been submitted by {submitter.name} and is awaiting review.",
        )
        contexts = [
            build_report_context(reviewer, report_id=report_id, title=title, due_date=due_date)
            for reviewer in reviewers
        ]
        await _notify_each(session, contexts, lambda _context: message, channels)
        logger.info("Report submission workflow completed for report %s", report_id)
        return True
    except Exception:
        logger.exception("Error handling report submission workflow for report %s", report_id)
        return False


async def notify_report_approved(
    session: Session,
    *,
    context: ReportNotificationContext,
    channels: WorkflowChannels,
    comments: str | None = None,
) -> bool:
    message = WorkflowMessage(
        notification_type="ReportApproved",
        event_type="report.approved",
        priority=NotificationPriority.HIGH,
        category="approvals",
        title="Report Approved",
        message=_with_comments(
            f"Your report '{context.title}' has been approved.", "Comments", comments
        ),
    )
    try:
        await _deliver(session, context, message, channels)
    except Exception:
        logger.exception("Error handling report approval workflow for report %s", context.report_id)
        return False
    logger.info("Report approval workflow completed for report %s", context.report_id)
    return True


async def notify_report_rejected(
    session: Session,
    *,
    context: ReportNotificationContext,
    channels: WorkflowChannels,
    comments: str | None = None,
) -> bool:
    message = WorkflowMessage(
        notification_type="ReportRejected",
        event_type="report.rejected",
        priority=NotificationPriority.HIGH,
        category="approvals",
        title="Report Requires Revision",
        message=_with_comments(
            f"Your report '{context.title}' requires revision.", "Feedback", comments
        ),
    )
    try:
        await _deliver(session, context, message, channels)
    except Exception:
        logger.exception("Error handling report rejection workflow for report %s", context.report_id)
        return False
    logger.info("Report rejection workflow completed for report %s", context.report_id)
    return True


async def send_due_reminders(
    session: Session,
    *,
    contexts: Iterable[ReportNotificationContext],
    channels: WorkflowChannels,
    today: date | None = None,
    days_before: int = 3,
) -> int:
    """Remind owners of reports due after ``today`` and within ``days_before`` days."""

    today = today or now_in_app_timezone().date()
    due_soon = [
        context
        for context in contexts
        if context.due_date is not None and 0 < (context.due_date - today).days <= days_before
    ]

    def build(context: ReportNotificationContext) -> WorkflowMessage:
        days = (context.due_date - today).days
        return WorkflowMessage(
            notification_type="DueDateReminder",
            event_type="report.due_soon",
            priority=NotificationPriority.MEDIUM,
            category="deadlines",
            title="Report Due Soon",
            message=(
                f"Your report '{context.title}' is due in {days} days. "
                "Please complete and submit it soon."
            ),
        )

    sent = await _notify_each(session, due_soon, build, channels)
    logger.info("Sent %s due report reminders", sent)
    return sent


async def send_overdue_notifications(
    session: Session,
    *,
    contexts: Iterable[ReportNotificationContext],
    channels: WorkflowChannels,
    today: date | None = None,
) -> int:
    today = today or now_in_app_timezone().date()
    overdue = [
        context for context in contexts if context.due_date is not None and context.due_date < today
    ]

    def build(context: ReportNotificationContext) -> WorkflowMessage:
        days = (today - context.due_date).days
        return WorkflowMessage(
            notification_type="ReportOverdue",
            event_type="report.overdue",
            priority=NotificationPriority.CRITICAL,
            category="deadlines",
            title="URGENT: Report Overdue",
            message=f"Your report '{context.title}' is {days} days overdue. Please submit immediately.",
        )

    sent = await _notify_each(session, overdue, build, channels)
    logger.info("Sent %s overdue report notifications", sent)
    return sent


async def send_review_pending_reminders(
    session: Session,
    *,
    report_id: int,
    title: str,
    department: str | None,
    channels: WorkflowChannels,
    due_date: date | None = None,
) -> int:
    """Remind every reviewer of ``department`` that the report still waits."""

    reviewers = UserRepository(session).list_reviewers(department)
    contexts = [
        build_report_context(reviewer, report_id=report_id, title=title, due_date=due_date)
        for reviewer in reviewers
    ]
    message = WorkflowMessage(
        notification_type="ReviewPending",
        event_type="report.review_pending",
        priority=NotificationPriority.MEDIUM,
        category="reminders",
        title="Report Pending Review",
        message=f"Report '{title}' is pending your review.",
    )
    sent = await _notify_each(session, contexts, lambda _context: message, channels)
    logger.info("Sent %s review pending reminders for report %s", sent, report_id)
    return sent


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
