import asyncio
from datetime import date, timedelta

import pytest

import controls_dispatch.application.use_cases.notifications.events as events
from controls_dispatch.application.use_cases.dispatch import FanOutDispatcher
from controls_dispatch.application.use_cases.notifications import (
    WorkflowChannels,
    build_report_context,
    notify_report_approved,
    notify_report_rejected,
    notify_report_submitted,
    send_due_reminders,
    send_overdue_notifications,
    send_review_pending_reminders,
)
from controls_dispatch.application.use_cases.preferences import PreferenceResolver, set_preference
from controls_dispatch.domain.entities import NotificationTypeDefaults, User
from controls_dispatch.infrastructure.email import EmailResult
from controls_dispatch.infrastructure.repositories import (
    NotificationRepository,
    PreferenceRepository,
    UserRepository,
)

TODAY = date(2024, 6, 3)
DEFAULTS = NotificationTypeDefaults.standard()


class EmailOutbox:
    def __init__(self):
        self.sent = []
        self.failing = set()

    def __call__(self, to, subject, body):
        if to in self.failing:
            raise RuntimeError("smtp down")
        self.sent.append((to, subject, body))
        return EmailResult(True, message_id="mail-1")


@pytest.fixture()
def realtime(monkeypatch):
    published = []
    monkeypatch.setattr(events, "dispatch_notification", published.append)
    return published


@pytest.fixture()
def outbox():
    return EmailOutbox()


@pytest.fixture()
def channels(session, registry, outbox):
    return WorkflowChannels(
        resolver=PreferenceResolver(PreferenceRepository(session), DEFAULTS),
        dispatcher=FanOutDispatcher(session, registry=registry),
        email_sender=outbox,
        base_url="https://controls.example.com/",
    )


@pytest.fixture()
def users(session):
    repository = UserRepository(session)

    def create(name, role, department="Operations"):
        return repository.create(
            User(id=None, name=name, email=f"{name.lower()}@example.com", role=role, department=department)
        )

    return {
        "author": create("Ana", "Staff"),
        "manager": create("Bruno", "LineManager"),
        "gm": create("Carla", "GM"),
        "other": create("Dario", "LineManager", department="Finance"),
    }


def _context(user, *, report_id=10, title="Monthly cost report", due_date=None):
    return build_report_context(user, report_id=report_id, title=title, due_date=due_date)


def test_report_url_joins_the_base_url(channels):
    assert channels.report_url(7) == "https://controls.example.com/reports/7"


def test_submission_reaches_department_reviewers(
    session, channels, users, outbox, realtime, push_adapter, add_endpoint
):
    add_endpoint(user_id=users["manager"].id)
    add_endpoint(user_id=users["other"].id)

    handled = asyncio.run(
        notify_report_submitted(
            session,
            report_id=10,
            title="Monthly cost report",
            submitter_id=users["author"].id,
            channels=channels,
        )
    )

    assert handled is True
    assert sorted(to for to, _, _ in outbox.sent) == ["bruno@example.com", "carla@example.com"]
    assert sorted(n.user_id for n in realtime) == sorted([users["manager"].id, users["gm"].id])
    assert len(push_adapter.sent) == 1
    stored = NotificationRepository(session).list_for_user(users["gm"].id)
    assert stored[0].event_type == "report.submitted"
    assert stored[0].message == (
        "Report 'Monthly cost report' has been submitted by Ana and is awaiting review."
    )
    assert stored[0].payload["report_id"] == 10
    assert NotificationRepository(session).list_for_user(users["other"].id) == []


def test_submission_by_unknown_user_is_not_announced(session, channels, outbox, realtime):
    handled = asyncio.run(
        notify_report_submitted(
            session, report_id=10, title="Report", submitter_id=404, channels=channels
        )
    )

    assert handled is False
    assert outbox.sent == []


def test_approval_includes_comments_and_skips_push(
    session, channels, users, outbox, realtime, push_adapter, add_endpoint
):
    author = users["author"]
    add_endpoint(user_id=author.id)

    handled = asyncio.run(
        notify_report_approved(
            session, context=_context(author), channels=channels, comments="Well done"
        )
    )

    assert handled is True
    assert realtime[0].title == "Report Approved"
    assert realtime[0].message == (
        "Your report 'Monthly cost report' has been approved. Comments: Well done"
    )
    assert realtime[0].payload["priority"] == "High"
    to, subject, body = outbox.sent[0]
    assert (to, subject) == ("ana@example.com", "Report Approved")
    assert 'href="https://controls.example.com/reports/10"' in body
    assert push_adapter.sent == []


def test_rejection_respects_stored_preferences(session, channels, users, outbox, realtime):
    author = users["author"]
    set_preference(
        session,
        user_id=author.id,
        notification_type="ReportRejected",
        defaults=DEFAULTS,
        email_enabled=False,
    )

    handled = asyncio.run(
        notify_report_rejected(
            session, context=_context(author), channels=channels, comments="Fix totals"
        )
    )

    assert handled is True
    assert outbox.sent == []
    assert realtime[0].message.endswith("requires revision. Feedback: Fix totals")


def test_due_reminders_cover_the_window(session, channels, users, outbox, realtime):
    author = users["author"]
    contexts = [
        _context(author, report_id=1, due_date=TODAY + timedelta(days=1)),
        _context(author, report_id=2, due_date=TODAY + timedelta(days=3)),
        _context(author, report_id=3, due_date=TODAY + timedelta(days=5)),
        _context(author, report_id=4, due_date=TODAY),
        _context(author, report_id=5, due_date=None),
    ]

    sent = asyncio.run(
        send_due_reminders(session, contexts=contexts, channels=channels, today=TODAY)
    )

    assert sent == 2
    assert [n.payload["report_id"] for n in realtime] == [1, 2]
    assert realtime[0].message == (
        "Your report 'Monthly cost report' is due in 1 days. Please complete and submit it soon."
    )


def test_overdue_notifications(session, channels, users, outbox, realtime, push_adapter, add_endpoint):
    author = users["author"]
    add_endpoint(user_id=author.id)
    contexts = [
        _context(author, report_id=1, due_date=TODAY - timedelta(days=2)),
        _context(author, report_id=2, due_date=TODAY),
    ]

    sent = asyncio.run(
        send_overdue_notifications(session, contexts=contexts, channels=channels, today=TODAY)
    )

    assert sent == 1
    assert realtime[0].title == "URGENT: Report Overdue"
    assert realtime[0].message == (
        "Your report 'Monthly cost report' is 2 days overdue. Please submit immediately."
    )
    assert realtime[0].payload["priority"] == "Critical"
    assert len(push_adapter.sent) == 1


def test_failure_for_one_recipient_does_not_stop_the_rest(session, channels, users, outbox, realtime):
    outbox.failing.add("bruno@example.com")

    sent = asyncio.run(
        send_review_pending_reminders(
            session,
            report_id=10,
            title="Monthly cost report",
            department="Operations",
            channels=channels,
        )
    )

    assert sent == 1
    assert [to for to, _, _ in outbox.sent] == ["carla@example.com"]


def test_email_result_failure_is_logged_not_raised(session, users, realtime, caplog):
    channels = WorkflowChannels(
        resolver=PreferenceResolver(PreferenceRepository(session), DEFAULTS),
        email_sender=lambda to, subject, body: EmailResult(False, error="quota exceeded"),
        base_url="https://controls.example.com",
    )

    handled = asyncio.run(
        notify_report_approved(session, context=_context(users["author"]), channels=channels)
    )

    assert handled is True
    assert "quota exceeded" in caplog.text
