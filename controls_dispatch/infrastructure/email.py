"""Utility helpers for sending transactional email notifications via SendGrid."""

from __future__ import annotations

import html
import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from controls_dispatch.config import get_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmailResult:
    """Outcome of an email send: a message id on success, an error otherwise."""

    success: bool
    message_id: str | None = None
    error: str | None = None


def _extract_sendgrid_error_details(body: Any) -> str | None:
    """Return a human readable description for a SendGrid error payload."""

    if body in (None, ""):
        return None

    if isinstance(body, bytes):
        try:
            body = body.decode("utf-8")
        except UnicodeDecodeError:
            return None

    if isinstance(body, str):
        body = body.strip()
        if not body:
            return None
        try:
            parsed = json.loads(body)
        except json.JSONDecodeError:
            return body
    else:
        parsed = body

    if isinstance(parsed, dict):
        errors = parsed.get("errors")
        if isinstance(errors, list):
            messages: list[str] = []
            for item in errors:
                if not isinstance(item, dict):
                    continue
                message = item.get("message")
                help_link = item.get("help")
                if message and help_link:
                    messages.append(f"{message} (help: {help_link})")
                elif message:
                    messages.append(str(message))
            if messages:
                return "; ".join(messages)
        try:
            return json.dumps(parsed)
        except (TypeError, ValueError):
            return None

    if isinstance(parsed, list):
        return "; ".join(str(item) for item in parsed)

    return None


def _describe_sendgrid_exception(exc: Exception) -> str:
    """Log a SendGrid API error and return a short description of it."""

    status_code = getattr(exc, "status_code", None)
    details = _extract_sendgrid_error_details(getattr(exc, "body", None))

    if status_code and details:
        logger.error("SendGrid API request failed with status %s: %s", status_code, details)
        return f"SendGrid status {status_code}: {details}"
    if status_code:
        logger.error("SendGrid API request failed with status %s", status_code)
        return f"SendGrid status {status_code}"
    if details:
        logger.error("SendGrid API request failed: %s", details)
        return details
    logger.exception("Error sending email via SendGrid: %s", exc)
    return str(exc) or exc.__class__.__name__


def _message_id_from_response(response: Any) -> str | None:
    headers = getattr(response, "headers", None)
    if not headers:
        return None
    try:
        return headers.get("X-Message-Id")
    except AttributeError:
        return None


def send_email(to: str, subject: str, html_body: str) -> EmailResult:
    """Send an email using the configured SendGrid credentials."""

    settings = get_settings()
    if not (settings.sendgrid_api_key and settings.sendgrid_sender):
        logger.info("SendGrid configuration incomplete; skipping email delivery")
        return EmailResult(False, error="Email delivery is not configured")

    message = Mail(
        from_email=settings.sendgrid_sender,
        to_emails=to,
        subject=subject,
        html_content=html_body,
    )

    try:
        client = SendGridAPIClient(settings.sendgrid_api_key)
        response = client.send(message)
    except Exception as exc:  # pragma: no cover - network failures depend on environment
        return EmailResult(False, error=_describe_sendgrid_exception(exc))

    status_code = getattr(response, "status_code", None)
    if not isinstance(status_code, int) or not 200 <= status_code < 300:
        details = _extract_sendgrid_error_details(getattr(response, "body", None))
        if details:
            logger.error("SendGrid API responded with status %s: %s", status_code, details)
        else:
            logger.error("SendGrid API responded with status %s", status_code)
        return EmailResult(False, error=f"SendGrid status {status_code}")

    return EmailResult(True, message_id=_message_id_from_response(response))


def render_notification_email(
    heading: str,
    paragraphs: Sequence[str],
    *,
    action_label: str | None = None,
    action_url: str | None = None,
) -> str:
    """Build the HTML body shared by workflow emails."""

    parts = [f"<h2>{html.escape(heading)}</h2>"]
    parts.extend(f"<p>{html.escape(paragraph)}</p>" for paragraph in paragraphs)
    if action_label and action_url:
        parts.append(
            f'<p><a href="{html.escape(action_url, quote=True)}">{html.escape(action_label)}</a></p>'
        )
    parts.append("<p>This is an automated message from the Project Controls Reporting Tool.</p>")
    return "".join(parts)


__all__ = ["EmailResult", "render_notification_email", "send_email"]
