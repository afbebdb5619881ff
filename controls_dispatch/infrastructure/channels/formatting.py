"""Template rendering and theme colors shared by the chat channels."""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

MESSAGE_TYPE_SUCCESS = "success"
MESSAGE_TYPE_WARNING = "warning"
MESSAGE_TYPE_ERROR = "error"
MESSAGE_TYPE_ALERT = "alert"
MESSAGE_TYPE_INFORMATION = "information"

THEME_COLORS: dict[str, str] = {
    MESSAGE_TYPE_SUCCESS: "00FF00",
    MESSAGE_TYPE_WARNING: "FFAA00",
    MESSAGE_TYPE_ERROR: "FF0000",
    MESSAGE_TYPE_ALERT: "FF6600",
    MESSAGE_TYPE_INFORMATION: "0078D4",
}

_MESSAGE_TYPE_BY_NOTIFICATION: dict[str, str] = {
    "ReportApproved": MESSAGE_TYPE_SUCCESS,
    "ReportRejected": MESSAGE_TYPE_ERROR,
    "EscalationNotice": MESSAGE_TYPE_ALERT,
    "DueDateReminder": MESSAGE_TYPE_WARNING,
    "SecurityAlert": MESSAGE_TYPE_ERROR,
    "SystemAlert": MESSAGE_TYPE_ALERT,
}

_PLACEHOLDER = re.compile(r"\{\{\s*(?P<double>[\w.-]+)\s*\}\}|\{(?P<single>[\w.-]+)\}")


def render_template(template: str | None, variables: Mapping[str, Any] | None) -> str:
    """Substitute ``{{name}}`` and ``{name}`` placeholders in one pass.

    Placeholders without a matching variable are left untouched.
    """

    if not template:
        return ""
    if not variables:
        return template

    def _replace(match: re.Match[str]) -> str:
        key = match.group("double") or match.group("single")
        if key not in variables:
            return match.group(0)
        value = variables[key]
        return "" if value is None else str(value)

    return _PLACEHOLDER.sub(_replace, template)


def message_type_for(notification_type: str | None) -> str:
    return _MESSAGE_TYPE_BY_NOTIFICATION.get(notification_type or "", MESSAGE_TYPE_INFORMATION)


def theme_color_for(
    notification_type: str | None,
    *,
    message_type: str | None = None,
    override: str | None = None,
) -> str:
    """Return the hex color (without ``#``) used to accent a chat card."""

    if override:
        return override.lstrip("#").upper()
    kind = (message_type or "").lower() or message_type_for(notification_type)
    return THEME_COLORS.get(kind, THEME_COLORS[MESSAGE_TYPE_INFORMATION])


def truncate(text: str, limit: int | None) -> str:
    if limit is None or len(text) <= limit:
        return text
    if limit <= 3:
        return text[:limit]
    return text[: limit - 3] + "..."


__all__ = [
    "MESSAGE_TYPE_ALERT",
    "MESSAGE_TYPE_ERROR",
    "MESSAGE_TYPE_INFORMATION",
    "MESSAGE_TYPE_SUCCESS",
    "MESSAGE_TYPE_WARNING",
    "THEME_COLORS",
    "message_type_for",
    "render_template",
    "theme_color_for",
    "truncate",
]
