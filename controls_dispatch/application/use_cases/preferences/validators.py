"""Common validation helpers for preference use cases."""

from controls_dispatch.domain.entities import NotificationPriority, NotificationTypeDefaults
from controls_dispatch.utils import is_known_timezone, parse_clock


def ensure_known_type(defaults: NotificationTypeDefaults, notification_type: str) -> str:
    normalized = (notification_type or "").strip()
    if normalized not in defaults:
        raise ValueError(f"Unknown notification type: {notification_type}")
    return normalized


def ensure_priority(value: str) -> str:
    """Return the canonical label of ``value`` or raise ``ValueError``."""

    if not NotificationPriority.is_valid(value):
        raise ValueError(f"Invalid priority '{value}'")
    return NotificationPriority.parse(value).label


def ensure_clock(value: str | None) -> str | None:
    if value is None or value == "":
        return None
    return parse_clock(value).strftime("%H:%M")


def ensure_timezone(name: str | None) -> str:
    if not name:
        return "UTC"
    if not is_known_timezone(name):
        raise ValueError(f"Unknown timezone '{name}'")
    return name


def ensure_quiet_window(start: str | None, end: str | None) -> tuple[str | None, str | None]:
    """Both bounds must be given together; either both or neither."""

    start = ensure_clock(start)
    end = ensure_clock(end)
    if (start is None) != (end is None):
        raise ValueError("Quiet hours require both a start and an end time")
    return start, end


__all__ = [
    "ensure_clock",
    "ensure_known_type",
    "ensure_priority",
    "ensure_quiet_window",
    "ensure_timezone",
]
