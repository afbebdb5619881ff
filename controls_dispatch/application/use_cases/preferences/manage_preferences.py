"""Use cases reading and writing a user's notification preferences."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any

from sqlalchemy.orm import Session

from controls_dispatch.domain.entities import NotificationPreference, NotificationTypeDefaults
from controls_dispatch.infrastructure.repositories import PreferenceRepository

from .validators import (
    ensure_known_type,
    ensure_priority,
    ensure_quiet_window,
    ensure_timezone,
)

logger = logging.getLogger(__name__)

_TOGGLE_FIELDS = ("email_enabled", "realtime_enabled", "push_enabled", "sms_enabled")


def list_preferences(session: Session, *, user_id: int) -> list[NotificationPreference]:
    """Return the preferences stored for ``user_id`` ordered by type."""

    preferences = list(PreferenceRepository(session).list_for_user(user_id))
    logger.info("Retrieved %s notification preferences for user %s", len(preferences), user_id)
    return preferences


def get_preference(
    session: Session,
    *,
    user_id: int,
    notification_type: str,
    defaults: NotificationTypeDefaults,
) -> NotificationPreference:
    """Return the stored preference or an unsaved one built from ``defaults``."""

    stored = PreferenceRepository(session).get(user_id, notification_type)
    if stored is not None:
        return stored
    ensure_known_type(defaults, notification_type)
    return defaults.build_preference(user_id, notification_type)


def set_preference(
    session: Session,
    *,
    user_id: int,
    notification_type: str,
    defaults: NotificationTypeDefaults,
    email_enabled: bool = True,
    realtime_enabled: bool = True,
    push_enabled: bool = False,
    sms_enabled: bool = False,
    minimum_priority: str = "Medium",
    quiet_hours_start: str | None = None,
    quiet_hours_end: str | None = None,
    timezone: str | None = "UTC",
    schedule: str = "Always",
) -> NotificationPreference:
    """Create or fully replace the preference for ``(user_id, notification_type)``."""

    notification_type = ensure_known_type(defaults, notification_type)
    start, end = ensure_quiet_window(quiet_hours_start, quiet_hours_end)
    preference = NotificationPreference(
        id=None,
        user_id=user_id,
        notification_type=notification_type,
        email_enabled=email_enabled,
        realtime_enabled=realtime_enabled,
        push_enabled=push_enabled,
        sms_enabled=sms_enabled,
        minimum_priority=ensure_priority(minimum_priority),
        quiet_hours_start=start,
        quiet_hours_end=end,
        timezone=ensure_timezone(timezone),
        schedule=schedule or "Always",
    )
    saved = PreferenceRepository(session).upsert(preference)
    logger.info("Set notification preference for user %s, type %s", user_id, notification_type)
    return saved


def update_preference(
    session: Session,
    *,
    user_id: int,
    notification_type: str,
    changes: dict[str, Any],
) -> NotificationPreference:
    """Apply the non-``None`` ``changes`` to an existing preference."""

    repository = PreferenceRepository(session)
    current = repository.get(user_id, notification_type)
    if current is None:
        raise ValueError(
            f"Notification preference not found for user {user_id} and type {notification_type}"
        )
    updated = _apply_changes(current, changes)
    return repository.upsert(updated)


def delete_preference(session: Session, *, user_id: int, notification_type: str) -> bool:
    deleted = PreferenceRepository(session).delete(user_id, notification_type)
    if deleted:
        logger.info("Deleted notification preference for user %s, type %s", user_id, notification_type)
    return deleted


def bulk_update_preferences(session: Session, *, user_id: int, changes: dict[str, Any]) -> int:
    """Apply ``changes`` to every stored preference of the user.

    Returns the number of preferences that received at least one change.
    """

    repository = PreferenceRepository(session)
    effective = {key: value for key, value in changes.items() if value is not None}
    if not effective:
        return 0
    updated_count = 0
    for preference in repository.list_for_user(user_id):
        repository.upsert(_apply_changes(preference, effective))
        updated_count += 1
    logger.info("Bulk updated %s notification preferences for user %s", updated_count, user_id)
    return updated_count


def _apply_changes(
    preference: NotificationPreference, changes: dict[str, Any]
) -> NotificationPreference:
    values: dict[str, Any] = {}
    for field_name in _TOGGLE_FIELDS:
        if changes.get(field_name) is not None:
            values[field_name] = bool(changes[field_name])
    if changes.get("minimum_priority") is not None:
        values["minimum_priority"] = ensure_priority(changes["minimum_priority"])
    if changes.get("timezone") is not None:
        values["timezone"] = ensure_timezone(changes["timezone"])
    if changes.get("schedule") is not None:
        values["schedule"] = changes["schedule"]
    start = changes.get("quiet_hours_start")
    end = changes.get("quiet_hours_end")
    if start is not None or end is not None:
        start, end = ensure_quiet_window(
            start if start is not None else preference.quiet_hours_start,
            end if end is not None else preference.quiet_hours_end,
        )
        values["quiet_hours_start"] = start
        values["quiet_hours_end"] = end
    return replace(preference, **values)


__all__ = [
    "bulk_update_preferences",
    "delete_preference",
    "get_preference",
    "list_preferences",
    "set_preference",
    "update_preference",
]
