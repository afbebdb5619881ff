"""Use cases applying the system defaults table to a user."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from controls_dispatch.domain.entities import NotificationTypeDefault, NotificationTypeDefaults
from controls_dispatch.infrastructure.repositories import PreferenceRepository

logger = logging.getLogger(__name__)


def list_notification_types(defaults: NotificationTypeDefaults) -> list[NotificationTypeDefault]:
    return sorted(defaults, key=lambda entry: (entry.category, entry.display_name))


def initialize_default_preferences(
    session: Session, *, user_id: int, defaults: NotificationTypeDefaults
) -> int:
    """Store a default preference for every type the user has not configured."""

    repository = PreferenceRepository(session)
    existing = {preference.notification_type for preference in repository.list_for_user(user_id)}
    created = 0
    for notification_type in defaults.types():
        if notification_type in existing:
            continue
        repository.upsert(defaults.build_preference(user_id, notification_type))
        created += 1
    logger.info("Initialized %s default notification preferences for user %s", created, user_id)
    return created


def reset_preferences_to_defaults(
    session: Session, *, user_id: int, defaults: NotificationTypeDefaults
) -> int:
    """Drop every stored preference of the user and store the defaults again."""

    repository = PreferenceRepository(session)
    removed = repository.delete_for_user(user_id)
    for notification_type in defaults.types():
        repository.upsert(defaults.build_preference(user_id, notification_type))
    logger.info(
        "Reset notification preferences for user %s (%s removed, %s restored)",
        user_id,
        removed,
        len(defaults),
    )
    return len(defaults)


__all__ = [
    "initialize_default_preferences",
    "list_notification_types",
    "reset_preferences_to_defaults",
]
