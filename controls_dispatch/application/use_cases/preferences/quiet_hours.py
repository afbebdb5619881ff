"""Use case setting the same quiet hours on every preference of a user."""

from __future__ import annotations

import logging
from dataclasses import replace

from sqlalchemy.orm import Session

from controls_dispatch.infrastructure.repositories import PreferenceRepository

from .validators import ensure_quiet_window, ensure_timezone

logger = logging.getLogger(__name__)


def update_quiet_hours(
    session: Session,
    *,
    user_id: int,
    start: str | None,
    end: str | None,
    timezone: str | None,
) -> int:
    """Apply the window to all stored preferences; empty bounds clear it."""

    start, end = ensure_quiet_window(start, end)
    timezone = ensure_timezone(timezone)
    repository = PreferenceRepository(session)
    preferences = repository.list_for_user(user_id)
    for preference in preferences:
        repository.upsert(
            replace(
                preference,
                quiet_hours_start=start,
                quiet_hours_end=end,
                timezone=timezone,
            )
        )
    logger.info("Updated quiet hours for %s preferences for user %s", len(preferences), user_id)
    return len(preferences)


__all__ = ["update_quiet_hours"]
