"""Summaries of stored notification preferences."""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.orm import Session

from controls_dispatch.domain.entities import NotificationPreference
from controls_dispatch.infrastructure.repositories import PreferenceRepository


@dataclass(frozen=True)
class PreferenceStats:
    total_preferences: int
    email_enabled_count: int
    realtime_enabled_count: int
    push_enabled_count: int
    sms_enabled_count: int
    has_quiet_hours: bool
    most_common_priority: str
    last_updated: datetime | None


def summarize_preferences(preferences: Sequence[NotificationPreference]) -> PreferenceStats:
    priorities = Counter(preference.minimum_priority for preference in preferences)
    timestamps = [
        preference.updated_at or preference.created_at
        for preference in preferences
        if preference.updated_at or preference.created_at
    ]
    return PreferenceStats(
        total_preferences=len(preferences),
        email_enabled_count=sum(1 for p in preferences if p.email_enabled),
        realtime_enabled_count=sum(1 for p in preferences if p.realtime_enabled),
        push_enabled_count=sum(1 for p in preferences if p.push_enabled),
        sms_enabled_count=sum(1 for p in preferences if p.sms_enabled),
        has_quiet_hours=any(p.has_quiet_hours() for p in preferences),
        most_common_priority=priorities.most_common(1)[0][0] if priorities else "Medium",
        last_updated=max(timestamps) if timestamps else None,
    )


def get_user_preference_stats(session: Session, *, user_id: int) -> PreferenceStats:
    return summarize_preferences(PreferenceRepository(session).list_for_user(user_id))


def get_system_preference_stats(session: Session) -> PreferenceStats:
    return summarize_preferences(PreferenceRepository(session).list_all())


__all__ = [
    "PreferenceStats",
    "get_system_preference_stats",
    "get_user_preference_stats",
    "summarize_preferences",
]
