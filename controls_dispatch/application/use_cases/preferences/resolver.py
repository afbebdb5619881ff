"""Decide which channels fire for a user, notification type and priority."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, time
from typing import Protocol

from controls_dispatch.domain.entities import (
    CHANNEL_EMAIL,
    CHANNEL_PUSH,
    CHANNEL_REALTIME,
    CHANNEL_SMS,
    QUIET_HOURS_CHANNELS,
    NotificationPreference,
    NotificationPriority,
    NotificationTypeDefaults,
)
from controls_dispatch.utils import now_in_app_timezone, parse_clock, resolve_timezone

logger = logging.getLogger(__name__)


class PreferenceLookup(Protocol):
    def get(self, user_id: int, notification_type: str) -> NotificationPreference | None:
        ...

    def list_for_user(self, user_id: int) -> Sequence[NotificationPreference]:
        ...


@dataclass(frozen=True)
class DeliveryDecision:
    email: bool
    realtime: bool
    push: bool
    sms: bool
    in_quiet_hours: bool


def is_within_quiet_hours(start: time, end: time, current: time) -> bool:
    """Return ``True`` when ``current`` falls in the inclusive window.

    A window whose start is later than its end spans midnight.
    """

    if start <= end:
        return start <= current <= end
    return current >= start or current <= end


def preference_in_quiet_hours(preference: NotificationPreference, now: datetime) -> bool:
    """Evaluate the preference's quiet hours in its own timezone."""

    if not preference.has_quiet_hours():
        return False
    start = parse_clock(preference.quiet_hours_start or "")
    end = parse_clock(preference.quiet_hours_end or "")
    local_now = now.astimezone(resolve_timezone(preference.timezone))
    current = local_now.time().replace(second=0, microsecond=0)
    return is_within_quiet_hours(start, end, current)


class PreferenceResolver:
    """Resolve delivery decisions from stored preferences and a defaults table.

    Lookups never raise: any error is logged and resolves to no delivery.
    Quiet hours suppress email and push only.
    """

    def __init__(
        self,
        preferences: PreferenceLookup,
        defaults: NotificationTypeDefaults,
    ) -> None:
        self._preferences = preferences
        self._defaults = defaults

    def effective_preference(
        self, user_id: int, notification_type: str
    ) -> NotificationPreference | None:
        preference = self._preferences.get(user_id, notification_type)
        if preference is not None:
            return preference
        if notification_type not in self._defaults:
            return None
        return self._defaults.build_preference(user_id, notification_type)

    def should_deliver(
        self,
        user_id: int,
        notification_type: str,
        priority: NotificationPriority | str,
        channel: str,
        *,
        now: datetime | None = None,
    ) -> bool:
        try:
            preference = self.effective_preference(user_id, notification_type)
            if preference is None:
                return False
            return self._decide(preference, priority, channel, now or now_in_app_timezone())
        except Exception:
            logger.exception(
                "Could not resolve %s delivery for user %s and type %s",
                channel,
                user_id,
                notification_type,
            )
            return False

    def delivery_summary(
        self,
        user_id: int,
        notification_type: str,
        priority: NotificationPriority | str,
        *,
        now: datetime | None = None,
    ) -> DeliveryDecision:
        now = now or now_in_app_timezone()
        return DeliveryDecision(
            email=self.should_deliver(user_id, notification_type, priority, CHANNEL_EMAIL, now=now),
            realtime=self.should_deliver(
                user_id, notification_type, priority, CHANNEL_REALTIME, now=now
            ),
            push=self.should_deliver(user_id, notification_type, priority, CHANNEL_PUSH, now=now),
            sms=self.should_deliver(user_id, notification_type, priority, CHANNEL_SMS, now=now),
            in_quiet_hours=self.is_in_quiet_hours(user_id, notification_type, now=now),
        )

    def is_in_quiet_hours(
        self,
        user_id: int,
        notification_type: str | None = None,
        *,
        now: datetime | None = None,
    ) -> bool:
        """Without a type, any stored preference of the user in quiet hours counts."""

        now = now or now_in_app_timezone()
        try:
            if notification_type is None:
                return any(
                    preference_in_quiet_hours(preference, now)
                    for preference in self._preferences.list_for_user(user_id)
                )
            preference = self.effective_preference(user_id, notification_type)
            if preference is None:
                return False
            return preference_in_quiet_hours(preference, now)
        except Exception:
            logger.exception("Could not evaluate quiet hours for user %s", user_id)
            return False

    @staticmethod
    def _decide(
        preference: NotificationPreference,
        priority: NotificationPriority | str,
        channel: str,
        now: datetime,
    ) -> bool:
        if not preference.channel_enabled(channel):
            return False
        minimum = NotificationPriority.parse(preference.minimum_priority)
        if NotificationPriority.parse(priority) < minimum:
            return False
        if channel in QUIET_HOURS_CHANNELS and preference_in_quiet_hours(preference, now):
            return False
        return True


__all__ = [
    "DeliveryDecision",
    "PreferenceLookup",
    "PreferenceResolver",
    "is_within_quiet_hours",
    "preference_in_quiet_hours",
]
