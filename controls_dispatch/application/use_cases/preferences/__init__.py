"""Use cases for notification preferences and delivery decisions."""

from .defaults import (
    initialize_default_preferences,
    list_notification_types,
    reset_preferences_to_defaults,
)
from .manage_preferences import (
    bulk_update_preferences,
    delete_preference,
    get_preference,
    list_preferences,
    set_preference,
    update_preference,
)
from .quiet_hours import update_quiet_hours
from .resolver import (
    DeliveryDecision,
    PreferenceResolver,
    is_within_quiet_hours,
    preference_in_quiet_hours,
)
from .stats import (
    PreferenceStats,
    get_system_preference_stats,
    get_user_preference_stats,
    summarize_preferences,
)

__all__ = [
    "initialize_default_preferences",
    "list_notification_types",
    "reset_preferences_to_defaults",
    "bulk_update_preferences",
    "delete_preference",
    "get_preference",
    "list_preferences",
    "set_preference",
    "update_preference",
    "update_quiet_hours",
    "DeliveryDecision",
    "PreferenceResolver",
    "is_within_quiet_hours",
    "preference_in_quiet_hours",
    "PreferenceStats",
    "get_system_preference_stats",
    "get_user_preference_stats",
    "summarize_preferences",
]
