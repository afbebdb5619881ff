"""Domain entities exposed by the application."""

from .channel import (
    CHANNEL_EMAIL,
    CHANNEL_PUSH,
    CHANNEL_REALTIME,
    CHANNEL_SLACK,
    CHANNEL_SMS,
    CHANNEL_TEAMS,
    CHAT_CHANNELS,
    ENDPOINT_CHANNELS,
    NOTIFICATION_CATEGORIES,
    PREFERENCE_CHANNELS,
    QUIET_HOURS_CHANNELS,
)
from .chat_template import ChatTemplate
from .delivery import (
    MESSAGE_STATUS_FAILED,
    MESSAGE_STATUS_PENDING,
    MESSAGE_STATUS_SENT,
    TERMINAL_MESSAGE_STATUSES,
    DailyStat,
    DeliveryMessage,
    FailureRecord,
)
from .endpoint import DeliveryEndpoint
from .notification import Notification
from .outbound import NotificationAction, NotificationFact, OutboundNotification, TargetFilter
from .preference import (
    DEFAULT_SCHEDULE,
    DEFAULT_TIMEZONE,
    STANDARD_NOTIFICATION_TYPES,
    NotificationPreference,
    NotificationTypeDefault,
    NotificationTypeDefaults,
)
from .priority import NotificationPriority
from .report_context import ReportNotificationContext
from .results import (
    NO_TARGETS_MESSAGE,
    AggregateStats,
    BulkOperationResult,
    DailyStatSummary,
    DeliveryReport,
    EndpointCheckResult,
    RetrySummary,
    SendOutcome,
    ServiceResult,
)
from .user import REVIEWER_ROLES, User

__all__ = [
    "CHANNEL_EMAIL",
    "CHANNEL_PUSH",
    "CHANNEL_REALTIME",
    "CHANNEL_SLACK",
    "CHANNEL_SMS",
    "CHANNEL_TEAMS",
    "CHAT_CHANNELS",
    "ENDPOINT_CHANNELS",
    "NOTIFICATION_CATEGORIES",
    "PREFERENCE_CHANNELS",
    "QUIET_HOURS_CHANNELS",
    "ChatTemplate",
    "MESSAGE_STATUS_FAILED",
    "MESSAGE_STATUS_PENDING",
    "MESSAGE_STATUS_SENT",
    "TERMINAL_MESSAGE_STATUSES",
    "DailyStat",
    "DeliveryMessage",
    "FailureRecord",
    "DeliveryEndpoint",
    "Notification",
    "NotificationAction",
    "NotificationFact",
    "OutboundNotification",
    "TargetFilter",
    "DEFAULT_SCHEDULE",
    "DEFAULT_TIMEZONE",
    "STANDARD_NOTIFICATION_TYPES",
    "NotificationPreference",
    "NotificationTypeDefault",
    "NotificationTypeDefaults",
    "NotificationPriority",
    "ReportNotificationContext",
    "NO_TARGETS_MESSAGE",
    "AggregateStats",
    "BulkOperationResult",
    "DailyStatSummary",
    "DeliveryReport",
    "EndpointCheckResult",
    "RetrySummary",
    "SendOutcome",
    "ServiceResult",
    "REVIEWER_ROLES",
    "User",
]
