"""Use cases delivering notifications to push devices and chat webhooks."""

from .bulk import BULK_OPERATIONS, bulk_operation
from .check_endpoint import TEST_MESSAGE, build_test_notification, check_endpoint
from .endpoints import (
    delete_endpoint,
    get_endpoint,
    list_user_endpoints,
    register_push_subscription,
    search_endpoints,
    update_endpoint,
)
from .fan_out import FanOutDispatcher
from .maintenance import (
    CleanupSummary,
    PendingSweepSummary,
    cleanup_old_data,
    enqueue_message,
    process_pending_messages,
    rebuild_daily_statistics,
)
from .recorder import DeliveryRecorder
from .retry import RetrySweep, next_retry_delay
from .statistics import StatisticsAggregator, SubscriptionStats, record_delivery_receipt
from .targets import endpoint_group, endpoint_group_for, resolve_targets
from .webhooks import (
    TEMPLATE_NOT_FOUND_MESSAGE,
    WEBHOOK_INACTIVE_MESSAGE,
    WEBHOOK_NOT_FOUND_MESSAGE,
    build_template_message,
    create_chat_template,
    list_chat_templates,
    list_chat_webhooks,
    register_chat_webhook,
    send_bulk_chat_messages,
    send_chat_message,
    send_chat_template,
    update_chat_webhook,
)

__all__ = [
    "BULK_OPERATIONS",
    "bulk_operation",
    "TEST_MESSAGE",
    "build_test_notification",
    "check_endpoint",
    "delete_endpoint",
    "get_endpoint",
    "list_user_endpoints",
    "register_push_subscription",
    "search_endpoints",
    "update_endpoint",
    "FanOutDispatcher",
    "CleanupSummary",
    "PendingSweepSummary",
    "cleanup_old_data",
    "enqueue_message",
    "process_pending_messages",
    "rebuild_daily_statistics",
    "DeliveryRecorder",
    "RetrySweep",
    "next_retry_delay",
    "StatisticsAggregator",
    "SubscriptionStats",
    "record_delivery_receipt",
    "endpoint_group",
    "endpoint_group_for",
    "resolve_targets",
    "TEMPLATE_NOT_FOUND_MESSAGE",
    "WEBHOOK_INACTIVE_MESSAGE",
    "WEBHOOK_NOT_FOUND_MESSAGE",
    "build_template_message",
    "create_chat_template",
    "list_chat_templates",
    "list_chat_webhooks",
    "register_chat_webhook",
    "send_bulk_chat_messages",
    "send_chat_message",
    "send_chat_template",
    "update_chat_webhook",
]
