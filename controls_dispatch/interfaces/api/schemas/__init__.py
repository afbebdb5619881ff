from .chat import (
    BulkChatMessageRequest,
    ChatMessageRequest,
    ChatTemplateCreate,
    ChatTemplateRead,
    ChatTemplateSendRequest,
    TemplateAction,
)
from .delivery import (
    ActionPayload,
    AggregateStatsRead,
    BulkOperationRequest,
    BulkOperationResultRead,
    DailyStatRead,
    DeliveryReportRead,
    FailureRead,
    NotificationPayload,
    ReceiptRead,
    RetryRequest,
    RetrySummaryRead,
    SendRequest,
    SubscriptionStatsRead,
    TargetFilterPayload,
)
from .endpoint import (
    ConnectionTestRead,
    EndpointRead,
    EndpointTestRequest,
    EndpointUpdate,
    PushSubscriptionCreate,
    PushSubscriptionKeys,
    WebhookCreate,
    WebhookRegistration,
)
from .notification import NotificationMarkReadRequest, NotificationRead
from .preference import (
    CountResponse,
    DeliveryDecisionRead,
    NotificationTypeRead,
    PreferenceRead,
    PreferenceStatsRead,
    PreferenceUpdate,
    PreferenceWrite,
    QuietHoursUpdate,
)

__all__ = [
    "BulkChatMessageRequest",
    "ChatMessageRequest",
    "ChatTemplateCreate",
    "ChatTemplateRead",
    "ChatTemplateSendRequest",
    "TemplateAction",
    "ActionPayload",
    "AggregateStatsRead",
    "BulkOperationRequest",
    "BulkOperationResultRead",
    "DailyStatRead",
    "DeliveryReportRead",
    "FailureRead",
    "NotificationPayload",
    "RetryRequest",
    "ReceiptRead",
    "RetrySummaryRead",
    "SendRequest",
    "SubscriptionStatsRead",
    "TargetFilterPayload",
    "ConnectionTestRead",
    "EndpointRead",
    "EndpointTestRequest",
    "EndpointUpdate",
    "PushSubscriptionCreate",
    "PushSubscriptionKeys",
    "WebhookCreate",
    "WebhookRegistration",
    "NotificationMarkReadRequest",
    "NotificationRead",
    "CountResponse",
    "DeliveryDecisionRead",
    "NotificationTypeRead",
    "PreferenceRead",
    "PreferenceStatsRead",
    "PreferenceUpdate",
    "PreferenceWrite",
    "QuietHoursUpdate",
]
