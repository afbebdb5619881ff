"""Repository implementations for infrastructure layer."""

from .chat_template_repository import ChatTemplateRepository
from .daily_stat_repository import DailyStatRepository
from .delivery_message_repository import DeliveryMessageRepository
from .endpoint_repository import UPDATABLE_FIELDS, EndpointRepository
from .failure_repository import FailureRepository
from .notification_repository import NotificationRepository
from .preference_repository import PreferenceRepository
from .user_repository import UserRepository

__all__ = [
    "ChatTemplateRepository",
    "DailyStatRepository",
    "DeliveryMessageRepository",
    "EndpointRepository",
    "UPDATABLE_FIELDS",
    "FailureRepository",
    "NotificationRepository",
    "PreferenceRepository",
    "UserRepository",
]
