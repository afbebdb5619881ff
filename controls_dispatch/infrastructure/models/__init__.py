"""ORM models used by the application infrastructure."""

from .chat_template import ChatTemplateModel
from .delivery import DeliveryDailyStatModel, DeliveryFailureModel, DeliveryMessageModel
from .endpoint import DeliveryEndpointModel
from .notification import NotificationModel
from .preference import NotificationPreferenceModel
from .user import UserModel

__all__ = [
    "ChatTemplateModel",
    "DeliveryDailyStatModel",
    "DeliveryFailureModel",
    "DeliveryMessageModel",
    "DeliveryEndpointModel",
    "NotificationModel",
    "NotificationPreferenceModel",
    "UserModel",
]
