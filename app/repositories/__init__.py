"""Repository layer for data access."""

from .car_repo import CarRepo
from .conversation_repo import ConversationRepo
from .message_repo import MessageRepo
from .notification_repo import NotificationRepo
from .transaction import transaction_scope
from .user_repo import UserRepo

__all__ = [
    "UserRepo",
    "CarRepo",
    "ConversationRepo",
    "MessageRepo",
    "NotificationRepo",
    "transaction_scope",
]
