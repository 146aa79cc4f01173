"""Notification service for business logic."""

from typing import List, Optional

from app.core.enums import NotificationType
from app.core.exceptions import NotFoundError
from app.core.logging import get_logger
from app.repositories.notification_repo import NotificationRepo
from app.repositories.user_repo import UserRepo
from app.schemas.notification import NotificationRecord

logger = get_logger(__name__)

PREVIEW_MAX_LENGTH = 50
ELLIPSIS = "..."


def build_preview(text: str) -> str:
    """Shorten a message body to at most PREVIEW_MAX_LENGTH characters."""
    if len(text) <= PREVIEW_MAX_LENGTH:
        return text
    return text[: PREVIEW_MAX_LENGTH - len(ELLIPSIS)] + ELLIPSIS


def message_title(sender_name: str, car_title: Optional[str] = None) -> str:
    if car_title:
        return f"New message from {sender_name} about {car_title}"
    return f"New message from {sender_name}"


class NotificationService:
    """Notification service for business logic.

    Every mutation of an existing notification goes through an ownership
    check against the acting user.
    """

    def __init__(self, notification_repo: NotificationRepo, user_repo: UserRepo):
        self.notification_repo = notification_repo
        self.user_repo = user_repo

    def create_message_notification(
        self,
        receiver_id: int,
        sender_id: int,
        conversation_id: int,
        preview: str,
        car_title: Optional[str] = None,
    ) -> NotificationRecord:
        """
        Notify a user about a new message.

        The title names the sender and, when known, the car listing; the body
        is the shortened message text.

        Raises:
            NotFoundError: If the sender does not resolve to a known user.
        """
        sender = self.user_repo.get_user_by_id(sender_id)
        if sender is None:
            raise NotFoundError("Sender not found")

        return self.notification_repo.create(
            user_id=receiver_id,
            title=message_title(sender.display_name, car_title),
            message=build_preview(preview),
            type=NotificationType.MESSAGE.value,
            target_id=conversation_id,
        )

    def list_notifications(
        self, user_id: int, page: int = 1, limit: int = 20
    ) -> List[NotificationRecord]:
        return self.notification_repo.get_by_user_id(user_id, page, limit)

    def count_unread(self, user_id: int) -> int:
        return self.notification_repo.count_unread(user_id)

    def _require_owned(self, notification_id: int, user_id: int) -> NotificationRecord:
        notification = self.notification_repo.get_owned(notification_id, user_id)
        if notification is None:
            raise NotFoundError("Notification not found or not authorized")
        return notification

    def mark_as_read(self, notification_id: int, user_id: int) -> bool:
        """Mark one of the user's notifications as read."""
        self._require_owned(notification_id, user_id)
        return self.notification_repo.mark_as_read(notification_id)

    def mark_all_as_read(self, user_id: int) -> int:
        count = self.notification_repo.mark_all_as_read(user_id)
        logger.info(f"Marked {count} notifications read for user {user_id}")
        return count

    def delete(self, notification_id: int, user_id: int) -> bool:
        """Delete one of the user's notifications."""
        self._require_owned(notification_id, user_id)
        return self.notification_repo.delete(notification_id)
