"""Notification repository."""

from typing import List, Optional, cast

from sqlalchemy.orm import Session

from app.core.logging import get_logger
from app.models.notification import Notification
from app.repositories.base_repo import BaseRepo
from app.schemas.notification import NotificationRecord

logger = get_logger(__name__)


class NotificationRepo(BaseRepo):
    """Notification repository.

    Mutations here are scoped by row id only; ownership is checked by
    NotificationService before any of them is reached.
    """

    def _create_implementation(
        self,
        session: Session,
        user_id: int,
        title: str,
        message: str,
        type: str,
        target_id: Optional[int],
    ) -> NotificationRecord:
        notification = Notification(
            user_id=user_id,
            title=title,
            message=message,
            type=type,
            target_id=target_id,
            is_read=False,
        )
        session.add(notification)
        session.flush()

        logger.info(
            f"Created notification: {notification.id} ({type}) for user {user_id}"
        )
        return NotificationRecord.model_validate(notification)

    def create(
        self,
        user_id: int,
        title: str,
        message: str,
        type: str,
        target_id: Optional[int] = None,
        session: Optional[Session] = None,
    ) -> NotificationRecord:
        """Create a notification for a user."""
        return cast(
            NotificationRecord,
            self._execute_with_session(
                lambda s: self._create_implementation(
                    s, user_id, title, message, type, target_id
                ),
                session=session,
                operation_name="create_notification",
            ),
        )

    def _get_by_user_id_implementation(
        self, session: Session, user_id: int, page: int, limit: int
    ) -> List[NotificationRecord]:
        offset = self._offset(page, limit)
        rows = (
            session.query(Notification)
            .filter(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return [NotificationRecord.model_validate(row) for row in rows]

    def get_by_user_id(
        self,
        user_id: int,
        page: int = 1,
        limit: int = 20,
        session: Optional[Session] = None,
    ) -> List[NotificationRecord]:
        """Get a page of a user's notifications, newest first."""
        return cast(
            List[NotificationRecord],
            self._execute_with_session(
                lambda s: self._get_by_user_id_implementation(s, user_id, page, limit),
                session=session,
                operation_name="get_notifications_by_user_id",
            ),
        )

    def _get_owned_implementation(
        self, session: Session, notification_id: int, user_id: int
    ) -> Optional[NotificationRecord]:
        row = (
            session.query(Notification)
            .filter(Notification.id == notification_id, Notification.user_id == user_id)
            .one_or_none()
        )
        return NotificationRecord.model_validate(row) if row else None

    def get_owned(
        self, notification_id: int, user_id: int, session: Optional[Session] = None
    ) -> Optional[NotificationRecord]:
        """Get a notification only if it belongs to the given user."""
        return cast(
            Optional[NotificationRecord],
            self._execute_with_session(
                lambda s: self._get_owned_implementation(s, notification_id, user_id),
                session=session,
                operation_name="get_owned_notification",
            ),
        )

    def count_unread(self, user_id: int, session: Optional[Session] = None) -> int:
        """Count a user's unread notifications."""
        return cast(
            int,
            self._execute_with_session(
                lambda s: s.query(Notification)
                .filter(
                    Notification.user_id == user_id, Notification.is_read.is_(False)
                )
                .count(),
                session=session,
                operation_name="count_unread_notifications",
            ),
        )

    def mark_as_read(
        self, notification_id: int, session: Optional[Session] = None
    ) -> bool:
        """Mark one notification as read."""
        return cast(
            bool,
            self._execute_with_session(
                lambda s: bool(
                    s.query(Notification)
                    .filter(Notification.id == notification_id)
                    .update({Notification.is_read: True}, synchronize_session=False)
                ),
                session=session,
                operation_name="mark_notification_read",
            ),
        )

    def mark_all_as_read(self, user_id: int, session: Optional[Session] = None) -> int:
        """Mark all of a user's unread notifications as read."""
        return cast(
            int,
            self._execute_with_session(
                lambda s: int(
                    s.query(Notification)
                    .filter(
                        Notification.user_id == user_id,
                        Notification.is_read.is_(False),
                    )
                    .update({Notification.is_read: True}, synchronize_session=False)
                ),
                session=session,
                operation_name="mark_all_notifications_read",
            ),
        )

    def delete(self, notification_id: int, session: Optional[Session] = None) -> bool:
        """Delete one notification."""
        return cast(
            bool,
            self._execute_with_session(
                lambda s: bool(
                    s.query(Notification)
                    .filter(Notification.id == notification_id)
                    .delete(synchronize_session=False)
                ),
                session=session,
                operation_name="delete_notification",
            ),
        )
