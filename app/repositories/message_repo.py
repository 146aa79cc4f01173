"""Message repository."""

from typing import List, Optional, cast

from sqlalchemy.orm import Session, aliased

from app.core.logging import get_logger
from app.models.message import Message
from app.models.user import User
from app.repositories.base_repo import BaseRepo
from app.schemas.conversation import MessageRecord

logger = get_logger(__name__)


class MessageRepo(BaseRepo):
    """Message repository."""

    def _create_message_implementation(
        self,
        session: Session,
        conversation_id: int,
        sender_id: int,
        receiver_id: int,
        car_id: int,
        text: str,
    ) -> Message:
        """Implementation of message creation."""
        logger.debug(
            f"Creating message in conversation {conversation_id} "
            f"from user {sender_id} to user {receiver_id}"
        )

        message = Message(
            conversation_id=conversation_id,
            sender_id=sender_id,
            receiver_id=receiver_id,
            car_id=car_id,
            message=text,
            is_read=False,
        )
        session.add(message)
        session.flush()

        logger.info(
            f"Created message: {message.id} in conversation {conversation_id} "
            f"from user {sender_id}"
        )
        return message

    def create_message(
        self,
        conversation_id: int,
        sender_id: int,
        receiver_id: int,
        car_id: int,
        text: str,
        session: Optional[Session] = None,
    ) -> Message:
        """Insert a message row scoped to a conversation."""
        return cast(
            Message,
            self._execute_with_session(
                lambda s: self._create_message_implementation(
                    s, conversation_id, sender_id, receiver_id, car_id, text
                ),
                session=session,
                operation_name="create_message",
            ),
        )

    def _records_query(self, session: Session):
        """Messages joined with sender and receiver names."""
        sender = aliased(User)
        receiver = aliased(User)
        return (
            session.query(
                Message,
                sender.name,
                sender.firstname,
                receiver.name,
                receiver.firstname,
            )
            .join(sender, Message.sender_id == sender.id)
            .join(receiver, Message.receiver_id == receiver.id)
        )

    @staticmethod
    def _to_record(row) -> MessageRecord:
        message = row[0]
        return MessageRecord(
            id=message.id,
            conversation_id=message.conversation_id,
            sender_id=message.sender_id,
            receiver_id=message.receiver_id,
            car_id=message.car_id,
            message=message.message,
            is_read=message.is_read,
            created_at=message.created_at,
            sender_name=row[1],
            sender_firstname=row[2],
            receiver_name=row[3],
            receiver_firstname=row[4],
        )

    def _get_record_implementation(
        self, session: Session, message_id: int
    ) -> Optional[MessageRecord]:
        row = self._records_query(session).filter(Message.id == message_id).one_or_none()
        return self._to_record(row) if row else None

    def get_record(
        self, message_id: int, session: Optional[Session] = None
    ) -> Optional[MessageRecord]:
        """Get a single message with sender and receiver names."""
        return cast(
            Optional[MessageRecord],
            self._execute_with_session(
                lambda s: self._get_record_implementation(s, message_id),
                session=session,
                operation_name="get_record",
            ),
        )

    def _get_by_conversation_id_implementation(
        self, session: Session, conversation_id: int, page: int, limit: int
    ) -> List[MessageRecord]:
        """Implementation of conversation history retrieval."""
        offset = self._offset(page, limit)
        rows = (
            self._records_query(session)
            .filter(Message.conversation_id == conversation_id)
            .order_by(Message.created_at.asc(), Message.id.asc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return [self._to_record(row) for row in rows]

    def get_by_conversation_id(
        self,
        conversation_id: int,
        page: int = 1,
        limit: int = 50,
        session: Optional[Session] = None,
    ) -> List[MessageRecord]:
        """Get a page of a conversation's messages, oldest first."""
        return cast(
            List[MessageRecord],
            self._execute_with_session(
                lambda s: self._get_by_conversation_id_implementation(
                    s, conversation_id, page, limit
                ),
                session=session,
                operation_name="get_by_conversation_id",
            ),
        )

    def count_by_conversation_id(
        self, conversation_id: int, session: Optional[Session] = None
    ) -> int:
        """Count messages in a conversation."""
        return cast(
            int,
            self._execute_with_session(
                lambda s: s.query(Message)
                .filter(Message.conversation_id == conversation_id)
                .count(),
                session=session,
                operation_name="count_by_conversation_id",
            ),
        )

    def _mark_as_read_implementation(
        self, session: Session, conversation_id: int, user_id: int
    ) -> int:
        updated = (
            session.query(Message)
            .filter(
                Message.conversation_id == conversation_id,
                Message.receiver_id == user_id,
                Message.is_read.is_(False),
            )
            .update({Message.is_read: True}, synchronize_session=False)
        )
        if updated:
            logger.debug(
                f"Marked {updated} messages read in conversation {conversation_id} "
                f"for user {user_id}"
            )
        return int(updated)

    def mark_as_read(
        self, conversation_id: int, user_id: int, session: Optional[Session] = None
    ) -> int:
        """Mark every unread message addressed to user_id in a conversation as read."""
        return cast(
            int,
            self._execute_with_session(
                lambda s: self._mark_as_read_implementation(s, conversation_id, user_id),
                session=session,
                operation_name="mark_as_read",
            ),
        )

    def count_unread(self, user_id: int, session: Optional[Session] = None) -> int:
        """Count unread messages addressed to a user across all conversations."""
        return cast(
            int,
            self._execute_with_session(
                lambda s: s.query(Message)
                .filter(Message.receiver_id == user_id, Message.is_read.is_(False))
                .count(),
                session=session,
                operation_name="count_unread",
            ),
        )

    def get_message_by_id(
        self, message_id: int, session: Optional[Session] = None
    ) -> Optional[Message]:
        """Get a message row by ID."""
        return cast(
            Optional[Message],
            self._execute_with_session(
                lambda s: s.query(Message).filter(Message.id == message_id).one_or_none(),
                session=session,
                operation_name="get_message_by_id",
            ),
        )

    def delete(self, message_id: int, session: Optional[Session] = None) -> bool:
        """Delete a single message by ID."""
        return cast(
            bool,
            self._execute_with_session(
                lambda s: bool(
                    s.query(Message)
                    .filter(Message.id == message_id)
                    .delete(synchronize_session=False)
                ),
                session=session,
                operation_name="delete_message",
            ),
        )
