"""Message service for business logic."""

from typing import List, Optional

from sqlalchemy.orm import Session

from app.core.exceptions import ValidationError
from app.core.logging import get_logger
from app.repositories.conversation_repo import ConversationRepo
from app.repositories.message_repo import MessageRepo
from app.repositories.transaction import transaction_scope
from app.schemas.conversation import MessageRecord

logger = get_logger(__name__)

# Business rules constants
MAX_MESSAGE_LENGTH = 4000


class MessageService:
    """Message service for business logic."""

    def __init__(
        self,
        session_factory,
        message_repo: MessageRepo,
        conversation_repo: ConversationRepo,
    ):
        """Initialize the message service."""
        self.session_factory = session_factory
        self.message_repo = message_repo
        self.conversation_repo = conversation_repo

    def create_message(
        self, sender_id: int, receiver_id: int, car_id: int, text: str
    ) -> MessageRecord:
        """
        Durably store a message.

        Resolving the conversation, inserting the message and moving the
        conversation's last-message pointer commit together or not at all.

        Returns:
            The stored message with sender and receiver names.
        """
        self.validate_message_content(text)
        logger.info(
            f"Creating message from user {sender_id} to user {receiver_id} "
            f"about car {car_id}"
        )

        with transaction_scope(self.session_factory) as session:
            conversation = self.conversation_repo.get_or_create(
                sender_id, receiver_id, car_id, session=session
            )
            message = self.message_repo.create_message(
                conversation_id=conversation.id,
                sender_id=sender_id,
                receiver_id=receiver_id,
                car_id=car_id,
                text=text,
                session=session,
            )
            self.conversation_repo.update_last_message(
                conversation.id, message.id, session=session
            )
            record = self.message_repo.get_record(message.id, session=session)

        logger.info(
            f"Committed message {record.id} in conversation {record.conversation_id}"
        )
        return record

    def get_messages(
        self,
        conversation_id: int,
        page: int = 1,
        limit: int = 50,
        session: Optional[Session] = None,
    ) -> List[MessageRecord]:
        """Get a page of a conversation's messages, oldest first."""
        return self.message_repo.get_by_conversation_id(
            conversation_id, page, limit, session=session
        )

    def mark_as_read(
        self, conversation_id: int, user_id: int, session: Optional[Session] = None
    ) -> int:
        """Mark every message addressed to the user in a conversation as read."""
        return self.message_repo.mark_as_read(conversation_id, user_id, session=session)

    def count_unread(self, user_id: int) -> int:
        return self.message_repo.count_unread(user_id)

    @staticmethod
    def validate_message_content(text: str) -> None:
        """Validate message content according to business rules."""
        if not text or not text.strip():
            raise ValidationError("Message content is required")

        if len(text) > MAX_MESSAGE_LENGTH:
            raise ValidationError(
                f"Message content cannot exceed {MAX_MESSAGE_LENGTH} characters"
            )
