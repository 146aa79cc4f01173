"""Conversation service: the messaging orchestrator.

Sending a message is two-phase. The durable write (conversation, message and
last-message pointer) commits first and decides success; the notification
row and the realtime pushes run afterwards and can only produce warnings.
"""

from typing import Awaitable, Callable, List, Optional, Tuple

from app.core.config import settings
from app.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from app.core.logging import get_logger
from app.core.observability.metrics import (
    log_counter_increment,
    log_side_effect_failure,
    timed,
)
from app.core.realtime.dispatcher import RealtimeDispatcher
from app.db.db import run_db_call
from app.models.conversation import Conversation
from app.repositories.car_repo import CarRepo
from app.repositories.conversation_repo import ConversationRepo
from app.repositories.transaction import transaction_scope
from app.repositories.user_repo import UserRepo
from app.schemas.conversation import (
    ConversationSummary,
    ConversationView,
    MessageRecord,
    SendResult,
    SideEffectOutcome,
)
from app.schemas.notification import NotificationRecord
from app.services.message_service import MessageService
from app.services.notification_service import NotificationService

logger = get_logger(__name__)


def validate_pagination(page: int, limit: int) -> None:
    if page < 1:
        raise ValidationError("Page must be at least 1")
    if limit < 1 or limit > settings.MAX_PAGE_SIZE:
        raise ValidationError(f"Limit must be between 1 and {settings.MAX_PAGE_SIZE}")


class ConversationService:
    """Conversation service for business logic."""

    def __init__(
        self,
        session_factory,
        conversation_repo: ConversationRepo,
        user_repo: UserRepo,
        car_repo: CarRepo,
        message_service: MessageService,
        notification_service: NotificationService,
        dispatcher: Optional[RealtimeDispatcher] = None,
    ):
        self.session_factory = session_factory
        self.conversation_repo = conversation_repo
        self.user_repo = user_repo
        self.car_repo = car_repo
        self.message_service = message_service
        self.notification_service = notification_service
        self.dispatcher = dispatcher

    def require_participant(self, conversation_id: int, user_id: int) -> Conversation:
        """
        Load a conversation the user takes part in.

        Raises:
            NotFoundError: If the conversation does not exist.
            ForbiddenError: If the user is not one of its two participants.
        """
        conversation = self.conversation_repo.get_by_id(conversation_id)
        if conversation is None:
            raise NotFoundError("Conversation not found")
        if not conversation.is_participant(user_id):
            logger.warning(
                f"User {user_id} denied access to conversation {conversation_id}"
            )
            raise ForbiddenError(
                "Access denied: You are not a participant in this conversation"
            )
        return conversation

    def get_conversation(
        self,
        conversation_id: int,
        user_id: int,
        page: int = 1,
        limit: int = settings.MESSAGES_PAGE_SIZE,
    ) -> Tuple[ConversationView, List[MessageRecord]]:
        """
        Open a conversation: its details, one page of messages, and every
        message addressed to the caller marked read.

        Authorization runs before any read or write.
        """
        validate_pagination(page, limit)
        self.require_participant(conversation_id, user_id)

        view = self.conversation_repo.get_view(conversation_id)
        if view is None:
            raise NotFoundError("Conversation not found")
        messages = self.message_service.get_messages(conversation_id, page, limit)
        marked = self.message_service.mark_as_read(conversation_id, user_id)
        logger.debug(
            f"User {user_id} opened conversation {conversation_id}; "
            f"{marked} messages marked read"
        )
        return view, messages

    def get_or_create_conversation(
        self,
        user_id: int,
        other_user_id: int,
        car_id: int,
        limit: int = settings.MESSAGES_PAGE_SIZE,
    ) -> Tuple[ConversationView, List[MessageRecord]]:
        """Open (creating if needed) the conversation with another user about a car."""
        validate_pagination(1, limit)
        if user_id == other_user_id:
            raise ValidationError("Cannot start a conversation with yourself")
        if not self.user_repo.user_exists(other_user_id):
            raise NotFoundError("User not found")
        if self.car_repo.get_car_by_id(car_id) is None:
            raise NotFoundError("Car not found")

        with transaction_scope(self.session_factory) as session:
            conversation = self.conversation_repo.get_or_create(
                user_id, other_user_id, car_id, session=session
            )
            view = self.conversation_repo.get_view(conversation.id, session=session)
            messages = self.message_service.get_messages(
                conversation.id, 1, limit, session=session
            )
            self.message_service.mark_as_read(conversation.id, user_id, session=session)

        return view, messages

    def list_conversations(
        self, user_id: int, page: int = 1, limit: int = settings.CONVERSATIONS_PAGE_SIZE
    ) -> List[ConversationSummary]:
        validate_pagination(page, limit)
        return self.conversation_repo.get_by_user_id(user_id, page, limit)

    def count_unread_messages(self, user_id: int) -> int:
        return self.message_service.count_unread(user_id)

    def delete_conversation(self, conversation_id: int, user_id: int) -> None:
        """Delete a conversation and its messages; only a participant may do so."""
        self.require_participant(conversation_id, user_id)
        self.conversation_repo.delete(conversation_id)
        logger.info(f"User {user_id} deleted conversation {conversation_id}")

    def resolve_send_target(
        self,
        sender_id: int,
        conversation_id: Optional[int] = None,
        receiver_id: Optional[int] = None,
        car_id: Optional[int] = None,
    ) -> Tuple[int, int]:
        """
        Work out who receives a message and which car it is about.

        An existing conversation wins over an explicit receiver and car.

        Returns:
            (receiver_id, car_id)
        """
        if conversation_id is not None:
            conversation = self.require_participant(conversation_id, sender_id)
            return conversation.other_user_id(sender_id), conversation.car_id

        if receiver_id is None or car_id is None:
            raise ValidationError(
                "Either conversation_id or both receiver_id and car_id are required"
            )
        if receiver_id == sender_id:
            raise ValidationError("Cannot send a message to yourself")
        if not self.user_repo.user_exists(receiver_id):
            raise NotFoundError("Receiver not found")
        if self.car_repo.get_car_by_id(car_id) is None:
            raise NotFoundError("Car not found")
        return receiver_id, car_id

    async def send_message(
        self,
        sender_id: int,
        text: str,
        conversation_id: Optional[int] = None,
        receiver_id: Optional[int] = None,
        car_id: Optional[int] = None,
    ) -> SendResult:
        """
        Send a message.

        The call succeeds once the message is durable. Notification and
        realtime delivery are attempted afterwards; their failures are
        reported in SendResult.side_effects and never undo the message.
        """
        MessageService.validate_message_content(text)

        with timed("message_commit_seconds"):
            receiver_id, car_id = await run_db_call(
                self.resolve_send_target, sender_id, conversation_id, receiver_id, car_id
            )
            record = await run_db_call(
                self.message_service.create_message, sender_id, receiver_id, car_id, text
            )
        log_counter_increment("messages_sent")

        side_effects = [
            await self._best_effort(
                "notification", record, lambda: self._notify(record)
            ),
            await self._best_effort(
                "realtime_push", record, lambda: self._push_message(record)
            ),
            await self._best_effort(
                "notification_count", record, lambda: self._push_count(record)
            ),
        ]
        result = SendResult(message=record, side_effects=side_effects)
        if result.warnings:
            logger.warning(
                f"Message {record.id} stored with {len(result.warnings)} "
                f"failed side effects"
            )
        return result

    async def _best_effort(
        self,
        name: str,
        record: MessageRecord,
        step: Callable[[], Awaitable[str]],
    ) -> SideEffectOutcome:
        try:
            detail = await step()
        except Exception as e:
            logger.warning(f"Side effect {name} failed for message {record.id}: {e}")
            log_side_effect_failure(name, record.id, str(e))
            return SideEffectOutcome(name=name, ok=False, error=str(e))
        return SideEffectOutcome(name=name, ok=True, detail=detail)

    def _create_notification(self, record: MessageRecord) -> NotificationRecord:
        car = self.car_repo.get_car_by_id(record.car_id)
        return self.notification_service.create_message_notification(
            record.receiver_id,
            record.sender_id,
            record.conversation_id,
            record.message,
            car_title=car.title if car is not None else None,
        )

    async def _notify(self, record: MessageRecord) -> str:
        notification = await run_db_call(self._create_notification, record)
        return f"notification {notification.id}"

    async def _push_message(self, record: MessageRecord) -> str:
        if self.dispatcher is None:
            return "skipped"
        delivered = await self.dispatcher.send_message_received(
            record.receiver_id,
            message=record.message,
            sender_id=record.sender_id,
            sender_name=record.sender_display_name,
            car_id=record.car_id,
            conversation_id=record.conversation_id,
            message_id=record.id,
            created_at=record.created_at,
        )
        return "delivered" if delivered else "offline"

    async def _push_count(self, record: MessageRecord) -> str:
        if self.dispatcher is None:
            return "skipped"
        if not await self.dispatcher.registry.is_online(record.receiver_id):
            return "offline"
        count = await run_db_call(
            self.notification_service.count_unread, record.receiver_id
        )
        delivered = await self.dispatcher.send_notification_count(
            record.receiver_id, count
        )
        return "delivered" if delivered else "offline"
