"""Conversation repository."""

from datetime import datetime, timezone
from typing import List, Optional, cast

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, aliased

from app.core.exceptions import ValidationError
from app.core.logging import get_logger
from app.models.car import Car, CarPhoto
from app.models.conversation import Conversation
from app.models.message import Message
from app.models.user import User
from app.repositories.base_repo import BaseRepo
from app.schemas.conversation import (
    ConversationRecord,
    ConversationSummary,
    ConversationView,
)

logger = get_logger(__name__)


def _first_photo_subquery():
    """Correlated subquery picking the first photo of the joined car."""
    return (
        select(CarPhoto.photo_url)
        .where(CarPhoto.car_id == Car.id)
        .order_by(CarPhoto.id.asc())
        .limit(1)
        .correlate(Car)
        .scalar_subquery()
    )


class ConversationRepo(BaseRepo):
    """Conversation repository."""

    def _find_implementation(
        self, session: Session, car_id: int, user1_id: int, user2_id: int
    ) -> Optional[Conversation]:
        return cast(
            Optional[Conversation],
            session.query(Conversation)
            .filter(
                Conversation.car_id == car_id,
                Conversation.user1_id == user1_id,
                Conversation.user2_id == user2_id,
            )
            .first(),
        )

    def _get_or_create_implementation(
        self, session: Session, user_a: int, user_b: int, car_id: int
    ) -> Conversation:
        """Implementation of conversation get-or-create."""
        if user_a == user_b:
            logger.warning(f"Attempted to open a conversation with self: {user_a}")
            raise ValidationError("Cannot start a conversation with yourself")

        user1_id, user2_id = Conversation.canonical_pair(user_a, user_b)

        existing = self._find_implementation(session, car_id, user1_id, user2_id)
        if existing:
            logger.debug(f"Returning existing conversation: {existing.id}")
            return existing

        conversation = Conversation(car_id=car_id, user1_id=user1_id, user2_id=user2_id)
        try:
            # Savepoint so a lost race does not poison the caller's transaction
            with session.begin_nested():
                session.add(conversation)
                session.flush()
        except IntegrityError:
            winner = self._find_implementation(session, car_id, user1_id, user2_id)
            if winner is None:
                raise
            logger.info(
                f"Concurrent create for car {car_id} users ({user1_id}, {user2_id}); "
                f"using conversation {winner.id}"
            )
            return winner

        logger.info(
            f"Created conversation: {conversation.id} for car {car_id} "
            f"between {user1_id} and {user2_id}"
        )
        return conversation

    def get_or_create(
        self,
        user_a: int,
        user_b: int,
        car_id: int,
        session: Optional[Session] = None,
    ) -> Conversation:
        """Get the canonical conversation for a user pair and car, creating it if needed."""
        return cast(
            Conversation,
            self._execute_with_session(
                lambda s: self._get_or_create_implementation(s, user_a, user_b, car_id),
                session=session,
                operation_name="get_or_create",
            ),
        )

    def _get_by_id_implementation(
        self, session: Session, conversation_id: int
    ) -> Optional[Conversation]:
        return cast(
            Optional[Conversation],
            session.query(Conversation)
            .filter(Conversation.id == conversation_id)
            .one_or_none(),
        )

    def get_by_id(
        self, conversation_id: int, session: Optional[Session] = None
    ) -> Optional[Conversation]:
        """Get a conversation row by ID."""
        return cast(
            Optional[Conversation],
            self._execute_with_session(
                lambda s: self._get_by_id_implementation(s, conversation_id),
                session=session,
                operation_name="get_by_id",
            ),
        )

    def _get_view_implementation(
        self, session: Session, conversation_id: int
    ) -> Optional[ConversationView]:
        """Implementation of the enriched conversation lookup."""
        user1 = aliased(User)
        user2 = aliased(User)
        row = (
            session.query(
                Conversation,
                user1.name,
                user1.firstname,
                user1.phone,
                user2.name,
                user2.firstname,
                user2.phone,
                Car.title,
                _first_photo_subquery().label("car_photo"),
            )
            .join(user1, Conversation.user1_id == user1.id)
            .join(user2, Conversation.user2_id == user2.id)
            .join(Car, Conversation.car_id == Car.id)
            .filter(Conversation.id == conversation_id)
            .one_or_none()
        )
        if row is None:
            return None

        conversation = row[0]
        return ConversationView(
            **ConversationRecord.model_validate(conversation).model_dump(),
            user1_name=row[1],
            user1_firstname=row[2],
            user1_phone=row[3],
            user2_name=row[4],
            user2_firstname=row[5],
            user2_phone=row[6],
            car_title=row[7],
            car_photo=row[8],
        )

    def get_view(
        self, conversation_id: int, session: Optional[Session] = None
    ) -> Optional[ConversationView]:
        """Get a conversation with participant names, phones and car details."""
        return cast(
            Optional[ConversationView],
            self._execute_with_session(
                lambda s: self._get_view_implementation(s, conversation_id),
                session=session,
                operation_name="get_view",
            ),
        )

    def _get_by_user_id_implementation(
        self, session: Session, user_id: int, page: int, limit: int
    ) -> List[ConversationSummary]:
        """Implementation of the user's conversation list."""
        offset = self._offset(page, limit)
        user1 = aliased(User)
        user2 = aliased(User)
        last_message = aliased(Message)

        rows = (
            session.query(
                Conversation,
                user1.name,
                user1.firstname,
                user2.name,
                user2.firstname,
                Car.title,
                _first_photo_subquery().label("car_photo"),
                last_message.message,
                last_message.created_at,
                last_message.sender_id,
            )
            .join(user1, Conversation.user1_id == user1.id)
            .join(user2, Conversation.user2_id == user2.id)
            .join(Car, Conversation.car_id == Car.id)
            .outerjoin(last_message, Conversation.last_message_id == last_message.id)
            .filter(
                or_(Conversation.user1_id == user_id, Conversation.user2_id == user_id)
            )
            .order_by(Conversation.last_activity.desc(), Conversation.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )

        summaries = []
        for row in rows:
            conversation = row[0]
            is_user1 = conversation.user1_id == user_id
            summaries.append(
                ConversationSummary(
                    **ConversationRecord.model_validate(conversation).model_dump(),
                    other_user_id=conversation.other_user_id(user_id),
                    other_user_name=row[3] if is_user1 else row[1],
                    other_user_firstname=row[4] if is_user1 else row[2],
                    car_title=row[5],
                    car_photo=row[6],
                    last_message=row[7],
                    last_message_time=row[8],
                    last_message_sender_id=row[9],
                )
            )
        return summaries

    def get_by_user_id(
        self,
        user_id: int,
        page: int = 1,
        limit: int = 20,
        session: Optional[Session] = None,
    ) -> List[ConversationSummary]:
        """Get a page of the user's conversations, most recently active first."""
        return cast(
            List[ConversationSummary],
            self._execute_with_session(
                lambda s: self._get_by_user_id_implementation(s, user_id, page, limit),
                session=session,
                operation_name="get_by_user_id",
            ),
        )

    def _update_last_message_implementation(
        self, session: Session, conversation_id: int, message_id: int
    ) -> bool:
        updated = (
            session.query(Conversation)
            .filter(Conversation.id == conversation_id)
            .update(
                {
                    Conversation.last_message_id: message_id,
                    Conversation.last_activity: datetime.now(timezone.utc),
                }
            )
        )
        return bool(updated)

    def update_last_message(
        self,
        conversation_id: int,
        message_id: int,
        session: Optional[Session] = None,
    ) -> bool:
        """Point the conversation at its newest message and bump last_activity."""
        return cast(
            bool,
            self._execute_with_session(
                lambda s: self._update_last_message_implementation(
                    s, conversation_id, message_id
                ),
                session=session,
                operation_name="update_last_message",
            ),
        )

    def _is_participant_implementation(
        self, session: Session, conversation_id: int, user_id: int
    ) -> bool:
        match = (
            session.query(Conversation.id)
            .filter(
                Conversation.id == conversation_id,
                or_(Conversation.user1_id == user_id, Conversation.user2_id == user_id),
            )
            .first()
        )
        return match is not None

    def is_participant(
        self, conversation_id: int, user_id: int, session: Optional[Session] = None
    ) -> bool:
        """Check if a user is one of the two participants of a conversation."""
        return cast(
            bool,
            self._execute_with_session(
                lambda s: self._is_participant_implementation(
                    s, conversation_id, user_id
                ),
                session=session,
                operation_name="is_participant",
            ),
        )

    def _delete_implementation(self, session: Session, conversation_id: int) -> bool:
        # Messages are removed by the ON DELETE CASCADE foreign key
        deleted = (
            session.query(Conversation)
            .filter(Conversation.id == conversation_id)
            .delete(synchronize_session=False)
        )
        if deleted:
            logger.info(f"Deleted conversation: {conversation_id}")
        return bool(deleted)

    def delete(self, conversation_id: int, session: Optional[Session] = None) -> bool:
        """Delete a conversation."""
        return cast(
            bool,
            self._execute_with_session(
                lambda s: self._delete_implementation(s, conversation_id),
                session=session,
                operation_name="delete_conversation",
            ),
        )
