"""Conversation model."""

from datetime import datetime, timezone

from sqlalchemy import (
    TIMESTAMP,
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    Integer,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from . import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Conversation(Base):
    """Car-scoped thread between exactly two users."""

    __tablename__ = "conversations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    car_id = Column(Integer, ForeignKey("cars.id", ondelete="CASCADE"), nullable=False)
    user1_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    user2_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    # Weak reference: no FK so a deleted message never blocks the pointer
    last_message_id = Column(Integer, nullable=True)
    last_activity = Column(TIMESTAMP(timezone=True), nullable=False, default=_utcnow)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=_utcnow)

    # Relationships
    messages = relationship(
        "Message",
        back_populates="conversation",
        order_by="Message.created_at",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("user1_id < user2_id", name="ck_conversation_user_order"),
        UniqueConstraint(
            "car_id", "user1_id", "user2_id", name="uq_conversation_car_users"
        ),
        Index("ix_conversation_user1_activity", "user1_id", "last_activity"),
        Index("ix_conversation_user2_activity", "user2_id", "last_activity"),
    )

    @staticmethod
    def canonical_pair(user_a: int, user_b: int) -> tuple[int, int]:
        """Order a user pair so the smaller id is always user1."""
        return (user_a, user_b) if user_a < user_b else (user_b, user_a)

    def is_participant(self, user_id: int) -> bool:
        return user_id in (self.user1_id, self.user2_id)

    def other_user_id(self, user_id: int) -> int:
        return self.user2_id if user_id == self.user1_id else self.user1_id

    def __repr__(self):
        return (
            f"<Conversation(id={self.id}, car_id={self.car_id}, "
            f"users=({self.user1_id}, {self.user2_id}))>"
        )
