"""Read-side projections for conversations and messages.

Display names are joined in at read time; the Conversation and Message rows
themselves never carry them.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ConversationRecord(BaseModel):
    """Core conversation attributes."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    car_id: int
    user1_id: int
    user2_id: int
    last_message_id: Optional[int] = None
    last_activity: datetime
    created_at: datetime


class ConversationView(ConversationRecord):
    """Conversation enriched with both participants and the car."""

    user1_name: str
    user1_firstname: str
    user1_phone: Optional[str] = None
    user2_name: str
    user2_firstname: str
    user2_phone: Optional[str] = None
    car_title: str
    car_photo: Optional[str] = None


class ConversationSummary(ConversationRecord):
    """List-view row, resolved relative to the requesting user."""

    other_user_id: int
    other_user_name: str
    other_user_firstname: str
    car_title: str
    car_photo: Optional[str] = None
    last_message: Optional[str] = None
    last_message_time: Optional[datetime] = None
    last_message_sender_id: Optional[int] = None


class MessageRecord(BaseModel):
    """Message joined with sender and receiver display names."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    conversation_id: int
    sender_id: int
    receiver_id: int
    car_id: int
    message: str
    is_read: bool = False
    created_at: datetime
    sender_name: Optional[str] = None
    sender_firstname: Optional[str] = None
    receiver_name: Optional[str] = None
    receiver_firstname: Optional[str] = None

    @property
    def sender_display_name(self) -> str:
        return f"{self.sender_firstname or ''} {self.sender_name or ''}".strip()


class SideEffectOutcome(BaseModel):
    """Result of one best-effort step run after a message was committed."""

    name: str
    ok: bool
    detail: Optional[str] = None
    error: Optional[str] = None


class SendResult(BaseModel):
    """Durable message plus the outcome of every post-commit side effect."""

    message: MessageRecord
    side_effects: List[SideEffectOutcome] = Field(default_factory=list)

    @property
    def warnings(self) -> List[SideEffectOutcome]:
        return [effect for effect in self.side_effects if not effect.ok]

    @property
    def delivered_live(self) -> bool:
        return any(
            effect.name == "realtime_push" and effect.ok and effect.detail == "delivered"
            for effect in self.side_effects
        )
