"""Conversation and message API request/response schemas."""

from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from app.schemas.conversation import ConversationView, MessageRecord


# Request Models
class SendMessageRequest(BaseModel):
    """Request model for sending a new message."""

    message: str = Field(..., description="Message content")
    conversation_id: Optional[int] = Field(
        None, description="Existing conversation to post into"
    )
    receiver_id: Optional[int] = Field(
        None, description="Receiver, when no conversation_id is given"
    )
    car_id: Optional[int] = Field(
        None, description="Car the conversation is about, with receiver_id"
    )

    @model_validator(mode="after")
    def validate_target(self):
        """Either a conversation or a receiver and car must be given."""
        if self.conversation_id is None and (
            self.receiver_id is None or self.car_id is None
        ):
            raise ValueError(
                "Either conversation_id or both receiver_id and car_id are required"
            )
        return self


# Response Models
class PaginationInfo(BaseModel):
    page: int
    limit: int


class ConversationDetailResponse(BaseModel):
    """A conversation with one page of its messages."""

    conversation: ConversationView
    messages: List[MessageRecord]
    pagination: Optional[PaginationInfo] = None


class CountResponse(BaseModel):
    count: int


class SuccessResponse(BaseModel):
    """Standard success response format."""

    message: str = Field(..., description="Success message")


class MarkAllReadResponse(SuccessResponse):
    count: int = Field(..., description="Number of notifications marked read")


class ErrorResponse(BaseModel):
    """Standard error response format."""

    error: dict = Field(..., description="Error details")

    model_config = {
        "json_schema_extra": {
            "example": {
                "error": {
                    "code": "NOT_FOUND",
                    "message": "Conversation not found",
                }
            }
        }
    }
