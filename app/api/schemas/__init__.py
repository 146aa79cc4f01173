"""API schemas package."""

from .conversation import (
    ConversationDetailResponse,
    CountResponse,
    ErrorResponse,
    MarkAllReadResponse,
    PaginationInfo,
    SendMessageRequest,
    SuccessResponse,
)

__all__ = [
    "ConversationDetailResponse",
    "CountResponse",
    "ErrorResponse",
    "MarkAllReadResponse",
    "PaginationInfo",
    "SendMessageRequest",
    "SuccessResponse",
]
