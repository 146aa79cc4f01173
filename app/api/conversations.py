"""Conversation and message API endpoints."""

from typing import Annotated, List

from fastapi import APIRouter, Depends, Query, status

from app.api.schemas.conversation import (
    ConversationDetailResponse,
    CountResponse,
    PaginationInfo,
    SendMessageRequest,
    SuccessResponse,
)
from app.core.auth_utils import get_current_user
from app.core.config import settings
from app.core.exceptions import RateLimitedError
from app.core.logging import get_logger
from app.core.rate_limiter import RateLimiter, get_rate_limiter
from app.db.db import run_db_call
from app.dependencies import get_conversation_service
from app.models.user import User
from app.schemas.conversation import ConversationSummary, MessageRecord
from app.services.conversation_service import ConversationService

logger = get_logger(__name__)

router = APIRouter(prefix="/messages", tags=["messages"])

PageQuery = Annotated[int, Query(ge=1, description="1-based page number")]


@router.get(
    "/conversations",
    response_model=List[ConversationSummary],
    summary="List the caller's conversations",
    description="Conversations ordered by most recent activity.",
)
async def list_conversations(
    service: Annotated[ConversationService, Depends(get_conversation_service)],
    current_user: Annotated[User, Depends(get_current_user)],
    page: PageQuery = 1,
    limit: int = Query(
        settings.CONVERSATIONS_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE
    ),
) -> List[ConversationSummary]:
    return await run_db_call(
        service.list_conversations, current_user.id, page, limit
    )


@router.get(
    "/conversations/{conversation_id}",
    response_model=ConversationDetailResponse,
    summary="Open a conversation",
    description=(
        "Conversation details with one page of messages. Messages addressed "
        "to the caller are marked read. Requires being a participant."
    ),
)
async def get_conversation(
    conversation_id: int,
    service: Annotated[ConversationService, Depends(get_conversation_service)],
    current_user: Annotated[User, Depends(get_current_user)],
    page: PageQuery = 1,
    limit: int = Query(settings.MESSAGES_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
) -> ConversationDetailResponse:
    conversation, messages = await run_db_call(
        service.get_conversation, conversation_id, current_user.id, page, limit
    )
    return ConversationDetailResponse(
        conversation=conversation,
        messages=messages,
        pagination=PaginationInfo(page=page, limit=limit),
    )


@router.get(
    "/conversation/{user_id}/{car_id}",
    response_model=ConversationDetailResponse,
    summary="Get or start a conversation about a car",
)
async def get_or_create_conversation(
    user_id: int,
    car_id: int,
    service: Annotated[ConversationService, Depends(get_conversation_service)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> ConversationDetailResponse:
    conversation, messages = await run_db_call(
        service.get_or_create_conversation, current_user.id, user_id, car_id
    )
    return ConversationDetailResponse(conversation=conversation, messages=messages)


@router.post(
    "",
    response_model=MessageRecord,
    status_code=status.HTTP_201_CREATED,
    summary="Send a message",
    description=(
        "Send a message into an existing conversation or to a user about a "
        "car. Succeeds once the message is stored; notification and live "
        "delivery are best effort."
    ),
)
async def send_message(
    request: SendMessageRequest,
    service: Annotated[ConversationService, Depends(get_conversation_service)],
    limiter: Annotated[RateLimiter, Depends(get_rate_limiter)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> MessageRecord:
    if not await limiter.check_user_rate_limit(
        current_user.id,
        "send_message",
        settings.MESSAGE_RATE_LIMIT_PER_MINUTE,
        settings.RATE_LIMIT_WINDOW_SECONDS,
    ):
        raise RateLimitedError("Too many messages. Please try again later.")

    result = await service.send_message(
        sender_id=current_user.id,
        text=request.message,
        conversation_id=request.conversation_id,
        receiver_id=request.receiver_id,
        car_id=request.car_id,
    )
    return result.message


@router.get(
    "/unread/count",
    response_model=CountResponse,
    summary="Count unread messages addressed to the caller",
)
async def count_unread_messages(
    service: Annotated[ConversationService, Depends(get_conversation_service)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> CountResponse:
    count = await run_db_call(service.count_unread_messages, current_user.id)
    return CountResponse(count=count)


@router.delete(
    "/conversations/{conversation_id}",
    response_model=SuccessResponse,
    summary="Delete a conversation and its messages",
)
async def delete_conversation(
    conversation_id: int,
    service: Annotated[ConversationService, Depends(get_conversation_service)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> SuccessResponse:
    await run_db_call(service.delete_conversation, conversation_id, current_user.id)
    return SuccessResponse(message="Conversation deleted successfully")
