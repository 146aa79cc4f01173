"""Notification API endpoints."""

from typing import Annotated, List

from fastapi import APIRouter, Depends, Query

from app.api.schemas.conversation import (
    CountResponse,
    MarkAllReadResponse,
    SuccessResponse,
)
from app.core.auth_utils import get_current_user
from app.core.config import settings
from app.db.db import run_db_call
from app.dependencies import get_notification_service
from app.models.user import User
from app.schemas.notification import NotificationRecord
from app.services.notification_service import NotificationService

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=List[NotificationRecord])
async def list_notifications(
    service: Annotated[NotificationService, Depends(get_notification_service)],
    current_user: Annotated[User, Depends(get_current_user)],
    page: int = Query(1, ge=1),
    limit: int = Query(
        settings.NOTIFICATIONS_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE
    ),
) -> List[NotificationRecord]:
    """List the caller's notifications, newest first."""
    return await run_db_call(service.list_notifications, current_user.id, page, limit)


@router.get("/unread/count", response_model=CountResponse)
async def count_unread_notifications(
    service: Annotated[NotificationService, Depends(get_notification_service)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> CountResponse:
    count = await run_db_call(service.count_unread, current_user.id)
    return CountResponse(count=count)


@router.put("/read-all", response_model=MarkAllReadResponse)
async def mark_all_as_read(
    service: Annotated[NotificationService, Depends(get_notification_service)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> MarkAllReadResponse:
    count = await run_db_call(service.mark_all_as_read, current_user.id)
    return MarkAllReadResponse(message="All notifications marked as read", count=count)


@router.put("/{notification_id}/read", response_model=SuccessResponse)
async def mark_as_read(
    notification_id: int,
    service: Annotated[NotificationService, Depends(get_notification_service)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> SuccessResponse:
    """Mark one of the caller's notifications as read."""
    await run_db_call(service.mark_as_read, notification_id, current_user.id)
    return SuccessResponse(message="Notification marked as read")


@router.delete("/{notification_id}", response_model=SuccessResponse)
async def delete_notification(
    notification_id: int,
    service: Annotated[NotificationService, Depends(get_notification_service)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> SuccessResponse:
    await run_db_call(service.delete, notification_id, current_user.id)
    return SuccessResponse(message="Notification deleted successfully")
