"""FastAPI dependencies for dependency injection."""

from typing import Optional

from fastapi import Request

from app.core.realtime import PresenceRegistry, RealtimeDispatcher
from app.db.db import get_session_local
from app.repositories.car_repo import CarRepo
from app.repositories.conversation_repo import ConversationRepo
from app.repositories.message_repo import MessageRepo
from app.repositories.notification_repo import NotificationRepo
from app.repositories.user_repo import UserRepo
from app.services.conversation_service import ConversationService
from app.services.message_service import MessageService
from app.services.notification_service import NotificationService


def get_user_repo() -> UserRepo:
    """Get UserRepo instance with session factory."""
    return UserRepo(get_session_local())


def get_car_repo() -> CarRepo:
    """Get CarRepo instance with session factory."""
    return CarRepo(get_session_local())


def get_conversation_repo() -> ConversationRepo:
    """Get ConversationRepo instance with session factory."""
    return ConversationRepo(get_session_local())


def get_message_repo() -> MessageRepo:
    """Get MessageRepo instance with session factory."""
    return MessageRepo(get_session_local())


def get_notification_repo() -> NotificationRepo:
    """Get NotificationRepo instance with session factory."""
    return NotificationRepo(get_session_local())


def get_notification_service() -> NotificationService:
    """Get NotificationService instance with dependencies."""
    return NotificationService(get_notification_repo(), get_user_repo())


def get_presence_registry(request: Request) -> Optional[PresenceRegistry]:
    """The registry created by the application lifespan, or None before it runs."""
    return getattr(request.app.state, "presence", None)


def get_dispatcher(request: Request) -> Optional[RealtimeDispatcher]:
    """The realtime dispatcher, or None when the lifespan has not run."""
    return getattr(request.app.state, "dispatcher", None)


def build_conversation_service(
    dispatcher: Optional[RealtimeDispatcher] = None,
) -> ConversationService:
    """Wire a ConversationService from fresh repositories."""
    session_factory = get_session_local()
    conversation_repo = ConversationRepo(session_factory)
    message_repo = MessageRepo(session_factory)
    user_repo = UserRepo(session_factory)
    return ConversationService(
        session_factory=session_factory,
        conversation_repo=conversation_repo,
        user_repo=user_repo,
        car_repo=CarRepo(session_factory),
        message_service=MessageService(session_factory, message_repo, conversation_repo),
        notification_service=NotificationService(
            NotificationRepo(session_factory), user_repo
        ),
        dispatcher=dispatcher,
    )


def get_conversation_service(request: Request) -> ConversationService:
    """Get ConversationService instance bound to the app's dispatcher."""
    return build_conversation_service(get_dispatcher(request))
