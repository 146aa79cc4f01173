"""Conftest for service tests."""

import pytest

from app.core.realtime import PresenceRegistry, RealtimeDispatcher
from app.repositories import (
    CarRepo,
    ConversationRepo,
    MessageRepo,
    NotificationRepo,
    UserRepo,
)
from app.services.conversation_service import ConversationService
from app.services.message_service import MessageService
from app.services.notification_service import NotificationService


class FakeConnection:
    """Stands in for a WebSocket: records frames, optionally fails."""

    def __init__(self, fail=False):
        self.fail = fail
        self.sent = []
        self.closed_with = None

    async def send_json(self, data, mode="text"):
        if self.fail:
            raise RuntimeError("socket is gone")
        self.sent.append(data)

    async def close(self, code=1000, reason=None):
        self.closed_with = code


@pytest.fixture
def conversation_repo(test_session_factory):
    return ConversationRepo(test_session_factory)


@pytest.fixture
def message_repo(test_session_factory):
    return MessageRepo(test_session_factory)


@pytest.fixture
def notification_repo(test_session_factory):
    return NotificationRepo(test_session_factory)


@pytest.fixture
def user_repo(test_session_factory):
    return UserRepo(test_session_factory)


@pytest.fixture
def message_service(test_session_factory, message_repo, conversation_repo):
    """Create MessageService instance."""
    return MessageService(test_session_factory, message_repo, conversation_repo)


@pytest.fixture
def notification_service(notification_repo, user_repo):
    """Create NotificationService instance."""
    return NotificationService(notification_repo, user_repo)


@pytest.fixture
def presence():
    return PresenceRegistry()


@pytest.fixture
def dispatcher(presence):
    return RealtimeDispatcher(presence)


@pytest.fixture
def conversation_service(
    test_session_factory,
    conversation_repo,
    user_repo,
    message_service,
    notification_service,
    dispatcher,
):
    """Create ConversationService wired to an in-memory presence registry."""
    return ConversationService(
        session_factory=test_session_factory,
        conversation_repo=conversation_repo,
        user_repo=user_repo,
        car_repo=CarRepo(test_session_factory),
        message_service=message_service,
        notification_service=notification_service,
        dispatcher=dispatcher,
    )


@pytest.fixture
def fake_connection_factory():
    return FakeConnection
