"""Shared fixtures for repository tests."""

import pytest

from app.repositories import (
    CarRepo,
    ConversationRepo,
    MessageRepo,
    NotificationRepo,
    UserRepo,
)


# Repository fixtures
@pytest.fixture
def user_repo(test_session_factory):
    """UserRepo instance with test session factory."""
    return UserRepo(test_session_factory)


@pytest.fixture
def car_repo(test_session_factory):
    """CarRepo instance with test session factory."""
    return CarRepo(test_session_factory)


@pytest.fixture
def conversation_repo(test_session_factory):
    """ConversationRepo instance with test session factory."""
    return ConversationRepo(test_session_factory)


@pytest.fixture
def message_repo(test_session_factory):
    """MessageRepo instance with test session factory."""
    return MessageRepo(test_session_factory)


@pytest.fixture
def notification_repo(test_session_factory):
    """NotificationRepo instance with test session factory."""
    return NotificationRepo(test_session_factory)


@pytest.fixture
def sample_conversation(conversation_repo, sample_users, sample_car):
    """Conversation between the seller and the first buyer."""
    alice, bob = sample_users[0], sample_users[1]
    return conversation_repo.get_or_create(bob.id, alice.id, sample_car.id)
