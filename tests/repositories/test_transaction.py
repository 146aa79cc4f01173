"""Tests for transaction context manager."""

from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from app.core.exceptions import StorageUnavailableError
from app.models.conversation import Conversation
from app.models.message import Message
from app.repositories.transaction import transaction_scope


class TestTransactionScope:
    """Test cases for transaction_scope context manager."""

    @pytest.fixture
    def mock_session_factory(self):
        mock_session = MagicMock()
        mock_session.__enter__.return_value = mock_session
        mock_session.__exit__.return_value = False
        mock_factory = MagicMock(return_value=mock_session)
        return mock_factory, mock_session

    def test_commit_on_success(self, mock_session_factory):
        factory, mock_session = mock_session_factory

        with transaction_scope(factory) as session:
            session.add("something")

        mock_session.commit.assert_called_once()
        mock_session.__exit__.assert_called_once()
        mock_session.rollback.assert_not_called()

    def test_rollback_on_error(self, mock_session_factory):
        factory, mock_session = mock_session_factory

        with pytest.raises(ValueError):
            with transaction_scope(factory):
                raise ValueError("Test error")

        mock_session.rollback.assert_called_once()
        mock_session.commit.assert_not_called()
        mock_session.__exit__.assert_called_once()

    def test_unreachable_storage_is_translated(self, mock_session_factory):
        factory, mock_session = mock_session_factory

        with pytest.raises(StorageUnavailableError):
            with transaction_scope(factory):
                raise OperationalError("SELECT 1", None, Exception("refused"))

        mock_session.rollback.assert_called_once()

    def test_coordinated_operations_roll_back_together(
        self,
        conversation_repo,
        message_repo,
        test_session_factory,
        sample_users,
        sample_car,
    ):
        """A failure after the message insert leaves no conversation behind."""
        alice, bob = sample_users[0], sample_users[1]

        with pytest.raises(RuntimeError):
            with transaction_scope(test_session_factory) as session:
                conversation = conversation_repo.get_or_create(
                    bob.id, alice.id, sample_car.id, session=session
                )
                message_repo.create_message(
                    conversation.id, bob.id, alice.id, sample_car.id, "Hi",
                    session=session,
                )
                raise RuntimeError("pointer update failed")

        with test_session_factory() as session:
            assert session.query(Conversation).count() == 0
            assert session.query(Message).count() == 0
