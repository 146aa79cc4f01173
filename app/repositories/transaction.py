"""Unit of work shared by several repositories."""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy.orm import Session

from app.core.exceptions import StorageUnavailableError
from app.core.logging import get_logger
from app.repositories.base_repo import is_storage_unavailable

logger = get_logger(__name__)


@contextmanager
def transaction_scope(
    session_factory, name: str = "transaction"
) -> Generator[Session, None, None]:
    """
    Yield one session for a group of repository calls and commit them together.

    Repositories join the unit of work by receiving ``session=session``; they
    never commit it themselves. Any exception in the block rolls everything
    back, so a message never exists without its conversation pointer moving.

    Raises:
        StorageUnavailableError: The database could not be reached.
    """
    with session_factory() as session:
        try:
            yield session
            session.commit()
        except Exception as e:
            session.rollback()
            logger.debug(f"Rolled back {name}: {e}")
            if is_storage_unavailable(e):
                raise StorageUnavailableError("Storage is unavailable") from e
            raise
