"""Base repository class."""

from sqlalchemy.exc import DBAPIError, OperationalError

from app.core.exceptions import StorageUnavailableError
from app.core.logging import get_logger

logger = get_logger(__name__)


def is_storage_unavailable(error: Exception) -> bool:
    """Whether a SQLAlchemy error means the database itself is unreachable."""
    if isinstance(error, OperationalError):
        return True
    return isinstance(error, DBAPIError) and bool(error.connection_invalidated)


class BaseRepo:
    """Base repository class."""

    def __init__(self, session_factory):
        """Initialize the repository."""
        self.session_factory = session_factory

    def _execute_with_session(self, operation, session=None, operation_name="unknown"):
        """Execute a function with the session."""
        if session is not None:
            # Coordinated mode - use provided session, don't commit
            return operation(session)
        # Auto-commit mode - create, use, commit, close
        session = self.session_factory()
        try:
            result = operation(session)
            session.commit()
            return result
        except Exception as e:
            session.rollback()
            self._log_error(operation_name, e)
            if is_storage_unavailable(e):
                raise StorageUnavailableError("Storage is unavailable") from e
            raise
        finally:
            session.close()

    def _log_error(self, operation_name, error, **context):
        """Log an error."""
        logger.error(f"Error in {operation_name}: {error}", extra=context)

    @staticmethod
    def _offset(page: int, limit: int) -> int:
        """Offset for 1-based page numbers."""
        if page < 1:
            raise ValueError("Page must be at least 1")
        if limit < 1:
            raise ValueError("Limit must be positive")
        return (page - 1) * limit
