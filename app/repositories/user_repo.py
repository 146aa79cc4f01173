"""User repository.

Accounts belong to the marketplace; messaging only reads them to check
that a participant exists and to resolve display names.
"""

from typing import Optional, cast

from sqlalchemy import exists, select
from sqlalchemy.orm import Session

from app.models.user import User
from app.repositories.base_repo import BaseRepo


class UserRepo(BaseRepo):
    """Read access to marketplace accounts."""

    def _get_user_by_id_implementation(
        self, session: Session, user_id: int
    ) -> Optional[User]:
        if user_id is None:
            raise ValueError("User ID cannot be None")
        return cast(Optional[User], session.get(User, user_id))

    def get_user_by_id(
        self, user_id: int, session: Optional[Session] = None
    ) -> Optional[User]:
        """Get a user by id."""
        return cast(
            Optional[User],
            self._execute_with_session(
                lambda session: self._get_user_by_id_implementation(session, user_id),
                session=session,
                operation_name="get_user_by_id",
            ),
        )

    def user_exists(self, user_id: int, session: Optional[Session] = None) -> bool:
        """Check whether a user id resolves to an account."""
        return bool(
            self._execute_with_session(
                lambda session: session.scalar(
                    select(exists().where(User.id == user_id))
                ),
                session=session,
                operation_name="user_exists",
            )
        )
