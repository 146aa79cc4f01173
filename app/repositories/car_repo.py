"""Car repository."""

from typing import Optional, cast

from sqlalchemy.orm import Session

from app.models.car import Car
from app.repositories.base_repo import BaseRepo


class CarRepo(BaseRepo):
    """Read access to car listings."""

    def _get_car_by_id_implementation(
        self, session: Session, car_id: int
    ) -> Optional[Car]:
        return cast(
            Optional[Car], session.query(Car).filter(Car.id == car_id).one_or_none()
        )

    def get_car_by_id(
        self, car_id: int, session: Optional[Session] = None
    ) -> Optional[Car]:
        """Get a car by id."""
        return cast(
            Optional[Car],
            self._execute_with_session(
                lambda s: self._get_car_by_id_implementation(s, car_id),
                session=session,
                operation_name="get_car_by_id",
            ),
        )
