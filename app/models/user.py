"""User model."""

from datetime import datetime, timezone

from sqlalchemy import TIMESTAMP, Column, Integer, String

from . import Base


class User(Base):
    """Marketplace account, read-only from the messaging side."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    firstname = Column(String(100), nullable=False)
    email = Column(String(100), unique=True, nullable=False, index=True)
    phone = Column(String(20), nullable=False)
    created_at = Column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    @property
    def display_name(self) -> str:
        return f"{self.firstname} {self.name}"

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}')>"
