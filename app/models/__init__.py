"""SQLAlchemy models for the messaging backend."""

from typing import Any

from sqlalchemy.orm import declarative_base

# Create the declarative base
Base: Any = declarative_base()

# Import all models so they're registered with Base.metadata
from .car import Car, CarPhoto  # noqa: E402
from .conversation import Conversation  # noqa: E402
from .message import Message  # noqa: E402
from .notification import Notification  # noqa: E402
from .user import User  # noqa: E402

__all__ = [
    "Base",
    "User",
    "Car",
    "CarPhoto",
    "Conversation",
    "Message",
    "Notification",
]
