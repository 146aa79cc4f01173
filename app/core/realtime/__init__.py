"""Realtime presence and event delivery."""

from .dispatcher import RealtimeDispatcher
from .presence import Connection, PresenceRegistry

__all__ = ["Connection", "PresenceRegistry", "RealtimeDispatcher"]
