"""In-process registry of users with a live realtime connection."""

import asyncio
from typing import Any, Dict, Optional, Protocol

from app.core.logging import get_logger
from app.core.observability.metrics import log_presence_change

logger = get_logger(__name__)


class Connection(Protocol):
    """What the registry needs from a live connection (a Starlette WebSocket fits)."""

    async def send_json(self, data: Any, mode: str = "text") -> None: ...

    async def close(self, code: int = 1000, reason: Optional[str] = None) -> None: ...


class PresenceRegistry:
    """
    Maps a user id to its single active connection.

    Owned by the application lifespan: created and started on startup,
    closed on shutdown. A second connection from the same user replaces the
    first one (last connection wins).
    """

    def __init__(self):
        self._connections: Dict[int, Connection] = {}
        self._lock = asyncio.Lock()
        self._started = False

    @property
    def started(self) -> bool:
        return self._started

    async def start(self) -> None:
        self._started = True
        logger.info("Presence registry started")

    async def close(self) -> None:
        """Close every live connection and forget all entries."""
        async with self._lock:
            connections = list(self._connections.items())
            self._connections.clear()
            self._started = False

        for user_id, connection in connections:
            try:
                await connection.close(code=1001)
            except Exception as e:
                logger.debug(f"Error closing connection for user {user_id}: {e}")
        logger.info(f"Presence registry closed ({len(connections)} connections)")

    async def register(self, user_id: int, connection: Connection) -> Optional[Connection]:
        """
        Register a connection for a user.

        Returns:
            The connection it displaced, if the user was already present.
        """
        async with self._lock:
            previous = self._connections.get(user_id)
            self._connections[user_id] = connection
            online = len(self._connections)

        if previous is not None and previous is not connection:
            logger.info(f"User {user_id} reconnected; replacing previous connection")
        log_presence_change("registered", user_id, online)
        return previous

    async def unregister(
        self, user_id: int, connection: Optional[Connection] = None
    ) -> bool:
        """
        Remove a user's entry.

        When a connection is given, the entry is only removed if it still
        points at that connection, so a stale socket closing late cannot
        evict a newer one.
        """
        async with self._lock:
            current = self._connections.get(user_id)
            if current is None:
                return False
            if connection is not None and current is not connection:
                return False
            del self._connections[user_id]
            online = len(self._connections)

        log_presence_change("unregistered", user_id, online)
        return True

    async def get(self, user_id: int) -> Optional[Connection]:
        """Look up a user's connection; absence is a normal outcome."""
        async with self._lock:
            return self._connections.get(user_id)

    async def is_online(self, user_id: int) -> bool:
        return await self.get(user_id) is not None

    def online_count(self) -> int:
        return len(self._connections)
