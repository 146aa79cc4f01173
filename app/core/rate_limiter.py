"""Per-user request throttling backed by Redis (fixed window)."""

import time
from typing import Optional

import redis

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)

KEY_PREFIX = "rate_limit:user"


class RateLimiter:
    """
    Fixed-window counter per user and endpoint.

    Each window gets its own key, so a counter never outlives its window by
    more than the expiry. Redis being down never blocks a request.
    """

    def __init__(self, redis_url: str = settings.REDIS_URL):
        self.redis_client = redis.Redis.from_url(
            redis_url,
            decode_responses=True,
            socket_connect_timeout=1,
            socket_timeout=1,
        )

    @staticmethod
    def window_key(
        user_id: int, endpoint: str, window: int, now: Optional[float] = None
    ) -> str:
        """Key of the window containing ``now`` (defaults to the current time)."""
        bucket = int((time.time() if now is None else now) // window)
        return f"{KEY_PREFIX}:{user_id}:{endpoint}:{bucket}"

    async def check_rate_limit(self, key: str, limit: int, window: int) -> bool:
        """Count one hit on ``key``; True while the count stays within ``limit``."""
        try:
            pipe = self.redis_client.pipeline()
            pipe.incr(key)
            pipe.expire(key, window)
            current_count = pipe.execute()[0]
        except redis.RedisError as e:
            logger.warning(f"Rate limiter unavailable, allowing request: {e}")
            return True

        if current_count > limit:
            logger.info(f"Rate limit hit on {key} ({current_count}/{limit})")
            return False
        return True

    async def check_user_rate_limit(
        self, user_id: int, endpoint: str, limit: int, window: int = 60
    ) -> bool:
        return await self.check_rate_limit(
            self.window_key(user_id, endpoint, window), limit, window
        )

    def ping(self) -> bool:
        """Whether Redis answers; reported by the readiness probe."""
        try:
            return bool(self.redis_client.ping())
        except redis.RedisError:
            return False


rate_limiter = RateLimiter()


def get_rate_limiter() -> RateLimiter:
    """FastAPI dependency returning the shared rate limiter."""
    return rate_limiter
