import logging

import redis.asyncio as redis
from redis.exceptions import ConnectionError as RedisConnectionError, RedisError

logger = logging.getLogger(__name__)


def token_key(user_id: int) -> str:
    return f"token:{user_id}"


class TokenStore:
    """
    Redis-backed store for the single active session token of each user.

    Unlike a cache, failures here are NOT swallowed: a Redis error while
    reading a token must reject the request, so every method lets
    ``RedisError`` propagate to the caller.
    """

    def __init__(self, client: redis.Redis | None = None) -> None:
        self._redis = client

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self, url: str) -> None:
        """Open the connection pool and PING it.  Called once at startup."""
        self._redis = redis.from_url(
            url,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
        try:
            await self._redis.ping()
        except RedisError:
            logger.error("Redis ping failed", exc_info=True)
            raise
        logger.info("Redis connected")

    async def disconnect(self) -> None:
        """Close the connection pool.  Called once at application shutdown."""
        if self._redis:
            await self._redis.aclose()
            self._redis = None

    @property
    def client(self) -> redis.Redis:
        if self._redis is None:
            raise RedisConnectionError("token store is not connected")
        return self._redis

    # ------------------------------------------------------------------
    # Token operations
    # ------------------------------------------------------------------

    async def save(self, user_id: int, token: str, ttl: int) -> None:
        """Store *token* for *user_id*, replacing any previous one."""
        await self.client.set(token_key(user_id), token, ex=ttl)

    async def load(self, user_id: int) -> str | None:
        """Return the stored token for *user_id*, or None when absent/expired."""
        return await self.client.get(token_key(user_id))

    async def delete(self, user_id: int) -> None:
        await self.client.delete(token_key(user_id))
