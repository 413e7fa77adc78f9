"""Redis connection management.

One operator session holds one Redis client for its whole lifetime. The
connection is acquired once at session start and released on every exit
path through ``redis_session()``.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional

import redis.asyncio as redis
import structlog

from ..config import settings
from ..models.errors import ServiceUnavailableError

logger = structlog.get_logger(__name__)


class RedisPool:
    """Shared async Redis connection for an administrative session.

    Usage:
        async with redis_session() as pool:
            client = pool.get_client()
            await client.hgetall("apikey:abc")
    """

    SESSION_PREFIX = "session:"

    def __init__(self, client: Optional[redis.Redis] = None):
        self._pool: Optional[redis.ConnectionPool] = None
        self._client: Optional[redis.Redis] = client
        self._initialized = client is not None
        self._connected = False

    def _initialize(self) -> None:
        """Initialize the connection pool lazily."""
        if self._initialized:
            return

        redis_url = settings.get_redis_url()
        self._pool = redis.ConnectionPool.from_url(
            redis_url,
            max_connections=settings.redis_max_connections,
            decode_responses=True,
            socket_timeout=float(settings.redis_socket_timeout),
            socket_connect_timeout=float(settings.redis_socket_connect_timeout),
        )
        self._client = redis.Redis(connection_pool=self._pool)
        self._initialized = True
        logger.debug(
            "Redis connection pool initialized",
            max_connections=settings.redis_max_connections,
            url=redis_url.split("@")[-1],  # Don't log password
        )

    @property
    def is_connected(self) -> bool:
        """Whether the last connect() succeeded and disconnect() has not run."""
        return self._connected

    def get_client(self) -> redis.Redis:
        """Get the async Redis client.

        Returns:
            Async Redis client instance
        """
        if not self._initialized:
            self._initialize()
        assert self._client is not None, "Redis client not initialized"
        return self._client

    async def connect(self) -> None:
        """Open the connection and verify it with a ping.

        Raises:
            ServiceUnavailableError: If Redis cannot be reached
        """
        client = self.get_client()
        try:
            await client.ping()
        except (redis.RedisError, OSError) as e:
            self._connected = False
            logger.error("Failed to connect to Redis", error=str(e))
            raise ServiceUnavailableError("Redis", f"Cannot connect to Redis: {e}") from e
        self._connected = True
        logger.info("Connected to Redis")

    async def disconnect(self) -> None:
        """Close the connection and release all connections."""
        if self._client is not None:
            await self._client.aclose()
            logger.info("Redis connection closed")
        if self._pool is not None:
            await self._pool.disconnect()
        self._pool = None
        self._client = None
        self._initialized = False
        self._connected = False

    async def set_session(
        self, name: str, value: Dict[str, str], ttl_seconds: int = 0
    ) -> None:
        """Store a session hash under ``session:{name}``.

        A ``ttl_seconds`` of 0 stores the record without expiry.
        """
        key = f"{self.SESSION_PREFIX}{name}"
        pipe = self.get_client().pipeline(transaction=True)
        pipe.delete(key)
        pipe.hset(key, mapping=value)
        if ttl_seconds > 0:
            pipe.expire(key, ttl_seconds)
        await pipe.execute()

    async def get_session(self, name: str) -> Optional[Dict[str, str]]:
        """Read the session hash stored under ``session:{name}``."""
        data = await self.get_client().hgetall(f"{self.SESSION_PREFIX}{name}")
        return data or None


@asynccontextmanager
async def redis_session(pool: Optional[RedisPool] = None) -> AsyncIterator[RedisPool]:
    """Connect once, yield the pool, and always disconnect on exit."""
    pool = pool or redis_pool
    try:
        await pool.connect()
        yield pool
    finally:
        await pool.disconnect()


# Global Redis pool instance
redis_pool = RedisPool()
