"""Read-only access to the relay's upstream accounts."""

from typing import List, Optional

import redis.asyncio as redis
import structlog

from ..core.pool import redis_pool
from ..models.errors import StorageError
from ..models.status import AccountSummary
from .interfaces import AccountStoreInterface

logger = structlog.get_logger(__name__)


class AccountStoreService(AccountStoreInterface):
    """Lists upstream accounts; this control plane never modifies them."""

    RECORD_PREFIX = "claude:account:"

    def __init__(self, redis_client: Optional[redis.Redis] = None):
        self._redis = redis_client

    @property
    def redis(self) -> redis.Redis:
        """Get Redis client, initializing if needed."""
        if self._redis is None:
            self._redis = redis_pool.get_client()
        return self._redis

    async def list_all(self) -> List[AccountSummary]:
        accounts = []
        try:
            async for record_key in self.redis.scan_iter(match=f"{self.RECORD_PREFIX}*"):
                record_key = record_key.decode() if isinstance(record_key, bytes) else record_key
                data = await self.redis.hgetall(record_key)
                if data:
                    account_id = record_key[len(self.RECORD_PREFIX):]
                    accounts.append(AccountSummary.from_redis_hash(data, account_id))
        except redis.RedisError as e:
            raise StorageError(f"Failed to list accounts: {e}", phase="cache") from e

        logger.debug("Listed accounts", count=len(accounts))
        return accounts
