"""API Key Store Service.

Reads and mutates the relay service's API key records in Redis:
- Listing keys together with their lifetime usage totals
- Patching record fields (expiry)
- Deleting keys and their secret token index entry

Records are always read fresh; nothing is cached between calls.
"""

from typing import Any, Dict, List, Optional

import redis.asyncio as redis
import structlog

from ..core.pool import redis_pool
from ..models.api_key import ApiKey, ApiKeyUsage, decode_hash
from ..models.errors import NotFoundError, StorageError
from ..utils.timestamps import format_timestamp, utcnow
from .interfaces import ApiKeyStoreInterface

logger = structlog.get_logger(__name__)


class ApiKeyStoreService(ApiKeyStoreInterface):
    """API key records stored in Redis by the relay service."""

    # Redis key prefixes
    RECORD_PREFIX = "apikey:"
    HASH_MAP_KEY = "apikey:hash_map"
    USAGE_PREFIX = "usage:"

    # Fields the admin CLI is allowed to patch
    PATCHABLE_FIELDS = {"expiresAt"}

    def __init__(self, redis_client: Optional[redis.Redis] = None):
        """Initialize the API key store.

        Args:
            redis_client: Optional Redis client, uses shared pool if not provided
        """
        self._redis = redis_client

    @property
    def redis(self) -> redis.Redis:
        """Get Redis client, initializing if needed."""
        if self._redis is None:
            self._redis = redis_pool.get_client()
        return self._redis

    def _record_key(self, key_id: str) -> str:
        return f"{self.RECORD_PREFIX}{key_id}"

    async def _get_usage(self, key_id: str) -> Dict[str, Any]:
        return await self.redis.hgetall(f"{self.USAGE_PREFIX}{key_id}")

    def _parse(self, record_key: str, data, usage_data) -> ApiKey:
        """Build an ApiKey from its stored record and usage hashes.

        Raises:
            StorageError: If the stored record is malformed
        """
        try:
            usage = ApiKeyUsage.from_redis_hash(usage_data)
            return ApiKey.from_redis_hash(data, usage=usage)
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            raise StorageError(
                f"Malformed API key record {record_key}: {e!r}", phase="cache"
            ) from e

    async def get(self, key_id: str) -> Optional[ApiKey]:
        """Get an API key by id.

        Args:
            key_id: Key identifier

        Returns:
            ApiKey or None if not found
        """
        try:
            data = await self.redis.hgetall(self._record_key(key_id))
            if not data:
                return None
            usage = await self._get_usage(key_id)
        except redis.RedisError as e:
            raise StorageError(f"Failed to read API key {key_id}: {e}", phase="cache") from e

        return self._parse(self._record_key(key_id), data, usage)

    async def list_all(self) -> List[ApiKey]:
        """List all API keys.

        Returns:
            List of ApiKey objects, oldest first
        """
        keys = []
        try:
            async for record_key in self.redis.scan_iter(match=f"{self.RECORD_PREFIX}*"):
                record_key = record_key.decode() if isinstance(record_key, bytes) else record_key
                if record_key == self.HASH_MAP_KEY:
                    continue
                key_id = record_key[len(self.RECORD_PREFIX):]
                data = await self.redis.hgetall(record_key)
                if not data:
                    continue
                usage = await self._get_usage(key_id)
                keys.append(self._parse(record_key, data, usage))
        except redis.RedisError as e:
            raise StorageError(f"Failed to list API keys: {e}", phase="cache") from e

        keys.sort(key=lambda k: (format_timestamp(k.created_at), k.name))
        return keys

    async def update(self, key_id: str, patch: Dict[str, Any]) -> ApiKey:
        """Apply a field patch to an API key.

        Args:
            key_id: Key identifier
            patch: Mapping of relay field name to new value; ``expiresAt``
                accepts a datetime or None (never expires)

        Returns:
            The refreshed ApiKey

        Raises:
            NotFoundError: If the key no longer exists
        """
        unknown = set(patch) - self.PATCHABLE_FIELDS
        if unknown:
            raise ValueError(f"Unsupported API key fields: {sorted(unknown)}")

        record_key = self._record_key(key_id)
        mapping = {
            name: format_timestamp(value) if name == "expiresAt" else str(value)
            for name, value in patch.items()
        }
        mapping["updatedAt"] = format_timestamp(utcnow())

        try:
            if not await self.redis.exists(record_key):
                raise NotFoundError("API key", key_id)
            await self.redis.hset(record_key, mapping=mapping)
        except redis.RedisError as e:
            raise StorageError(f"Failed to update API key {key_id}: {e}", phase="cache") from e

        logger.info("Updated API key", key_id=key_id, fields=sorted(patch))

        record = await self.get(key_id)
        if record is None:
            raise NotFoundError("API key", key_id)
        return record

    async def delete(self, key_id: str) -> None:
        """Delete an API key, its token index entry and its usage counters.

        Raises:
            NotFoundError: If the key does not exist
        """
        record_key = self._record_key(key_id)
        try:
            data = await self.redis.hgetall(record_key)
            if not data:
                raise NotFoundError("API key", key_id)
            token = decode_hash(data).get("apiKey")

            pipe = self.redis.pipeline(transaction=True)
            pipe.delete(record_key)
            if token:
                pipe.hdel(self.HASH_MAP_KEY, token)
            pipe.delete(f"{self.USAGE_PREFIX}{key_id}")
            await pipe.execute()
        except redis.RedisError as e:
            raise StorageError(f"Failed to delete API key {key_id}: {e}", phase="cache") from e

        logger.info("Deleted API key", key_id=key_id)
