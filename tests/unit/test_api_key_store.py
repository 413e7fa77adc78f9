"""Unit tests for the Redis-backed API key and account stores."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
import redis.asyncio as redis

from relay_admin.models import NotFoundError, StorageError
from relay_admin.services.accounts import AccountStoreService
from relay_admin.services.api_key_store import ApiKeyStoreService

from conftest import async_iter


def key_hash(key_id: str, **overrides):
    data = {
        "id": key_id,
        "name": f"Key {key_id}",
        "apiKey": f"cr_{key_id}_token",
        "isActive": "true",
        "expiresAt": "",
        "tokenLimit": "0",
        "createdAt": "2024-01-01T00:00:00.000Z",
    }
    data.update(overrides)
    return data


@pytest.fixture
def redis_data():
    """Backing hashes served by the mocked hgetall."""
    return {}


@pytest.fixture
def store(mock_redis, redis_data):
    mock_redis.hgetall = AsyncMock(side_effect=lambda name: redis_data.get(name, {}))
    return ApiKeyStoreService(redis_client=mock_redis)


class TestListAll:
    """Tests for listing keys."""

    @pytest.mark.asyncio
    async def test_skips_hash_map_and_reads_usage(self, store, mock_redis, redis_data):
        redis_data["apikey:b"] = key_hash("b", createdAt="2024-02-01T00:00:00.000Z")
        redis_data["apikey:a"] = key_hash("a", expiresAt="2024-03-01T12:00:00.000Z")
        redis_data["usage:a"] = {"totalTokens": "1500", "totalRequests": "12"}
        mock_redis.scan_iter = MagicMock(
            side_effect=lambda **kwargs: async_iter(["apikey:b", "apikey:hash_map", "apikey:a"])
        )

        keys = await store.list_all()

        assert [key.id for key in keys] == ["a", "b"]
        assert keys[0].expires_at == datetime(2024, 3, 1, 12, tzinfo=UTC)
        assert keys[0].usage.tokens == 1500
        assert keys[0].usage.requests == 12
        assert keys[1].usage.tokens == 0
        assert keys[1].expires_at is None
        mock_redis.scan_iter.assert_called_once_with(match="apikey:*")
        assert "apikey:hash_map" not in [c.args[0] for c in mock_redis.hgetall.call_args_list]

    @pytest.mark.asyncio
    async def test_redis_error(self, store, mock_redis):
        mock_redis.scan_iter = MagicMock(side_effect=redis.ConnectionError("down"))

        with pytest.raises(StorageError) as exc_info:
            await store.list_all()

        assert exc_info.value.phase == "cache"


    @pytest.mark.parametrize(
        "overrides",
        [{"expiresAt": "next tuesday"}, {"tokenLimit": "lots"}, {"id": None}],
    )
    @pytest.mark.asyncio
    async def test_malformed_record(self, store, mock_redis, redis_data, overrides):
        record = key_hash("bad", **overrides)
        redis_data["apikey:bad"] = {k: v for k, v in record.items() if v is not None}
        mock_redis.scan_iter = MagicMock(side_effect=lambda **kwargs: async_iter(["apikey:bad"]))

        with pytest.raises(StorageError) as exc_info:
            await store.list_all()

        assert "apikey:bad" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_malformed_usage(self, store, mock_redis, redis_data):
        redis_data["apikey:a"] = key_hash("a")
        redis_data["usage:a"] = {"totalTokens": "many"}

        with pytest.raises(StorageError):
            await store.get("a")


class TestUpdate:
    """Tests for patching key fields."""

    @pytest.mark.asyncio
    async def test_sets_expiry(self, store, mock_redis, redis_data):
        redis_data["apikey:a"] = key_hash("a")
        new_expiry = datetime(2024, 6, 1, tzinfo=UTC)

        await store.update("a", {"expiresAt": new_expiry})

        name = mock_redis.hset.call_args.args[0]
        mapping = mock_redis.hset.call_args.kwargs["mapping"]
        assert name == "apikey:a"
        assert mapping["expiresAt"] == "2024-06-01T00:00:00.000Z"
        assert mapping["updatedAt"].endswith("Z")

    @pytest.mark.asyncio
    async def test_clears_expiry(self, store, mock_redis, redis_data):
        redis_data["apikey:a"] = key_hash("a", expiresAt="2024-03-01T00:00:00.000Z")

        await store.update("a", {"expiresAt": None})

        assert mock_redis.hset.call_args.kwargs["mapping"]["expiresAt"] == ""

    @pytest.mark.asyncio
    async def test_missing_key(self, store, mock_redis):
        mock_redis.exists.return_value = 0

        with pytest.raises(NotFoundError):
            await store.update("gone", {"expiresAt": None})

        mock_redis.hset.assert_not_called()

    @pytest.mark.asyncio
    async def test_rejects_other_fields(self, store, mock_redis):
        with pytest.raises(ValueError):
            await store.update("a", {"apiKey": "cr_new"})

        mock_redis.hset.assert_not_called()


class TestDelete:
    """Tests for deleting keys."""

    @pytest.mark.asyncio
    async def test_removes_record_index_and_usage(self, store, mock_redis, redis_data):
        redis_data["apikey:a"] = key_hash("a")

        await store.delete("a")

        pipe = mock_redis.pipeline.return_value
        deleted = [c.args[0] for c in pipe.delete.call_args_list]
        assert deleted == ["apikey:a", "usage:a"]
        pipe.hdel.assert_called_once_with("apikey:hash_map", "cr_a_token")
        pipe.execute.assert_called_once()

    @pytest.mark.asyncio
    async def test_missing_key(self, store, mock_redis):
        with pytest.raises(NotFoundError):
            await store.delete("gone")

        mock_redis.pipeline.assert_not_called()

    @pytest.mark.asyncio
    async def test_redis_error(self, store, mock_redis, redis_data):
        redis_data["apikey:a"] = key_hash("a")
        mock_redis.pipeline.return_value.execute.side_effect = redis.ResponseError("READONLY")

        with pytest.raises(StorageError):
            await store.delete("a")


class TestAccountStore:
    """Tests for the read-only account listing."""

    @pytest.mark.asyncio
    async def test_list_all(self, mock_redis, redis_data):
        redis_data["claude:account:acc-1"] = {"name": "Primary", "isActive": "true"}
        redis_data["claude:account:acc-2"] = {}
        mock_redis.hgetall = AsyncMock(side_effect=lambda name: redis_data.get(name, {}))
        mock_redis.scan_iter = MagicMock(
            side_effect=lambda **kwargs: async_iter(["claude:account:acc-1", "claude:account:acc-2"])
        )

        accounts = await AccountStoreService(redis_client=mock_redis).list_all()

        assert [account.id for account in accounts] == ["acc-1"]
        assert accounts[0].is_active is True
        mock_redis.hset.assert_not_called()
