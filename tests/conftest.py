"""Pytest configuration and shared fixtures."""

import os
from datetime import UTC, datetime, timedelta
from typing import Any, Dict, List, Optional, Set
from unittest.mock import AsyncMock, MagicMock

import pytest

# Set test environment before importing config
os.environ["REDIS_HOST"] = "localhost"
os.environ["REDIS_PORT"] = "6379"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["LOG_LEVEL"] = "WARNING"

from relay_admin.models import ApiKey, ApiKeyUsage, NotFoundError
from relay_admin.services.interfaces import ApiKeyStoreInterface


def async_iter(items):
    """Build an async iterator, as returned by Redis scan_iter."""

    async def gen():
        for item in items:
            yield item

    return gen()


class InMemoryApiKeyStore(ApiKeyStoreInterface):
    """API key store double that records every mutation."""

    def __init__(self, keys: Optional[List[ApiKey]] = None, fail_ids: Optional[Set[str]] = None):
        self.keys: Dict[str, ApiKey] = {key.id: key for key in keys or []}
        self.fail_ids = fail_ids or set()
        self.calls: List[tuple] = []

    async def list_all(self) -> List[ApiKey]:
        self.calls.append(("list_all",))
        return list(self.keys.values())

    async def update(self, key_id: str, patch: Dict[str, Any]) -> ApiKey:
        self.calls.append(("update", key_id, dict(patch)))
        if key_id in self.fail_ids:
            raise RuntimeError(f"update failed for {key_id}")
        if key_id not in self.keys:
            raise NotFoundError("API key", key_id)
        self.keys[key_id].expires_at = patch["expiresAt"]
        return self.keys[key_id]

    async def delete(self, key_id: str) -> None:
        self.calls.append(("delete", key_id))
        if key_id in self.fail_ids:
            raise RuntimeError(f"delete failed for {key_id}")
        if key_id not in self.keys:
            raise NotFoundError("API key", key_id)
        del self.keys[key_id]

    @property
    def updated_ids(self) -> List[str]:
        return [call[1] for call in self.calls if call[0] == "update"]


@pytest.fixture
def now():
    """Fixed reference instant."""
    return datetime(2024, 1, 1, tzinfo=UTC)


@pytest.fixture
def make_key():
    """Factory for ApiKey records."""

    def factory(key_id: str, expires_at: Optional[datetime] = None, **kwargs) -> ApiKey:
        return ApiKey(
            id=key_id,
            name=kwargs.pop("name", f"Key {key_id}"),
            api_key=kwargs.pop("api_key", f"cr_{key_id}_secret"),
            expires_at=expires_at,
            **kwargs,
        )

    return factory


@pytest.fixture
def sample_keys(make_key, now):
    """One key in each expiry partition."""
    return [
        make_key("soon", now + timedelta(days=3), usage=ApiKeyUsage(tokens=100, requests=2)),
        make_key("expired", now - timedelta(days=1)),
        make_key("never", None, usage=ApiKeyUsage(tokens=50, requests=1)),
        make_key("later", now + timedelta(days=30), is_active=False),
    ]


@pytest.fixture
def mock_redis():
    """Mock Redis client for testing."""
    redis_mock = AsyncMock()
    redis_mock.hgetall = AsyncMock(return_value={})
    redis_mock.hset = AsyncMock(return_value=1)
    redis_mock.exists = AsyncMock(return_value=1)
    redis_mock.delete = AsyncMock(return_value=1)
    redis_mock.ping = AsyncMock(return_value=True)
    redis_mock.aclose = AsyncMock()
    redis_mock.scan_iter = MagicMock(side_effect=lambda **kwargs: async_iter([]))

    # Mock pipeline
    pipeline_mock = AsyncMock()
    pipeline_mock.hset = MagicMock()
    pipeline_mock.hdel = MagicMock()
    pipeline_mock.delete = MagicMock()
    pipeline_mock.expire = MagicMock()
    pipeline_mock.execute = AsyncMock(return_value=[1, 1, 1])
    redis_mock.pipeline = MagicMock(return_value=pipeline_mock)

    return redis_mock


@pytest.fixture
def store_factory():
    """Factory for in-memory API key stores."""
    return InMemoryApiKeyStore
