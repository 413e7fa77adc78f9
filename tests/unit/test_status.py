"""Unit tests for the status report."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from relay_admin.core.pool import RedisPool
from relay_admin.models import AccountSummary, ApiKeyUsage, ReportingError, StorageError
from relay_admin.services.status import StatusAggregator


@pytest.fixture
def account_store():
    store = MagicMock()
    store.list_all = AsyncMock(
        return_value=[
            AccountSummary(id="acc-1", name="Primary", is_active=True),
            AccountSummary(id="acc-2", name="Backup", is_active=False),
        ]
    )
    return store


@pytest.fixture
def pool(mock_redis):
    return RedisPool(client=mock_redis)


class TestStatusAggregator:
    """Tests for StatusAggregator.summarize."""

    @pytest.mark.asyncio
    async def test_summary(self, store_factory, sample_keys, account_store, pool):
        await pool.connect()
        aggregator = StatusAggregator(store_factory(sample_keys), account_store, pool)

        summary = await aggregator.summarize()

        assert summary.api_key_count == 4
        assert summary.active_api_key_count == 3
        assert summary.account_count == 2
        assert summary.active_account_count == 1
        assert summary.total_tokens == 150
        assert summary.total_requests == 3
        assert summary.store_connected is True

    @pytest.mark.asyncio
    async def test_missing_usage_counts_as_zero(self, make_key, store_factory, account_store, pool):
        keys = [make_key("a"), make_key("b", usage=ApiKeyUsage(tokens=7))]
        aggregator = StatusAggregator(store_factory(keys), account_store, pool)

        summary = await aggregator.summarize()

        assert summary.total_tokens == 7
        assert summary.total_requests == 0
        assert summary.store_connected is False

    @pytest.mark.asyncio
    async def test_failing_source(self, store_factory, sample_keys, account_store, pool):
        account_store.list_all.side_effect = StorageError("scan failed", phase="cache")
        aggregator = StatusAggregator(store_factory(sample_keys), account_store, pool)

        with pytest.raises(ReportingError) as exc_info:
            await aggregator.summarize()

        assert exc_info.value.source == "accounts"

    @pytest.mark.asyncio
    async def test_does_not_mutate(self, store_factory, sample_keys, account_store, pool):
        store = store_factory(sample_keys)

        await StatusAggregator(store, account_store, pool).summarize()

        assert store.calls == [("list_all",)]
