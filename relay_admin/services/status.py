"""Read-only status report for operators."""

# Standard library imports
import asyncio
from typing import Optional

# Third-party imports
import structlog

# Local application imports
from ..core.pool import RedisPool, redis_pool
from ..models.errors import ReportingError
from ..models.status import StatusSummary
from .accounts import AccountStoreService
from .api_key_store import ApiKeyStoreService
from .interfaces import AccountStoreInterface, ApiKeyStoreInterface


logger = structlog.get_logger(__name__)


class StatusAggregator:
    """Summarizes keys, accounts and usage without mutating anything."""

    def __init__(
        self,
        api_key_store: Optional[ApiKeyStoreInterface] = None,
        account_store: Optional[AccountStoreInterface] = None,
        pool: Optional[RedisPool] = None,
    ):
        self.api_key_store = api_key_store or ApiKeyStoreService()
        self.account_store = account_store or AccountStoreService()
        self.pool = pool or redis_pool

    async def summarize(self) -> StatusSummary:
        """Build the status summary.

        Raises:
            ReportingError: If either listing fails
        """
        keys, accounts = await asyncio.gather(
            self.api_key_store.list_all(),
            self.account_store.list_all(),
            return_exceptions=True,
        )

        for source, result in (("api_keys", keys), ("accounts", accounts)):
            if isinstance(result, Exception):
                logger.error("Status source failed", source=source, error=str(result))
                raise ReportingError(source, f"Failed to read {source}: {result}") from result

        summary = StatusSummary(
            api_key_count=len(keys),
            active_api_key_count=sum(1 for key in keys if key.is_active),
            account_count=len(accounts),
            active_account_count=sum(1 for account in accounts if account.is_active),
            total_tokens=sum(key.usage.tokens if key.usage else 0 for key in keys),
            total_requests=sum(key.usage.requests if key.usage else 0 for key in keys),
            store_connected=self.pool.is_connected,
        )
        logger.debug("Built status summary", **summary.to_dict())
        return summary
