"""API Key Lifecycle Service.

Classifies keys by expiry status and applies expiry mutations:
- Classification into active / expiring soon / expired / never
- Setting a key's expiry from an instant, a duration token or a custom date
- Renewing keys that are about to expire
- Deleting keys one at a time or in batches

Every mutation takes a ``confirmed`` flag obtained by the caller; this
service never prompts. Key collections are fetched fresh on each call.
"""

from datetime import datetime, timedelta
from typing import Iterable, List, Mapping, Optional, Union

import structlog

from ..config import settings
from ..models.api_key import ApiKey, ExpiryClassification, ExpiryStatus
from ..models.batch import BatchResult
from ..models.errors import ValidationError
from ..utils.timestamps import format_timestamp, utcnow
from .api_key_store import ApiKeyStoreService
from .batch import apply_all
from .duration import DurationToken, extend_expiry, parse_token, resolve_custom, resolve_expiry
from .interfaces import ApiKeyStoreInterface

logger = structlog.get_logger(__name__)


class ApiKeyLifecycleService:
    """Expiry lifecycle of the relay's API keys."""

    def __init__(
        self,
        store: Optional[ApiKeyStoreInterface] = None,
        expiring_window_days: Optional[int] = None,
    ):
        """Initialize the lifecycle service.

        Args:
            store: API key store, defaults to the Redis-backed store
            expiring_window_days: Lookahead for "expiring soon", defaults to settings
        """
        self.store = store or ApiKeyStoreService()
        self.expiring_window = timedelta(
            days=expiring_window_days or settings.expiring_window_days
        )

    # ========================================================================
    # Classification
    # ========================================================================

    def expiry_status(self, key: ApiKey, now: datetime) -> ExpiryStatus:
        """Expiry status of a single key relative to ``now``."""
        if key.expires_at is None:
            return ExpiryStatus.NEVER
        if key.expires_at <= now:
            return ExpiryStatus.EXPIRED
        if key.expires_at <= now + self.expiring_window:
            return ExpiryStatus.EXPIRING_SOON
        return ExpiryStatus.ACTIVE

    def classify(self, keys: Iterable[ApiKey], now: datetime) -> ExpiryClassification:
        """Partition keys by expiry status, preserving their order."""
        classification = ExpiryClassification(now=now)
        for key in keys:
            classification.bucket(self.expiry_status(key, now)).append(key)
        return classification

    async def list_keys(self) -> List[ApiKey]:
        """Fetch the current key collection from the store."""
        return await self.store.list_all()

    async def classify_current(self, now: Optional[datetime] = None) -> ExpiryClassification:
        """Fetch the current keys and classify them."""
        keys = await self.list_keys()
        return self.classify(keys, now or utcnow())

    # ========================================================================
    # Single-key expiry
    # ========================================================================

    @staticmethod
    def resolve_target(
        token: Union[str, DurationToken],
        now: datetime,
        custom_date: Optional[str] = None,
        custom_time: Optional[str] = None,
    ) -> Optional[datetime]:
        """Resolve a token, or a custom date/time pair, to an expiry instant.

        Raises:
            PolicyError: If the token or custom input is invalid
        """
        token = parse_token(token)
        if token is DurationToken.CUSTOM:
            return resolve_custom(custom_date, custom_time)
        return resolve_expiry(token, now)

    async def set_expiry(
        self,
        key_id: str,
        new_expires_at: Optional[datetime],
        confirmed: bool,
    ) -> Optional[ApiKey]:
        """Overwrite a key's expiry; ``None`` makes it never expire.

        Args:
            key_id: Key identifier
            new_expires_at: Absolute expiry instant or None
            confirmed: Operator confirmation; nothing is written without it

        Returns:
            The updated key, or None if the operator did not confirm

        Raises:
            NotFoundError: If the key no longer exists
        """
        if not confirmed:
            logger.info("Expiry update cancelled", key_id=key_id)
            return None

        updated = await self.store.update(key_id, {"expiresAt": new_expires_at})
        logger.info(
            "Set API key expiry",
            key_id=key_id,
            expires_at=format_timestamp(new_expires_at) or "never",
        )
        return updated

    async def set_expiry_from_token(
        self,
        key_id: str,
        token: Union[str, DurationToken],
        confirmed: bool,
        now: Optional[datetime] = None,
        custom_date: Optional[str] = None,
        custom_time: Optional[str] = None,
    ) -> Optional[ApiKey]:
        """Resolve a duration choice and apply it to a key.

        Policy errors are raised before any mutation is attempted.
        """
        target = self.resolve_target(token, now or utcnow(), custom_date, custom_time)
        return await self.set_expiry(key_id, target, confirmed)

    # ========================================================================
    # Renewal
    # ========================================================================

    def _renew_one(self, days: int):
        async def renew(key: ApiKey) -> ApiKey:
            return await self.store.update(
                key.id, {"expiresAt": extend_expiry(key.expires_at, days)}
            )

        return renew

    async def renew_expiring(
        self,
        days: int,
        confirmed: bool,
        now: Optional[datetime] = None,
        keys: Optional[List[ApiKey]] = None,
    ) -> BatchResult[ApiKey]:
        """Extend every expiring-soon key by ``days`` from its own expiry.

        The expiring partition is taken once, before the batch starts, and
        only that snapshot is renewed. Expired and never-expiring keys are
        left untouched.

        Args:
            days: Days added to each key's current expiry
            confirmed: Operator confirmation
            now: Reference instant for the snapshot
            keys: Key collection to classify; fetched fresh when omitted

        Returns:
            BatchResult over the expiring keys
        """
        if days <= 0:
            raise ValidationError("Renewal days must be positive", field="days")

        if not confirmed:
            total = len(self.classify(keys, now or utcnow()).expiring_soon) if keys else 0
            logger.info("Renewal cancelled", days=days)
            return BatchResult(total=total, cancelled=True)

        snapshot = self.classify(
            keys if keys is not None else await self.list_keys(), now or utcnow()
        )
        return await apply_all(
            snapshot.expiring_soon,
            self._renew_one(days),
            label=lambda key: key.name,
            operation="renew",
        )

    async def renew_selected(
        self,
        plan: Mapping[str, Optional[int]],
        confirmed: bool,
        now: Optional[datetime] = None,
        keys: Optional[List[ApiKey]] = None,
    ) -> BatchResult[ApiKey]:
        """Renew expiring-soon keys individually.

        Args:
            plan: Key id to days of renewal; ids mapped to None or 0 are skipped
            confirmed: Operator confirmation
            now: Reference instant for the snapshot
            keys: Key collection to classify; fetched fresh when omitted

        Returns:
            BatchResult over the keys selected for renewal. Keys in the plan
            that are not expiring soon at snapshot time are ignored.
        """
        if any(days is not None and days < 0 for days in plan.values()):
            raise ValidationError("Renewal days must be positive", field="plan")

        if not confirmed:
            requested = sum(1 for days in plan.values() if days)
            logger.info("Renewal cancelled", count=requested)
            return BatchResult(total=requested, cancelled=True)

        snapshot = self.classify(
            keys if keys is not None else await self.list_keys(), now or utcnow()
        )
        selected = [key for key in snapshot.expiring_soon if plan.get(key.id)]

        async def renew(key: ApiKey) -> ApiKey:
            return await self._renew_one(plan[key.id])(key)

        return await apply_all(
            selected, renew, label=lambda key: key.name, operation="renew"
        )

    # ========================================================================
    # Deletion
    # ========================================================================

    async def delete(self, key_id: str, confirmed: bool) -> bool:
        """Irrevocably delete a key.

        Returns:
            True if deleted, False if the operator did not confirm

        Raises:
            NotFoundError: If the key does not exist
        """
        if not confirmed:
            logger.info("Deletion cancelled", key_id=key_id)
            return False
        await self.store.delete(key_id)
        return True

    async def delete_many(self, key_ids: Iterable[str], confirmed: bool) -> BatchResult[str]:
        """Delete several keys, continuing past individual failures."""
        key_ids = list(dict.fromkeys(key_ids))
        if not confirmed:
            logger.info("Batch deletion cancelled", count=len(key_ids))
            return BatchResult.cancelled_for(key_ids)

        return await apply_all(key_ids, self.store.delete, operation="delete")


def describe_expiry(status: ExpiryStatus) -> str:
    """Operator-facing label for an expiry status."""
    return {
        ExpiryStatus.ACTIVE: "Active",
        ExpiryStatus.EXPIRING_SOON: "Expiring soon",
        ExpiryStatus.EXPIRED: "Expired",
        ExpiryStatus.NEVER: "Never expires",
    }[status]

