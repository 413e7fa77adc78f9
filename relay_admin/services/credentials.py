"""Administrative credential bootstrap.

The admin credential lives in two stores:

1. A durable JSON bootstrap record (username and plaintext password) that is
   the source of truth and the recovery source if the cache is lost.
2. A cache-resident session record (username and bcrypt hash) under a
   well-known name, read by the running relay service at start-up.

Writes always go durable first, then cache. A durable failure aborts the
bootstrap; a cache failure leaves the durable record authoritative and is
reported as a degraded success.
"""

import asyncio
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, Optional, Union

import bcrypt
import redis.asyncio as redis
import structlog

from ..config import settings
from ..core.pool import RedisPool, redis_pool
from ..models.admin import AdminCredential, BootstrapRecord, BootstrapResult, BootstrapStatus
from ..models.errors import StorageError, ValidationError
from ..utils.timestamps import utcnow
from .interfaces import AdminCredentialRepositoryInterface, BootstrapRecordStoreInterface

logger = structlog.get_logger(__name__)

RESTART_WARNING = (
    "If the relay service is running, restart it to load the new credentials"
)


# bcrypt only reads the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str, rounds: Optional[int] = None) -> str:
    """Hash a password with bcrypt."""
    salt = bcrypt.gensalt(rounds=rounds or settings.security.bcrypt_rounds)
    return bcrypt.hashpw(_password_bytes(password), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a password against a bcrypt hash."""
    return bcrypt.checkpw(_password_bytes(password), password_hash.encode("utf-8"))


# ============================================================================
# Stores
# ============================================================================


class PlaintextBootstrapRecordStore(BootstrapRecordStoreInterface):
    """Bootstrap record kept as a JSON file, password in plaintext.

    The relay service reads this file to re-derive the admin hash, so the
    plaintext password is part of the record format.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path) if path else settings.init_file_path

    @property
    def location(self) -> str:
        return str(self.path.resolve())

    def exists(self) -> bool:
        return self.path.is_file()

    def load(self) -> Optional[BootstrapRecord]:
        if not self.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            return BootstrapRecord.from_dict(data)
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            raise StorageError(
                f"Failed to read bootstrap record {self.path}: {e}", phase="durable"
            ) from e

    def save(self, record: BootstrapRecord) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(
                json.dumps(record.to_dict(), indent=2), encoding="utf-8"
            )
        except OSError as e:
            raise StorageError(
                f"Failed to write bootstrap record {self.path}: {e}", phase="durable"
            ) from e
        logger.info("Wrote bootstrap record", path=str(self.path), username=record.admin_username)


class AdminCredentialRepository(AdminCredentialRepositoryInterface):
    """The single admin credential, stored under a well-known session name."""

    def __init__(self, pool: Optional[RedisPool] = None, name: Optional[str] = None):
        self.pool = pool or redis_pool
        self.name = name or settings.security.admin_credentials_key

    async def get(self) -> Optional[AdminCredential]:
        try:
            data = await self.pool.get_session(self.name)
        except redis.RedisError as e:
            raise StorageError(f"Failed to read admin credentials: {e}", phase="cache") from e
        return AdminCredential.from_redis_hash(data) if data else None

    async def put(self, credential: AdminCredential) -> None:
        try:
            # ttl 0: the session record never expires
            await self.pool.set_session(self.name, credential.to_redis_hash(), 0)
        except redis.RedisError as e:
            raise StorageError(f"Failed to write admin credentials: {e}", phase="cache") from e
        logger.info("Wrote admin credentials to cache", username=credential.username)


# ============================================================================
# Two-phase write
# ============================================================================


@dataclass
class TwoPhaseOutcome:
    """Result of a durable-then-cache write."""

    cache_error: Optional[Exception] = None

    @property
    def complete(self) -> bool:
        return self.cache_error is None


class TwoPhaseWrite:
    """Run a durable write, then a cache write, in strict order.

    A durable failure raises StorageError(phase="durable") and the cache
    write never runs. A cache failure is returned in the outcome; the
    durable write stays in place.
    """

    def __init__(
        self,
        durable: Callable[[], None],
        cache: Callable[[], Awaitable[None]],
    ):
        self.durable = durable
        self.cache = cache

    async def run(self) -> TwoPhaseOutcome:
        try:
            self.durable()
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Durable write failed: {e}", phase="durable") from e

        try:
            await self.cache()
        except Exception as e:
            logger.warning("Cache write failed after durable write", error=str(e))
            return TwoPhaseOutcome(cache_error=e)

        return TwoPhaseOutcome()


# ============================================================================
# Bootstrap manager
# ============================================================================


class CredentialBootstrapManager:
    """Creates or replaces the single administrative credential."""

    def __init__(
        self,
        record_store: Optional[BootstrapRecordStoreInterface] = None,
        repository: Optional[AdminCredentialRepositoryInterface] = None,
        bcrypt_rounds: Optional[int] = None,
    ):
        self.record_store = record_store or PlaintextBootstrapRecordStore()
        self.repository = repository or AdminCredentialRepository()
        self.bcrypt_rounds = bcrypt_rounds or settings.security.bcrypt_rounds

    def existing_record(self) -> Optional[BootstrapRecord]:
        """The prior bootstrap record, if one exists."""
        return self.record_store.load()

    @staticmethod
    def validate(username: str, password: str, confirm_password: str) -> None:
        """Check bootstrap input.

        Raises:
            ValidationError: If any precondition fails
        """
        security = settings.security
        if not username or len(username) < security.min_username_length:
            raise ValidationError(
                f"Username must be at least {security.min_username_length} characters",
                field="username",
            )
        if not password or len(password) < security.min_password_length:
            raise ValidationError(
                f"Password must be at least {security.min_password_length} characters",
                field="password",
            )
        if password != confirm_password:
            raise ValidationError("Passwords do not match", field="confirm_password")

    async def bootstrap(
        self,
        username: str,
        password: str,
        confirm_password: str,
        overwrite: bool = False,
    ) -> BootstrapResult:
        """Create the admin credential.

        Args:
            username: Admin username
            password: Admin password
            confirm_password: Must equal ``password``
            overwrite: Operator confirmation to replace an existing record

        Returns:
            BootstrapResult; ``cancelled`` when a record exists and overwrite
            was not confirmed, ``degraded`` when only the durable write landed

        Raises:
            ValidationError: If the input is invalid (before any I/O)
            StorageError: If the durable write fails
        """
        self.validate(username, password, confirm_password)

        record_path = Path(self.record_store.location)

        if self.record_store.exists() and not overwrite:
            logger.info("Bootstrap cancelled, existing record kept")
            return BootstrapResult(status=BootstrapStatus.CANCELLED, record_path=record_path)

        now = utcnow()
        record = BootstrapRecord(
            admin_username=username,
            admin_password=password,
            initialized_at=now,
            updated_at=now,
            version=settings.init_file_version,
        )
        credential = AdminCredential(
            username=username,
            password_hash="",
            created_at=now,
            updated_at=now,
            last_login=None,
        )

        async def write_cache() -> None:
            credential.password_hash = await asyncio.to_thread(
                hash_password, password, self.bcrypt_rounds
            )
            await self.repository.put(credential)

        outcome = await TwoPhaseWrite(
            durable=lambda: self.record_store.save(record),
            cache=write_cache,
        ).run()

        if not outcome.complete:
            logger.warning(
                "Admin credential saved to bootstrap record only",
                username=username,
                error=str(outcome.cache_error),
            )
            return BootstrapResult(
                status=BootstrapStatus.DEGRADED,
                record_path=record_path,
                credential=None,
                password=password,
                warning=(
                    f"Credentials were saved to {record_path} but the cache update "
                    f"failed ({outcome.cache_error}). {RESTART_WARNING}"
                ),
                error=outcome.cache_error,
            )

        logger.info("Admin credential created", username=username)
        return BootstrapResult(
            status=BootstrapStatus.CREATED,
            record_path=record_path,
            credential=credential,
            password=password,
            warning=RESTART_WARNING,
        )
