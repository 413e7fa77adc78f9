"""Administrative credential models."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from ..utils.timestamps import format_timestamp, parse_timestamp
from .api_key import decode_hash


@dataclass
class AdminCredential:
    """Cache-resident admin session record.

    Exactly one live instance exists, stored under a well-known name.
    """

    username: str
    password_hash: str
    created_at: datetime
    updated_at: datetime
    last_login: Optional[datetime] = None

    def to_redis_hash(self) -> Dict[str, str]:
        """Convert to Redis hash format (all string values)."""
        return {
            "username": self.username,
            "passwordHash": self.password_hash,
            "createdAt": format_timestamp(self.created_at),
            "lastLogin": format_timestamp(self.last_login),
            "updatedAt": format_timestamp(self.updated_at),
        }

    @classmethod
    def from_redis_hash(cls, data: Mapping[Any, Any]) -> "AdminCredential":
        """Create from Redis hash data."""
        decoded = decode_hash(data)
        return cls(
            username=decoded["username"],
            password_hash=decoded["passwordHash"],
            created_at=parse_timestamp(decoded.get("createdAt")),
            updated_at=parse_timestamp(decoded.get("updatedAt")),
            last_login=parse_timestamp(decoded.get("lastLogin")),
        )


@dataclass
class BootstrapRecord:
    """Durable bootstrap record, the source of truth for the admin credential.

    Holds the plaintext password alongside the username. The relay service
    re-derives the cached hash from this file when the cache is lost.
    """

    admin_username: str
    admin_password: str
    initialized_at: datetime
    updated_at: datetime
    version: str = "1.0.0"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the on-disk JSON shape."""
        return {
            "initializedAt": format_timestamp(self.initialized_at),
            "adminUsername": self.admin_username,
            "adminPassword": self.admin_password,
            "version": self.version,
            "updatedAt": format_timestamp(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BootstrapRecord":
        """Create from the on-disk JSON shape."""
        initialized_at = parse_timestamp(data.get("initializedAt"))
        return cls(
            admin_username=data["adminUsername"],
            admin_password=data["adminPassword"],
            initialized_at=initialized_at,
            updated_at=parse_timestamp(data.get("updatedAt")) or initialized_at,
            version=data.get("version", "1.0.0"),
        )


class BootstrapStatus(str, Enum):
    """Outcome of a bootstrap attempt."""

    CREATED = "created"
    CANCELLED = "cancelled"
    # Durable record written, cache write failed
    DEGRADED = "degraded"


@dataclass
class BootstrapResult:
    """Result of a credential bootstrap.

    ``password`` is returned for one-time display to the operator and must
    never be logged.
    """

    status: BootstrapStatus
    record_path: Path
    credential: Optional[AdminCredential] = None
    password: Optional[str] = None
    warning: Optional[str] = None
    error: Optional[Exception] = None

    @property
    def succeeded(self) -> bool:
        return self.status in (BootstrapStatus.CREATED, BootstrapStatus.DEGRADED)
