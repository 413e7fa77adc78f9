"""API key data models for expiry lifecycle management."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from ..utils.timestamps import format_timestamp, parse_timestamp


def decode_hash(data: Mapping[Any, Any]) -> Dict[str, str]:
    """Decode a Redis hash that may carry bytes keys/values."""
    return {
        k.decode() if isinstance(k, bytes) else k: v.decode()
        if isinstance(v, bytes)
        else v
        for k, v in data.items()
    }


@dataclass
class ApiKeyUsage:
    """Lifetime usage totals for an API key."""

    tokens: int = 0
    requests: int = 0

    @classmethod
    def from_redis_hash(cls, data: Optional[Mapping[Any, Any]]) -> "ApiKeyUsage":
        """Create from the ``usage:{id}`` hash. Missing fields count as zero."""
        if not data:
            return cls()
        decoded = decode_hash(data)
        return cls(
            tokens=int(decoded.get("totalTokens") or 0),
            requests=int(decoded.get("totalRequests") or 0),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the relay's nested usage shape."""
        return {"total": {"tokens": self.tokens, "requests": self.requests}}


@dataclass
class ApiKey:
    """API key record owned by the relay service.

    ``expires_at`` of ``None`` means the key never expires; it is a distinct
    permanent state rather than a sentinel duration.
    """

    id: str
    name: str
    api_key: str  # Stored secret token (hashed by the relay); never mutated here
    is_active: bool = True
    expires_at: Optional[datetime] = None
    token_limit: Optional[int] = None
    created_at: Optional[datetime] = None
    usage: ApiKeyUsage = field(default_factory=ApiKeyUsage)

    @property
    def display_token(self) -> str:
        """Truncated token for operator display."""
        if not self.api_key:
            return "-"
        return f"{self.api_key[:20]}..."

    @classmethod
    def from_redis_hash(
        cls, data: Mapping[Any, Any], usage: Optional[ApiKeyUsage] = None
    ) -> "ApiKey":
        """Create from the ``apikey:{id}`` hash."""
        decoded = decode_hash(data)

        token_limit = decoded.get("tokenLimit")
        return cls(
            id=decoded["id"],
            name=decoded.get("name", ""),
            api_key=decoded.get("apiKey", ""),
            is_active=decoded.get("isActive", "true").lower() == "true",
            expires_at=parse_timestamp(decoded.get("expiresAt")),
            # The relay stores 0 for "no token limit"
            token_limit=int(token_limit) if token_limit and int(token_limit) > 0 else None,
            created_at=parse_timestamp(decoded.get("createdAt")),
            usage=usage or ApiKeyUsage(),
        )

    def to_display_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for display (CLI output)."""
        return {
            "id": self.id,
            "name": self.name,
            "apiKey": self.display_token,
            "isActive": self.is_active,
            "expiresAt": format_timestamp(self.expires_at) or None,
            "tokenLimit": self.token_limit,
            "usage": self.usage.to_dict(),
        }


class ExpiryStatus(str, Enum):
    """Expiry partition of an API key relative to a reference instant."""

    ACTIVE = "active"
    EXPIRING_SOON = "expiring_soon"
    EXPIRED = "expired"
    NEVER = "never"


@dataclass
class ExpiryClassification:
    """Partition of a key collection by expiry status."""

    now: datetime
    active: List[ApiKey] = field(default_factory=list)
    expiring_soon: List[ApiKey] = field(default_factory=list)
    expired: List[ApiKey] = field(default_factory=list)
    never: List[ApiKey] = field(default_factory=list)

    def bucket(self, status: ExpiryStatus) -> List[ApiKey]:
        """Get the list holding keys of the given status."""
        return {
            ExpiryStatus.ACTIVE: self.active,
            ExpiryStatus.EXPIRING_SOON: self.expiring_soon,
            ExpiryStatus.EXPIRED: self.expired,
            ExpiryStatus.NEVER: self.never,
        }[status]

    @property
    def total(self) -> int:
        return (
            len(self.active)
            + len(self.expiring_soon)
            + len(self.expired)
            + len(self.never)
        )
