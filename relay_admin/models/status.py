"""Read-only status models."""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping

from .api_key import decode_hash


@dataclass
class AccountSummary:
    """Upstream account as seen by the status report (read-only)."""

    id: str
    name: str = ""
    is_active: bool = False
    status: str = ""
    attributes: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_redis_hash(
        cls, data: Mapping[Any, Any], account_id: str = ""
    ) -> "AccountSummary":
        decoded = decode_hash(data)
        return cls(
            id=decoded.get("id") or account_id,
            name=decoded.get("name", ""),
            is_active=decoded.get("isActive", "false").lower() == "true",
            status=decoded.get("status", ""),
            attributes=decoded,
        )


@dataclass
class StatusSummary:
    """Operator status report."""

    api_key_count: int
    active_api_key_count: int
    account_count: int
    active_account_count: int
    total_tokens: int
    total_requests: int
    store_connected: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "apiKeyCount": self.api_key_count,
            "activeApiKeyCount": self.active_api_key_count,
            "accountCount": self.account_count,
            "activeAccountCount": self.active_account_count,
            "totalTokens": self.total_tokens,
            "totalRequests": self.total_requests,
            "storeConnected": self.store_connected,
        }
