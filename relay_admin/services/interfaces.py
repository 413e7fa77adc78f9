"""Service interfaces for the relay admin control plane."""

# Standard library imports
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

# Local application imports
from ..models import AccountSummary, AdminCredential, ApiKey, BootstrapRecord


class ApiKeyStoreInterface(ABC):
    """Interface for the relay's API key store."""

    @abstractmethod
    async def list_all(self) -> List[ApiKey]:
        """List every API key with its usage totals."""
        pass

    @abstractmethod
    async def update(self, key_id: str, patch: Dict[str, Any]) -> ApiKey:
        """Apply a field patch and return the refreshed key."""
        pass

    @abstractmethod
    async def delete(self, key_id: str) -> None:
        """Remove the key and its secret token."""
        pass


class AccountStoreInterface(ABC):
    """Interface for the read-only upstream account listing."""

    @abstractmethod
    async def list_all(self) -> List[AccountSummary]:
        """List every upstream account."""
        pass


class BootstrapRecordStoreInterface(ABC):
    """Interface for the durable bootstrap record.

    Implementations decide how the credential is persisted; the bootstrap
    manager only relies on this contract.
    """

    @property
    @abstractmethod
    def location(self) -> str:
        """Human-readable location of the record, for operator display."""
        pass

    @abstractmethod
    def exists(self) -> bool:
        """Whether a bootstrap record has been written."""
        pass

    @abstractmethod
    def load(self) -> Optional[BootstrapRecord]:
        """Read the record, or None if never bootstrapped."""
        pass

    @abstractmethod
    def save(self, record: BootstrapRecord) -> None:
        """Write the record, replacing any previous one."""
        pass


class AdminCredentialRepositoryInterface(ABC):
    """Interface for the single cache-resident admin credential."""

    @abstractmethod
    async def get(self) -> Optional[AdminCredential]:
        """Read the live credential."""
        pass

    @abstractmethod
    async def put(self, credential: AdminCredential) -> None:
        """Replace the live credential."""
        pass
