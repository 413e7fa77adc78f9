"""Services module for the relay admin control plane."""

from .accounts import AccountStoreService
from .api_key_store import ApiKeyStoreService
from .batch import apply_all
from .credentials import (
    AdminCredentialRepository,
    CredentialBootstrapManager,
    PlaintextBootstrapRecordStore,
    TwoPhaseWrite,
)
from .duration import DurationToken, resolve_custom, resolve_expiry
from .interfaces import (
    AccountStoreInterface,
    AdminCredentialRepositoryInterface,
    ApiKeyStoreInterface,
    BootstrapRecordStoreInterface,
)
from .lifecycle import ApiKeyLifecycleService
from .status import StatusAggregator

__all__ = [
    "AccountStoreService",
    "ApiKeyStoreService",
    "apply_all",
    "AdminCredentialRepository",
    "CredentialBootstrapManager",
    "PlaintextBootstrapRecordStore",
    "TwoPhaseWrite",
    "DurationToken",
    "resolve_custom",
    "resolve_expiry",
    "AccountStoreInterface",
    "AdminCredentialRepositoryInterface",
    "ApiKeyStoreInterface",
    "BootstrapRecordStoreInterface",
    "ApiKeyLifecycleService",
    "StatusAggregator",
]
