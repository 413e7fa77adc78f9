"""Data models for the relay admin control plane."""

from .admin import AdminCredential, BootstrapRecord, BootstrapResult, BootstrapStatus
from .api_key import ApiKey, ApiKeyUsage, ExpiryClassification, ExpiryStatus
from .batch import BatchFailure, BatchResult
from .errors import (
    ErrorType,
    RelayAdminException,
    ValidationError,
    PolicyError,
    InvalidDurationError,
    InvalidDateTimeError,
    StorageError,
    NotFoundError,
    ReportingError,
    ServiceUnavailableError,
)
from .status import AccountSummary, StatusSummary

__all__ = [
    # Admin credential models
    "AdminCredential",
    "BootstrapRecord",
    "BootstrapResult",
    "BootstrapStatus",
    # API key models
    "ApiKey",
    "ApiKeyUsage",
    "ExpiryClassification",
    "ExpiryStatus",
    # Batch models
    "BatchFailure",
    "BatchResult",
    # Status models
    "AccountSummary",
    "StatusSummary",
    # Errors
    "ErrorType",
    "RelayAdminException",
    "ValidationError",
    "PolicyError",
    "InvalidDurationError",
    "InvalidDateTimeError",
    "StorageError",
    "NotFoundError",
    "ReportingError",
    "ServiceUnavailableError",
]
