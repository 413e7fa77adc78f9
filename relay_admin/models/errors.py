"""Error models and exception classes for the relay admin control plane."""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorType(str, Enum):
    """Error type enumeration."""

    VALIDATION = "validation"
    POLICY = "policy"
    STORAGE = "storage"
    RESOURCE_NOT_FOUND = "resource_not_found"
    REPORTING = "reporting"
    SERVICE_UNAVAILABLE = "service_unavailable"
    INTERNAL = "internal"


# Custom Exception Classes


class RelayAdminException(Exception):
    """Base exception for the relay admin control plane."""

    def __init__(
        self,
        message: str,
        error_type: ErrorType = ErrorType.INTERNAL,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_type = error_type
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for display."""
        result = {"error": self.message, "error_type": self.error_type.value}
        if self.details:
            result["details"] = self.details
        return result


class ValidationError(RelayAdminException):
    """Input shape or range errors. Raised before any storage access."""

    def __init__(self, message: str = "Validation failed", field: str = None, **kwargs):
        self.field = field
        details = kwargs.pop("details", None) or {}
        if field:
            details["field"] = field
        super().__init__(
            message=message, error_type=ErrorType.VALIDATION, details=details, **kwargs
        )


class PolicyError(RelayAdminException):
    """Expiry policy errors (unknown duration token, malformed custom date)."""

    def __init__(self, message: str = "Invalid expiry policy", **kwargs):
        super().__init__(message=message, error_type=ErrorType.POLICY, **kwargs)


class InvalidDurationError(PolicyError):
    """Unrecognized duration token."""

    def __init__(self, token: Any, **kwargs):
        self.token = token
        super().__init__(message=f"Unrecognized duration token: {token!r}", **kwargs)


class InvalidDateTimeError(PolicyError):
    """Custom expiry date or time failed validation."""

    def __init__(self, message: str = "Invalid custom date/time", **kwargs):
        super().__init__(message=message, **kwargs)


class StorageError(RelayAdminException):
    """Durable record or cache I/O failure.

    ``phase`` names the store that failed: ``"durable"`` for the bootstrap
    record file, ``"cache"`` for Redis.
    """

    def __init__(self, message: str = "Storage operation failed", phase: str = None, **kwargs):
        self.phase = phase
        details = kwargs.pop("details", None) or {}
        if phase:
            details["phase"] = phase
        super().__init__(
            message=message, error_type=ErrorType.STORAGE, details=details, **kwargs
        )


class NotFoundError(RelayAdminException):
    """Mutation target no longer exists."""

    def __init__(self, resource: str, resource_id: str = None, **kwargs):
        self.resource = resource
        self.resource_id = resource_id
        message = f"{resource} not found"
        if resource_id:
            message += f": {resource_id}"
        super().__init__(
            message=message, error_type=ErrorType.RESOURCE_NOT_FOUND, **kwargs
        )


class ReportingError(RelayAdminException):
    """A read-only status source failed."""

    def __init__(self, source: str, message: str = None, **kwargs):
        self.source = source
        super().__init__(
            message=message or f"Failed to read {source}",
            error_type=ErrorType.REPORTING,
            details={"source": source},
            **kwargs,
        )


class ServiceUnavailableError(RelayAdminException):
    """Backing store unreachable."""

    def __init__(self, service: str, message: str = None, **kwargs):
        error_message = message or f"{service} service is currently unavailable"
        super().__init__(
            message=error_message,
            error_type=ErrorType.SERVICE_UNAVAILABLE,
            **kwargs,
        )
