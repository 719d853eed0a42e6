"""Custom exception hierarchy for SumLog.

This module defines a consistent exception hierarchy that enables:
- Machine-readable error codes in server-side logs
- Consistent HTTP status code mapping
- Generic client-facing messages (details never leave the server)

Usage:
    from sumlog.core.exceptions import InvalidInputError

    raise InvalidInputError(field="num1", value="abc")
"""

from typing import Any


class SumLogError(Exception):
    """Base exception for all SumLog errors.

    All custom exceptions should inherit from this class to enable
    consistent error handling and response formatting.

    Attributes:
        code: Machine-readable error code (e.g., "INVALID_INPUT")
        message: Client-facing message, rendered as the plain-text body
        status_code: HTTP status code to return
        details: Diagnostic details, logged server-side only
    """

    code: str = "INTERNAL_ERROR"
    message: str = "Internal Server Error"
    status_code: int = 500

    def __init__(
        self,
        message: str | None = None,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Override default message
            code: Override default error code
            details: Additional error details
        """
        if message:
            self.message = message
        if code:
            self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_log_dict(self) -> dict[str, Any]:
        """Structured fields describing this error for the server log."""
        fields: dict[str, Any] = {
            "error_code": self.code,
            "error_message": self.message,
            "status_code": self.status_code,
        }
        if self.details:
            fields["details"] = self.details
        return fields


# =============================================================================
# Client Errors (400)
# =============================================================================


class InvalidInputError(SumLogError):
    """Raised when a request operand does not parse to a finite number."""

    code: str = "INVALID_INPUT"
    message: str = "Invalid input"
    status_code: int = 400

    def __init__(
        self,
        field: str | None = None,
        value: Any = None,
        reason: str | None = None,
    ) -> None:
        """Initialize with the offending field.

        Args:
            field: Name of the request field (e.g. "num1")
            value: The raw value received
            reason: Why the value was rejected
        """
        details: dict[str, Any] = {}
        if field:
            details["field"] = field
            details["value"] = repr(value)
        if reason:
            details["reason"] = reason
        super().__init__(details=details if details else None)


# =============================================================================
# Backend Errors (500)
# =============================================================================


class CacheUnavailableError(SumLogError):
    """Raised when the cache cannot be reached or a cache call times out."""

    code: str = "CACHE_UNAVAILABLE"

    def __init__(
        self,
        operation: str | None = None,
        key: str | None = None,
        error: str | None = None,
    ) -> None:
        """Initialize with the failed cache operation."""
        details: dict[str, Any] = {}
        if operation:
            details["operation"] = operation
        if key:
            details["key"] = key
        if error:
            details["error"] = error
        super().__init__(details=details if details else None)


class PersistenceError(SumLogError):
    """Raised when a history log operation fails or times out."""

    code: str = "PERSISTENCE_ERROR"

    def __init__(
        self,
        operation: str | None = None,
        error: str | None = None,
    ) -> None:
        """Initialize with the failed database operation."""
        details: dict[str, Any] = {}
        if operation:
            details["operation"] = operation
        if error:
            details["error"] = error
        super().__init__(details=details if details else None)


# =============================================================================
# Startup Errors
# =============================================================================


class ConfigurationError(SumLogError):
    """Raised when connection parameters cannot be resolved at startup.

    Never reaches a client: the process refuses to start instead.
    """

    code: str = "CONFIGURATION_ERROR"
    message: str = "Configuration could not be resolved"

    def __init__(
        self,
        message: str | None = None,
        missing: list[str] | None = None,
    ) -> None:
        """Initialize with the names that could not be resolved."""
        details: dict[str, Any] = {}
        if missing:
            details["missing"] = missing
            if not message:
                message = f"Missing required configuration: {', '.join(missing)}"
        super().__init__(message=message, details=details if details else None)


class SecretStoreError(ConfigurationError):
    """Raised when the remote secret store fails to answer a lookup."""

    code: str = "SECRET_STORE_ERROR"

    def __init__(self, name: str, error: str) -> None:
        super().__init__(message=f"Secret store lookup for {name} failed: {error}")
        self.details = {"name": name, "error": error}
