"""
Custom exceptions for throttlekit.
"""

from typing import Any


class ThrottleKitError(Exception):
    """Base exception for all throttlekit errors."""

    def __init__(self, message: str, error_code: str | None = None, details: dict | None = None):
        """
        Initialize exception.

        Args:
            message: Error message
            error_code: Optional error code
            details: Optional error details
        """
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(message)


# Store Errors


class StoreError(ThrottleKitError):
    """Counter/state store errors."""

    def __init__(
        self,
        message: str,
        error_code: str | None = "STORE_ERROR",
        details: dict | None = None,
    ):
        """Initialize exception."""
        super().__init__(message, error_code=error_code, details=details)


class StoreConnectionError(StoreError):
    """Store connection errors."""

    def __init__(self, message: str = "Failed to connect to store"):
        """Initialize exception."""
        super().__init__(message, error_code="STORE_CONNECTION_ERROR")


class StoreUnavailableError(StoreError):
    """Transport or timeout failure while talking to the store."""

    def __init__(self, message: str = "Store unavailable", operation: str | None = None):
        """
        Initialize exception.

        Args:
            message: Error message
            operation: Store operation that failed
        """
        details = {"operation": operation} if operation else {}
        super().__init__(message, error_code="STORE_UNAVAILABLE", details=details)


class StateNotFoundError(StoreError):
    """No state is stored under the requested key."""

    def __init__(self, key: str):
        """
        Initialize exception.

        Args:
            key: Store key
        """
        super().__init__(
            f"State not found: {key}",
            error_code="STATE_NOT_FOUND",
            details={"key": key},
        )


class MalformedStateError(StoreError):
    """Stored counter or state blob cannot be decoded."""

    def __init__(self, key: str, reason: Any = None):
        """
        Initialize exception.

        Args:
            key: Store key
            reason: Underlying decode failure
        """
        details = {"key": key}
        if reason is not None:
            details["reason"] = str(reason)
        super().__init__(
            f"Malformed state for key: {key}",
            error_code="MALFORMED_STATE",
            details=details,
        )


# Request Errors


class InvalidIdentifierError(ThrottleKitError):
    """Neither a credential nor a client origin could be derived from a request."""

    def __init__(self, message: str = "Unable to derive rate limit identifier"):
        """Initialize exception."""
        super().__init__(message, error_code="INVALID_IDENTIFIER")


# Configuration Errors


class ConfigurationError(ThrottleKitError):
    """Configuration errors."""

    def __init__(self, message: str, key: str | None = None):
        """
        Initialize exception.

        Args:
            message: Error message
            key: Configuration key
        """
        details = {"key": key} if key else {}
        super().__init__(message, error_code="CONFIGURATION_ERROR", details=details)
