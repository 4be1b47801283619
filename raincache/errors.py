"""
RainCache - Core Error Types

Defines the exception hierarchy for the RainCache runtime.
All exceptions inherit from RainCacheError for consistent error handling.

Not-found conditions are never raised: cache operations return None instead.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Standard error codes attached to serialized errors."""

    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    BINDING_ERROR = "BINDING_ERROR"
    STORAGE_CONNECTION_ERROR = "STORAGE_CONNECTION_ERROR"
    STORAGE_OPERATION_ERROR = "STORAGE_OPERATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class RainCacheError(Exception):
    """Base exception for all RainCache errors."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for logging or API responses."""
        return {
            "error": self.__class__.__name__,
            "error_code": extract_error_code(self).value,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(RainCacheError):
    """Raised when configuration is invalid or missing."""


class CacheBindingError(RainCacheError):
    """Raised when a cache cannot be bound, or its bound entity has no usable id."""

    def __init__(self, namespace: str, details: dict[str, Any] | None = None, message: str | None = None):
        message = message or f"Cannot bind cache '{namespace}' to an empty entity"
        super().__init__(message, {"namespace": namespace, **(details or {})})


class StorageError(RainCacheError):
    """Base exception for storage engine errors."""


class StorageConnectionError(StorageError):
    """Raised when the storage backend cannot be reached."""

    def __init__(self, backend: str, details: dict[str, Any] | None = None):
        message = f"Failed to connect to storage backend: {backend}"
        super().__init__(message, {"backend": backend, **(details or {})})


class StorageOperationError(StorageError):
    """Raised when a storage operation fails."""


def extract_error_code(error: Exception) -> ErrorCode:
    """
    Map an exception to its ErrorCode.

    Args:
        error: Exception to categorize

    Returns:
        Appropriate ErrorCode for the exception
    """
    if isinstance(error, ConfigurationError):
        return ErrorCode.CONFIGURATION_ERROR

    if isinstance(error, CacheBindingError):
        return ErrorCode.BINDING_ERROR

    if isinstance(error, StorageConnectionError):
        return ErrorCode.STORAGE_CONNECTION_ERROR

    if isinstance(error, StorageError):
        return ErrorCode.STORAGE_OPERATION_ERROR

    return ErrorCode.INTERNAL_ERROR
