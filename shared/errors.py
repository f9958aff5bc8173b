"""
Shared error handling for the content service.

Cache errors are recoverable: readers and invalidators log them and carry on
without the cache. Store errors are not: they are the only failures that
reach the caller of a read.
"""

from typing import Dict, Any, Optional


class AccessLayerException(Exception):
    """Base exception for content service errors."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ValidationError(AccessLayerException):
    """Validation-related errors."""

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)


class NotFoundError(AccessLayerException):
    """Requested record does not exist."""

    def __init__(self, message: str = "Not found", details: Optional[Dict[str, Any]] = None):
        super().__init__("NOT_FOUND", message, details)


class CacheUnavailableError(AccessLayerException):
    """Connection, timeout or protocol failure talking to the cache."""

    def __init__(self, message: str = "Cache unavailable", details: Optional[Dict[str, Any]] = None):
        super().__init__("CACHE_UNAVAILABLE", message, details)


class CacheSerializationError(AccessLayerException):
    """Cached payload could not be decoded."""

    def __init__(self, message: str = "Cached payload is corrupt", details: Optional[Dict[str, Any]] = None):
        super().__init__("CACHE_SERIALIZATION_ERROR", message, details)


class StoreError(AccessLayerException):
    """Backing store errors."""

    def __init__(
        self,
        message: str = "Store error",
        details: Optional[Dict[str, Any]] = None,
        code: str = "STORE_ERROR",
    ):
        super().__init__(code, message, details)


class StoreUnavailableError(StoreError):
    """Backing store cannot be reached."""

    def __init__(self, message: str = "Store unavailable", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details, code="STORE_UNAVAILABLE")


class StoreQueryError(StoreError):
    """Backing store rejected or failed a query."""

    def __init__(self, message: str = "Store query failed", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details, code="STORE_QUERY_FAILED")
