"""Serialization error exception.

ONLY serialization errors - raised when a value cannot be encoded for
storage. Write path, so it always propagates to the caller.
"""

from typing import Any, Optional

from .base import CacheError


class SerializationError(CacheError):
    """Cache value could not be encoded as JSON."""
    
    def __init__(
        self,
        message: str,
        key: Optional[str] = None,
        value_type: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        details: dict[str, Any] = {"key": key, "value_type": value_type}
        if original_error is not None:
            details["original_error"] = {
                "type": type(original_error).__name__,
                "message": str(original_error),
            }
        super().__init__(message, error_code="CACHE_SERIALIZATION_ERROR", details=details)
        self.key = key
        self.value_type = value_type
        self.original_error = original_error
    
    @classmethod
    def for_value(cls, key: str, value: Any, error: Exception) -> "SerializationError":
        """Create error for a value that is not JSON-serializable."""
        return cls(
            f"Value for cache key '{key}' is not JSON-serializable: {error}",
            key=key,
            value_type=type(value).__name__,
            original_error=error,
        )
