"""Deserialization error exception.

ONLY deserialization errors - raised by the entry codec when stored data
cannot be decoded. Strategies catch it on read paths and treat the record
as corrupt: absent to the caller and deleted as a side effect.
"""

from typing import Any, Dict, Optional

from .base import CacheError


class DeserializationError(CacheError):
    """Stored cache data failed to decode."""
    
    def __init__(
        self,
        message: str,
        data: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        details: Dict[str, Any] = {}
        if data is not None:
            details["data_size"] = len(data)
            details["data_preview"] = repr(data[:50])
        if original_error is not None:
            details["original_error"] = {
                "type": type(original_error).__name__,
                "message": str(original_error),
            }
        super().__init__(message, error_code="CACHE_DESERIALIZATION_ERROR", details=details)
        self.data = data
        self.original_error = original_error
