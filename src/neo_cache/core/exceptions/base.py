"""Base exceptions for neo-cache.

All cache exceptions inherit from CacheError and carry an error code and
structured details for logging and API error responses.
"""

from typing import Any, Dict, Optional


class CacheError(Exception):
    """Base exception for all neo-cache errors."""
    
    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
    
    def to_dict(self) -> Dict[str, Any]:
        """Create standardized error payload."""
        return {
            "code": self.error_code,
            "message": self.message,
            "details": self.details,
            "type": self.__class__.__name__,
        }


class CacheConfigurationError(CacheError):
    """Raised when a cache strategy is configured with invalid settings."""
    pass
