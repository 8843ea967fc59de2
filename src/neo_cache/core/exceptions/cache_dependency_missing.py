"""Missing backend dependency exception.

ONLY driver availability errors - raised on first use of a strategy whose
client library is not installed. Never retried, never degraded silently.
"""

from .base import CacheError


class CacheDependencyMissing(CacheError):
    """Backend client library is not importable.
    
    Carries the distribution name and the install command so callers and
    operators can surface them as data.
    """
    
    def __init__(self, strategy: str, dependency: str, install_hint: str):
        message = (
            f"{dependency} is required for the {strategy} cache strategy. "
            f"Install it with: {install_hint}"
        )
        super().__init__(
            message,
            error_code="CACHE_DEPENDENCY_MISSING",
            details={
                "strategy": strategy,
                "dependency": dependency,
                "install_hint": install_hint,
            },
        )
        self.strategy = strategy
        self.dependency = dependency
        self.install_hint = install_hint
    
    @classmethod
    def redis(cls) -> "CacheDependencyMissing":
        """Create error for a missing redis-py client."""
        return cls("redis", "redis", "pip install redis")
    
    @classmethod
    def sqlite(cls) -> "CacheDependencyMissing":
        """Create error for a missing aiosqlite driver."""
        return cls("sqlite", "aiosqlite", "pip install aiosqlite")
