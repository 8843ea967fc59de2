"""Cache strategy protocol.

ONLY cache strategy contract - the backend-agnostic interface every cache
backend satisfies. Callers supply keys, values and options; they never see
backend storage shapes.

Following maximum separation architecture - one file = one purpose.
"""

from typing import Any, Iterable, List, Optional
from typing_extensions import Protocol, runtime_checkable

from ..value_objects.cache_stats import CacheStats


@runtime_checkable
class CacheStrategy(Protocol):
    """Cache strategy protocol.
    
    Defines the behavioral contract shared by all strategies:
    - TTL handling with lazy expiry (expired entries stay stored until
      read, probed or cleaned up)
    - Tag index for group invalidation
    - Glob key enumeration
    - Corrupt stored values read as absent and are deleted
    
    Every operation may suspend on backend I/O. Write paths and backend
    failures propagate; read-path anomalies never do.
    """
    
    async def get(self, key: str, *, return_expired: bool = False) -> Optional[Any]:
        """Get cached value.
        
        Returns None if absent or corrupt. An expired entry is returned only
        when ``return_expired`` is set; otherwise it is deleted and None is
        returned.
        """
        ...
    
    async def set(
        self,
        key: str,
        value: Any,
        *,
        ttl: Optional[int] = None,
        tags: Optional[Iterable[str]] = None,
    ) -> None:
        """Store value, replacing any prior entry and its tags as one unit.
        
        ``ttl`` is in milliseconds and falls back to the strategy default.
        """
        ...
    
    async def has(self, key: str) -> bool:
        """Check presence; expired entries are deleted and report False."""
        ...
    
    async def delete(self, key: str) -> bool:
        """Delete entry and its tag associations.
        
        Returns True if an entry existed and was removed.
        """
        ...
    
    async def delete_by_tags(self, tags: Iterable[str]) -> int:
        """Delete every entry carrying ANY of the tags.
        
        Returns number of distinct keys removed. Each key is removed as its
        own atomic unit, not all-or-nothing.
        """
        ...
    
    async def clear(self) -> int:
        """Remove all entries and tag associations.
        
        Returns entry count at the time of the call.
        """
        ...
    
    async def keys(self, pattern: Optional[str] = None) -> List[str]:
        """List keys, optionally filtered by a whole-key glob pattern."""
        ...
    
    async def stats(self) -> CacheStats:
        """Get stored entry count and currently expired entry count."""
        ...
    
    async def cleanup(self) -> int:
        """Delete expired and corrupt entries.
        
        Returns number of entries removed.
        """
        ...
    
    async def close(self) -> None:
        """Release backend connection. Safe to call repeatedly."""
        ...
