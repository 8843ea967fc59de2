"""Cache entry domain entity.

ONLY cache entry entity - the unit of storage shared by every strategy:
value, tag set, absolute expiry and creation time.

Following maximum separation architecture - one file = one purpose.
"""

from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional

from ...utils.datetime import is_past


def normalize_tags(tags: Optional[Iterable[str]]) -> List[str]:
    """De-duplicate tags keeping first-seen order."""
    if not tags:
        return []
    if isinstance(tags, str):
        raise TypeError("tags must be an iterable of strings, not a single string")
    return list(dict.fromkeys(tags))


@dataclass
class CacheEntry:
    """Cache entry domain entity.
    
    A key maps to at most one live entry; writing a key replaces the entry
    and its tag associations as a whole. Timestamps are epoch milliseconds.
    
    Each cache entry contains:
    - Key unique within the cache namespace
    - JSON-serializable value
    - Tags used for group invalidation (order irrelevant)
    - Absolute expiry, or None for entries that never expire
    - Creation timestamp
    """
    
    key: str
    value: Any
    tags: List[str] = field(default_factory=list)
    expires_at: Optional[int] = None
    created_at: int = 0
    
    @classmethod
    def create(
        cls,
        key: str,
        value: Any,
        now: int,
        ttl: Optional[int] = None,
        tags: Optional[Iterable[str]] = None,
    ) -> "CacheEntry":
        """Build an entry written at ``now`` living ``ttl`` milliseconds.
        
        A falsy ttl produces an entry that never expires.
        """
        if ttl is not None and ttl < 0:
            raise ValueError(f"ttl must be a non-negative number of milliseconds, got {ttl}")
        return cls(
            key=key,
            value=value,
            tags=normalize_tags(tags),
            expires_at=now + ttl if ttl else None,
            created_at=now,
        )
    
    def is_expired(self, now: int) -> bool:
        """Check if entry is past its expiry at ``now``."""
        return is_past(self.expires_at, now)
    
    def ttl_seconds(self) -> Optional[int]:
        """Lifetime rounded up to whole seconds, for backend-native expiry."""
        if self.expires_at is None:
            return None
        millis = self.expires_at - self.created_at
        return max(1, -(-millis // 1000))
