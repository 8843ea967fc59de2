"""Cache statistics value object."""

from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class CacheStats:
    """Point-in-time cache statistics.
    
    ``size`` counts every stored entry, including expired entries that have
    not been cleaned up yet; ``expired`` counts entries currently past expiry.
    """
    
    size: int = 0
    expired: int = 0
    
    @property
    def live(self) -> int:
        """Entries that are stored and not expired."""
        return self.size - self.expired
    
    def to_dict(self) -> Dict[str, int]:
        return {"size": self.size, "expired": self.expired}
