"""
DateTime utilities for cache expiry arithmetic.

Cache timestamps are integer milliseconds since the Unix epoch so they
serialize identically into Redis documents and SQLite INTEGER columns.
"""
import time
from typing import Callable, Optional

Clock = Callable[[], int]


def current_millis() -> int:
    """
    Get the current time as integer milliseconds since the epoch.
    
    Returns:
        int: Current UTC time in milliseconds
    """
    return int(time.time() * 1000)


def is_past(expires_at: Optional[int], now: int) -> bool:
    """Check whether an absolute expiry lies strictly before ``now``."""
    if expires_at is None:
        return False
    return now > expires_at
