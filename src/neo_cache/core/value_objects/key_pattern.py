"""Key pattern value object.

ONLY key matching - glob patterns (``*`` any run, ``?`` one character)
anchored to the whole key and case-sensitive. Shared by every strategy
for key enumeration.

Following maximum separation architecture - one file = one purpose.
"""

import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

_REDIS_GLOB_SPECIALS = re.compile(r"([\[\]\\])")


def glob_to_regex(pattern: str) -> str:
    """Translate a glob into an anchored regular expression source."""
    escaped = re.escape(pattern)
    escaped = escaped.replace(r"\*", ".*").replace(r"\?", ".")
    return f"^{escaped}$"


@dataclass(frozen=True)
class KeyPattern:
    """Glob key pattern.
    
    Only ``*`` and ``?`` are special; every other character, including
    regex and Redis glob metacharacters, matches itself.
    """
    
    pattern: str
    _compiled: re.Pattern = field(init=False, repr=False, compare=False)
    
    def __post_init__(self):
        object.__setattr__(
            self, "_compiled", re.compile(glob_to_regex(self.pattern), re.DOTALL)
        )
    
    @classmethod
    def glob(cls, pattern: str) -> "KeyPattern":
        """Create glob pattern."""
        return cls(pattern)
    
    @classmethod
    def optional(cls, pattern: Optional[str]) -> Optional["KeyPattern"]:
        """Create pattern or None when no pattern was requested."""
        if pattern is None:
            return None
        return cls(pattern)
    
    def matches(self, key: str) -> bool:
        """Check if the whole key matches this pattern."""
        return self._compiled.match(key) is not None
    
    def filter(self, keys: Iterable[str]) -> List[str]:
        """Keep keys matching this pattern, preserving order."""
        return [key for key in keys if self.matches(key)]
    
    def to_redis_match(self, prefix: str = "") -> str:
        """Build a Redis SCAN MATCH argument for this pattern.
        
        Redis glob also understands ``[...]`` classes and backslash escapes;
        those are escaped so the server-side pre-filter is never narrower
        than ``matches``.
        """
        return prefix + _REDIS_GLOB_SPECIALS.sub(r"\\\1", self.pattern)
    
    def __str__(self) -> str:
        return self.pattern
