"""Cache strategy factory.

ONLY strategy selection - builds the configured backend variant. Callers
depend on the CacheStrategy protocol, never on a concrete class.
"""

import logging
from typing import Any, Callable, Dict, Optional

from ...config.settings import CacheSettings, get_cache_settings
from ...core.exceptions.base import CacheConfigurationError
from ...core.protocols.cache_strategy import CacheStrategy
from .memory_strategy import create_memory_strategy
from .redis_strategy import create_redis_strategy
from .sqlite_strategy import create_sqlite_strategy

logger = logging.getLogger(__name__)


def _build_memory(settings: CacheSettings, default_ttl: Optional[int], **kwargs: Any) -> CacheStrategy:
    return create_memory_strategy(default_ttl=default_ttl, **kwargs)


def _build_redis(settings: CacheSettings, default_ttl: Optional[int], **kwargs: Any) -> CacheStrategy:
    kwargs.setdefault("redis_url", settings.redis_url)
    return create_redis_strategy(default_ttl=default_ttl, **kwargs)


def _build_sqlite(settings: CacheSettings, default_ttl: Optional[int], **kwargs: Any) -> CacheStrategy:
    kwargs.setdefault("db_path", settings.sqlite_path)
    return create_sqlite_strategy(default_ttl=default_ttl, **kwargs)


STRATEGY_BUILDERS: Dict[str, Callable[..., CacheStrategy]] = {
    "memory": _build_memory,
    "redis": _build_redis,
    "sqlite": _build_sqlite,
}


def create_cache_strategy(
    strategy: Optional[str] = None,
    *,
    settings: Optional[CacheSettings] = None,
    default_ttl: Optional[int] = None,
    **kwargs: Any,
) -> CacheStrategy:
    """Create a cache strategy by name.

    Args:
        strategy: "memory", "redis" or "sqlite"; defaults to settings.strategy
        settings: Cache settings; defaults to environment-loaded settings
        default_ttl: Default TTL in milliseconds; defaults to settings.default_ttl
        **kwargs: Backend-specific options (redis_url, db_path, clock, ...)

    Returns:
        Strategy instance satisfying CacheStrategy

    Raises:
        CacheConfigurationError: unknown strategy name
    """
    settings = settings or get_cache_settings()
    name = (strategy or settings.strategy).strip().lower()

    builder = STRATEGY_BUILDERS.get(name)
    if builder is None:
        raise CacheConfigurationError(
            f"Unknown cache strategy '{name}'",
            details={"strategy": name, "available": sorted(STRATEGY_BUILDERS)},
        )

    ttl = default_ttl if default_ttl is not None else settings.default_ttl
    logger.debug(f"Creating {name} cache strategy")
    return builder(settings, ttl, **kwargs)
