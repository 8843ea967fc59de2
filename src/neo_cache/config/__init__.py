"""Configuration for neo-cache: settings and logging."""

from .settings import (
    CacheSettings,
    get_cache_settings,
    resolve_redis_url,
    resolve_sqlite_path,
    DEFAULT_REDIS_URL,
    DEFAULT_SQLITE_PATH,
)
from .logging_config import LoggingConfig, LogLevel, LogVerbosity, LogFormat

__all__ = [
    "CacheSettings",
    "get_cache_settings",
    "resolve_redis_url",
    "resolve_sqlite_path",
    "DEFAULT_REDIS_URL",
    "DEFAULT_SQLITE_PATH",
    "LoggingConfig",
    "LogLevel",
    "LogVerbosity",
    "LogFormat",
]
