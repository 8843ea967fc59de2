"""
Cache configuration management.

Environment-driven settings for selecting and configuring a cache strategy,
plus the fallback chains each strategy uses when constructed directly.
"""
import os
from functools import lru_cache
from typing import Literal, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_REDIS_URL = "redis://localhost:6379"
DEFAULT_SQLITE_PATH = ".cache.db"

REDIS_URL_ENV_VARS = ("REDIS_URL", "CACHE_REDIS_URL")
SQLITE_PATH_ENV_VAR = "CACHE_SQLITE_PATH"

StrategyName = Literal["memory", "redis", "sqlite"]


def resolve_redis_url(redis_url: Optional[str] = None) -> str:
    """Resolve the Redis target: argument, REDIS_URL, CACHE_REDIS_URL, local default."""
    if redis_url:
        return redis_url
    for env_var in REDIS_URL_ENV_VARS:
        value = os.getenv(env_var)
        if value:
            return value
    return DEFAULT_REDIS_URL


def resolve_sqlite_path(db_path: Optional[str] = None) -> str:
    """Resolve the SQLite file: argument, CACHE_SQLITE_PATH, relative default."""
    if db_path:
        return str(db_path)
    return os.getenv(SQLITE_PATH_ENV_VAR) or DEFAULT_SQLITE_PATH


class CacheSettings(BaseSettings):
    """Cache settings loaded from environment and optional .env file."""
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )
    
    strategy: StrategyName = Field(
        default="memory",
        validation_alias=AliasChoices("CACHE_STRATEGY", "strategy"),
    )
    default_ttl: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("CACHE_TTL", "default_ttl"),
        description="Default TTL in milliseconds applied when set() gets none",
    )
    redis_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("REDIS_URL", "CACHE_REDIS_URL", "redis_url"),
    )
    sqlite_path: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("CACHE_SQLITE_PATH", "sqlite_path"),
    )
    
    @field_validator("strategy", mode="before")
    @classmethod
    def _normalize_strategy(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value
    
    @field_validator("default_ttl")
    @classmethod
    def _validate_default_ttl(cls, value):
        if value is not None and value < 0:
            raise ValueError("CACHE_TTL must be a non-negative number of milliseconds")
        return value or None
    
    def get_redis_url(self) -> str:
        return resolve_redis_url(self.redis_url)
    
    def get_sqlite_path(self) -> str:
        return resolve_sqlite_path(self.sqlite_path)


@lru_cache()
def get_cache_settings() -> CacheSettings:
    """Get cached settings instance."""
    return CacheSettings()
