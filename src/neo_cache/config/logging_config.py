"""Logging configuration for neo-cache.

Library modules only call ``logging.getLogger(__name__)``; applications that
embed the cache call ``LoggingConfig.configure()`` once at startup.

Environment:
- LOG_LEVEL: root level (default INFO)
- LOG_VERBOSITY: QUIET/NORMAL/VERBOSE/DEBUG, wins over LOG_LEVEL when set
- LOG_FORMAT: simple/detailed/json
- CACHE_LOG_LEVEL: level of the ``neo_cache`` logger tree only
"""

import logging
import logging.config
import os
from enum import Enum
from typing import Any, Dict, Optional

CACHE_LOGGER = "neo_cache"


class LogLevel(str, Enum):
    """Supported log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogVerbosity(str, Enum):
    """Verbosity shortcuts mapped onto levels."""
    QUIET = "QUIET"
    NORMAL = "NORMAL"
    VERBOSE = "VERBOSE"
    DEBUG = "DEBUG"


class LogFormat(str, Enum):
    """Log line layouts."""
    SIMPLE = "simple"
    DETAILED = "detailed"
    JSON = "json"


VERBOSITY_LEVELS = {
    LogVerbosity.QUIET: LogLevel.ERROR,
    LogVerbosity.NORMAL: LogLevel.WARNING,
    LogVerbosity.VERBOSE: LogLevel.INFO,
    LogVerbosity.DEBUG: LogLevel.DEBUG,
}

FORMAT_STRINGS = {
    LogFormat.SIMPLE: "%(asctime)s - %(levelname)s - %(message)s",
    LogFormat.DETAILED: "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s",
    LogFormat.JSON: '{"time":"%(asctime)s","level":"%(levelname)s","module":"%(name)s","message":"%(message)s"}',
}


def get_log_level_from_verbosity(verbosity: str) -> str:
    """Map verbosity mode to log level; unknown modes mean WARNING."""
    try:
        return VERBOSITY_LEVELS[LogVerbosity(verbosity.strip().upper())].value
    except ValueError:
        return LogLevel.WARNING.value


def _parse_level(value: Optional[str], default: str) -> str:
    if not value:
        return default
    level = value.strip().upper()
    return level if level in LogLevel.__members__ else default


def _logger_entry(level: str) -> Dict[str, Any]:
    return {"level": level, "handlers": ["console"], "propagate": False}


class LoggingConfig:
    """dictConfig builder for cache deployments."""

    # Backend client libraries that only log errors
    ERROR_ONLY_MODULES = [
        "redis",
        "aiosqlite",
        "asyncio",
    ]

    @classmethod
    def effective_level(cls) -> str:
        """Root level from LOG_VERBOSITY, else LOG_LEVEL, else INFO."""
        verbosity = os.getenv("LOG_VERBOSITY")
        if verbosity:
            return get_log_level_from_verbosity(verbosity)
        return _parse_level(os.getenv("LOG_LEVEL"), LogLevel.INFO.value)

    @classmethod
    def format_string(cls) -> str:
        try:
            log_format = LogFormat(os.getenv("LOG_FORMAT", LogFormat.SIMPLE.value).strip().lower())
        except ValueError:
            log_format = LogFormat.SIMPLE
        return FORMAT_STRINGS[log_format]

    @classmethod
    def build(cls) -> Dict[str, Any]:
        """Build the dictConfig mapping from environment variables."""
        root_level = cls.effective_level()
        cache_level = _parse_level(os.getenv("CACHE_LOG_LEVEL"), root_level)

        loggers = {CACHE_LOGGER: _logger_entry(cache_level)}
        loggers.update((module, _logger_entry(LogLevel.ERROR.value)) for module in cls.ERROR_ONLY_MODULES)

        return {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": cls.format_string(),
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "level": LogLevel.DEBUG.value,
                    "formatter": "default",
                    "stream": "ext://sys.stdout",
                },
            },
            "root": {"level": root_level, "handlers": ["console"]},
            "loggers": loggers,
        }

    @classmethod
    def configure(cls) -> None:
        """Apply the environment-driven configuration."""
        config = cls.build()
        logging.config.dictConfig(config)
        logging.getLogger(__name__).debug(
            f"Logging configured: root={config['root']['level']}, "
            f"{CACHE_LOGGER}={config['loggers'][CACHE_LOGGER]['level']}"
        )

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        return logging.getLogger(name)

    @classmethod
    def set_module_level(cls, module_name: str, level: str) -> None:
        """Set log level for one logger, e.g. a single strategy module."""
        logging.getLogger(module_name).setLevel(getattr(logging, level.upper()))

    @classmethod
    def silence_module(cls, module_name: str) -> None:
        cls.set_module_level(module_name, LogLevel.CRITICAL.value)
