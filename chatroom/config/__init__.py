"""
Configuration module for the chatroom server.

Usage:
    from chatroom.config import get_config

    config = get_config()
    logger.info("Configuration loaded", host=config.server.host, port=config.server.port)
"""

import sys
import threading
from functools import lru_cache
from os import getenv

from .models import AppConfig, ChatConfig, DatabaseConfig, HistoryRetention, LoggingConfig, ServerConfig

__all__ = [
    "AppConfig",
    "ChatConfig",
    "DatabaseConfig",
    "HistoryRetention",
    "LoggingConfig",
    "ServerConfig",
    "get_config",
    "reset_config",
]

_config_lock = threading.Lock()


def _is_test_mode() -> bool:
    """Detect whether the process is running under pytest."""
    if "pytest" in sys.modules:
        return True
    return bool(getenv("PYTEST_CURRENT_TEST"))


@lru_cache(maxsize=1)
def _get_config_cached() -> AppConfig:
    """Production config loader with caching."""
    with _config_lock:
        return AppConfig()


def get_config() -> AppConfig:
    """
    Get application configuration (cached in production, fresh in tests).

    Configuration is loaded from environment variables and the .env file.

    Raises:
        ValidationError: If configuration is invalid
    """
    if _is_test_mode():
        return AppConfig()
    return _get_config_cached()


def reset_config() -> None:
    """
    Reset the configuration cache.

    Used by tests to force a reload after changing the environment.
    """
    with _config_lock:
        _get_config_cached.cache_clear()
