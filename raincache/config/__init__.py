"""
RainCache - Configuration Module

Provides typed configuration loading and validation.
"""

from .loader import get_config, load_config, reload_config, reset_config
from .schemas import (
    Environment,
    LogFormat,
    LogLevel,
    RainCacheConfig,
    StorageBackend,
    StorageConfig,
)

__all__ = [
    # Loader functions
    "load_config",
    "get_config",
    "reload_config",
    "reset_config",
    # Main config
    "RainCacheConfig",
    # Enums
    "Environment",
    "StorageBackend",
    "LogLevel",
    "LogFormat",
    # Config sections
    "StorageConfig",
]
