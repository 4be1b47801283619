"""
RainCache - entity caches with bound/unbound access over pluggable storage.
"""

from .cache import BaseCache, CacheState, EntityCache, MessageCache
from .config import RainCacheConfig, get_config, load_config
from .errors import (
    CacheBindingError,
    ConfigurationError,
    RainCacheError,
    StorageConnectionError,
    StorageError,
    StorageOperationError,
)
from .logger_setup import setup_logging
from .storage import (
    IndexStore,
    MemoryStorageEngine,
    StorageEngine,
    close_all_storage_engines,
    create_storage_engine,
    get_storage_engine,
)

__version__ = "0.1.0"

__all__ = [
    "BaseCache",
    "CacheState",
    "EntityCache",
    "MessageCache",
    "RainCacheConfig",
    "get_config",
    "load_config",
    "RainCacheError",
    "ConfigurationError",
    "CacheBindingError",
    "StorageError",
    "StorageConnectionError",
    "StorageOperationError",
    "setup_logging",
    "StorageEngine",
    "IndexStore",
    "MemoryStorageEngine",
    "create_storage_engine",
    "get_storage_engine",
    "close_all_storage_engines",
]
