"""
RainCache - Storage Module

Storage engines the entity caches persist through.

Redis engine is lazy-loaded via factory.py to avoid a hard redis dependency.

Usage:
    from raincache.storage import create_storage_engine

    engine = create_storage_engine()
    await engine.upsert("message.1", {"id": "1"})
"""

from .factory import (
    close_all_storage_engines,
    create_storage_engine,
    get_storage_engine,
    list_storage_engines,
    reset_storage_factory,
)
from .interface import KEY_SEPARATOR, Entity, IndexStore, Predicate, StorageEngine
from .memory import MemoryStorageEngine

__all__ = [
    # Factory functions
    "create_storage_engine",
    "get_storage_engine",
    "close_all_storage_engines",
    "list_storage_engines",
    "reset_storage_factory",
    # Interfaces
    "StorageEngine",
    "IndexStore",
    "Entity",
    "Predicate",
    "KEY_SEPARATOR",
    # Backends
    "MemoryStorageEngine",
]
