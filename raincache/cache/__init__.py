"""
RainCache - Cache Module

Bound/unbound entity caches over a pluggable storage engine.

Usage:
    from raincache.cache import MessageCache
    from raincache.storage import create_storage_engine

    messages = MessageCache(create_storage_engine())
    message = await messages.update("42", {"content": "hi"})
    same = await messages.get("42")
"""

from .base import BaseCache, CacheState
from .entity import EntityCache
from .message import MessageCache

__all__ = [
    "BaseCache",
    "CacheState",
    "EntityCache",
    "MessageCache",
]
