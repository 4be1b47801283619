"""
RainCache - Memory Storage Engine

In-process storage engine and index store.
Entities are held by reference; suitable for single-process deployments
and tests.
"""

import asyncio
import logging
from typing import Any

from .interface import Entity, IndexStore, Predicate, StorageEngine

logger = logging.getLogger(__name__)


class MemoryStorageEngine(StorageEngine, IndexStore):
    """
    In-memory storage engine with per-namespace indexes.

    Features:
    - O(1) get/upsert/remove
    - Insertion-ordered indexes
    - Safe under concurrent coroutines (single asyncio lock)
    """

    def __init__(self, key_prefix: str = ""):
        """
        Initialize memory storage engine.

        Args:
            key_prefix: Prefix prepended to every stored key
        """
        self.key_prefix = key_prefix

        # Storage: prefixed key -> entity
        self._data: dict[str, Entity] = {}
        # Indexes: namespace -> ordered set of ids (dict keys keep insertion order)
        self._indexes: dict[str, dict[str, None]] = {}

        # Stats
        self._hits = 0
        self._misses = 0
        self._upserts = 0
        self._removes = 0

        self._lock = asyncio.Lock()

    def _make_key(self, key: str) -> str:
        return f"{self.key_prefix}{key}"

    def _candidates(self, ids: list[str] | None, namespace: str | None) -> list[Entity]:
        """Resolve the entities a query looks at. Caller holds the lock."""
        if namespace is None:
            if ids is None:
                return list(self._data.values())
            keys = [self._make_key(str(i)) for i in ids]
        else:
            if ids is None:
                ids = list(self._indexes.get(namespace, {}))
            keys = [self._make_key(self.build_key(namespace, str(i))) for i in ids]

        return [self._data[k] for k in keys if k in self._data]

    # ------------ StorageEngine ------------

    async def get(self, key: str) -> Entity | None:
        """Retrieve an entity."""
        async with self._lock:
            entity = self._data.get(self._make_key(key))
            if entity is None:
                self._misses += 1
                return None
            self._hits += 1
            return entity

    async def upsert(self, key: str, entity: Entity) -> None:
        """Create or overwrite an entity."""
        async with self._lock:
            self._data[self._make_key(key)] = entity
            self._upserts += 1

    async def remove(self, key: str) -> bool | None:
        """Remove an entity; None if it was not stored."""
        async with self._lock:
            if self._data.pop(self._make_key(key), None) is None:
                return None
            self._removes += 1
            return True

    async def filter(
        self,
        predicate: Predicate,
        ids: list[str] | None = None,
        namespace: str | None = None,
    ) -> list[Entity]:
        """Return all candidate entities matching the predicate."""
        async with self._lock:
            candidates = self._candidates(ids, namespace)
        return [entity for entity in candidates if predicate(entity)]

    async def find(
        self,
        predicate: Predicate,
        ids: list[str] | None = None,
        namespace: str | None = None,
    ) -> Entity | None:
        """Return the first candidate entity matching the predicate."""
        async with self._lock:
            candidates = self._candidates(ids, namespace)
        for entity in candidates:
            if predicate(entity):
                return entity
        return None

    # ------------ IndexStore ------------

    async def add_to_index(self, namespace: str, entity_id: str) -> None:
        async with self._lock:
            self._indexes.setdefault(namespace, {})[str(entity_id)] = None

    async def remove_from_index(self, namespace: str, entity_id: str) -> None:
        async with self._lock:
            index = self._indexes.get(namespace)
            if index is not None:
                index.pop(str(entity_id), None)

    async def is_index_member(self, namespace: str, entity_id: str) -> bool:
        async with self._lock:
            return str(entity_id) in self._indexes.get(namespace, {})

    async def get_index_members(self, namespace: str) -> list[str]:
        async with self._lock:
            return list(self._indexes.get(namespace, {}))

    async def get_index_count(self, namespace: str) -> int:
        async with self._lock:
            return len(self._indexes.get(namespace, {}))

    async def remove_index(self, namespace: str) -> None:
        async with self._lock:
            self._indexes.pop(namespace, None)

    # ------------ Lifecycle ------------

    async def get_stats(self) -> dict[str, Any]:
        """Get engine statistics."""
        async with self._lock:
            total_requests = self._hits + self._misses
            hit_rate = (self._hits / total_requests * 100) if total_requests > 0 else 0.0

            return {
                "backend": "memory",
                "size": len(self._data),
                "indexes": {namespace: len(ids) for namespace, ids in self._indexes.items()},
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": round(hit_rate, 2),
                "upserts": self._upserts,
                "removes": self._removes,
                "key_prefix": self.key_prefix,
            }

    async def close(self) -> None:
        """Close engine. Data stays in-process until the engine is dropped."""
        logger.debug("Memory storage engine closed", extra={"key_prefix": self.key_prefix})
