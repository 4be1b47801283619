"""
RainCache - Base Cache

Shared contract of every entity cache:

- CacheState: an instance is either UNBOUND (a stateless accessor that takes
  an id on every call) or BOUND (wraps one resolved entity)
- bind_object: the only transition into BOUND, also used to rebind
- build_id: namespace-qualified storage keys
- index helpers scoped to the cache namespace
"""

from __future__ import annotations

from enum import Enum
from typing import Any, ClassVar

from ..errors import CacheBindingError
from ..storage.interface import KEY_SEPARATOR, Entity, IndexStore, StorageEngine


class CacheState(str, Enum):
    """Binding state of a cache instance."""

    UNBOUND = "unbound"
    BOUND = "bound"


class BaseCache:
    """
    Base class for entity caches.

    Subclasses set ``namespace``; it must be non-empty and free of the key
    separator so that built keys of different namespaces never collide.
    There is no unbind: create a new instance for unbound access.
    """

    namespace: ClassVar[str] = "base"

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if not cls.namespace or KEY_SEPARATOR in cls.namespace:
            raise ValueError(f"Invalid cache namespace for {cls.__name__}: {cls.namespace!r}")

    def __init__(
        self,
        storage_engine: StorageEngine,
        bound_object: Entity | None = None,
        index: IndexStore | None = None,
    ):
        """
        Args:
            storage_engine: Engine entities are persisted through
            bound_object: Entity to bind; the instance starts UNBOUND without one
            index: Index store for the namespace (default: the storage engine)
        """
        self.storage_engine = storage_engine
        self.index = index if index is not None else storage_engine
        self._bound_object: Entity | None = None
        if bound_object is not None:
            self.bind_object(bound_object)

    @property
    def state(self) -> CacheState:
        return CacheState.UNBOUND if self._bound_object is None else CacheState.BOUND

    @property
    def bound_object(self) -> Entity | None:
        """The bound entity, or None while unbound."""
        return self._bound_object

    def bind_object(self, entity: Entity) -> None:
        """
        Bind this instance to an entity, replacing any previous binding.

        Raises:
            CacheBindingError: If entity is None
        """
        if entity is None:
            raise CacheBindingError(self.namespace)
        self._bound_object = entity

    def build_id(self, entity_id: Any) -> str:
        """
        Build the storage key for an id, e.g. ``message.42``.

        Ids are formatted with ``str()``, so ``42`` and ``"42"`` address the
        same entity. Use one id type per namespace.
        """
        return f"{self.namespace}{KEY_SEPARATOR}{entity_id}"

    # ------------ Index helpers ------------

    async def add_to_index(self, entity_id: Any) -> None:
        await self.index.add_to_index(self.namespace, str(entity_id))

    async def remove_from_index(self, entity_id: Any) -> None:
        await self.index.remove_from_index(self.namespace, str(entity_id))

    async def is_index_member(self, entity_id: Any) -> bool:
        return await self.index.is_index_member(self.namespace, str(entity_id))

    async def get_index_members(self) -> list[str]:
        return await self.index.get_index_members(self.namespace)

    async def get_index_count(self) -> int:
        return await self.index.get_index_count(self.namespace)

    async def remove_index(self) -> None:
        """Drop the whole namespace index. Stored entities are left untouched."""
        await self.index.remove_index(self.namespace)

    def __repr__(self) -> str:
        if self._bound_object is None:
            return f"<{type(self).__name__} namespace={self.namespace!r} unbound>"
        return f"<{type(self).__name__} namespace={self.namespace!r} id={self._bound_object.get('id')!r}>"
