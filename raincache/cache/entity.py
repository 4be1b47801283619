"""
RainCache - Entity Cache

Generic get/update/remove/filter/find over one namespace of a storage engine.

Every operation behaves according to the instance state:

- UNBOUND: the id argument selects the entity
- BOUND: identity comes from the bound entity and the id argument is ignored

Results are new instances bound to the returned entity. The one exception is
update on a bound instance, which rebinds that instance in place.

Writes touch the index before storage (update: add then upsert; remove:
drop from index then delete). Nothing is rolled back if the storage call
fails; ``reconcile_index`` removes index entries left without data.
"""

from __future__ import annotations

import logging
from typing import Any, Self, cast

from ..errors import CacheBindingError
from ..storage.interface import Entity, Predicate
from .base import BaseCache, CacheState

logger = logging.getLogger(__name__)


class EntityCache(BaseCache):
    """Cache for one kind of entity, keyed by ``id``."""

    namespace = "entity"

    def _wrap(self, entity: Entity) -> Self:
        return type(self)(self.storage_engine, entity, index=self.index)

    def _bound_id(self) -> Any:
        return cast(Entity, self._bound_object).get("id")

    def _resolve_id(self, *candidates: Any) -> Any:
        """First usable id among the candidates."""
        for candidate in candidates:
            if candidate is not None and candidate != "":
                return candidate
        raise CacheBindingError(
            self.namespace,
            {"candidates": [repr(c) for c in candidates]},
            message=f"No id to address the bound '{self.namespace}' entity with",
        )

    async def get(self, entity_id: Any = None) -> Self | None:
        """
        Get an entity by id.

        Returns:
            ``self`` when bound, otherwise a new bound cache, or None if
            nothing is stored under the id
        """
        if self.state is CacheState.BOUND:
            return self

        entity = await self.storage_engine.get(self.build_id(entity_id))
        if entity is None:
            logger.debug("Cache miss", extra={"namespace": self.namespace, "id": str(entity_id)})
            return None
        return self._wrap(entity)

    async def update(self, entity_id: Any, data: Entity) -> Self:
        """
        Create or update an entity.

        ``data`` gets ``id`` set to ``entity_id`` when it has none. On a bound
        instance ``data`` becomes the bound entity and is written under its
        own id, falling back to the previously bound id and then to
        ``entity_id``.

        Raises:
            CacheBindingError: If no id can be resolved

        Returns:
            A cache bound to ``data`` (``self`` when called on a bound instance)
        """
        if self.state is CacheState.BOUND:
            resolved_id = self._resolve_id(data.get("id"), self._bound_id(), entity_id)
            self.bind_object(data)
            await self._write(resolved_id, data)
            return self

        await self._write(entity_id, data)
        return self._wrap(data)

    async def _write(self, entity_id: Any, data: Entity) -> None:
        if not data.get("id"):
            data["id"] = entity_id
        await self.add_to_index(entity_id)
        await self.storage_engine.upsert(self.build_id(entity_id), data)
        logger.debug("Entity stored", extra={"namespace": self.namespace, "id": str(entity_id)})

    async def remove(self, entity_id: Any = None) -> Any:
        """
        Remove an entity.

        A bound instance removes its bound entity, falling back to
        ``entity_id`` when the bound entity has no id.

        Raises:
            CacheBindingError: If a bound instance has no id to remove

        Returns:
            The storage engine's removal result, or None if nothing was
            stored under the id (the index is left untouched then)
        """
        if self.state is CacheState.BOUND:
            entity_id = self._resolve_id(self._bound_id(), entity_id)

        key = self.build_id(entity_id)
        if await self.storage_engine.get(key) is None:
            return None

        await self.remove_from_index(entity_id)
        result = await self.storage_engine.remove(key)
        logger.debug("Entity removed", extra={"namespace": self.namespace, "id": str(entity_id)})
        return result

    async def filter(self, predicate: Predicate, ids: list[Any] | None = None) -> list[Self]:
        """
        Find every entity matching a predicate.

        Args:
            predicate: Called with each candidate entity
            ids: Only consider these ids (default: every indexed id)

        Returns:
            Bound caches, in the order the storage engine yields them
        """
        entities = await self.storage_engine.filter(predicate, ids, self.namespace)
        return [self._wrap(entity) for entity in entities]

    async def find(self, predicate: Predicate, ids: list[Any] | None = None) -> Self | None:
        """
        Find the first entity matching a predicate.

        Returns:
            A bound cache, or None if nothing matched
        """
        entity = await self.storage_engine.find(predicate, ids, self.namespace)
        if entity is None:
            return None
        return self._wrap(entity)

    async def reconcile_index(self) -> list[str]:
        """
        Drop index entries whose entity is no longer stored.

        Run after a failed update/remove, or periodically, to restore the
        index to exactly the stored ids.

        Returns:
            The ids removed from the index
        """
        stale = []
        for entity_id in await self.get_index_members():
            if await self.storage_engine.get(self.build_id(entity_id)) is None:
                await self.remove_from_index(entity_id)
                stale.append(entity_id)

        if stale:
            logger.info(
                f"Removed {len(stale)} stale id(s) from the '{self.namespace}' index",
                extra={"namespace": self.namespace, "ids": stale},
            )
        return stale
