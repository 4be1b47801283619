"""
RainCache - Storage Engine Interface

Defines the abstract contracts every storage backend must implement:

- StorageEngine: keyed entity persistence plus predicate queries
- IndexStore: per-namespace sets of known ids

Keys handed to a StorageEngine are opaque strings built by the cache layer.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

KEY_SEPARATOR = "."

Entity = dict[str, Any]
Predicate = Callable[[Entity], bool]


class StorageEngine(ABC):
    """
    Abstract base class for storage engines.

    Engines own persistence. Failures are raised, never swallowed, so the
    cache layer can propagate them to its callers unchanged.
    """

    @abstractmethod
    async def get(self, key: str) -> Entity | None:
        """
        Retrieve an entity.

        Args:
            key: Opaque storage key

        Returns:
            The stored entity, or None if nothing is stored under the key
        """

    @abstractmethod
    async def upsert(self, key: str, entity: Entity) -> None:
        """
        Create or overwrite the entity stored under a key.

        Args:
            key: Opaque storage key
            entity: Entity payload
        """

    @abstractmethod
    async def remove(self, key: str) -> bool | None:
        """
        Remove the entity stored under a key.

        Returns:
            True if an entity was removed, None if the key was already absent
        """

    @abstractmethod
    async def filter(
        self,
        predicate: Predicate,
        ids: list[str] | None = None,
        namespace: str | None = None,
    ) -> list[Entity]:
        """
        Return every entity of a namespace matching a predicate.

        Args:
            predicate: Called with each candidate entity
            ids: Restrict candidates to these ids (default: all indexed ids)
            namespace: Namespace the ids belong to

        Returns:
            Matching entities, in candidate order
        """

    @abstractmethod
    async def find(
        self,
        predicate: Predicate,
        ids: list[str] | None = None,
        namespace: str | None = None,
    ) -> Entity | None:
        """
        Return the first entity of a namespace matching a predicate.

        Stops evaluating candidates at the first match.

        Returns:
            The matching entity, or None
        """

    @abstractmethod
    async def get_stats(self) -> dict[str, Any]:
        """Get engine statistics."""

    @abstractmethod
    async def close(self) -> None:
        """
        Close the engine and release resources.

        Should be called during graceful shutdown.
        """

    @staticmethod
    def build_key(namespace: str, entity_id: str) -> str:
        """Key an entity cache uses for an id in a namespace."""
        return f"{namespace}{KEY_SEPARATOR}{entity_id}"


class IndexStore(ABC):
    """Abstract base class for per-namespace id indexes."""

    @abstractmethod
    async def add_to_index(self, namespace: str, entity_id: str) -> None:
        """Add an id to the index of a namespace."""

    @abstractmethod
    async def remove_from_index(self, namespace: str, entity_id: str) -> None:
        """Remove an id from the index of a namespace. No-op if absent."""

    @abstractmethod
    async def is_index_member(self, namespace: str, entity_id: str) -> bool:
        """Check whether an id is in the index of a namespace."""

    @abstractmethod
    async def get_index_members(self, namespace: str) -> list[str]:
        """List the ids in the index of a namespace."""

    @abstractmethod
    async def get_index_count(self, namespace: str) -> int:
        """Count the ids in the index of a namespace."""

    @abstractmethod
    async def remove_index(self, namespace: str) -> None:
        """Drop the whole index of a namespace."""
