"""
RainCache - Redis Storage Engine

Asynchronous Redis storage engine and index store with:
- JSON serialization for entities
- Redis sets for per-namespace indexes
- Optional key prefix for sharing one database between deployments
- MGET batching for filter/find candidate loading

Requires: redis>=5.0 with asyncio support

Example:
    engine = RedisStorageEngine(redis_url="redis://localhost:6379/0")
    await engine.upsert("message.42", {"id": "42", "content": "hi"})
    entity = await engine.get("message.42")
"""

from __future__ import annotations

import json
import logging
from typing import Any

from ..errors import StorageConnectionError, StorageError, StorageOperationError
from .interface import Entity, IndexStore, Predicate, StorageEngine

logger = logging.getLogger(__name__)

try:
    # redis-py asyncio client (v4.2+)
    from redis.asyncio import Redis
    from redis.exceptions import ConnectionError as RedisConnectionError
    from redis.exceptions import RedisError
    from redis.exceptions import TimeoutError as RedisTimeoutError
except ImportError as e:  # pragma: no cover
    raise ImportError(
        "Redis async client is required but not installed. "
        "Install with: pip install 'redis>=5.0.0' or add 'redis' to your dependencies."
    ) from e

INDEX_SUFFIX = ".index"


class RedisStorageEngine(StorageEngine, IndexStore):
    """
    Redis storage engine with JSON values and set-backed indexes.

    Notes:
    - Entity for key K lives at "<prefix>K".
    - The index of namespace N lives at "<prefix>N.index" as a Redis set,
      so member order is unspecified.
    - Redis failures are raised as StorageConnectionError/StorageOperationError.
    """

    def __init__(
        self,
        redis_url: str,
        key_prefix: str = "",
        max_connections: int = 10,
        socket_timeout: int = 5,
    ) -> None:
        """
        Initialize Redis storage engine.

        Args:
            redis_url: Connection URL, e.g., redis://localhost:6379/0 or rediss:// for TLS
            key_prefix: Prefix for all keys
            max_connections: Connection pool size
            socket_timeout: Socket timeout in seconds
        """
        if not redis_url:
            raise ValueError("redis_url is required")

        self.key_prefix = key_prefix
        self._hits = 0
        self._misses = 0
        self._upserts = 0
        self._removes = 0

        # Lazy connection; connects on first command
        self._client = Redis.from_url(  # type: ignore[call-overload]
            url=redis_url,
            decode_responses=True,
            max_connections=max_connections,
            socket_timeout=socket_timeout,
        )

    # ------------ Helpers ------------

    def _make_key(self, key: str) -> str:
        return f"{self.key_prefix}{key}"

    def _index_key(self, namespace: str) -> str:
        return f"{self.key_prefix}{namespace}{INDEX_SUFFIX}"

    @staticmethod
    def _to_json(value: Any) -> str:
        """Serialize value to JSON string."""
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))

    @staticmethod
    def _from_json(data: str | bytes | None) -> Entity | None:
        """Deserialize JSON string. Returns None if data is None."""
        if data is None:
            return None
        if isinstance(data, bytes):
            data = data.decode("utf-8")
        try:
            return json.loads(data)
        except ValueError as e:
            raise StorageOperationError(
                f"Stored value is not valid JSON: {e}",
                details={"data_preview": data[:100], "error": str(e)},
            ) from e

    def _backend_error(self, operation: str, error: RedisError, **context: Any) -> StorageError:
        logger.error(
            f"Redis {operation} failed: {error}",
            extra={"operation": operation, "error": str(error), **context},
            exc_info=True,
        )
        details = {"operation": operation, "error": str(error), **context}
        if isinstance(error, (RedisConnectionError, RedisTimeoutError)):
            return StorageConnectionError("redis", details)
        return StorageOperationError(f"Redis {operation} failed: {error}", details)

    async def _load_candidates(self, ids: list[str] | None, namespace: str | None) -> list[Entity]:
        if ids is None:
            if namespace is None:
                raise StorageOperationError(
                    "Redis engine needs a namespace or explicit ids to enumerate entities",
                    details={"operation": "filter"},
                )
            ids = await self.get_index_members(namespace)
        if not ids:
            return []

        if namespace is None:
            keys = [self._make_key(str(i)) for i in ids]
        else:
            keys = [self._make_key(self.build_key(namespace, str(i))) for i in ids]

        try:
            values = await self._client.mget(keys)
        except RedisError as e:
            raise self._backend_error("mget", e, key_count=len(keys)) from e

        # mget preserves order; missing keys come back as None
        entities = [self._from_json(raw) for raw in values if raw is not None]
        return [entity for entity in entities if entity is not None]

    # ------------ StorageEngine ------------

    async def get(self, key: str) -> Entity | None:
        """Retrieve an entity by key."""
        try:
            data = await self._client.get(self._make_key(key))
        except RedisError as e:
            raise self._backend_error("get", e, key=key) from e

        if data is None:
            self._misses += 1
            return None

        self._hits += 1
        return self._from_json(data)

    async def upsert(self, key: str, entity: Entity) -> None:
        """Create or overwrite an entity."""
        try:
            payload = self._to_json(entity)
        except (TypeError, ValueError) as e:
            raise StorageOperationError(
                f"Failed to serialize entity for key '{key}': {e}",
                details={"key": key, "error": str(e)},
            ) from e

        try:
            await self._client.set(name=self._make_key(key), value=payload)
        except RedisError as e:
            raise self._backend_error("set", e, key=key) from e

        self._upserts += 1

    async def remove(self, key: str) -> bool | None:
        """Remove an entity; None if it was not stored."""
        try:
            deleted = await self._client.delete(self._make_key(key))
        except RedisError as e:
            raise self._backend_error("delete", e, key=key) from e

        if not deleted:
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
        candidates = await self._load_candidates(ids, namespace)
        return [entity for entity in candidates if predicate(entity)]

    async def find(
        self,
        predicate: Predicate,
        ids: list[str] | None = None,
        namespace: str | None = None,
    ) -> Entity | None:
        """Return the first candidate entity matching the predicate."""
        candidates = await self._load_candidates(ids, namespace)
        for entity in candidates:
            if predicate(entity):
                return entity
        return None

    # ------------ IndexStore ------------

    async def add_to_index(self, namespace: str, entity_id: str) -> None:
        try:
            await self._client.sadd(self._index_key(namespace), str(entity_id))
        except RedisError as e:
            raise self._backend_error("sadd", e, namespace=namespace, id=str(entity_id)) from e

    async def remove_from_index(self, namespace: str, entity_id: str) -> None:
        try:
            await self._client.srem(self._index_key(namespace), str(entity_id))
        except RedisError as e:
            raise self._backend_error("srem", e, namespace=namespace, id=str(entity_id)) from e

    async def is_index_member(self, namespace: str, entity_id: str) -> bool:
        try:
            return bool(await self._client.sismember(self._index_key(namespace), str(entity_id)))
        except RedisError as e:
            raise self._backend_error("sismember", e, namespace=namespace, id=str(entity_id)) from e

    async def get_index_members(self, namespace: str) -> list[str]:
        try:
            return list(await self._client.smembers(self._index_key(namespace)))
        except RedisError as e:
            raise self._backend_error("smembers", e, namespace=namespace) from e

    async def get_index_count(self, namespace: str) -> int:
        try:
            return int(await self._client.scard(self._index_key(namespace)))
        except RedisError as e:
            raise self._backend_error("scard", e, namespace=namespace) from e

    async def remove_index(self, namespace: str) -> None:
        try:
            await self._client.delete(self._index_key(namespace))
        except RedisError as e:
            raise self._backend_error("delete", e, namespace=namespace) from e

    # ------------ Lifecycle ------------

    async def get_stats(self) -> dict[str, Any]:
        """Return engine statistics and basic Redis info."""
        stats: dict[str, Any] = {
            "backend": "redis",
            "key_prefix": self.key_prefix,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": 0.0,
            "upserts": self._upserts,
            "removes": self._removes,
            "connected": False,
        }

        total_requests = self._hits + self._misses
        stats["hit_rate"] = round((self._hits / total_requests) * 100, 2) if total_requests else 0.0

        try:
            stats["connected"] = bool(await self._client.ping())
            info = await self._client.info(section="server")
            stats["redis_version"] = info.get("redis_version")
        except RedisError as e:
            # Stats are informational; an unreachable server is reported, not raised
            logger.warning(f"Failed to get Redis INFO: {e}", extra={"error": str(e)})

        return stats

    async def close(self) -> None:
        """Close the Redis client and release the connection pool."""
        try:
            await self._client.aclose()
            logger.info("Closed Redis storage engine", extra={"key_prefix": self.key_prefix})
        finally:
            await self._client.connection_pool.disconnect()
