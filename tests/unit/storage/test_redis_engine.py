"""
RainCache - Redis Storage Engine Tests

Error translation is tested against a mocked client; the storage and index
contracts run against a real server on localhost:6379 (or TEST_REDIS_URL)
and are skipped when none is reachable.
"""

import socket
from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import ResponseError

from raincache.cache import MessageCache
from raincache.errors import StorageConnectionError, StorageOperationError
from raincache.storage.redis import RedisStorageEngine

# Check if Redis is available
try:
    with socket.create_connection(("localhost", 6379), timeout=1):
        redis_available = True
except OSError:
    redis_available = False


class TestRedisErrorTranslation:
    """Redis failures surface as storage errors."""

    @pytest.fixture
    def engine(self) -> RedisStorageEngine:
        engine = RedisStorageEngine(redis_url="redis://localhost:6379/15")
        engine._client = MagicMock()
        return engine

    def test_requires_url(self) -> None:
        with pytest.raises(ValueError, match="redis_url is required"):
            RedisStorageEngine(redis_url="")

    async def test_connection_error(self, engine: RedisStorageEngine) -> None:
        engine._client.get = AsyncMock(side_effect=RedisConnectionError("refused"))

        with pytest.raises(StorageConnectionError) as exc_info:
            await engine.get("message.1")

        assert exc_info.value.details["operation"] == "get"
        assert isinstance(exc_info.value.__cause__, RedisConnectionError)

    async def test_operation_error(self, engine: RedisStorageEngine) -> None:
        engine._client.sadd = AsyncMock(side_effect=ResponseError("WRONGTYPE"))

        with pytest.raises(StorageOperationError) as exc_info:
            await engine.add_to_index("message", "1")

        assert exc_info.value.details["namespace"] == "message"

    async def test_unserializable_entity(self, engine: RedisStorageEngine) -> None:
        engine._client.set = AsyncMock()

        with pytest.raises(StorageOperationError, match="serialize"):
            await engine.upsert("message.1", {"id": "1", "payload": object()})

        engine._client.set.assert_not_awaited()

    async def test_invalid_json_in_store(self, engine: RedisStorageEngine) -> None:
        engine._client.get = AsyncMock(return_value="{not json")

        with pytest.raises(StorageOperationError, match="not valid JSON"):
            await engine.get("message.1")

    async def test_cache_propagates_storage_error(self, engine: RedisStorageEngine) -> None:
        engine._client.sadd = AsyncMock(return_value=1)
        engine._client.set = AsyncMock(side_effect=ResponseError("OOM"))

        with pytest.raises(StorageOperationError):
            await MessageCache(engine).update("1", {"content": "a"})

        engine._client.sadd.assert_awaited_once_with("message.index", "1")

    async def test_filter_requires_namespace_or_ids(self, engine: RedisStorageEngine) -> None:
        with pytest.raises(StorageOperationError):
            await engine.filter(lambda e: True)


@pytest.mark.skipif(not redis_available, reason="Redis server not available")
class TestRedisStorageEngine:
    """Contract tests against a live Redis server."""

    @pytest.fixture
    async def engine(self, test_redis_url: str) -> AsyncGenerator[RedisStorageEngine, None]:
        engine = RedisStorageEngine(
            redis_url=test_redis_url,
            key_prefix="raincache-test:",
            max_connections=5,
            socket_timeout=2,
        )
        await engine._client.flushdb()
        yield engine
        await engine._client.flushdb()
        await engine.close()

    async def test_upsert_get_remove(self, engine: RedisStorageEngine) -> None:
        await engine.upsert("message.1", {"id": "1", "content": "hé", "tags": [1, 2]})

        assert await engine.get("message.1") == {"id": "1", "content": "hé", "tags": [1, 2]}
        assert await engine._client.exists("raincache-test:message.1") == 1

        assert await engine.remove("message.1") is True
        assert await engine.get("message.1") is None
        assert await engine.remove("message.1") is None

    async def test_index_operations(self, engine: RedisStorageEngine) -> None:
        await engine.add_to_index("message", "1")
        await engine.add_to_index("message", "2")
        await engine.add_to_index("message", "2")

        assert sorted(await engine.get_index_members("message")) == ["1", "2"]
        assert await engine.get_index_count("message") == 2
        assert await engine.is_index_member("message", "1")

        await engine.remove_from_index("message", "1")
        assert not await engine.is_index_member("message", "1")

        await engine.remove_index("message")
        assert await engine.get_index_count("message") == 0

    async def test_filter_and_find(self, engine: RedisStorageEngine) -> None:
        for i in range(1, 5):
            await engine.upsert(f"message.{i}", {"id": str(i), "even": i % 2 == 0})
            await engine.add_to_index("message", str(i))

        evens = await engine.filter(lambda e: e["even"], None, "message")
        assert sorted(e["id"] for e in evens) == ["2", "4"]

        restricted = await engine.filter(lambda e: True, ["3", "1", "missing"], "message")
        assert [e["id"] for e in restricted] == ["3", "1"]

        found = await engine.find(lambda e: e["even"], ["1", "4"], "message")
        assert found is not None and found["id"] == "4"
        assert await engine.find(lambda e: False, None, "message") is None

    async def test_message_cache_round_trip(self, engine: RedisStorageEngine) -> None:
        messages = MessageCache(engine)

        created = await messages.update("42", {"content": "hi"})
        fetched = await messages.get("42")

        assert created.bound_object == {"content": "hi", "id": "42"}
        assert fetched is not None and fetched.bound_object == {"content": "hi", "id": "42"}
        assert await messages.get_index_members() == ["42"]

        assert await fetched.remove() is True
        assert await messages.get("42") is None
        assert await messages.get_index_count() == 0

    async def test_stats(self, engine: RedisStorageEngine) -> None:
        await engine.get("missing")

        stats = await engine.get_stats()

        assert stats["backend"] == "redis"
        assert stats["connected"] is True
        assert stats["misses"] == 1
