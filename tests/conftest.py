"""
RainCache - Test Configuration and Shared Fixtures

Provides pytest configuration and shared fixtures for unit and integration tests.
"""

import os
import socket
from collections.abc import AsyncGenerator, Generator
from typing import Any

import pytest
import pytest_asyncio

from raincache.cache import MessageCache
from raincache.config import reset_config
from raincache.storage import MemoryStorageEngine, reset_storage_factory

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "DEBUG"


def is_redis_available() -> bool:
    """Check if Redis server is available for testing."""
    try:
        with socket.create_connection(("localhost", 6379), timeout=1):
            return True
    except OSError:
        return False


@pytest.fixture
def test_redis_url() -> str:
    """Get Redis URL for testing (database 15 for isolation)."""
    return os.environ.get("TEST_REDIS_URL", "redis://localhost:6379/15")


@pytest.fixture
def engine() -> MemoryStorageEngine:
    """Fresh in-memory storage engine."""
    return MemoryStorageEngine()


@pytest.fixture
def messages(engine: MemoryStorageEngine) -> MessageCache:
    """Unbound message cache over the memory engine."""
    return MessageCache(engine)


@pytest_asyncio.fixture
async def seeded_messages(messages: MessageCache) -> AsyncGenerator[MessageCache, None]:
    """Message cache with ids 1..5 stored; odd ids are from author 'alice'."""
    for i in range(1, 6):
        await messages.update(str(i), {"content": f"message {i}", "author": "alice" if i % 2 else "bob"})
    yield messages


@pytest.fixture
def sample_message() -> dict[str, Any]:
    """A message payload without an id."""
    return {
        "content": "hello world",
        "author": {"id": "7", "username": "rain"},
        "attachments": [],
        "pinned": False,
    }


@pytest.fixture
def mock_env_memory(monkeypatch: pytest.MonkeyPatch) -> None:
    """Set environment variables for the memory backend."""
    monkeypatch.delenv("REDIS_URL", raising=False)
    monkeypatch.setenv("STORAGE_BACKEND", "memory")
    monkeypatch.setenv("STORAGE_KEY_PREFIX", "test:")


@pytest.fixture
def mock_env_redis(monkeypatch: pytest.MonkeyPatch, test_redis_url: str) -> None:
    """Set environment variables for the Redis backend."""
    if not is_redis_available():
        pytest.skip("Redis not available")
    monkeypatch.setenv("STORAGE_BACKEND", "redis")
    monkeypatch.setenv("REDIS_URL", test_redis_url)
    monkeypatch.setenv("REDIS_MAX_CONNECTIONS", "5")
    monkeypatch.setenv("REDIS_SOCKET_TIMEOUT", "2")


@pytest.fixture(autouse=True)
def reset_global_state() -> Generator[None, None, None]:
    """Reset config and engine registries after each test to prevent state leakage."""
    yield
    reset_storage_factory()
    reset_config()
