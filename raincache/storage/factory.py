"""
RainCache - Storage Engine Factory

Canonical factory for creating storage engines based on configuration.

Key points:
- Select backend with STORAGE_BACKEND=memory|redis
  - Defaults to memory unless REDIS_URL is set
  - When redis is selected, redis must be installed and REDIS_URL must be set
- Engines are registered by name so several caches can share one engine

Examples:
    from raincache.storage.factory import create_storage_engine

    # Uses env-configured backend (memory by default)
    engine = create_storage_engine()

    # Or explicitly supply a StorageConfig (e.g., for tests)
    from raincache.config import StorageBackend, StorageConfig
    cfg = StorageConfig(backend=StorageBackend.MEMORY, key_prefix="test:")
    engine = create_storage_engine(cfg, name="test")
"""

from __future__ import annotations

import logging

from ..config import StorageBackend, StorageConfig, get_config
from ..errors import ConfigurationError
from .interface import StorageEngine
from .memory import MemoryStorageEngine

logger = logging.getLogger(__name__)

# Global storage engine registry
_engine_instances: dict[str, StorageEngine] = {}


def _create_memory_engine(config: StorageConfig) -> StorageEngine:
    return MemoryStorageEngine(key_prefix=config.key_prefix)


def _create_redis_engine(config: StorageConfig) -> StorageEngine:
    """Construct a redis storage engine with lazy import."""
    if not config.redis_url:
        raise ConfigurationError(
            "REDIS_URL must be set when STORAGE_BACKEND=redis",
            details={"env": "REDIS_URL", "backend": "redis"},
        )

    # Lazy import to avoid hard dependency when memory backend is used
    try:
        from .redis import RedisStorageEngine
    except ImportError as e:
        logger.error(
            "Redis backend selected but redis client is not installed",
            extra={"package": "redis>=5.0.0", "error": str(e)},
        )
        raise ConfigurationError(
            "Redis backend selected but redis client is unavailable. Install with: pip install 'redis>=5.0.0'",
            details={"package": "redis>=5.0.0", "error": str(e), "backend": "redis"},
        ) from e

    return RedisStorageEngine(
        redis_url=config.redis_url,
        key_prefix=config.key_prefix,
        max_connections=config.redis_max_connections,
        socket_timeout=config.redis_socket_timeout,
    )


def create_storage_engine(
    config: StorageConfig | None = None,
    name: str = "default",
) -> StorageEngine:
    """
    Create a storage engine based on configuration.

    Args:
        config: Storage configuration (uses global config if not provided)
        name: Engine instance name (for multiple engines)

    Returns:
        Configured storage engine; the registered one if ``name`` already exists

    Raises:
        ConfigurationError: If configuration is invalid or backend unavailable
    """
    if name in _engine_instances:
        logger.debug("Returning existing storage engine: %s", name)
        return _engine_instances[name]

    if config is None:
        config = get_config().storage

    logger.info(
        "Creating storage engine '%s' with backend: %s",
        name,
        config.backend,
        extra={"engine_name": name, "backend": str(config.backend)},
    )

    if config.backend == StorageBackend.MEMORY:
        engine = _create_memory_engine(config)
    elif config.backend == StorageBackend.REDIS:
        engine = _create_redis_engine(config)
    else:
        raise ConfigurationError(
            f"Unknown storage backend: {config.backend}",
            details={
                "backend": str(config.backend),
                "supported": ["memory", "redis"],
            },
        )

    _engine_instances[name] = engine
    return engine


def get_storage_engine(name: str = "default") -> StorageEngine:
    """
    Get an existing storage engine by name.

    If the engine doesn't exist, it is created from the global configuration.
    """
    if name not in _engine_instances:
        logger.debug("Storage engine '%s' not found, creating new instance", name)
        return create_storage_engine(name=name)

    return _engine_instances[name]


async def close_all_storage_engines() -> None:
    """
    Close all storage engines and release resources.

    Should be called during graceful shutdown. Every engine is closed even
    if an earlier one fails; the first failure is re-raised afterwards.
    """
    if not _engine_instances:
        logger.debug("No storage engines to close")
        return

    logger.info("Closing %d storage engine(s)...", len(_engine_instances))

    first_error: Exception | None = None
    for name, engine in list(_engine_instances.items()):
        try:
            await engine.close()
            logger.info("Closed storage engine: %s", name)
        except Exception as e:
            logger.error(
                "Error closing storage engine '%s': %s",
                name,
                e,
                extra={"engine_name": name, "error": str(e)},
                exc_info=True,
            )
            if first_error is None:
                first_error = e

    _engine_instances.clear()

    if first_error is not None:
        raise first_error


def reset_storage_factory() -> None:
    """
    Clear all engine references without closing them.

    Warning: Only use this in testing contexts.
    """
    count = len(_engine_instances)
    _engine_instances.clear()
    logger.debug("Reset storage factory, cleared %d engine reference(s)", count)


def list_storage_engines() -> list[str]:
    """List all registered storage engine names."""
    return list(_engine_instances.keys())
