"""memlock: cache-backed locks and lock-guarded read-modify-write operations."""

import logging
from typing import Optional

from redis.asyncio import Redis

from .cacheable import CacheAccessor, LocalBackend, LockedCache, RedisBackend
from .common.config import AppConfig, LockSettings, load_settings
from .errors import CacheServiceError, ConfigError, LockTimeoutError, MemlockError, SerializationError
from .sync import LockManager
from .utils.connector import create_redis_client

__version__ = "0.1.0"

logger = logging.getLogger(__name__)


def build_locked_cache(config: Optional[AppConfig] = None, redis: Optional[Redis] = None) -> LockedCache:
    """
    Wire backend, accessor and lock manager from ``config``.

    An injected ``redis`` client always selects the Redis backend.
    """
    config = config or load_settings()
    if redis is not None:
        backend = RedisBackend(redis)
    elif config.backend == "redis":
        backend = RedisBackend(create_redis_client(config.redis))
    elif config.backend == "local":
        backend = LocalBackend()
    else:
        raise ConfigError(f"Unknown cache backend: {config.backend!r}")

    logger.info(f"Using {type(backend).__name__} for {config.name}")
    cache = CacheAccessor(backend, default_expiry=config.lock.default_expiry)
    return LockedCache(cache, LockManager(cache, config.lock))


__all__ = [
    "__version__",
    "AppConfig",
    "LockSettings",
    "load_settings",
    "CacheAccessor",
    "LocalBackend",
    "RedisBackend",
    "LockManager",
    "LockedCache",
    "MemlockError",
    "CacheServiceError",
    "SerializationError",
    "LockTimeoutError",
    "ConfigError",
    "build_locked_cache",
]
