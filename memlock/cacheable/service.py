"""
Cache Service - key/value access with Redis or local fallback
"""
import logging
import time
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Dict, Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

from memlock.errors import CacheServiceError
from memlock.utils.encrypt import obfuscate_key
from .codec import decode_value, encode_value

logger = logging.getLogger(__name__)


class CacheBackend(ABC):
    """Abstract cache backend interface"""

    @abstractmethod
    async def get(self, key: str) -> Optional[bytes]:
        """Get value for key"""
        pass

    @abstractmethod
    async def add(self, key: str, value: bytes, ttl: Optional[int] = None) -> bool:
        """Store value only if key does not exist"""
        pass

    @abstractmethod
    async def set(self, key: str, value: bytes, ttl: Optional[int] = None) -> bool:
        """Set key-value with optional TTL in seconds"""
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete key, True if something was removed"""
        pass

    @abstractmethod
    async def delete_if_equals(self, key: str, value: bytes) -> bool:
        """Delete key only while it still holds value"""
        pass


@contextmanager
def _service_errors(op: str, key: str):
    try:
        yield
    except RedisError as e:
        logger.error(f"Cache {op} failed for {key}: {e}", extra={"data": {"op": op, "key": key}})
        raise CacheServiceError(f"Cache {op} failed for {key}", source=e) from e


class RedisBackend(CacheBackend):
    """
    Redis-based cache backend.

    The client must be created with decode_responses=False; serialized
    values are binary.
    """

    _compare_and_delete = """
    if redis.call("get", KEYS[1]) == ARGV[1] then
        return redis.call("del", KEYS[1])
    else
        return 0
    end
    """

    def __init__(self, redis: Redis):
        self.redis = redis
        self._release_script = redis.register_script(self._compare_and_delete)

    async def get(self, key: str) -> Optional[bytes]:
        with _service_errors("get", key):
            value = await self.redis.get(key)
        return value.encode('utf-8') if isinstance(value, str) else value

    async def add(self, key: str, value: bytes, ttl: Optional[int] = None) -> bool:
        with _service_errors("add", key):
            if ttl:
                return bool(await self.redis.set(key, value, nx=True, ex=ttl))
            return bool(await self.redis.set(key, value, nx=True))

    async def set(self, key: str, value: bytes, ttl: Optional[int] = None) -> bool:
        with _service_errors("set", key):
            if ttl:
                return bool(await self.redis.set(key, value, ex=ttl))
            return bool(await self.redis.set(key, value))

    async def delete(self, key: str) -> bool:
        with _service_errors("delete", key):
            return bool(await self.redis.delete(key))

    async def delete_if_equals(self, key: str, value: bytes) -> bool:
        with _service_errors("delete_if_equals", key):
            return bool(await self._release_script(keys=[key], args=[value]))


class LocalBackend(CacheBackend):
    """In-memory cache backend for local/standalone mode"""

    def __init__(self):
        # store: {key: (value, expiry_timestamp)}
        self.store: Dict[str, tuple[bytes, Optional[float]]] = {}

    def _expiry(self, ttl: Optional[int]) -> Optional[float]:
        return time.time() + ttl if ttl else None

    def _is_expired(self, expiry: Optional[float]) -> bool:
        if expiry is None:
            return False
        return time.time() > expiry

    def _cleanup_expired(self, key: str) -> bool:
        """Remove expired entry, return True if was expired"""
        if key in self.store:
            _, expiry = self.store[key]
            if self._is_expired(expiry):
                del self.store[key]
                return True
        return False

    async def get(self, key: str) -> Optional[bytes]:
        if self._cleanup_expired(key):
            return None
        if key in self.store:
            value, _ = self.store[key]
            return value
        return None

    async def add(self, key: str, value: bytes, ttl: Optional[int] = None) -> bool:
        self._cleanup_expired(key)
        if key in self.store:
            return False
        self.store[key] = (value, self._expiry(ttl))
        return True

    async def set(self, key: str, value: bytes, ttl: Optional[int] = None) -> bool:
        self.store[key] = (value, self._expiry(ttl))
        return True

    async def delete(self, key: str) -> bool:
        self._cleanup_expired(key)
        return self.store.pop(key, None) is not None

    async def delete_if_equals(self, key: str, value: bytes) -> bool:
        self._cleanup_expired(key)
        entry = self.store.get(key)
        if entry is None or entry[0] != value:
            return False
        del self.store[key]
        return True


class CacheAccessor:
    """
    Key-level access to a cache backend.

    Every call takes an ``obfuscate`` flag. When set, the key is replaced by
    its CRC32 before it reaches the backend. This shortens and normalizes
    keys; it is not encryption.
    """

    def __init__(self, backend: CacheBackend, default_expiry: int = 3600):
        self.backend = backend
        self.default_expiry = default_expiry

    def physical_key(self, key: str, obfuscate: bool = False) -> str:
        return obfuscate_key(key) if obfuscate else key

    def _ttl(self, ttl: Optional[int]) -> int:
        return ttl if ttl is not None else self.default_expiry

    async def get(self, key: str, obfuscate: bool = False) -> Any:
        data = await self.backend.get(self.physical_key(key, obfuscate))
        return decode_value(data)

    async def add(
        self,
        key: str,
        value: Any,
        obfuscate: bool = False,
        ttl: Optional[int] = None,
        raw: bool = False,
    ) -> bool:
        return await self.backend.add(
            self.physical_key(key, obfuscate), encode_value(value, raw), self._ttl(ttl)
        )

    async def set(
        self,
        key: str,
        value: Any,
        obfuscate: bool = False,
        ttl: Optional[int] = None,
        raw: bool = False,
    ) -> bool:
        return await self.backend.set(
            self.physical_key(key, obfuscate), encode_value(value, raw), self._ttl(ttl)
        )

    async def delete(self, key: str, obfuscate: bool = False) -> bool:
        return await self.backend.delete(self.physical_key(key, obfuscate))

    async def delete_if_equals(self, key: str, value: Any, obfuscate: bool = False, raw: bool = True) -> bool:
        return await self.backend.delete_if_equals(
            self.physical_key(key, obfuscate), encode_value(value, raw)
        )
