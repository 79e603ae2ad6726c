import asyncio
from typing import List, Optional, Tuple

import pytest
from fakeredis import FakeServer
from fakeredis.aioredis import FakeRedis

from memlock.cacheable.locked import LockedCache
from memlock.cacheable.service import CacheAccessor, LocalBackend, RedisBackend
from memlock.common.config.models import LockSettings
from memlock.sync.lock import LockManager


class RecordingBackend(LocalBackend):
    """LocalBackend that records calls and yields to the loop on reads."""

    def __init__(self, read_delay: float = 0.0):
        super().__init__()
        self.read_delay = read_delay
        self.calls: List[Tuple[str, str]] = []

    def keys_for(self, op: str) -> List[str]:
        return [key for name, key in self.calls if name == op]

    async def get(self, key: str) -> Optional[bytes]:
        self.calls.append(("get", key))
        if self.read_delay:
            await asyncio.sleep(self.read_delay)
        return await super().get(key)

    async def add(self, key: str, value: bytes, ttl: Optional[int] = None) -> bool:
        self.calls.append(("add", key))
        return await super().add(key, value, ttl)

    async def set(self, key: str, value: bytes, ttl: Optional[int] = None) -> bool:
        self.calls.append(("set", key))
        return await super().set(key, value, ttl)

    async def delete(self, key: str) -> bool:
        self.calls.append(("delete", key))
        return await super().delete(key)

    async def delete_if_equals(self, key: str, value: bytes) -> bool:
        self.calls.append(("delete_if_equals", key))
        return await super().delete_if_equals(key, value)


@pytest.fixture
def fast_settings() -> LockSettings:
    return LockSettings(wait_time=0.001, max_lock_tries=5)


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis(server=FakeServer())


@pytest.fixture(params=["local", "redis"])
def backend(request, fake_redis):
    if request.param == "redis":
        return RedisBackend(fake_redis)
    return LocalBackend()


@pytest.fixture
def accessor(backend) -> CacheAccessor:
    return CacheAccessor(backend)


@pytest.fixture
def locks(accessor, fast_settings) -> LockManager:
    return LockManager(accessor, fast_settings)


@pytest.fixture
def locked_cache(accessor, locks) -> LockedCache:
    return LockedCache(accessor, locks)
