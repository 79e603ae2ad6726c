import logging
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from memlock.cacheable.service import RedisBackend
from memlock.errors import CacheServiceError


@pytest.mark.asyncio
async def test_redis_backend_basic(fake_redis):
    backend = RedisBackend(fake_redis)

    assert await backend.set("k", b"v", ttl=60) is True
    assert await backend.get("k") == b"v"
    assert 0 < await fake_redis.ttl("k") <= 60

    assert await backend.add("k", b"other", ttl=60) is False
    assert await backend.get("k") == b"v"
    assert await backend.add("fresh", b"1") is True
    assert await fake_redis.ttl("fresh") == -1

    assert await backend.delete("k") is True
    assert await backend.delete("k") is False
    assert await backend.get("k") is None


@pytest.mark.asyncio
async def test_redis_backend_compare_and_delete(fake_redis):
    backend = RedisBackend(fake_redis)
    await backend.add("lock:x", b"mine", ttl=60)

    assert await backend.delete_if_equals("lock:x", b"theirs") is False
    assert await backend.get("lock:x") == b"mine"
    assert await backend.delete_if_equals("lock:x", b"mine") is True
    assert await backend.get("lock:x") is None


@pytest.mark.asyncio
async def test_redis_backend_wraps_service_errors(fake_redis):
    backend = RedisBackend(fake_redis)
    failure = RedisConnectionError("connection refused")
    fake_redis.get = AsyncMock(side_effect=failure)
    fake_redis.set = AsyncMock(side_effect=failure)

    with pytest.raises(CacheServiceError) as exc_info:
        await backend.get("k")
    assert exc_info.value.source is failure
    assert exc_info.value.__cause__ is failure

    with pytest.raises(CacheServiceError):
        await backend.add("k", b"v", ttl=5)


@pytest.mark.asyncio
async def test_redis_backend_logs_service_errors(fake_redis, caplog):
    backend = RedisBackend(fake_redis)
    fake_redis.delete = AsyncMock(side_effect=RedisConnectionError("timeout"))

    with caplog.at_level(logging.ERROR, logger="memlock.cacheable.service"):
        with pytest.raises(CacheServiceError):
            await backend.delete("lock:k")

    errors = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert len(errors) == 1
    assert "Cache delete failed for lock:k" in errors[0].getMessage()
    assert errors[0].data == {"op": "delete", "key": "lock:k"}
