from __future__ import annotations

import asyncio
import logging
import uuid
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, AsyncIterator, Optional

from memlock.common.config.models import LockSettings
from memlock.errors import CacheServiceError, LockTimeoutError

if TYPE_CHECKING:
    from memlock.cacheable.service import CacheAccessor

logger = logging.getLogger(__name__)


class LockManager:
    """
    Advisory per-key locks built on the cache's atomic add.

    A lock for ``key`` is the cache entry ``<lock_prefix><key>``; it exists
    while the lock is held and expires after ``lock_ttl`` seconds if nobody
    deletes it. Acquisition polls at a fixed interval and gives up after
    ``max_lock_tries`` retries. There is no queue, so waiters are not
    served in arrival order.

    Deleting the lock is the responsibility of the caller. Prefer
    :meth:`hold`, which releases on every exit path.
    """

    def __init__(self, cache: CacheAccessor, settings: Optional[LockSettings] = None):
        self.cache = cache
        self.settings = settings or LockSettings()

    def lock_key(self, key: str) -> str:
        return f"{self.settings.lock_prefix}{key}"

    async def _acquire(self, key: str, value, obfuscate: bool, raw: bool) -> bool:
        lock_key = self.lock_key(key)
        ttl = self.settings.lock_ttl
        tries = 0
        locked = await self.cache.add(lock_key, value, obfuscate, ttl, raw)
        while not locked and tries < self.settings.max_lock_tries:
            await asyncio.sleep(self.settings.wait_time)
            tries += 1
            locked = await self.cache.add(lock_key, value, obfuscate, ttl, raw)

        if locked:
            if tries:
                logger.debug(f"Acquired lock {lock_key} after {tries} retries", extra={"lock_key": lock_key})
        else:
            logger.warning(f"Gave up on lock {lock_key} after {tries} retries", extra={"lock_key": lock_key})
        return locked

    async def acquire(self, key: str, obfuscate: bool = False) -> bool:
        """Take the lock with the constant value 1. False once retries run out."""
        return await self._acquire(key, 1, obfuscate, raw=False)

    async def release(self, key: str, obfuscate: bool = False) -> bool:
        """Delete the lock entry whoever holds it. Safe to call when unlocked."""
        return await self.cache.delete(self.lock_key(key), obfuscate)

    async def acquire_token(self, key: str, obfuscate: bool = False) -> Optional[str]:
        """Take the lock with a fresh ownership token, returned on success."""
        token = uuid.uuid4().hex
        if await self._acquire(key, token, obfuscate, raw=True):
            return token
        return None

    async def release_token(self, key: str, token: str, obfuscate: bool = False) -> bool:
        """Delete the lock entry only if it still carries ``token``."""
        return await self.cache.delete_if_equals(self.lock_key(key), token, obfuscate)

    @asynccontextmanager
    async def hold(self, key: str, obfuscate: bool = False) -> AsyncIterator[bool]:
        """
        Yield whether the lock was acquired; when it was, release it on exit
        even if the body raises.
        """
        token = None
        if self.settings.ownership_tokens:
            token = await self.acquire_token(key, obfuscate)
            acquired = token is not None
        else:
            acquired = await self.acquire(key, obfuscate)

        if not acquired:
            yield False
            return

        try:
            yield True
        except BaseException:
            # keep the body's error when the release fails too
            try:
                await self._release_held(key, token, obfuscate)
            except CacheServiceError as e:
                logger.error(f"Failed to release lock {self.lock_key(key)}: {e}", extra={"lock_key": self.lock_key(key)})
            raise
        else:
            await self._release_held(key, token, obfuscate)

    async def _release_held(self, key: str, token: Optional[str], obfuscate: bool) -> None:
        if token is None:
            await self.release(key, obfuscate)
        elif not await self.release_token(key, token, obfuscate):
            logger.warning(f"Lock {self.lock_key(key)} expired or changed hands before release")

    @asynccontextmanager
    async def locked(self, key: str, obfuscate: bool = False) -> AsyncIterator[None]:
        async with self.hold(key, obfuscate) as acquired:
            if not acquired:
                raise LockTimeoutError(
                    f"Could not acquire lock {self.lock_key(key)} within {self.settings.max_wait:.3f}s"
                )
            yield
