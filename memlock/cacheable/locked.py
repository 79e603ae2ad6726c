"""
Read-modify-write operations made atomic with a per-key cache lock.

Each operation returns None (reads) or False (writes) when the lock could
not be taken in time. Errors from the cache service propagate; the lock is
released first.
"""
import logging
from typing import Any, List, Optional

from memlock.sync.lock import LockManager
from .service import CacheAccessor

logger = logging.getLogger(__name__)


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


def _split(value: str, delim: str) -> List[str]:
    # trailing empty fields are dropped, leading ones kept
    parts = value.split(delim)
    while parts and parts[-1] == "":
        parts.pop()
    return parts


def _check_delim(delim: str) -> None:
    if not delim:
        raise ValueError("delimiter must be a non-empty string")


class LockedCache:
    def __init__(self, cache: CacheAccessor, locks: LockManager):
        self.cache = cache
        self.locks = locks

    async def lock_and_get(self, key: str, obfuscate: bool = False) -> Any:
        async with self.locks.hold(key, obfuscate) as acquired:
            if not acquired:
                return None
            return await self.cache.get(key, obfuscate)

    async def lock_get_and_delete(self, key: str, obfuscate: bool = False) -> Any:
        async with self.locks.hold(key, obfuscate) as acquired:
            if not acquired:
                return None
            value = await self.cache.get(key, obfuscate)
            if value is not None:
                await self.cache.delete(key, obfuscate)
            return value

    async def lock_and_set(
        self,
        key: str,
        value: Any,
        obfuscate: bool = False,
        ttl: Optional[int] = None,
        raw: bool = False,
    ) -> bool:
        async with self.locks.hold(key, obfuscate) as acquired:
            if not acquired:
                return False
            await self.cache.set(key, value, obfuscate, ttl, raw)
            return True

    async def lock_and_append(
        self,
        key: str,
        value: Any,
        delim: str,
        obfuscate: bool = False,
        ttl: Optional[int] = None,
        raw: bool = False,
    ) -> bool:
        """
        Append ``delim + value`` to the stored text. A missing entry counts
        as the empty string, so the first append yields ``delim + value``.
        """
        async with self.locks.hold(key, obfuscate) as acquired:
            if not acquired:
                return False
            old_val = await self.cache.get(key, obfuscate)
            new_val = f"{_as_text(old_val)}{delim}{_as_text(value)}"
            await self.cache.set(key, new_val, obfuscate, ttl, raw)
            return True

    async def lock_and_remove_value(
        self,
        key: str,
        remove_val: Optional[Any],
        delim: str,
        obfuscate: bool = False,
        ttl: Optional[int] = None,
        raw: bool = False,
    ) -> bool:
        """
        Remove the first element equal to ``remove_val`` from a delimited
        list, e.g. "abc" from "xyz,1243,abc,aaa,xxx". The key is deleted
        once no non-empty element is left, so removing "x" from ",x" deletes
        the key. A missing key is left alone.
        """
        _check_delim(delim)
        async with self.locks.hold(key, obfuscate) as acquired:
            if not acquired:
                return False
            old_val = await self.cache.get(key, obfuscate)
            if old_val is None:
                return True

            elements = _split(_as_text(old_val), delim)
            if remove_val is not None:
                target = _as_text(remove_val)
                if target in elements:
                    elements.remove(target)
                else:
                    logger.debug(f"Value {target!r} not present under {key}")

            if any(elements):
                await self.cache.set(key, delim.join(elements), obfuscate, ttl, raw)
            else:
                await self.cache.delete(key, obfuscate)
            return True
