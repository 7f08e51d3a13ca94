"""
Per-key asyncio locks for single-process critical sections.

Used to keep one matching run in flight per teacher/job and to serialise job
creation per school account. Entries are dropped once nobody holds or waits
on them, so the registry does not grow with every key ever seen.
"""
import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, List


class KeyedLock:
    def __init__(self) -> None:
        # key -> [lock, number of holders + waiters]
        self._entries: Dict[str, List] = {}

    def is_locked(self, key: str) -> bool:
        entry = self._entries.get(key)
        return bool(entry and entry[0].locked())

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[bool]:
        """
        Acquire the lock for `key`.

        Yields True when the caller had to wait for another holder first.
        """
        entry = self._entries.get(key)
        if entry is None:
            entry = self._entries[key] = [asyncio.Lock(), 0]
        entry[1] += 1
        waited = entry[0].locked()
        try:
            async with entry[0]:
                yield waited
        finally:
            entry[1] -= 1
            if entry[1] == 0 and self._entries.get(key) is entry:
                del self._entries[key]
