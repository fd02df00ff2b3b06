"""
Inventory Service — Per-key asyncio mutex

Serializes stock check-then-decrement for one product inside this process
while leaving other products unblocked. Locks are created on demand and
dropped once nobody holds or waits for them. Cross-process safety comes from
the revision compare-and-swap in the ledger.
"""
import asyncio
from collections.abc import Hashable
from contextlib import asynccontextmanager


class KeyedLock:
    def __init__(self):
        self._locks: dict[Hashable, asyncio.Lock] = {}
        self._users: dict[Hashable, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    def locked(self, key: Hashable) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def hold(self, key: Hashable):
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]
