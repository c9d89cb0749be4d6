"""Keyed asyncio locks for in-process serialization of market/user updates.

Lock order is always: market lock first, then user locks in sorted id order.
Row locks taken by the repositories (SELECT ... FOR UPDATE) follow the same
order, so the two layers never disagree.

An entry lives only while some task holds or waits on it; the registry never
grows past the number of keys currently in use.
"""

import asyncio
from collections.abc import AsyncIterator, Iterable
from contextlib import AsyncExitStack, asynccontextmanager


class KeyedLocks:
    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._refs: dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    def is_locked(self, key: str) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        # No await between lookup and ref increment, so a releasing task
        # cannot drop an entry another task is about to wait on.
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._refs[key] = self._refs.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._refs[key] -= 1
            if self._refs[key] == 0:
                del self._refs[key]
                del self._locks[key]

    @asynccontextmanager
    async def hold_all(self, keys: Iterable[str]) -> AsyncIterator[list[str]]:
        """Acquire the locks for every distinct key in sorted order."""
        ordered = sorted(set(keys))
        async with AsyncExitStack() as stack:
            for key in ordered:
                await stack.enter_async_context(self.hold(key))
            yield ordered
