"""Per-article mutual exclusion for read-modify-write sequences.

Every mutating sync operation reads an article, decides, and writes it back.
Two such sequences interleaving on the same article can both observe
has_conflict=True and both apply a resolution.  KeyedLock serializes them per
article id while leaving different articles fully concurrent.

Usage:
    locks = KeyedLock()

    async with locks(article_id):
        article = await repo.get(article_id)
        ...
        await repo.update(article_id, {...})

Lock entries are reference counted and dropped once the last holder or
waiter leaves, so the registry does not grow with the number of articles
ever touched.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Hashable
from contextlib import asynccontextmanager


class KeyedLock:
    """A registry of asyncio.Lock objects keyed by an arbitrary hashable."""

    def __init__(self) -> None:
        self._locks: dict[Hashable, asyncio.Lock] = {}
        self._refcounts: dict[Hashable, int] = {}

    @asynccontextmanager
    async def __call__(self, key: Hashable) -> AsyncIterator[None]:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
            self._refcounts[key] = 0
        self._refcounts[key] += 1
        try:
            async with lock:
                yield
        finally:
            self._refcounts[key] -= 1
            if self._refcounts[key] == 0:
                del self._refcounts[key]
                del self._locks[key]

    def locked(self, key: Hashable) -> bool:
        """Return True if some coroutine currently holds the lock for *key*."""
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)
