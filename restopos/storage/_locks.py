"""
Per-aggregate write locks.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import UUID


class KeyedLock:
    """One asyncio.Lock per aggregate id. Writes to different ids never wait on each other."""

    def __init__(self) -> None:
        self._locks: dict[UUID, asyncio.Lock] = {}

    @asynccontextmanager
    async def hold(self, key: UUID) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        async with lock:
            yield

    def forget(self, key: UUID) -> None:
        """Drop the lock of a deleted aggregate unless someone is holding it."""
        lock = self._locks.get(key)
        if lock is not None and not lock.locked():
            del self._locks[key]


__all__ = ("KeyedLock",)
