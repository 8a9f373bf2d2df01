"""
Keyed asyncio locks.

Serializes coroutines that share a key while leaving different keys fully
concurrent. Locks are created on first use and dropped once nobody holds
or waits for them.

Usage:
    locks = KeyedLock()

    async with locks.hold("a@x.com"):
        ...  # at most one coroutine per key in here
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator


class KeyedLock:
    """Registry of per-key asyncio locks with reference counting."""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]

    def __len__(self) -> int:
        """Number of keys currently held or awaited."""
        return len(self._locks)
