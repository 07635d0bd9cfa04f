"""Keyed Locks — per-target-key serialization of moderation writes.

Invariants:
    - At most one holder per key at a time; different keys never block each other
    - A key's lock is dropped from the registry once nobody holds or waits on it

Design Decisions:
    - asyncio.Lock per key inside one process (ADR: single-process uvicorn); the
      repository's conditional insert covers multi-process deployments
    - Reference counting instead of WeakValueDictionary: waiters keep the entry alive
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator


def user_key(user_hash: str) -> str:
    return f"user:{user_hash}"


def moderator_key(moderator_id: object) -> str:
    return f"moderator:{moderator_id}"


def appointee_key(user_hash: str) -> str:
    return f"appointee:{user_hash}"


class KeyedLocks:
    """Registry of named asyncio locks."""

    def __init__(self):
        self._locks: dict[str, asyncio.Lock] = {}
        self._refs: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
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

    def is_held(self, key: str) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)


# Process-wide registry shared by all services
moderation_locks = KeyedLocks()
