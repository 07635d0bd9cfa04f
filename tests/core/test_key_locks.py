"""Keyed Locks — verifies per-key serialization and registry cleanup.

Tests:
    - Same key serializes holders; different keys run concurrently
    - Registry empties once all holders release
"""

import asyncio

from tribunal.infrastructure.key_locks import (
    KeyedLocks, appointee_key, moderator_key, user_key,
)


async def test_same_key_serializes():
    locks = KeyedLocks()
    order = []

    async def worker(name):
        async with locks.hold("user:x"):
            order.append(f"{name}-in")
            await asyncio.sleep(0.01)
            order.append(f"{name}-out")

    await asyncio.gather(worker("a"), worker("b"))
    assert order in (
        ["a-in", "a-out", "b-in", "b-out"],
        ["b-in", "b-out", "a-in", "a-out"],
    )


async def test_different_keys_do_not_block():
    locks = KeyedLocks()
    async with locks.hold("user:x"):
        async with locks.hold("user:y"):
            assert locks.is_held("user:x")
            assert locks.is_held("user:y")


async def test_registry_cleans_up_after_release():
    locks = KeyedLocks()
    async with locks.hold("user:x"):
        assert len(locks) == 1
    assert len(locks) == 0
    assert not locks.is_held("user:x")


async def test_registry_cleans_up_after_exception():
    locks = KeyedLocks()
    try:
        async with locks.hold("user:x"):
            raise RuntimeError("boom")
    except RuntimeError:
        pass
    assert len(locks) == 0


def test_key_namespaces_do_not_collide():
    assert len({user_key("abc"), appointee_key("abc"), moderator_key("abc")}) == 3
