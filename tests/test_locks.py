import asyncio

import pytest

from articlesync.sync.locks import KeyedLock


@pytest.mark.asyncio
async def test_same_key_is_serialized():
    locks = KeyedLock()
    events = []

    async def worker(name):
        async with locks(1):
            events.append(f"{name}:enter")
            await asyncio.sleep(0.01)
            events.append(f"{name}:exit")

    await asyncio.gather(worker("a"), worker("b"))

    assert events == ["a:enter", "a:exit", "b:enter", "b:exit"]


@pytest.mark.asyncio
async def test_different_keys_run_concurrently():
    locks = KeyedLock()
    both_inside = asyncio.Event()
    inside = 0

    async def worker(key):
        nonlocal inside
        async with locks(key):
            inside += 1
            if inside == 2:
                both_inside.set()
            await asyncio.wait_for(both_inside.wait(), timeout=1)

    await asyncio.gather(worker(1), worker(2))

    assert both_inside.is_set()


@pytest.mark.asyncio
async def test_entries_are_released_after_use():
    locks = KeyedLock()

    async with locks("a"):
        assert locks.locked("a")
        assert len(locks) == 1

    assert not locks.locked("a")
    assert len(locks) == 0


@pytest.mark.asyncio
async def test_entry_released_when_body_raises():
    locks = KeyedLock()

    with pytest.raises(RuntimeError):
        async with locks(7):
            raise RuntimeError("boom")

    assert len(locks) == 0
    async with locks(7):
        assert locks.locked(7)


@pytest.mark.asyncio
async def test_waiters_keep_entry_alive():
    locks = KeyedLock()
    release = asyncio.Event()

    async def holder():
        async with locks(1):
            await release.wait()

    async def waiter():
        async with locks(1):
            pass

    tasks = [asyncio.create_task(holder()), asyncio.create_task(waiter())]
    await asyncio.sleep(0)
    assert len(locks) == 1
    assert locks.locked(1)

    release.set()
    await asyncio.gather(*tasks)
    assert len(locks) == 0
