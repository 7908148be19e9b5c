from __future__ import annotations

import asyncio

import pytest

from agents.operator_lock import OperatorLocks


@pytest.mark.asyncio
async def test_same_operator_runs_one_at_a_time():
    locks = OperatorLocks()
    events = []

    async def job(name):
        async with locks.hold("op-1"):
            events.append(f"{name}-start")
            await asyncio.sleep(0.01)
            events.append(f"{name}-end")

    await asyncio.gather(job("a"), job("b"))

    assert events == ["a-start", "a-end", "b-start", "b-end"]
    assert not locks.is_busy("op-1")


@pytest.mark.asyncio
async def test_different_operators_do_not_block_each_other():
    locks = OperatorLocks()
    other_started = asyncio.Event()

    async def first():
        async with locks.hold("op-1"):
            await other_started.wait()

    async def second():
        async with locks.hold("op-2"):
            other_started.set()

    await asyncio.wait_for(asyncio.gather(first(), second()), timeout=1)


@pytest.mark.asyncio
async def test_lock_is_released_on_error():
    locks = OperatorLocks()

    with pytest.raises(RuntimeError):
        async with locks.hold("op-1"):
            assert locks.is_busy("op-1")
            raise RuntimeError("boom")

    assert not locks.is_busy("op-1")
    assert locks.lock_for("op-1") is locks.lock_for("op-1")
