from __future__ import annotations

import asyncio

import pytest

from mesa_chat.workers.periodic import PeriodicTask


@pytest.mark.asyncio
async def test_periodic_task_ticks_until_stopped():
    ticks = 0

    async def _tick():
        nonlocal ticks
        ticks += 1

    task = PeriodicTask("test-sweeper", 0.01, _tick)
    await task.start()
    await asyncio.sleep(0.05)
    await task.stop()
    seen = ticks
    await asyncio.sleep(0.03)

    assert seen >= 1
    assert ticks == seen


@pytest.mark.asyncio
async def test_periodic_task_survives_failing_tick():
    calls = 0

    async def _boom():
        nonlocal calls
        calls += 1
        raise RuntimeError("tick failed")

    task = PeriodicTask("flaky", 0.01, _boom)
    await task.start()
    await asyncio.sleep(0.05)
    await task.stop()

    assert calls >= 2
