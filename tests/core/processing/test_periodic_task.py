"""Tests for PeriodicTask scheduling on the asyncio loop."""

from __future__ import annotations

import asyncio

from core.processing.periodic_task import PeriodicTask


def test_runs_repeatedly_until_cancelled() -> None:
    calls = []

    async def scenario():
        async def tick():
            calls.append(len(calls))

        task = PeriodicTask("tick", 0.01, tick)
        task.start()
        await asyncio.sleep(0.06)
        task.cancel()
        count = len(calls)
        await asyncio.sleep(0.03)
        return task, count

    task, count_at_cancel = asyncio.run(scenario())

    assert count_at_cancel >= 2
    assert len(calls) == count_at_cancel
    assert task.is_running is False


def test_cancel_is_idempotent_and_safe_before_start() -> None:
    async def scenario():
        async def tick():
            pass

        task = PeriodicTask("noop", 0.01, tick)
        task.cancel()
        task.start()
        task.cancel()
        task.cancel()
        return task

    assert asyncio.run(scenario()).is_running is False


def test_failing_tick_does_not_stop_loop() -> None:
    async def scenario():
        async def tick():
            raise RuntimeError("backend hiccup")

        task = PeriodicTask("flaky", 0.01, tick)
        task.start()
        await asyncio.sleep(0.05)
        running = task.is_running
        task.cancel()
        return task, running

    task, running = asyncio.run(scenario())

    assert running is True
    assert task.failures >= 2
    assert task.failures == task.ticks


def test_delayed_start_waits_one_interval() -> None:
    calls = []

    async def scenario():
        async def tick():
            calls.append(1)

        task = PeriodicTask("delayed", 0.2, tick)
        task.start(immediate=False)
        await asyncio.sleep(0.05)
        task.cancel()

    asyncio.run(scenario())
    assert calls == []


def test_start_twice_keeps_single_loop() -> None:
    async def scenario():
        async def tick():
            pass

        task = PeriodicTask("once", 0.01, tick)
        task.start()
        first = task._task
        task.start()
        same = task._task is first
        task.cancel()
        return same

    assert asyncio.run(scenario()) is True


def test_slow_callback_keeps_fixed_period() -> None:
    stamps = []

    async def scenario():
        loop = asyncio.get_running_loop()

        async def tick():
            stamps.append(loop.time())
            await asyncio.sleep(0.08)

        task = PeriodicTask("slow", 0.1, tick)
        task.start()
        await asyncio.sleep(1.0)
        task.cancel()

    asyncio.run(scenario())

    assert len(stamps) >= 9
    gaps = [b - a for a, b in zip(stamps, stamps[1:])]
    assert sum(gaps) / len(gaps) < 0.13
