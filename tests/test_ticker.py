"""
FocusTicker: one timer per key, restarting cancels the previous one.
"""
import asyncio

from taskdeck.infra.scheduler.ticker import FocusTicker


def test_step_runs_until_it_returns_false():
    async def scenario():
        ticker = FocusTicker(interval_seconds=0)
        calls = []

        async def step():
            calls.append(1)
            return len(calls) < 3

        ticker.start("u1", step)
        for _ in range(20):
            await asyncio.sleep(0)
        assert len(calls) == 3
        assert not ticker.is_running("u1")

    asyncio.run(scenario())


def test_restart_cancels_previous_timer():
    async def scenario():
        ticker = FocusTicker(interval_seconds=0)
        first, second = [], []

        async def step_first():
            first.append(1)
            return True

        async def step_second():
            second.append(1)
            return len(second) < 2

        ticker.start("u1", step_first)
        await asyncio.sleep(0)
        ticker.start("u1", step_second)
        before = len(first)
        for _ in range(20):
            await asyncio.sleep(0)
        assert len(first) == before
        assert len(second) == 2
        await ticker.stop_all()

    asyncio.run(scenario())


def test_step_errors_stop_the_timer():
    async def scenario():
        ticker = FocusTicker(interval_seconds=0)

        async def step():
            raise RuntimeError("boom")

        ticker.start("u1", step)
        for _ in range(5):
            await asyncio.sleep(0)
        assert not ticker.is_running("u1")

    asyncio.run(scenario())


def test_stop_all_cancels_everything():
    async def scenario():
        ticker = FocusTicker(interval_seconds=10)

        async def step():
            return True

        ticker.start("a", step)
        ticker.start("b", step)
        assert ticker.is_running("a") and ticker.is_running("b")
        await ticker.stop_all()
        assert not ticker.is_running("a")
        assert not ticker.is_running("b")

    asyncio.run(scenario())
