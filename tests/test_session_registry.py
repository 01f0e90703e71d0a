"""
SessionRegistry: sign-in loads the user's tasks once, sign-out drops the
session and its timer.
"""
import asyncio

from taskdeck.domain.auth.models import User
from taskdeck.domain.focus.models import TimerMode
from taskdeck.infra.scheduler.ticker import FocusTicker
from taskdeck.ui.telegram.session import SessionRegistry

from tests.fakes import T0, FixedClock, InMemoryFocusLog, InMemoryTaskRepo, SeqIds, make_task

ANN = User(id="u1", email="ann@example.com", display_name="Ann", created_at=T0)
BOB = User(id="u2", email="bob@example.com", display_name="Bob", created_at=T0)


def _registry(repo, ticker):
    return SessionRegistry(repo, InMemoryFocusLog(), FixedClock(), SeqIds(), ticker, focus_default_minutes=50)


def test_open_loads_owner_tasks_and_reuses_session():
    async def scenario():
        repo = InMemoryTaskRepo([make_task("a", 0), make_task("b", 0, owner_id="u2")])
        registry = _registry(repo, FocusTicker())
        session = await registry.open(100, ANN)
        assert [t.id for t in session.tasks.tasks] == ["a"]
        assert session.focus.duration_for(TimerMode.FOCUS) == 50
        assert await registry.open(100, ANN) is session

        other = await registry.open(100, BOB)
        assert other is not session
        assert [t.id for t in other.tasks.tasks] == ["b"]

    asyncio.run(scenario())


def test_close_cancels_timer_and_forgets_session():
    async def scenario():
        ticker = FocusTicker(interval_seconds=60)
        registry = _registry(InMemoryTaskRepo(), ticker)
        await registry.open(100, ANN)

        async def step():
            return True

        ticker.start(100, step)
        assert ticker.is_running(100)
        registry.close(100)
        assert registry.get(100) is None
        assert not ticker.is_running(100)
        await ticker.stop_all()

    asyncio.run(scenario())
