from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Dict, Hashable

logger = logging.getLogger(__name__)

# returns False when the countdown should stop
StepFn = Callable[[], Awaitable[bool]]


class FocusTicker:
    """
    One repeating timer per key (per Telegram user). Starting a timer for a
    key cancels the previous one first, so timers never leak.
    """

    def __init__(self, interval_seconds: float = 1.0) -> None:
        self._interval = interval_seconds
        self._tasks: Dict[Hashable, asyncio.Task] = {}

    def is_running(self, key: Hashable) -> bool:
        task = self._tasks.get(key)
        return task is not None and not task.done()

    def start(self, key: Hashable, step: StepFn) -> None:
        self.cancel(key)
        self._tasks[key] = asyncio.create_task(self._run(key, step), name=f"focus-ticker-{key}")

    def cancel(self, key: Hashable) -> None:
        task = self._tasks.pop(key, None)
        if task is not None and not task.done():
            task.cancel()

    async def stop_all(self) -> None:
        tasks = list(self._tasks.values())
        self._tasks.clear()
        for t in tasks:
            t.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    async def _run(self, key: Hashable, step: StepFn) -> None:
        try:
            while True:
                await asyncio.sleep(self._interval)
                try:
                    keep_going = await step()
                except Exception as e:
                    # never crash the bot because of a timer, but log errors
                    logger.error("Focus tick error key=%s: %s", key, e, exc_info=True)
                    keep_going = False
                if not keep_going:
                    break
        finally:
            if self._tasks.get(key) is asyncio.current_task():
                del self._tasks[key]
