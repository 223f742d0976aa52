"""Timer-based debounce with generation tokens."""

import asyncio
from typing import Awaitable, Callable


class Debouncer:
    """Collapse a burst of schedule() calls into one callback run.

    Every schedule() bumps a generation counter and starts a timer; when a
    timer expires it only runs the callback if no newer schedule() happened
    in the meantime. The callback therefore runs once per quiet period,
    after the last call.
    """

    def __init__(self, delay: float, callback: Callable[[], Awaitable[None]]):
        self.delay = delay
        self._callback = callback
        self._generation = 0
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> bool:
        return any(not task.done() for task in self._tasks)

    def schedule(self) -> None:
        self._generation += 1
        task = asyncio.get_running_loop().create_task(self._fire(self._generation))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def cancel(self) -> None:
        """Invalidate any timer still waiting."""
        self._generation += 1

    async def _fire(self, generation: int) -> None:
        await asyncio.sleep(self.delay)
        if generation != self._generation:
            return
        await self._callback()

    async def flush(self) -> None:
        """Wait for every outstanding timer, including the one that fires."""
        while any(not task.done() for task in self._tasks):
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
