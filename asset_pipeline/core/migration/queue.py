"""
Sequential task queue with pacing.

The migration deliberately never fans out: one entry's download, upload and
record writes finish before the next entry starts, with a fixed pause in
between. The queue owns that policy and is the single place a per-task
timeout is applied.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleeper = Callable[[float], Awaitable[None]]


class SequentialTaskQueue:
    """
    Runs queued coroutine factories one at a time, in order.

    A pause of `pacing_seconds` is awaited between tasks, not after the last
    one. Tasks are factories (not coroutine objects) so nothing starts
    before its turn.
    """

    def __init__(
        self,
        pacing_seconds: float = 1.0,
        task_timeout_seconds: Optional[float] = None,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        if pacing_seconds < 0:
            raise ValueError("pacing_seconds cannot be negative")
        if task_timeout_seconds is not None and task_timeout_seconds <= 0:
            raise ValueError("task_timeout_seconds must be positive")

        self._pacing = pacing_seconds
        self._timeout = task_timeout_seconds
        self._sleep = sleep
        self._tasks: list[Callable[[], Awaitable[T]]] = []

    def add(self, factory: Callable[[], Awaitable[T]]) -> None:
        """Queue a task to run after everything queued before it."""
        self._tasks.append(factory)

    def __len__(self) -> int:
        return len(self._tasks)

    async def run(
        self,
        on_error: Optional[Callable[[int, Exception], T]] = None,
    ) -> list[T]:
        """
        Drain the queue and return each task's result in order.

        Without `on_error`, the first failing task's exception propagates and
        the rest of the queue is dropped. With it, a failing task (timeouts
        included) is replaced by on_error(position, exc) and the queue keeps
        going.
        """
        tasks, self._tasks = self._tasks, []
        results: list[T] = []

        for index, factory in enumerate(tasks):
            if index > 0 and self._pacing > 0:
                await self._sleep(self._pacing)

            try:
                results.append(await self._run_one(factory))
            except Exception as e:
                if on_error is None:
                    raise
                logger.debug(
                    "Queued task failed",
                    extra={"position": index + 1, "error": str(e) or type(e).__name__}
                )
                results.append(on_error(index, e))

            logger.debug(
                "Completed queued task",
                extra={"position": index + 1, "total": len(tasks)}
            )

        return results

    async def _run_one(self, factory: Callable[[], Awaitable[T]]) -> T:
        if self._timeout is None:
            return await factory()
        return await asyncio.wait_for(factory(), timeout=self._timeout)
