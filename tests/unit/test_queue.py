"""
Unit tests for the sequential task queue.

Pacing is observed through an injected sleep so no test actually waits.
"""

import asyncio

import pytest

from asset_pipeline.core.migration.queue import SequentialTaskQueue


class RecordingSleep:
    def __init__(self, log=None):
        self.calls = []
        self.log = log

    async def __call__(self, seconds):
        self.calls.append(seconds)
        if self.log is not None:
            self.log.append(f"sleep {seconds}")


def task(log, name, result=None, error=None):
    async def run():
        log.append(f"start {name}")
        await asyncio.sleep(0)
        log.append(f"end {name}")
        if error is not None:
            raise error
        return result if result is not None else name
    return run


class TestSequentialTaskQueue:
    """Tests for ordering, pacing and failure handling."""

    @pytest.mark.asyncio
    async def test_runs_tasks_one_at_a_time_in_order(self):
        log = []
        queue = SequentialTaskQueue(pacing_seconds=0, sleep=RecordingSleep())
        for name in ("a", "b", "c"):
            queue.add(task(log, name))

        results = await queue.run()

        assert results == ["a", "b", "c"]
        assert log == ["start a", "end a", "start b", "end b", "start c", "end c"]

    @pytest.mark.asyncio
    async def test_pauses_between_tasks_not_after_last(self):
        log = []
        sleep = RecordingSleep(log)
        queue = SequentialTaskQueue(pacing_seconds=1.0, sleep=sleep)
        for name in ("a", "b", "c"):
            queue.add(task(log, name))

        await queue.run()

        assert sleep.calls == [1.0, 1.0]
        assert log[-1] == "end c"

    @pytest.mark.asyncio
    async def test_nothing_starts_before_its_turn(self):
        """Factories are only called when their turn comes."""
        started = []

        def factory(name):
            started.append(name)
            return asyncio.sleep(0, result=name)

        queue = SequentialTaskQueue(pacing_seconds=0)
        queue.add(lambda: factory("a"))
        queue.add(lambda: factory("b"))

        assert started == []
        await queue.run()
        assert started == ["a", "b"]

    @pytest.mark.asyncio
    async def test_error_propagates_without_handler(self):
        log = []
        queue = SequentialTaskQueue(pacing_seconds=0)
        queue.add(task(log, "a", error=RuntimeError("boom")))
        queue.add(task(log, "b"))

        with pytest.raises(RuntimeError, match="boom"):
            await queue.run()
        assert "start b" not in log

    @pytest.mark.asyncio
    async def test_handler_converts_errors_and_continues(self):
        log = []
        queue = SequentialTaskQueue(pacing_seconds=0)
        queue.add(task(log, "a"))
        queue.add(task(log, "b", error=RuntimeError("boom")))
        queue.add(task(log, "c"))

        results = await queue.run(on_error=lambda index, exc: f"failed {index}: {exc}")

        assert results == ["a", "failed 1: boom", "c"]

    @pytest.mark.asyncio
    async def test_timeout_is_reported_to_handler(self):
        async def slow():
            await asyncio.sleep(10)

        queue = SequentialTaskQueue(pacing_seconds=0, task_timeout_seconds=0.01)
        queue.add(slow)

        results = await queue.run(on_error=lambda index, exc: type(exc))

        assert results == [asyncio.TimeoutError]

    @pytest.mark.asyncio
    async def test_run_drains_the_queue(self):
        queue = SequentialTaskQueue(pacing_seconds=0)
        queue.add(task([], "a"))
        assert len(queue) == 1

        await queue.run()

        assert len(queue) == 0
        assert await queue.run() == []

    def test_rejects_negative_pacing(self):
        with pytest.raises(ValueError, match="cannot be negative"):
            SequentialTaskQueue(pacing_seconds=-1)

    def test_rejects_non_positive_timeout(self):
        with pytest.raises(ValueError, match="must be positive"):
            SequentialTaskQueue(task_timeout_seconds=0)
