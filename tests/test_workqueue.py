"""Tests for the WorkQueue."""

import asyncio

import pytest

from cachier.workqueue import ShutDown, WorkQueue


class TestWorkQueue:
    """Test cases for WorkQueue."""

    @pytest.mark.asyncio
    async def test_deduplicates(self):
        queue = WorkQueue()
        queue.add("bar/foo")
        queue.add("bar/foo")
        queue.add("bar/baz")

        assert len(queue) == 2
        assert await queue.get() == "bar/foo"
        assert await queue.get() == "bar/baz"
        assert len(queue) == 0

    @pytest.mark.asyncio
    async def test_readd_while_processing(self):
        queue = WorkQueue()
        queue.add("bar/foo")
        key = await queue.get()

        # Not handed out again until the current worker is done
        queue.add("bar/foo")
        queue.add("bar/foo")
        assert queue._queue.empty()

        queue.done(key)
        assert await queue.get() == "bar/foo"
        queue.done("bar/foo")
        assert queue._queue.empty()

    @pytest.mark.asyncio
    async def test_done_without_readd(self):
        queue = WorkQueue()
        queue.add("bar/foo")
        queue.done(await queue.get())

        assert queue._queue.empty()
        assert len(queue) == 0

    def test_backoff(self):
        queue = WorkQueue(base_delay=0.005, max_delay=1.0)

        assert queue.when("bar/foo") == 0.005
        queue._failures["bar/foo"] = 3
        assert queue.when("bar/foo") == 0.04
        queue._failures["bar/foo"] = 20
        assert queue.when("bar/foo") == 1.0

        queue.forget("bar/foo")
        assert queue.num_requeues("bar/foo") == 0
        assert queue.when("bar/foo") == 0.005

    @pytest.mark.asyncio
    async def test_add_rate_limited(self):
        queue = WorkQueue(base_delay=0.01, max_delay=0.05)

        queue.add_rate_limited("bar/foo")
        assert queue.num_requeues("bar/foo") == 1
        assert len(queue) == 0

        key = await asyncio.wait_for(queue.get(), timeout=1)
        assert key == "bar/foo"

    @pytest.mark.asyncio
    async def test_add_after(self):
        queue = WorkQueue()
        queue.add_after("bar/foo", 0.01)
        assert len(queue) == 0

        assert await asyncio.wait_for(queue.get(), timeout=1) == "bar/foo"

    @pytest.mark.asyncio
    async def test_shut_down_wakes_all_waiters(self):
        queue = WorkQueue()
        waiters = [asyncio.create_task(queue.get()) for _ in range(3)]
        await asyncio.sleep(0)

        queue.shut_down()
        results = await asyncio.gather(*waiters, return_exceptions=True)

        assert all(isinstance(r, ShutDown) for r in results)
        assert queue.shutting_down

    @pytest.mark.asyncio
    async def test_shut_down_ignores_adds(self):
        queue = WorkQueue()
        queue.add_after("bar/later", 0.01)
        queue.shut_down()
        queue.add("bar/foo")

        assert len(queue) == 0
        with pytest.raises(ShutDown):
            await queue.get()
