"""
Unit tests for the upstream concurrency limiter.
"""

import asyncio

import pytest

from service_traffic.app.ratelimit.concurrency_limiter import ConcurrencyLimiter


class TestConcurrencyLimiter:
    """Test cases for ConcurrencyLimiter."""

    @pytest.mark.asyncio
    async def test_returns_task_result(self):
        limiter = ConcurrencyLimiter(2)

        async def task():
            return {"ok": True}

        assert await limiter.run(task) == {"ok": True}
        assert limiter.active == 0

    @pytest.mark.asyncio
    async def test_never_exceeds_limit_and_all_complete(self):
        limiter = ConcurrencyLimiter(6)
        running = 0
        peak = 0

        async def task(i):
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.01)
            running -= 1
            return i

        results = await asyncio.gather(*(limiter.run(lambda i=i: task(i)) for i in range(25)))

        assert results == list(range(25))
        assert peak == 6
        assert limiter.peak_active == 6
        assert limiter.active == 0
        assert limiter.pending == 0

    @pytest.mark.asyncio
    async def test_queued_tasks_admitted_in_fifo_order(self):
        limiter = ConcurrencyLimiter(1)
        started = []
        gate = asyncio.Event()

        async def task(i):
            started.append(i)
            if i == 0:
                await gate.wait()

        first = asyncio.create_task(limiter.run(lambda: task(0)))
        await asyncio.sleep(0)
        queued = [asyncio.create_task(limiter.run(lambda i=i: task(i))) for i in range(1, 5)]
        await asyncio.sleep(0)

        assert started == [0]
        assert limiter.pending == 4

        gate.set()
        await asyncio.gather(first, *queued)
        assert started == [0, 1, 2, 3, 4]

    @pytest.mark.asyncio
    async def test_failing_task_releases_slot(self):
        limiter = ConcurrencyLimiter(1)

        async def boom():
            raise RuntimeError("boom")

        async def fine():
            return "ok"

        with pytest.raises(RuntimeError):
            await limiter.run(boom)

        assert limiter.active == 0
        assert await asyncio.wait_for(limiter.run(fine), timeout=1) == "ok"

    @pytest.mark.asyncio
    async def test_stats(self):
        limiter = ConcurrencyLimiter(3)
        gate = asyncio.Event()

        async def task():
            await gate.wait()

        tasks = [asyncio.create_task(limiter.run(task)) for _ in range(5)]
        await asyncio.sleep(0)

        stats = limiter.stats()
        assert stats == {"limit": 3, "active": 3, "pending": 2, "peak_active": 3}

        gate.set()
        await asyncio.gather(*tasks)

    def test_invalid_limit_rejected(self):
        with pytest.raises(ValueError):
            ConcurrencyLimiter(0)
