"""Tests for the single-flight primitive."""

import asyncio
import gc

import pytest

from remote_dataset import SingleFlight


class TestSingleFlight:
    """Tests for sharing one in-flight operation between callers."""

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_run(self):
        flight: SingleFlight[int] = SingleFlight()
        release = asyncio.Event()
        runs = 0

        async def operation() -> int:
            nonlocal runs
            runs += 1
            await release.wait()
            return 42

        callers = [asyncio.create_task(flight.run(operation)) for _ in range(5)]
        await asyncio.sleep(0)
        assert flight.in_flight

        release.set()

        assert await asyncio.gather(*callers) == [42] * 5
        assert runs == 1
        assert not flight.in_flight

    @pytest.mark.asyncio
    async def test_sequential_calls_run_again(self):
        flight: SingleFlight[int] = SingleFlight()
        runs = 0

        async def operation() -> int:
            nonlocal runs
            runs += 1
            return runs

        assert await flight.run(operation) == 1
        assert await flight.run(operation) == 2

    @pytest.mark.asyncio
    async def test_failure_is_shared_and_cleared(self):
        flight: SingleFlight[None] = SingleFlight()
        calls = 0

        async def failing() -> None:
            nonlocal calls
            calls += 1
            await asyncio.sleep(0)
            raise ConnectionError("node unreachable")

        results = await asyncio.gather(
            flight.run(failing), flight.run(failing), return_exceptions=True
        )

        assert calls == 1
        assert all(isinstance(r, ConnectionError) for r in results)
        assert not flight.in_flight

    @pytest.mark.asyncio
    async def test_cancelled_caller_does_not_cancel_shared_run(self):
        flight: SingleFlight[str] = SingleFlight()
        release = asyncio.Event()

        async def operation() -> str:
            await release.wait()
            return "done"

        first = asyncio.create_task(flight.run(operation))
        second = asyncio.create_task(flight.run(operation))
        await asyncio.sleep(0)

        first.cancel()
        with pytest.raises(asyncio.CancelledError):
            await first

        release.set()
        assert await second == "done"

    @pytest.mark.asyncio
    async def test_failure_after_all_callers_cancelled_is_retrieved(self):
        unhandled = []
        loop = asyncio.get_running_loop()
        loop.set_exception_handler(lambda _loop, context: unhandled.append(context))
        flight: SingleFlight[str] = SingleFlight()
        release = asyncio.Event()

        async def operation() -> str:
            await release.wait()
            raise ConnectionError("offline")

        try:
            callers = [asyncio.create_task(flight.run(operation)) for _ in range(2)]
            await asyncio.sleep(0)
            for caller in callers:
                caller.cancel()
            await asyncio.gather(*callers, return_exceptions=True)

            release.set()
            while flight.in_flight:
                await asyncio.sleep(0)
            await asyncio.sleep(0)
            gc.collect()
        finally:
            loop.set_exception_handler(None)

        assert unhandled == []
