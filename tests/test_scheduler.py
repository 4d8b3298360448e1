"""
Tests for the continuous-mode interval timer.
"""

import asyncio

import pytest

from scanning.scheduler import IntervalTimer


class TestIntervalTimer:
    @pytest.mark.parametrize("interval", [0, -0.5])
    def test_rejects_non_positive_interval(self, interval):
        with pytest.raises(ValueError):
            IntervalTimer(interval, lambda: None)

    def test_fires_repeatedly_until_cancelled(self):
        ticks = []

        async def tick():
            ticks.append(1)

        async def go():
            timer = IntervalTimer(0.01, tick)
            timer.start()
            await asyncio.sleep(0.1)
            await timer.cancel_and_wait()
            count = len(ticks)
            await asyncio.sleep(0.05)
            return timer, count

        timer, count = asyncio.run(go())

        assert count >= 2
        assert len(ticks) == count
        assert not timer.is_active

    def test_first_call_after_one_interval(self):
        ticks = []

        async def tick():
            ticks.append(1)

        async def go():
            timer = IntervalTimer(1.0, tick)
            timer.start()
            await asyncio.sleep(0.02)
            active = timer.is_active
            await timer.cancel_and_wait()
            return active

        assert asyncio.run(go()) is True
        assert ticks == []

    def test_callback_error_keeps_timer_running(self, caplog):
        calls = []

        async def flaky():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("first tick failed")

        async def go():
            timer = IntervalTimer(0.01, flaky, name="flaky")
            timer.start()
            await asyncio.sleep(0.1)
            await timer.cancel_and_wait()

        asyncio.run(go())

        assert len(calls) >= 2
        assert "first tick failed" in caplog.text

    def test_start_twice_keeps_one_task(self):
        ticks = []

        async def tick():
            ticks.append(1)

        async def go():
            timer = IntervalTimer(0.05, tick)
            timer.start()
            first = timer._task
            timer.start()
            same = timer._task is first
            await timer.cancel_and_wait()
            return same

        assert asyncio.run(go()) is True

    def test_cancel_from_inside_callback(self):
        ticks = []
        holder = {}

        async def tick():
            ticks.append(1)
            await holder["timer"].cancel_and_wait()

        async def go():
            timer = IntervalTimer(0.01, tick)
            holder["timer"] = timer
            timer.start()
            await asyncio.sleep(0.1)
            return timer

        timer = asyncio.run(go())

        assert ticks == [1]
        assert not timer.is_active

    def test_cancel_before_start(self):
        async def go():
            timer = IntervalTimer(0.01, lambda: None)
            await timer.cancel_and_wait()
            return timer

        assert not asyncio.run(go()).is_active
