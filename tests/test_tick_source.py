"""Tests for ManualClock and the asyncio tick sources."""

from __future__ import annotations

import asyncio
import unittest

from src.engine.tick_source import AsyncioClock, ManualClock, TickHandle


class TestManualClock(unittest.TestCase):

    def test_interval_fires_once_per_period(self) -> None:
        clock = ManualClock()
        ticks = []
        clock.interval(50).on_tick(lambda: ticks.append(clock.now_ms))
        clock.advance(500)
        self.assertEqual(len(ticks), 10)
        self.assertEqual(ticks[0], 50)
        self.assertEqual(ticks[-1], 500)

    def test_timeout_fires_once(self) -> None:
        clock = ManualClock()
        fired = []
        clock.timeout(50).on_tick(lambda: fired.append(True))
        clock.advance(49)
        self.assertEqual(fired, [])
        clock.advance(200)
        self.assertEqual(fired, [True])
        self.assertEqual(clock.pending, 0)

    def test_cancel_is_idempotent(self) -> None:
        clock = ManualClock()
        ticks = []
        handle = clock.interval(10).on_tick(lambda: ticks.append(1))
        clock.advance(30)
        handle.cancel()
        handle.cancel()
        clock.advance(100)
        self.assertEqual(len(ticks), 3)
        self.assertTrue(handle.cancelled)

    def test_timers_fire_in_time_order(self) -> None:
        clock = ManualClock()
        order = []
        clock.interval(30).on_tick(lambda: order.append("slow"))
        clock.interval(20).on_tick(lambda: order.append("fast"))
        clock.advance(60)
        # at t=60 both are due; registration order breaks the tie
        self.assertEqual(order, ["fast", "slow", "fast", "slow", "fast"])

    def test_callback_may_schedule_more_timers(self) -> None:
        clock = ManualClock()
        fired = []

        def first() -> None:
            fired.append("first")
            clock.timeout(10).on_tick(lambda: fired.append("second"))

        clock.timeout(10).on_tick(first)
        clock.advance(20)
        self.assertEqual(fired, ["first", "second"])

    def test_failing_callback_does_not_stop_interval(self) -> None:
        clock = ManualClock()
        ticks = []

        def boom() -> None:
            ticks.append(1)
            raise RuntimeError("tick failed")

        clock.interval(10).on_tick(boom)
        clock.advance(30)
        self.assertEqual(len(ticks), 3)

    def test_handle_without_callback(self) -> None:
        handle = TickHandle()
        handle.cancel()
        self.assertTrue(handle.cancelled)


class TestAsyncioClock(unittest.IsolatedAsyncioTestCase):

    async def test_interval_ticks_until_cancelled(self) -> None:
        clock = AsyncioClock()
        ticks = []
        handle = clock.interval(10).on_tick(lambda: ticks.append(1))
        await asyncio.sleep(0.08)
        handle.cancel()
        seen = len(ticks)
        self.assertGreaterEqual(seen, 2)
        await asyncio.sleep(0.05)
        self.assertEqual(len(ticks), seen)
        handle.cancel()

    async def test_timeout_fires_once(self) -> None:
        clock = AsyncioClock()
        fired = []
        clock.timeout(5).on_tick(lambda: fired.append(True))
        await asyncio.sleep(0.05)
        self.assertEqual(fired, [True])

    async def test_frames_source_interval(self) -> None:
        source = AsyncioClock().frames(50)
        self.assertAlmostEqual(source.interval_ms, 20.0)


if __name__ == "__main__":
    unittest.main()
