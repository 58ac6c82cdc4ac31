"""Tests for the per-state redraw cadence of the render loop."""

from __future__ import annotations

import unittest

from src.engine.capture import RecorderState
from src.engine.errors import SessionUnavailable
from src.engine.render_loop import RenderLoop
from src.engine.tick_source import ManualClock


class TestRenderLoop(unittest.TestCase):

    def setUp(self) -> None:
        self.clock = ManualClock()
        self.state = RecorderState.IDLE
        self.draws = 0
        self.loop = RenderLoop(self.clock.frames(50), self._draw, lambda: self.state)

    def _draw(self) -> None:
        self.draws += 1

    def test_idle_draws_once(self) -> None:
        self.loop.start()
        self.clock.advance(200)
        self.assertEqual(self.draws, 1)
        self.assertEqual(self.loop.frame_count, 10)

    def test_recording_draws_every_frame(self) -> None:
        self.state = RecorderState.RECORDING
        self.loop.start()
        self.clock.advance(200)
        self.assertEqual(self.draws, 10)

    def test_paused_freezes_last_frame(self) -> None:
        self.state = RecorderState.RECORDING
        self.loop.start()
        self.clock.advance(100)
        drawn = self.draws
        self.state = RecorderState.PAUSED
        self.clock.advance(500)
        self.assertEqual(self.draws, drawn)
        self.assertTrue(self.loop.running)

    def test_resume_restarts_drawing(self) -> None:
        self.state = RecorderState.PAUSED
        self.loop.start()
        self.clock.advance(100)
        self.state = RecorderState.RECORDING
        before = self.draws
        self.clock.advance(100)
        self.assertEqual(self.draws, before + 5)

    def test_stop_transition_draws_final_frame(self) -> None:
        self.state = RecorderState.RECORDING
        self.loop.start()
        self.clock.advance(60)
        self.state = RecorderState.STOPPED
        drawn = self.draws
        self.clock.advance(200)
        self.assertEqual(self.draws, drawn + 1)

    def test_invalidate_forces_one_redraw(self) -> None:
        self.loop.start()
        self.clock.advance(40)
        self.loop.invalidate()
        self.clock.advance(200)
        self.assertEqual(self.draws, 2)

    def test_start_stop_idempotent(self) -> None:
        self.loop.start()
        self.loop.start()
        self.clock.advance(20)
        self.assertEqual(self.loop.frame_count, 1)
        self.loop.stop()
        self.loop.stop()
        self.clock.advance(200)
        self.assertEqual(self.loop.frame_count, 1)
        self.assertFalse(self.loop.running)
        self.assertEqual(self.clock.pending, 0)

    def test_session_teardown_mid_frame_is_swallowed(self) -> None:
        def failing_draw() -> None:
            raise SessionUnavailable("gone")

        loop = RenderLoop(self.clock.frames(50), failing_draw, lambda: RecorderState.RECORDING)
        loop.start()
        self.clock.advance(100)
        self.assertEqual(loop.frame_count, 5)


if __name__ == "__main__":
    unittest.main()
