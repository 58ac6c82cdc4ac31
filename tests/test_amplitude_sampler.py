"""
Tests for the Amplitude Sampler
=================================
Covers:

- RMS amplitude of byte time-domain buffers (gain + clamp)
- Timeline growth at the sampling interval
- Pause / resume / stop semantics
- New-session reset vs. same-session re-attach
- Unready / torn-down analysers
"""

from __future__ import annotations

import unittest

from fakes import FakeAnalyser, FakeSession
from src.engine.amplitude_sampler import AmplitudeSampler, rms_amplitude
from src.engine.capture import RecorderState
from src.engine.tick_source import ManualClock


def _square(low: int, high: int, n: int = 2048) -> bytes:
    return bytes([low, high] * (n // 2))


class TestRmsAmplitude(unittest.TestCase):

    def test_silence_is_zero(self) -> None:
        self.assertEqual(rms_amplitude(bytes([128]) * 512), 0.0)

    def test_quarter_scale_is_doubled(self) -> None:
        # ±0.25 → RMS 0.25 → ×2 gain
        self.assertAlmostEqual(rms_amplitude(_square(96, 160)), 0.5)

    def test_loud_signal_is_clamped(self) -> None:
        self.assertEqual(rms_amplitude(_square(64, 192)), 1.0)
        self.assertEqual(rms_amplitude(_square(0, 255)), 1.0)

    def test_empty_buffer(self) -> None:
        self.assertEqual(rms_amplitude(b""), 0.0)


class TestAmplitudeSampler(unittest.TestCase):

    def setUp(self) -> None:
        self.clock = ManualClock()
        self.session = FakeSession()
        self.analyser = FakeAnalyser(time_domain=_square(96, 160))
        self.sampler = AmplitudeSampler(self.clock, sample_interval_ms=50, settle_delay_ms=50)

    def test_waits_for_settle_delay(self) -> None:
        self.sampler.attach(self.session, self.analyser)
        self.clock.advance(49)
        self.assertFalse(self.sampler.is_sampling)
        self.clock.advance(1)
        self.assertTrue(self.sampler.is_sampling)
        self.assertEqual(len(self.sampler), 0)

    def test_500ms_of_recording_yields_about_ten_samples(self) -> None:
        self.sampler.attach(self.session, self.analyser)
        self.clock.advance(50)  # settle
        self.clock.advance(500)
        self.assertTrue(9 <= len(self.sampler) <= 11)
        self.assertTrue(all(a == 0.5 for a in self.sampler.snapshot()))

    def test_start_twice_is_noop(self) -> None:
        self.sampler.attach(self.session, self.analyser)
        self.clock.advance(50)
        self.sampler.start()
        self.sampler.start()
        self.clock.advance(100)
        self.assertEqual(len(self.sampler), 2)

    def test_pause_freezes_and_resume_continues(self) -> None:
        self.sampler.attach(self.session, self.analyser)
        self.clock.advance(50 + 8 * 50)
        self.assertEqual(len(self.sampler), 8)
        before = self.sampler.snapshot()

        self.session.pause()
        self.assertEqual(len(self.sampler), 8)
        self.clock.advance(300)
        self.assertEqual(len(self.sampler), 8)

        self.session.resume()
        self.assertEqual(len(self.sampler), 8)
        self.clock.advance(100)
        self.assertEqual(len(self.sampler), 10)
        self.assertEqual(self.sampler.snapshot()[:8], before)

    def test_pause_during_settle_then_resume(self) -> None:
        self.sampler.attach(self.session, self.analyser)
        self.session.pause()
        self.clock.advance(200)
        self.assertEqual(len(self.sampler), 0)
        self.session.resume()
        self.clock.advance(100)
        self.assertEqual(len(self.sampler), 2)

    def test_stop_event_ends_sampling(self) -> None:
        self.sampler.attach(self.session, self.analyser)
        self.clock.advance(150)
        self.session.stop()
        count = len(self.sampler)
        self.clock.advance(500)
        self.assertEqual(len(self.sampler), count)
        self.assertFalse(self.sampler.is_sampling)

    def test_new_session_resets_timeline(self) -> None:
        self.sampler.attach(self.session, self.analyser)
        self.clock.advance(300)
        self.assertGreater(len(self.sampler), 0)

        other = FakeSession()
        self.sampler.attach(other, self.analyser)
        self.assertEqual(len(self.sampler), 0)
        self.assertEqual(self.session.listener_count(), 0)
        self.clock.advance(150)
        self.assertEqual(len(self.sampler), 2)

    def test_same_session_does_not_reset(self) -> None:
        self.sampler.attach(self.session, self.analyser)
        self.clock.advance(300)
        count = len(self.sampler)
        self.sampler.attach(self.session, self.analyser)
        self.assertEqual(len(self.sampler), count)

    def test_only_appends_while_recording(self) -> None:
        idle = FakeSession(state=RecorderState.IDLE)
        self.sampler.attach(idle, self.analyser)
        self.clock.advance(50)
        self.assertIsNone(self.sampler.sample_once())
        self.assertEqual(len(self.sampler), 0)

    def test_unready_analyser_is_skipped(self) -> None:
        self.analyser.ready = False
        self.sampler.attach(self.session, self.analyser)
        self.clock.advance(200)
        self.assertEqual(len(self.sampler), 0)
        self.analyser.ready = True
        self.clock.advance(100)
        self.assertEqual(len(self.sampler), 2)

    def test_torn_down_analyser_is_swallowed(self) -> None:
        self.sampler.attach(self.session, self.analyser)
        self.clock.advance(100)
        self.analyser.raise_unavailable = True
        self.clock.advance(200)
        self.assertEqual(len(self.sampler), 1)

    def test_detach_is_idempotent(self) -> None:
        self.sampler.attach(self.session, self.analyser)
        self.clock.advance(100)
        self.sampler.detach()
        self.sampler.detach()
        self.sampler.stop()
        self.assertEqual(self.session.listener_count(), 0)
        self.assertEqual(self.clock.pending, 0)
        self.assertIsNone(self.sampler.session)

    def test_snapshot_is_immutable(self) -> None:
        self.sampler.attach(self.session, self.analyser)
        self.clock.advance(100)
        snap = self.sampler.snapshot()
        self.clock.advance(100)
        self.assertEqual(len(snap), 1)
        self.assertIsInstance(snap, tuple)

    def test_snapshot_is_reused_until_next_sample(self) -> None:
        self.sampler.attach(self.session, self.analyser)
        self.clock.advance(100)
        first = self.sampler.snapshot()
        self.assertIs(self.sampler.snapshot(), first)
        self.clock.advance(50)
        second = self.sampler.snapshot()
        self.assertIsNot(second, first)
        self.assertEqual(len(second), 2)
        self.assertEqual(second[:1], first)

    def test_invalid_interval(self) -> None:
        with self.assertRaises(ValueError):
            AmplitudeSampler(self.clock, sample_interval_ms=0)


if __name__ == "__main__":
    unittest.main()
