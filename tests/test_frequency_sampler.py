"""Tests for the per-frame frequency sampler."""

from __future__ import annotations

import unittest

from fakes import FakeAnalyser
from src.engine.frequency_sampler import FREQUENCY_SCALE, FrequencySampler, frequency_heights


class TestFrequencySampler(unittest.TestCase):

    def test_returns_one_value_per_bin(self) -> None:
        analyser = FakeAnalyser(frequency=bytes(range(256)) * 4)
        snapshot = FrequencySampler(analyser).sample()
        self.assertEqual(len(snapshot), analyser.frequency_bin_count)
        self.assertEqual(snapshot[:3], (0, 1, 2))

    def test_each_call_reads_fresh_data(self) -> None:
        analyser = FakeAnalyser(frequency=bytes([10]) * 1024)
        sampler = FrequencySampler(analyser)
        first = sampler.sample()
        analyser.frequency = bytes([200]) * 1024
        second = sampler.sample()
        self.assertEqual(first[0], 10)
        self.assertEqual(second[0], 200)
        self.assertEqual(analyser.frequency_reads, 2)

    def test_missing_or_unready_analyser(self) -> None:
        self.assertEqual(FrequencySampler().sample(), ())
        self.assertEqual(FrequencySampler(FakeAnalyser(ready=False)).sample(), ())

    def test_torn_down_analyser(self) -> None:
        analyser = FakeAnalyser()
        analyser.raise_unavailable = True
        self.assertEqual(FrequencySampler(analyser).sample(), ())

    def test_heights_divide_by_fixed_scale(self) -> None:
        self.assertEqual(FREQUENCY_SCALE, 100.0)
        self.assertEqual(frequency_heights((0, 50, 100, 255)), [0.0, 0.5, 1.0, 2.55])


if __name__ == "__main__":
    unittest.main()
