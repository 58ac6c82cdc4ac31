"""Per-frame frequency snapshots for the live spectrum view."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Optional

from loguru import logger

from src.engine.capture import AnalyserNode
from src.engine.errors import SessionUnavailable

FREQUENCY_SCALE = 100.0

FrequencySnapshot = tuple[int, ...]


def frequency_heights(snapshot: Sequence[int]) -> list[float]:
    """Map bin energies to bar-height fractions (``value / 100``, unclamped)."""
    return [value / FREQUENCY_SCALE for value in snapshot]


class FrequencySampler:
    """Reads the analysis node's frequency-domain bytes on demand.

    Holds no state between calls other than the analyser reference.
    """

    def __init__(self, analyser: Optional[AnalyserNode] = None) -> None:
        self.analyser = analyser

    def sample(self) -> FrequencySnapshot:
        analyser = self.analyser
        if analyser is None or not analyser.ready:
            return ()
        try:
            data = analyser.read_frequency_domain()
        except SessionUnavailable:
            logger.debug("Analyser unavailable; empty frequency snapshot")
            return ()
        return tuple(data)
