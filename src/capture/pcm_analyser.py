"""
wavebars — PCM Analyser
========================
A numpy stand-in for a Web Audio ``AnalyserNode`` fed from a capture stream.

- **Time domain**: the last ``fft_size`` samples as unsigned bytes,
  ``128`` = silence.
- **Frequency domain**: Blackman-windowed FFT magnitude, smoothed over time
  with ``smoothing_time_constant``, converted to dB and mapped linearly from
  ``[min_decibels, max_decibels]`` onto ``[0, 255]``.

``push`` is called from the audio thread; reads happen on the event loop, so
the rolling window is guarded by a lock and readers work on a copy.
"""

from __future__ import annotations

import threading

import numpy as np

from src.engine.errors import SessionUnavailable

MIN_FFT_SIZE = 32
MAX_FFT_SIZE = 32768
MIN_DECIBELS = -100.0
MAX_DECIBELS = -30.0


def _is_power_of_two(n: int) -> bool:
    return n > 0 and (n & (n - 1)) == 0


class PcmAnalyser:
    def __init__(
        self,
        fft_size: int = 2048,
        smoothing_time_constant: float = 0.8,
        *,
        min_decibels: float = MIN_DECIBELS,
        max_decibels: float = MAX_DECIBELS,
    ) -> None:
        if not _is_power_of_two(fft_size) or not MIN_FFT_SIZE <= fft_size <= MAX_FFT_SIZE:
            raise ValueError(
                f"fft_size must be a power of two in [{MIN_FFT_SIZE}, {MAX_FFT_SIZE}], got {fft_size}"
            )
        if not 0.0 <= smoothing_time_constant <= 1.0:
            raise ValueError(f"smoothing_time_constant must be in [0, 1], got {smoothing_time_constant}")
        if min_decibels >= max_decibels:
            raise ValueError("min_decibels must be below max_decibels")

        self._fft_size = fft_size
        self._smoothing = smoothing_time_constant
        self.min_decibels = min_decibels
        self.max_decibels = max_decibels
        self._window = np.zeros(fft_size, dtype=np.float64)
        self._blackman = np.blackman(fft_size)
        self._smoothed = np.zeros(fft_size // 2, dtype=np.float64)
        self._received = 0
        self._closed = False
        self._lock = threading.Lock()

    # ── configuration ────────────────────────────────────────────────

    @property
    def fft_size(self) -> int:
        return self._fft_size

    @property
    def frequency_bin_count(self) -> int:
        return self._fft_size // 2

    @property
    def smoothing_time_constant(self) -> float:
        return self._smoothing

    @property
    def ready(self) -> bool:
        return not self._closed and self._received > 0

    # ── input ────────────────────────────────────────────────────────

    def push(self, samples: np.ndarray) -> None:
        """Append float samples in ``[-1, 1]``; multi-channel input is averaged."""
        if self._closed:
            return
        block = np.asarray(samples, dtype=np.float64)
        if block.ndim > 1:
            block = block.mean(axis=1)
        if block.size == 0:
            return
        n = self._fft_size
        with self._lock:
            if block.size >= n:
                self._window[:] = block[-n:]
            else:
                self._window = np.concatenate((self._window[block.size:], block))
            self._received += block.size

    def close(self) -> None:
        self._closed = True

    def _snapshot(self) -> np.ndarray:
        if not self.ready:
            raise SessionUnavailable("Analyser has no audio yet or is closed")
        with self._lock:
            return self._window.copy()

    # ── output ───────────────────────────────────────────────────────

    def read_time_domain(self) -> bytes:
        window = self._snapshot()
        data = np.clip(np.floor(128.0 * (window + 1.0)), 0, 255).astype(np.uint8)
        return data.tobytes()

    def read_frequency_domain(self) -> bytes:
        window = self._snapshot()
        spectrum = np.abs(np.fft.rfft(window * self._blackman))[: self.frequency_bin_count]
        spectrum /= self._fft_size
        tau = self._smoothing
        self._smoothed = tau * self._smoothed + (1.0 - tau) * spectrum

        with np.errstate(divide="ignore"):
            db = 20.0 * np.log10(self._smoothed)
        db = np.nan_to_num(db, neginf=self.min_decibels)
        scale = 255.0 / (self.max_decibels - self.min_decibels)
        data = np.clip(np.floor(scale * (db - self.min_decibels)), 0, 255).astype(np.uint8)
        return data.tobytes()
