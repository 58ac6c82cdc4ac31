"""
wavebars — Amplitude Sampler
=============================
Builds the growing **amplitude timeline** of a live recording by polling the
analysis node's time-domain buffer on a fixed interval.

Per tick::

    x_i  = (byte_i - 128) / 128          # → [-1, 1]
    rms  = sqrt(mean(x_i ** 2))
    amp  = min(1, rms * 2)               # gain so quiet speech stays visible

Pause stops the interval timer but keeps the timeline; resume restarts it.
Only a *new* session object clears the timeline.
"""

from __future__ import annotations

import math
from typing import Optional

import numpy as np
from loguru import logger

from app.core.config import settings
from src.engine.capture import (
    EVENT_PAUSE,
    EVENT_START,
    EVENT_RESUME,
    EVENT_STOP,
    AnalyserNode,
    CaptureSession,
    RecorderState,
)
from src.engine.errors import SessionUnavailable
from src.engine.tick_source import Clock, TickHandle

AMPLITUDE_GAIN = 2.0
BYTE_CENTER = 128.0


def rms_amplitude(time_domain: bytes | np.ndarray) -> float:
    """Gain-adjusted RMS of an unsigned-byte time-domain buffer, in ``[0, 1]``."""
    if isinstance(time_domain, np.ndarray):
        data = time_domain
    else:
        data = np.frombuffer(bytes(time_domain), dtype=np.uint8)
    if data.size == 0:
        return 0.0
    normalized = (data.astype(np.float64) - BYTE_CENTER) / BYTE_CENTER
    rms = math.sqrt(float(np.mean(normalized * normalized)))
    return min(1.0, rms * AMPLITUDE_GAIN)


class AmplitudeSampler:
    """Interval-driven RMS sampler for one capture session at a time."""

    def __init__(
        self,
        clock: Clock,
        *,
        sample_interval_ms: Optional[float] = None,
        settle_delay_ms: Optional[float] = None,
    ) -> None:
        self.clock = clock
        self.sample_interval_ms = (
            sample_interval_ms if sample_interval_ms is not None else settings.SAMPLE_INTERVAL_MS
        )
        self.settle_delay_ms = (
            settle_delay_ms if settle_delay_ms is not None else settings.SETTLE_DELAY_MS
        )
        if self.sample_interval_ms <= 0:
            raise ValueError("sample_interval_ms must be positive")

        self._session: Optional[CaptureSession] = None
        self._analyser: Optional[AnalyserNode] = None
        self._amplitudes: list[float] = []
        self._snapshot: Optional[tuple[float, ...]] = ()
        self._interval: Optional[TickHandle] = None
        self._settle: Optional[TickHandle] = None

    # ── accessors ────────────────────────────────────────────────────

    @property
    def session(self) -> Optional[CaptureSession]:
        return self._session

    @property
    def is_sampling(self) -> bool:
        return self._interval is not None

    def snapshot(self) -> tuple[float, ...]:
        """Current timeline as an immutable tuple.

        Built on demand and cached until the next append.
        """
        if self._snapshot is None:
            self._snapshot = tuple(self._amplitudes)
        return self._snapshot

    def __len__(self) -> int:
        return len(self._amplitudes)

    def clear(self) -> None:
        self._amplitudes = []
        self._snapshot = ()

    # ── lifecycle ────────────────────────────────────────────────────

    def attach(self, session: Optional[CaptureSession], analyser: Optional[AnalyserNode]) -> None:
        """Bind to *session*; a different session object resets the timeline.

        Sampling starts after the settle delay. Passing ``None`` detaches.
        """
        if session is self._session:
            self._analyser = analyser
            return

        self.detach()
        self.clear()
        self._session = session
        self._analyser = analyser
        if session is None:
            return

        session.add_listener(EVENT_START, self._on_resume)
        session.add_listener(EVENT_PAUSE, self._on_pause)
        session.add_listener(EVENT_RESUME, self._on_resume)
        session.add_listener(EVENT_STOP, self._on_stop)
        logger.debug("Amplitude sampler attached to session {}", id(session))
        self._settle = self.clock.timeout(self.settle_delay_ms).on_tick(self._on_settled)

    def detach(self) -> None:
        """Stop sampling and unhook from the current session (idempotent)."""
        self._cancel_settle()
        self.stop()
        session = self._session
        if session is not None:
            session.remove_listener(EVENT_START, self._on_resume)
            session.remove_listener(EVENT_PAUSE, self._on_pause)
            session.remove_listener(EVENT_RESUME, self._on_resume)
            session.remove_listener(EVENT_STOP, self._on_stop)
        self._session = None
        self._analyser = None

    def start(self) -> None:
        """Start the interval loop; a no-op when it is already running."""
        if self._interval is not None:
            return
        self._interval = self.clock.interval(self.sample_interval_ms).on_tick(self.sample_once)

    def stop(self) -> None:
        """Stop the interval loop; safe to call repeatedly."""
        if self._interval is None:
            return
        self._interval.cancel()
        self._interval = None

    def _cancel_settle(self) -> None:
        if self._settle is not None:
            self._settle.cancel()
            self._settle = None

    # ── events ───────────────────────────────────────────────────────

    def _on_settled(self) -> None:
        self._settle = None
        session = self._session
        if session is not None and session.state == RecorderState.RECORDING:
            self.start()

    def _on_pause(self) -> None:
        self._cancel_settle()
        self.stop()

    def _on_resume(self) -> None:
        self.start()

    def _on_stop(self) -> None:
        self._cancel_settle()
        self.stop()

    # ── sampling ─────────────────────────────────────────────────────

    def sample_once(self) -> Optional[float]:
        """Take one sample; returns the appended amplitude or ``None``."""
        session = self._session
        analyser = self._analyser
        if session is None or analyser is None:
            return None
        if session.state != RecorderState.RECORDING:
            return None
        if not analyser.ready:
            return None
        try:
            buffer = analyser.read_time_domain()
        except SessionUnavailable:
            return None

        amplitude = rms_amplitude(buffer)
        self._amplitudes.append(amplitude)
        self._snapshot = None
        return amplitude
