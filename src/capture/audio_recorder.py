"""Microphone capture sessions for the live waveform views."""

from __future__ import annotations

import threading
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Optional

import numpy as np
from loguru import logger

from app.core.config import settings
from src.capture.pcm_analyser import PcmAnalyser
from src.engine.capture import (
    EVENT_PAUSE,
    EVENT_RESUME,
    EVENT_START,
    EVENT_STOP,
    SESSION_EVENTS,
    Listener,
    RecorderState,
)

StreamFactory = Callable[["RecorderConfig", Callable[..., None]], Any]


@dataclass(slots=True)
class RecorderConfig:
    sample_rate: int = field(default_factory=lambda: settings.CAPTURE_SAMPLE_RATE)
    channels: int = 1
    block_size: int = field(default_factory=lambda: settings.CAPTURE_BLOCK_SIZE)
    fft_size: int = field(default_factory=lambda: settings.FFT_SIZE)
    smoothing_time_constant: float = field(default_factory=lambda: settings.TIMELINE_SMOOTHING)


def sounddevice_stream(config: RecorderConfig, callback: Callable[..., None]) -> Any:
    """Open a float32 ``sounddevice.InputStream`` (PortAudio is loaded lazily)."""
    import sounddevice as sd

    return sd.InputStream(
        samplerate=config.sample_rate,
        channels=config.channels,
        dtype="float32",
        blocksize=config.block_size,
        callback=callback,
    )


class RecordingSession:
    """One recording, from start to stop.

    A new object is created for every recording, so object identity tells
    consumers when a fresh timeline should begin.
    """

    def __init__(self, analyser: PcmAnalyser, sample_rate: int) -> None:
        self.analyser = analyser
        self.sample_rate = sample_rate
        self._state = RecorderState.IDLE
        self._listeners: dict[str, list[Listener]] = defaultdict(list)
        self._chunks: list[np.ndarray] = []
        self._lock = threading.Lock()

    @property
    def state(self) -> RecorderState:
        return self._state

    @property
    def is_recording(self) -> bool:
        return self._state == RecorderState.RECORDING

    @property
    def is_paused(self) -> bool:
        return self._state == RecorderState.PAUSED

    def add_listener(self, event: str, callback: Listener) -> None:
        if event not in SESSION_EVENTS:
            raise ValueError(f"Unknown session event '{event}'")
        if callback not in self._listeners[event]:
            self._listeners[event].append(callback)

    def remove_listener(self, event: str, callback: Listener) -> None:
        try:
            self._listeners[event].remove(callback)
        except ValueError:
            pass

    def _transition(self, state: RecorderState, event: str) -> None:
        self._state = state
        logger.debug("Recording session {} → {}", id(self), state.value)
        for callback in list(self._listeners[event]):
            callback()

    def feed(self, block: np.ndarray) -> None:
        """Audio-thread entry point: analyse every block, keep it while recording."""
        if not self._state.is_active:
            return
        self.analyser.push(block)
        if self._state == RecorderState.RECORDING:
            mono = block.mean(axis=1) if block.ndim > 1 else block
            with self._lock:
                self._chunks.append(np.array(mono, dtype=np.float32))

    def recorded(self) -> np.ndarray:
        with self._lock:
            if not self._chunks:
                return np.zeros(0, dtype=np.float32)
            return np.concatenate(self._chunks)

    @property
    def duration(self) -> float:
        with self._lock:
            frames = sum(len(c) for c in self._chunks)
        return frames / self.sample_rate if self.sample_rate else 0.0


class AudioRecorder:
    """Start/pause/resume/stop recordings and hand out their sessions."""

    def __init__(
        self,
        config: RecorderConfig | None = None,
        stream_factory: Optional[StreamFactory] = None,
    ) -> None:
        self.config = config or RecorderConfig()
        self._stream_factory = stream_factory or sounddevice_stream
        self._stream = None
        self._session: Optional[RecordingSession] = None

    @property
    def session(self) -> Optional[RecordingSession]:
        return self._session

    @property
    def analyser(self) -> Optional[PcmAnalyser]:
        return self._session.analyser if self._session else None

    @property
    def state(self) -> RecorderState:
        return self._session.state if self._session else RecorderState.IDLE

    def start(self) -> RecordingSession:
        if self._session is not None and self._session.state.is_active:
            logger.warning("Recorder already active; stopping previous session first")
            self.stop()

        analyser = PcmAnalyser(self.config.fft_size, self.config.smoothing_time_constant)
        session = RecordingSession(analyser, self.config.sample_rate)
        self._session = session
        self._stream = self._stream_factory(self.config, self._on_audio_frame)
        self._stream.start()
        session._transition(RecorderState.RECORDING, EVENT_START)
        logger.info(
            "Recording started: {} Hz, {} ch, block={}",
            self.config.sample_rate,
            self.config.channels,
            self.config.block_size,
        )
        return session

    def pause(self) -> None:
        session = self._session
        if session is not None and session.state == RecorderState.RECORDING:
            session._transition(RecorderState.PAUSED, EVENT_PAUSE)

    def resume(self) -> None:
        session = self._session
        if session is not None and session.state == RecorderState.PAUSED:
            session._transition(RecorderState.RECORDING, EVENT_RESUME)

    def stop(self) -> np.ndarray:
        """Close the stream and return the recorded mono PCM."""
        if self._stream is not None:
            self._stream.stop()
            self._stream.close()
            self._stream = None
        session = self._session
        if session is None:
            return np.zeros(0, dtype=np.float32)
        if session.state.is_active:
            session._transition(RecorderState.STOPPED, EVENT_STOP)
            session.analyser.close()
            logger.info("Recording stopped after {:.2f}s", session.duration)
        return session.recorded()

    def _on_audio_frame(self, indata, frames, _time_info, status) -> None:
        if status:
            logger.warning("Input stream status: {}", status)
        session = self._session
        if session is not None:
            session.feed(indata.copy())
