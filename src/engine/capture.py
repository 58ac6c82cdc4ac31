"""Interfaces of the live-capture collaborators (session + analysis node)."""

from __future__ import annotations

import enum
from collections.abc import Callable
from typing import Protocol


class RecorderState(str, enum.Enum):
    IDLE = "idle"
    RECORDING = "recording"
    PAUSED = "paused"
    STOPPED = "stopped"

    @property
    def is_active(self) -> bool:
        return self in (RecorderState.RECORDING, RecorderState.PAUSED)


# Session events
EVENT_START = "start"
EVENT_PAUSE = "pause"
EVENT_RESUME = "resume"
EVENT_STOP = "stop"

SESSION_EVENTS = (EVENT_START, EVENT_PAUSE, EVENT_RESUME, EVENT_STOP)

Listener = Callable[[], None]


class CaptureSession(Protocol):
    """A live recording: state queries plus pause/resume notifications."""

    @property
    def state(self) -> RecorderState: ...

    def add_listener(self, event: str, callback: Listener) -> None: ...

    def remove_listener(self, event: str, callback: Listener) -> None: ...


class AnalyserNode(Protocol):
    """Spectral analysis node over the capture stream.

    ``read_time_domain`` returns ``fft_size`` unsigned bytes centred on 128;
    ``read_frequency_domain`` returns ``frequency_bin_count`` bytes of
    relative energy. Both raise
    :class:`~src.engine.errors.SessionUnavailable` while the node is not
    ready.
    """

    @property
    def ready(self) -> bool: ...

    @property
    def fft_size(self) -> int: ...

    @property
    def frequency_bin_count(self) -> int: ...

    @property
    def smoothing_time_constant(self) -> float: ...

    def read_time_domain(self) -> bytes: ...

    def read_frequency_domain(self) -> bytes: ...
