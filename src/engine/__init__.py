"""wavebars engine — peak decoding, live sampling and bar rendering."""

from src.engine.amplitude_sampler import AmplitudeSampler, rms_amplitude
from src.engine.bar_renderer import (
    Bar,
    BarGeometry,
    BarRenderer,
    CanvasState,
    resample_nearest,
    slot_count,
)
from src.engine.capture import AnalyserNode, CaptureSession, RecorderState
from src.engine.errors import DecodeFailure, SessionUnavailable, WaveformError
from src.engine.frequency_sampler import FrequencySampler, frequency_heights
from src.engine.playhead import PlayheadSeekMapper, time_to_x, x_to_time
from src.engine.render_loop import RenderLoop
from src.engine.scroll import ScrollController, ScrollViewport
from src.engine.signal_decoder import (
    PeakArray,
    SignalDecoder,
    default_sample_count,
    downsample_peaks,
)
from src.engine.surface import PillowSurface, Viewport
from src.engine.tick_source import AsyncioClock, ManualClock, TickHandle, TickSource
from src.engine.views import (
    LiveRecorderHandle,
    StaticWaveformHandle,
    TimelineRecorderHandle,
    create_live_recorder,
    create_static_waveform,
    create_timeline_recorder,
)

__all__ = [
    # Decoding
    "PeakArray",
    "SignalDecoder",
    "default_sample_count",
    "downsample_peaks",
    # Live sampling
    "AmplitudeSampler",
    "FrequencySampler",
    "frequency_heights",
    "rms_amplitude",
    "AnalyserNode",
    "CaptureSession",
    "RecorderState",
    # Rendering
    "Bar",
    "BarGeometry",
    "BarRenderer",
    "CanvasState",
    "PillowSurface",
    "Viewport",
    "resample_nearest",
    "slot_count",
    "RenderLoop",
    # Playhead / scroll
    "PlayheadSeekMapper",
    "ScrollController",
    "ScrollViewport",
    "time_to_x",
    "x_to_time",
    # Scheduling
    "AsyncioClock",
    "ManualClock",
    "TickHandle",
    "TickSource",
    # Views
    "LiveRecorderHandle",
    "StaticWaveformHandle",
    "TimelineRecorderHandle",
    "create_live_recorder",
    "create_static_waveform",
    "create_timeline_recorder",
    # Errors
    "DecodeFailure",
    "SessionUnavailable",
    "WaveformError",
]
