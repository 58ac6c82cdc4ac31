"""
wavebars — View Handles
========================
Owned handles that wire the engine pieces into the three views:

- :func:`create_static_waveform` — decoded peaks + playhead + seek.
- :func:`create_live_recorder` — live spectrum, fixed width, redrawn per frame.
- :func:`create_timeline_recorder` — growing amplitude timeline with
  auto-scroll.

Sampler output reaches the renderer by injection: the live view receives the
sampler's accessor as its ``data_source``. Handles expose read-only accessors
instead of their internals.

Usage::

    clock = AsyncioClock()
    timeline = create_timeline_recorder(clock, Viewport(600, 80, 2.0))
    session = recorder.start()
    timeline.attach(session, session.analyser)
    timeline.start()
    ...
    timeline.close()
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Optional

from loguru import logger

from app.core.config import settings
from src.engine.amplitude_sampler import AmplitudeSampler
from src.engine.bar_renderer import BarGeometry, BarRenderer, CanvasState
from src.engine.capture import AnalyserNode, CaptureSession, RecorderState
from src.engine.errors import DecodeFailure
from src.engine.frequency_sampler import FrequencySampler, frequency_heights
from src.engine.playhead import PlayheadSeekMapper
from src.engine.render_loop import RenderLoop
from src.engine.scroll import ScrollContainer, ScrollController
from src.engine.signal_decoder import PeakArray, SignalDecoder, default_sample_count
from src.engine.surface import Container, PillowSurface, Surface
from src.engine.tick_source import Clock

DataSource = Callable[[], Sequence[float]]


# ════════════════════════════════════════════════════════════════════════
#  1. Static waveform
# ════════════════════════════════════════════════════════════════════════


class StaticWaveformHandle:
    """Peaks of a finished recording, with playhead and click-to-seek."""

    def __init__(
        self,
        decoder: SignalDecoder,
        renderer: BarRenderer,
        container: Container,
        playhead: PlayheadSeekMapper,
        sample_count: Optional[int] = None,
    ) -> None:
        self._decoder = decoder
        self._renderer = renderer
        self._container = container
        self._playhead = playhead
        self.sample_count = sample_count or default_sample_count(container.client_width)
        self._source: Optional[bytes] = None
        self._peaks: Optional[PeakArray] = None
        self._error: Optional[DecodeFailure] = None
        self._generation = 0
        self._current_time: Optional[float] = None
        self._duration: Optional[float] = None

    @property
    def surface(self) -> Surface:
        return self._renderer.surface

    @property
    def canvas(self) -> Optional[CanvasState]:
        return self._renderer.canvas

    @property
    def peaks(self) -> Optional[PeakArray]:
        return self._peaks

    @property
    def error(self) -> Optional[DecodeFailure]:
        return self._error

    async def load(self, source: Optional[bytes]) -> Optional[PeakArray]:
        """Decode *source* and redraw.

        ``None`` clears the view. A load superseded by a newer one is
        discarded. Raises :class:`DecodeFailure` after recording it in
        :attr:`error`.
        """
        if source is None:
            self._generation += 1
            self._source = None
            self._peaks = None
            self._error = None
            self.render()
            return None
        if source is self._source and self._error is None:
            return self._peaks

        self._generation += 1
        generation = self._generation
        self._source = source
        self._error = None
        try:
            peaks = await self._decoder.decode_async(source, self.sample_count)
        except DecodeFailure as exc:
            if generation == self._generation:
                self._peaks = None
                self._error = exc
            raise

        if generation != self._generation:
            logger.debug("Discarding stale decode result (generation {})", generation)
            return peaks
        self._peaks = peaks
        self.render()
        return peaks

    def render(self, current_time: Optional[float] = None,
               duration: Optional[float] = None) -> CanvasState:
        if current_time is not None:
            self._current_time = current_time
        if duration is not None:
            self._duration = duration
        canvas = self._renderer.draw(self._peaks, self._container, state=RecorderState.STOPPED)
        self._playhead.draw(self.surface, self._current_time, self._duration, canvas)
        return canvas

    def seek(self, x: float) -> Optional[float]:
        canvas = self._renderer.canvas
        if canvas is None:
            return None
        return self._playhead.seek(x, self._duration, canvas)


def create_static_waveform(
    container: Container,
    *,
    geometry: Optional[BarGeometry] = None,
    surface: Optional[Surface] = None,
    decoder: Optional[SignalDecoder] = None,
    sample_count: Optional[int] = None,
    on_seek: Optional[Callable[[float], None]] = None,
    bar_color: Optional[str] = None,
    playhead_color: Optional[str] = None,
    playhead_width: Optional[float] = None,
) -> StaticWaveformHandle:
    renderer = BarRenderer(
        surface or PillowSurface(),
        geometry or BarGeometry(bar_width=1.0, gap=1.0, radius=0.0, height_scale=0.95),
        grow_width=False,
        show_idle=False,
        fit_to_width=True,
        bar_color=bar_color,
    )
    playhead_kwargs = {}
    if playhead_color is not None:
        playhead_kwargs["color"] = playhead_color
    if playhead_width is not None:
        playhead_kwargs["width"] = playhead_width
    return StaticWaveformHandle(
        decoder or SignalDecoder(),
        renderer,
        container,
        PlayheadSeekMapper(on_seek, **playhead_kwargs),
        sample_count,
    )


# ════════════════════════════════════════════════════════════════════════
#  2. Live views
# ════════════════════════════════════════════════════════════════════════


class LiveView:
    """Frame loop + renderer around an injected data source."""

    def __init__(
        self,
        clock: Clock,
        renderer: BarRenderer,
        container: Container,
        data_source: DataSource,
        *,
        scroll: Optional[ScrollController] = None,
        frame_rate: Optional[float] = None,
    ) -> None:
        self.renderer = renderer
        self.container = container
        self.data_source = data_source
        self.scroll = scroll
        self.session: Optional[CaptureSession] = None
        rate = frame_rate if frame_rate is not None else settings.FRAME_RATE
        self.loop = RenderLoop(clock.frames(rate), self.draw_frame, self.state)

    def state(self) -> RecorderState:
        session = self.session
        return session.state if session is not None else RecorderState.IDLE

    def draw_frame(self) -> CanvasState:
        canvas = self.renderer.draw(self.data_source(), self.container, state=self.state())
        if self.scroll is not None:
            self.scroll.after_draw(canvas)
        return canvas


class LiveRecorderHandle:
    """Live frequency spectrum of the current capture session."""

    def __init__(self, view: LiveView, sampler: FrequencySampler) -> None:
        self._view = view
        self._sampler = sampler

    @property
    def surface(self) -> Surface:
        return self._view.renderer.surface

    @property
    def canvas(self) -> Optional[CanvasState]:
        return self._view.renderer.canvas

    @property
    def analyser(self) -> Optional[AnalyserNode]:
        return self._sampler.analyser

    @property
    def state(self) -> RecorderState:
        return self._view.state()

    def attach(self, session: Optional[CaptureSession], analyser: Optional[AnalyserNode]) -> None:
        self._view.session = session
        self._sampler.analyser = analyser
        self._view.loop.invalidate()

    def start(self) -> None:
        self._view.loop.start()

    def invalidate(self) -> None:
        self._view.loop.invalidate()

    def close(self) -> None:
        self._view.loop.stop()
        self._view.session = None
        self._sampler.analyser = None


def create_live_recorder(
    clock: Clock,
    container: Container,
    *,
    geometry: Optional[BarGeometry] = None,
    surface: Optional[Surface] = None,
    show_idle: bool = True,
    bar_color: Optional[str] = None,
    frame_rate: Optional[float] = None,
) -> LiveRecorderHandle:
    sampler = FrequencySampler()
    renderer = BarRenderer(
        surface or PillowSurface(),
        geometry or BarGeometry(),
        grow_width=False,
        show_idle=show_idle,
        bar_color=bar_color,
    )

    def spectrum() -> list[float]:
        return frequency_heights(sampler.sample())

    view = LiveView(clock, renderer, container, spectrum, frame_rate=frame_rate)
    return LiveRecorderHandle(view, sampler)


class TimelineRecorderHandle:
    """Growing (or fixed) amplitude timeline of the current capture session."""

    def __init__(self, view: LiveView, sampler: AmplitudeSampler) -> None:
        self._view = view
        self._sampler = sampler

    @property
    def surface(self) -> Surface:
        return self._view.renderer.surface

    @property
    def canvas(self) -> Optional[CanvasState]:
        return self._view.renderer.canvas

    @property
    def state(self) -> RecorderState:
        return self._view.state()

    @property
    def auto_scroll_enabled(self) -> bool:
        return self._view.scroll.auto_scroll_enabled if self._view.scroll else False

    def amplitudes(self) -> tuple[float, ...]:
        return self._sampler.snapshot()

    def attach(self, session: Optional[CaptureSession], analyser: Optional[AnalyserNode]) -> None:
        """Bind a capture session; a different session starts a fresh timeline."""
        if session is not self._sampler.session:
            self._view.renderer.reset()
            if self._view.scroll is not None:
                self._view.scroll.reset()
        self._sampler.attach(session, analyser)
        self._view.session = session
        self._view.loop.invalidate()

    def start(self) -> None:
        self._view.loop.start()

    def invalidate(self) -> None:
        self._view.loop.invalidate()

    def on_user_scroll(self, scroll_offset: Optional[float] = None) -> bool:
        if self._view.scroll is None:
            return False
        return self._view.scroll.on_user_scroll(scroll_offset)

    def scroll_to_end(self) -> None:
        if self._view.scroll is not None:
            self._view.scroll.scroll_to_end()

    def close(self) -> None:
        self._sampler.detach()
        self._view.loop.stop()
        self._view.session = None


def create_timeline_recorder(
    clock: Clock,
    container: Container,
    *,
    scroll_container: Optional[ScrollContainer] = None,
    geometry: Optional[BarGeometry] = None,
    surface: Optional[Surface] = None,
    grow_width: bool = True,
    show_idle: bool = True,
    bar_color: Optional[str] = None,
    sample_interval_ms: Optional[float] = None,
    settle_delay_ms: Optional[float] = None,
    frame_rate: Optional[float] = None,
) -> TimelineRecorderHandle:
    sampler = AmplitudeSampler(
        clock,
        sample_interval_ms=sample_interval_ms,
        settle_delay_ms=settle_delay_ms,
    )
    renderer = BarRenderer(
        surface or PillowSurface(),
        geometry or BarGeometry(),
        grow_width=grow_width,
        show_idle=show_idle,
        bar_color=bar_color,
    )
    scroll = (
        ScrollController(scroll_container, grow_width=grow_width)
        if scroll_container is not None
        else None
    )
    view = LiveView(clock, renderer, container, sampler.snapshot, scroll=scroll, frame_rate=frame_rate)
    return TimelineRecorderHandle(view, sampler)
