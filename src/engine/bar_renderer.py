"""
wavebars — Bar Renderer
========================
Draws peak arrays, amplitude timelines and frequency snapshots as rounded
bars on a :class:`~src.engine.surface.Surface`.

Two width policies:

- **Growing** — the canvas is ``len(data) × pitch`` wide (at least the
  container width) and never shrinks within a session, so the view can
  scroll like a voice-memo timeline.
- **Fixed** — the canvas is the container width; when the data has more
  values than ``floor(width / pitch)`` slots it is resampled with
  nearest-neighbour index mapping. With ``fit_to_width`` shorter data is
  stretched the same way, so bars always span the whole canvas.

Every draw recomputes the pixel size from the device pixel ratio, resizes the
surface (resetting its transform) and applies the DPR scale exactly once.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Optional

from loguru import logger

from src.engine.capture import RecorderState
from src.engine.surface import Container, Surface

MIN_BAR_HEIGHT = 2.0


@dataclass(frozen=True)
class BarGeometry:
    """Bar styling in logical pixels.

    Attributes
    ----------
    bar_width : float
        Width of a single bar (``> 0``).
    gap : float
        Horizontal gap between bars (``>= 0``).
    radius : float
        Corner radius (``>= 0``).
    height_scale : float
        Fraction of the available height a full-scale bar uses, in ``(0, 1]``.
    """

    bar_width: float = 3.0
    gap: float = 1.0
    radius: float = 1.5
    height_scale: float = 0.9

    def __post_init__(self) -> None:
        if self.bar_width <= 0:
            raise ValueError(f"bar_width must be positive, got {self.bar_width}")
        if self.gap < 0:
            raise ValueError(f"gap must be >= 0, got {self.gap}")
        if self.radius < 0:
            raise ValueError(f"radius must be >= 0, got {self.radius}")
        if not 0 < self.height_scale <= 1:
            raise ValueError(f"height_scale must be in (0, 1], got {self.height_scale}")

    @property
    def pitch(self) -> float:
        return self.bar_width + self.gap


@dataclass(frozen=True)
class CanvasState:
    logical_width: float
    logical_height: float
    device_pixel_ratio: float = 1.0

    @property
    def pixel_width(self) -> int:
        return round(self.logical_width * self.device_pixel_ratio)

    @property
    def pixel_height(self) -> int:
        return round(self.logical_height * self.device_pixel_ratio)


@dataclass(frozen=True)
class Bar:
    x: float
    y: float
    width: float
    height: float
    radius: float


def slot_count(width: float, pitch: float) -> int:
    """Number of whole bar slots that fit in *width*."""
    if width <= 0 or pitch <= 0:
        return 0
    # tolerate float noise such as 0.3 / 0.1 == 2.9999999999999996
    return int(math.floor(width / pitch + 1e-9))


def resample_nearest(values: Sequence[float], slots: int) -> list[float]:
    """Pick ``values[floor(i * len / slots)]`` for each of *slots* slots.

    Integer arithmetic keeps every index inside ``[0, len)``.
    """
    n = len(values)
    if slots <= 0 or n == 0:
        return []
    return [values[(i * n) // slots] for i in range(slots)]


def layout_bars(values: Sequence[float], geometry: BarGeometry, height: float,
                min_bar_height: float = MIN_BAR_HEIGHT) -> list[Bar]:
    """Vertically centred bars, one per value, left to right."""
    bars = []
    pitch = geometry.pitch
    for i, value in enumerate(values):
        bar_height = max(min_bar_height, value * height * geometry.height_scale)
        bars.append(Bar(
            x=i * pitch,
            y=(height - bar_height) / 2,
            width=geometry.bar_width,
            height=bar_height,
            radius=geometry.radius,
        ))
    return bars


def idle_bars(width: float, height: float, geometry: BarGeometry,
              min_bar_height: float = MIN_BAR_HEIGHT) -> list[Bar]:
    """Uniform minimal bars across *width*; the last bar needs no trailing gap."""
    count = slot_count(width + geometry.gap, geometry.pitch)
    return layout_bars([0.0] * count, geometry, height, min_bar_height)


class BarRenderer:
    """Renders one dataset per :meth:`draw` call onto *surface*."""

    def __init__(
        self,
        surface: Surface,
        geometry: Optional[BarGeometry] = None,
        *,
        grow_width: bool = False,
        show_idle: bool = True,
        fit_to_width: bool = False,
        bar_color: Optional[str] = None,
        min_bar_height: float = MIN_BAR_HEIGHT,
    ) -> None:
        self.surface = surface
        self.geometry = geometry or BarGeometry()
        self.grow_width = grow_width
        # fixed mode: also stretch short data across every slot
        self.fit_to_width = fit_to_width
        self.show_idle = show_idle
        self.bar_color = bar_color
        self.min_bar_height = min_bar_height
        self._max_width = 0.0
        self.canvas: Optional[CanvasState] = None
        self.last_bars: list[Bar] = []
        self.draw_count = 0

    @property
    def max_width(self) -> float:
        """Widest logical width used in the current growing-mode session."""
        return self._max_width

    def reset(self) -> None:
        """Start a new session: forget the growing-mode width floor."""
        self._max_width = 0.0

    def _plan(self, values: Sequence[float], container_width: float, height: float,
              state: RecorderState) -> tuple[float, list[Bar]]:
        geometry = self.geometry
        if not values:
            if self.grow_width:
                self.reset()
            if self.show_idle and not state.is_active:
                return container_width, idle_bars(container_width, height, geometry, self.min_bar_height)
            return container_width, []

        if self.grow_width:
            width = max(len(values) * geometry.pitch, container_width, self._max_width)
            self._max_width = width
            return width, layout_bars(values, geometry, height, self.min_bar_height)

        width = container_width
        slots = slot_count(width, geometry.pitch)
        if len(values) > slots or (self.fit_to_width and len(values) != slots):
            values = resample_nearest(values, slots)
        return width, layout_bars(values, geometry, height, self.min_bar_height)

    def draw(self, values: Optional[Sequence[float]], container: Container, *,
             state: RecorderState = RecorderState.STOPPED) -> CanvasState:
        """Lay out and paint *values*; returns the canvas that was drawn."""
        values = list(values) if values is not None else []
        dpr = container.device_pixel_ratio or 1.0
        height = float(container.client_height)
        width, bars = self._plan(values, float(container.client_width), height, state)

        canvas = CanvasState(logical_width=width, logical_height=height, device_pixel_ratio=dpr)
        surface = self.surface
        surface.resize(canvas.pixel_width, canvas.pixel_height)
        surface.scale(dpr)
        surface.clear_rect(0, 0, width, height)
        for bar in bars:
            surface.fill_rounded_rect(bar.x, bar.y, bar.width, bar.height, bar.radius, self.bar_color)

        self.canvas = canvas
        self.last_bars = bars
        self.draw_count += 1
        logger.trace("Drew {} bars on {}x{} canvas (dpr={})", len(bars), width, height, dpr)
        return canvas
