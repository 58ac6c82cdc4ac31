"""Playback time ↔ horizontal pixel mapping, playhead drawing and seeking."""

from __future__ import annotations

from collections.abc import Callable
from typing import Optional

from loguru import logger

from src.engine.bar_renderer import CanvasState
from src.engine.surface import Surface

DEFAULT_PLAYHEAD_COLOR = "#ef4444"
DEFAULT_PLAYHEAD_WIDTH = 2.0


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def time_to_x(t: float, duration: float, logical_width: float) -> float:
    """Position of time *t* on a canvas *logical_width* px wide."""
    if duration <= 0 or logical_width <= 0:
        return 0.0
    return _clamp(t, 0.0, duration) / duration * logical_width


def x_to_time(x: float, duration: float, logical_width: float) -> float:
    """Inverse of :func:`time_to_x`."""
    if duration <= 0 or logical_width <= 0:
        return 0.0
    return _clamp(x, 0.0, logical_width) / logical_width * duration


class PlayheadSeekMapper:
    """Draws the playhead and turns clicks into seek times.

    Never touches playback itself: the computed time goes to *on_seek* and
    the caller decides what to do with it.
    """

    def __init__(
        self,
        on_seek: Optional[Callable[[float], None]] = None,
        *,
        color: str = DEFAULT_PLAYHEAD_COLOR,
        width: float = DEFAULT_PLAYHEAD_WIDTH,
    ) -> None:
        self.on_seek = on_seek
        self.color = color
        self.width = width

    def draw(self, surface: Surface, current_time: Optional[float],
             duration: Optional[float], canvas: CanvasState) -> Optional[float]:
        """Draw a vertical line at *current_time*; returns its x or ``None``."""
        if current_time is None or not duration or duration <= 0:
            return None
        x = time_to_x(current_time, duration, canvas.logical_width)
        surface.draw_line(x, 0.0, x, canvas.logical_height, self.width, self.color)
        return x

    def seek(self, x: float, duration: Optional[float], canvas: CanvasState) -> Optional[float]:
        """Map a click at *x* to a time and report it through *on_seek*."""
        if not duration or duration <= 0:
            return None
        t = x_to_time(x, duration, canvas.logical_width)
        logger.debug("Seek click x={:.1f}px → t={:.3f}s", x, t)
        if self.on_seek is not None:
            self.on_seek(t)
        return t
