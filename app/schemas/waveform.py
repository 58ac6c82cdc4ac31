"""
wavebars — Waveform Schemas
============================
Pydantic models for the user-facing configuration surface: bar appearance,
playhead appearance and headless render requests. They validate input and
convert into the engine's plain dataclasses.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, model_validator

from app.core.config import settings
from src.engine.bar_renderer import BarGeometry
from src.engine.playhead import DEFAULT_PLAYHEAD_COLOR, DEFAULT_PLAYHEAD_WIDTH
from src.engine.surface import DEFAULT_BAR_COLOR


class WaveformAppearance(BaseModel):
    """Bar styling for every waveform view."""

    bar_color: str = Field(default=DEFAULT_BAR_COLOR, description="Bar fill colour (CSS-style).")
    bar_width: float = Field(default=3.0, gt=0, description="Bar width in logical px.")
    bar_gap: float = Field(default=1.0, ge=0, description="Gap between bars in logical px.")
    bar_radius: float = Field(default=1.5, ge=0, description="Corner radius in logical px.")
    bar_height_scale: float = Field(
        default=0.9, gt=0.0, le=1.0,
        description="Fraction of the canvas height a full-scale bar may use.",
    )

    def to_geometry(self) -> BarGeometry:
        return BarGeometry(
            bar_width=self.bar_width,
            gap=self.bar_gap,
            radius=self.bar_radius,
            height_scale=self.bar_height_scale,
        )


class PlayheadAppearance(BaseModel):
    playhead_color: str = Field(default=DEFAULT_PLAYHEAD_COLOR)
    playhead_width: float = Field(default=DEFAULT_PLAYHEAD_WIDTH, gt=0)


class RenderRequest(BaseModel):
    """Parameters of a headless static-waveform render."""

    width: float = Field(default_factory=lambda: float(settings.DEFAULT_CANVAS_WIDTH), gt=0)
    height: float = Field(default_factory=lambda: float(settings.DEFAULT_CANVAS_HEIGHT), gt=0)
    device_pixel_ratio: float = Field(
        default_factory=lambda: settings.DEFAULT_DEVICE_PIXEL_RATIO, gt=0, le=8,
    )
    sample_count: Optional[int] = Field(
        default=None, gt=0,
        description="Peaks to compute; defaults to max(200, width / 4).",
    )
    current_time: Optional[float] = Field(default=None, ge=0)
    duration: Optional[float] = Field(default=None, gt=0)
    appearance: WaveformAppearance = Field(default_factory=WaveformAppearance)
    playhead: PlayheadAppearance = Field(default_factory=PlayheadAppearance)

    @model_validator(mode="after")
    def _playhead_needs_duration(self) -> "RenderRequest":
        if self.current_time is not None and self.duration is None:
            raise ValueError("current_time requires duration")
        return self
