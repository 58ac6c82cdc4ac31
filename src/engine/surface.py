"""
wavebars — Raster Surface
==========================
Drawing-surface protocol used by the renderer, plus a Pillow-backed
implementation for headless rendering (PNG export, tests, CLI).

The transform model follows an HTML canvas: :meth:`resize` discards the
bitmap *and* resets the transform, while :meth:`scale` multiplies into the
current transform. Calling ``scale`` twice without a ``resize`` in between
therefore accumulates.
"""

from __future__ import annotations

import io
from dataclasses import dataclass
from typing import Optional, Protocol

from PIL import Image, ImageColor, ImageDraw

DEFAULT_BAR_COLOR = "#3b82f6"
TRANSPARENT = (0, 0, 0, 0)


class Surface(Protocol):
    def resize(self, pixel_width: int, pixel_height: int) -> None: ...

    def scale(self, factor: float) -> None: ...

    def clear_rect(self, x: float, y: float, width: float, height: float) -> None: ...

    def fill_rounded_rect(self, x: float, y: float, width: float, height: float,
                          radius: float, color: Optional[str] = None) -> None: ...

    def draw_line(self, x0: float, y0: float, x1: float, y1: float,
                  width: float, color: str) -> None: ...


class Container(Protocol):
    """The element a canvas is laid out in."""

    @property
    def client_width(self) -> float: ...

    @property
    def client_height(self) -> float: ...

    @property
    def device_pixel_ratio(self) -> float: ...


@dataclass
class Viewport:
    """Plain mutable :class:`Container` for headless use."""

    client_width: float
    client_height: float
    device_pixel_ratio: float = 1.0


class PillowSurface:
    """RGBA bitmap surface drawn with ``PIL.ImageDraw``."""

    def __init__(self, bar_color: str = DEFAULT_BAR_COLOR,
                 background: tuple[int, int, int, int] = TRANSPARENT) -> None:
        self.bar_color = bar_color
        self.background = background
        self.image = Image.new("RGBA", (1, 1), background)
        self._draw = ImageDraw.Draw(self.image)
        self.transform_scale = 1.0

    @property
    def size(self) -> tuple[int, int]:
        return self.image.size

    def resize(self, pixel_width: int, pixel_height: int) -> None:
        self.image = Image.new(
            "RGBA", (max(1, int(pixel_width)), max(1, int(pixel_height))), self.background
        )
        self._draw = ImageDraw.Draw(self.image)
        self.transform_scale = 1.0

    def scale(self, factor: float) -> None:
        self.transform_scale *= factor

    def _box(self, x: float, y: float, width: float, height: float) -> tuple[float, float, float, float]:
        s = self.transform_scale
        x0, y0 = x * s, y * s
        # PIL boxes are inclusive of the end pixel
        x1 = max(x0, x0 + width * s - 1)
        y1 = max(y0, y0 + height * s - 1)
        return x0, y0, x1, y1

    def clear_rect(self, x: float, y: float, width: float, height: float) -> None:
        self._draw.rectangle(self._box(x, y, width, height), fill=self.background)

    def fill_rounded_rect(self, x: float, y: float, width: float, height: float,
                          radius: float, color: Optional[str] = None) -> None:
        fill = ImageColor.getrgb(color or self.bar_color)
        box = self._box(x, y, width, height)
        r = min(radius * self.transform_scale, (box[2] - box[0]) / 2, (box[3] - box[1]) / 2)
        if r >= 1:
            self._draw.rounded_rectangle(box, radius=r, fill=fill)
        else:
            self._draw.rectangle(box, fill=fill)

    def draw_line(self, x0: float, y0: float, x1: float, y1: float,
                  width: float, color: str) -> None:
        s = self.transform_scale
        self._draw.line(
            [(x0 * s, y0 * s), (x1 * s, y1 * s)],
            fill=ImageColor.getrgb(color),
            width=max(1, round(width * s)),
        )

    def to_png(self) -> bytes:
        buf = io.BytesIO()
        self.image.save(buf, format="PNG")
        return buf.getvalue()
