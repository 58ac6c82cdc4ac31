"""
wavebars — Waveform Rendering Service
======================================
Headless "decode, then draw" pipeline: encoded audio bytes in, PNG bytes out.

Steps:
1. Validate the :class:`RenderRequest` (pydantic).
2. Decode peaks off the event loop (:class:`SignalDecoder`).
3. Draw bars in fixed-width mode on a :class:`PillowSurface`, plus the
   playhead when ``current_time`` is given.
4. Encode the surface as PNG.
"""

from __future__ import annotations

from typing import Optional

from loguru import logger

from app.schemas.waveform import RenderRequest
from src.engine.errors import DecodeFailure
from src.engine.surface import PillowSurface, Viewport
from src.engine.views import create_static_waveform
from src.engine.signal_decoder import SignalDecoder

# Shared so repeated renders of the same bytes object reuse the peaks
_decoder: Optional[SignalDecoder] = None


def _get_decoder() -> SignalDecoder:
    global _decoder
    if _decoder is None:
        _decoder = SignalDecoder()
    return _decoder


async def render_waveform_png(
    source: Optional[bytes],
    request: Optional[RenderRequest] = None,
) -> Optional[bytes]:
    """Render *source* as a static bar waveform.

    Args:
        source (bytes | None): Encoded audio. ``None`` renders nothing.
        request (RenderRequest): Canvas size, DPR, appearance, playhead.

    Returns:
        bytes | None: PNG image, or ``None`` when there is no source.

    Raises:
        DecodeFailure: If the audio cannot be decoded.
    """
    if source is None:
        return None
    request = request or RenderRequest()

    surface = PillowSurface(bar_color=request.appearance.bar_color)
    view = create_static_waveform(
        Viewport(request.width, request.height, request.device_pixel_ratio),
        geometry=request.appearance.to_geometry(),
        surface=surface,
        decoder=_get_decoder(),
        sample_count=request.sample_count,
        playhead_color=request.playhead.playhead_color,
        playhead_width=request.playhead.playhead_width,
    )

    try:
        peaks = await view.load(source)
    except DecodeFailure as exc:
        logger.error("Waveform render failed: {}", exc)
        raise

    canvas = view.render(request.current_time, request.duration)
    logger.success(
        "Rendered {} peaks → {}x{} px PNG",
        len(peaks or ()),
        canvas.pixel_width,
        canvas.pixel_height,
    )
    return surface.to_png()
