"""Frame-driven drawing cadence for the live views.

=========  =========================================
state      per-frame behaviour
=========  =========================================
IDLE       draw once after a change
RECORDING  redraw every frame
PAUSED     frozen: keep ticking, never redraw or clear
STOPPED    draw once after a change
=========  =========================================
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Optional

from loguru import logger

from src.engine.capture import RecorderState
from src.engine.errors import SessionUnavailable
from src.engine.tick_source import TickHandle, TickSource


class RenderLoop:
    def __init__(
        self,
        frames: TickSource,
        draw: Callable[[], None],
        state: Callable[[], RecorderState],
    ) -> None:
        self.frames = frames
        self._draw = draw
        self._state = state
        self._handle: Optional[TickHandle] = None
        self._dirty = True
        self._last_state: Optional[RecorderState] = None
        self.frame_count = 0

    @property
    def running(self) -> bool:
        return self._handle is not None

    def start(self) -> None:
        if self._handle is not None:
            return
        self._dirty = True
        self._handle = self.frames.on_tick(self.on_frame)

    def stop(self) -> None:
        if self._handle is None:
            return
        self._handle.cancel()
        self._handle = None

    def invalidate(self) -> None:
        """Request one redraw outside of RECORDING (data or size changed)."""
        self._dirty = True

    def on_frame(self) -> None:
        self.frame_count += 1
        state = self._state()
        if state != self._last_state:
            # entering PAUSED keeps the last frame on screen
            if state != RecorderState.PAUSED:
                self._dirty = True
            self._last_state = state

        if state == RecorderState.RECORDING:
            self._render()
        elif self._dirty:
            self._render()

    def _render(self) -> None:
        self._dirty = False
        try:
            self._draw()
        except SessionUnavailable:
            logger.debug("Session torn down mid-frame; nothing to draw")
