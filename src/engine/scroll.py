"""Auto-scroll-to-end for growing waveforms, with manual-scroll override."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol

from src.engine.bar_renderer import CanvasState

END_THRESHOLD_PX = 10.0


class ScrollContainer(Protocol):
    scroll_offset: float

    @property
    def viewport_width(self) -> float: ...


@dataclass
class ScrollViewport:
    """Plain :class:`ScrollContainer` for headless use."""

    viewport_width: float
    scroll_offset: float = 0.0


class ScrollController:
    """Keeps a growing canvas right-aligned until the user scrolls away.

    The container is handed in by the caller; content width comes from the
    renderer's last :class:`CanvasState`.
    """

    def __init__(self, container: ScrollContainer, *, grow_width: bool = True,
                 threshold: float = END_THRESHOLD_PX) -> None:
        self.container = container
        self.grow_width = grow_width
        self.threshold = threshold
        self.auto_scroll_enabled = True
        self.content_width = 0.0

    def on_user_scroll(self, scroll_offset: Optional[float] = None) -> bool:
        """Handle a user scroll event; returns the new auto-scroll flag."""
        if scroll_offset is not None:
            self.container.scroll_offset = scroll_offset
        offset = self.container.scroll_offset
        self.auto_scroll_enabled = (
            offset + self.container.viewport_width >= self.content_width - self.threshold
        )
        return self.auto_scroll_enabled

    def after_draw(self, canvas: CanvasState) -> None:
        self.content_width = canvas.logical_width
        if self.grow_width and self.auto_scroll_enabled:
            self.scroll_to_end()

    def scroll_to_end(self) -> None:
        self.container.scroll_offset = max(0.0, self.content_width - self.container.viewport_width)

    def reset(self) -> None:
        self.auto_scroll_enabled = True
        self.content_width = 0.0
        self.container.scroll_offset = 0.0
