"""Tests for auto-scroll-to-end on growing canvases."""

from __future__ import annotations

import unittest

from src.engine.bar_renderer import CanvasState
from src.engine.scroll import ScrollController, ScrollViewport


def _canvas(width: float) -> CanvasState:
    return CanvasState(logical_width=width, logical_height=60)


class TestScrollController(unittest.TestCase):

    def setUp(self) -> None:
        self.viewport = ScrollViewport(viewport_width=300)
        self.scroll = ScrollController(self.viewport)

    def test_follows_growing_canvas(self) -> None:
        for width in (300, 400, 520):
            self.scroll.after_draw(_canvas(width))
            self.assertEqual(self.viewport.scroll_offset, width - 300)

    def test_narrow_content_keeps_zero_offset(self) -> None:
        self.scroll.after_draw(_canvas(120))
        self.assertEqual(self.viewport.scroll_offset, 0)

    def test_user_scroll_away_disables_auto_scroll(self) -> None:
        self.scroll.after_draw(_canvas(1000))
        self.assertFalse(self.scroll.on_user_scroll(200))
        self.scroll.after_draw(_canvas(1100))
        self.assertEqual(self.viewport.scroll_offset, 200)

    def test_scrolling_back_near_end_reenables(self) -> None:
        self.scroll.after_draw(_canvas(1000))
        self.scroll.on_user_scroll(100)
        # within the 10px threshold of the end
        self.assertTrue(self.scroll.on_user_scroll(692))
        self.scroll.after_draw(_canvas(1200))
        self.assertEqual(self.viewport.scroll_offset, 900)

    def test_scroll_reads_container_offset(self) -> None:
        self.scroll.after_draw(_canvas(800))
        self.viewport.scroll_offset = 0
        self.assertFalse(self.scroll.on_user_scroll())

    def test_fixed_mode_never_scrolls(self) -> None:
        scroll = ScrollController(self.viewport, grow_width=False)
        scroll.after_draw(_canvas(900))
        self.assertEqual(self.viewport.scroll_offset, 0)

    def test_explicit_scroll_to_end_and_reset(self) -> None:
        self.scroll.after_draw(_canvas(1000))
        self.scroll.on_user_scroll(0)
        self.scroll.scroll_to_end()
        self.assertEqual(self.viewport.scroll_offset, 700)
        self.scroll.reset()
        self.assertTrue(self.scroll.auto_scroll_enabled)
        self.assertEqual(self.viewport.scroll_offset, 0)


if __name__ == "__main__":
    unittest.main()
