"""
wavebars — Tick Sources
========================
The live view runs two independent loops: an interval-driven sampling loop
and a frame-driven render loop. Both are driven through :class:`TickSource`
so that production code runs on asyncio timers while tests advance a
:class:`ManualClock` deterministically.

Usage::

    clock = AsyncioClock()
    handle = clock.interval(50).on_tick(sample)     # every 50 ms
    clock.timeout(50).on_tick(start_sampling)       # once, after 50 ms
    handle.cancel()                                 # safe to call twice
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Optional, Protocol

from loguru import logger

TickCallback = Callable[[], None]


class TickHandle:
    """Cancellation handle returned by :meth:`TickSource.on_tick`."""

    def __init__(self, on_cancel: Optional[Callable[[], None]] = None) -> None:
        self._on_cancel = on_cancel
        self.cancelled = False

    def cancel(self) -> None:
        if self.cancelled:
            return
        self.cancelled = True
        if self._on_cancel is not None:
            self._on_cancel()
            self._on_cancel = None


class TickSource(Protocol):
    """Anything that can call back periodically (or once)."""

    def on_tick(self, callback: TickCallback) -> TickHandle: ...


class Clock(Protocol):
    """Factory for interval and one-shot tick sources."""

    def interval(self, interval_ms: float) -> TickSource: ...

    def timeout(self, delay_ms: float) -> TickSource: ...


def _safe_call(callback: TickCallback) -> None:
    try:
        callback()
    except Exception as exc:
        # A failing tick must not kill the timer chain.
        logger.exception("Tick callback {} raised: {}", callback, exc)


# ── asyncio ──────────────────────────────────────────────────────────────


class AsyncioTickSource:
    """Tick source backed by ``loop.call_later``.

    Each registered callback gets its own timer chain; re-arming is
    scheduled from the fire time, not the callback end.
    """

    def __init__(self, interval_ms: float, *, once: bool = False,
                 loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        if interval_ms < 0:
            raise ValueError(f"interval_ms must be >= 0, got {interval_ms}")
        self.interval_ms = interval_ms
        self.once = once
        self._loop = loop

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def on_tick(self, callback: TickCallback) -> TickHandle:
        loop = self._get_loop()
        delay = self.interval_ms / 1000.0
        state: dict[str, Optional[asyncio.TimerHandle]] = {"timer": None}

        def fire() -> None:
            if handle.cancelled:
                return
            if not self.once:
                state["timer"] = loop.call_later(delay, fire)
            _safe_call(callback)

        def cancel() -> None:
            timer = state["timer"]
            if timer is not None:
                timer.cancel()
                state["timer"] = None

        handle = TickHandle(cancel)
        state["timer"] = loop.call_later(delay, fire)
        return handle


class AsyncioClock:
    """Clock producing :class:`AsyncioTickSource` instances."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop

    def interval(self, interval_ms: float) -> AsyncioTickSource:
        return AsyncioTickSource(interval_ms, loop=self._loop)

    def timeout(self, delay_ms: float) -> AsyncioTickSource:
        return AsyncioTickSource(delay_ms, once=True, loop=self._loop)

    def frames(self, frame_rate: float) -> AsyncioTickSource:
        return AsyncioTickSource(1000.0 / frame_rate, loop=self._loop)


# ── deterministic ────────────────────────────────────────────────────────


class _ManualTimer:
    __slots__ = ("due", "interval", "once", "callback", "handle", "seq")

    def __init__(self, due: float, interval: float, once: bool,
                 callback: TickCallback, handle: TickHandle, seq: int) -> None:
        self.due = due
        self.interval = interval
        self.once = once
        self.callback = callback
        self.handle = handle
        self.seq = seq


class ManualTickSource:
    def __init__(self, clock: ManualClock, interval_ms: float, once: bool) -> None:
        self._clock = clock
        self.interval_ms = interval_ms
        self.once = once

    def on_tick(self, callback: TickCallback) -> TickHandle:
        return self._clock._schedule(self.interval_ms, self.once, callback)


class ManualClock:
    """Fake clock for tests: nothing fires until :meth:`advance` is called.

    Timers fire in due-time order (registration order breaks ties), so an
    interval of 50 ms advanced by 500 ms fires exactly ten times.
    """

    def __init__(self) -> None:
        self.now_ms = 0.0
        self._timers: list[_ManualTimer] = []
        self._seq = 0

    def interval(self, interval_ms: float) -> ManualTickSource:
        return ManualTickSource(self, interval_ms, once=False)

    def timeout(self, delay_ms: float) -> ManualTickSource:
        return ManualTickSource(self, delay_ms, once=True)

    def frames(self, frame_rate: float) -> ManualTickSource:
        return ManualTickSource(self, 1000.0 / frame_rate, once=False)

    @property
    def pending(self) -> int:
        return sum(1 for t in self._timers if not t.handle.cancelled)

    def _schedule(self, interval_ms: float, once: bool, callback: TickCallback) -> TickHandle:
        if interval_ms <= 0 and not once:
            raise ValueError("ManualClock intervals must be positive")
        handle = TickHandle()
        self._seq += 1
        self._timers.append(
            _ManualTimer(self.now_ms + interval_ms, interval_ms, once, callback, handle, self._seq)
        )
        return handle

    def advance(self, ms: float) -> None:
        """Move time forward by *ms*, firing every timer that comes due."""
        target = self.now_ms + ms
        while True:
            self._timers = [t for t in self._timers if not t.handle.cancelled]
            due = [t for t in self._timers if t.due <= target + 1e-9]
            if not due:
                break
            timer = min(due, key=lambda t: (t.due, t.seq))
            self.now_ms = max(self.now_ms, timer.due)
            if timer.once:
                timer.handle.cancelled = True
            else:
                timer.due += timer.interval
            _safe_call(timer.callback)
        self.now_ms = target
