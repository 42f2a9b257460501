"""Deferred-callback abstraction shared by the scheduler and the patcher.

Every suspension point of the TOC (debounce timers, idle callbacks, the
streaming quiet period) goes through a :class:`Scheduler`. Hosts plug in a
real event loop (see :class:`convtoc.ui.wx_scheduler.WxScheduler`); tests
and headless hosts drive a :class:`VirtualScheduler` by hand.
"""

from __future__ import annotations

import heapq
import itertools
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

Callback = Callable[[], None]


class TimerHandle(Protocol):
    """Cancellable reference to a scheduled callback."""

    @property
    def active(self) -> bool:
        """Return ``True`` while the callback is still due to run."""

    def cancel(self) -> None:
        """Prevent the callback from running; safe to call repeatedly."""


class Scheduler(Protocol):
    """Source of timer and idle callbacks on the UI thread."""

    @property
    def supports_idle(self) -> bool:
        """Return ``True`` when idle callbacks are available."""

    def now(self) -> float:
        """Return a monotonic timestamp in seconds."""

    def call_later(self, delay: float, callback: Callback) -> TimerHandle:
        """Run *callback* once after *delay* seconds."""

    def call_when_idle(self, callback: Callback, *, timeout: float) -> TimerHandle:
        """Run *callback* once when idle, or after *timeout* seconds at the latest."""


@dataclass(eq=False)
class VirtualTimer:
    """Timer entry of :class:`VirtualScheduler`."""

    due: float
    callback: Callback
    idle: bool = False
    cancelled: bool = False
    fired: bool = False
    sequence: int = field(default=0)

    @property
    def active(self) -> bool:
        return not (self.cancelled or self.fired)

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        if not self.active:
            return
        self.fired = True
        self.callback()


class VirtualScheduler:
    """Deterministic scheduler driven by :meth:`advance` and :meth:`run_idle`."""

    def __init__(self, *, supports_idle: bool = True, start: float = 0.0) -> None:
        self._now = start
        self._supports_idle = supports_idle
        self._queue: list[tuple[float, int, VirtualTimer]] = []
        self._counter = itertools.count()

    @property
    def supports_idle(self) -> bool:
        return self._supports_idle

    def now(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callback) -> VirtualTimer:
        return self._push(VirtualTimer(self._now + max(0.0, delay), callback))

    def call_when_idle(self, callback: Callback, *, timeout: float) -> VirtualTimer:
        return self._push(VirtualTimer(self._now + max(0.0, timeout), callback, idle=True))

    # ------------------------------------------------------------------
    @property
    def pending(self) -> int:
        """Return the number of callbacks still due."""
        return sum(1 for _, _, timer in self._queue if timer.active)

    def advance(self, seconds: float) -> int:
        """Move the clock forward, firing due callbacks in order; return how many ran."""
        target = self._now + max(0.0, seconds)
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, timer = heapq.heappop(self._queue)
            if not timer.active:
                continue
            self._now = max(self._now, due)
            timer.fire()
            fired += 1
        self._now = target
        return fired

    def run_idle(self) -> int:
        """Report the host as idle: fire every pending idle callback now."""
        idle_timers = [timer for _, _, timer in sorted(self._queue) if timer.idle and timer.active]
        for timer in idle_timers:
            timer.fire()
        self._queue = [entry for entry in self._queue if entry[2].active]
        heapq.heapify(self._queue)
        return len(idle_timers)

    def _push(self, timer: VirtualTimer) -> VirtualTimer:
        timer.sequence = next(self._counter)
        heapq.heappush(self._queue, (timer.due, timer.sequence, timer))
        return timer


__all__ = ["Callback", "Scheduler", "TimerHandle", "VirtualScheduler", "VirtualTimer"]
