"""Scheduler backed by the wx event loop."""

from __future__ import annotations

import time
from collections.abc import Callable

import wx

Callback = Callable[[], None]


def _milliseconds(seconds: float) -> int:
    return max(1, int(round(seconds * 1000)))


class _WxTimer:
    """One-shot ``wx.CallLater`` wrapper exposing the ``TimerHandle`` protocol."""

    def __init__(self, delay: float, callback: Callback) -> None:
        self._callback = callback
        self._done = False
        self._call = wx.CallLater(_milliseconds(delay), self._fire)

    @property
    def active(self) -> bool:
        return not self._done

    def cancel(self) -> None:
        if self._done:
            return
        self._done = True
        if self._call.IsRunning():
            self._call.Stop()

    def _fire(self) -> None:
        if self._done:
            return
        self._done = True
        self._callback()


class _IdleCall:
    """Callback run on the next idle event or when its timeout expires."""

    def __init__(self, callback: Callback, timeout: float) -> None:
        self._callback = callback
        self._done = False
        self._timeout = wx.CallLater(_milliseconds(timeout), self.fire)

    @property
    def active(self) -> bool:
        return not self._done

    def cancel(self) -> None:
        if self._done:
            return
        self._done = True
        if self._timeout.IsRunning():
            self._timeout.Stop()

    def fire(self) -> None:
        if self._done:
            return
        self.cancel()
        self._callback()


class WxScheduler:
    """Timer and idle callbacks delivered on the wx main thread."""

    def __init__(self, owner: wx.EvtHandler) -> None:
        self._owner = owner
        self._idle_calls: list[_IdleCall] = []
        owner.Bind(wx.EVT_IDLE, self._on_idle)

    @property
    def supports_idle(self) -> bool:
        return True

    def now(self) -> float:
        return time.monotonic()

    def call_later(self, delay: float, callback: Callback) -> _WxTimer:
        return _WxTimer(delay, callback)

    def call_when_idle(self, callback: Callback, *, timeout: float) -> _IdleCall:
        call = _IdleCall(callback, timeout)
        self._idle_calls.append(call)
        wx.WakeUpIdle()
        return call

    def close(self) -> None:
        """Cancel pending idle callbacks and stop listening for idle events."""
        for call in self._idle_calls:
            call.cancel()
        self._idle_calls.clear()
        self._owner.Unbind(wx.EVT_IDLE, handler=self._on_idle)

    def _on_idle(self, event: wx.IdleEvent) -> None:
        event.Skip()
        calls, self._idle_calls = self._idle_calls, []
        for call in calls:
            call.fire()
