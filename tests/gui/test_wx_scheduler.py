from __future__ import annotations

import pytest

pytestmark = pytest.mark.gui


def test_idle_callbacks_run_on_idle_event(wx_app):
    import wx

    from convtoc.ui.wx_scheduler import WxScheduler

    frame = wx.Frame(None)
    scheduler = WxScheduler(frame)
    calls: list[str] = []
    handle = scheduler.call_when_idle(lambda: calls.append("idle"), timeout=5.0)
    assert scheduler.supports_idle
    assert handle.active

    frame.GetEventHandler().ProcessEvent(wx.IdleEvent())
    frame.GetEventHandler().ProcessEvent(wx.IdleEvent())

    assert calls == ["idle"]
    assert not handle.active
    scheduler.close()
    frame.Destroy()


def test_cancelled_callbacks_never_run(wx_app):
    import wx

    from convtoc.ui.wx_scheduler import WxScheduler

    frame = wx.Frame(None)
    scheduler = WxScheduler(frame)
    calls: list[str] = []
    timer = scheduler.call_later(5.0, lambda: calls.append("timer"))
    idle = scheduler.call_when_idle(lambda: calls.append("idle"), timeout=5.0)
    timer.cancel()
    idle.cancel()
    timer.cancel()

    frame.GetEventHandler().ProcessEvent(wx.IdleEvent())

    assert calls == []
    assert not timer.active
    assert scheduler.now() >= 0
    scheduler.close()
    frame.Destroy()


def test_control_detection_for_drag_handles(wx_app):
    import wx

    from convtoc.ui.drag_binding import _is_control

    frame = wx.Frame(None)
    assert _is_control(wx.Button(frame, label="Min"))
    assert _is_control(wx.SearchCtrl(frame))
    assert not _is_control(wx.StaticText(frame, label="Conversation TOC"))
    frame.Destroy()
