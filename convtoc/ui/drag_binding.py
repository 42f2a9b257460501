"""Feed wx mouse events into a :class:`~convtoc.drag.DragController`."""

from __future__ import annotations

from collections.abc import Callable

import wx
import wx.adv

from ..drag import DragController, PointerEvent

_CONTROL_TYPES: tuple[type, ...] = (
    wx.Button,
    wx.TextCtrl,
    wx.SearchCtrl,
    wx.adv.HyperlinkCtrl,
)


def _is_control(window: object) -> bool:
    return isinstance(window, _CONTROL_TYPES)


def _pointer(*, on_control: bool = False) -> PointerEvent:
    position = wx.GetMousePosition()
    return PointerEvent(float(position.x), float(position.y), on_control=on_control)


def bind_drag(
    handle: wx.Window,
    controller: DragController,
    *,
    on_click: Callable[[], object] | None = None,
) -> None:
    """Make *handle* drag the controller's target.

    Screen coordinates are used so the pointer stays stable while the
    window underneath it moves. *on_click* runs after every release; the
    callback decides whether a preceding drag should cancel it.
    """

    def _on_left_down(event: wx.MouseEvent) -> None:
        event.Skip()
        if not controller.pointer_down(_pointer(on_control=_is_control(event.GetEventObject()))):
            return
        if not handle.HasCapture():
            handle.CaptureMouse()

    def _on_motion(event: wx.MouseEvent) -> None:
        event.Skip()
        if controller.pressed and event.LeftIsDown():
            controller.pointer_move(_pointer())

    def _release() -> bool:
        if handle.HasCapture():
            handle.ReleaseMouse()
        return controller.pointer_up()

    def _on_left_up(event: wx.MouseEvent) -> None:
        event.Skip()
        was_pressed = controller.pressed
        _release()
        if was_pressed and on_click is not None:
            wx.CallAfter(on_click)

    def _on_capture_lost(_event: wx.MouseCaptureLostEvent) -> None:
        controller.pointer_cancel()

    handle.Bind(wx.EVT_LEFT_DOWN, _on_left_down)
    handle.Bind(wx.EVT_MOTION, _on_motion)
    handle.Bind(wx.EVT_LEFT_UP, _on_left_up)
    handle.Bind(wx.EVT_MOUSE_CAPTURE_LOST, _on_capture_lost)
    for child in handle.GetChildren():
        if _is_control(child):
            continue
        child.Bind(wx.EVT_LEFT_DOWN, _on_left_down)
        child.Bind(wx.EVT_MOTION, _on_motion)
        child.Bind(wx.EVT_LEFT_UP, _on_left_up)
