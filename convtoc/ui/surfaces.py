"""Adapters letting wx top-level windows act as floating TOC surfaces."""

from __future__ import annotations

import wx

from ..geometry import Rect, Size


def _client_area(window: wx.Window) -> wx.Rect:
    index = wx.Display.GetFromWindow(window)
    display = wx.Display(index if index != wx.NOT_FOUND else 0)
    return display.GetClientArea()


def display_viewport(window: wx.Window) -> Size:
    """Return the usable size of the display showing *window*."""
    area = _client_area(window)
    return Size(area.width, area.height)


class SurfaceMixin:
    """Implement ``FloatingSurface`` for a ``wx.TopLevelWindow`` subclass.

    Coordinates are relative to the client area of the window's display so
    they can be persisted and clamped like viewport coordinates.
    """

    def bounding_rect(self) -> Rect:
        area = _client_area(self)
        rect = self.GetScreenRect()
        return Rect(rect.x - area.x, rect.y - area.y, rect.width, rect.height)

    def move_to(self, left: float, top: float) -> None:
        area = _client_area(self)
        self.Move(wx.Point(int(round(area.x + left)), int(round(area.y + top))))

    def show(self) -> None:
        self.Show(True)
        self.Raise()

    def hide(self) -> None:
        self.Show(False)

    def is_shown(self) -> bool:
        return bool(self.IsShown())
