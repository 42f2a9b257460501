"""Small badge shown instead of the panel while it is minimized."""

from __future__ import annotations

import wx

from ..i18n import _
from .panel import _floating_style
from .surfaces import SurfaceMixin

LAUNCHER_SIZE = wx.Size(54, 54)


class LauncherFrame(SurfaceMixin, wx.Frame):
    """Draggable "TOC" badge; a click restores the panel."""

    def __init__(self, parent: wx.Window | None) -> None:
        style = _floating_style(parent) & ~wx.RESIZE_BORDER
        super().__init__(parent, title=_("TOC"), size=LAUNCHER_SIZE, style=style)
        self.badge = wx.Panel(self)
        self.badge.SetToolTip(_("Show conversation TOC"))
        self.badge.SetCursor(wx.Cursor(wx.CURSOR_HAND))
        self.label = wx.StaticText(self.badge, label=_("TOC"), style=wx.ALIGN_CENTRE_HORIZONTAL)
        font = self.label.GetFont()
        font.SetWeight(wx.FONTWEIGHT_BOLD)
        self.label.SetFont(font)
        sizer = wx.BoxSizer(wx.VERTICAL)
        sizer.AddStretchSpacer()
        sizer.Add(self.label, 0, wx.ALIGN_CENTER)
        sizer.AddStretchSpacer()
        self.badge.SetSizer(sizer)
        self.SetClientSize(LAUNCHER_SIZE)


__all__ = ["LauncherFrame"]
