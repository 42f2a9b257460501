"""Floating panel listing one row per conversation turn."""

from __future__ import annotations

import logging
from collections.abc import Callable

import wx

from ..i18n import _
from ..toc_list import TocItem, TocListModel
from .surfaces import SurfaceMixin

logger = logging.getLogger(__name__)

ThumbnailLoader = Callable[[str, wx.Size], "wx.Bitmap | None"]

THUMBNAIL_SIZE = wx.Size(28, 28)
PANEL_SIZE = wx.Size(300, 420)


def _is_window_usable(window: wx.Window | None) -> bool:
    """Return True when the wx window can be safely accessed."""
    if window is None:
        return False
    try:
        if not window:
            return False
    except RuntimeError:
        return False
    is_being_deleted = getattr(window, "IsBeingDeleted", None)
    if callable(is_being_deleted):
        try:
            if is_being_deleted():
                return False
        except RuntimeError:
            return False
    return True


def _placeholder_bitmap(size: wx.Size) -> wx.Bitmap:
    bitmap = wx.ArtProvider.GetBitmap(wx.ART_MISSING_IMAGE, wx.ART_OTHER, size)
    if bitmap.IsOk():
        return bitmap
    return wx.Bitmap(size.width, size.height)


def _floating_style(parent: wx.Window | None) -> int:
    style = wx.FRAME_TOOL_WINDOW | wx.FRAME_NO_TASKBAR | wx.BORDER_SIMPLE | wx.RESIZE_BORDER
    if parent is None:
        return style | wx.STAY_ON_TOP
    return style | wx.FRAME_FLOAT_ON_PARENT


class TocItemRow(wx.Panel):
    """Title, thumbnail strip and preview line of one :class:`TocItem`."""

    def __init__(
        self,
        parent: wx.Window,
        item: TocItem,
        *,
        on_activate: Callable[[str], None],
        thumbnail_loader: ThumbnailLoader | None = None,
    ) -> None:
        super().__init__(parent)
        self._on_activate = on_activate
        self._thumbnail_loader = thumbnail_loader
        self.target_id = item.target_id
        self.SetCursor(wx.Cursor(wx.CURSOR_HAND))

        sizer = wx.BoxSizer(wx.VERTICAL)
        self._title = wx.StaticText(self, label=item.title_row, style=wx.ST_ELLIPSIZE_END)
        font = self._title.GetFont()
        font.SetWeight(wx.FONTWEIGHT_BOLD)
        self._title.SetFont(font)
        sizer.Add(self._title, 0, wx.EXPAND | wx.LEFT | wx.RIGHT | wx.TOP, 4)

        self._thumbs = wx.BoxSizer(wx.HORIZONTAL)
        for url in item.thumbnails:
            bitmap = self._load_thumbnail(url)
            thumb = wx.StaticBitmap(self, bitmap=bitmap)
            thumb.SetToolTip(url)
            self._thumbs.Add(thumb, 0, wx.RIGHT, 4)
        if item.thumbnails:
            sizer.Add(self._thumbs, 0, wx.LEFT | wx.RIGHT | wx.TOP, 4)

        self._meta = wx.StaticText(self, label="", style=wx.ST_ELLIPSIZE_END)
        self._meta.SetForegroundColour(wx.SystemSettings.GetColour(wx.SYS_COLOUR_GRAYTEXT))
        sizer.Add(self._meta, 0, wx.EXPAND | wx.LEFT | wx.RIGHT, 4)
        sizer.AddSpacer(4)
        self.SetSizer(sizer)
        self.update(item)

        for window in (self, *self.GetChildren()):
            window.Bind(wx.EVT_LEFT_UP, self._on_click)

    @property
    def meta_label(self) -> str:
        return self._meta.GetLabel() if self._meta.IsShown() else ""

    @property
    def title_label(self) -> str:
        return self._title.GetLabel()

    def update(self, item: TocItem) -> None:
        """Refresh the preview line; rows without a preview hide it."""
        if item.meta is None:
            self._meta.Hide()
        else:
            self._meta.SetLabel(item.meta)
            self._meta.SetToolTip(item.meta)
            self._meta.Show()
        self.Layout()

    def _load_thumbnail(self, url: str) -> wx.Bitmap:
        if self._thumbnail_loader is not None:
            try:
                bitmap = self._thumbnail_loader(url, THUMBNAIL_SIZE)
            except Exception:  # pragma: no cover - loader supplied by the host
                logger.exception("failed to load thumbnail %s", url)
                bitmap = None
            if bitmap is not None and bitmap.IsOk():
                return bitmap
        return _placeholder_bitmap(THUMBNAIL_SIZE)

    def _on_click(self, event: wx.MouseEvent) -> None:
        event.Skip()
        self._on_activate(self.target_id)


class TocPanel(SurfaceMixin, wx.Frame):
    """Floating frame showing :class:`TocListModel` with its controls.

    The title label doubles as the drag handle. Buttons forward to the
    callbacks supplied by the caller so the frame holds no TOC logic.
    """

    def __init__(
        self,
        parent: wx.Window | None,
        toc_list: TocListModel,
        *,
        on_refresh: Callable[[], object],
        on_minimize: Callable[[], object],
        on_toggle_list: Callable[[], object],
        on_search: Callable[[str], object],
        thumbnail_loader: ThumbnailLoader | None = None,
    ) -> None:
        super().__init__(parent, title=_("Conversation TOC"), size=PANEL_SIZE, style=_floating_style(parent))
        self._toc_list = toc_list
        self._on_search = on_search
        self._thumbnail_loader = thumbnail_loader
        self._rows: dict[TocItem, TocItemRow] = {}

        root = wx.Panel(self)
        sizer = wx.BoxSizer(wx.VERTICAL)

        self.header = wx.Panel(root)
        header_sizer = wx.BoxSizer(wx.HORIZONTAL)
        self.title_label = wx.StaticText(self.header, label=_("Conversation TOC"))
        title_font = self.title_label.GetFont()
        title_font.SetWeight(wx.FONTWEIGHT_BOLD)
        self.title_label.SetFont(title_font)
        self.title_label.SetCursor(wx.Cursor(wx.CURSOR_SIZING))
        header_sizer.Add(self.title_label, 1, wx.ALIGN_CENTER_VERTICAL | wx.LEFT, 6)
        self.refresh_button = wx.Button(self.header, label=_("Refresh"), style=wx.BU_EXACTFIT)
        self.minimize_button = wx.Button(self.header, label=_("Min"), style=wx.BU_EXACTFIT)
        self.toggle_button = wx.Button(self.header, label=_("Hide"), style=wx.BU_EXACTFIT)
        for button in (self.refresh_button, self.minimize_button, self.toggle_button):
            header_sizer.Add(button, 0, wx.ALL, 2)
        self.header.SetSizer(header_sizer)
        sizer.Add(self.header, 0, wx.EXPAND)

        self.search = wx.SearchCtrl(root, style=wx.TE_PROCESS_ENTER)
        self.search.SetDescriptiveText(_("Search in TOC…"))
        self.search.ShowCancelButton(True)
        sizer.Add(self.search, 0, wx.EXPAND | wx.ALL, 4)

        self.list_window = wx.ScrolledWindow(root, style=wx.VSCROLL)
        self.list_window.SetScrollRate(0, 10)
        self._list_sizer = wx.BoxSizer(wx.VERTICAL)
        self.list_window.SetSizer(self._list_sizer)
        sizer.Add(self.list_window, 1, wx.EXPAND)

        root.SetSizer(sizer)
        self._root = root

        self.refresh_button.Bind(wx.EVT_BUTTON, lambda _event: on_refresh())
        self.minimize_button.Bind(wx.EVT_BUTTON, lambda _event: on_minimize())
        self.toggle_button.Bind(wx.EVT_BUTTON, lambda _event: on_toggle_list())
        self.search.Bind(wx.EVT_TEXT, self._on_search_text)
        self.search.Bind(wx.EVT_SEARCHCTRL_CANCEL_BTN, self._on_search_cancel)

        toc_list.reset_signal.connect(self._on_reset)
        toc_list.item_changed.connect(self._on_item_changed)
        toc_list.filter_changed.connect(self._on_filter_changed)
        self.Bind(wx.EVT_WINDOW_DESTROY, self._on_destroy)
        self._on_reset(toc_list)

    # ------------------------------------------------------------------
    @property
    def rows(self) -> list[TocItemRow]:
        return [self._rows[item] for item in self._toc_list.items if item in self._rows]

    def visible_rows(self) -> list[TocItemRow]:
        return [row for row in self.rows if row.IsShown()]

    def row(self, target_id: str) -> TocItemRow | None:
        item = self._toc_list.item(target_id)
        return self._rows.get(item) if item is not None else None

    def set_list_shown(self, shown: bool) -> None:
        """Show or hide the search box and the list below the header."""
        self.search.Show(shown)
        self.list_window.Show(shown)
        self.toggle_button.SetLabel(_("Hide") if shown else _("Show"))
        self._root.Layout()

    # ------------------------------------------------------------------
    def _on_reset(self, model: TocListModel) -> None:
        if not _is_window_usable(self.list_window):
            return
        self.list_window.Freeze()
        try:
            self._list_sizer.Clear(delete_windows=True)
            self._rows.clear()
            for item in model.items:
                row = TocItemRow(
                    self.list_window,
                    item,
                    on_activate=self._activate,
                    thumbnail_loader=self._thumbnail_loader,
                )
                row.Show(item.visible)
                self._rows[item] = row
                self._list_sizer.Add(row, 0, wx.EXPAND | wx.BOTTOM, 2)
            self.list_window.Layout()
            self.list_window.FitInside()
        finally:
            self.list_window.Thaw()

    def _on_item_changed(self, item: TocItem) -> None:
        row = self._rows.get(item)
        if not _is_window_usable(row):
            return
        row.update(item)
        if row.IsShown() != item.visible:
            row.Show(item.visible)
        self.list_window.Layout()
        self.list_window.FitInside()

    def _on_filter_changed(self, model: TocListModel) -> None:
        if not _is_window_usable(self.list_window):
            return
        self.list_window.Freeze()
        try:
            for item in model.items:
                row = self._rows.get(item)
                if row is not None:
                    row.Show(item.visible)
            self.list_window.Layout()
            self.list_window.FitInside()
        finally:
            self.list_window.Thaw()

    def _activate(self, target_id: str) -> None:
        self._toc_list.activate(target_id)

    def _on_search_text(self, event: wx.CommandEvent) -> None:
        event.Skip()
        self._on_search(self.search.GetValue())

    def _on_search_cancel(self, event: wx.CommandEvent) -> None:
        self.search.ChangeValue("")
        self._on_search("")

    def _on_destroy(self, event: wx.WindowDestroyEvent) -> None:
        if event.GetEventObject() is self:
            self._toc_list.reset_signal.disconnect(self._on_reset)
            self._toc_list.item_changed.disconnect(self._on_item_changed)
            self._toc_list.filter_changed.disconnect(self._on_filter_changed)
        event.Skip()


__all__ = ["TocItemRow", "TocPanel"]
