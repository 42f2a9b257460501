"""Attach the conversation TOC to a host document inside a wx application."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

import wx

from . import i18n
from .controller import TocController
from .document import HostDocument
from .log import emit_toc_debug
from .settings import TocSettings
from .state_store import JsonFileKeyValueStore, KeyValueStore
from .toc_list import TocListModel
from .ui.drag_binding import bind_drag
from .ui.launcher import LauncherFrame
from .ui.panel import ThumbnailLoader, TocPanel
from .ui.surfaces import display_viewport
from .ui.wx_scheduler import WxScheduler

logger = logging.getLogger(__name__)

DEFAULT_STATE_PATH = Path.home() / ".convtoc" / "state.json"


@dataclass(slots=True)
class TocAttachment:
    """Everything :func:`attach_toc` created; :meth:`detach` undoes it."""

    controller: TocController
    panel: TocPanel
    launcher: LauncherFrame
    scheduler: WxScheduler

    def detach(self) -> None:
        self.controller.shutdown()
        self.scheduler.close()
        for frame in (self.panel, self.launcher):
            if frame:
                frame.Destroy()


def attach_toc(
    document: HostDocument,
    *,
    parent: wx.Window | None = None,
    settings: TocSettings | None = None,
    store: KeyValueStore | None = None,
    thumbnail_loader: ThumbnailLoader | None = None,
    languages: Iterable[str] | None = None,
) -> TocAttachment:
    """Build the panel and launcher for *document* and start following it.

    A running ``wx.App`` is required. Without *store* the UI state lives in
    ``~/.convtoc/state.json``.
    """
    app = wx.GetApp()
    if app is None:
        raise RuntimeError("attach_toc() needs a running wx.App")
    if languages is not None:
        i18n.install(languages)
    settings = settings or TocSettings()
    store = store if store is not None else JsonFileKeyValueStore(DEFAULT_STATE_PATH)
    toc_list = TocListModel()
    scheduler = WxScheduler(app)
    # the callbacks only fire from wx events, after ``controller`` is bound below
    panel = TocPanel(
        parent,
        toc_list,
        on_refresh=lambda: controller.refresh(),
        on_minimize=lambda: controller.set_minimized(True),
        on_toggle_list=lambda: controller.toggle_list(),
        on_search=lambda keyword: controller.search(keyword),
        thumbnail_loader=thumbnail_loader,
    )
    launcher = LauncherFrame(parent)
    controller = TocController(
        document,
        panel=panel,
        launcher=launcher,
        scheduler=scheduler,
        viewport=lambda: display_viewport(panel),
        store=store,
        settings=settings,
        toc_list=toc_list,
    )
    controller.list_visibility_changed.connect(panel.set_list_shown)
    bind_drag(panel.header, controller.panel_drag)
    bind_drag(launcher.badge, controller.launcher_drag, on_click=controller.launcher_clicked)

    def _on_display_changed(event: wx.DisplayChangedEvent) -> None:
        event.Skip()
        controller.on_viewport_resized()

    panel.Bind(wx.EVT_DISPLAY_CHANGED, _on_display_changed)
    controller.start()
    emit_toc_debug(logger, "toc.attached", minimized=controller.minimized, max_items=settings.max_items)
    return TocAttachment(controller, panel, launcher, scheduler)


__all__ = ["TocAttachment", "attach_toc"]
