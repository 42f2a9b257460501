from __future__ import annotations

import json

import pytest

from convtoc.settings import TocSettings
from convtoc.state_store import MemoryKeyValueStore

pytestmark = pytest.mark.gui


def test_attach_builds_panel_and_hides_launcher(wx_app, transcript):
    from convtoc.main import attach_toc

    store = MemoryKeyValueStore()
    attachment = attach_toc(transcript, store=store, settings=TocSettings())
    try:
        assert attachment.panel.is_shown()
        assert not attachment.launcher.is_shown()
        assert attachment.controller.refresh()
        assert [row.title_label for row in attachment.panel.rows] == [
            "1. Set up CI",
            "2. Cache dependencies",
        ]
    finally:
        attachment.detach()
    assert transcript.observer_count == 0


def test_minimize_round_trip_persists_state(wx_app, transcript):
    from convtoc.main import attach_toc

    store = MemoryKeyValueStore()
    attachment = attach_toc(transcript, store=store)
    try:
        attachment.controller.set_minimized(True)
        assert attachment.launcher.is_shown()
        assert not attachment.panel.is_shown()
        saved = json.loads(store.get("convtoc_state_v2_sharedpos").value)
        assert saved["minimized"] is True
        assert {"posLeft", "posTop"} <= saved.keys()

        assert attachment.controller.launcher_clicked()
        assert attachment.panel.is_shown()
    finally:
        attachment.detach()


def test_toggle_list_updates_panel(wx_app, transcript):
    from convtoc.main import attach_toc

    attachment = attach_toc(transcript, store=MemoryKeyValueStore())
    try:
        attachment.controller.toggle_list()
        assert not attachment.panel.search.IsShown()
        assert attachment.panel.toggle_button.GetLabel() == "Show"
    finally:
        attachment.detach()


def test_launcher_surface_show_hide(wx_app):
    from convtoc.ui.launcher import LauncherFrame

    launcher = LauncherFrame(None)
    assert launcher.label.GetLabel() == "TOC"
    assert not launcher.is_shown()
    launcher.show()
    assert launcher.is_shown()
    launcher.hide()
    assert not launcher.is_shown()
    rect = launcher.bounding_rect()
    assert rect.width > 0 and rect.height > 0
    launcher.Destroy()


def test_panel_controls_reach_the_controller(wx_app, transcript):
    import wx

    from convtoc.main import attach_toc

    attachment = attach_toc(transcript, store=MemoryKeyValueStore())
    panel = attachment.panel
    try:
        for button in (panel.toggle_button, panel.minimize_button):
            event = wx.CommandEvent(wx.wxEVT_BUTTON, button.GetId())
            event.SetEventObject(button)
            button.GetEventHandler().ProcessEvent(event)
        assert not attachment.controller.list_shown
        assert attachment.controller.minimized
        assert attachment.launcher.is_shown()

        attachment.controller.refresh()
        panel.search.SetValue("cache")
        assert [row.title_label for row in panel.visible_rows()] == ["2. Cache dependencies"]
    finally:
        attachment.detach()
