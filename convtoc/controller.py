"""Composition of the TOC components behind the panel and launcher."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Protocol

from .change_scheduler import ChangeScheduler
from .document import HostDocument
from .drag import DragController, DragTarget, place_within
from .events import Signal
from .geometry import Size
from .i18n import _
from .scheduling import Scheduler
from .settings import TocSettings
from .state_store import KeyValueStore, MemoryKeyValueStore, UIState, UIStateStore
from .sync import SynchronizationEngine
from .toc_list import TocItem, TocListModel

logger = logging.getLogger(__name__)


class FloatingSurface(DragTarget, Protocol):
    """On-screen widget the controller can move, show and hide."""

    def show(self) -> None:
        """Make the surface visible."""

    def hide(self) -> None:
        """Hide the surface."""

    def is_shown(self) -> bool:
        """Return ``True`` while visible."""


class TocController:
    """Wire the transcript, the TOC model and the two floating surfaces.

    The panel and its minimized launcher are two faces of one widget: they
    share a single persisted position and exactly one of them is shown.
    """

    def __init__(
        self,
        document: HostDocument,
        *,
        panel: FloatingSurface,
        launcher: FloatingSurface,
        scheduler: Scheduler,
        viewport: Callable[[], Size],
        store: KeyValueStore | None = None,
        settings: TocSettings | None = None,
        toc_list: TocListModel | None = None,
    ) -> None:
        self.settings = settings or TocSettings()
        self.panel = panel
        self.launcher = launcher
        self._viewport = viewport
        self.state_store = UIStateStore(store or MemoryKeyValueStore(), self.settings.state_key)
        self.engine = SynchronizationEngine(
            document, scheduler, toc_list=toc_list, settings=self.settings
        )
        self.change_scheduler = ChangeScheduler(self.engine, scheduler, self.settings)
        drag_options = dict(
            viewport=viewport,
            scheduler=scheduler,
            threshold=self.settings.drag_threshold,
            margin=self.settings.viewport_margin,
            cooldown=self.settings.drag_cooldown_seconds,
        )
        self.panel_drag = DragController(panel, on_drag_end=self._on_panel_dragged, **drag_options)
        self.launcher_drag = DragController(
            launcher, on_drag_end=self._on_launcher_dragged, **drag_options
        )
        self.minimized = False
        self.list_shown = True
        self.list_visibility_changed: Signal[bool] = Signal()
        self.minimized_changed: Signal[bool] = Signal()

    @property
    def toc_list(self) -> TocListModel:
        return self.engine.toc_list

    @property
    def toggle_label(self) -> str:
        return _("Hide") if self.list_shown else _("Show")

    # ------------------------------------------------------------------
    def start(self) -> None:
        """Restore the saved UI state and begin following the transcript."""
        self.apply_saved_ui_state()
        self.change_scheduler.start()

    def shutdown(self) -> None:
        self.change_scheduler.stop()
        self.engine.teardown()

    def refresh(self) -> bool:
        """Force a full rebuild of the list."""
        return self.engine.rebuild(force=True)

    def search(self, keyword: str) -> list[TocItem]:
        return self.engine.apply_filter(keyword)

    def toggle_list(self) -> bool:
        """Hide or show the search box and item list; return the new visibility."""
        self.list_shown = not self.list_shown
        self.list_visibility_changed.emit(self.list_shown)
        return self.list_shown

    # ------------------------------------------------------------------
    def set_minimized(self, minimized: bool, *, skip_save: bool = False) -> None:
        """Swap panel and launcher, carrying the shared position across."""
        if minimized:
            source, destination = self.panel, self.launcher
        else:
            source, destination = self.launcher, self.panel
        self.save_position_from(source)
        self.apply_position_to(destination)
        destination.show()
        source.hide()
        self.minimized = bool(minimized)
        if not skip_save:
            self.state_store.save(minimized=self.minimized)
        self.minimized_changed.emit(self.minimized)

    def launcher_clicked(self) -> bool:
        """Restore the panel unless the click merely ended a launcher drag."""
        if self.launcher_drag.moved_recently:
            return False
        self.set_minimized(False)
        return True

    def apply_saved_ui_state(self) -> UIState:
        state = self.state_store.load()
        self.apply_position_to(self.panel, state)
        self.apply_position_to(self.launcher, state)
        if state.minimized:
            self.panel.hide()
            self.launcher.show()
        else:
            self.launcher.hide()
            self.panel.show()
        self.minimized = state.minimized
        return state

    def on_viewport_resized(self) -> None:
        """Keep both surfaces inside the viewport after it changed size."""
        state = self.state_store.load()
        if not state.has_position:
            return
        self.apply_position_to(self.panel, state)
        self.apply_position_to(self.launcher, state)

    # ------------------------------------------------------------------
    def save_position_from(self, surface: FloatingSurface) -> UIState:
        rect = surface.bounding_rect()
        return self.state_store.save(pos_left=rect.left, pos_top=rect.top)

    def apply_position_to(self, surface: FloatingSurface, state: UIState | None = None) -> bool:
        state = state or self.state_store.load()
        if not state.has_position:
            return False
        place_within(
            surface,
            state.pos_left,
            state.pos_top,
            self._viewport(),
            self.settings.viewport_margin,
        )
        return True

    def _on_panel_dragged(self, target: DragTarget) -> None:
        self.save_position_from(self.panel)
        self.apply_position_to(self.launcher)

    def _on_launcher_dragged(self, target: DragTarget) -> None:
        self.save_position_from(self.launcher)
        self.apply_position_to(self.panel)


__all__ = ["FloatingSurface", "TocController"]
