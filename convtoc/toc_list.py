"""Headless projection of the turn list rendered by the TOC panel."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from .events import Signal


@dataclass(slots=True, eq=False)
class TocItem:
    """Rendered entry for one turn."""

    target_id: str
    ordinal: int
    title: str
    thumbnails: list[str] = field(default_factory=list)
    meta: str | None = None
    search_text: str = ""
    visible: bool = True

    @property
    def title_row(self) -> str:
        """Return the title prefixed with the 1-based transcript position."""
        return f"{self.ordinal + 1}. {self.title}"

    def haystack(self) -> str:
        return self.search_text or self.title_row.lower()


def build_search_text(title: str, summary: str | None) -> str:
    """Return the lower-cased text matched by the search box."""
    if summary is None:
        return title.lower()
    return f"{title} {summary}".lower()


class TocListModel:
    """Ordered TOC items plus the active search filter."""

    def __init__(self) -> None:
        self._items: list[TocItem] = []
        self._index: dict[str, TocItem] = {}
        self._keyword = ""
        self.reset_signal: Signal[TocListModel] = Signal()
        self.item_changed: Signal[TocItem] = Signal()
        self.filter_changed: Signal[TocListModel] = Signal()
        self.activated: Signal[str] = Signal()

    # ------------------------------------------------------------------
    @property
    def items(self) -> tuple[TocItem, ...]:
        return tuple(self._items)

    @property
    def keyword(self) -> str:
        return self._keyword

    def __len__(self) -> int:
        return len(self._items)

    def item(self, target_id: str | None) -> TocItem | None:
        """Return the newest item bound to *target_id*.

        Turns that ended up sharing an identifier resolve to the last one,
        which is the only item the streaming preview ever patches.
        """
        if not target_id:
            return None
        return self._index.get(target_id)

    def visible_items(self) -> list[TocItem]:
        return [item for item in self._items if item.visible]

    # ------------------------------------------------------------------
    def reset(self, items: Iterable[TocItem]) -> None:
        """Replace every item, then re-apply the current filter."""
        self._items = list(items)
        self._index = {}
        for item in self._items:
            self._index[item.target_id] = item
        self._filter_items(self._items)
        self.reset_signal.emit(self)

    def clear(self) -> None:
        self.reset(())

    def update_meta(self, target_id: str, summary: str) -> TocItem | None:
        """Patch the assistant summary of a single item in place."""
        item = self.item(target_id)
        if item is None:
            return None
        item.meta = summary
        item.search_text = build_search_text(item.title, summary)
        if self._keyword:
            item.visible = self._keyword in item.haystack()
        self.item_changed.emit(item)
        return item

    def apply_filter(self, keyword: str | None) -> list[TocItem]:
        """Show only items whose search text contains *keyword* (case-insensitive)."""
        self._keyword = (keyword or "").strip().lower()
        self._filter_items(self._items)
        self.filter_changed.emit(self)
        return self.visible_items()

    def activate(self, target_id: str) -> None:
        """Forward a click on the item bound to *target_id*."""
        if target_id in self._index:
            self.activated.emit(target_id)

    def _filter_items(self, items: Iterable[TocItem]) -> None:
        keyword = self._keyword
        for item in items:
            item.visible = not keyword or keyword in item.haystack()


__all__ = ["TocItem", "TocListModel", "build_search_text"]
