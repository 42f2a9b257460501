"""Rebuild the TOC list from the live transcript."""

from __future__ import annotations

import logging
import time

from .classifier import ContentClassifier
from .document import HostDocument
from .identity import IdentityAssigner
from .locator import TurnLocator
from .log import emit_toc_debug
from .scheduling import Scheduler
from .session import SyncSession
from .settings import TocSettings
from .streaming import StreamingPatcher
from .toc_list import TocItem, TocListModel, build_search_text

logger = logging.getLogger(__name__)


class SynchronizationEngine:
    """Keep :class:`TocListModel` an up-to-date projection of the turns.

    A rebuild recreates every item, which is expensive on long transcripts,
    so it only runs when forced or when the number of user messages moved
    since the previous rebuild. The newest reply is then handed to the
    :class:`StreamingPatcher`, which keeps its preview fresh in place.
    """

    def __init__(
        self,
        document: HostDocument,
        scheduler: Scheduler,
        *,
        toc_list: TocListModel | None = None,
        settings: TocSettings | None = None,
        session: SyncSession | None = None,
        locator: TurnLocator | None = None,
    ) -> None:
        self.document = document
        self.settings = settings or TocSettings()
        self.session = session or SyncSession()
        self.toc_list = toc_list or TocListModel()
        self.locator = locator or TurnLocator()
        self.classifier = ContentClassifier(document, self.settings)
        self.assigner = IdentityAssigner(document, self.settings)
        self.patcher = StreamingPatcher(
            document,
            self.toc_list,
            self.classifier,
            scheduler,
            self.session,
            self.settings,
        )
        self.toc_list.activated.connect(self.scroll_to)

    # ------------------------------------------------------------------
    def user_message_count(self) -> int:
        return self.locator.count_user_messages(self.document)

    def rebuild(self, *, force: bool = False) -> bool:
        """Re-render the visible window of turns; return ``True`` if it ran."""
        session = self.session
        user_count = self.user_message_count()
        if not force and user_count == session.last_built_user_count:
            return False
        session.last_built_user_count = user_count

        started = time.perf_counter()
        settings = self.settings
        all_turns = self.locator.locate(self.document)
        start = max(0, len(all_turns) - settings.max_items)
        turns = all_turns[start:]

        items: list[TocItem] = []
        session.last_rendered_target_id = None
        for turn in turns:
            record = self.classifier.describe_turn(turn)
            stable_id = self.assigner.assign(turn, record.title)
            summary = (
                self.classifier.assistant_summary(turn.assistant)
                if settings.show_assistant_preview
                else None
            )
            items.append(
                TocItem(
                    target_id=stable_id,
                    ordinal=turn.ordinal,
                    title=record.title,
                    thumbnails=list(record.thumbnails),
                    meta=summary,
                    search_text=build_search_text(record.title, summary),
                )
            )
            session.last_rendered_target_id = stable_id

        self.toc_list.reset(items)
        self.patcher.watch(turns[-1] if turns else None)
        session.rebuild_count += 1
        emit_toc_debug(
            logger,
            "sync.rebuild",
            forced=force,
            user_count=user_count,
            turns=len(all_turns),
            rendered=len(items),
            elapsed_ms=round((time.perf_counter() - started) * 1000, 3),
        )
        return True

    def refresh_watch(self) -> bool:
        """Point the streaming watch at the newest reply without rebuilding."""
        if not self.settings.show_assistant_preview:
            return False
        turn = self.locator.last_turn(self.document)
        if turn is None:
            return False
        turn.stable_id = self.document.get_attribute(turn.root, self.assigner.attribute)
        if not turn.stable_id or self.toc_list.item(turn.stable_id) is None:
            return False
        return self.patcher.watch(turn)

    def scroll_to(self, target_id: str) -> bool:
        """Scroll the transcript to the turn bound to *target_id*."""
        element = self.assigner.resolve(target_id)
        if element is None:
            logger.debug("turn %s is no longer in the document", target_id)
            return False
        self.document.scroll_into_view(element, smooth=True)
        return True

    def apply_filter(self, keyword: str | None) -> list[TocItem]:
        return self.toc_list.apply_filter(keyword)

    def teardown(self) -> None:
        """Drop the streaming watch, the rendered items and remembered counts."""
        self.session.reset()
        self.toc_list.clear()


__all__ = ["SynchronizationEngine"]
