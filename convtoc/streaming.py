"""Incremental preview updates while the last reply is being streamed."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from .classifier import ContentClassifier
from .document import HostDocument, MutationRecord
from .locator import Turn
from .log import emit_toc_debug
from .scheduling import Scheduler
from .session import SyncSession
from .settings import TocSettings
from .toc_list import TocListModel

logger = logging.getLogger(__name__)


class StreamingPatcher:
    """Watch the newest assistant reply and patch only its TOC item.

    Token-by-token streaming produces bursts of tiny mutations. Each burst
    restarts a quiet-period timer; the summary is recomputed only once the
    reply has been quiet for ``assistant_idle_ms``. Nothing else in the list
    is touched and no rebuild is triggered.
    """

    def __init__(
        self,
        document: HostDocument,
        toc_list: TocListModel,
        classifier: ContentClassifier,
        scheduler: Scheduler,
        session: SyncSession,
        settings: TocSettings | None = None,
    ) -> None:
        self._document = document
        self._list = toc_list
        self._classifier = classifier
        self._scheduler = scheduler
        self._session = session
        self._settings = settings or TocSettings()

    @property
    def watching(self) -> bool:
        return self._session.watch is not None

    # ------------------------------------------------------------------
    def watch(self, turn: Turn | None) -> bool:
        """Make the assistant reply of *turn* the single watch target.

        Returns ``True`` when a new subscription was installed. Watching the
        same reply again is a no-op; a turn without a reply drops the
        previous subscription so it cannot patch the wrong item.
        """
        if not self._settings.show_assistant_preview:
            return False
        session = self._session
        assistant = turn.assistant if turn is not None else None
        if assistant is None:
            if session.watch is not None:
                emit_toc_debug(logger, "stream.watch.drop", target=session.watched_target_id)
                session.stop_watch()
            return False
        if assistant is session.watched_assistant and session.watch is not None:
            return False

        session.stop_watch()
        session.watched_assistant = assistant
        session.watched_target_id = turn.stable_id or session.last_rendered_target_id
        session.watch = self._document.observe(
            assistant,
            self._on_mutations,
            subtree=True,
            child_list=True,
            character_data=True,
        )
        emit_toc_debug(logger, "stream.watch.install", target=session.watched_target_id)
        self.patch()
        return True

    def stop(self) -> None:
        self._session.stop_watch()

    # ------------------------------------------------------------------
    def _on_mutations(self, records: Sequence[MutationRecord]) -> None:
        session = self._session
        if session.idle_timer is not None:
            session.idle_timer.cancel()
        session.idle_timer = self._scheduler.call_later(
            self._settings.assistant_idle_seconds, self._on_quiet
        )

    def _on_quiet(self) -> None:
        self._session.idle_timer = None
        self.patch()

    def patch(self) -> bool:
        """Recompute the watched reply summary and update its item only."""
        session = self._session
        target_id = session.watched_target_id
        assistant = session.watched_assistant
        if not target_id or assistant is None:
            return False
        if self._list.item(target_id) is None:
            return False
        summary = self._classifier.assistant_summary(assistant)
        self._list.update_meta(target_id, summary)
        session.patch_count += 1
        emit_toc_debug(logger, "stream.patch", target=target_id, length=len(summary))
        return True


__all__ = ["StreamingPatcher"]
