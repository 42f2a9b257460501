"""Mutable state shared by the synchronisation components."""

from __future__ import annotations

from dataclasses import dataclass

from bs4 import Tag

from .document import Observation
from .scheduling import TimerHandle


@dataclass(slots=True)
class SyncSession:
    """What the TOC remembers between rebuilds.

    Owned by :class:`~convtoc.sync.SynchronizationEngine`; the change
    scheduler and the streaming patcher read and update it. Everything is
    touched from the UI thread only.
    """

    last_built_user_count: int = -1
    last_rendered_target_id: str | None = None
    watched_assistant: Tag | None = None
    watched_target_id: str | None = None
    watch: Observation | None = None
    idle_timer: TimerHandle | None = None
    rebuild_count: int = 0
    patch_count: int = 0

    def stop_watch(self) -> None:
        """Disconnect the streaming subscription and its pending timer."""
        if self.idle_timer is not None:
            self.idle_timer.cancel()
            self.idle_timer = None
        if self.watch is not None:
            self.watch.disconnect()
            self.watch = None
        self.watched_assistant = None
        self.watched_target_id = None

    def reset(self) -> None:
        """Forget everything, as on a full teardown."""
        self.stop_watch()
        self.last_built_user_count = -1
        self.last_rendered_target_id = None
        self.rebuild_count = 0
        self.patch_count = 0


__all__ = ["SyncSession"]
