"""Coalesce host-document change notifications into occasional syncs."""

from __future__ import annotations

import enum
import logging
from collections.abc import Sequence

from .document import MutationRecord, Observation
from .locator import TurnLocator
from .log import emit_toc_debug
from .scheduling import Scheduler, TimerHandle
from .settings import TocSettings
from .sync import SynchronizationEngine

logger = logging.getLogger(__name__)


class ChangeState(enum.Enum):
    """Lifecycle of the single deferred check."""

    IDLE = "idle"
    PENDING = "pending-check"
    CHECKING = "checking"


class ChangeScheduler:
    """Turn bursts of structural mutations into at most one pending check.

    Transitions::

        IDLE     --trigger-->  PENDING   (idle callback or debounce timer armed)
        PENDING  --trigger-->  PENDING   (dropped)
        PENDING  --timer---->  CHECKING  (count compared, engine maybe run)
        CHECKING --trigger-->  CHECKING  (remembered, re-armed afterwards)
        CHECKING --done----->  IDLE | PENDING
    """

    def __init__(
        self,
        engine: SynchronizationEngine,
        scheduler: Scheduler,
        settings: TocSettings | None = None,
    ) -> None:
        self._engine = engine
        self._scheduler = scheduler
        self._settings = settings or engine.settings
        self._state = ChangeState.IDLE
        self._handle: TimerHandle | None = None
        self._observation: Observation | None = None
        self._rerun = False
        self.last_observed_count: int | None = None
        self.checks_run = 0
        self.syncs_run = 0
        self.dropped = 0

    @property
    def state(self) -> ChangeState:
        return self._state

    # ------------------------------------------------------------------
    def start(self) -> None:
        """Subscribe to the transcript container and schedule the first check."""
        if self._observation is None:
            document = self._engine.document
            self._observation = document.observe(document.body, self.notify, subtree=True)
        self.trigger()

    def stop(self) -> None:
        if self._observation is not None:
            self._observation.disconnect()
            self._observation = None
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._rerun = False
        self._state = ChangeState.IDLE

    # ------------------------------------------------------------------
    def notify(self, records: Sequence[MutationRecord]) -> None:
        """Handle one notification batch from the host document."""
        document = self._engine.document
        reply_added = False
        for record in records:
            for node in record.added:
                if TurnLocator.introduces_turn(document, node):
                    self.trigger()
                    return
                if not reply_added and TurnLocator.introduces_reply(document, node):
                    reply_added = True
        if reply_added:
            self.trigger()

    def trigger(self) -> bool:
        """Arm the deferred check unless one is already pending."""
        if self._state is ChangeState.PENDING:
            self.dropped += 1
            return False
        if self._state is ChangeState.CHECKING:
            self._rerun = True
            return False
        self._state = ChangeState.PENDING
        settings = self._settings
        if self._scheduler.supports_idle:
            self._handle = self._scheduler.call_when_idle(
                self._run, timeout=settings.idle_timeout_seconds
            )
        else:
            self._handle = self._scheduler.call_later(settings.debounce_seconds, self._run)
        emit_toc_debug(logger, "scheduler.pending", idle=self._scheduler.supports_idle)
        return True

    def _run(self) -> None:
        self._handle = None
        self._state = ChangeState.CHECKING
        self.checks_run += 1
        try:
            count = self._engine.user_message_count()
            changed = count != self.last_observed_count
            emit_toc_debug(logger, "scheduler.check", user_count=count, changed=changed)
            if changed:
                self.last_observed_count = count
                self.syncs_run += 1
                self._engine.rebuild()
            else:
                self._engine.refresh_watch()
        finally:
            self._state = ChangeState.IDLE
            if self._rerun:
                self._rerun = False
                self.trigger()


__all__ = ["ChangeScheduler", "ChangeState"]
