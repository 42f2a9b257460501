"""Stable identifiers bound to turn root elements."""

from __future__ import annotations

import logging

from bs4 import Tag

from .document import HostDocument
from .locator import Turn
from .settings import TocSettings
from .util.hashing import djb2_hash

logger = logging.getLogger(__name__)


class IdentityAssigner:
    """Give every turn an identifier that survives rebuilds.

    The identifier is stored as an attribute on the turn root. Once present
    it wins over any freshly computed value, so a turn keeps its id even
    when its title changes later (for example after an upload finishes).
    """

    def __init__(self, document: HostDocument, settings: TocSettings | None = None) -> None:
        self._document = document
        self._settings = settings or TocSettings()

    @property
    def attribute(self) -> str:
        return self._settings.id_attribute

    def compute(self, ordinal: int, title: str) -> str:
        """Return the content-derived identifier for a turn."""
        return f"{self._settings.id_prefix}{djb2_hash(f'{ordinal}:{title}')}"

    def assign(self, turn: Turn, title: str) -> str:
        """Bind an identifier to ``turn.root`` and return it."""
        document = self._document
        existing = document.get_attribute(turn.root, self.attribute)
        if existing:
            turn.stable_id = existing
            return existing
        stable_id = self.compute(turn.ordinal, title)
        document.set_attribute(turn.root, self.attribute, stable_id)
        if not document.get_attribute(turn.root, "id"):
            document.set_attribute(turn.root, "id", stable_id)
        logger.debug("assigned %s to turn %d", stable_id, turn.ordinal)
        turn.stable_id = stable_id
        return stable_id

    def resolve(self, stable_id: str) -> Tag | None:
        """Return the live element carrying *stable_id*, if any."""
        document = self._document
        return document.get_element_by_id(stable_id) or document.find_by_attribute(
            self.attribute, stable_id
        )


__all__ = ["IdentityAssigner"]
