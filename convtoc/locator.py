"""Turn discovery over the two known transcript markup shapes."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from bs4 import Tag

from .document import HostDocument

logger = logging.getLogger(__name__)

ROLE_ATTRIBUTE = "data-message-author-role"
TURN_SELECTOR = '[data-testid="conversation-turn"]'
USER_SELECTOR = f'[{ROLE_ATTRIBUTE}="user"]'
ASSISTANT_SELECTOR = f'[{ROLE_ATTRIBUTE}="assistant"]'
ROLE_SELECTOR = f"{USER_SELECTOR}, {ASSISTANT_SELECTOR}"
FALLBACK_ROOT_SELECTOR = "article"


@dataclass(slots=True)
class Turn:
    """One user message optionally paired with the assistant reply.

    ``stable_id`` stays empty until :class:`~convtoc.identity.IdentityAssigner`
    binds an identifier to ``root``.
    """

    root: Tag
    user: Tag | None
    assistant: Tag | None
    ordinal: int
    stable_id: str = ""


class TurnStrategy(Protocol):
    """Markup-shape specific way of splitting the transcript into turns."""

    name: str

    def locate(self, document: HostDocument) -> list[Turn]:
        """Return turns found in *document*, oldest first."""


class ContainerTurnStrategy:
    """Turns wrapped in explicit ``conversation-turn`` containers."""

    name = "containers"

    def locate(self, document: HostDocument) -> list[Turn]:
        turns: list[Turn] = []
        for ordinal, root in enumerate(document.select(TURN_SELECTOR)):
            turns.append(
                Turn(
                    root=root,
                    user=document.select_one(USER_SELECTOR, root),
                    assistant=document.select_one(ASSISTANT_SELECTOR, root),
                    ordinal=ordinal,
                )
            )
        return turns


class RoleNodeTurnStrategy:
    """Flat sequence of role-tagged messages without turn containers.

    A user node opens a turn and an immediately following assistant node
    closes it. The turn root is the enclosing ``<article>``, else the
    parent element, else the user node itself. An ancestor that also holds
    another user message is shared by several turns and never becomes a
    root, so every turn keeps an element of its own for the stable id.
    """

    name = "role-nodes"

    def locate(self, document: HostDocument) -> list[Turn]:
        nodes = document.select(ROLE_SELECTOR)
        turns: list[Turn] = []
        index = 0
        while index < len(nodes):
            node = nodes[index]
            index += 1
            if document.get_attribute(node, ROLE_ATTRIBUTE) != "user":
                continue
            assistant: Tag | None = None
            if index < len(nodes):
                candidate = nodes[index]
                if document.get_attribute(candidate, ROLE_ATTRIBUTE) == "assistant":
                    assistant = candidate
                    index += 1
            root = self._own_root(document, node)
            turns.append(Turn(root=root, user=node, assistant=assistant, ordinal=len(turns)))
        return turns

    @staticmethod
    def _own_root(document: HostDocument, node: Tag) -> Tag:
        candidates = (
            document.closest(node, FALLBACK_ROOT_SELECTOR),
            document.parent_element(node),
        )
        for candidate in candidates:
            if candidate is None:
                continue
            if all(other is node for other in document.select(USER_SELECTOR, candidate)):
                return candidate
        return node


class TurnLocator:
    """Single query surface the rest of the TOC uses to read the transcript."""

    def __init__(self, strategies: tuple[TurnStrategy, ...] | None = None) -> None:
        """Use *strategies* in priority order; the first non-empty result wins."""
        self._strategies = strategies or (ContainerTurnStrategy(), RoleNodeTurnStrategy())

    def locate(self, document: HostDocument | None) -> list[Turn]:
        """Return the ordered turns of *document*; never raises for odd markup."""
        if document is None:
            return []
        for strategy in self._strategies:
            turns = strategy.locate(document)
            if turns:
                logger.debug("located %d turns via %s", len(turns), strategy.name)
                return turns
        return []

    def last_turn(self, document: HostDocument | None) -> Turn | None:
        turns = self.locate(document)
        return turns[-1] if turns else None

    @staticmethod
    def count_user_messages(document: HostDocument | None) -> int:
        """Return the number of user-authored messages; the cheap change check."""
        if document is None:
            return 0
        return document.count(USER_SELECTOR)

    @staticmethod
    def turn_container(document: HostDocument, node: Tag | None) -> Tag | None:
        return document.closest(node, TURN_SELECTOR)

    @staticmethod
    def assistant_in(document: HostDocument, scope: Tag | None) -> Tag | None:
        if scope is None:
            return None
        if document.matches(scope, ASSISTANT_SELECTOR):
            return scope
        return document.select_one(ASSISTANT_SELECTOR, scope)

    @staticmethod
    def introduces_turn(document: HostDocument, node: object) -> bool:
        """Return ``True`` if added *node* is or contains a turn or user message."""
        if not isinstance(node, Tag):
            return False
        selector = f"{TURN_SELECTOR}, {USER_SELECTOR}"
        return document.matches(node, selector) or document.select_one(selector, node) is not None

    @staticmethod
    def introduces_reply(document: HostDocument, node: object) -> bool:
        if not isinstance(node, Tag):
            return False
        return (
            document.matches(node, ASSISTANT_SELECTOR)
            or document.select_one(ASSISTANT_SELECTOR, node) is not None
        )


__all__ = [
    "ASSISTANT_SELECTOR",
    "ContainerTurnStrategy",
    "ROLE_ATTRIBUTE",
    "RoleNodeTurnStrategy",
    "TURN_SELECTOR",
    "Turn",
    "TurnLocator",
    "TurnStrategy",
    "USER_SELECTOR",
]
