"""Mutable host document wrapper with change notifications.

The conversation transcript is owned by the embedding host. convtoc only
reads it through :class:`HostDocument`, which wraps a BeautifulSoup tree
and exposes the few capabilities the TOC needs: CSS queries, attribute
access, geometry, scroll requests and subscriptions to structural
changes. Hosts mutate the tree through the same object so observers see
every change.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Literal

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PageElement

from .geometry import Rect

logger = logging.getLogger(__name__)

MutationKind = Literal["childList", "characterData", "attributes"]
GeometryProvider = Callable[[Tag], Rect | None]
Scroller = Callable[[Tag, bool], None]

_NUMBER = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(?:px)?\s*$")


@dataclass(frozen=True, slots=True)
class MutationRecord:
    """Single structural or textual change of the host tree.

    ``target`` is the element whose children, text or attributes changed.
    For text edits this is the parent element of the edited string.
    """

    kind: MutationKind
    target: Tag
    added: tuple[PageElement, ...] = ()
    removed: tuple[PageElement, ...] = ()
    attribute_name: str | None = None


MutationCallback = Callable[[Sequence[MutationRecord]], None]


@dataclass(eq=False, slots=True)
class Observation:
    """Handle of a change subscription; call :meth:`disconnect` to stop it."""

    document: "HostDocument"
    target: Tag
    callback: MutationCallback
    subtree: bool = True
    child_list: bool = True
    character_data: bool = False
    attributes: bool = False
    active: bool = True
    _pending: list[MutationRecord] = field(default_factory=list)

    def disconnect(self) -> None:
        """Stop delivering notifications to the callback."""
        if not self.active:
            return
        self.active = False
        self._pending.clear()
        self.document._forget(self)

    def wants(self, record: MutationRecord) -> bool:
        if record.kind == "childList" and not self.child_list:
            return False
        if record.kind == "characterData" and not self.character_data:
            return False
        if record.kind == "attributes" and not self.attributes:
            return False
        if record.target is self.target:
            return True
        return self.subtree and self.document.contains(self.target, record.target)


def attribute_geometry(node: Tag) -> Rect | None:
    """Return the size declared by ``width``/``height`` attributes if any."""
    width = _parse_dimension(node.get("width"))
    height = _parse_dimension(node.get("height"))
    if width is None or height is None:
        return None
    return Rect(0.0, 0.0, width, height)


def _parse_dimension(value: object) -> float | None:
    if not isinstance(value, str):
        return None
    match = _NUMBER.match(value)
    if match is None:
        return None
    return float(match.group(1))


def _log_scroll(node: Tag, smooth: bool) -> None:
    logger.debug("scroll requested for <%s id=%s> smooth=%s", node.name, node.get("id"), smooth)


class HostDocument:
    """Query and mutation surface over a BeautifulSoup tree."""

    def __init__(
        self,
        soup: BeautifulSoup | None = None,
        *,
        geometry: GeometryProvider | None = None,
        scroller: Scroller | None = None,
    ) -> None:
        """Wrap *soup* (an empty document when ``None``)."""
        self._soup = soup if soup is not None else BeautifulSoup("", "lxml")
        self._geometry = geometry or attribute_geometry
        self._scroller = scroller or _log_scroll
        self._observations: list[Observation] = []
        self._batch_depth = 0

    @classmethod
    def from_html(
        cls,
        html: str,
        *,
        parser: str = "lxml",
        geometry: GeometryProvider | None = None,
        scroller: Scroller | None = None,
    ) -> HostDocument:
        """Parse *html* and wrap the resulting tree."""
        return cls(BeautifulSoup(html or "", parser), geometry=geometry, scroller=scroller)

    @property
    def soup(self) -> BeautifulSoup:
        return self._soup

    @property
    def body(self) -> Tag:
        """Return ``<main>`` when present, else ``<body>``, else the root."""
        main = self._soup.find("main")
        if isinstance(main, Tag):
            return main
        body = self._soup.body
        return body if body is not None else self._soup

    # ------------------------------------------------------------------
    # queries
    def select(self, selector: str, scope: Tag | None = None) -> list[Tag]:
        """Return elements under *scope* (whole document by default) matching *selector*."""
        root = self._soup if scope is None else scope
        if not isinstance(root, Tag):
            return []
        return list(root.css.select(selector))

    def select_one(self, selector: str, scope: Tag | None = None) -> Tag | None:
        root = self._soup if scope is None else scope
        if not isinstance(root, Tag):
            return None
        return root.css.select_one(selector)

    def count(self, selector: str) -> int:
        return len(self._soup.css.select(selector))

    def matches(self, node: PageElement | None, selector: str) -> bool:
        return isinstance(node, Tag) and not self._is_root(node) and node.css.match(selector)

    def closest(self, node: PageElement | None, selector: str) -> Tag | None:
        """Return *node* or its nearest ancestor matching *selector*."""
        current = node if isinstance(node, Tag) else getattr(node, "parent", None)
        while isinstance(current, Tag) and not self._is_root(current):
            if current.css.match(selector):
                return current
            current = current.parent
        return None

    def parent_element(self, node: PageElement | None) -> Tag | None:
        """Return the parent element of *node*, ignoring the document root."""
        parent = getattr(node, "parent", None)
        if not isinstance(parent, Tag) or self._is_root(parent):
            return None
        return parent

    def contains(self, ancestor: PageElement | None, node: PageElement | None) -> bool:
        """Return ``True`` if *node* is *ancestor* or one of its descendants."""
        if ancestor is None or node is None:
            return False
        if node is ancestor:
            return True
        return any(parent is ancestor for parent in node.parents)

    def is_attached(self, node: PageElement | None) -> bool:
        return self.contains(self._soup, node)

    def get_element_by_id(self, element_id: str) -> Tag | None:
        if not element_id:
            return None
        found = self._soup.find(attrs={"id": element_id})
        return found if isinstance(found, Tag) else None

    def find_by_attribute(self, name: str, value: str) -> Tag | None:
        if not name or not value:
            return None
        found = self._soup.find(attrs={name: value})
        return found if isinstance(found, Tag) else None

    def text_content(self, node: PageElement | None) -> str:
        if node is None:
            return ""
        if isinstance(node, NavigableString):
            return str(node)
        return node.get_text()

    def iter_strings(self, node: Tag | None) -> Iterator[NavigableString]:
        """Yield text nodes below *node* in document order."""
        if node is None:
            return
        for descendant in node.descendants:
            if type(descendant) is NavigableString:
                yield descendant

    def get_attribute(self, node: PageElement | None, name: str) -> str:
        """Return attribute *name* of *node* as text (empty when missing)."""
        if not isinstance(node, Tag):
            return ""
        value = node.get(name)
        if value is None:
            return ""
        if isinstance(value, list):
            return " ".join(value)
        return str(value)

    def bounding_rect(self, node: Tag | None) -> Rect | None:
        if node is None:
            return None
        return self._geometry(node)

    def scroll_into_view(self, node: Tag, *, smooth: bool = True) -> None:
        self._scroller(node, smooth)

    # ------------------------------------------------------------------
    # mutations
    def set_attribute(self, node: Tag, name: str, value: str) -> None:
        node[name] = value
        self._record(MutationRecord("attributes", node, attribute_name=name))

    def append(self, parent: Tag, child: PageElement | str) -> list[PageElement]:
        """Append *child* (an element or an HTML fragment) to *parent*."""
        if isinstance(child, str):
            fragment = BeautifulSoup(child, "html.parser")
            nodes: list[PageElement] = list(fragment.contents)
        else:
            nodes = [child]
        for node in nodes:
            parent.append(node.extract())
        if nodes:
            self._record(MutationRecord("childList", parent, added=tuple(nodes)))
        return nodes

    def remove(self, node: PageElement) -> None:
        parent = node.parent
        node.extract()
        if isinstance(parent, Tag):
            self._record(MutationRecord("childList", parent, removed=(node,)))

    def set_text(self, node: Tag, text: str) -> None:
        """Replace all children of *node* with a single text node."""
        removed = tuple(node.contents)
        node.clear()
        added = NavigableString(text)
        node.append(added)
        self._record(MutationRecord("childList", node, added=(added,), removed=removed))

    def append_text(self, node: Tag, text: str) -> None:
        """Extend the trailing text of *node* with *text* (a streamed token)."""
        last = node.contents[-1] if node.contents else None
        if type(last) is NavigableString:
            last.replace_with(NavigableString(str(last) + text))
            self._record(MutationRecord("characterData", node))
            return
        added = NavigableString(text)
        node.append(added)
        self._record(MutationRecord("childList", node, added=(added,)))

    @contextmanager
    def batch(self) -> Iterator[None]:
        """Deliver all changes made inside the block as one notification per observer."""
        self._batch_depth += 1
        try:
            yield
        finally:
            self._batch_depth -= 1
            if self._batch_depth == 0:
                self._flush()

    # ------------------------------------------------------------------
    # subscriptions
    def observe(
        self,
        target: Tag,
        callback: MutationCallback,
        *,
        subtree: bool = True,
        child_list: bool = True,
        character_data: bool = False,
        attributes: bool = False,
    ) -> Observation:
        """Subscribe *callback* to changes of *target* (and its subtree)."""
        observation = Observation(
            self,
            target,
            callback,
            subtree=subtree,
            child_list=child_list,
            character_data=character_data,
            attributes=attributes,
        )
        self._observations.append(observation)
        return observation

    @property
    def observer_count(self) -> int:
        return len(self._observations)

    def _forget(self, observation: Observation) -> None:
        self._observations = [obs for obs in self._observations if obs is not observation]

    def _record(self, record: MutationRecord) -> None:
        for observation in list(self._observations):
            if observation.active and observation.wants(record):
                observation._pending.append(record)
        if self._batch_depth == 0:
            self._flush()

    def _flush(self) -> None:
        for observation in list(self._observations):
            if not observation.active or not observation._pending:
                continue
            records = tuple(observation._pending)
            observation._pending.clear()
            observation.callback(records)

    def _is_root(self, node: Tag) -> bool:
        return node is self._soup


__all__ = [
    "HostDocument",
    "MutationRecord",
    "Observation",
    "attribute_geometry",
]
