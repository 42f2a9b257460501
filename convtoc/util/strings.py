"""Text helpers used to build short TOC labels."""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import TypeVar

from ..i18n import _

__all__ = ["ELLIPSIS", "collapse_whitespace", "summarize", "unique"]

ELLIPSIS = "…"

_WHITESPACE_RUN = re.compile(r"\s+")

T = TypeVar("T")


def collapse_whitespace(text: str | None) -> str:
    """Collapse whitespace runs in *text* into single spaces and trim it."""
    return _WHITESPACE_RUN.sub(" ", text or "").strip()


def summarize(text: str | None, max_length: int = 48) -> str:
    """Return *text* normalised and capped to *max_length* characters.

    Truncated values receive a trailing ellipsis, so their total length is
    ``max_length + 1``. Blank input maps to the ``(empty)`` placeholder.
    """
    normalized = collapse_whitespace(text)
    if not normalized:
        return _("(empty)")
    if len(normalized) > max_length:
        return normalized[:max_length] + ELLIPSIS
    return normalized


def unique(values: Iterable[T | None]) -> list[T]:
    """Return truthy *values* deduplicated in first-seen order."""
    seen: set[T] = set()
    result: list[T] = []
    for value in values:
        if not value or value in seen:
            continue
        seen.add(value)
        result.append(value)
    return result
