"""Runtime gettext translations for the TOC labels."""

from __future__ import annotations

import gettext as _gettext
import os
from collections.abc import Iterable, Sequence
from gettext import GNUTranslations, NullTranslations, _expand_lang
from io import BytesIO
from pathlib import Path
from typing import Final

import polib

__all__ = ["_", "gettext", "ngettext", "install", "get_translation"]

DOMAIN = "convtoc"
LOCALE_DIR = Path(__file__).resolve().parent / "locale"

_TRANSLATION: NullTranslations = NullTranslations()


def get_translation() -> NullTranslations:
    """Return the currently active translation object."""
    return _TRANSLATION


def gettext(message: str) -> str:
    """Translate *message* using the active catalogue."""
    return _TRANSLATION.gettext(message)


def ngettext(singular: str, plural: str, number: int) -> str:
    """Translate pluralisable message based on *number*."""
    return _TRANSLATION.ngettext(singular, plural, number)


_: Final = gettext


def install(
    languages: Iterable[str] | None = None,
    *,
    domain: str = DOMAIN,
    localedir: str | os.PathLike[str] = LOCALE_DIR,
) -> NullTranslations:
    """Activate translations for *languages* (environment when ``None``).

    Compiled ``.mo`` catalogues are preferred; a plain ``.po`` file is
    compiled in memory when no ``.mo`` is shipped. Without any catalogue the
    labels stay untranslated.
    """
    localedir_path = Path(localedir)
    requested = _requested_languages(languages)
    if requested:
        translation = _gettext.translation(
            domain,
            localedir=str(localedir_path),
            languages=requested,
            fallback=True,
        )
    else:
        translation = NullTranslations()
    if type(translation) is NullTranslations:
        fallback = _load_po_translation(domain, localedir_path, requested)
        if fallback is not None:
            translation = fallback
    global _TRANSLATION
    _TRANSLATION = translation
    return translation


def _requested_languages(languages: Iterable[str] | None) -> list[str]:
    if languages is None:
        raw: list[str] = []
        for name in ("LANGUAGE", "LC_ALL", "LC_MESSAGES", "LANG"):
            value = os.environ.get(name)
            if value:
                raw.extend(token.strip() for token in value.split(":") if token.strip())
        languages = raw
    seen: set[str] = set()
    expanded: list[str] = []
    for language in languages:
        if not language:
            continue
        for candidate in _expand_lang(language):
            if candidate and candidate not in seen:
                seen.add(candidate)
                expanded.append(candidate)
    return expanded


def _load_po_translation(
    domain: str,
    localedir: Path,
    languages: Sequence[str],
) -> NullTranslations | None:
    for language in languages:
        po_path = localedir / language / "LC_MESSAGES" / f"{domain}.po"
        if not po_path.exists():
            continue
        try:
            catalog = polib.pofile(str(po_path))
        except (OSError, ValueError):
            continue
        return GNUTranslations(BytesIO(catalog.to_binary()))
    return None
