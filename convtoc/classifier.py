"""Heuristics that turn a user message subtree into a short TOC label.

User messages may carry plain text, uploaded files and images, and the
host markup for attachments changes often. Detection therefore combines
several weak signals:

* strong signal: a file name with a known extension in an element's text,
  ``download``, ``title`` or ``aria-label`` attribute;
* weak signal: links pointing at file storage, ``data-testid`` hints,
  download labels or size-like text, counted as a generic ``File``;
* fallback: file-name shaped tokens in the visible text.

The assistant reply shares the turn container in most layouts and is
always excluded, otherwise a ``.pdf`` mentioned in the answer would be
counted as an attachment.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field

from bs4 import Tag

from .document import HostDocument
from .i18n import _, ngettext
from .locator import Turn, TurnLocator
from .settings import TocSettings
from .util.strings import summarize, unique

GENERIC_FILE = "File"
NON_TEXT_LABEL = "(non-text message)"
FILE_BADGE = "📎"
IMAGE_BADGE = "📷"

FILE_SIZE_RE = re.compile(r"\b\d+(\.\d+)?\s*(KB|MB|GB)\b", re.IGNORECASE)
DOWNLOAD_RE = re.compile(r"(download|下载)", re.IGNORECASE)
FILE_HINT_RE = re.compile(r"(file|attachment|附件|文件)", re.IGNORECASE)
FILE_LINK_RE = re.compile(r"/files/|file-|blob:|oaiusercontent|backend-api/files", re.IGNORECASE)
FILE_NAME_RE = re.compile(
    r"\b\w[\w\- .]{0,80}\."
    r"(?:pdf|docx?|pptx?|xlsx?|csv|txt|zip|rar|7z|png|jpe?g|gif|webp|mp4|mov|webm)\b",
    re.IGNORECASE,
)

FILE_CANDIDATE_SELECTOR = (
    "a, button, [role='button'], [download], [aria-label], [title], [data-testid]"
)
ATTACHMENT_CARD_SELECTOR = '[data-testid*="file"], [data-testid*="attachment"]'
ASSISTANT_BODY_SELECTOR = ".markdown"
ASSISTANT_BLOCK_SELECTOR = "p, li, h1, h2, h3, pre, code"
INLINE_SVG_PREFIX = "data:image/svg+xml"


@dataclass(slots=True)
class DisplayRecord:
    """Derived label and attachment summary of one user message."""

    title: str
    thumbnails: list[str] = field(default_factory=list)
    file_count: int = 0
    image_count: int = 0
    file_names: list[str] = field(default_factory=list)


def match_file_names(text: str | None) -> list[str]:
    """Return file-name shaped tokens found in *text*."""
    if not text:
        return []
    return [match.group(0) for match in FILE_NAME_RE.finditer(str(text))]


class ContentClassifier:
    """Classify user messages as text, files, images or non-text content."""

    def __init__(self, document: HostDocument, settings: TocSettings | None = None) -> None:
        self._document = document
        self._settings = settings or TocSettings()

    # ------------------------------------------------------------------
    def describe_turn(self, turn: Turn) -> DisplayRecord:
        """Return the display record of *turn*'s user message."""
        return self.describe_user(turn.user)

    def describe_user(self, user: Tag | None) -> DisplayRecord:
        """Classify the message rooted at *user*.

        The scope is the enclosing turn container when there is one, so
        attachment cards rendered beside the message bubble are seen too.
        """
        if user is None:
            return DisplayRecord(title=_(NON_TEXT_LABEL))
        document = self._document
        scope = TurnLocator.turn_container(document, user) or user
        assistant = TurnLocator.assistant_in(document, scope)
        user_text = document.text_content(user).strip()
        return self.classify(scope, assistant, user_text)

    def classify(self, scope: Tag | None, assistant: Tag | None, user_text: str) -> DisplayRecord:
        """Build the display record for *scope* while ignoring *assistant*."""
        settings = self._settings
        file_names = self.extract_file_names(scope, assistant)
        images = self.extract_images(scope, assistant)
        files_count = len(file_names)
        images_count = len(images)
        thumbnails = images[: settings.thumbnail_limit]

        if user_text:
            title = summarize(user_text, settings.summary_length)
            if files_count:
                title += f"  {FILE_BADGE}{files_count}"
            if images_count:
                title += f"  {IMAGE_BADGE}{images_count}"
            return DisplayRecord(title, thumbnails, files_count, images_count, file_names)

        if files_count:
            if files_count == 1:
                label = summarize(file_names[0], settings.file_name_length)
            else:
                label = ngettext("{count} file", "{count} files", files_count).format(
                    count=files_count
                )
            return DisplayRecord(f"{FILE_BADGE} {label}", [], files_count, images_count, file_names)

        if images_count:
            label = ngettext("{count} image", "{count} images", images_count).format(
                count=images_count
            )
            return DisplayRecord(
                f"{IMAGE_BADGE} {label}", thumbnails, files_count, images_count, file_names
            )

        return DisplayRecord(_(NON_TEXT_LABEL), [], files_count, images_count, file_names)

    # ------------------------------------------------------------------
    def extract_file_names(self, scope: Tag | None, assistant: Tag | None) -> list[str]:
        """Return attachment names in *scope*, explicit names preferred."""
        if scope is None:
            return []
        document = self._document
        names: list[str] = []
        for element in document.select(FILE_CANDIDATE_SELECTOR, scope):
            if document.contains(assistant, element):
                continue
            download = document.get_attribute(element, "download")
            title = document.get_attribute(element, "title")
            aria = document.get_attribute(element, "aria-label")
            text = document.text_content(element).strip()
            for value in (download, title, aria, text):
                names.extend(match_file_names(value))

            href = document.get_attribute(element, "href")
            testid = document.get_attribute(element, "data-testid")
            looks_like_link = bool(FILE_LINK_RE.search(href))
            looks_like_hint = bool(
                FILE_HINT_RE.search(testid)
                or DOWNLOAD_RE.search(aria)
                or DOWNLOAD_RE.search(title)
                or FILE_SIZE_RE.search(text)
            )
            # placeholders only until the first explicit name shows up
            if (looks_like_link or looks_like_hint) and not names:
                names.append(GENERIC_FILE)

        # text nodes are scanned one by one so a name never spans two nodes
        for text in self._iter_text(scope, assistant):
            names.extend(match_file_names(text))

        cleaned = unique(name.strip() for name in names)
        if any(name != GENERIC_FILE for name in cleaned):
            return [name for name in cleaned if name != GENERIC_FILE]
        return cleaned

    def extract_images(self, scope: Tag | None, assistant: Tag | None) -> list[str]:
        """Return unique photo sources in *scope*, skipping icons and file cards."""
        if scope is None:
            return []
        document = self._document
        limit = self._settings.min_image_size
        sources: list[str] = []
        for image in document.select("img", scope):
            src = document.get_attribute(image, "src")
            if not src or src.startswith(INLINE_SVG_PREFIX):
                continue
            if document.contains(assistant, image):
                continue
            if document.closest(image, ATTACHMENT_CARD_SELECTOR) is not None:
                continue
            rect = document.bounding_rect(image)
            if rect is not None and rect.width <= limit and rect.height <= limit:
                continue
            sources.append(src)
        return unique(sources)

    def _iter_text(self, scope: Tag | None, assistant: Tag | None) -> Iterable[str]:
        document = self._document
        for string in document.iter_strings(scope):
            if document.contains(assistant, string.parent):
                continue
            text = str(string).strip()
            if text:
                yield text

    # ------------------------------------------------------------------
    def assistant_summary(self, assistant: Tag | None) -> str:
        """Summarise the first meaningful block of an assistant reply."""
        if assistant is None:
            return ""
        document = self._document
        body = document.select_one(ASSISTANT_BODY_SELECTOR, assistant) or assistant
        block = document.select_one(ASSISTANT_BLOCK_SELECTOR, body) or body
        return summarize(document.text_content(block), self._settings.assistant_summary_length)


__all__ = [
    "ContentClassifier",
    "DisplayRecord",
    "GENERIC_FILE",
    "NON_TEXT_LABEL",
    "match_file_names",
]
