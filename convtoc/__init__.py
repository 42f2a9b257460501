"""Conversation table of contents for chat transcripts."""

from .controller import TocController
from .document import HostDocument, MutationRecord
from .settings import TocSettings, load_settings
from .toc_list import TocItem, TocListModel

__version__ = "0.1.0"

__all__ = [
    "HostDocument",
    "MutationRecord",
    "TocController",
    "TocItem",
    "TocListModel",
    "TocSettings",
    "load_settings",
]
