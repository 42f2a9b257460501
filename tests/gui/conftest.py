"""Pytest configuration for the GUI test suite."""

from __future__ import annotations

import pytest

from convtoc.document import HostDocument


@pytest.fixture
def transcript() -> HostDocument:
    """Two finished turns rendered in conversation-turn containers."""
    return HostDocument.from_html(
        "<main>"
        '<div data-testid="conversation-turn">'
        '<div data-message-author-role="user">Set up CI</div>'
        '<div data-message-author-role="assistant"><div class="markdown"><p>Use a workflow file</p></div></div>'
        "</div>"
        '<div data-testid="conversation-turn">'
        '<div data-message-author-role="user">Cache dependencies</div>'
        '<div data-message-author-role="assistant"><div class="markdown"><p>Key on the lock file</p></div></div>'
        "</div>"
        "</main>"
    )


@pytest.fixture
def flat_transcript() -> HostDocument:
    """Role-tagged messages rendered as plain siblings of ``<main>``."""
    return HostDocument.from_html(
        "<main>"
        '<div data-message-author-role="user">Rotate the API keys</div>'
        '<div data-message-author-role="assistant"><p>Use the vault CLI</p></div>'
        '<div data-message-author-role="user">Shrink the docker image</div>'
        '<div data-message-author-role="assistant"><p>Try a multi-stage build</p></div>'
        "</main>"
    )
