"""URL fragment <-> modal state.

The fragment is the only persisted form of the modal state: ``#p=<id>`` means
the project overlay is open on ``id``; anything else (including the
``#main-content`` skip-link anchor) means closed.
"""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import quote, unquote

PROJECT_PREFIX = "p="


@dataclass(frozen=True)
class ModalState:
    """``closed`` when project_id is None, else ``open(project_id, media_index)``."""

    project_id: str | None = None
    media_index: int = 0

    @property
    def is_open(self) -> bool:
        return self.project_id is not None


CLOSED = ModalState()


def is_project_fragment(fragment: str) -> bool:
    return (fragment or "").lstrip("#").startswith(PROJECT_PREFIX)


def parse_fragment(fragment: str) -> ModalState:
    """Derive modal state from a fragment. The gallery index always starts at 0."""
    body = (fragment or "").lstrip("#")
    if not body.startswith(PROJECT_PREFIX):
        return CLOSED
    project_id = unquote(body[len(PROJECT_PREFIX):]).strip()
    return ModalState(project_id) if project_id else CLOSED


def format_fragment(state: ModalState) -> str:
    """The fragment for *state*: ``#p=<url-encoded id>`` or ``''`` when closed."""
    if not state.is_open:
        return ""
    return f"#{PROJECT_PREFIX}{quote(str(state.project_id), safe='')}"
