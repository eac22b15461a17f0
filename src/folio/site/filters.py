"""Project filtering: a pure function of the full list and the filter state."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace

from folio.site.manifest import Project

WILDCARD = "all"


@dataclass(frozen=True)
class FilterState:
    collection: str = WILDCARD
    type: str = WILDCARD
    search: str = ""

    def with_search(self, raw: str | None) -> FilterState:
        return replace(self, search=normalize_search(raw))


def normalize_search(raw: str | None) -> str:
    return (raw or "").strip().casefold()


def haystack(project: Project) -> str:
    """Searchable text: title, summary, tags, and tools, case-folded."""
    return " ".join([project.title, project.summary, *project.tags, *project.tools]).casefold()


def matches(project: Project, state: FilterState) -> bool:
    if state.collection != WILDCARD and state.collection not in project.collections:
        return False
    if state.type != WILDCARD and project.type != state.type:
        return False
    return not state.search or state.search in haystack(project)


def apply_filters(projects: Iterable[Project], state: FilterState) -> list[Project]:
    """Matching projects, newest first (dates compare as strings)."""
    return sorted(
        (p for p in projects if matches(p, state)),
        key=lambda p: p.date,
        reverse=True,
    )


def count_label(count: int) -> str:
    return f"{count} projects"
