"""
Project manifest loading.

The static site ships ``projects.json``::

    {"projects": [{"id": ..., "slug": ..., "title": ..., "type": ..., "date": ...,
                   "collections": [...], "tags": [...], "tools": [...],
                   "images": [...], "sections": {"problem": ..., ...}}]}

This module parses it into ``Project`` objects, and checks it for problems
(``validate_manifest``) before it is published.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import requests

logger = logging.getLogger(__name__)

PROJECT_TYPES = ("case_study", "lab", "template", "gallery", "writing")
DATE_RE = re.compile(r"^\d{4}(-\d{2}){0,2}$")
DEFAULT_TIMEOUT = 10


class ManifestError(Exception):
    """The manifest could not be read or has the wrong shape."""


def _str_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if item is not None]


@dataclass
class ProjectSections:
    problem: str = ""
    constraints: str = ""
    actions: list[str] = field(default_factory=list)
    results: list[str] = field(default_factory=list)
    next_steps: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> ProjectSections:
        if not isinstance(data, dict):
            return cls()
        return cls(
            problem=str(data.get("problem") or ""),
            constraints=str(data.get("constraints") or ""),
            actions=_str_list(data.get("actions")),
            results=_str_list(data.get("results")),
            next_steps=_str_list(data.get("next_steps")),
        )


@dataclass
class Project:
    """One showcase entry."""

    id: str
    title: str
    slug: str = ""
    summary: str = ""
    type: str = "case_study"
    date: str = ""
    collections: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    tools: list[str] = field(default_factory=list)
    images: list[str] = field(default_factory=list)
    sections: ProjectSections = field(default_factory=ProjectSections)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Project:
        """Build a Project from a manifest entry.

        Raises:
            ManifestError: If the entry has no id
        """
        project_id = str(data.get("id") or "").strip()
        if not project_id:
            raise ManifestError(f"Project entry without an id: {data.get('title')!r}")
        return cls(
            id=project_id,
            title=str(data.get("title") or ""),
            slug=str(data.get("slug") or project_id),
            summary=str(data.get("summary") or ""),
            type=str(data.get("type") or "case_study"),
            date=str(data.get("date") or ""),
            collections=_str_list(data.get("collections")),
            tags=_str_list(data.get("tags")),
            tools=_str_list(data.get("tools")),
            images=_str_list(data.get("images")),
            sections=ProjectSections.from_dict(data.get("sections")),
        )


def parse_manifest(data: Any) -> list[Project]:
    """Parse a decoded manifest document.

    Raises:
        ManifestError: If the document isn't ``{"projects": [...]}`` or ids repeat
    """
    if not isinstance(data, dict) or not isinstance(data.get("projects", []), list):
        raise ManifestError('Manifest must be an object with a "projects" list')

    projects: list[Project] = []
    seen: set[str] = set()
    for entry in data.get("projects", []):
        if not isinstance(entry, dict):
            raise ManifestError(f"Project entry must be an object, got {type(entry).__name__}")
        project = Project.from_dict(entry)
        if project.id in seen:
            raise ManifestError(f"Duplicate project id: {project.id}")
        seen.add(project.id)
        projects.append(project)
    return projects


def load_manifest(path: Path) -> list[Project]:
    """Read and parse a manifest file."""
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as e:
        raise ManifestError(f"Cannot read {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ManifestError(f"{path} is not valid JSON: {e}") from e
    return parse_manifest(data)


def fetch_manifest(
    url: str,
    session: requests.Session | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> list[Project]:
    """Fetch and parse the manifest over HTTP.

    Raises:
        ManifestError: On transport failure, a non-2xx status, or bad JSON
    """
    session = session or requests.Session()
    try:
        response = session.get(url, timeout=timeout)
    except requests.RequestException as e:
        raise ManifestError(f"Unable to load {url}: {e}") from e

    if not response.ok:
        raise ManifestError(f"Unable to load {url}: HTTP {response.status_code}")
    try:
        data = response.json()
    except ValueError as e:
        raise ManifestError(f"{url} did not return JSON") from e
    return parse_manifest(data)


def validate_manifest(data: Any) -> list[str]:
    """Collect problems in a decoded manifest without stopping at the first one."""
    if not isinstance(data, dict) or not isinstance(data.get("projects"), list):
        return ['Manifest must be an object with a "projects" list']

    issues: list[str] = []
    seen: set[str] = set()
    for index, entry in enumerate(data["projects"]):
        where = f"projects[{index}]"
        if not isinstance(entry, dict):
            issues.append(f"{where}: not an object")
            continue

        project_id = str(entry.get("id") or "").strip()
        if not project_id:
            issues.append(f"{where}: missing id")
        elif project_id in seen:
            issues.append(f"{where}: duplicate id {project_id!r}")
        seen.add(project_id)

        if not entry.get("title"):
            issues.append(f"{where}: missing title")
        if entry.get("type") not in PROJECT_TYPES:
            issues.append(f"{where}: unknown type {entry.get('type')!r}")
        if not DATE_RE.match(str(entry.get("date") or "")):
            issues.append(f"{where}: date {entry.get('date')!r} is not YYYY, YYYY-MM, or YYYY-MM-DD")
        for key in ("collections", "tags", "tools", "images"):
            if key in entry and not isinstance(entry[key], list):
                issues.append(f"{where}: {key} must be a list")
    return issues
