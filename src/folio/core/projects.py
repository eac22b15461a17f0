"""Project-specific queries: public search, detail view, and manifest rows."""

from __future__ import annotations

import json
import sqlite3
from dataclasses import dataclass
from typing import Any

from folio.core.database import fetch_all, fetch_one
from folio.core.resources import PROJECTS, decode_row

LIST_COLUMNS = "p.id, p.slug, p.title, p.summary, p.type, p.project_date, p.collections_json"


@dataclass
class ProjectQuery:
    """Filters and paging for the public project list."""

    collection: str | None = None
    type: str | None = None
    q: str | None = None
    page: int = 1
    page_size: int = 20

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


def _where(query: ProjectQuery) -> tuple[str, list[Any]]:
    clauses = ["p.status = ?"]
    params: list[Any] = ["published"]

    if query.collection:
        # collections_json is a JSON array of strings; match the quoted element
        clauses.append("instr(p.collections_json, ?) > 0")
        params.append(json.dumps(query.collection))

    if query.type:
        clauses.append("p.type = ?")
        params.append(query.type)

    if query.q:
        clauses.append("(p.title LIKE ? OR p.summary LIKE ?)")
        params.extend([f"%{query.q}%", f"%{query.q}%"])

    return "WHERE " + " AND ".join(clauses), params


def search_published(conn: sqlite3.Connection, query: ProjectQuery) -> tuple[list[dict[str, Any]], int]:
    """Return one page of published projects and the total match count."""
    where, params = _where(query)

    total_row = fetch_one(conn, f"SELECT COUNT(*) AS total FROM projects p {where}", params)
    rows = fetch_all(
        conn,
        f"""SELECT {LIST_COLUMNS} FROM projects p {where}
            ORDER BY COALESCE(p.featured_order, 999999) ASC,
                     COALESCE(p.published_at, p.project_date) DESC,
                     p.created_at DESC
            LIMIT ? OFFSET ?""",
        [*params, query.page_size, query.offset],
    )
    data = [decode_row(PROJECTS, row) for row in rows]
    return data, int(total_row["total"]) if total_row else 0


def project_names(conn: sqlite3.Connection, project_id: str, kind: str) -> list[str]:
    """Tag or tool names linked to a project, alphabetically."""
    if kind == "tags":
        sql = """SELECT t.name FROM project_tags pt JOIN tags t ON t.id = pt.tag_id
                 WHERE pt.project_id = ? ORDER BY t.name"""
    elif kind == "tools":
        sql = """SELECT t.name FROM project_tools pt JOIN tools t ON t.id = pt.tool_id
                 WHERE pt.project_id = ? ORDER BY t.name"""
    else:
        raise ValueError(f"Unknown link kind: {kind!r}")
    return [row["name"] for row in fetch_all(conn, sql, (project_id,))]


def project_media(conn: sqlite3.Connection, project_id: str) -> list[dict[str, Any]]:
    return fetch_all(
        conn,
        """SELECT ma.asset_type AS type, ma.label, ma.path, ma.key, pm.sort_order AS sortOrder, pm.role
           FROM project_media pm JOIN media_assets ma ON ma.id = pm.media_asset_id
           WHERE pm.project_id = ?
           ORDER BY pm.sort_order ASC""",
        (project_id,),
    )


def get_published_detail(conn: sqlite3.Connection, id_or_slug: str) -> dict[str, Any] | None:
    """Full published project by id or slug, with tags, tools, and media."""
    row = fetch_one(
        conn,
        "SELECT * FROM projects WHERE (id = ? OR slug = ?) AND status = 'published' LIMIT 1",
        (id_or_slug, id_or_slug),
    )
    if row is None:
        return None

    detail = decode_row(PROJECTS, row)
    detail["nextSteps"] = detail.pop("next_steps")
    detail["tags"] = project_names(conn, row["id"], "tags")
    detail["tools"] = project_names(conn, row["id"], "tools")
    detail["media"] = project_media(conn, row["id"])
    return detail


def manifest_entries(conn: sqlite3.Connection) -> list[dict[str, Any]]:
    """Published projects shaped like entries of the static projects.json manifest."""
    rows = fetch_all(
        conn,
        f"SELECT * FROM projects WHERE status = 'published' ORDER BY {PROJECTS.public_order}",
    )
    entries = []
    for row in rows:
        project = decode_row(PROJECTS, row)
        images = [
            media["path"] or media["key"]
            for media in project_media(conn, row["id"])
            if media["role"] == "image" and (media["path"] or media["key"])
        ]
        entries.append(
            {
                "id": project["id"],
                "slug": project["slug"],
                "title": project["title"],
                "summary": project["summary"],
                "type": project["type"],
                "date": project["project_date"],
                "collections": project["collections"],
                "tags": project_names(conn, row["id"], "tags"),
                "tools": project_names(conn, row["id"], "tools"),
                "images": images,
                "sections": {
                    "problem": project["problem"],
                    "constraints": project["constraints_text"],
                    "actions": project["actions"],
                    "results": project["results"],
                    "next_steps": project["next_steps"],
                },
            }
        )
    return entries
