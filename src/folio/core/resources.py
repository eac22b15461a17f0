"""Content resource definitions and their create/update/list operations.

A ``Resource`` ties a table to the URL segment it is served under, the audit
entity name, the body schema, and its public/admin orderings. The generic
``create``/``update`` functions apply the shared publish rules:

- ``status`` is ``published`` or ``draft``
- ``published_at`` is stamped when a row is published and kept afterwards
- ``updated_at`` is always refreshed
"""

from __future__ import annotations

import sqlite3
import uuid
from dataclasses import dataclass, field
from typing import Any

from folio.core.database import fetch_all, fetch_one, now_iso, write_audit
from folio.core.field_ops import (
    FieldDef,
    FieldType,
    changed_columns,
    coerce_body,
    parse_json_column,
)

PROJECT_TYPES = ["case_study", "lab", "template", "gallery", "writing"]


@dataclass(frozen=True)
class Resource:
    """One admin-editable table."""

    name: str
    table: str
    entity_type: str
    schema: dict[str, FieldDef]
    public_order: str
    admin_order: str
    text_id: bool = False
    # Columns that get a generated uuid when the body leaves them blank on create
    generated: tuple[str, ...] = ()
    json_columns: dict[str, Any] = field(default_factory=dict)


PROJECTS = Resource(
    name="projects",
    table="projects",
    entity_type="project",
    schema={
        "slug": FieldDef(FieldType.OPTIONAL_STRING, "URL slug (defaults to id)"),
        "title": FieldDef(FieldType.STRING, "Project title"),
        "summary": FieldDef(FieldType.STRING, "One-paragraph summary"),
        "type": FieldDef(FieldType.STRING, "Project type", default="case_study", choices=PROJECT_TYPES),
        "project_date": FieldDef(FieldType.STRING, "Sortable date (YYYY-MM or YYYY-MM-DD)"),
        "collections_json": FieldDef(FieldType.JSON_LIST, "Collection tags", source="collections"),
        "problem": FieldDef(FieldType.STRING, "Problem section"),
        "constraints_text": FieldDef(FieldType.STRING, "Constraints section"),
        "actions_json": FieldDef(FieldType.JSON_LIST, "Actions list", source="actions"),
        "results_json": FieldDef(FieldType.JSON_LIST, "Results list", source="results"),
        "next_steps_json": FieldDef(FieldType.JSON_LIST, "Next steps list", source="next_steps"),
        "status": FieldDef(FieldType.STATUS, "draft or published"),
        "featured_order": FieldDef(FieldType.OPTIONAL_INT, "Pin order (lower first)"),
    },
    public_order=(
        "COALESCE(featured_order, 999999) ASC, COALESCE(published_at, project_date) DESC, created_at DESC"
    ),
    admin_order="updated_at DESC, created_at DESC",
    text_id=True,
    json_columns={
        "collections_json": [],
        "actions_json": [],
        "results_json": [],
        "next_steps_json": [],
    },
)

SERVICES = Resource(
    name="services",
    table="services",
    entity_type="service",
    schema={
        "slug": FieldDef(FieldType.OPTIONAL_STRING, "URL slug"),
        "title": FieldDef(FieldType.STRING, "Service title"),
        "summary": FieldDef(FieldType.STRING, "Short summary"),
        "body": FieldDef(FieldType.STRING, "Long description"),
        "sort_order": FieldDef(FieldType.INT, "Sort order within the list"),
        "status": FieldDef(FieldType.STATUS, "draft or published"),
        "featured_order": FieldDef(FieldType.OPTIONAL_INT, "Pin order (lower first)"),
    },
    public_order="COALESCE(featured_order, 999999) ASC, sort_order ASC, id ASC",
    admin_order="updated_at DESC, id DESC",
    generated=("slug",),
)

CERTIFICATIONS = Resource(
    name="certifications",
    table="certifications",
    entity_type="certification",
    schema={
        "title": FieldDef(FieldType.STRING, "Certification title"),
        "issuer": FieldDef(FieldType.STRING, "Issuing body"),
        "credential_id": FieldDef(FieldType.STRING, "Credential identifier"),
        "credential_url": FieldDef(FieldType.STRING, "Verification URL"),
        "issued_on": FieldDef(FieldType.STRING, "Issue date"),
        "expires_on": FieldDef(FieldType.STRING, "Expiry date"),
        "status": FieldDef(FieldType.STATUS, "draft or published"),
        "featured_order": FieldDef(FieldType.OPTIONAL_INT, "Pin order (lower first)"),
    },
    public_order="COALESCE(featured_order, 999999) ASC, COALESCE(published_at, issued_on) DESC, id ASC",
    admin_order="created_at DESC, id DESC",
)

LABS = Resource(
    name="labs",
    table="labs",
    entity_type="lab",
    schema={
        "project_id": FieldDef(FieldType.OPTIONAL_STRING, "Linked project id"),
        "slug": FieldDef(FieldType.OPTIONAL_STRING, "URL slug"),
        "title": FieldDef(FieldType.STRING, "Lab title"),
        "summary": FieldDef(FieldType.STRING, "Short summary"),
        "status": FieldDef(FieldType.STATUS, "draft or published"),
        "published_on": FieldDef(FieldType.STRING, "Display date"),
        "featured_order": FieldDef(FieldType.OPTIONAL_INT, "Pin order (lower first)"),
    },
    public_order="COALESCE(featured_order, 999999) ASC, COALESCE(published_at, published_on) DESC, id ASC",
    admin_order="created_at DESC, id DESC",
    generated=("slug",),
)

SITE_BLOCKS = Resource(
    name="site-blocks",
    table="site_blocks",
    entity_type="site_block",
    schema={
        "page": FieldDef(FieldType.STRING, "Page the block belongs to", default="home"),
        "block_key": FieldDef(FieldType.OPTIONAL_STRING, "Key unique within the page"),
        "title": FieldDef(FieldType.STRING, "Block title"),
        "body": FieldDef(FieldType.STRING, "Block body text"),
        "data_json": FieldDef(FieldType.JSON_OBJECT, "Free-form JSON data", source="data"),
        "status": FieldDef(FieldType.STATUS, "draft or published"),
        "featured_order": FieldDef(FieldType.OPTIONAL_INT, "Pin order (lower first)"),
    },
    public_order="page ASC, COALESCE(featured_order, 999999) ASC, block_key ASC, id ASC",
    admin_order="page ASC, block_key ASC, updated_at DESC",
    generated=("block_key",),
    json_columns={"data_json": {}},
)

RESOURCES: dict[str, Resource] = {
    r.name: r for r in (PROJECTS, SERVICES, CERTIFICATIONS, LABS, SITE_BLOCKS)
}


# ---------------------------------------------------------------------------
# Row decoding
# ---------------------------------------------------------------------------


def decode_row(resource: Resource, row: dict[str, Any]) -> dict[str, Any]:
    """Add decoded copies of JSON columns (``collections_json`` -> ``collections``)."""
    decoded = dict(row)
    for column, fallback in resource.json_columns.items():
        key = column[: -len("_json")]
        decoded[key] = parse_json_column(row.get(column), fallback)
    return decoded


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


def list_published(conn: sqlite3.Connection, resource: Resource) -> list[dict[str, Any]]:
    rows = fetch_all(
        conn,
        f"SELECT * FROM {resource.table} WHERE status = 'published' ORDER BY {resource.public_order}",
    )
    return [decode_row(resource, row) for row in rows]


def list_all(conn: sqlite3.Connection, resource: Resource) -> list[dict[str, Any]]:
    rows = fetch_all(conn, f"SELECT * FROM {resource.table} ORDER BY {resource.admin_order}")
    return [decode_row(resource, row) for row in rows]


def get_row(conn: sqlite3.Connection, resource: Resource, row_id: str | int) -> dict[str, Any] | None:
    return fetch_one(conn, f"SELECT * FROM {resource.table} WHERE id = ?", (row_id,))


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


def _replace_names(
    conn: sqlite3.Connection,
    project_id: str,
    names: list[str],
    table: str,
    link_table: str,
    link_column: str,
) -> None:
    conn.execute(f"DELETE FROM {link_table} WHERE project_id = ?", (project_id,))
    for name in names:
        conn.execute(f"INSERT OR IGNORE INTO {table} (name) VALUES (?)", (name,))
        conn.execute(
            f"""INSERT OR IGNORE INTO {link_table} (project_id, {link_column})
                SELECT ?, id FROM {table} WHERE name = ?""",
            (project_id, name),
        )


def _sync_project_links(conn: sqlite3.Connection, project_id: str, body: dict[str, Any]) -> None:
    """Replace tag/tool links when the body carries those lists."""
    if isinstance(body.get("tags"), list):
        names = [str(t) for t in body["tags"] if str(t).strip()]
        _replace_names(conn, project_id, names, "tags", "project_tags", "tag_id")
    if isinstance(body.get("tools"), list):
        names = [str(t) for t in body["tools"] if str(t).strip()]
        _replace_names(conn, project_id, names, "tools", "project_tools", "tool_id")


def create(
    conn: sqlite3.Connection,
    resource: Resource,
    body: dict[str, Any],
    actor_email: str | None = None,
) -> str | int:
    """Insert a row from a request body and audit it. Returns the new id."""
    params = coerce_body(body, resource.schema)
    for column in resource.generated:
        if not params.get(column):
            params[column] = str(uuid.uuid4())

    timestamp = now_iso()
    params["published_at"] = timestamp if params["status"] == "published" else None
    params["created_at"] = timestamp
    params["updated_at"] = timestamp

    if resource.text_id:
        new_id: str | int = str(body.get("id") or uuid.uuid4())
        params = {"id": new_id, **params}
        if not params.get("slug"):
            params["slug"] = new_id

    columns = ", ".join(params)
    placeholders = ", ".join("?" for _ in params)
    cursor = conn.execute(
        f"INSERT INTO {resource.table} ({columns}) VALUES ({placeholders})",
        tuple(params.values()),
    )
    if not resource.text_id:
        new_id = int(cursor.lastrowid or 0)

    if resource is PROJECTS:
        _sync_project_links(conn, str(new_id), body)

    write_audit(conn, "create", resource.entity_type, new_id, actor_email, {"status": params["status"]})
    return new_id


def update(
    conn: sqlite3.Connection,
    resource: Resource,
    row_id: str | int,
    body: dict[str, Any],
    actor_email: str | None = None,
) -> bool:
    """Update a row from a request body and audit it.

    Returns:
        False if no row has that id, True otherwise.
    """
    existing = get_row(conn, resource, row_id)
    if existing is None:
        return False

    params = coerce_body(body, resource.schema)
    for column in resource.generated + (("slug",) if resource.text_id else ()):
        if not params.get(column):
            params[column] = existing.get(column) or str(row_id)

    changed = changed_columns(existing, params)
    # First publish stamps published_at; later edits keep it
    first_publish = params["status"] == "published" and not existing.get("published_at")
    maybe_published_at = now_iso() if first_publish else None

    assignments = ", ".join(f"{column} = ?" for column in params)
    conn.execute(
        f"""UPDATE {resource.table} SET {assignments},
            published_at = COALESCE(?, published_at), updated_at = ?
            WHERE id = ?""",
        (*params.values(), maybe_published_at, now_iso(), row_id),
    )

    if resource is PROJECTS:
        _sync_project_links(conn, str(row_id), body)

    write_audit(
        conn,
        "update",
        resource.entity_type,
        row_id,
        actor_email,
        {"status": params["status"], "changed": changed},
    )
    return True
