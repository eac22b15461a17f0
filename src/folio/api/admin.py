"""Admin endpoints: dashboard, content CRUD, inquiries, and the audit log.

Every route here sits behind ``require_admin``. Media management lives in
``folio.api.media``.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Any

from flask import Blueprint, jsonify, request

from folio.api import json_body, services
from folio.api.auth import current_actor, require_admin
from folio.api.errors import BadRequest, Conflict, NotFound
from folio.api.public import page_params
from folio.core import resources
from folio.core.database import fetch_all, fetch_one, now_iso, write_audit
from folio.core.field_ops import validate_body
from folio.core.resources import RESOURCES, Resource

logger = logging.getLogger(__name__)

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")
admin_bp.before_request(require_admin)

INQUIRY_STATUSES = ("new", "in_progress", "closed", "spam")
AUDIT_LIMIT = 500


def _resource(name: str) -> Resource:
    try:
        return RESOURCES[name]
    except KeyError:
        raise NotFound(f"Unknown resource: {name}") from None


@admin_bp.get("/dashboard")
def dashboard():
    return jsonify({"counts": services().store.counts()})


@admin_bp.get("/me")
def me():
    actor = current_actor()
    return jsonify({"email": actor.email, "role": actor.role})


@admin_bp.get("/audit")
def audit_log():
    return jsonify({"data": services().store.recent_audit(AUDIT_LIMIT)})


# ---------------------------------------------------------------------------
# Content resources
# ---------------------------------------------------------------------------


@admin_bp.get("/<name>")
def list_resource(name: str):
    resource = _resource(name)
    with services().store.connection() as conn:
        return jsonify({"data": resources.list_all(conn, resource)})


@admin_bp.post("/<name>")
def create_resource(name: str):
    resource = _resource(name)
    body = json_body()
    errors = validate_body(body, resource.schema)
    if errors:
        raise BadRequest("; ".join(errors))

    try:
        with services().store.connection() as conn:
            new_id = resources.create(conn, resource, body, current_actor().email)
    except sqlite3.IntegrityError as e:
        raise Conflict(f"Could not create {resource.entity_type}: {e}") from e

    logger.info("%s created %s %s", current_actor().email, resource.entity_type, new_id)
    return jsonify({"ok": True, "id": new_id}), 201


@admin_bp.put("/<name>/<row_id>")
def update_resource(name: str, row_id: str):
    resource = _resource(name)
    body = json_body()
    errors = validate_body(body, resource.schema)
    if errors:
        raise BadRequest("; ".join(errors))

    try:
        with services().store.connection() as conn:
            found = resources.update(conn, resource, row_id, body, current_actor().email)
    except sqlite3.IntegrityError as e:
        raise Conflict(f"Could not update {resource.entity_type}: {e}") from e

    if not found:
        raise NotFound(f"{resource.entity_type.replace('_', ' ').capitalize()} not found")
    return jsonify({"ok": True})


# ---------------------------------------------------------------------------
# Inquiries
# ---------------------------------------------------------------------------


def _inquiry_filters() -> tuple[str, list[Any]]:
    clauses: list[str] = []
    params: list[Any] = []

    status = (request.args.get("status") or "").strip()
    if status:
        clauses.append("status = ?")
        params.append(status)

    inquiry_type = (request.args.get("type") or "").strip()
    if inquiry_type:
        clauses.append("inquiry_type = ?")
        params.append(inquiry_type)

    q = (request.args.get("q") or "").strip()
    if q:
        clauses.append("(name LIKE ? OR email LIKE ? OR subject LIKE ? OR message LIKE ?)")
        params.extend([f"%{q}%"] * 4)

    # created_at is ISO-8601, so the first 10 chars compare as a date
    date_from = (request.args.get("dateFrom") or "").strip()
    if date_from:
        clauses.append("substr(created_at, 1, 10) >= ?")
        params.append(date_from)

    date_to = (request.args.get("dateTo") or "").strip()
    if date_to:
        clauses.append("substr(created_at, 1, 10) <= ?")
        params.append(date_to)

    where = "WHERE " + " AND ".join(clauses) if clauses else ""
    return where, params


@admin_bp.get("/inquiries")
def list_inquiries():
    settings = services().settings
    page, page_size = page_params(settings.default_page_size, settings.max_page_size)
    where, params = _inquiry_filters()

    with services().store.connection() as conn:
        total_row = fetch_one(conn, f"SELECT COUNT(*) AS total FROM inquiries {where}", params)
        rows = fetch_all(
            conn,
            f"SELECT * FROM inquiries {where} ORDER BY created_at DESC, id DESC LIMIT ? OFFSET ?",
            [*params, page_size, (page - 1) * page_size],
        )

    total = int(total_row["total"]) if total_row else 0
    return jsonify({"data": rows, "pagination": {"total": total, "page": page, "pageSize": page_size}})


def _get_inquiry(conn: sqlite3.Connection, inquiry_id: int) -> dict[str, Any]:
    row = fetch_one(conn, "SELECT * FROM inquiries WHERE id = ?", (inquiry_id,))
    if row is None:
        raise NotFound("Inquiry not found")
    return row


def _add_note(conn: sqlite3.Connection, inquiry_id: int, actor_email: str, text: str) -> int:
    cursor = conn.execute(
        "INSERT INTO inquiry_notes (inquiry_id, actor_email, note_text, created_at) VALUES (?, ?, ?, ?)",
        (inquiry_id, actor_email, text, now_iso()),
    )
    return int(cursor.lastrowid or 0)


@admin_bp.get("/inquiries/<int:inquiry_id>")
def get_inquiry(inquiry_id: int):
    with services().store.connection() as conn:
        return jsonify({"data": _get_inquiry(conn, inquiry_id)})


@admin_bp.patch("/inquiries/<int:inquiry_id>")
def patch_inquiry(inquiry_id: int):
    body = json_body()
    actor = current_actor()
    updates: dict[str, Any] = {}

    if "status" in body:
        status = str(body["status"] or "").strip()
        if status not in INQUIRY_STATUSES:
            raise BadRequest(f"Invalid status {status!r}. Options: {', '.join(INQUIRY_STATUSES)}.")
        updates["status"] = status

    if "assigned_to_email" in body:
        updates["assigned_to_email"] = str(body["assigned_to_email"] or "").strip() or None

    if not updates:
        raise BadRequest("Nothing to update: send status and/or assigned_to_email")

    with services().store.connection() as conn:
        existing = _get_inquiry(conn, inquiry_id)
        changed = {k: v for k, v in updates.items() if existing.get(k) != v}
        if changed:
            assignments = ", ".join(f"{column} = ?" for column in changed)
            conn.execute(
                f"UPDATE inquiries SET {assignments}, updated_at = ? WHERE id = ?",
                (*changed.values(), now_iso(), inquiry_id),
            )
            if "status" in changed:
                _add_note(conn, inquiry_id, actor.email, f"Status changed: {existing['status']} -> {changed['status']}")
            if "assigned_to_email" in changed:
                assignee = changed["assigned_to_email"] or "nobody"
                _add_note(conn, inquiry_id, actor.email, f"Assigned to {assignee}")
            write_audit(conn, "update", "inquiry", inquiry_id, actor.email, {"changed": sorted(changed)})

    return jsonify({"ok": True})


@admin_bp.get("/inquiries/<int:inquiry_id>/notes")
def list_notes(inquiry_id: int):
    with services().store.connection() as conn:
        _get_inquiry(conn, inquiry_id)
        notes = fetch_all(
            conn,
            "SELECT * FROM inquiry_notes WHERE inquiry_id = ? ORDER BY created_at ASC, id ASC",
            (inquiry_id,),
        )
    return jsonify({"data": notes})


@admin_bp.post("/inquiries/<int:inquiry_id>/notes")
def add_note(inquiry_id: int):
    body = json_body()
    text = str(body.get("note_text") or "").strip()
    if not text:
        raise BadRequest("note_text is required")

    actor = current_actor()
    with services().store.connection() as conn:
        _get_inquiry(conn, inquiry_id)
        note_id = _add_note(conn, inquiry_id, actor.email, text)
        write_audit(conn, "note", "inquiry", inquiry_id, actor.email, {"note_id": note_id})

    return jsonify({"ok": True, "id": note_id}), 201
