"""Media library: upload, metadata edits, usage lookup, and guarded delete.

Blobs go to the ObjectStore; ``media_assets`` rows keep the key, checksum, and
visibility. Public assets are also served under ``/media/<key>``.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from typing import Any

from flask import Blueprint, Response, jsonify, request

from folio.api import json_body, services
from folio.api.auth import current_actor, require_admin
from folio.api.errors import BadRequest, NotFound
from folio.core.database import fetch_all, fetch_one, now_iso, write_audit
from folio.core.storage import build_key, probe_image

logger = logging.getLogger(__name__)

media_bp = Blueprint("media", __name__, url_prefix="/api/admin/media")
media_bp.before_request(require_admin)

files_bp = Blueprint("files", __name__)

VISIBILITIES = ("public", "private")
DELETE_PHRASE = "DELETE"


def _with_url(row: dict[str, Any]) -> dict[str, Any]:
    item = dict(row)
    item["public_url"] = services().objects.public_url(row["key"]) if row.get("key") else None
    return item


def _get_asset(conn: sqlite3.Connection, asset_id: int) -> dict[str, Any]:
    row = fetch_one(conn, "SELECT * FROM media_assets WHERE id = ?", (asset_id,))
    if row is None:
        raise NotFound("Media asset not found")
    return row


def _attached_projects(conn: sqlite3.Connection, asset_id: int) -> list[dict[str, Any]]:
    return fetch_all(
        conn,
        """SELECT p.id AS project_id, p.title, pm.role, pm.sort_order
           FROM project_media pm JOIN projects p ON p.id = pm.project_id
           WHERE pm.media_asset_id = ?
           ORDER BY p.title""",
        (asset_id,),
    )


def _visibility(value: Any) -> str:
    visibility = str(value or "private").strip().lower()
    if visibility not in VISIBILITIES:
        raise BadRequest(f"Invalid visibility {visibility!r}. Options: public, private.")
    return visibility


@media_bp.get("")
def list_media():
    q = (request.args.get("q") or "").strip()
    sql = "SELECT * FROM media_assets"
    params: list[Any] = []
    if q:
        sql += " WHERE key LIKE ? OR label LIKE ? OR alt_text LIKE ?"
        params.extend([f"%{q}%"] * 3)
    sql += " ORDER BY created_at DESC, id DESC"

    with services().store.connection() as conn:
        rows = fetch_all(conn, sql, params)
    return jsonify({"data": [_with_url(row) for row in rows]})


@media_bp.post("")
def upload_media():
    upload = request.files.get("file")
    if upload is None or not upload.filename:
        raise BadRequest("Missing file field")

    data = upload.read()
    if not data:
        raise BadRequest("Uploaded file is empty")

    visibility = _visibility(request.form.get("visibility"))
    content_type = upload.mimetype or "application/octet-stream"
    key = build_key(upload.filename)

    metadata: dict[str, Any] = {"original_filename": upload.filename}
    metadata.update(probe_image(data))
    asset_type = "image" if content_type.startswith("image/") or "width" in metadata else "file"

    svc = services()
    stored = svc.objects.put(key, data, content_type)
    timestamp = now_iso()

    try:
        with svc.store.connection() as conn:
            cursor = conn.execute(
                """INSERT INTO media_assets
                   (key, asset_type, label, mime_type, size_bytes, checksum, visibility,
                    alt_text, metadata_json, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    stored.key,
                    asset_type,
                    (request.form.get("label") or "").strip() or upload.filename,
                    content_type,
                    stored.size_bytes,
                    stored.checksum,
                    visibility,
                    (request.form.get("alt_text") or "").strip(),
                    json.dumps(metadata),
                    timestamp,
                    timestamp,
                ),
            )
            asset_id = int(cursor.lastrowid or 0)
            write_audit(
                conn,
                "upload",
                "media_asset",
                asset_id,
                current_actor().email,
                {"key": stored.key, "size_bytes": stored.size_bytes, "visibility": visibility},
            )
    except sqlite3.Error:
        # Row never landed, so don't leave an orphaned blob behind
        svc.objects.delete(stored.key)
        raise

    return (
        jsonify({"ok": True, "id": asset_id, "key": stored.key, "public_url": svc.objects.public_url(stored.key)}),
        201,
    )


@media_bp.put("/<int:asset_id>")
def update_media(asset_id: int):
    body = json_body()
    updates: dict[str, Any] = {}
    if "alt_text" in body:
        updates["alt_text"] = str(body["alt_text"] or "")
    if "label" in body:
        updates["label"] = str(body["label"] or "")
    if "visibility" in body:
        updates["visibility"] = _visibility(body["visibility"])
    if not updates:
        raise BadRequest("Nothing to update: send alt_text, label, or visibility")

    with services().store.connection() as conn:
        _get_asset(conn, asset_id)
        assignments = ", ".join(f"{column} = ?" for column in updates)
        conn.execute(
            f"UPDATE media_assets SET {assignments}, updated_at = ? WHERE id = ?",
            (*updates.values(), now_iso(), asset_id),
        )
        write_audit(conn, "update", "media_asset", asset_id, current_actor().email, {"changed": sorted(updates)})

    return jsonify({"ok": True})


@media_bp.get("/<int:asset_id>/usage")
def media_usage(asset_id: int):
    with services().store.connection() as conn:
        asset = _get_asset(conn, asset_id)
        attached = _attached_projects(conn, asset_id)
    return jsonify({"id": asset_id, "attached": attached, "visibility": asset["visibility"]})


@media_bp.delete("/<int:asset_id>")
def delete_media(asset_id: int):
    body = request.get_json(silent=True) or {}
    if not isinstance(body, dict) or body.get("confirm") != DELETE_PHRASE:
        raise BadRequest(f'Type "{DELETE_PHRASE}" to confirm deletion')

    svc = services()
    with svc.store.connection() as conn:
        asset = _get_asset(conn, asset_id)
        attached = _attached_projects(conn, asset_id)
        conn.execute("DELETE FROM project_media WHERE media_asset_id = ?", (asset_id,))
        conn.execute("DELETE FROM media_assets WHERE id = ?", (asset_id,))
        write_audit(
            conn,
            "delete",
            "media_asset",
            asset_id,
            current_actor().email,
            {
                "key": asset["key"],
                "visibility": asset["visibility"],
                "detached": [item["project_id"] for item in attached],
            },
        )

    if asset["key"]:
        svc.objects.delete(asset["key"])

    return jsonify({"ok": True, "detached": len(attached)})


@files_bp.get("/media/<path:key>")
def serve_media(key: str):
    """Serve a public asset's blob. Private or unknown keys are a 404."""
    svc = services()
    row = svc.store.fetch_one(
        "SELECT mime_type FROM media_assets WHERE key = ? AND visibility = 'public'",
        (key,),
    )
    if row is None:
        raise NotFound("Media not found")
    try:
        data = svc.objects.get(key)
    except (FileNotFoundError, ValueError):
        logger.warning("Blob missing for public asset %s", key)
        raise NotFound("Media not found") from None
    return Response(data, mimetype=row["mime_type"] or "application/octet-stream")
