"""Public read endpoints and the contact form."""

from __future__ import annotations

import json
import logging
import re

from flask import Blueprint, jsonify, request

from folio.api import json_body, services
from folio.api.errors import BadRequest, NotFound
from folio.core.database import now_iso, write_audit
from folio.core.field_ops import as_int
from folio.core.projects import ProjectQuery, get_published_detail, search_published
from folio.core.resources import CERTIFICATIONS, LABS, SERVICES, SITE_BLOCKS, list_published

logger = logging.getLogger(__name__)

public_bp = Blueprint("public", __name__, url_prefix="/api")

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
INQUIRY_TYPES = ("general", "project", "service", "lab")
MAX_MESSAGE_LENGTH = 5000


def page_params(default_size: int, max_size: int) -> tuple[int, int]:
    """Read ``page``/``pageSize`` from the query string with fallbacks and a cap."""
    page = as_int(request.args.get("page"), 1)
    page_size = min(as_int(request.args.get("pageSize"), default_size), max_size)
    return page, page_size


@public_bp.get("/health")
def health():
    return jsonify({"status": "ok"})


@public_bp.get("/projects")
def list_projects():
    settings = services().settings
    page, page_size = page_params(settings.default_page_size, settings.max_page_size)
    query = ProjectQuery(
        collection=request.args.get("collection") or None,
        type=request.args.get("type") or None,
        q=(request.args.get("q") or "").strip() or None,
        page=page,
        page_size=page_size,
    )

    with services().store.connection() as conn:
        data, total = search_published(conn, query)

    return jsonify(
        {
            "data": data,
            "pagination": {"total": total, "page": page, "pageSize": page_size},
        }
    )


@public_bp.get("/projects/<id_or_slug>")
def get_project(id_or_slug: str):
    with services().store.connection() as conn:
        detail = get_published_detail(conn, id_or_slug)
    if detail is None:
        raise NotFound("Project not found")
    return jsonify(detail)


def _published(resource):
    with services().store.connection() as conn:
        return jsonify({"data": list_published(conn, resource)})


@public_bp.get("/services")
def list_services():
    return _published(SERVICES)


@public_bp.get("/certifications")
def list_certifications():
    return _published(CERTIFICATIONS)


@public_bp.get("/labs")
def list_labs():
    return _published(LABS)


@public_bp.get("/site-blocks")
def list_site_blocks():
    return _published(SITE_BLOCKS)


@public_bp.post("/inquiries")
def create_inquiry():
    body = json_body()

    email = str(body.get("email") or "").strip()
    message = str(body.get("message") or "").strip()
    if not EMAIL_RE.match(email):
        raise BadRequest("A valid email address is required")
    if not message:
        raise BadRequest("Message is required")
    if len(message) > MAX_MESSAGE_LENGTH:
        raise BadRequest(f"Message is longer than {MAX_MESSAGE_LENGTH} characters")

    inquiry_type = str(body.get("inquiry_type") or "general")
    if inquiry_type not in INQUIRY_TYPES:
        inquiry_type = "general"

    metadata = {
        "source": str(body.get("source") or "contact_form"),
        "user_agent": request.headers.get("User-Agent", ""),
    }
    timestamp = now_iso()

    with services().store.connection() as conn:
        cursor = conn.execute(
            """INSERT INTO inquiries
               (inquiry_type, name, email, subject, message, status, metadata_json, created_at, updated_at)
               VALUES (?, ?, ?, ?, ?, 'new', ?, ?, ?)""",
            (
                inquiry_type,
                str(body.get("name") or "").strip(),
                email,
                str(body.get("subject") or "").strip(),
                message,
                json.dumps(metadata),
                timestamp,
                timestamp,
            ),
        )
        inquiry_id = cursor.lastrowid
        write_audit(conn, "create", "inquiry", inquiry_id, email, {"inquiry_type": inquiry_type})

    logger.info("New %s inquiry #%s", inquiry_type, inquiry_id)
    return jsonify({"ok": True, "id": inquiry_id}), 201
