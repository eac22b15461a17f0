"""
SQLite store for site content, inquiries, users, and the audit log.

Every request opens its own connection through ``Store.connection()``, which
commits on success and rolls back on error. Queries are always parameterised.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from folio.core.config import get_paths

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS projects (
    id TEXT PRIMARY KEY,
    slug TEXT NOT NULL UNIQUE,
    title TEXT NOT NULL DEFAULT '',
    summary TEXT NOT NULL DEFAULT '',
    type TEXT NOT NULL DEFAULT 'case_study',
    project_date TEXT NOT NULL DEFAULT '',
    collections_json TEXT NOT NULL DEFAULT '[]',
    problem TEXT NOT NULL DEFAULT '',
    constraints_text TEXT NOT NULL DEFAULT '',
    actions_json TEXT NOT NULL DEFAULT '[]',
    results_json TEXT NOT NULL DEFAULT '[]',
    next_steps_json TEXT NOT NULL DEFAULT '[]',
    status TEXT NOT NULL DEFAULT 'draft',
    published_at TEXT,
    featured_order INTEGER,
    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS tags (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL UNIQUE
);

CREATE TABLE IF NOT EXISTS project_tags (
    project_id TEXT NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
    tag_id INTEGER NOT NULL REFERENCES tags(id) ON DELETE CASCADE,
    PRIMARY KEY (project_id, tag_id)
);

CREATE TABLE IF NOT EXISTS tools (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL UNIQUE
);

CREATE TABLE IF NOT EXISTS project_tools (
    project_id TEXT NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
    tool_id INTEGER NOT NULL REFERENCES tools(id) ON DELETE CASCADE,
    PRIMARY KEY (project_id, tool_id)
);

CREATE TABLE IF NOT EXISTS media_assets (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    key TEXT UNIQUE,
    asset_type TEXT NOT NULL DEFAULT 'image',
    label TEXT,
    path TEXT,
    mime_type TEXT,
    size_bytes INTEGER,
    checksum TEXT,
    visibility TEXT NOT NULL DEFAULT 'private',
    alt_text TEXT NOT NULL DEFAULT '',
    metadata_json TEXT NOT NULL DEFAULT '{}',
    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS project_media (
    project_id TEXT NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
    media_asset_id INTEGER NOT NULL REFERENCES media_assets(id) ON DELETE CASCADE,
    sort_order INTEGER NOT NULL DEFAULT 0,
    role TEXT NOT NULL DEFAULT 'image',
    PRIMARY KEY (project_id, media_asset_id)
);

CREATE TABLE IF NOT EXISTS services (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    slug TEXT NOT NULL UNIQUE,
    title TEXT NOT NULL DEFAULT '',
    summary TEXT NOT NULL DEFAULT '',
    body TEXT NOT NULL DEFAULT '',
    sort_order INTEGER NOT NULL DEFAULT 0,
    status TEXT NOT NULL DEFAULT 'draft',
    published_at TEXT,
    featured_order INTEGER,
    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS certifications (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL DEFAULT '',
    issuer TEXT NOT NULL DEFAULT '',
    credential_id TEXT NOT NULL DEFAULT '',
    credential_url TEXT NOT NULL DEFAULT '',
    issued_on TEXT NOT NULL DEFAULT '',
    expires_on TEXT NOT NULL DEFAULT '',
    status TEXT NOT NULL DEFAULT 'draft',
    published_at TEXT,
    featured_order INTEGER,
    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS labs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    project_id TEXT REFERENCES projects(id) ON DELETE SET NULL,
    slug TEXT NOT NULL UNIQUE,
    title TEXT NOT NULL DEFAULT '',
    summary TEXT NOT NULL DEFAULT '',
    status TEXT NOT NULL DEFAULT 'draft',
    published_on TEXT NOT NULL DEFAULT '',
    published_at TEXT,
    featured_order INTEGER,
    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS site_blocks (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    page TEXT NOT NULL DEFAULT 'home',
    block_key TEXT NOT NULL,
    title TEXT NOT NULL DEFAULT '',
    body TEXT NOT NULL DEFAULT '',
    data_json TEXT NOT NULL DEFAULT '{}',
    status TEXT NOT NULL DEFAULT 'draft',
    published_at TEXT,
    featured_order INTEGER,
    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
    UNIQUE (page, block_key)
);

CREATE TABLE IF NOT EXISTS inquiries (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    inquiry_type TEXT NOT NULL DEFAULT 'general',
    name TEXT NOT NULL DEFAULT '',
    email TEXT NOT NULL,
    subject TEXT NOT NULL DEFAULT '',
    message TEXT NOT NULL,
    status TEXT NOT NULL DEFAULT 'new',
    assigned_to_email TEXT,
    metadata_json TEXT NOT NULL DEFAULT '{}',
    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS inquiry_notes (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    inquiry_id INTEGER NOT NULL REFERENCES inquiries(id) ON DELETE CASCADE,
    actor_email TEXT NOT NULL,
    note_text TEXT NOT NULL,
    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    email TEXT NOT NULL UNIQUE,
    role TEXT NOT NULL DEFAULT 'viewer',
    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS audit_log (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    action TEXT NOT NULL,
    entity_type TEXT NOT NULL,
    entity_id TEXT,
    actor_email TEXT,
    metadata_json TEXT NOT NULL DEFAULT '{}',
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_projects_status ON projects(status);
CREATE INDEX IF NOT EXISTS idx_inquiries_status ON inquiries(status);
CREATE INDEX IF NOT EXISTS idx_audit_created ON audit_log(created_at);
"""

# Tables counted on the admin dashboard
DASHBOARD_TABLES = ("projects", "services", "certifications", "labs", "inquiries")


def now_iso() -> str:
    """UTC timestamp in ISO-8601 with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def row_to_dict(row: sqlite3.Row | None) -> dict[str, Any] | None:
    return dict(row) if row is not None else None


def fetch_all(conn: sqlite3.Connection, sql: str, params: Sequence[Any] = ()) -> list[dict[str, Any]]:
    """Run a query and return every row as a dict."""
    return [dict(row) for row in conn.execute(sql, tuple(params)).fetchall()]


def fetch_one(conn: sqlite3.Connection, sql: str, params: Sequence[Any] = ()) -> dict[str, Any] | None:
    """Run a query and return the first row as a dict, or None."""
    return row_to_dict(conn.execute(sql, tuple(params)).fetchone())


def write_audit(
    conn: sqlite3.Connection,
    action: str,
    entity_type: str,
    entity_id: str | int | None,
    actor_email: str | None = None,
    metadata: dict[str, Any] | None = None,
) -> None:
    """Append one audit_log row. Runs inside the caller's transaction."""
    conn.execute(
        """INSERT INTO audit_log (action, entity_type, entity_id, actor_email, metadata_json, created_at)
           VALUES (?, ?, ?, ?, ?, ?)""",
        (
            action,
            entity_type,
            str(entity_id) if entity_id else None,
            actor_email,
            json.dumps(metadata or {}),
            now_iso(),
        ),
    )
    logger.debug("audit %s %s %s by %s", action, entity_type, entity_id, actor_email)


class Store:
    """Thin wrapper over a SQLite database file."""

    def __init__(self, db_path: Path | None = None):
        """Initialize store.

        Args:
            db_path: Path to the SQLite file (uses .folio/folio.db if not provided)
        """
        if db_path is None:
            db_path = get_paths().db
        self.db_path = Path(db_path)

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """Open a connection; commit on success, roll back on error."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def init_schema(self) -> None:
        """Create all tables and indexes if they don't exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self.connection() as conn:
            conn.executescript(SCHEMA)
        logger.info("Schema ready at %s", self.db_path)

    def fetch_all(self, sql: str, params: Sequence[Any] = ()) -> list[dict[str, Any]]:
        with self.connection() as conn:
            return fetch_all(conn, sql, params)

    def fetch_one(self, sql: str, params: Sequence[Any] = ()) -> dict[str, Any] | None:
        with self.connection() as conn:
            return fetch_one(conn, sql, params)

    def count(self, table: str) -> int:
        """Count rows in one of the known tables."""
        if table not in DASHBOARD_TABLES + ("media_assets", "users", "audit_log"):
            raise ValueError(f"Unknown table: {table!r}")
        row = self.fetch_one(f"SELECT COUNT(*) AS total FROM {table}")
        return int(row["total"]) if row else 0

    def counts(self) -> dict[str, int]:
        """Row counts for the admin dashboard."""
        return {table: self.count(table) for table in DASHBOARD_TABLES}

    def recent_audit(self, limit: int = 500) -> list[dict[str, Any]]:
        return self.fetch_all(
            "SELECT * FROM audit_log ORDER BY created_at DESC, id DESC LIMIT ?",
            (limit,),
        )

    # -- users ---------------------------------------------------------------

    def get_user(self, email: str) -> dict[str, Any] | None:
        return self.fetch_one(
            "SELECT * FROM users WHERE lower(email) = lower(?)",
            (email.strip(),),
        )

    def list_users(self) -> list[dict[str, Any]]:
        return self.fetch_all("SELECT * FROM users ORDER BY email ASC")

    def upsert_user(self, email: str, role: str) -> None:
        with self.connection() as conn:
            conn.execute(
                """INSERT INTO users (email, role, created_at) VALUES (?, ?, ?)
                   ON CONFLICT(email) DO UPDATE SET role = excluded.role""",
                (email.strip().lower(), role, now_iso()),
            )
            write_audit(conn, "upsert", "user", email.strip().lower(), None, {"role": role})

    def remove_user(self, email: str) -> bool:
        with self.connection() as conn:
            cursor = conn.execute("DELETE FROM users WHERE lower(email) = lower(?)", (email.strip(),))
            if cursor.rowcount:
                write_audit(conn, "delete", "user", email.strip().lower())
            return cursor.rowcount > 0
