"""Tests for folio.core.resources -- generic create/update/list."""

import json
import sqlite3

import pytest

from folio.core.database import fetch_all
from folio.core.resources import (
    LABS,
    PROJECTS,
    RESOURCES,
    SERVICES,
    SITE_BLOCKS,
    create,
    decode_row,
    get_row,
    list_all,
    list_published,
    update,
)


def test_resource_registry():
    assert set(RESOURCES) == {"projects", "services", "certifications", "labs", "site-blocks"}
    assert RESOURCES["site-blocks"].table == "site_blocks"


class TestCreate:
    def test_project_uses_given_id_and_slug_defaults_to_it(self, store):
        with store.connection() as conn:
            new_id = create(conn, PROJECTS, {"id": "p1", "title": "One"}, "owner@x.io")
            row = get_row(conn, PROJECTS, "p1")

        assert new_id == "p1"
        assert row["slug"] == "p1"
        assert row["status"] == "draft"
        assert row["published_at"] is None

    def test_project_generates_id(self, store):
        with store.connection() as conn:
            new_id = create(conn, PROJECTS, {"title": "Anon"})

        assert isinstance(new_id, str)
        assert len(new_id) == 36

    def test_published_stamps_published_at(self, store):
        with store.connection() as conn:
            new_id = create(conn, SERVICES, {"title": "Audit", "status": "published"})
            row = get_row(conn, SERVICES, new_id)

        assert isinstance(new_id, int)
        assert row["published_at"] is not None
        assert row["slug"]

    def test_syncs_tags_and_tools(self, store):
        with store.connection() as conn:
            create(conn, PROJECTS, {"id": "p1", "tags": ["ux", "ux", " "], "tools": ["Figma"]})
            tags = fetch_all(conn, "SELECT tag_id FROM project_tags WHERE project_id = 'p1'")
            tools = fetch_all(conn, "SELECT tool_id FROM project_tools WHERE project_id = 'p1'")

        assert len(tags) == 1
        assert len(tools) == 1

    def test_writes_audit(self, store):
        with store.connection() as conn:
            create(conn, LABS, {"title": "Lab"}, "editor@x.io")

        entry = store.recent_audit(1)[0]
        assert entry["action"] == "create"
        assert entry["entity_type"] == "lab"
        assert entry["actor_email"] == "editor@x.io"

    def test_duplicate_slug_raises(self, store):
        with store.connection() as conn:
            create(conn, SERVICES, {"slug": "same"})
        with pytest.raises(sqlite3.IntegrityError):
            with store.connection() as conn:
                create(conn, SERVICES, {"slug": "same"})

    def test_site_block_data_object(self, store):
        with store.connection() as conn:
            new_id = create(conn, SITE_BLOCKS, {"block_key": "hero", "data": {"cta": "Hire"}})
            row = decode_row(SITE_BLOCKS, get_row(conn, SITE_BLOCKS, new_id))

        assert row["page"] == "home"
        assert row["data"] == {"cta": "Hire"}


class TestUpdate:
    def test_missing_row(self, store):
        with store.connection() as conn:
            assert update(conn, SERVICES, 999, {"title": "x"}) is False

    def test_keeps_published_at_after_unpublish(self, store):
        with store.connection() as conn:
            create(conn, PROJECTS, {"id": "p1", "status": "published"})
            first = get_row(conn, PROJECTS, "p1")["published_at"]
            update(conn, PROJECTS, "p1", {"status": "draft"})
            row = get_row(conn, PROJECTS, "p1")

        assert row["status"] == "draft"
        assert row["published_at"] == first

    def test_republish_keeps_first_published_at(self, store, monkeypatch):
        with store.connection() as conn:
            create(conn, PROJECTS, {"id": "p1", "status": "published"})
            first = get_row(conn, PROJECTS, "p1")["published_at"]

            monkeypatch.setattr("folio.core.resources.now_iso", lambda: "2099-01-01T00:00:00.000Z")
            update(conn, PROJECTS, "p1", {"title": "Edited", "status": "published"})
            row = get_row(conn, PROJECTS, "p1")

        assert row["published_at"] == first
        assert row["updated_at"] == "2099-01-01T00:00:00.000Z"

    def test_first_publish_on_update_stamps(self, store):
        with store.connection() as conn:
            create(conn, PROJECTS, {"id": "p1"})
            update(conn, PROJECTS, "p1", {"status": "published"})
            row = get_row(conn, PROJECTS, "p1")

        assert row["published_at"] is not None

    def test_keeps_slug_when_blank(self, store):
        with store.connection() as conn:
            create(conn, PROJECTS, {"id": "p1", "slug": "nice-slug"})
            update(conn, PROJECTS, "p1", {"title": "Renamed"})
            row = get_row(conn, PROJECTS, "p1")

        assert row["slug"] == "nice-slug"
        assert row["title"] == "Renamed"

    def test_audit_lists_changed_columns(self, store):
        with store.connection() as conn:
            create(conn, PROJECTS, {"id": "p1", "title": "A"})
            update(conn, PROJECTS, "p1", {"title": "B"}, "owner@x.io")

        entry = store.recent_audit(1)[0]
        assert entry["action"] == "update"
        assert "title" in json.loads(entry["metadata_json"])["changed"]

    def test_replaces_tags_only_when_given(self, store):
        with store.connection() as conn:
            create(conn, PROJECTS, {"id": "p1", "tags": ["a", "b"]})
            update(conn, PROJECTS, "p1", {"title": "no tags key"})
            kept = fetch_all(conn, "SELECT * FROM project_tags WHERE project_id = 'p1'")
            update(conn, PROJECTS, "p1", {"tags": ["c"]})
            replaced = fetch_all(conn, "SELECT * FROM project_tags WHERE project_id = 'p1'")

        assert len(kept) == 2
        assert len(replaced) == 1


class TestListing:
    def test_list_published_excludes_drafts_and_orders_featured_first(self, store):
        with store.connection() as conn:
            create(conn, SERVICES, {"slug": "a", "status": "published", "sort_order": 1})
            create(conn, SERVICES, {"slug": "b", "status": "published", "sort_order": 2, "featured_order": 1})
            create(conn, SERVICES, {"slug": "c", "status": "draft"})
            rows = list_published(conn, SERVICES)

        assert [row["slug"] for row in rows] == ["b", "a"]

    def test_list_all_includes_drafts_and_decodes(self, store):
        with store.connection() as conn:
            create(conn, PROJECTS, {"id": "p1", "collections": ["design"]})
            rows = list_all(conn, PROJECTS)

        assert len(rows) == 1
        assert rows[0]["collections"] == ["design"]
