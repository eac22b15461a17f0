"""Tests for folio.core.projects -- public search, detail, and manifest rows."""

import pytest

from folio.core.projects import (
    ProjectQuery,
    get_published_detail,
    manifest_entries,
    project_names,
    search_published,
)
from folio.core.resources import PROJECTS, create


@pytest.fixture
def seeded(store):
    """Three published projects and one draft."""
    with store.connection() as conn:
        create(conn, PROJECTS, {
            "id": "p1", "slug": "brand", "title": "Brand refresh", "type": "case_study",
            "collections": ["design"], "status": "published", "tags": ["identity"], "tools": ["Figma"],
            "actions": ["Audit"], "next_steps": ["Roll out"],
        })
        create(conn, PROJECTS, {
            "id": "p2", "title": "Cache lab", "summary": "edge caching", "type": "lab",
            "collections": ["engineering"], "status": "published", "featured_order": 1,
        })
        create(conn, PROJECTS, {
            "id": "p3", "title": "Design tokens", "type": "template",
            "collections": ["design-systems"], "status": "published",
        })
        create(conn, PROJECTS, {"id": "p4", "title": "Secret", "collections": ["design"]})
    return store


class TestSearchPublished:
    def test_only_published(self, seeded):
        with seeded.connection() as conn:
            data, total = search_published(conn, ProjectQuery())

        assert total == 3
        assert {row["id"] for row in data} == {"p1", "p2", "p3"}

    def test_featured_first(self, seeded):
        with seeded.connection() as conn:
            data, _ = search_published(conn, ProjectQuery())
        assert data[0]["id"] == "p2"

    def test_collection_matches_whole_element(self, seeded):
        """'design' must not match 'design-systems'."""
        with seeded.connection() as conn:
            data, total = search_published(conn, ProjectQuery(collection="design"))

        assert total == 1
        assert data[0]["id"] == "p1"
        assert data[0]["collections"] == ["design"]

    def test_type_and_text(self, seeded):
        with seeded.connection() as conn:
            _, by_type = search_published(conn, ProjectQuery(type="lab"))
            data, by_text = search_published(conn, ProjectQuery(q="edge"))

        assert by_type == 1
        assert by_text == 1
        assert data[0]["id"] == "p2"

    def test_paging(self, seeded):
        with seeded.connection() as conn:
            page2, total = search_published(conn, ProjectQuery(page=2, page_size=2))

        assert total == 3
        assert len(page2) == 1


class TestDetail:
    def test_by_slug_with_links(self, seeded):
        with seeded.connection() as conn:
            detail = get_published_detail(conn, "brand")

        assert detail["id"] == "p1"
        assert detail["tags"] == ["identity"]
        assert detail["tools"] == ["Figma"]
        assert detail["actions"] == ["Audit"]
        assert detail["nextSteps"] == ["Roll out"]
        assert detail["media"] == []

    def test_draft_is_hidden(self, seeded):
        with seeded.connection() as conn:
            assert get_published_detail(conn, "p4") is None

    def test_unknown_link_kind(self, seeded):
        with seeded.connection() as conn:
            with pytest.raises(ValueError):
                project_names(conn, "p1", "colors")


class TestManifestEntries:
    def test_shape(self, seeded):
        with seeded.connection() as conn:
            conn.execute("INSERT INTO media_assets (key, path, visibility) VALUES ('k/hero.png', '/hero.png', 'public')")
            conn.execute("INSERT INTO project_media (project_id, media_asset_id, sort_order) VALUES ('p1', 1, 0)")
            entries = manifest_entries(conn)

        assert [entry["id"] for entry in entries][0] == "p2"
        brand = next(entry for entry in entries if entry["id"] == "p1")
        assert brand["images"] == ["/hero.png"]
        assert brand["sections"]["actions"] == ["Audit"]
        assert brand["sections"]["next_steps"] == ["Roll out"]
        assert "p4" not in {entry["id"] for entry in entries}
