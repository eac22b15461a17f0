"""Tests for admin content CRUD, dashboard, and audit endpoints."""

import json


class TestDashboard:
    def test_counts(self, client, auth_headers):
        client.post("/api/inquiries", json={"email": "a@b.co", "message": "Hi"})

        counts = client.get("/api/admin/dashboard", headers=auth_headers).get_json()["counts"]

        assert counts["inquiries"] == 1
        assert counts["projects"] == 0
        assert set(counts) == {"projects", "services", "certifications", "labs", "inquiries"}


class TestCreate:
    def test_create_project(self, client, auth_headers, store):
        response = client.post(
            "/api/admin/projects",
            json={"id": "p1", "title": "Brand", "collections": ["design"], "status": "published"},
            headers=auth_headers,
        )

        assert response.status_code == 201
        assert response.get_json() == {"ok": True, "id": "p1"}
        assert client.get("/api/projects/p1").status_code == 200

        entry = store.recent_audit(1)[0]
        assert entry["actor_email"] == "admin@localhost"

    def test_create_service_returns_int_id(self, client, auth_headers):
        body = client.post("/api/admin/services", json={"title": "Audit"}, headers=auth_headers).get_json()
        assert isinstance(body["id"], int)

    def test_invalid_choice_is_400(self, client, auth_headers, store):
        response = client.post("/api/admin/projects", json={"type": "poster"}, headers=auth_headers)

        assert response.status_code == 400
        assert response.get_json()["error"].startswith("type:")
        assert store.count("projects") == 0

    def test_invalid_json_text_is_400(self, client, auth_headers):
        response = client.post("/api/admin/site-blocks", json={"data": "{nope"}, headers=auth_headers)
        assert response.status_code == 400

    def test_duplicate_is_409(self, client, auth_headers):
        client.post("/api/admin/projects", json={"id": "p1"}, headers=auth_headers)
        response = client.post("/api/admin/projects", json={"id": "p1"}, headers=auth_headers)

        assert response.status_code == 409

    def test_unknown_resource_is_404(self, client, auth_headers):
        response = client.post("/api/admin/widgets", json={}, headers=auth_headers)

        assert response.status_code == 404
        assert response.get_json() == {"error": "Unknown resource: widgets"}

    def test_non_json_body_is_400(self, client, auth_headers):
        response = client.post("/api/admin/services", data="title=x", headers=auth_headers)
        assert response.status_code == 400


class TestListAndUpdate:
    def test_admin_list_includes_drafts(self, client, auth_headers):
        client.post("/api/admin/services", json={"slug": "draft-one"}, headers=auth_headers)

        data = client.get("/api/admin/services", headers=auth_headers).get_json()["data"]

        assert [row["slug"] for row in data] == ["draft-one"]
        assert client.get("/api/services").get_json()["data"] == []

    def test_update(self, client, auth_headers):
        client.post("/api/admin/projects", json={"id": "p1", "title": "Old"}, headers=auth_headers)

        response = client.put(
            "/api/admin/projects/p1", json={"title": "New", "status": "published"}, headers=auth_headers
        )

        assert response.get_json() == {"ok": True}
        assert client.get("/api/projects/p1").get_json()["title"] == "New"

    def test_update_missing_is_404(self, client, auth_headers):
        response = client.put("/api/admin/projects/nope", json={"title": "x"}, headers=auth_headers)

        assert response.status_code == 404
        assert response.get_json() == {"error": "Project not found"}

    def test_update_site_block_missing_message(self, client, auth_headers):
        response = client.put("/api/admin/site-blocks/42", json={}, headers=auth_headers)
        assert response.get_json() == {"error": "Site block not found"}

    def test_editor_identity_is_recorded(self, client, identity_headers, store):
        headers = identity_headers("ed@example.com", "editor")

        client.post("/api/admin/labs", json={"title": "Lab"}, headers=headers)

        assert store.recent_audit(1)[0]["actor_email"] == "ed@example.com"


class TestAudit:
    def test_audit_feed(self, client, auth_headers):
        client.post("/api/admin/projects", json={"id": "p1"}, headers=auth_headers)
        client.put("/api/admin/projects/p1", json={"title": "T"}, headers=auth_headers)

        data = client.get("/api/admin/audit", headers=auth_headers).get_json()["data"]

        assert [row["action"] for row in data[:2]] == ["update", "create"]
        assert json.loads(data[0]["metadata_json"])["changed"]
