"""Tests for folio.site.manifest -- parsing, loading, fetching, validation."""

import json
from unittest.mock import MagicMock, patch

import pytest
import requests

from folio.site.manifest import (
    ManifestError,
    Project,
    fetch_manifest,
    load_manifest,
    parse_manifest,
    validate_manifest,
)

MANIFEST_URL = "https://example.com/projects.json"


class TestParse:
    def test_parses_projects(self, sample_manifest_data):
        projects = parse_manifest(sample_manifest_data)

        assert [p.id for p in projects] == ["p1", "p2", "p3"]
        assert projects[0].images == ["/a.png", "/b.png"]
        assert projects[0].sections.next_steps == ["Roll out"]
        assert projects[2].sections.problem == ""

    def test_defaults(self):
        project = Project.from_dict({"id": " p9 "})

        assert project.id == "p9"
        assert project.slug == "p9"
        assert project.type == "case_study"
        assert project.tags == []

    def test_non_list_fields_become_empty(self):
        project = Project.from_dict({"id": "p", "tags": "ux", "sections": "nope"})
        assert project.tags == []
        assert project.sections.actions == []

    def test_duplicate_ids(self):
        with pytest.raises(ManifestError, match="Duplicate project id: p1"):
            parse_manifest({"projects": [{"id": "p1"}, {"id": "p1"}]})

    def test_missing_id(self):
        with pytest.raises(ManifestError, match="without an id"):
            parse_manifest({"projects": [{"title": "Untitled"}]})

    @pytest.mark.parametrize("data", [[], {"projects": {}}, "x", {"projects": [1]}])
    def test_wrong_shape(self, data):
        with pytest.raises(ManifestError):
            parse_manifest(data)

    def test_empty_document(self):
        assert parse_manifest({}) == []


class TestLoad:
    def test_from_file(self, sample_manifest_file):
        assert len(load_manifest(sample_manifest_file)) == 3

    def test_missing_file(self, tmp_path):
        with pytest.raises(ManifestError, match="Cannot read"):
            load_manifest(tmp_path / "projects.json")

    def test_bad_json(self, tmp_path):
        path = tmp_path / "projects.json"
        path.write_text("{oops")
        with pytest.raises(ManifestError, match="not valid JSON"):
            load_manifest(path)


class TestFetch:
    @patch("requests.Session.request")
    def test_success(self, mock_request, sample_manifest_data):
        mock_response = MagicMock()
        mock_response.ok = True
        mock_response.status_code = 200
        mock_response.json.return_value = sample_manifest_data
        mock_request.return_value = mock_response

        projects = fetch_manifest(MANIFEST_URL)

        assert [p.id for p in projects] == ["p1", "p2", "p3"]
        args, kwargs = mock_request.call_args
        assert args[:2] == ("GET", MANIFEST_URL)
        assert kwargs["timeout"] == 10

    @patch("requests.Session.request")
    def test_http_error(self, mock_request):
        mock_response = MagicMock()
        mock_response.ok = False
        mock_response.status_code = 404
        mock_request.return_value = mock_response

        with pytest.raises(ManifestError, match="HTTP 404"):
            fetch_manifest(MANIFEST_URL)

    @patch("requests.Session.request")
    def test_network_error(self, mock_request):
        mock_request.side_effect = requests.ConnectionError("refused")

        with pytest.raises(ManifestError, match="Unable to load"):
            fetch_manifest(MANIFEST_URL)

    @patch("requests.Session.request")
    def test_not_json(self, mock_request):
        mock_response = MagicMock()
        mock_response.ok = True
        mock_response.json.side_effect = json.JSONDecodeError("x", "", 0)
        mock_request.return_value = mock_response

        with pytest.raises(ManifestError, match="did not return JSON"):
            fetch_manifest(MANIFEST_URL)

    def test_uses_given_session(self, sample_manifest_data):
        session = MagicMock()
        session.get.return_value.ok = True
        session.get.return_value.json.return_value = sample_manifest_data

        fetch_manifest(MANIFEST_URL, session=session, timeout=3)

        session.get.assert_called_once_with(MANIFEST_URL, timeout=3)


class TestValidate:
    def test_valid(self, sample_manifest_data):
        assert validate_manifest(sample_manifest_data) == []

    def test_collects_every_issue(self):
        issues = validate_manifest(
            {
                "projects": [
                    {"id": "p1", "title": "A", "type": "case_study", "date": "2024"},
                    {"id": "p1", "title": "", "type": "poster", "date": "May 2024", "tags": "x"},
                    "nope",
                ]
            }
        )

        assert issues == [
            "projects[1]: duplicate id 'p1'",
            "projects[1]: missing title",
            "projects[1]: unknown type 'poster'",
            "projects[1]: date 'May 2024' is not YYYY, YYYY-MM, or YYYY-MM-DD",
            "projects[1]: tags must be a list",
            "projects[2]: not an object",
        ]

    def test_wrong_shape(self):
        assert validate_manifest([]) == ['Manifest must be an object with a "projects" list']
