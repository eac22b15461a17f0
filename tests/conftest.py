"""Shared test fixtures for folio package."""

import json

import pytest

from folio.core.config import Settings, get_paths
from folio.core.database import Store
from folio.core.storage import ObjectStore
from folio.site.manifest import parse_manifest

ADMIN_TOKEN = "test-admin-token"


@pytest.fixture
def temp_dir(tmp_path):
    """Provide a temporary directory."""
    return tmp_path


@pytest.fixture
def mock_site_root(tmp_path, monkeypatch):
    """Create a mock site structure with .folio/ directory."""
    folio_dir = tmp_path / ".folio"
    folio_dir.mkdir()
    (folio_dir / "media").mkdir()
    (folio_dir / "backups").mkdir()
    (tmp_path / "public").mkdir()

    # Mock get_site_root to return our tmp_path
    from folio.core import config
    # Clear the lru_cache first
    config.get_site_root.cache_clear()
    monkeypatch.setattr(config, "get_site_root", lambda: tmp_path)
    monkeypatch.delenv("FOLIO_ADMIN_TOKEN", raising=False)

    return tmp_path


@pytest.fixture
def store(mock_site_root):
    """An initialized SQLite store inside the mock site."""
    s = Store(get_paths(mock_site_root).db)
    s.init_schema()
    return s


@pytest.fixture
def objects(mock_site_root):
    return ObjectStore(get_paths(mock_site_root).media, "/media")


@pytest.fixture
def settings():
    return Settings(admin_token=ADMIN_TOKEN, media_max_bytes=1024 * 1024)


@pytest.fixture
def app(settings, store, objects):
    from folio.api import create_app

    application = create_app(settings=settings, store=store, objects=objects)
    application.config["TESTING"] = True
    return application


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_headers():
    """Headers for the local bearer-token owner."""
    return {"Authorization": f"Bearer {ADMIN_TOKEN}"}


@pytest.fixture
def identity_headers(store):
    """Factory: identity-header credentials for a user with the given role."""

    def _headers(email: str = "editor@example.com", role: str = "editor") -> dict:
        store.upsert_user(email, role)
        return {"Cf-Access-Authenticated-User-Email": email}

    return _headers


@pytest.fixture
def sample_manifest_data():
    """A small manifest in the projects.json shape."""
    return {
        "projects": [
            {
                "id": "p1",
                "slug": "brand-system-refresh",
                "title": "Brand System Refresh",
                "summary": "Rebuilt a fragmented identity into one system.",
                "type": "case_study",
                "date": "2024-05",
                "collections": ["design", "featured"],
                "tags": ["identity"],
                "tools": ["Figma"],
                "images": ["/a.png", "/b.png"],
                "sections": {
                    "problem": "Inconsistent visuals.",
                    "constraints": "Two-week timeline.",
                    "actions": ["Audit", "Rebuild"],
                    "results": ["One system"],
                    "next_steps": ["Roll out"],
                },
            },
            {
                "id": "p2",
                "slug": "edge-cache-lab",
                "title": "Edge Cache Lab",
                "summary": "Measuring cache hit rates at the edge.",
                "type": "lab",
                "date": "2025-01-10",
                "collections": ["engineering"],
                "tags": ["cdn", "performance"],
                "tools": ["Python", "Grafana"],
                "images": ["/lab-1.png", "/lab-2.png", "/lab-3.png"],
                "sections": {"problem": "", "constraints": "", "actions": [], "results": [], "next_steps": []},
            },
            {
                "id": "p3",
                "slug": "landing-template",
                "title": "Landing Template",
                "summary": "A reusable marketing page starter.",
                "type": "template",
                "date": "2023-11",
                "collections": ["engineering", "featured"],
                "tags": ["html"],
                "tools": ["Tailwind"],
                "images": [],
            },
        ]
    }


@pytest.fixture
def sample_projects(sample_manifest_data):
    return parse_manifest(sample_manifest_data)


@pytest.fixture
def sample_manifest_file(mock_site_root, sample_manifest_data):
    path = mock_site_root / "public" / "projects.json"
    path.write_text(json.dumps(sample_manifest_data, indent=2))
    return path


class FakeClock:
    """Manually advanced monotonic clock for debounce tests."""

    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_site(sample_projects, clock):
    """Factory: an attached, loaded SiteController starting at *fragment*."""
    from folio.site.controller import SiteController
    from folio.site.document import Window

    def _make(fragment: str = "", projects=None):
        site = SiteController(Window(fragment=fragment), clock=clock)
        site.attach()
        site.load(sample_projects if projects is None else projects)
        return site

    return _make
