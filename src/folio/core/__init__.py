"""Core utilities for folio."""

from folio.core.backup import DEFAULT_KEEP_COUNT, DEFAULT_KEEP_DAYS, safe_write_json
from folio.core.config import Settings, get_paths, get_site_root, load_settings
from folio.core.database import Store, write_audit
from folio.core.storage import ObjectStore

__all__ = [
    # Backup
    "safe_write_json",
    "DEFAULT_KEEP_COUNT",
    "DEFAULT_KEEP_DAYS",
    # Config
    "Settings",
    "get_site_root",
    "get_paths",
    "load_settings",
    # Storage
    "Store",
    "ObjectStore",
    "write_audit",
]
