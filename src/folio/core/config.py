"""
Configuration and path management.

Provides site root detection and standard paths for the portfolio site.
Uses .folio/ directory for folio-specific data (database, media blobs, backups).

Resolution order for site root:
  1. FOLIO_SITE_ROOT environment variable (highest priority)
  2. Walk up from cwd looking for .folio/ directory
  3. Global config file (~/.config/folio/config.yaml) site_root key
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml

ADMIN_TOKEN_ENV = "FOLIO_ADMIN_TOKEN"


@dataclass(frozen=True)
class SitePaths:
    """Standard paths for the site and folio data."""

    root: Path
    folio_dir: Path

    # Data files (in .folio/)
    db: Path
    media: Path
    config_file: Path
    backups: Path

    # Static site output
    public: Path
    manifest: Path


@dataclass(frozen=True)
class Settings:
    """Runtime settings consumed by the API and the CLI."""

    host: str = "127.0.0.1"
    port: int = 8787
    admin_token: str | None = None
    identity_header: str = "Cf-Access-Authenticated-User-Email"
    media_public_base: str = "/media"
    media_max_bytes: int = 20 * 1024 * 1024
    default_page_size: int = 20
    max_page_size: int = 100


def get_global_config_path() -> Path:
    """Return the path to the global folio config file.

    Respects XDG_CONFIG_HOME if set, otherwise defaults to ~/.config/folio/config.yaml.
    """
    xdg_config_home = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config_home:
        base = Path(xdg_config_home)
    else:
        base = Path.home() / ".config"
    return base / "folio" / "config.yaml"


def load_global_config() -> dict:
    """Load the global folio configuration.

    Returns:
        Configuration dict, or empty dict if file is missing or invalid.
    """
    config_path = get_global_config_path()
    if not config_path.is_file():
        return {}
    try:
        text = config_path.read_text(encoding="utf-8")
        data = yaml.safe_load(text)
        if isinstance(data, dict):
            return data
        return {}
    except (OSError, yaml.YAMLError):
        return {}


def _walk_up_for_folio(start_path: Path) -> Path | None:
    """Walk up directory tree looking for .folio/ directory."""
    current = start_path.resolve()
    while current != current.parent:
        if (current / ".folio").is_dir():
            return current
        current = current.parent
    return None


def find_site_root(start_path: Path | None = None) -> Path:
    """Find site root using 3-tier resolution.

    Args:
        start_path: Starting path for .folio/ directory walk (defaults to cwd)

    Returns:
        Path to site root

    Raises:
        FileNotFoundError: If .folio/ directory not found by any method
    """
    env_root = os.environ.get("FOLIO_SITE_ROOT")
    if env_root:
        env_path = Path(env_root).resolve()
        if (env_path / ".folio").is_dir():
            return env_path
        raise FileNotFoundError(
            f"FOLIO_SITE_ROOT={env_root} does not contain a .folio/ directory."
        )

    if start_path is None:
        start_path = Path.cwd()
    result = _walk_up_for_folio(Path(start_path))
    if result is not None:
        return result

    global_config = load_global_config()
    site_root_str = global_config.get("site_root")
    if site_root_str:
        global_path = Path(site_root_str).expanduser().resolve()
        if (global_path / ".folio").is_dir():
            return global_path
        raise FileNotFoundError(
            f"Global config site_root={site_root_str} does not contain a .folio/ directory."
        )

    raise FileNotFoundError(
        f"Could not find .folio/ directory starting from {start_path}. "
        f"Run 'folio init' to initialize, set FOLIO_SITE_ROOT, or configure "
        f"site_root in {get_global_config_path()}."
    )


@lru_cache(maxsize=1)
def get_site_root() -> Path:
    """Get the cached site root path."""
    return find_site_root()


def get_paths(site_root: Path | None = None) -> SitePaths:
    """Get all standard paths for the site.

    Args:
        site_root: Site root path (uses cached default if not provided)
    """
    if site_root is None:
        site_root = get_site_root()

    site_root = Path(site_root)
    folio_dir = site_root / ".folio"

    return SitePaths(
        root=site_root,
        folio_dir=folio_dir,
        db=folio_dir / "folio.db",
        media=folio_dir / "media",
        config_file=folio_dir / "config.yaml",
        backups=folio_dir / "backups",
        public=site_root / "public",
        manifest=site_root / "public" / "projects.json",
    )


def read_config_file(config_path: Path) -> dict[str, Any]:
    """Read a config file (YAML, or JSON for backwards compatibility)."""
    if not config_path.exists():
        return {}

    content = config_path.read_text()
    if not content.strip():
        return {}

    if content.strip().startswith("{"):
        result: dict[str, Any] = json.loads(content)
        return result
    loaded = yaml.safe_load(content)
    if isinstance(loaded, dict):
        return loaded
    return {}


def _dotted(config: dict[str, Any], key: str, default: Any) -> Any:
    current: Any = config
    for part in key.split("."):
        if isinstance(current, dict) and part in current:
            current = current[part]
        else:
            return default
    return current


def load_settings(paths: SitePaths | None = None) -> Settings:
    """Build Settings from .folio/config.yaml and the environment.

    The admin token is only ever read from the environment.
    """
    if paths is None:
        paths = get_paths()
    config = read_config_file(paths.config_file)
    defaults = Settings()

    return Settings(
        host=str(_dotted(config, "server.host", defaults.host)),
        port=int(_dotted(config, "server.port", defaults.port)),
        admin_token=os.environ.get(ADMIN_TOKEN_ENV) or None,
        identity_header=str(_dotted(config, "auth.identity_header", defaults.identity_header)),
        media_public_base=str(_dotted(config, "media.public_base", defaults.media_public_base)),
        media_max_bytes=int(_dotted(config, "media.max_bytes", defaults.media_max_bytes)),
        default_page_size=int(_dotted(config, "api.default_page_size", defaults.default_page_size)),
        max_page_size=int(_dotted(config, "api.max_page_size", defaults.max_page_size)),
    )
