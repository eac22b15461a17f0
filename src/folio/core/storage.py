"""
Object storage for uploaded media.

Blobs live under .folio/media/ keyed by a relative path such as
``uploads/2025/03/1f2e...-hero.png``. The relational store only keeps the key;
public URLs are derived from the configured ``media.public_base``.
"""

from __future__ import annotations

import hashlib
import io
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath
from typing import Any

from PIL import Image, UnidentifiedImageError
from werkzeug.utils import secure_filename

logger = logging.getLogger(__name__)


@dataclass
class StoredObject:
    """Result of a successful put()."""

    key: str
    size_bytes: int
    checksum: str
    content_type: str | None = None


def compute_hash(data: bytes, algorithm: str = "sha256", prefix: bool = True) -> str:
    """Hash a blob, e.g. ``sha256:abc123...``.

    Raises:
        ValueError: If algorithm is not supported
    """
    try:
        hasher = hashlib.new(algorithm)
    except ValueError as e:
        raise ValueError(f"Unsupported hash algorithm: {algorithm}") from e
    hasher.update(data)
    digest = hasher.hexdigest()
    return f"{algorithm}:{digest}" if prefix else digest


def probe_image(data: bytes) -> dict[str, Any]:
    """Width/height/format of an image blob, or {} if it isn't one."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            return {"width": img.width, "height": img.height, "format": img.format}
    except Image.DecompressionBombError as e:
        logger.warning("Not probing oversized image: %s", e)
        return {}
    except (UnidentifiedImageError, OSError):
        return {}


def build_key(filename: str, now: datetime | None = None) -> str:
    """Build a collision-free key for an uploaded file."""
    now = now or datetime.now(timezone.utc)
    safe_name = secure_filename(filename) or "upload.bin"
    return f"uploads/{now:%Y}/{now:%m}/{uuid.uuid4().hex[:12]}-{safe_name}"


class ObjectStore:
    """Filesystem-backed blob store."""

    def __init__(self, root: Path, public_base: str = "/media"):
        self.root = Path(root)
        self.public_base = public_base

    def _path_for(self, key: str) -> Path:
        parts = PurePosixPath(key.lstrip("/")).parts
        if not parts or any(part in ("..", ".") for part in parts):
            raise ValueError(f"Invalid object key: {key!r}")
        return self.root.joinpath(*parts)

    def put(self, key: str, data: bytes, content_type: str | None = None) -> StoredObject:
        path = self._path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        logger.info("Stored %s (%d bytes)", key, len(data))
        return StoredObject(
            key=key,
            size_bytes=len(data),
            checksum=compute_hash(data),
            content_type=content_type,
        )

    def get(self, key: str) -> bytes:
        """Read a blob.

        Raises:
            FileNotFoundError: If no blob has that key
        """
        return self._path_for(key).read_bytes()

    def exists(self, key: str) -> bool:
        try:
            return self._path_for(key).is_file()
        except ValueError:
            return False

    def delete(self, key: str) -> bool:
        """Remove a blob. Returns False if it was already gone."""
        path = self._path_for(key)
        if not path.is_file():
            return False
        path.unlink()
        logger.info("Deleted %s", key)
        return True

    def public_url(self, key: str) -> str:
        return f"{self.public_base.rstrip('/')}/{key.lstrip('/')}"
