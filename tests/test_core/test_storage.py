"""Tests for folio.core.storage -- blob store and image probing."""

import io
import struct
import zlib
from datetime import datetime

import pytest
from PIL import Image

from folio.core.storage import ObjectStore, build_key, compute_hash, probe_image


def png_bytes(size=(4, 3)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color=(200, 10, 10)).save(buffer, format="PNG")
    return buffer.getvalue()


def oversized_png(width=20000, height=20000) -> bytes:
    """A tiny PNG whose header declares far more pixels than Pillow will open."""

    def chunk(kind: bytes, payload: bytes) -> bytes:
        crc = zlib.crc32(kind + payload) & 0xFFFFFFFF
        return struct.pack(">I", len(payload)) + kind + payload + struct.pack(">I", crc)

    header = struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0)
    return b"\x89PNG\r\n\x1a\n" + chunk(b"IHDR", header) + chunk(b"IDAT", zlib.compress(b"")) + chunk(b"IEND", b"")


class TestHelpers:
    def test_compute_hash_prefix(self):
        assert compute_hash(b"abc").startswith("sha256:")
        assert len(compute_hash(b"abc", prefix=False)) == 64

    def test_compute_hash_unsupported(self):
        with pytest.raises(ValueError, match="Unsupported"):
            compute_hash(b"abc", "nope")

    def test_probe_image(self):
        assert probe_image(png_bytes((4, 3))) == {"width": 4, "height": 3, "format": "PNG"}

    def test_probe_non_image(self):
        assert probe_image(b"%PDF-1.4 not an image") == {}

    def test_probe_oversized_image(self):
        """A header claiming huge dimensions is treated as a plain file."""
        assert probe_image(oversized_png()) == {}

    def test_build_key(self):
        key = build_key("../My Hero.png", now=datetime(2025, 3, 9))

        assert key.startswith("uploads/2025/03/")
        assert key.endswith("-My_Hero.png")
        assert ".." not in key

    def test_build_key_empty_name(self):
        assert build_key("///").endswith("-upload.bin")


class TestObjectStore:
    def test_put_get_delete(self, tmp_path):
        objects = ObjectStore(tmp_path / "media")

        stored = objects.put("uploads/a.txt", b"hello", "text/plain")

        assert stored.size_bytes == 5
        assert stored.checksum == compute_hash(b"hello")
        assert objects.exists("uploads/a.txt")
        assert objects.get("uploads/a.txt") == b"hello"
        assert objects.delete("uploads/a.txt") is True
        assert objects.delete("uploads/a.txt") is False
        assert not objects.exists("uploads/a.txt")

    def test_get_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ObjectStore(tmp_path).get("nothing.bin")

    @pytest.mark.parametrize("key", ["../escape.txt", "a/../../b", ""])
    def test_rejects_traversal(self, tmp_path, key):
        objects = ObjectStore(tmp_path)
        with pytest.raises(ValueError):
            objects.put(key, b"x")
        assert objects.exists(key) is False

    def test_public_url(self, tmp_path):
        assert ObjectStore(tmp_path, "/media/").public_url("/uploads/a.png") == "/media/uploads/a.png"
