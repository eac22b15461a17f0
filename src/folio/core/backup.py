"""
Atomic JSON writes with rotated backups.

Used when publishing the static project manifest: the previous manifest is
copied aside with a timestamp before the new one atomically replaces it.
"""

from __future__ import annotations

import contextlib
import json
import os
import re
import shutil
import tempfile
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

DEFAULT_KEEP_COUNT = 10
DEFAULT_KEEP_DAYS = 30
TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"
TIMESTAMP_PATTERN = re.compile(r"_(\d{8}_\d{6})\.")


def parse_backup_timestamp(filename: str) -> datetime | None:
    """Extract timestamp from a backup filename like 'projects_20251212_144234.json'."""
    match = TIMESTAMP_PATTERN.search(filename)
    if match:
        try:
            return datetime.strptime(match.group(1), TIMESTAMP_FORMAT)
        except ValueError:
            return None
    return None


def create_backup(file_path: Path, backup_dir: Path | None = None) -> Path:
    """Copy *file_path* to a timestamped sibling in *backup_dir*.

    Raises:
        FileNotFoundError: If file_path doesn't exist
    """
    file_path = Path(file_path)
    if not file_path.exists():
        raise FileNotFoundError(f"Cannot backup non-existent file: {file_path}")

    if backup_dir is None:
        backup_dir = file_path.parent / "backups"

    backup_dir = Path(backup_dir)
    backup_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime(TIMESTAMP_FORMAT)
    backup_path = backup_dir / f"{file_path.stem}_{timestamp}{file_path.suffix}"
    shutil.copy2(file_path, backup_path)
    return backup_path


def cleanup_old_backups(
    backup_dir: Path,
    pattern: str,
    keep_last: int = DEFAULT_KEEP_COUNT,
    keep_days: int | None = None,
) -> list[Path]:
    """Remove old backups matching *pattern*.

    The newest ``keep_last`` files always survive. Beyond that, a file is
    removed when no age limit is set, or when it is older than ``keep_days``.
    """
    backup_dir = Path(backup_dir)
    if not backup_dir.exists():
        return []

    backups = sorted(
        backup_dir.glob(pattern),
        key=lambda p: p.stat().st_mtime,
        reverse=True,
    )

    cutoff_time = None
    if keep_days is not None:
        cutoff_time = datetime.now() - timedelta(days=keep_days)

    removed = []
    for i, backup in enumerate(backups):
        if i < keep_last:
            continue

        if cutoff_time is None:
            backup.unlink()
            removed.append(backup)
            continue

        timestamp = parse_backup_timestamp(backup.name)
        if timestamp and timestamp < cutoff_time:
            backup.unlink()
            removed.append(backup)

    return removed


def safe_write_json(
    file_path: Path,
    data: dict[str, Any],
    create_backup_first: bool = True,
    backup_dir: Path | None = None,
    keep_backups: int = DEFAULT_KEEP_COUNT,
    keep_days: int | None = DEFAULT_KEEP_DAYS,
) -> Path | None:
    """Write JSON atomically, optionally backing up the previous file first.

    Returns:
        Path to backup file if created, None otherwise

    Raises:
        ValueError: If data cannot be serialized to JSON
        OSError: If file operations fail
    """
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    backup_path = None

    if create_backup_first and file_path.exists():
        backup_path = create_backup(file_path, backup_dir)
        cleanup_old_backups(
            backup_dir or (file_path.parent / "backups"),
            f"{file_path.stem}_*.json",
            keep_backups,
            keep_days,
        )

    try:
        json_str = json.dumps(data, indent=2, ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Cannot serialize data to JSON: {e}") from e

    temp_fd, temp_path = tempfile.mkstemp(
        suffix=".json",
        prefix=f".{file_path.name}.",
        dir=file_path.parent,
        text=True,
    )

    try:
        with os.fdopen(temp_fd, "w", encoding="utf-8") as f:
            f.write(json_str)
            f.write("\n")
            f.flush()
            os.fsync(f.fileno())
        Path(temp_path).replace(file_path)
    except Exception as e:
        with contextlib.suppress(OSError):
            Path(temp_path).unlink()
        raise OSError(f"Failed to write {file_path}: {e}") from e

    return backup_path
