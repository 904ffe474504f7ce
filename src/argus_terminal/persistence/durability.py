"""
Durable JSON file primitives.

Provides:
- Atomic file writes (write-rename pattern)
- Checksummed JSON documents
- Reads that turn unreadable or malformed files into ``CorruptionError``
"""

from __future__ import annotations

import hashlib
import json
import os
import tempfile
from pathlib import Path
from typing import Any

from argus_terminal.errors import CorruptionError, WriteError
from argus_terminal.logging import get_logger

logger = get_logger(__name__, component="durability")

CHECKSUM_KEY = "_checksum"


def compute_checksum(data: bytes | str | dict[str, Any]) -> str:
    """SHA-256 over canonical JSON (sorted keys, compact separators) or raw content."""
    if isinstance(data, dict):
        data = json.dumps(data, sort_keys=True, separators=(",", ":"))
    if isinstance(data, str):
        data = data.encode("utf-8")
    return hashlib.sha256(data).hexdigest()


def atomic_write_file(path: Path, content: bytes | str, *, fsync: bool = True) -> None:
    """
    Write ``content`` to ``path`` so readers see either the old or the new file.

    A temporary file is created next to the target, flushed (and fsynced
    unless ``fsync`` is False), then renamed over the target. The directory
    is fsynced afterwards so the rename itself survives a crash.

    Raises:
        WriteError: If any step fails; the temporary file is removed.
    """
    path = Path(path)
    mode = "wb" if isinstance(content, bytes) else "w"
    encoding = None if isinstance(content, bytes) else "utf-8"

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, mode, encoding=encoding) as handle:
                handle.write(content)
                if fsync:
                    handle.flush()
                    os.fsync(handle.fileno())

            os.replace(temp_path, path)

            if fsync and hasattr(os, "O_DIRECTORY"):
                dir_fd = os.open(path.parent, os.O_RDONLY | os.O_DIRECTORY)
                try:
                    os.fsync(dir_fd)
                finally:
                    os.close(dir_fd)
        except Exception:
            try:
                os.unlink(temp_path)
            except OSError as cleanup_error:
                logger.debug("Failed to cleanup temp file", path=temp_path, error=str(cleanup_error))
            raise
    except Exception as exc:
        raise WriteError(f"Failed to write {path}: {exc}", path=str(path), original_error=exc) from exc


def atomic_write_json(
    path: Path,
    data: dict[str, Any] | list[Any],
    *,
    include_checksum: bool = False,
    fsync: bool = True,
) -> str | None:
    """Serialise ``data`` and write it atomically; returns the checksum if one was embedded."""
    checksum = None
    if include_checksum and isinstance(data, dict):
        body = {key: value for key, value in data.items() if key != CHECKSUM_KEY}
        checksum = compute_checksum(body)
        data = {**body, CHECKSUM_KEY: checksum}

    try:
        content = json.dumps(data, indent=2, sort_keys=True)
    except (TypeError, ValueError) as exc:
        raise WriteError(
            f"Cannot serialise data for {path}: {exc}", path=str(path), original_error=exc
        ) from exc
    atomic_write_file(path, content, fsync=fsync)
    return checksum


def read_json(path: Path, *, verify_checksum: bool = True) -> Any:
    """
    Load a JSON document written by :func:`atomic_write_json`.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        CorruptionError: If the file is unreadable, not JSON, or fails its
            embedded checksum.
    """
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as handle:
            data = json.load(handle)
    except FileNotFoundError:
        raise
    except json.JSONDecodeError as exc:
        raise CorruptionError(f"Invalid JSON in {path}: {exc}", path=str(path)) from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise CorruptionError(f"Cannot read {path}: {exc}", path=str(path)) from exc

    if not isinstance(data, dict) or CHECKSUM_KEY not in data:
        return data

    stored = data.pop(CHECKSUM_KEY)
    if verify_checksum:
        expected = compute_checksum(data)
        if stored != expected:
            logger.warning(
                "Checksum mismatch in file",
                operation="checksum_verify",
                path=str(path),
                stored=str(stored)[:16],
                expected=expected[:16],
            )
            raise CorruptionError(f"Checksum mismatch in {path}", path=str(path))
    return data


__all__ = [
    "CHECKSUM_KEY",
    "atomic_write_file",
    "atomic_write_json",
    "compute_checksum",
    "read_json",
]
