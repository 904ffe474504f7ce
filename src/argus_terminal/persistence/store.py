"""File-backed key-value store holding one JSON document per key."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from argus_terminal.errors import ValidationError
from argus_terminal.logging import get_logger

from .durability import atomic_write_json, read_json

logger = get_logger(__name__, component="persistence")

PORTFOLIO_KEY = "portfolio"
AUTOPILOT_CONFIG_KEY = "autopilot_config"
WATCHLIST_KEY = "watchlist"
SETTINGS_KEY = "settings"
ALERTS_KEY = "alerts"
NOTIFICATIONS_KEY = "notifications"

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_\-]+$")


@runtime_checkable
class KeyValueStore(Protocol):
    def load(self, key: str) -> Any | None: ...

    def save(self, key: str, value: Any) -> None: ...

    def delete(self, key: str) -> bool: ...


class JsonKeyValueStore:
    """
    One ``<key>.json`` file per key under ``root``.

    Writes are atomic and checksummed, so a crash mid-write leaves the
    previous document in place. ``load`` returns None for a missing key and
    raises ``CorruptionError`` for a damaged one.
    """

    def __init__(self, root: Path | str, *, fsync: bool = True) -> None:
        self.root = Path(root).expanduser()
        self.fsync = fsync

    def _path(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key):
            raise ValidationError(f"Invalid storage key {key!r}", field="key", value=key)
        return self.root / f"{key}.json"

    def load(self, key: str) -> Any | None:
        path = self._path(key)
        try:
            return read_json(path)
        except FileNotFoundError:
            return None

    def save(self, key: str, value: Any) -> None:
        path = self._path(key)
        if isinstance(value, dict):
            atomic_write_json(path, value, include_checksum=True, fsync=self.fsync)
        else:
            atomic_write_json(path, value, fsync=self.fsync)
        logger.debug("Saved state", key=key, path=str(path))

    def delete(self, key: str) -> bool:
        path = self._path(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        logger.debug("Deleted state", key=key, path=str(path))
        return True

    def exists(self, key: str) -> bool:
        return self._path(key).exists()

    def keys(self) -> list[str]:
        if not self.root.exists():
            return []
        return sorted(path.stem for path in self.root.glob("*.json"))


class MemoryKeyValueStore:
    """In-process store with the same contract, for tests and dry runs."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = dict(initial or {})

    def load(self, key: str) -> Any | None:
        return self._data.get(key)

    def save(self, key: str, value: Any) -> None:
        self._data[key] = value

    def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def keys(self) -> list[str]:
        return sorted(self._data)


__all__ = [
    "ALERTS_KEY",
    "AUTOPILOT_CONFIG_KEY",
    "JsonKeyValueStore",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "NOTIFICATIONS_KEY",
    "PORTFOLIO_KEY",
    "SETTINGS_KEY",
    "WATCHLIST_KEY",
]
