"""Local state persistence: atomic JSON documents behind a key-value interface."""

from .durability import (
    CHECKSUM_KEY,
    atomic_write_file,
    atomic_write_json,
    compute_checksum,
    read_json,
)
from .store import (
    ALERTS_KEY,
    AUTOPILOT_CONFIG_KEY,
    NOTIFICATIONS_KEY,
    PORTFOLIO_KEY,
    SETTINGS_KEY,
    WATCHLIST_KEY,
    JsonKeyValueStore,
    KeyValueStore,
    MemoryKeyValueStore,
)

__all__ = [
    "ALERTS_KEY",
    "AUTOPILOT_CONFIG_KEY",
    "CHECKSUM_KEY",
    "JsonKeyValueStore",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "NOTIFICATIONS_KEY",
    "PORTFOLIO_KEY",
    "SETTINGS_KEY",
    "WATCHLIST_KEY",
    "atomic_write_file",
    "atomic_write_json",
    "compute_checksum",
    "read_json",
]
