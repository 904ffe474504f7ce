"""Load and save :class:`UserSettings` through a key-value store.

The watchlist is stored under its own key so it can change without
rewriting the display preferences.
"""

from __future__ import annotations

from typing import Any

from argus_terminal.config import UserSettings
from argus_terminal.errors import CorruptionError, ValidationError
from argus_terminal.logging import get_logger
from argus_terminal.persistence import SETTINGS_KEY, WATCHLIST_KEY, KeyValueStore

logger = get_logger(__name__, component="preferences")


def load_user_settings(store: KeyValueStore) -> UserSettings:
    """Return the saved preferences, falling back to defaults for unreadable state."""
    changes: dict[str, Any] = {}
    for key in (SETTINGS_KEY, WATCHLIST_KEY):
        try:
            payload = store.load(key)
        except CorruptionError as exc:
            logger.warning("Saved preferences unreadable, using defaults", key=key, error=str(exc))
            continue
        if payload is None:
            continue
        if key == WATCHLIST_KEY:
            changes["watchlist"] = payload
        elif isinstance(payload, dict):
            changes.update({k: v for k, v in payload.items() if k != "watchlist"})

    try:
        return UserSettings().updated(**changes)
    except ValidationError as exc:
        logger.warning("Saved preferences invalid, using defaults", error=exc.message)
        return UserSettings()


def save_user_settings(store: KeyValueStore, settings: UserSettings) -> None:
    payload = settings.to_dict()
    store.save(WATCHLIST_KEY, payload.pop("watchlist"))
    store.save(SETTINGS_KEY, payload)


def update_watchlist(
    store: KeyValueStore,
    add: tuple[str, ...] = (),
    remove: tuple[str, ...] = (),
) -> UserSettings:
    """Add and remove symbols, persist, and return the updated preferences."""
    current = load_user_settings(store)
    dropped = {symbol.upper() for symbol in remove}
    watchlist = [symbol for symbol in current.watchlist if symbol not in dropped]
    watchlist.extend(add)
    updated = current.updated(watchlist=watchlist)
    if updated != current:
        save_user_settings(store, updated)
        logger.info("Watchlist updated", symbols=len(updated.watchlist))
    return updated


__all__ = ["load_user_settings", "save_user_settings", "update_watchlist"]
