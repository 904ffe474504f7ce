"""Typed runtime settings backed by environment variables."""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import ClassVar, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from argus_terminal.data.binance import BINANCE_REST_URL
from argus_terminal.data.stream import BINANCE_WS_URL

_DEFAULT_ENV_FILES: tuple[Path, ...] = (Path(".env"), Path.home() / ".argus" / ".env")


class ArgusSettings(BaseSettings):
    """Application configuration loaded from ``ARGUS_*`` variables and optional `.env` files."""

    model_config: ClassVar[SettingsConfigDict] = SettingsConfigDict(
        env_prefix="ARGUS_",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    state_dir: Path = Field(
        default=Path.home() / ".argus",
        description="Directory holding the persisted portfolio, alerts and preferences.",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_json: bool = Field(default=False, description="Emit console logs as JSON lines.")
    log_file: Path | None = Field(default=None, description="Optional rotating JSON log file.")
    binance_rest_url: str = BINANCE_REST_URL
    binance_ws_url: str = BINANCE_WS_URL
    request_timeout_seconds: float = Field(default=10.0, gt=0)
    initial_balance: Decimal = Field(default=Decimal("10000"), gt=0)

    @property
    def resolved_state_dir(self) -> Path:
        return self.state_dir.expanduser()


def _existing_env_files() -> list[str]:
    return [str(path) for path in _DEFAULT_ENV_FILES if path.exists()]


@lru_cache
def _load_settings(env_files: tuple[str, ...] | None) -> ArgusSettings:
    files = list(env_files) if env_files is not None else _existing_env_files()
    if files:
        return ArgusSettings(_env_file=files)
    return ArgusSettings()


def get_settings(_env_files: Sequence[str] | None = None) -> ArgusSettings:
    """Load settings once per process, respecting `.env` fallbacks."""
    return _load_settings(tuple(_env_files) if _env_files is not None else None)


def clear_settings_cache() -> None:
    _load_settings.cache_clear()


__all__ = ["ArgusSettings", "clear_settings_cache", "get_settings"]
