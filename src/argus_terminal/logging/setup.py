"""Centralised logging configuration for Argus Terminal."""

from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path
from typing import Literal

from .json_formatter import StructuredJSONFormatter

DEFAULT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def configure_logging(
    level: LogLevel | int = "INFO",
    *,
    json_output: bool = False,
    log_file: Path | None = None,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> None:
    """
    Configure console logging and an optional rotating JSON log file.

    Args:
        level: Root log level name or number.
        json_output: Emit console records as JSON lines instead of plain text.
        log_file: When set, also write JSON lines to this file with rotation.
        max_bytes: Rotation size for ``log_file``.
        backup_count: Number of rotated files to keep.
    """
    logging_level = logging.getLevelName(level.upper()) if isinstance(level, str) else level

    root = logging.getLogger()
    root.setLevel(logging_level)

    console_handlers = [
        h
        for h in root.handlers
        if isinstance(h, logging.StreamHandler)
        and not isinstance(h, logging.FileHandler)
        and type(h).__name__ not in {"LogCaptureHandler", "_LiveLoggingNullHandler"}
    ]
    if not console_handlers:
        console = logging.StreamHandler()
        root.addHandler(console)
        console_handlers = [console]
    for handler in console_handlers:
        handler.setLevel(logging_level)
        handler.setFormatter(
            StructuredJSONFormatter(sort_keys=True)
            if json_output
            else logging.Formatter(DEFAULT_FORMAT)
        )

    if log_file is not None:
        log_file = Path(log_file)
        existing_targets = {
            getattr(handler, "baseFilename", None)
            for handler in root.handlers
            if hasattr(handler, "baseFilename")
        }
        if str(log_file.resolve()) not in existing_targets:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
            )
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(StructuredJSONFormatter(sort_keys=True))
            root.addHandler(file_handler)

    # Third-party transports are chatty at DEBUG
    logging.getLogger("websockets").setLevel(max(logging_level, logging.INFO))
    logging.getLogger("aiohttp").setLevel(max(logging_level, logging.INFO))


__all__ = ["DEFAULT_FORMAT", "configure_logging"]
