"""
Structured logging helpers.

``StructuredLogger`` turns keyword arguments into ``extra`` fields so that
``logger.info("Opened position", symbol="BTCUSDT", quantity=0.02)`` reaches the
JSON formatter as separate keys instead of being baked into the message.
"""

from __future__ import annotations

import contextlib
import logging
import time
from collections.abc import Generator
from typing import Any

_STANDARD_KWARGS = ("exc_info", "stack_info", "stacklevel")


class StructuredLogger:
    def __init__(self, name: str, component: str | None = None):
        self.logger = logging.getLogger(name)
        self.component = component
        self.name = name

    def _split_kwargs(self, kwargs: dict[str, Any]) -> tuple[dict[str, Any], dict[str, Any]]:
        standard: dict[str, Any] = {}
        extra: dict[str, Any] = {}
        for key, value in kwargs.items():
            if key in _STANDARD_KWARGS:
                standard[key] = value
            else:
                extra[key] = value
        if self.component:
            extra["component"] = self.component
        # stacklevel=3 points records at the caller instead of this wrapper
        standard.setdefault("stacklevel", 3)
        return standard, extra

    def _log(self, level: int, msg: str, args: tuple[Any, ...], kwargs: dict[str, Any]) -> None:
        standard, extra = self._split_kwargs(kwargs)
        self.logger.log(level, msg, *args, extra=extra, **standard)

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.DEBUG, msg, args, kwargs)

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.INFO, msg, args, kwargs)

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.WARNING, msg, args, kwargs)

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.ERROR, msg, args, kwargs)

    def critical(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.CRITICAL, msg, args, kwargs)

    def exception(self, msg: str, *args: Any, **kwargs: Any) -> None:
        kwargs["exc_info"] = True
        self._log(logging.ERROR, msg, args, kwargs)

    def isEnabledFor(self, level: int) -> bool:  # noqa: N802 - mirrors logging.Logger
        return self.logger.isEnabledFor(level)


def get_logger(name: str, component: str | None = None) -> StructuredLogger:
    return StructuredLogger(name, component=component)


@contextlib.contextmanager
def log_operation(
    operation: str, logger: StructuredLogger | None = None, **context: Any
) -> Generator[None, None, None]:
    """Log the start and completion (with duration) of ``operation``."""
    logger = logger or get_logger("argus_terminal.operation")
    logger.debug(f"Started {operation}", operation=operation, **context)
    start_time = time.perf_counter()
    try:
        yield
    finally:
        duration = (time.perf_counter() - start_time) * 1000
        logger.info(
            f"Completed {operation}",
            operation=operation,
            duration_ms=round(duration, 2),
            **context,
        )


def log_trade_event(
    event: str, symbol: str, logger: StructuredLogger | None = None, **kwargs: Any
) -> None:
    logger = logger or get_logger("argus_terminal.trading")
    logger.info(event, operation="trade_event", symbol=symbol, **kwargs)


__all__ = ["StructuredLogger", "get_logger", "log_operation", "log_trade_event"]
