"""
Centralized error hierarchy for Argus Terminal.

Every error carries a machine-readable code, a context dictionary and a
recoverability flag so it can be logged as a structured event. Trade
preconditions, data shortfalls and state drift are modelled here even where
the public API reports them as ``None`` or neutral results instead of raising.
"""

from __future__ import annotations

import sys
import traceback
from datetime import datetime
from typing import Any


def _capture_traceback() -> str:
    """Return the active traceback, or an empty string outside an except block."""

    exc_type, exc_value, exc_tb = sys.exc_info()
    if exc_type is not None and exc_tb is not None:
        return "".join(traceback.format_exception(exc_type, exc_value, exc_tb))
    return ""


class ArgusError(Exception):
    """Base exception class for all Argus Terminal errors"""

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        context: dict[str, Any] | None = None,
        recoverable: bool = True,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.context = context or {}
        self.recoverable = recoverable
        self.timestamp = datetime.now()
        self.traceback = _capture_traceback()
        self.original_error = original_error

    def add_context(self, **kwargs: Any) -> ArgusError:
        """Add additional context to the error"""
        self.context.update(kwargs)
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization"""
        payload = {
            "error_code": self.error_code,
            "message": self.message,
            "context": self.context,
            "recoverable": self.recoverable,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.original_error is not None:
            payload["original_error"] = repr(self.original_error)
        if self.traceback:
            payload["traceback"] = self.traceback
        return payload


class InsufficientDataError(ArgusError):
    """Raised when fewer candles are available than a computation needs"""

    def __init__(self, message: str, required: int, available: int, **kwargs: Any) -> None:
        super().__init__(message, error_code="INSUFFICIENT_DATA", **kwargs)
        self.add_context(required=required, available=available)


class TradeRejectedError(ArgusError):
    """Base class for paper-trade precondition failures"""

    def __init__(self, message: str, symbol: str, **kwargs: Any) -> None:
        kwargs.setdefault("error_code", "TRADE_REJECTED")
        super().__init__(message, **kwargs)
        self.symbol = symbol
        self.add_context(symbol=symbol)


class InsufficientFundsError(TradeRejectedError):
    """Raised when cash cannot cover a buy"""

    def __init__(
        self, message: str, symbol: str, required: float, available: float, **kwargs: Any
    ) -> None:
        super().__init__(message, symbol, error_code="INSUFFICIENT_FUNDS", **kwargs)
        self.add_context(required=required, available=available, shortfall=required - available)


class NoPositionError(TradeRejectedError):
    """Raised when selling a symbol that is not held, or more than is held"""

    def __init__(self, message: str, symbol: str, **kwargs: Any) -> None:
        super().__init__(message, symbol, error_code="NO_POSITION", **kwargs)


class DuplicatePositionError(TradeRejectedError):
    """Raised when buying a symbol that already has an open position"""

    def __init__(self, message: str, symbol: str, **kwargs: Any) -> None:
        super().__init__(message, symbol, error_code="DUPLICATE_POSITION", **kwargs)


class UpstreamFetchError(ArgusError):
    """Raised when the market-data source cannot produce data"""

    def __init__(
        self, message: str, url: str | None = None, status_code: int | None = None, **kwargs: Any
    ) -> None:
        super().__init__(message, error_code="UPSTREAM_FETCH_FAILED", **kwargs)
        if url:
            self.add_context(url=url, status_code=status_code)


class StateDriftError(ArgusError):
    """Persisted portfolio balance disagrees with the reconciliation invariant"""

    def __init__(self, message: str, stored: float, expected: float, **kwargs: Any) -> None:
        super().__init__(message, error_code="STATE_DRIFT", **kwargs)
        self.add_context(stored=stored, expected=expected, drift=stored - expected)


class ValidationError(ArgusError):
    """Raised when input validation fails"""

    def __init__(
        self, message: str, field: str | None = None, value: Any = None, **kwargs: Any
    ) -> None:
        super().__init__(message, error_code="VALIDATION_ERROR", recoverable=False, **kwargs)
        if field:
            self.add_context(field=field, value=value)


class ConfigurationError(ArgusError):
    """Raised when there are configuration issues"""

    def __init__(self, message: str, config_key: str | None = None, **kwargs: Any) -> None:
        super().__init__(message, error_code="CONFIG_ERROR", recoverable=False, **kwargs)
        if config_key:
            self.add_context(config_key=config_key)


class PersistenceError(ArgusError):
    """Base exception for persistence errors"""

    def __init__(self, message: str, path: str | None = None, **kwargs: Any) -> None:
        kwargs.setdefault("error_code", "PERSISTENCE_ERROR")
        super().__init__(message, **kwargs)
        if path:
            self.add_context(path=path)


class WriteError(PersistenceError):
    """Raised when a write operation fails"""

    def __init__(self, message: str, path: str | None = None, **kwargs: Any) -> None:
        super().__init__(message, path, error_code="WRITE_ERROR", **kwargs)


class CorruptionError(PersistenceError):
    """Raised when stored data cannot be decoded"""

    def __init__(self, message: str, path: str | None = None, **kwargs: Any) -> None:
        super().__init__(message, path, error_code="CORRUPTION", recoverable=False, **kwargs)


__all__ = [
    "ArgusError",
    "ConfigurationError",
    "CorruptionError",
    "DuplicatePositionError",
    "InsufficientDataError",
    "InsufficientFundsError",
    "NoPositionError",
    "PersistenceError",
    "StateDriftError",
    "TradeRejectedError",
    "UpstreamFetchError",
    "ValidationError",
    "WriteError",
]
