"""Logging setup and structured logging helpers."""

from .correlation import correlation_context, get_correlation_id, symbol_context
from .json_formatter import DecimalEncoder, StructuredJSONFormatter
from .patterns import StructuredLogger, get_logger, log_operation, log_trade_event
from .setup import DEFAULT_FORMAT, configure_logging

__all__ = [
    "DEFAULT_FORMAT",
    "DecimalEncoder",
    "StructuredJSONFormatter",
    "StructuredLogger",
    "configure_logging",
    "correlation_context",
    "get_correlation_id",
    "get_logger",
    "log_operation",
    "log_trade_event",
    "symbol_context",
]
