"""JSON logging formatter with correlation ID and domain field support."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

from .correlation import get_log_context

_STANDARD_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "message",
        "asctime",
        "taskName",
    }
)


class StructuredJSONFormatter(logging.Formatter):
    """Render log records as single-line JSON objects."""

    SENSITIVE_KEYS = frozenset({"api_key", "secret", "password", "token", "authorization"})

    def __init__(
        self,
        *,
        ensure_ascii: bool = False,
        sort_keys: bool = False,
        timestamp_format: str = "%Y-%m-%dT%H:%M:%S.%fZ",
    ) -> None:
        super().__init__()
        self.ensure_ascii = ensure_ascii
        self.sort_keys = sort_keys
        self.timestamp_format = timestamp_format

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record as JSON with correlation context.

        Args:
            record: The log record to format

        Returns:
            JSON-formatted log entry as a string
        """
        log_entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).strftime(
                self.timestamp_format
            ),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName if record.funcName is not None else "<module>",
            "line": record.lineno,
        }

        log_entry.update(get_log_context())

        if record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            log_entry["exception"] = {
                "type": exc_type.__name__ if exc_type else "Unknown",
                "message": str(exc_value) if exc_value else "",
            }

        for key, value in record.__dict__.items():
            if key in _STANDARD_ATTRS or key.startswith("_") or key in log_entry:
                continue
            log_entry[key] = value

        log_entry = self._redact_data(log_entry)

        try:
            return json.dumps(
                log_entry,
                ensure_ascii=self.ensure_ascii,
                sort_keys=self.sort_keys,
                cls=DecimalEncoder,
            )
        except (TypeError, ValueError) as exc:
            fallback_entry = {
                "timestamp": log_entry["timestamp"],
                "level": log_entry["level"],
                "logger": log_entry["logger"],
                "message": f"JSON serialization failed: {exc}",
                "original_message": str(log_entry.get("message", "")),
            }
            return json.dumps(fallback_entry, ensure_ascii=self.ensure_ascii, default=str)

    def _redact_data(self, data: Any) -> Any:
        """Recursively redact sensitive keys in dictionaries."""
        if isinstance(data, dict):
            return {
                k: self._redact_data(v) if k.lower() not in self.SENSITIVE_KEYS else "[REDACTED]"
                for k, v in data.items()
            }
        if isinstance(data, list):
            return [self._redact_data(item) for item in data]
        return data


class DecimalEncoder(json.JSONEncoder):
    """JSON encoder that handles Decimal, datetime and enum values."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, Decimal):
            # Very large or very small decimals keep their string form to avoid precision loss
            if obj.adjusted() > 15 or obj.adjusted() < -15:
                return str(obj)
            return float(obj)
        if isinstance(obj, datetime):
            return obj.isoformat()
        if hasattr(obj, "value") and isinstance(obj.value, (str, int)):
            return obj.value
        return str(obj)


__all__ = ["DecimalEncoder", "StructuredJSONFormatter"]
