"""Correlation IDs for tying together the log lines of one scan cycle or request."""

from __future__ import annotations

import contextvars
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

correlation_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "correlation_id", default=""
)

domain_context_var: contextvars.ContextVar[dict[str, Any] | None] = contextvars.ContextVar(
    "domain_context", default=None
)


def get_correlation_id() -> str:
    """Get the current correlation ID from the context."""
    return correlation_id_var.get()


def generate_correlation_id() -> str:
    return uuid.uuid4().hex[:12]


def get_domain_context() -> dict[str, Any]:
    return dict(domain_context_var.get() or {})


def get_log_context() -> dict[str, Any]:
    """Return the fields every structured log line should carry."""
    context = get_domain_context()
    correlation_id = get_correlation_id()
    if correlation_id:
        context["correlation_id"] = correlation_id
    return context


@contextmanager
def correlation_context(correlation_id: str | None = None, **domain_fields: Any) -> Iterator[str]:
    """Bind a correlation ID and domain fields for the duration of the block.

    Args:
        correlation_id: Optional correlation ID. If None, a new one will be generated.
        **domain_fields: Domain-specific fields to include in the context.

    Yields:
        The active correlation ID.
    """
    active_id = correlation_id or generate_correlation_id()
    token_correlation = correlation_id_var.set(active_id)
    token_domain = domain_context_var.set({**get_domain_context(), **domain_fields})
    try:
        yield active_id
    finally:
        correlation_id_var.reset(token_correlation)
        domain_context_var.reset(token_domain)


@contextmanager
def symbol_context(symbol: str, **additional_fields: Any) -> Iterator[None]:
    """Attach ``symbol`` (and extra fields) to log lines emitted inside the block."""
    token = domain_context_var.set({**get_domain_context(), "symbol": symbol, **additional_fields})
    try:
        yield
    finally:
        domain_context_var.reset(token)


__all__ = [
    "correlation_context",
    "generate_correlation_id",
    "get_correlation_id",
    "get_log_context",
    "symbol_context",
]
