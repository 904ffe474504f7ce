"""JSON-safe encoding of the paper portfolio (Decimals as strings, datetimes as ISO-8601)."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from argus_terminal.errors import CorruptionError

from .models import PaperPortfolio, PaperTrade, Position, TradeSide, TradeStatus

SCHEMA_VERSION = 1


def _decimal(value: Any) -> Decimal:
    return Decimal(str(value))


def _optional_decimal(value: Any) -> Decimal | None:
    return None if value is None else _decimal(value)


def _optional_datetime(value: Any) -> datetime | None:
    return None if value is None else datetime.fromisoformat(value)


def position_from_dict(payload: dict[str, Any]) -> Position:
    return Position(
        symbol=payload["symbol"],
        quantity=_decimal(payload["quantity"]),
        avg_cost=_decimal(payload["avg_cost"]),
        entry_time=datetime.fromisoformat(payload["entry_time"]),
        stop_loss=_optional_decimal(payload.get("stop_loss")),
        take_profit=_optional_decimal(payload.get("take_profit")),
    )


def trade_from_dict(payload: dict[str, Any]) -> PaperTrade:
    return PaperTrade(
        id=str(payload["id"]),
        symbol=payload["symbol"],
        side=TradeSide(payload["side"]),
        quantity=_decimal(payload["quantity"]),
        entry_price=_decimal(payload["entry_price"]),
        entry_time=datetime.fromisoformat(payload["entry_time"]),
        status=TradeStatus(payload["status"]),
        reason=payload.get("reason", ""),
        confidence=float(payload.get("confidence", 0.0)),
        exit_price=_optional_decimal(payload.get("exit_price")),
        exit_time=_optional_datetime(payload.get("exit_time")),
        pnl=_optional_decimal(payload.get("pnl")),
        pnl_percent=_optional_decimal(payload.get("pnl_percent")),
        stop_loss=_optional_decimal(payload.get("stop_loss")),
        take_profit=_optional_decimal(payload.get("take_profit")),
    )


def portfolio_to_dict(portfolio: PaperPortfolio) -> dict[str, Any]:
    return {
        "version": SCHEMA_VERSION,
        "balance": str(portfolio.balance),
        "initial_balance": str(portfolio.initial_balance),
        "positions": {
            symbol: position.to_dict() for symbol, position in portfolio.positions.items()
        },
        "trades": [trade.to_dict() for trade in portfolio.trades],
        "created_at": portfolio.created_at.isoformat(),
        "updated_at": portfolio.updated_at.isoformat(),
    }


def portfolio_from_dict(payload: Any) -> PaperPortfolio:
    """
    Rebuild a portfolio from :func:`portfolio_to_dict` output.

    Raises:
        CorruptionError: If the document is structurally invalid.
    """
    if not isinstance(payload, dict):
        raise CorruptionError(f"Portfolio document must be an object, got {type(payload).__name__}")
    try:
        positions = {
            symbol: position_from_dict(item)
            for symbol, item in (payload.get("positions") or {}).items()
        }
        return PaperPortfolio(
            balance=_decimal(payload["balance"]),
            initial_balance=_decimal(payload["initial_balance"]),
            positions=positions,
            trades=[trade_from_dict(item) for item in payload.get("trades") or []],
            created_at=datetime.fromisoformat(payload["created_at"]),
            updated_at=datetime.fromisoformat(payload["updated_at"]),
        )
    except (KeyError, TypeError, ValueError, AttributeError, InvalidOperation) as exc:
        raise CorruptionError(f"Malformed portfolio document: {exc!r}", original_error=exc) from exc


__all__ = [
    "SCHEMA_VERSION",
    "portfolio_from_dict",
    "portfolio_to_dict",
    "position_from_dict",
    "trade_from_dict",
]
