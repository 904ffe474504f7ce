"""Paper-trading state: positions, trade records, the portfolio and its read models."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from argus_terminal.errors import StateDriftError

ZERO = Decimal("0")


def utc_now() -> datetime:
    return datetime.now(UTC)


def new_trade_id() -> str:
    return uuid.uuid4().hex


class TradeSide(Enum):
    BUY = "buy"
    SELL = "sell"


class TradeStatus(Enum):
    OPEN = "open"
    CLOSED = "closed"


@dataclass(frozen=True, slots=True)
class Position:
    """Open holding in one symbol, valued at weighted-average cost."""

    symbol: str
    quantity: Decimal
    avg_cost: Decimal
    entry_time: datetime = field(default_factory=utc_now)
    stop_loss: Decimal | None = None
    take_profit: Decimal | None = None

    @property
    def cost_basis(self) -> Decimal:
        return self.quantity * self.avg_cost

    def to_dict(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "quantity": str(self.quantity),
            "avg_cost": str(self.avg_cost),
            "entry_time": self.entry_time.isoformat(),
            "stop_loss": None if self.stop_loss is None else str(self.stop_loss),
            "take_profit": None if self.take_profit is None else str(self.take_profit),
        }


@dataclass(frozen=True, slots=True)
class PaperTrade:
    """
    Append-only trade record.

    Buys are recorded ``open`` at the fill price. Sells are recorded
    ``closed`` with ``entry_price`` set to the position's average cost and
    carry the realised ``pnl``.
    """

    id: str
    symbol: str
    side: TradeSide
    quantity: Decimal
    entry_price: Decimal
    entry_time: datetime
    status: TradeStatus
    reason: str
    confidence: float = 0.0
    exit_price: Decimal | None = None
    exit_time: datetime | None = None
    pnl: Decimal | None = None
    pnl_percent: Decimal | None = None
    stop_loss: Decimal | None = None
    take_profit: Decimal | None = None

    @property
    def is_closed(self) -> bool:
        return self.status is TradeStatus.CLOSED

    def to_dict(self) -> dict[str, Any]:
        def text(value: Decimal | None) -> str | None:
            return None if value is None else str(value)

        return {
            "id": self.id,
            "symbol": self.symbol,
            "side": self.side.value,
            "quantity": str(self.quantity),
            "entry_price": str(self.entry_price),
            "entry_time": self.entry_time.isoformat(),
            "status": self.status.value,
            "reason": self.reason,
            "confidence": self.confidence,
            "exit_price": text(self.exit_price),
            "exit_time": self.exit_time.isoformat() if self.exit_time else None,
            "pnl": text(self.pnl),
            "pnl_percent": text(self.pnl_percent),
            "stop_loss": text(self.stop_loss),
            "take_profit": text(self.take_profit),
        }


@dataclass
class PaperPortfolio:
    """Mutable portfolio owned by :class:`~argus_terminal.paper.engine.PaperTradingEngine`.

    Invariant: ``balance == initial_balance + realised pnl - open cost basis``.
    """

    balance: Decimal
    initial_balance: Decimal
    positions: dict[str, Position] = field(default_factory=dict)
    trades: list[PaperTrade] = field(default_factory=list)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    @classmethod
    def new(cls, initial_balance: Decimal | float | str = Decimal("10000")) -> PaperPortfolio:
        amount = Decimal(str(initial_balance))
        return cls(balance=amount, initial_balance=amount)

    def realised_pnl(self) -> Decimal:
        return sum(
            (trade.pnl for trade in self.trades if trade.is_closed and trade.pnl is not None),
            ZERO,
        )

    def open_cost(self) -> Decimal:
        return sum((position.cost_basis for position in self.positions.values()), ZERO)

    def expected_balance(self) -> Decimal:
        return self.initial_balance + self.realised_pnl() - self.open_cost()

    def touch(self, now: datetime | None = None) -> None:
        self.updated_at = now or utc_now()


@dataclass(frozen=True, slots=True)
class ReconciliationResult:
    """Outcome of checking a loaded portfolio against its trade history."""

    stored_balance: Decimal
    expected_balance: Decimal
    corrected: bool
    drift: StateDriftError | None = None

    @property
    def difference(self) -> Decimal:
        return self.stored_balance - self.expected_balance


@dataclass(frozen=True, slots=True)
class PositionValuation:
    symbol: str
    quantity: Decimal
    avg_cost: Decimal
    current_price: Decimal
    current_value: Decimal
    pnl: Decimal
    pnl_percent: Decimal
    stop_loss: Decimal | None = None
    take_profit: Decimal | None = None


@dataclass(frozen=True, slots=True)
class PortfolioValue:
    total_value: Decimal
    cash: Decimal
    positions_value: Decimal
    pnl: Decimal
    pnl_percent: Decimal
    positions: tuple[PositionValuation, ...] = ()


@dataclass(frozen=True, slots=True)
class PortfolioSnapshot:
    """Immutable copy of the portfolio handed to listeners and callers."""

    balance: Decimal
    initial_balance: Decimal
    positions: tuple[Position, ...]
    trades: tuple[PaperTrade, ...]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def of(cls, portfolio: PaperPortfolio) -> PortfolioSnapshot:
        return cls(
            balance=portfolio.balance,
            initial_balance=portfolio.initial_balance,
            positions=tuple(portfolio.positions.values()),
            trades=tuple(portfolio.trades),
            created_at=portfolio.created_at,
            updated_at=portfolio.updated_at,
        )

    def position(self, symbol: str) -> Position | None:
        return next((p for p in self.positions if p.symbol == symbol), None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "balance": str(self.balance),
            "initial_balance": str(self.initial_balance),
            "positions": [position.to_dict() for position in self.positions],
            "trades": [trade.to_dict() for trade in self.trades],
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


@dataclass(frozen=True, slots=True)
class PerformanceStats:
    total_trades: int = 0
    winners: int = 0
    losers: int = 0
    win_rate: float = 0.0
    total_pnl: Decimal = ZERO
    avg_win: Decimal = ZERO
    avg_loss: Decimal = ZERO
    profit_factor: float = 0.0
    largest_win: Decimal = ZERO
    largest_loss: Decimal = ZERO

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_trades": self.total_trades,
            "winners": self.winners,
            "losers": self.losers,
            "win_rate": self.win_rate,
            "total_pnl": str(self.total_pnl),
            "avg_win": str(self.avg_win),
            "avg_loss": str(self.avg_loss),
            "profit_factor": self.profit_factor,
            "largest_win": str(self.largest_win),
            "largest_loss": str(self.largest_loss),
        }


@dataclass(frozen=True, slots=True)
class ScanReport:
    """What one AutoPilot cycle looked at and did."""

    started_at: datetime
    finished_at: datetime
    scanned: tuple[str, ...] = ()
    entries: tuple[PaperTrade, ...] = ()
    exits: tuple[PaperTrade, ...] = ()
    errors: tuple[tuple[str, str], ...] = ()
    skipped: str | None = None

    @property
    def duration_seconds(self) -> float:
        return (self.finished_at - self.started_at).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        return {
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat(),
            "scanned": list(self.scanned),
            "entries": [trade.to_dict() for trade in self.entries],
            "exits": [trade.to_dict() for trade in self.exits],
            "errors": [{"symbol": symbol, "error": error} for symbol, error in self.errors],
            "skipped": self.skipped,
        }


__all__ = [
    "PaperPortfolio",
    "PaperTrade",
    "PerformanceStats",
    "PortfolioSnapshot",
    "PortfolioValue",
    "Position",
    "PositionValuation",
    "ReconciliationResult",
    "ScanReport",
    "TradeSide",
    "TradeStatus",
    "ZERO",
    "new_trade_id",
    "utc_now",
]
