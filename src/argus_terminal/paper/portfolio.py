"""
Ledger operations on a :class:`PaperPortfolio`.

These functions hold the bookkeeping rules and nothing else: no I/O, no
locking and no logging. Precondition failures raise the
``TradeRejectedError`` family; the engine turns those into "no trade".
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from decimal import Decimal

from argus_terminal.errors import (
    DuplicatePositionError,
    InsufficientFundsError,
    NoPositionError,
    StateDriftError,
    ValidationError,
)

from .models import (
    ZERO,
    PaperPortfolio,
    PaperTrade,
    PerformanceStats,
    Position,
    ReconciliationResult,
    TradeSide,
    TradeStatus,
    new_trade_id,
    utc_now,
)

DUST_QUANTITY = Decimal("0.000001")
DRIFT_TOLERANCE = Decimal("1")
HUNDRED = Decimal("100")


def to_decimal(value: Decimal | float | int | str) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def check_buy(
    portfolio: PaperPortfolio, symbol: str, amount: Decimal, scale_in: bool = False
) -> None:
    """Raise if a buy of ``amount`` in ``symbol`` must be rejected before pricing."""
    if amount <= 0:
        raise ValidationError(
            f"Buy amount must be positive, got {amount}", field="amount", value=str(amount)
        )
    if symbol in portfolio.positions and not scale_in:
        raise DuplicatePositionError(f"Position already exists for {symbol}", symbol)
    if portfolio.balance < amount:
        raise InsufficientFundsError(
            f"Insufficient balance for {symbol}",
            symbol,
            required=float(amount),
            available=float(portfolio.balance),
        )


def open_position(
    portfolio: PaperPortfolio,
    symbol: str,
    amount: Decimal,
    price: Decimal,
    *,
    reason: str,
    confidence: float = 0.0,
    stop_loss: Decimal | None = None,
    take_profit: Decimal | None = None,
    scale_in: bool = False,
    now: datetime | None = None,
) -> PaperTrade:
    """
    Spend ``amount`` of cash on ``symbol`` at ``price``.

    Scaling into an existing position merges at weighted-average cost; new
    stop/target levels replace the old ones only when given.
    """
    check_buy(portfolio, symbol, amount, scale_in)
    if price <= 0:
        raise ValidationError(f"Price must be positive, got {price}", field="price", value=str(price))

    now = now or utc_now()
    quantity = amount / price
    portfolio.balance -= amount

    existing = portfolio.positions.get(symbol)
    if existing is None:
        portfolio.positions[symbol] = Position(
            symbol=symbol,
            quantity=quantity,
            avg_cost=price,
            entry_time=now,
            stop_loss=stop_loss,
            take_profit=take_profit,
        )
    else:
        total_quantity = existing.quantity + quantity
        portfolio.positions[symbol] = Position(
            symbol=symbol,
            quantity=total_quantity,
            avg_cost=(existing.cost_basis + amount) / total_quantity,
            entry_time=existing.entry_time,
            stop_loss=stop_loss if stop_loss is not None else existing.stop_loss,
            take_profit=take_profit if take_profit is not None else existing.take_profit,
        )

    trade = PaperTrade(
        id=new_trade_id(),
        symbol=symbol,
        side=TradeSide.BUY,
        quantity=quantity,
        entry_price=price,
        entry_time=now,
        status=TradeStatus.OPEN,
        reason=reason,
        confidence=confidence,
        stop_loss=stop_loss,
        take_profit=take_profit,
    )
    portfolio.trades.append(trade)
    portfolio.touch(now)
    return trade


def check_sell(
    portfolio: PaperPortfolio, symbol: str, quantity: Decimal | None = None
) -> Position:
    """Return the position to sell from, or raise if the sell must be rejected."""
    position = portfolio.positions.get(symbol)
    if position is None:
        raise NoPositionError(f"No position in {symbol}", symbol)
    if quantity is not None:
        if quantity <= 0:
            raise ValidationError(
                f"Sell quantity must be positive, got {quantity}",
                field="quantity",
                value=str(quantity),
            )
        if quantity > position.quantity:
            raise NoPositionError(
                f"Insufficient {symbol} quantity: holding {position.quantity}, asked {quantity}",
                symbol,
            )
    return position


def close_position(
    portfolio: PaperPortfolio,
    symbol: str,
    price: Decimal,
    quantity: Decimal | None = None,
    *,
    reason: str = "Manual sell",
    now: datetime | None = None,
) -> PaperTrade:
    """Sell ``quantity`` (default: all) of ``symbol`` at ``price`` and realise pnl."""
    position = check_sell(portfolio, symbol, quantity)
    if price <= 0:
        raise ValidationError(f"Price must be positive, got {price}", field="price", value=str(price))

    now = now or utc_now()
    sell_quantity = position.quantity if quantity is None else quantity
    remaining = position.quantity - sell_quantity
    if remaining <= DUST_QUANTITY:
        # never leave an untradeable remainder behind
        sell_quantity, remaining = position.quantity, ZERO

    proceeds = sell_quantity * price
    cost = sell_quantity * position.avg_cost
    pnl = proceeds - cost
    pnl_percent = pnl / cost * HUNDRED if cost else ZERO

    portfolio.balance += proceeds
    if remaining > 0:
        portfolio.positions[symbol] = Position(
            symbol=symbol,
            quantity=remaining,
            avg_cost=position.avg_cost,
            entry_time=position.entry_time,
            stop_loss=position.stop_loss,
            take_profit=position.take_profit,
        )
    else:
        del portfolio.positions[symbol]

    trade = PaperTrade(
        id=new_trade_id(),
        symbol=symbol,
        side=TradeSide.SELL,
        quantity=sell_quantity,
        entry_price=position.avg_cost,
        entry_time=position.entry_time,
        status=TradeStatus.CLOSED,
        reason=reason,
        exit_price=price,
        exit_time=now,
        pnl=pnl,
        pnl_percent=pnl_percent,
    )
    portfolio.trades.append(trade)
    portfolio.touch(now)
    return trade


def reconcile(
    portfolio: PaperPortfolio, tolerance: Decimal = DRIFT_TOLERANCE
) -> ReconciliationResult:
    """Overwrite the cash balance when it drifts more than ``tolerance`` from the ledger."""
    stored = portfolio.balance
    expected = portfolio.expected_balance()
    if abs(stored - expected) <= tolerance:
        return ReconciliationResult(stored, expected, corrected=False)

    drift = StateDriftError(
        f"Portfolio balance {stored} disagrees with ledger balance {expected}",
        stored=float(stored),
        expected=float(expected),
    )
    portfolio.balance = expected
    portfolio.touch()
    return ReconciliationResult(stored, expected, corrected=True, drift=drift)


def performance_stats(trades: Iterable[PaperTrade]) -> PerformanceStats:
    """Win/loss statistics over closed trades."""
    closed = [trade for trade in trades if trade.is_closed]
    pnls = [trade.pnl if trade.pnl is not None else ZERO for trade in closed]
    wins = [pnl for pnl in pnls if pnl > 0]
    losses = [pnl for pnl in pnls if pnl < 0]

    avg_win = sum(wins, ZERO) / len(wins) if wins else ZERO
    avg_loss = sum(losses, ZERO) / len(losses) if losses else ZERO
    return PerformanceStats(
        total_trades=len(closed),
        winners=len(wins),
        losers=len(losses),
        win_rate=len(wins) / len(closed) * 100 if closed else 0.0,
        total_pnl=sum(pnls, ZERO),
        avg_win=avg_win,
        avg_loss=avg_loss,
        profit_factor=float(abs(avg_win / avg_loss)) if avg_loss else 0.0,
        largest_win=max([*pnls, ZERO]),
        largest_loss=min([*pnls, ZERO]),
    )


__all__ = [
    "DRIFT_TOLERANCE",
    "DUST_QUANTITY",
    "check_buy",
    "check_sell",
    "close_position",
    "open_position",
    "performance_stats",
    "reconcile",
    "to_decimal",
]
