"""Deterministic long-only backtest runner over a candle history."""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

import numpy as np
import pandas as pd

from argus_terminal.config import BacktestConfig, StrategyId
from argus_terminal.core.decision import Action
from argus_terminal.core.market import Candle, candles_to_frame
from argus_terminal.logging import get_logger, log_operation

from .strategies import BacktestStrategy, IndicatorFrame, get_strategy

logger = get_logger(__name__, component="backtest")

WARMUP_BARS = 50
TRADING_DAYS = 252
END_OF_BACKTEST = "End of Backtest"


def _to_datetime(timestamp_ms: int) -> datetime:
    return datetime.fromtimestamp(int(timestamp_ms) / 1000, UTC)


@dataclass(frozen=True, slots=True)
class BacktestTrade:
    """A completed round trip."""

    entry_date: datetime
    exit_date: datetime
    entry_price: float
    exit_price: float
    quantity: float
    pnl: float
    pnl_percent: float
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "entry_date": self.entry_date.isoformat(),
            "exit_date": self.exit_date.isoformat(),
            "entry_price": self.entry_price,
            "exit_price": self.exit_price,
            "quantity": self.quantity,
            "pnl": self.pnl,
            "pnl_percent": self.pnl_percent,
            "reason": self.reason,
        }


@dataclass(frozen=True, slots=True)
class SignalEvent:
    date: datetime
    action: Action
    price: float
    reason: str


@dataclass(frozen=True, slots=True)
class EquityPoint:
    date: datetime
    equity: float


@dataclass(frozen=True, slots=True)
class BacktestResult:
    """Aggregate result produced after running a backtest."""

    symbol: str
    strategy: StrategyId
    start_date: datetime | None
    end_date: datetime | None
    initial_capital: float
    final_capital: float
    total_return: float
    total_return_percent: float
    total_trades: int
    winning_trades: int
    losing_trades: int
    win_rate: float
    avg_win: float
    avg_loss: float
    profit_factor: float
    max_drawdown: float
    max_drawdown_percent: float
    sharpe_ratio: float
    trades: tuple[BacktestTrade, ...] = field(default_factory=tuple)
    equity_curve: tuple[EquityPoint, ...] = field(default_factory=tuple)
    signals: tuple[SignalEvent, ...] = field(default_factory=tuple)

    def to_dict(self, include_series: bool = False) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "symbol": self.symbol,
            "strategy": self.strategy.value,
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "initial_capital": self.initial_capital,
            "final_capital": self.final_capital,
            "total_return": self.total_return,
            "total_return_percent": self.total_return_percent,
            "total_trades": self.total_trades,
            "winning_trades": self.winning_trades,
            "losing_trades": self.losing_trades,
            "win_rate": self.win_rate,
            "avg_win": self.avg_win,
            "avg_loss": self.avg_loss,
            # JSON has no infinity
            "profit_factor": None if math.isinf(self.profit_factor) else self.profit_factor,
            "max_drawdown": self.max_drawdown,
            "max_drawdown_percent": self.max_drawdown_percent,
            "sharpe_ratio": self.sharpe_ratio,
            "trades": [trade.to_dict() for trade in self.trades],
        }
        if include_series:
            payload["equity_curve"] = [
                {"date": point.date.isoformat(), "equity": point.equity}
                for point in self.equity_curve
            ]
            payload["signals"] = [
                {
                    "date": event.date.isoformat(),
                    "type": event.action.value,
                    "price": event.price,
                    "reason": event.reason,
                }
                for event in self.signals
            ]
        return payload


@dataclass(slots=True)
class _OpenPosition:
    entry_date: datetime
    entry_price: float
    quantity: float


def empty_result(symbol: str, config: BacktestConfig) -> BacktestResult:
    """Result for a history too short to trade: no trades, capital untouched."""
    return BacktestResult(
        symbol=symbol,
        strategy=config.strategy,
        start_date=None,
        end_date=None,
        initial_capital=config.initial_capital,
        final_capital=config.initial_capital,
        total_return=0.0,
        total_return_percent=0.0,
        total_trades=0,
        winning_trades=0,
        losing_trades=0,
        win_rate=0.0,
        avg_win=0.0,
        avg_loss=0.0,
        profit_factor=0.0,
        max_drawdown=0.0,
        max_drawdown_percent=0.0,
        sharpe_ratio=0.0,
    )


class Backtester:
    """Single-strategy backtest runner.

    Positions are long only and at most one is open at a time. Entries commit
    ``position_size`` of the current capital; exits fire on a strategy sell,
    then the stop loss, then the take profit, checked in that order on every
    bar after the entry bar.

    Capital is tracked on an equity basis: the committed notional stays in
    it, commissions come out of it, and an exit adds only the realised PnL.
    """

    def __init__(self, config: BacktestConfig | None = None) -> None:
        self._config = config or BacktestConfig()
        self._strategy: BacktestStrategy = get_strategy(self._config.strategy)

    @property
    def config(self) -> BacktestConfig:
        return self._config

    def run(self, symbol: str, candles: Sequence[Candle] | pd.DataFrame) -> BacktestResult:
        config = self._config
        frame = candles_to_frame(candles)
        if len(frame) < WARMUP_BARS:
            logger.info(
                "Backtest skipped, not enough candles",
                symbol=symbol,
                candles=len(frame),
                required=WARMUP_BARS,
            )
            return empty_result(symbol, config)

        with log_operation("backtest", logger, symbol=symbol, strategy=config.strategy.value):
            result = self._simulate(symbol, frame)
        logger.info(
            "Backtest complete",
            symbol=symbol,
            strategy=config.strategy.value,
            trades=result.total_trades,
            total_return_percent=round(result.total_return_percent, 4),
        )
        return result

    def _simulate(self, symbol: str, frame: pd.DataFrame) -> BacktestResult:
        config = self._config
        data = IndicatorFrame.from_frame(frame)
        timestamps = frame["timestamp"].to_numpy()
        closes = data.close

        capital = config.initial_capital
        position: _OpenPosition | None = None
        trades: list[BacktestTrade] = []
        signals: list[SignalEvent] = []
        equity_curve: list[EquityPoint] = []
        peak = capital
        max_drawdown = 0.0

        for index in range(WARMUP_BARS, len(frame)):
            price = float(closes[index])
            date = _to_datetime(timestamps[index])

            equity = capital
            if position is not None:
                equity += position.quantity * price - position.quantity * position.entry_price
            equity_curve.append(EquityPoint(date, equity))
            peak = max(peak, equity)
            if peak > 0:
                max_drawdown = max(max_drawdown, (peak - equity) / peak)

            signal = self._strategy.decide(index, data)

            if position is None:
                if signal.action is Action.BUY:
                    position_capital = capital * config.position_size
                    quantity = position_capital / price
                    capital -= position_capital * config.commission
                    position = _OpenPosition(date, price, quantity)
                    signals.append(SignalEvent(date, Action.BUY, price, signal.reason))
                continue

            pnl_fraction = (price - position.entry_price) / position.entry_price
            exit_reason: str | None = None
            if signal.action is Action.SELL:
                exit_reason = signal.reason
            elif pnl_fraction <= -config.stop_loss:
                exit_reason = f"Stop Loss ({pnl_fraction * 100:.1f}%)"
            elif pnl_fraction >= config.take_profit:
                exit_reason = f"Take Profit ({pnl_fraction * 100:.1f}%)"

            if exit_reason is not None:
                commission = position.quantity * price * config.commission
                trade = _close(position, date, price, commission, exit_reason)
                capital += trade.pnl
                trades.append(trade)
                signals.append(SignalEvent(date, Action.SELL, price, exit_reason))
                position = None

        if position is not None:
            price = float(closes[-1])
            date = _to_datetime(timestamps[-1])
            trade = _close(position, date, price, 0.0, END_OF_BACKTEST)
            capital += trade.pnl
            trades.append(trade)

        return _summarise(
            symbol,
            config,
            trades,
            equity_curve,
            signals,
            final_capital=capital,
            max_drawdown=max_drawdown,
            start_date=_to_datetime(timestamps[WARMUP_BARS]) if len(frame) > WARMUP_BARS else None,
            end_date=_to_datetime(timestamps[-1]),
        )


def _close(
    position: _OpenPosition, date: datetime, price: float, commission: float, reason: str
) -> BacktestTrade:
    pnl = (price - position.entry_price) * position.quantity - commission
    cost = position.entry_price * position.quantity
    return BacktestTrade(
        entry_date=position.entry_date,
        exit_date=date,
        entry_price=position.entry_price,
        exit_price=price,
        quantity=position.quantity,
        pnl=pnl,
        pnl_percent=pnl / cost * 100 if cost else 0.0,
        reason=reason,
    )


def _sharpe_ratio(equity_curve: Sequence[EquityPoint]) -> float:
    if not equity_curve:
        return 0.0
    equity = np.array([point.equity for point in equity_curve], dtype="float64")
    returns = np.zeros(len(equity))
    if len(equity) > 1:
        previous = equity[:-1]
        with np.errstate(divide="ignore", invalid="ignore"):
            returns[1:] = np.where(previous != 0, (equity[1:] - previous) / previous, 0.0)
    std = float(np.std(returns))
    if std == 0:
        return 0.0
    return float(np.mean(returns)) * math.sqrt(TRADING_DAYS) / std


def _summarise(
    symbol: str,
    config: BacktestConfig,
    trades: list[BacktestTrade],
    equity_curve: list[EquityPoint],
    signals: list[SignalEvent],
    *,
    final_capital: float,
    max_drawdown: float,
    start_date: datetime | None,
    end_date: datetime,
) -> BacktestResult:
    wins = [trade.pnl for trade in trades if trade.pnl > 0]
    losses = [trade.pnl for trade in trades if trade.pnl <= 0]
    gross_profit = sum(wins)
    gross_loss = abs(sum(losses))

    if gross_loss > 0:
        profit_factor = gross_profit / gross_loss
    elif gross_profit > 0:
        profit_factor = math.inf
    else:
        profit_factor = 0.0

    total_return = final_capital - config.initial_capital
    return BacktestResult(
        symbol=symbol,
        strategy=config.strategy,
        start_date=start_date,
        end_date=end_date,
        initial_capital=config.initial_capital,
        final_capital=final_capital,
        total_return=total_return,
        total_return_percent=total_return / config.initial_capital * 100,
        total_trades=len(trades),
        winning_trades=len(wins),
        losing_trades=len(losses),
        win_rate=len(wins) / len(trades) * 100 if trades else 0.0,
        avg_win=gross_profit / len(wins) if wins else 0.0,
        avg_loss=gross_loss / len(losses) if losses else 0.0,
        profit_factor=profit_factor,
        max_drawdown=max_drawdown * config.initial_capital,
        max_drawdown_percent=max_drawdown * 100,
        sharpe_ratio=_sharpe_ratio(equity_curve),
        trades=tuple(trades),
        equity_curve=tuple(equity_curve),
        signals=tuple(signals),
    )


def run_backtest(
    symbol: str,
    candles: Sequence[Candle] | pd.DataFrame,
    config: BacktestConfig | None = None,
) -> BacktestResult:
    """Run ``config.strategy`` over ``candles``; see :class:`Backtester`."""
    return Backtester(config).run(symbol, candles)


__all__ = [
    "BacktestResult",
    "BacktestTrade",
    "Backtester",
    "END_OF_BACKTEST",
    "EquityPoint",
    "SignalEvent",
    "WARMUP_BARS",
    "empty_result",
    "run_backtest",
]
