"""Backtest engine and the built-in strategy catalogue."""

from .engine import (
    END_OF_BACKTEST,
    WARMUP_BARS,
    BacktestResult,
    Backtester,
    BacktestTrade,
    EquityPoint,
    SignalEvent,
    empty_result,
    run_backtest,
)
from .strategies import (
    STRATEGY_INFO,
    BacktestStrategy,
    IndicatorFrame,
    StrategyInfo,
    StrategySignal,
    get_strategy,
)

__all__ = [
    "BacktestResult",
    "BacktestStrategy",
    "BacktestTrade",
    "Backtester",
    "END_OF_BACKTEST",
    "EquityPoint",
    "IndicatorFrame",
    "STRATEGY_INFO",
    "SignalEvent",
    "StrategyInfo",
    "StrategySignal",
    "WARMUP_BARS",
    "empty_result",
    "get_strategy",
    "run_backtest",
]
