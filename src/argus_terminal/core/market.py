"""Market data primitives shared by the indicator, council and trading layers."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime

import pandas as pd

INTERVALS: tuple[str, ...] = ("1m", "5m", "15m", "1h", "4h", "1d", "1w")

OHLCV_COLUMNS: tuple[str, ...] = ("open", "high", "low", "close", "volume")


@dataclass(frozen=True, slots=True)
class Candle:
    """Single OHLCV bar. ``timestamp`` is the bar open time in epoch milliseconds."""

    timestamp: int
    open: float
    high: float
    low: float
    close: float
    volume: float

    @property
    def time(self) -> datetime:
        return datetime.fromtimestamp(self.timestamp / 1000, UTC)


@dataclass(frozen=True, slots=True)
class Ticker:
    """24h rolling ticker snapshot for one symbol."""

    symbol: str
    price: float
    change: float = 0.0
    change_percent: float = 0.0
    high: float = 0.0
    low: float = 0.0
    volume: float = 0.0
    prev_close: float = 0.0


@dataclass(frozen=True, slots=True)
class OrderBook:
    """Order book depth as (price, quantity) pairs, best level first."""

    symbol: str
    bids: tuple[tuple[float, float], ...] = field(default_factory=tuple)
    asks: tuple[tuple[float, float], ...] = field(default_factory=tuple)

    @property
    def best_bid(self) -> float | None:
        return self.bids[0][0] if self.bids else None

    @property
    def best_ask(self) -> float | None:
        return self.asks[0][0] if self.asks else None

    @property
    def spread(self) -> float | None:
        if self.best_bid is None or self.best_ask is None:
            return None
        return self.best_ask - self.best_bid


def candles_to_frame(candles: Sequence[Candle] | pd.DataFrame) -> pd.DataFrame:
    """Convert candles into a float DataFrame with ``open..volume`` columns.

    The frame keeps a positional ``RangeIndex`` so that every indicator series
    lines up 1:1 with the input sequence. A DataFrame passes through unchanged.
    """
    if isinstance(candles, pd.DataFrame):
        return candles
    if not candles:
        return pd.DataFrame(
            {column: pd.Series(dtype="float64") for column in ("timestamp", *OHLCV_COLUMNS)}
        )
    return pd.DataFrame(
        {
            "timestamp": [c.timestamp for c in candles],
            "open": [float(c.open) for c in candles],
            "high": [float(c.high) for c in candles],
            "low": [float(c.low) for c in candles],
            "close": [float(c.close) for c in candles],
            "volume": [float(c.volume) for c in candles],
        }
    )


__all__ = ["Candle", "INTERVALS", "OHLCV_COLUMNS", "OrderBook", "Ticker", "candles_to_frame"]
