"""Bar-by-bar signal rules for the six backtest strategies."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Protocol

import numpy as np
import pandas as pd

from argus_terminal.config import StrategyId
from argus_terminal.core.decision import Action
from argus_terminal.indicators import bollinger_bands, macd, rsi, sma


@dataclass(frozen=True)
class IndicatorFrame:
    """Indicator arrays precomputed once per backtest run (NaN = undefined)."""

    close: np.ndarray
    rsi: np.ndarray
    macd: np.ndarray
    macd_signal: np.ndarray
    histogram: np.ndarray
    bb_upper: np.ndarray
    bb_middle: np.ndarray
    bb_lower: np.ndarray
    sma_20: np.ndarray
    sma_50: np.ndarray
    sma_200: np.ndarray

    @classmethod
    def from_frame(cls, frame: pd.DataFrame) -> IndicatorFrame:
        close = frame["close"]
        macd_result = macd(close)
        bands = bollinger_bands(close)
        return cls(
            close=close.to_numpy(dtype="float64"),
            rsi=rsi(close, 14).to_numpy(),
            macd=macd_result.macd.to_numpy(),
            macd_signal=macd_result.signal.to_numpy(),
            histogram=macd_result.histogram.to_numpy(),
            bb_upper=bands.upper.to_numpy(),
            bb_middle=bands.middle.to_numpy(),
            bb_lower=bands.lower.to_numpy(),
            sma_20=sma(close, 20).to_numpy(),
            sma_50=sma(close, 50).to_numpy(),
            sma_200=sma(close, 200).to_numpy(),
        )


@dataclass(frozen=True, slots=True)
class StrategySignal:
    action: Action
    reason: str = ""


HOLD = StrategySignal(Action.HOLD)


@dataclass(frozen=True, slots=True)
class StrategyInfo:
    name: str
    description: str


def _defined(*values: float) -> bool:
    return not any(math.isnan(value) for value in values)


class BacktestStrategy(Protocol):
    strategy_id: StrategyId

    def decide(self, index: int, data: IndicatorFrame) -> StrategySignal: ...


class RsiMeanReversionStrategy:
    """Buy oversold RSI that has stopped falling; sell overbought RSI that has stopped rising."""

    strategy_id = StrategyId.RSI_MEAN_REVERSION

    def decide(self, index: int, data: IndicatorFrame) -> StrategySignal:
        current, previous = data.rsi[index], data.rsi[index - 1]
        if not _defined(current, previous):
            return HOLD
        if current < 30 and previous <= current:
            return StrategySignal(Action.BUY, f"RSI Oversold ({current:.1f})")
        if current > 70 and previous >= current:
            return StrategySignal(Action.SELL, f"RSI Overbought ({current:.1f})")
        return HOLD


class MacdCrossoverStrategy:
    strategy_id = StrategyId.MACD_CROSSOVER

    def decide(self, index: int, data: IndicatorFrame) -> StrategySignal:
        line, signal = data.macd[index], data.macd_signal[index]
        prev_line, prev_signal = data.macd[index - 1], data.macd_signal[index - 1]
        if not _defined(line, signal, prev_line, prev_signal):
            return HOLD
        if prev_line <= prev_signal and line > signal:
            return StrategySignal(Action.BUY, "MACD Bullish Crossover")
        if prev_line >= prev_signal and line < signal:
            return StrategySignal(Action.SELL, "MACD Bearish Crossover")
        return HOLD


class BollingerBreakoutStrategy:
    strategy_id = StrategyId.BOLLINGER_BREAKOUT

    def decide(self, index: int, data: IndicatorFrame) -> StrategySignal:
        price, upper, lower = data.close[index], data.bb_upper[index], data.bb_lower[index]
        if not _defined(upper, lower):
            return HOLD
        if price < lower:
            return StrategySignal(Action.BUY, "Price Below Lower Band")
        if price > upper:
            return StrategySignal(Action.SELL, "Price Above Upper Band")
        return HOLD


class GoldenCrossStrategy:
    strategy_id = StrategyId.GOLDEN_CROSS

    def decide(self, index: int, data: IndicatorFrame) -> StrategySignal:
        fast, slow = data.sma_50[index], data.sma_200[index]
        prev_fast, prev_slow = data.sma_50[index - 1], data.sma_200[index - 1]
        if not _defined(fast, slow, prev_fast, prev_slow):
            return HOLD
        if prev_fast <= prev_slow and fast > slow:
            return StrategySignal(Action.BUY, "Golden Cross (SMA50 > SMA200)")
        if prev_fast >= prev_slow and fast < slow:
            return StrategySignal(Action.SELL, "Death Cross (SMA50 < SMA200)")
        return HOLD


class TrendFollowingStrategy:
    """Ride an aligned SMA20/SMA50 stack while RSI confirms without being stretched."""

    strategy_id = StrategyId.TREND_FOLLOWING

    def decide(self, index: int, data: IndicatorFrame) -> StrategySignal:
        price = data.close[index]
        fast, slow, rsi_value = data.sma_20[index], data.sma_50[index], data.rsi[index]
        if not _defined(fast, slow, rsi_value):
            return HOLD
        if price > fast > slow and 50 < rsi_value < 70:
            return StrategySignal(Action.BUY, "Uptrend Confirmed")
        if price < fast < slow and rsi_value < 50:
            return StrategySignal(Action.SELL, "Downtrend Confirmed")
        return HOLD


class ArgusCompositeStrategy:
    """
    Point score over RSI, MACD histogram, SMA20 and the Bollinger bands.

    RSI contributes +2/+1 below 30/40 and -2/-1 above 70/60; the histogram
    and price-vs-SMA20 each add +1 or -1; closing outside a band adds +2
    (below lower) or -2 (above upper). A score of 3 buys, -3 sells.
    """

    strategy_id = StrategyId.ARGUS_COMPOSITE
    threshold = 3

    def score(self, index: int, data: IndicatorFrame) -> int:
        price = data.close[index]
        rsi_value = data.rsi[index]
        histogram = data.histogram[index]
        fast = data.sma_20[index]
        lower, upper = data.bb_lower[index], data.bb_upper[index]

        points = 0
        if _defined(rsi_value):
            if rsi_value < 30:
                points += 2
            elif rsi_value < 40:
                points += 1
            elif rsi_value > 70:
                points -= 2
            elif rsi_value > 60:
                points -= 1
        if _defined(histogram):
            points += 1 if histogram > 0 else -1
        if _defined(fast):
            points += 1 if price > fast else -1
        if _defined(lower) and price < lower:
            points += 2
        if _defined(upper) and price > upper:
            points -= 2
        return points

    def decide(self, index: int, data: IndicatorFrame) -> StrategySignal:
        points = self.score(index, data)
        if points >= self.threshold:
            return StrategySignal(Action.BUY, "Argus Composite Signal (Strong Buy)")
        if points <= -self.threshold:
            return StrategySignal(Action.SELL, "Argus Composite Signal (Strong Sell)")
        return HOLD


_STRATEGIES: dict[StrategyId, type[BacktestStrategy]] = {
    StrategyId.RSI_MEAN_REVERSION: RsiMeanReversionStrategy,
    StrategyId.MACD_CROSSOVER: MacdCrossoverStrategy,
    StrategyId.BOLLINGER_BREAKOUT: BollingerBreakoutStrategy,
    StrategyId.GOLDEN_CROSS: GoldenCrossStrategy,
    StrategyId.TREND_FOLLOWING: TrendFollowingStrategy,
    StrategyId.ARGUS_COMPOSITE: ArgusCompositeStrategy,
}

STRATEGY_INFO: dict[StrategyId, StrategyInfo] = {
    StrategyId.RSI_MEAN_REVERSION: StrategyInfo(
        "RSI Mean Reversion",
        "Buys below RSI 30 and sells above 70, aiming to catch reversals from "
        "overbought and oversold zones.",
    ),
    StrategyId.MACD_CROSSOVER: StrategyInfo(
        "MACD Crossover",
        "Buys when the MACD line crosses above its signal line and sells on the cross below.",
    ),
    StrategyId.BOLLINGER_BREAKOUT: StrategyInfo(
        "Bollinger Band Breakout",
        "Buys when price closes under the lower band and sells above the upper band.",
    ),
    StrategyId.GOLDEN_CROSS: StrategyInfo(
        "Golden/Death Cross",
        "Buys when SMA50 crosses above SMA200 (golden cross) and sells on the death cross.",
    ),
    StrategyId.TREND_FOLLOWING: StrategyInfo(
        "Trend Following",
        "Buys in confirmed uptrends and sells in downtrends using SMA alignment and RSI.",
    ),
    StrategyId.ARGUS_COMPOSITE: StrategyInfo(
        "Argus Composite",
        "Composite score weighting RSI, MACD, Bollinger and SMA signals.",
    ),
}


def get_strategy(strategy: StrategyId | str) -> BacktestStrategy:
    """Factory for the built-in strategies; accepts the enum or its string id."""
    try:
        strategy_id = StrategyId(strategy)
    except ValueError as exc:
        known = ", ".join(item.value for item in StrategyId)
        raise ValueError(f"Unknown strategy: {strategy} (expected one of {known})") from exc
    return _STRATEGIES[strategy_id]()


__all__ = [
    "ArgusCompositeStrategy",
    "BacktestStrategy",
    "BollingerBreakoutStrategy",
    "GoldenCrossStrategy",
    "IndicatorFrame",
    "MacdCrossoverStrategy",
    "RsiMeanReversionStrategy",
    "STRATEGY_INFO",
    "StrategyInfo",
    "StrategySignal",
    "TrendFollowingStrategy",
    "get_strategy",
]
