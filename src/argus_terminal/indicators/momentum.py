"""Momentum oscillators: RSI, MACD, Stochastic, CCI and Williams %R."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import pandas as pd

from ._series import FrameInput, PriceInput, as_array, check_period, ohlc, windows, wrap
from .moving_averages import ema, sma


@dataclass(frozen=True)
class MACDResult:
    macd: pd.Series
    signal: pd.Series
    histogram: pd.Series


@dataclass(frozen=True)
class StochasticResult:
    k: pd.Series
    d: pd.Series


def _rsi_value(avg_gain: float, avg_loss: float) -> float:
    if avg_loss == 0:
        return 100.0
    return 100.0 - 100.0 / (1.0 + avg_gain / avg_loss)


def rsi(values: PriceInput, period: int = 14) -> pd.Series:
    """
    Relative Strength Index with Wilder smoothing.

    The first value sits at index ``period`` and is seeded from the plain mean
    gain/loss of the first ``period`` changes. RSI is exactly 100 whenever the
    average loss is zero.
    """
    check_period(period)
    data = as_array(values)
    out = np.full(data.size, np.nan)
    if data.size <= period:
        return wrap(out, values)

    changes = np.diff(data)
    gains = np.where(changes > 0, changes, 0.0)
    losses = np.where(changes < 0, -changes, 0.0)

    avg_gain = float(gains[:period].mean())
    avg_loss = float(losses[:period].mean())
    out[period] = _rsi_value(avg_gain, avg_loss)

    for i in range(period + 1, data.size):
        avg_gain = (avg_gain * (period - 1) + gains[i - 1]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i - 1]) / period
        out[i] = _rsi_value(avg_gain, avg_loss)
    return wrap(out, values)


def macd(
    values: PriceInput, fast: int = 12, slow: int = 26, signal: int = 9
) -> MACDResult:
    """MACD line, signal line and histogram.

    The signal EMA runs only over the contiguous stretch where the MACD line is
    defined, so its warm-up starts at the line's first defined index.
    """
    line = (ema(values, fast) - ema(values, slow)).to_numpy()
    signal_line = np.full(line.size, np.nan)

    defined = np.flatnonzero(~np.isnan(line))
    if defined.size:
        first = int(defined[0])
        signal_line[first:] = ema(line[first:], signal).to_numpy()

    histogram = line - signal_line
    return MACDResult(
        macd=wrap(line, values, "macd"),
        signal=wrap(signal_line, values, "signal"),
        histogram=wrap(histogram, values, "histogram"),
    )


def stochastic(data: FrameInput, k_period: int = 14, d_period: int = 3) -> StochasticResult:
    """Stochastic %K/%D; %K is 50 when the window has no range."""
    check_period(k_period, "k_period")
    check_period(d_period, "d_period")
    frame, high, low, close = ohlc(data)
    k = np.full(close.size, np.nan)
    if close.size >= k_period:
        highest = windows(high, k_period).max(axis=1)
        lowest = windows(low, k_period).min(axis=1)
        span = highest - lowest
        current = close[k_period - 1 :]
        with np.errstate(divide="ignore", invalid="ignore"):
            k[k_period - 1 :] = np.where(span != 0, (current - lowest) / span * 100.0, 50.0)
    d = sma(k, d_period).to_numpy()
    return StochasticResult(k=wrap(k, frame, "k"), d=wrap(d, frame, "d"))


def cci(data: FrameInput, period: int = 20) -> pd.Series:
    """Commodity Channel Index over the typical price; undefined when mean deviation is 0."""
    check_period(period)
    frame, high, low, close = ohlc(data)
    out = np.full(close.size, np.nan)
    if close.size < period:
        return wrap(out, frame)

    typical = (high + low + close) / 3.0
    window = windows(typical, period)
    mean = window.mean(axis=1)
    mean_deviation = np.abs(window - mean[:, None]).mean(axis=1)
    with np.errstate(divide="ignore", invalid="ignore"):
        values = (typical[period - 1 :] - mean) / (0.015 * mean_deviation)
    out[period - 1 :] = np.where(mean_deviation != 0, values, np.nan)
    return wrap(out, frame)


def williams_r(data: FrameInput, period: int = 14) -> pd.Series:
    """Williams %R in [-100, 0]; undefined when the window has no range."""
    check_period(period)
    frame, high, low, close = ohlc(data)
    out = np.full(close.size, np.nan)
    if close.size < period:
        return wrap(out, frame)

    highest = windows(high, period).max(axis=1)
    lowest = windows(low, period).min(axis=1)
    span = highest - lowest
    with np.errstate(divide="ignore", invalid="ignore"):
        values = (highest - close[period - 1 :]) / span * -100.0
    out[period - 1 :] = np.where(span != 0, values, np.nan)
    return wrap(out, frame)


__all__ = [
    "MACDResult",
    "StochasticResult",
    "cci",
    "macd",
    "rsi",
    "stochastic",
    "williams_r",
]
