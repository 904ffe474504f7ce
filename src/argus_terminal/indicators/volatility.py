"""Volatility indicators: Bollinger Bands and Average True Range."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import pandas as pd

from ._series import FrameInput, PriceInput, as_array, check_period, ohlc, windows, wrap


@dataclass(frozen=True)
class BollingerBands:
    upper: pd.Series
    middle: pd.Series
    lower: pd.Series


def bollinger_bands(
    values: PriceInput, period: int = 20, multiplier: float = 2.0
) -> BollingerBands:
    """SMA middle band with bands at ``multiplier`` population standard deviations."""
    check_period(period)
    data = as_array(values)
    middle = np.full(data.size, np.nan)
    deviation = np.full(data.size, np.nan)
    if data.size >= period:
        window = windows(data, period)
        middle[period - 1 :] = window.mean(axis=1)
        deviation[period - 1 :] = window.std(axis=1)
    return BollingerBands(
        upper=wrap(middle + multiplier * deviation, values, "upper"),
        middle=wrap(middle, values, "middle"),
        lower=wrap(middle - multiplier * deviation, values, "lower"),
    )


def true_range(high: np.ndarray, low: np.ndarray, close: np.ndarray) -> np.ndarray:
    """True range per bar; the first bar has no previous close and uses ``high - low``."""
    tr = np.empty(close.size)
    if close.size == 0:
        return tr
    tr[0] = high[0] - low[0]
    prev_close = close[:-1]
    tr[1:] = np.maximum.reduce(
        [high[1:] - low[1:], np.abs(high[1:] - prev_close), np.abs(low[1:] - prev_close)]
    )
    return tr


def atr(data: FrameInput, period: int = 14) -> pd.Series:
    """
    Average True Range with Wilder smoothing.

    The first value, at index ``period - 1``, is the plain mean of the first
    ``period`` true ranges. Inputs no longer than ``period`` bars yield an
    all-NaN series.
    """
    check_period(period)
    frame, high, low, close = ohlc(data)
    out = np.full(close.size, np.nan)
    if close.size <= period:
        return wrap(out, frame)

    tr = true_range(high, low, close)
    current = float(tr[:period].mean())
    out[period - 1] = current
    for i in range(period, close.size):
        current = (current * (period - 1) + tr[i]) / period
        out[i] = current
    return wrap(out, frame)


__all__ = ["BollingerBands", "atr", "bollinger_bands", "true_range"]
