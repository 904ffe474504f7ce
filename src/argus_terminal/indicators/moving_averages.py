from __future__ import annotations

import numpy as np
import pandas as pd

from ._series import PriceInput, as_array, check_period, windows, wrap


def sma(values: PriceInput, period: int) -> pd.Series:
    """Simple moving average; undefined (NaN) before index ``period - 1``."""
    check_period(period)
    data = as_array(values)
    out = np.full(data.size, np.nan)
    if data.size >= period:
        out[period - 1 :] = windows(data, period).mean(axis=1)
    return wrap(out, values)


def ema(values: PriceInput, period: int) -> pd.Series:
    """
    Exponential moving average seeded with the SMA of the first ``period`` values.

    Uses ``k = 2 / (period + 1)`` and ``ema[i] = price[i] * k + ema[i - 1] * (1 - k)``.
    """
    check_period(period)
    data = as_array(values)
    out = np.full(data.size, np.nan)
    if data.size < period:
        return wrap(out, values)

    k = 2.0 / (period + 1)
    current = float(data[:period].mean())
    out[period - 1] = current
    for i in range(period, data.size):
        current = float(data[i]) * k + current * (1 - k)
        out[i] = current
    return wrap(out, values)


__all__ = ["ema", "sma"]
