"""Directional movement (+DI / -DI) and the Average Directional Index."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import pandas as pd

from ._series import FrameInput, check_period, ohlc, wrap
from .volatility import true_range


@dataclass(frozen=True)
class DirectionalMovement:
    plus_di: pd.Series
    minus_di: pd.Series
    adx: pd.Series


def _wilder_sum(values: np.ndarray, period: int) -> np.ndarray:
    # Seeded at index ``period`` with the sum of values[0..period] inclusive
    smoothed = np.zeros(values.size)
    smoothed[period] = values[: period + 1].sum()
    for i in range(period + 1, values.size):
        smoothed[i] = smoothed[i - 1] - smoothed[i - 1] / period + values[i]
    return smoothed


def directional_movement(data: FrameInput, period: int = 14) -> DirectionalMovement:
    """
    Wilder's directional movement system.

    +DI/-DI are defined from index ``period``; ADX at index ``i`` is the mean of
    the DX values over ``[i - period, i)`` and is only defined for
    ``i >= 2 * period``. Inputs no longer than ``2 * period`` bars yield
    all-NaN series.
    """
    check_period(period)
    frame, high, low, close = ohlc(data)
    size = close.size
    plus_di = np.full(size, np.nan)
    minus_di = np.full(size, np.nan)
    adx_values = np.full(size, np.nan)
    if size <= period * 2:
        return DirectionalMovement(
            plus_di=wrap(plus_di, frame, "plus_di"),
            minus_di=wrap(minus_di, frame, "minus_di"),
            adx=wrap(adx_values, frame, "adx"),
        )

    tr = true_range(high, low, close)
    up_move = np.zeros(size)
    down_move = np.zeros(size)
    up_move[1:] = high[1:] - high[:-1]
    down_move[1:] = low[:-1] - low[1:]
    plus_dm = np.where((up_move > down_move) & (up_move > 0), up_move, 0.0)
    minus_dm = np.where((down_move > up_move) & (down_move > 0), down_move, 0.0)

    tr_smooth = _wilder_sum(tr, period)[period:]
    plus_smooth = _wilder_sum(plus_dm, period)[period:]
    minus_smooth = _wilder_sum(minus_dm, period)[period:]

    with np.errstate(divide="ignore", invalid="ignore"):
        plus = np.where(tr_smooth != 0, plus_smooth / tr_smooth * 100.0, 0.0)
        minus = np.where(tr_smooth != 0, minus_smooth / tr_smooth * 100.0, 0.0)
        di_sum = plus + minus
        dx = np.where(di_sum != 0, np.abs(plus - minus) / di_sum * 100.0, 0.0)

    plus_di[period:] = plus
    minus_di[period:] = minus
    # dx[j] belongs to bar ``period + j``
    for i in range(period * 2, size):
        adx_values[i] = dx[i - period * 2 : i - period].mean()

    return DirectionalMovement(
        plus_di=wrap(plus_di, frame, "plus_di"),
        minus_di=wrap(minus_di, frame, "minus_di"),
        adx=wrap(adx_values, frame, "adx"),
    )


def adx(data: FrameInput, period: int = 14) -> pd.Series:
    """Average Directional Index; see :func:`directional_movement`."""
    return directional_movement(data, period).adx


__all__ = ["DirectionalMovement", "adx", "directional_movement"]
