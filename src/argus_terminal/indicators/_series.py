"""Shared array plumbing for indicator functions."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TypeAlias

import numpy as np
import pandas as pd

from argus_terminal.core.market import Candle, candles_to_frame

PriceInput: TypeAlias = Sequence[float] | np.ndarray | pd.Series
FrameInput: TypeAlias = pd.DataFrame | Sequence[Candle]


def as_array(values: PriceInput) -> np.ndarray:
    """Return ``values`` as a 1-D float64 array (``None`` becomes NaN)."""
    if isinstance(values, pd.Series):
        return values.to_numpy(dtype="float64", na_value=np.nan)
    if isinstance(values, np.ndarray):
        return values.astype("float64")
    return np.asarray([np.nan if v is None else v for v in values], dtype="float64")


def wrap(result: np.ndarray, like: PriceInput | pd.DataFrame, name: str | None = None) -> pd.Series:
    """Wrap ``result`` in a Series aligned with the index of ``like`` where it has one."""
    index = like.index if isinstance(like, (pd.Series, pd.DataFrame)) else None
    return pd.Series(result, index=index, name=name, dtype="float64")


def ohlc(data: FrameInput) -> tuple[pd.DataFrame, np.ndarray, np.ndarray, np.ndarray]:
    """Return the frame plus ``high``, ``low`` and ``close`` arrays."""
    frame = candles_to_frame(data)
    return (
        frame,
        frame["high"].to_numpy(dtype="float64"),
        frame["low"].to_numpy(dtype="float64"),
        frame["close"].to_numpy(dtype="float64"),
    )


def windows(data: np.ndarray, period: int) -> np.ndarray:
    """Trailing windows of length ``period``; row j covers ``data[j : j + period]``."""
    return np.lib.stride_tricks.sliding_window_view(data, period)


def check_period(period: int, name: str = "period") -> None:
    if period <= 0:
        raise ValueError(f"{name} must be positive, got {period}")


__all__ = ["FrameInput", "PriceInput", "as_array", "check_period", "ohlc", "windows", "wrap"]
