"""Threshold helpers that turn the latest indicator readings into buy/sell/hold calls."""

from __future__ import annotations

import math

import pandas as pd

from argus_terminal.core.decision import Action


def latest(series: pd.Series | None, offset: int = 1) -> float | None:
    """Return the value ``offset`` positions from the end, or None when undefined.

    ``offset=1`` is the last element, ``offset=2`` the one before it.
    """
    if series is None or len(series) < offset:
        return None
    value = float(series.iloc[-offset])
    return None if math.isnan(value) else value


def value_or(series: pd.Series | None, default: float, offset: int = 1) -> float:
    """Like :func:`latest` but substitutes ``default`` for undefined or zero readings."""
    value = latest(series, offset)
    return value if value else default


def rsi_signal(value: float | None) -> Action:
    if value is None:
        return Action.HOLD
    if value < 30:
        return Action.BUY
    if value > 70:
        return Action.SELL
    return Action.HOLD


def macd_signal(histogram: float | None) -> Action:
    if histogram is None:
        return Action.HOLD
    if histogram > 0:
        return Action.BUY
    if histogram < 0:
        return Action.SELL
    return Action.HOLD


def stochastic_signal(k: float | None, d: float | None) -> Action:
    if k is None or d is None:
        return Action.HOLD
    if k < 20 and d < 20:
        return Action.BUY
    if k > 80 and d > 80:
        return Action.SELL
    return Action.HOLD


def cci_signal(value: float | None) -> Action:
    if value is None:
        return Action.HOLD
    if value < -100:
        return Action.BUY
    if value > 100:
        return Action.SELL
    return Action.HOLD


def williams_r_signal(value: float | None) -> Action:
    if value is None:
        return Action.HOLD
    if value < -80:
        return Action.BUY
    if value > -20:
        return Action.SELL
    return Action.HOLD


def adx_strength(value: float | None) -> str:
    """Describe trend strength from an ADX reading."""
    if value is None:
        return "Unknown"
    if value > 50:
        return "Very strong trend"
    if value > 25:
        return "Strong trend"
    if value > 20:
        return "Weak trend"
    return "No trend (ranging)"


__all__ = [
    "adx_strength",
    "cci_signal",
    "latest",
    "macd_signal",
    "rsi_signal",
    "stochastic_signal",
    "value_or",
    "williams_r_signal",
]
