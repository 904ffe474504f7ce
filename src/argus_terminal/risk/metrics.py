"""Portfolio-level risk statistics: risk scoring, historical VaR and return correlation."""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime

import numpy as np
import pandas as pd

from argus_terminal.core.market import candles_to_frame
from argus_terminal.indicators import atr, rsi, value_or
from argus_terminal.indicators._series import FrameInput

MIN_BARS = 30


@dataclass(frozen=True)
class RiskAssessment:
    symbol: str
    volatility_score: float
    risk_score: float
    position_size_percent: float
    stop_loss_percent: float
    take_profit_percent: float
    max_leverage: int
    risk_reward_ratio: float
    warnings: tuple[str, ...] = ()
    insights: tuple[str, ...] = ()
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass(frozen=True)
class ValueAtRisk:
    value_at_risk: float
    conditional_var: float
    percent_var: float


def _default_assessment(symbol: str) -> RiskAssessment:
    return RiskAssessment(
        symbol=symbol,
        volatility_score=50.0,
        risk_score=50.0,
        position_size_percent=5.0,
        stop_loss_percent=5.0,
        take_profit_percent=10.0,
        max_leverage=1,
        risk_reward_ratio=2.0,
        warnings=("Insufficient data",),
    )


def assess_risk(symbol: str, candles: FrameInput) -> RiskAssessment:
    """
    Score how risky ``symbol`` currently is on a 0-100 scale.

    The score mixes annualised volatility (40%), recent drawdown (30%), an
    extreme RSI (15 points) and ATR expansion (15 points). Position size and
    leverage recommendations step down as the score rises.
    """
    frame = candles_to_frame(candles)
    if len(frame) < MIN_BARS:
        return _default_assessment(symbol)

    closes = frame["close"]
    current_price = float(closes.iloc[-1])
    warnings: list[str] = []
    insights: list[str] = []

    atr_series = atr(frame, 14)
    current_atr = value_or(atr_series, 0.0)
    average_atr = float(atr_series.dropna().tail(30).sum()) / 30
    atr_percent = current_atr / current_price * 100 if current_price else 0.0

    returns = closes.tail(30).pct_change().fillna(0.0).to_numpy()
    annualised_volatility = float(returns.std()) * math.sqrt(365) * 100
    volatility_score = min(100.0, annualised_volatility / 150 * 100)

    recent = closes.tail(60).to_numpy()
    peak = np.maximum.accumulate(np.r_[closes.iloc[0], recent])[1:]
    max_drawdown = float(((peak - recent) / peak).max()) if recent.size else 0.0

    risk_score = volatility_score * 0.4 + max_drawdown * 100 * 0.3

    current_rsi = value_or(rsi(closes, 14), 50.0)
    if current_rsi > 75 or current_rsi < 25:
        risk_score += 15
        warnings.append(f"RSI in extreme zone: {current_rsi:.1f}")
    if current_atr > average_atr * 1.5:
        risk_score += 15
        warnings.append("Volatility expanded well above normal")
    risk_score = min(100.0, risk_score)

    if risk_score < 30:
        size_percent, leverage = 20.0, 5
    elif risk_score < 50:
        size_percent, leverage = 15.0, 3
    elif risk_score < 70:
        size_percent, leverage = 10.0, 2
    elif risk_score < 85:
        size_percent, leverage = 5.0, 1
    else:
        size_percent, leverage = 2.0, 1

    stop_loss_percent = max(3.0, min(15.0, atr_percent * 2))
    take_profit_percent = stop_loss_percent * 2

    if volatility_score < 30:
        insights.append("Low volatility, breakout potential")
    if max_drawdown < 0.1:
        insights.append("Stable price action, suits trend following")
    if current_atr < average_atr * 0.7:
        insights.append("Volatility squeeze, a large move may be near")
    if 50 < current_rsi < 60:
        insights.append("Healthy momentum, trend may continue")

    return RiskAssessment(
        symbol=symbol,
        volatility_score=volatility_score,
        risk_score=risk_score,
        position_size_percent=size_percent,
        stop_loss_percent=stop_loss_percent,
        take_profit_percent=take_profit_percent,
        max_leverage=leverage,
        risk_reward_ratio=take_profit_percent / stop_loss_percent,
        warnings=tuple(warnings),
        insights=tuple(insights),
    )


def value_at_risk(
    candles: FrameInput,
    confidence_level: float = 0.95,
    holding_period: int = 1,
    portfolio_value: float = 10_000.0,
) -> ValueAtRisk:
    """Historical-simulation VaR and expected shortfall of bar-to-bar returns."""
    frame = candles_to_frame(candles)
    if len(frame) < MIN_BARS:
        return ValueAtRisk(0.0, 0.0, 0.0)

    returns = np.sort(frame["close"].pct_change().dropna().to_numpy())
    index = int(math.floor((1 - confidence_level) * returns.size))
    index = min(max(index, 0), returns.size - 1)
    scaled = float(returns[index]) * math.sqrt(holding_period)
    tail_mean = float(returns[: index + 1].mean())
    return ValueAtRisk(
        value_at_risk=abs(scaled * portfolio_value),
        conditional_var=abs(tail_mean * portfolio_value),
        percent_var=abs(scaled * 100),
    )


def correlation(prices_a: Sequence[float], prices_b: Sequence[float]) -> float:
    """Pearson correlation of the simple returns of two aligned price tails.

    Fewer than 10 overlapping prices, or a flat series, gives 0.
    """
    size = min(len(prices_a), len(prices_b))
    if size < 10:
        return 0.0
    returns_a = pd.Series(list(prices_a)[-size:], dtype="float64").pct_change().iloc[1:]
    returns_b = pd.Series(list(prices_b)[-size:], dtype="float64").pct_change().iloc[1:]
    if returns_a.std(ddof=0) == 0 or returns_b.std(ddof=0) == 0:
        return 0.0
    return float(np.corrcoef(returns_a.to_numpy(), returns_b.to_numpy())[0, 1])


def correlation_matrix(prices_by_symbol: Mapping[str, Sequence[float]]) -> pd.DataFrame:
    """Pairwise :func:`correlation` for every symbol, as a symmetric DataFrame."""
    symbols = list(prices_by_symbol)
    matrix = pd.DataFrame(np.eye(len(symbols)), index=symbols, columns=symbols)
    for i, first in enumerate(symbols):
        for second in symbols[i + 1 :]:
            value = correlation(prices_by_symbol[first], prices_by_symbol[second])
            matrix.loc[first, second] = value
            matrix.loc[second, first] = value
    return matrix


__all__ = [
    "RiskAssessment",
    "ValueAtRisk",
    "assess_risk",
    "correlation",
    "correlation_matrix",
    "value_at_risk",
]
