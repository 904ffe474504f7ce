"""
The seven Council modules.

Six modules read indicator output and score the market on [-100, 100]; the
seventh (Argus, the guardian) scores the other six. Every module is a pure
function of a :class:`CouncilInputs` snapshot so indicators are computed once
per decision.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np
import pandas as pd

from argus_terminal.core.decision import Action, CouncilModule, ModuleVote
from argus_terminal.indicators import (
    adx,
    bollinger_bands,
    cci,
    latest,
    macd,
    rsi,
    sma,
    stochastic,
)


@dataclass(frozen=True)
class CouncilInputs:
    """Latest indicator readings for one candle history (``None`` = undefined)."""

    price: float
    prev_price: float
    volumes: np.ndarray
    macd_line: float | None
    macd_signal: float | None
    histogram: float | None
    prev_histogram: float | None
    adx: float | None
    sma_20: float | None
    sma_50: float | None
    sma_200: float | None
    bb_upper: float | None
    bb_middle: float | None
    bb_lower: float | None
    rsi: float | None
    stoch_k: float | None
    stoch_d: float | None
    cci: float | None

    @classmethod
    def from_frame(cls, frame: pd.DataFrame) -> CouncilInputs:
        close = frame["close"]
        macd_result = macd(close)
        bands = bollinger_bands(close)
        stoch = stochastic(frame)
        closes = close.to_numpy(dtype="float64")
        return cls(
            price=float(closes[-1]),
            prev_price=float(closes[-2]) if closes.size > 1 else float(closes[-1]),
            volumes=frame["volume"].to_numpy(dtype="float64"),
            macd_line=latest(macd_result.macd),
            macd_signal=latest(macd_result.signal),
            histogram=latest(macd_result.histogram),
            prev_histogram=latest(macd_result.histogram, offset=2),
            adx=latest(adx(frame)),
            sma_20=latest(sma(close, 20)),
            sma_50=latest(sma(close, 50)),
            sma_200=latest(sma(close, 200)),
            bb_upper=latest(bands.upper),
            bb_middle=latest(bands.middle),
            bb_lower=latest(bands.lower),
            rsi=latest(rsi(close, 14)),
            stoch_k=latest(stoch.k),
            stoch_d=latest(stoch.d),
            cci=latest(cci(frame)),
        )


def _or(value: float | None, default: float) -> float:
    return default if value is None else value


def clamp_score(score: float) -> float:
    return max(-100.0, min(100.0, score))


def score_direction(score: float, threshold: float) -> Action:
    if score > threshold:
        return Action.BUY
    if score < -threshold:
        return Action.SELL
    return Action.HOLD


def orion_vote(inputs: CouncilInputs) -> ModuleVote:
    """MACD momentum, with confidence scaled by ADX trend strength."""
    current = _or(inputs.histogram, 0.0)
    previous = _or(inputs.prev_histogram, 0.0)
    line = _or(inputs.macd_line, 0.0)
    signal = _or(inputs.macd_signal, 0.0)

    momentum = current - previous
    score = current * 8 + momentum * 15
    if line > signal and momentum > 0:
        score += 20
    if line < signal and momentum < 0:
        score -= 20
    score = clamp_score(score)

    reason = "Momentum steady"
    if score > 60:
        reason = "Surging momentum detected"
    elif score > 20:
        reason = "Positive momentum wave forming"
    elif score < -60:
        reason = "Momentum collapse under heavy selling"
    elif score < -20:
        reason = "Negative momentum accelerating"

    return ModuleVote(
        module=CouncilModule.ORION,
        score=score,
        direction=score_direction(score, 15),
        confidence=min(100.0, _or(inputs.adx, 0.0) * 2.5 + 20),
        reason=reason,
    )


def atlas_vote(inputs: CouncilInputs) -> ModuleVote:
    """Market structure from the SMA20/50/200 stack and the stretch from SMA200."""
    price = inputs.price
    s20 = _or(inputs.sma_20, 0.0)
    s50 = _or(inputs.sma_50, 0.0)
    s200 = _or(inputs.sma_200, 0.0)

    score = 0.0
    reason = "Market balanced"
    if price > s50 > s200:
        score, reason = 70.0, "Macro trend signals a bull market"
    elif price < s50 < s200:
        score, reason = -70.0, "Macro bear trend deepening"
    elif price > s20 > s50:
        score, reason = 40.0, "Short-term trend is rising"
    elif price < s20 < s50:
        score, reason = -40.0, "Short-term trend under selling pressure"

    if s200 > 0:
        distance = (price - s200) / s200
        if distance > 0.2:
            score -= 15
            reason += " (overextended)"
        elif distance < -0.2:
            score += 15
            reason += " (deeply oversold)"

    return ModuleVote(
        module=CouncilModule.ATLAS,
        score=clamp_score(score),
        direction=score_direction(score, 20),
        confidence=85.0,
        reason=reason,
    )


def aether_vote(inputs: CouncilInputs) -> ModuleVote:
    """Position of price inside the Bollinger envelope."""
    upper = _or(inputs.bb_upper, 0.0)
    lower = _or(inputs.bb_lower, 0.0)
    middle = _or(inputs.bb_middle, 0.0)
    price = inputs.price

    half_width = upper - middle
    score = clamp_score((middle - price) / half_width * 80) if half_width else 0.0

    if price <= lower:
        reason = "Price at the lower band, a rebound is likely"
    elif price >= upper:
        reason = "Price at the upper band, profit taking likely"
    elif price > middle:
        reason = "Positive flow inside the bands"
    else:
        reason = "Negative pressure inside the bands"

    return ModuleVote(
        module=CouncilModule.AETHER,
        score=score,
        direction=score_direction(score, 20),
        confidence=75.0,
        reason=reason,
    )


def hermes_vote(inputs: CouncilInputs) -> ModuleVote:
    """Fast momentum from RSI confirmed by the Stochastic oscillator."""
    rsi_value = _or(inputs.rsi, 50.0)
    k = _or(inputs.stoch_k, 50.0)
    d = _or(inputs.stoch_d, 50.0)

    score = (50 - rsi_value) * 2
    if rsi_value < 30 and k < 20:
        score += 30
    if rsi_value > 70 and k > 80:
        score -= 30
    score = clamp_score(score)

    if rsi_value < 30:
        reason = "Oversold, recovery signals"
    elif rsi_value > 70:
        reason = "Overbought, high correction risk"
    elif k > d:
        reason = "Stochastic bullish crossover"
    else:
        reason = "Price velocity slowing"

    return ModuleVote(
        module=CouncilModule.HERMES,
        score=score,
        direction=score_direction(score, 15),
        confidence=70.0,
        reason=reason,
    )


def chronos_vote(inputs: CouncilInputs) -> ModuleVote:
    """Cycle extremes from CCI; stretched readings score for reversion."""
    cci_value = _or(inputs.cci, 0.0)
    score = clamp_score(-cci_value / 1.5)

    reason = "Cycle in balance"
    if cci_value > 200:
        reason = "Cycle peaked, selling is near"
    elif cci_value < -200:
        reason = "Cycle bottomed, strong reversal expected"
    elif abs(cci_value) > 100:
        reason = "Cyclical extreme developing"

    return ModuleVote(
        module=CouncilModule.CHRONOS,
        score=score,
        direction=score_direction(score, 20),
        confidence=72.0,
        reason=reason,
    )


def poseidon_vote(inputs: CouncilInputs) -> ModuleVote:
    """Volume-weighted price change of the last bar against the 20-bar volume mean."""
    recent = inputs.volumes[-20:]
    average_volume = float(recent.sum()) / 20 if recent.size else 0.0
    current_volume = float(inputs.volumes[-1]) if inputs.volumes.size else 0.0
    volume_ratio = current_volume / average_volume if average_volume > 0 else 0.0

    price_change = (
        (inputs.price - inputs.prev_price) / inputs.prev_price if inputs.prev_price else 0.0
    )
    score = clamp_score(price_change * volume_ratio * 1500)

    reason = "Volume stable"
    if volume_ratio > 2.5:
        reason = "Extraordinary volume, whale activity"
    elif volume_ratio > 1.5:
        reason = "Volume rising, institutional interest"
    elif volume_ratio < 0.6:
        reason = "Low volume, fading interest"

    return ModuleVote(
        module=CouncilModule.POSEIDON,
        score=score,
        direction=score_direction(score, 10),
        confidence=min(100.0, volume_ratio * 40 + 20),
        reason=reason,
    )


def argus_vote(votes: Sequence[ModuleVote]) -> ModuleVote:
    """Guardian vote: mean of the other modules, confidence grows with agreement."""
    average = sum(vote.score for vote in votes) / len(votes) if votes else 0.0
    implied = Action.BUY if average > 0 else Action.SELL
    consensus = sum(1 for vote in votes if vote.direction is implied)

    reason = "Modules disagree"
    if consensus >= 5:
        reason = "Strong council consensus"
    elif consensus >= 3:
        reason = "Moderate consensus forming"

    return ModuleVote(
        module=CouncilModule.ARGUS,
        score=clamp_score(average),
        direction=score_direction(average, 10),
        confidence=min(100.0, 90.0 + consensus),
        reason=reason,
    )


MODULES = (orion_vote, atlas_vote, aether_vote, hermes_vote, chronos_vote, poseidon_vote)


__all__ = [
    "CouncilInputs",
    "MODULES",
    "aether_vote",
    "argus_vote",
    "atlas_vote",
    "chronos_vote",
    "clamp_score",
    "hermes_vote",
    "orion_vote",
    "poseidon_vote",
    "score_direction",
]
