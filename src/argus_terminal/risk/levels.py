"""
Dynamic stop-loss / take-profit levels.

Levels come from two sources: an ATR distance scaled by the prevailing
volatility regime, and swing-based support/resistance. The smart blend
swaps an ATR level for a structural one only when the structural level lies
strictly between the ATR level and the entry price.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

import numpy as np

from argus_terminal.core.decision import TradeDirection
from argus_terminal.core.market import Candle, candles_to_frame
from argus_terminal.indicators import atr, value_or
from argus_terminal.indicators._series import FrameInput

MIN_BARS = 30
ATR_PERIOD = 14
SUPPORT_RESISTANCE_LOOKBACK = 100
SWING_WINDOW = 2
MAX_LEVELS = 5

DEFAULT_STOP_LOSS_PCT = 5.0
DEFAULT_TAKE_PROFIT_PCT = 10.0


class VolatilityLevel(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class LevelMethod(Enum):
    DEFAULT = "Default"
    ATR = "ATR-Based"
    SUPPORT = "Support-Based"
    RESISTANCE = "Resistance-Based"


@dataclass(frozen=True)
class SupportResistance:
    supports: tuple[float, ...]
    resistances: tuple[float, ...]
    pivot_point: float
    nearest_support: float
    nearest_resistance: float


@dataclass(frozen=True)
class RiskLevels:
    """Snapshot of entry/exit levels for one trade."""

    entry_price: float
    stop_loss: float
    take_profit_1: float
    take_profit_2: float
    take_profit_3: float
    stop_loss_percent: float
    take_profit_percent: float
    risk_reward_ratio: float
    atr_value: float
    volatility: VolatilityLevel
    direction: TradeDirection = TradeDirection.LONG
    method: LevelMethod = LevelMethod.ATR
    support_resistance: SupportResistance | None = field(default=None, compare=False)

    @property
    def take_profit(self) -> float:
        """The standard (second tier) target."""
        return self.take_profit_2

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "entry_price": self.entry_price,
            "stop_loss": self.stop_loss,
            "take_profit_1": self.take_profit_1,
            "take_profit_2": self.take_profit_2,
            "take_profit_3": self.take_profit_3,
            "stop_loss_percent": self.stop_loss_percent,
            "take_profit_percent": self.take_profit_percent,
            "risk_reward_ratio": self.risk_reward_ratio,
            "atr_value": self.atr_value,
            "volatility": self.volatility.value,
            "direction": self.direction.value,
            "method": self.method.value,
        }
        if self.support_resistance is not None:
            sr = self.support_resistance
            payload["support_resistance"] = {
                "supports": list(sr.supports),
                "resistances": list(sr.resistances),
                "pivot_point": sr.pivot_point,
                "nearest_support": sr.nearest_support,
                "nearest_resistance": sr.nearest_resistance,
            }
        return payload


def _percent(entry_price: float, level: float) -> float:
    return abs((level - entry_price) / entry_price) * 100


def _ratio(take_profit_percent: float, stop_loss_percent: float) -> float:
    return take_profit_percent / stop_loss_percent if stop_loss_percent else 0.0


def _sign(direction: TradeDirection) -> int:
    return 1 if direction is TradeDirection.LONG else -1


def classify_volatility(atr_percent: float) -> VolatilityLevel:
    if atr_percent < 2:
        return VolatilityLevel.LOW
    if atr_percent < 5:
        return VolatilityLevel.MEDIUM
    return VolatilityLevel.HIGH


def default_risk_levels(
    entry_price: float, direction: TradeDirection = TradeDirection.LONG
) -> RiskLevels:
    """Conservative fixed-percentage levels used when history is too short."""
    sign = _sign(direction)
    stop_distance = entry_price * DEFAULT_STOP_LOSS_PCT / 100
    target_distance = entry_price * DEFAULT_TAKE_PROFIT_PCT / 100
    return RiskLevels(
        entry_price=entry_price,
        stop_loss=entry_price - sign * stop_distance,
        take_profit_1=entry_price + sign * target_distance * 0.5,
        take_profit_2=entry_price + sign * target_distance,
        take_profit_3=entry_price + sign * target_distance * 1.5,
        stop_loss_percent=DEFAULT_STOP_LOSS_PCT,
        take_profit_percent=DEFAULT_TAKE_PROFIT_PCT,
        risk_reward_ratio=DEFAULT_TAKE_PROFIT_PCT / DEFAULT_STOP_LOSS_PCT,
        atr_value=entry_price * 0.02,
        volatility=VolatilityLevel.MEDIUM,
        direction=direction,
        method=LevelMethod.DEFAULT,
    )


def calculate_atr_levels(
    candles: FrameInput,
    entry_price: float,
    direction: TradeDirection = TradeDirection.LONG,
    atr_multiplier_sl: float = 2.0,
    atr_multiplier_tp: float = 3.0,
) -> RiskLevels:
    """ATR-distance levels with volatility-adjusted multipliers.

    High volatility tightens the stop (x0.8) and widens the target (x1.2);
    low volatility widens the stop (x1.2) and trims the target (x0.9).
    """
    frame = candles_to_frame(candles)
    current_atr = value_or(atr(frame, ATR_PERIOD), entry_price * 0.02)

    recent_closes = frame["close"].to_numpy()[-ATR_PERIOD:]
    average_price = float(recent_closes.mean()) if recent_closes.size else entry_price
    atr_percent = current_atr / average_price * 100 if average_price else 0.0
    volatility = classify_volatility(atr_percent)

    sl_multiplier = atr_multiplier_sl
    tp_multiplier = atr_multiplier_tp
    if volatility is VolatilityLevel.HIGH:
        sl_multiplier *= 0.8
        tp_multiplier *= 1.2
    elif volatility is VolatilityLevel.LOW:
        sl_multiplier *= 1.2
        tp_multiplier *= 0.9

    sign = _sign(direction)
    stop_loss = entry_price - sign * current_atr * sl_multiplier
    take_profit_1 = entry_price + sign * current_atr * tp_multiplier * 0.5
    take_profit_2 = entry_price + sign * current_atr * tp_multiplier
    take_profit_3 = entry_price + sign * current_atr * tp_multiplier * 1.5

    stop_loss_percent = _percent(entry_price, stop_loss)
    take_profit_percent = _percent(entry_price, take_profit_2)
    return RiskLevels(
        entry_price=entry_price,
        stop_loss=stop_loss,
        take_profit_1=take_profit_1,
        take_profit_2=take_profit_2,
        take_profit_3=take_profit_3,
        stop_loss_percent=stop_loss_percent,
        take_profit_percent=take_profit_percent,
        risk_reward_ratio=_ratio(take_profit_percent, stop_loss_percent),
        atr_value=current_atr,
        volatility=volatility,
        direction=direction,
        method=LevelMethod.ATR,
    )


def find_support_resistance(
    candles: FrameInput, lookback: int = SUPPORT_RESISTANCE_LOOKBACK
) -> SupportResistance:
    """
    Swing-based support and resistance over the trailing ``lookback`` bars.

    A bar is a swing high (low) when its high (low) is strictly more extreme
    than the two bars on either side. Supports are returned nearest-first
    from the top (descending), resistances ascending.
    """
    frame = candles_to_frame(candles).tail(lookback)
    highs = frame["high"].to_numpy(dtype="float64")
    lows = frame["low"].to_numpy(dtype="float64")
    closes = frame["close"].to_numpy(dtype="float64")
    if closes.size == 0:
        return SupportResistance((), (), 0.0, 0.0, 0.0)

    swing_highs: list[float] = []
    swing_lows: list[float] = []
    for i in range(SWING_WINDOW, highs.size - SWING_WINDOW):
        neighbours = np.r_[i - SWING_WINDOW : i, i + 1 : i + SWING_WINDOW + 1]
        if highs[i] > highs[neighbours].max():
            swing_highs.append(float(highs[i]))
        if lows[i] < lows[neighbours].min():
            swing_lows.append(float(lows[i]))

    supports = sorted(set(swing_lows), reverse=True)
    resistances = sorted(set(swing_highs))

    current_price = float(closes[-1])
    pivot_point = float((highs[-1] + lows[-1] + closes[-1]) / 3)
    nearest_support = next(
        (s for s in supports if s < current_price),
        supports[0] if supports else current_price * 0.95,
    )
    nearest_resistance = next(
        (r for r in resistances if r > current_price),
        resistances[-1] if resistances else current_price * 1.05,
    )
    return SupportResistance(
        supports=tuple(supports[:MAX_LEVELS]),
        resistances=tuple(resistances[:MAX_LEVELS]),
        pivot_point=pivot_point,
        nearest_support=nearest_support,
        nearest_resistance=nearest_resistance,
    )


def compute_risk_levels(
    candles: Sequence[Candle] | FrameInput,
    entry_price: float,
    direction: TradeDirection = TradeDirection.LONG,
    atr_multiplier_sl: float = 2.0,
    atr_multiplier_tp: float = 3.0,
    use_support_resistance: bool = True,
) -> RiskLevels:
    """
    Recommended levels for a new position, blending ATR and structure.

    With fewer than ``MIN_BARS`` bars the conservative defaults are returned.
    A structural stop replaces the ATR stop only when it is closer to entry
    and still on the losing side of it; likewise for the second target. When
    the structural level is farther than the ATR level, the ATR level stays.
    """
    frame = candles_to_frame(candles)
    if len(frame) < MIN_BARS or entry_price <= 0:
        return default_risk_levels(entry_price, direction)

    levels = calculate_atr_levels(frame, entry_price, direction, atr_multiplier_sl, atr_multiplier_tp)
    if not use_support_resistance:
        return levels

    sr = find_support_resistance(frame, SUPPORT_RESISTANCE_LOOKBACK)
    stop_loss = levels.stop_loss
    take_profit_2 = levels.take_profit_2
    method = LevelMethod.ATR

    if direction is TradeDirection.LONG:
        if levels.stop_loss < sr.nearest_support < entry_price:
            stop_loss = sr.nearest_support * 0.995
            method = LevelMethod.SUPPORT
        if entry_price < sr.nearest_resistance < levels.take_profit_2:
            take_profit_2 = sr.nearest_resistance * 0.995
    else:
        if entry_price < sr.nearest_resistance < levels.stop_loss:
            stop_loss = sr.nearest_resistance * 1.005
            method = LevelMethod.RESISTANCE
        if levels.take_profit_2 < sr.nearest_support < entry_price:
            take_profit_2 = sr.nearest_support * 1.005

    take_profit_1 = levels.take_profit_1
    sign = _sign(direction)
    if take_profit_2 != levels.take_profit_2:
        if sign * (take_profit_2 - entry_price) <= 0:
            # The 0.5% offset pushed the target through entry; keep the ATR target
            take_profit_2 = levels.take_profit_2
        else:
            take_profit_1 = entry_price + (take_profit_2 - entry_price) * 0.5

    stop_loss_percent = _percent(entry_price, stop_loss)
    take_profit_percent = _percent(entry_price, take_profit_2)
    return replace(
        levels,
        stop_loss=stop_loss,
        take_profit_1=take_profit_1,
        take_profit_2=take_profit_2,
        stop_loss_percent=stop_loss_percent,
        take_profit_percent=take_profit_percent,
        risk_reward_ratio=_ratio(take_profit_percent, stop_loss_percent),
        method=method,
        support_resistance=sr,
    )


__all__ = [
    "LevelMethod",
    "MIN_BARS",
    "RiskLevels",
    "SupportResistance",
    "VolatilityLevel",
    "calculate_atr_levels",
    "classify_volatility",
    "compute_risk_levels",
    "default_risk_levels",
    "find_support_resistance",
]
