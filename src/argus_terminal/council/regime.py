from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

import pandas as pd

from argus_terminal.core.decision import Action
from argus_terminal.core.market import Candle, candles_to_frame
from argus_terminal.indicators import directional_movement, latest


class MarketRegime(Enum):
    TRENDING = "trending"
    RANGING = "ranging"
    VOLATILE = "volatile"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class RegimeReading:
    regime: MarketRegime
    adx: float | None
    bias: Action


def detect_market_regime(candles: Sequence[Candle] | pd.DataFrame) -> RegimeReading:
    """Classify the market by ADX: above 25 trending, below 15 ranging, else volatile.

    The bias follows whichever directional indicator (+DI or -DI) is larger.
    """
    dm = directional_movement(candles_to_frame(candles))
    adx_value = latest(dm.adx)
    if adx_value is None:
        return RegimeReading(MarketRegime.UNKNOWN, None, Action.HOLD)

    plus_di = latest(dm.plus_di) or 0.0
    minus_di = latest(dm.minus_di) or 0.0
    if plus_di > minus_di:
        bias = Action.BUY
    elif minus_di > plus_di:
        bias = Action.SELL
    else:
        bias = Action.HOLD

    if adx_value > 25:
        regime = MarketRegime.TRENDING
    elif adx_value < 15:
        regime = MarketRegime.RANGING
    else:
        regime = MarketRegime.VOLATILE
    return RegimeReading(regime, adx_value, bias)


__all__ = ["MarketRegime", "RegimeReading", "detect_market_regime"]
