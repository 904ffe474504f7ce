"""Technical indicator library.

Every function returns a float ``pandas.Series`` aligned 1:1 with its input.
Positions inside the warm-up window hold ``NaN``; short inputs produce an
all-``NaN`` series rather than raising.
"""

from .momentum import MACDResult, StochasticResult, cci, macd, rsi, stochastic, williams_r
from .moving_averages import ema, sma
from .signals import (
    adx_strength,
    cci_signal,
    latest,
    macd_signal,
    rsi_signal,
    stochastic_signal,
    value_or,
    williams_r_signal,
)
from .summary import IndicatorSummary, indicator_summary
from .trend import DirectionalMovement, adx, directional_movement
from .volatility import BollingerBands, atr, bollinger_bands, true_range

__all__ = [
    "BollingerBands",
    "DirectionalMovement",
    "IndicatorSummary",
    "MACDResult",
    "StochasticResult",
    "adx",
    "adx_strength",
    "atr",
    "bollinger_bands",
    "cci",
    "cci_signal",
    "directional_movement",
    "ema",
    "indicator_summary",
    "latest",
    "macd",
    "macd_signal",
    "rsi",
    "rsi_signal",
    "sma",
    "stochastic",
    "stochastic_signal",
    "true_range",
    "value_or",
    "williams_r",
    "williams_r_signal",
]
