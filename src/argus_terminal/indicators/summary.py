"""Latest-value snapshot of every indicator, as shown by the analysis view."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

from argus_terminal.core.market import candles_to_frame

from ._series import FrameInput
from .momentum import cci, macd, rsi, stochastic, williams_r
from .moving_averages import ema, sma
from .signals import (
    adx_strength,
    cci_signal,
    latest,
    macd_signal,
    rsi_signal,
    stochastic_signal,
    williams_r_signal,
)
from .trend import adx
from .volatility import atr, bollinger_bands


@dataclass(frozen=True)
class IndicatorSummary:
    rsi: float | None
    rsi_signal: str
    macd: float | None
    macd_signal: float | None
    macd_histogram: float | None
    macd_trend: str
    bollinger_upper: float | None
    bollinger_middle: float | None
    bollinger_lower: float | None
    stochastic_k: float | None
    stochastic_d: float | None
    stochastic_signal: str
    cci: float | None
    cci_signal: str
    adx: float | None
    adx_strength: str
    atr: float | None
    williams_r: float | None
    williams_r_signal: str
    sma_20: float | None
    sma_50: float | None
    sma_200: float | None
    ema_12: float | None
    ema_26: float | None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def indicator_summary(data: FrameInput) -> IndicatorSummary:
    """Compute every indicator once and keep the latest reading of each."""
    frame = candles_to_frame(data)
    close = frame["close"]

    rsi_value = latest(rsi(close))
    macd_result = macd(close)
    histogram = latest(macd_result.histogram)
    bands = bollinger_bands(close)
    stoch = stochastic(frame)
    k_value, d_value = latest(stoch.k), latest(stoch.d)
    cci_value = latest(cci(frame))
    adx_value = latest(adx(frame))
    williams_value = latest(williams_r(frame))

    return IndicatorSummary(
        rsi=rsi_value,
        rsi_signal=rsi_signal(rsi_value).value,
        macd=latest(macd_result.macd),
        macd_signal=latest(macd_result.signal),
        macd_histogram=histogram,
        macd_trend=macd_signal(histogram).value,
        bollinger_upper=latest(bands.upper),
        bollinger_middle=latest(bands.middle),
        bollinger_lower=latest(bands.lower),
        stochastic_k=k_value,
        stochastic_d=d_value,
        stochastic_signal=stochastic_signal(k_value, d_value).value,
        cci=cci_value,
        cci_signal=cci_signal(cci_value).value,
        adx=adx_value,
        adx_strength=adx_strength(adx_value),
        atr=latest(atr(frame)),
        williams_r=williams_value,
        williams_r_signal=williams_r_signal(williams_value).value,
        sma_20=latest(sma(close, 20)),
        sma_50=latest(sma(close, 50)),
        sma_200=latest(sma(close, 200)),
        ema_12=latest(ema(close, 12)),
        ema_26=latest(ema(close, 26)),
    )


__all__ = ["IndicatorSummary", "indicator_summary"]
