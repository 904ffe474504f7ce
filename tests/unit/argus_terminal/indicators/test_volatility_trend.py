from __future__ import annotations

import math

import numpy as np
import pytest

from argus_terminal.indicators import adx, atr, bollinger_bands, directional_movement, true_range
from tests.factories import flat_candles, linear_candles, make_candles


class TestBollingerBands:
    def test_flat_series_collapses_bands(self) -> None:
        bands = bollinger_bands([50.0] * 25)

        assert bands.upper.iloc[-1] == bands.middle.iloc[-1] == bands.lower.iloc[-1] == 50.0

    def test_uses_population_standard_deviation(self) -> None:
        values = list(range(1, 21))

        bands = bollinger_bands(values, period=20, multiplier=2.0)

        std = float(np.std(values))
        assert bands.middle.iloc[-1] == pytest.approx(10.5)
        assert bands.upper.iloc[-1] == pytest.approx(10.5 + 2 * std)
        assert bands.lower.iloc[-1] == pytest.approx(10.5 - 2 * std)
        assert bands.middle.iloc[:19].isna().all()


class TestTrueRangeAndAtr:
    def test_true_range_includes_gaps(self) -> None:
        high = np.array([10.0, 12.0])
        low = np.array([9.0, 11.5])
        close = np.array([9.5, 12.0])

        tr = true_range(high, low, close)

        assert tr.tolist() == [1.0, 2.5]

    def test_constant_range_gives_constant_atr(self) -> None:
        candles = make_candles([100.0] * 30, spread=1.0)

        result = atr(candles, 14)

        assert result.iloc[:13].isna().all()
        assert result.dropna().tolist() == pytest.approx([2.0] * 17)

    def test_short_input_is_all_nan(self) -> None:
        assert atr(flat_candles(14), 14).isna().all()


class TestDirectionalMovement:
    def test_needs_more_than_two_periods(self) -> None:
        result = directional_movement(linear_candles(28), 14)

        assert result.adx.isna().all()
        assert result.plus_di.isna().all()

    def test_clean_uptrend(self) -> None:
        result = directional_movement(linear_candles(60), 14)

        assert result.plus_di.iloc[-1] > result.minus_di.iloc[-1]
        assert result.minus_di.iloc[-1] == pytest.approx(0.0)
        assert result.adx.iloc[:28].isna().all()
        assert result.adx.iloc[-1] == pytest.approx(100.0)

    def test_adx_bounded(self) -> None:
        closes = 100 + np.cumsum(np.sin(np.arange(120) / 4))
        values = adx(make_candles(closes)).dropna()

        assert not values.empty
        assert values.between(0, 100).all()
        assert not any(math.isnan(v) for v in values)
