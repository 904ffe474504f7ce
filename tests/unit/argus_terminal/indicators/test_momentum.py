from __future__ import annotations

import math

import numpy as np
import pytest

from argus_terminal.indicators import cci, macd, rsi, stochastic, williams_r
from tests.factories import flat_candles, linear_candles, make_candles


class TestRsi:
    def test_first_value_at_period_index(self) -> None:
        result = rsi(list(range(1, 21)), 14)

        assert result.iloc[:14].isna().all()
        assert not math.isnan(result.iloc[14])

    def test_only_gains_is_100(self) -> None:
        result = rsi(list(range(1, 31)), 14)

        assert result.dropna().tolist() == [100.0] * 16

    def test_only_losses_is_0(self) -> None:
        result = rsi(list(range(30, 0, -1)), 14)

        assert result.dropna().tolist() == [0.0] * 16

    def test_flat_series_is_100(self) -> None:
        # no losses at all, so the ratio is undefined and pinned to 100
        assert rsi([5.0] * 20, 14).dropna().tolist() == [100.0] * 6

    def test_balanced_changes_give_50(self) -> None:
        result = rsi([1.0, 2.0, 1.0], 2)

        assert result.iloc[2] == pytest.approx(50.0)

    def test_wilder_smoothing_step(self) -> None:
        result = rsi([1.0, 2.0, 1.0, 3.0], 2)

        # seed gains/losses 0.5/0.5, then (0.5 + 2) / 2 and (0.5 + 0) / 2
        assert result.iloc[3] == pytest.approx(100 - 100 / (1 + 1.25 / 0.25))

    def test_too_short_is_all_nan(self) -> None:
        assert rsi([1.0] * 14, 14).isna().all()


class TestMacd:
    def test_warmup_lengths(self) -> None:
        closes = np.linspace(100, 150, 60)

        result = macd(closes)

        assert len(result.macd) == len(result.signal) == len(result.histogram) == 60
        assert result.macd.iloc[:25].isna().all()
        assert not math.isnan(result.macd.iloc[25])
        assert result.signal.iloc[:33].isna().all()
        assert not math.isnan(result.signal.iloc[33])

    def test_histogram_is_line_minus_signal(self) -> None:
        closes = 100 + np.sin(np.arange(80) / 5) * 10

        result = macd(closes)

        defined = ~result.histogram.isna()
        np.testing.assert_allclose(
            result.histogram[defined], (result.macd - result.signal)[defined]
        )

    def test_rising_series_has_positive_line(self) -> None:
        result = macd(np.linspace(100, 200, 60))

        assert result.macd.dropna().gt(0).all()


class TestStochastic:
    def test_zero_range_window_is_50(self) -> None:
        result = stochastic(flat_candles(20))

        assert result.k.dropna().tolist() == [50.0] * 7
        assert result.d.iloc[15] == pytest.approx(50.0)
        assert result.d.iloc[:15].isna().all()

    def test_close_at_high_is_100(self) -> None:
        candles = make_candles(range(1, 21), spread=0.0)

        result = stochastic(candles)

        assert result.k.iloc[-1] == pytest.approx(100.0)


class TestCci:
    def test_flat_series_is_undefined(self) -> None:
        assert cci(flat_candles(30)).isna().all()

    def test_uptrend_is_positive(self) -> None:
        result = cci(linear_candles(40))

        assert result.iloc[-1] > 100


class TestWilliamsR:
    def test_range_is_bounded(self) -> None:
        closes = 100 + np.sin(np.arange(60) / 3) * 5
        result = williams_r(make_candles(closes)).dropna()

        assert result.between(-100, 0).all()

    def test_flat_series_is_undefined(self) -> None:
        assert williams_r(flat_candles(20)).isna().all()
