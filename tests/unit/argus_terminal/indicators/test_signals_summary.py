from __future__ import annotations

import math

import pandas as pd
import pytest

from argus_terminal.core.decision import Action
from argus_terminal.indicators import (
    adx_strength,
    cci_signal,
    indicator_summary,
    latest,
    macd_signal,
    rsi_signal,
    stochastic_signal,
    value_or,
    williams_r_signal,
)
from tests.factories import linear_candles, random_walk_candles


class TestLatest:
    def test_skips_nan(self) -> None:
        assert latest(pd.Series([1.0, math.nan])) is None

    def test_offset(self) -> None:
        series = pd.Series([1.0, 2.0, 3.0])

        assert latest(series) == 3.0
        assert latest(series, offset=2) == 2.0
        assert latest(series, offset=4) is None

    def test_value_or_replaces_zero_and_nan(self) -> None:
        assert value_or(pd.Series([0.0]), 5.0) == 5.0
        assert value_or(pd.Series([math.nan]), 5.0) == 5.0
        assert value_or(pd.Series([2.0]), 5.0) == 2.0


class TestThresholdSignals:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [(None, Action.HOLD), (29.9, Action.BUY), (30, Action.HOLD), (70.1, Action.SELL)],
    )
    def test_rsi(self, value: float | None, expected: Action) -> None:
        assert rsi_signal(value) is expected

    def test_macd(self) -> None:
        assert macd_signal(0.1) is Action.BUY
        assert macd_signal(-0.1) is Action.SELL
        assert macd_signal(0.0) is Action.HOLD

    def test_stochastic_needs_both_lines(self) -> None:
        assert stochastic_signal(10, 15) is Action.BUY
        assert stochastic_signal(10, 25) is Action.HOLD
        assert stochastic_signal(85, 90) is Action.SELL
        assert stochastic_signal(None, 90) is Action.HOLD

    def test_cci_and_williams(self) -> None:
        assert cci_signal(-150) is Action.BUY
        assert cci_signal(150) is Action.SELL
        assert williams_r_signal(-90) is Action.BUY
        assert williams_r_signal(-10) is Action.SELL

    @pytest.mark.parametrize(
        ("value", "label"),
        [
            (None, "Unknown"),
            (55, "Very strong trend"),
            (30, "Strong trend"),
            (22, "Weak trend"),
            (10, "No trend (ranging)"),
        ],
    )
    def test_adx_strength(self, value: float | None, label: str) -> None:
        assert adx_strength(value) == label


class TestIndicatorSummary:
    def test_long_history_defines_every_reading(self) -> None:
        summary = indicator_summary(random_walk_candles(250))

        payload = summary.to_dict()
        numeric = {k: v for k, v in payload.items() if not isinstance(v, str)}
        assert all(v is not None for k, v in numeric.items() if k != "cci"), numeric
        assert 0 <= summary.rsi <= 100

    def test_short_history_leaves_long_averages_undefined(self) -> None:
        summary = indicator_summary(linear_candles(60))

        assert summary.sma_50 is not None
        assert summary.sma_200 is None
        assert summary.rsi == 100.0
        assert summary.rsi_signal == "sell"
