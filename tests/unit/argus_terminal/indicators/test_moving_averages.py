from __future__ import annotations

import math

import numpy as np
import pandas as pd
import pytest

from argus_terminal.indicators import ema, sma


class TestSma:
    def test_matches_window_means(self) -> None:
        result = sma([1, 2, 3, 4, 5], 3)

        assert len(result) == 5
        assert math.isnan(result[0]) and math.isnan(result[1])
        assert result.tolist()[2:] == [2.0, 3.0, 4.0]

    def test_short_input_is_all_nan(self) -> None:
        result = sma([1.0, 2.0], 5)

        assert len(result) == 2
        assert result.isna().all()

    def test_preserves_series_index(self) -> None:
        values = pd.Series([1.0, 2.0, 3.0], index=[10, 11, 12])

        result = sma(values, 2)

        assert list(result.index) == [10, 11, 12]
        assert result.loc[12] == pytest.approx(2.5)

    def test_rejects_non_positive_period(self) -> None:
        with pytest.raises(ValueError):
            sma([1.0, 2.0], 0)


class TestEma:
    def test_seeded_with_sma_then_smoothed(self) -> None:
        result = ema([1, 2, 3, 4, 5], 3)

        assert result.isna().tolist() == [True, True, False, False, False]
        # k = 0.5, seed = mean(1, 2, 3)
        assert result.tolist()[2:] == pytest.approx([2.0, 3.0, 4.0])

    def test_constant_series_stays_constant(self) -> None:
        result = ema(np.full(40, 7.5), 12)

        assert result.dropna().tolist() == pytest.approx([7.5] * 29)

    def test_short_input_is_all_nan(self) -> None:
        assert ema([1.0, 2.0, 3.0], 12).isna().all()
