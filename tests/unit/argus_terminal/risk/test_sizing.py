from __future__ import annotations

import pytest

from argus_terminal.core.decision import TradeDirection
from argus_terminal.risk import kelly_size, position_size, risk_adjusted_position, trailing_stop


class TestPositionSize:
    def test_capped_at_ten_percent_notional(self) -> None:
        size = position_size(10_000.0, 100.0, 95.0, 2.0)

        assert size.risk_amount == pytest.approx(200.0)
        assert size.max_size == pytest.approx(10.0)
        assert size.recommended_size == pytest.approx(10.0)

    def test_wide_stop_reduces_size(self) -> None:
        size = position_size(10_000.0, 100.0, 50.0, 1.0)

        assert size.recommended_size == pytest.approx(2.0)

    def test_zero_stop_distance_uses_cap(self) -> None:
        size = position_size(10_000.0, 100.0, 100.0)

        assert size.recommended_size == size.max_size


class TestRiskAdjustedPosition:
    def test_notional_from_stop_fraction(self) -> None:
        position = risk_adjusted_position(10_000.0, 1.0, 100.0, 95.0)

        assert position.notional == pytest.approx(2_000.0)
        assert position.quantity == pytest.approx(20.0)
        assert position.risk_amount == pytest.approx(100.0)

    def test_tight_stop_capped_at_quarter(self) -> None:
        position = risk_adjusted_position(10_000.0, 1.0, 100.0, 99.0)

        assert position.notional == pytest.approx(2_500.0)

    def test_degenerate_inputs(self) -> None:
        assert risk_adjusted_position(10_000.0, 1.0, 0.0, 95.0).notional == 0.0
        assert risk_adjusted_position(10_000.0, 1.0, 100.0, 100.0).quantity == 0.0


class TestTrailingStop:
    def test_long_uses_tighter_of_atr_and_percent(self) -> None:
        assert trailing_stop(100.0, 110.0, 112.0, 2.0) == pytest.approx(107.0)
        assert trailing_stop(100.0, 110.0, 112.0, 10.0) == pytest.approx(106.4)

    def test_long_locks_breakeven_in_profit(self) -> None:
        assert trailing_stop(100.0, 103.0, 103.0, 10.0) == pytest.approx(100.0)

    def test_long_not_locked_below_threshold(self) -> None:
        assert trailing_stop(100.0, 101.0, 101.0, 10.0) == pytest.approx(95.95)

    def test_short(self) -> None:
        stop = trailing_stop(100.0, 90.0, 88.0, 2.0, TradeDirection.SHORT)

        assert stop == pytest.approx(92.4)


class TestKelly:
    def test_fractions(self) -> None:
        kelly = kelly_size(0.6, 2.0, 1.0)

        assert kelly.kelly_percent == pytest.approx(40.0)
        assert kelly.half_kelly == pytest.approx(20.0)
        assert kelly.quarter_kelly == pytest.approx(10.0)

    def test_capped_at_fifty(self) -> None:
        assert kelly_size(0.9, 2.0, 1.0).kelly_percent == 50.0

    def test_negative_edge_is_zero(self) -> None:
        assert kelly_size(0.2, 1.0, 1.0).kelly_percent == 0.0

    @pytest.mark.parametrize("args", [(0.0, 1.0, 1.0), (0.5, 0.0, 1.0), (0.5, 1.0, 0.0)])
    def test_missing_inputs(self, args: tuple[float, float, float]) -> None:
        assert kelly_size(*args).kelly_percent == 0.0
