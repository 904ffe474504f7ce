from __future__ import annotations

import math

import numpy as np
import pytest

from argus_terminal.backtest import STRATEGY_INFO, IndicatorFrame, get_strategy
from argus_terminal.backtest.strategies import ArgusCompositeStrategy
from argus_terminal.config import StrategyId
from argus_terminal.core.decision import Action

NAN = math.nan


def indicator_frame(**arrays: list[float]) -> IndicatorFrame:
    """Two-bar frame; any array not supplied is undefined."""
    fields = (
        "close",
        "rsi",
        "macd",
        "macd_signal",
        "histogram",
        "bb_upper",
        "bb_middle",
        "bb_lower",
        "sma_20",
        "sma_50",
        "sma_200",
    )
    return IndicatorFrame(
        **{name: np.array(arrays.get(name, [NAN, NAN]), dtype="float64") for name in fields}
    )


def decide(strategy: StrategyId, **arrays: list[float]):
    return get_strategy(strategy).decide(1, indicator_frame(**arrays))


class TestFactory:
    def test_accepts_string_ids(self) -> None:
        assert isinstance(get_strategy("argusComposite"), ArgusCompositeStrategy)

    def test_unknown_strategy(self) -> None:
        with pytest.raises(ValueError, match="Unknown strategy: nope"):
            get_strategy("nope")

    def test_every_strategy_is_described(self) -> None:
        assert set(STRATEGY_INFO) == set(StrategyId)
        for strategy_id in StrategyId:
            assert get_strategy(strategy_id).strategy_id is strategy_id


class TestRsiMeanReversion:
    def test_buys_oversold_turn(self) -> None:
        signal = decide(StrategyId.RSI_MEAN_REVERSION, rsi=[25.0, 28.0])

        assert signal.action is Action.BUY
        assert signal.reason == "RSI Oversold (28.0)"

    def test_waits_while_rsi_still_falling(self) -> None:
        assert decide(StrategyId.RSI_MEAN_REVERSION, rsi=[28.0, 25.0]).action is Action.HOLD

    def test_sells_overbought_turn(self) -> None:
        assert decide(StrategyId.RSI_MEAN_REVERSION, rsi=[80.0, 75.0]).action is Action.SELL


class TestCrossovers:
    def test_macd_bullish_cross(self) -> None:
        signal = decide(StrategyId.MACD_CROSSOVER, macd=[-1.0, 1.0], macd_signal=[0.0, 0.0])

        assert signal.action is Action.BUY
        assert signal.reason == "MACD Bullish Crossover"

    def test_macd_bearish_cross(self) -> None:
        signal = decide(StrategyId.MACD_CROSSOVER, macd=[1.0, -1.0], macd_signal=[0.0, 0.0])

        assert signal.action is Action.SELL

    def test_macd_undefined_holds(self) -> None:
        assert decide(StrategyId.MACD_CROSSOVER, macd=[NAN, 1.0]).action is Action.HOLD

    def test_golden_cross(self) -> None:
        signal = decide(StrategyId.GOLDEN_CROSS, sma_50=[99.0, 101.0], sma_200=[100.0, 100.0])

        assert signal.action is Action.BUY
        assert signal.reason == "Golden Cross (SMA50 > SMA200)"

    def test_death_cross(self) -> None:
        signal = decide(StrategyId.GOLDEN_CROSS, sma_50=[101.0, 99.0], sma_200=[100.0, 100.0])

        assert signal.action is Action.SELL


class TestBandAndTrend:
    def test_bollinger_breakdown_buys(self) -> None:
        signal = decide(
            StrategyId.BOLLINGER_BREAKOUT,
            close=[100.0, 89.0],
            bb_upper=[110.0, 110.0],
            bb_lower=[90.0, 90.0],
        )

        assert signal.action is Action.BUY

    def test_trend_following_needs_unstretched_rsi(self) -> None:
        aligned = {"close": [0.0, 110.0], "sma_20": [0.0, 105.0], "sma_50": [0.0, 100.0]}

        assert decide(StrategyId.TREND_FOLLOWING, rsi=[0.0, 60.0], **aligned).action is Action.BUY
        assert decide(StrategyId.TREND_FOLLOWING, rsi=[0.0, 75.0], **aligned).action is Action.HOLD

    def test_trend_following_sells_downtrend(self) -> None:
        signal = decide(
            StrategyId.TREND_FOLLOWING,
            close=[0.0, 90.0],
            sma_20=[0.0, 95.0],
            sma_50=[0.0, 100.0],
            rsi=[0.0, 40.0],
        )

        assert signal.action is Action.SELL


class TestArgusComposite:
    def test_score_sums_points(self) -> None:
        data = indicator_frame(
            close=[0.0, 90.0],
            rsi=[0.0, 25.0],
            histogram=[0.0, 1.0],
            sma_20=[0.0, 100.0],
            bb_lower=[0.0, 95.0],
            bb_upper=[0.0, 110.0],
        )

        strategy = ArgusCompositeStrategy()

        assert strategy.score(1, data) == 4
        assert strategy.decide(1, data).action is Action.BUY

    def test_undefined_inputs_score_zero(self) -> None:
        assert ArgusCompositeStrategy().score(1, indicator_frame(close=[0.0, 100.0])) == 0
