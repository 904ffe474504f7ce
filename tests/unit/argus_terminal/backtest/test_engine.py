from __future__ import annotations

import math

import pytest

from argus_terminal.backtest import END_OF_BACKTEST, WARMUP_BARS, Backtester, run_backtest
from argus_terminal.config import BacktestConfig, StrategyId
from argus_terminal.core.decision import Action
from tests.factories import flat_candles, make_candles, random_walk_candles

BOLLINGER = BacktestConfig(strategy=StrategyId.BOLLINGER_BREAKOUT, commission=0.0)
CHOPPY = [100.0, 101.0] * 30


class TestBacktester:
    def test_short_history_returns_empty_result(self) -> None:
        result = run_backtest("BTCUSDT", flat_candles(WARMUP_BARS - 1))

        assert result.total_trades == 0
        assert result.final_capital == result.initial_capital == 10_000.0
        assert result.start_date is None
        assert result.equity_curve == ()

    def test_flat_market_never_trades(self) -> None:
        config = BacktestConfig(strategy=StrategyId.ARGUS_COMPOSITE)

        result = run_backtest("BTCUSDT", flat_candles(200), config)

        assert result.total_trades == 0
        assert result.final_capital == pytest.approx(10_000.0)
        assert len(result.equity_curve) == 200 - WARMUP_BARS
        assert result.sharpe_ratio == 0.0

    def test_stop_loss_closes_losing_trade(self) -> None:
        result = Backtester(BOLLINGER).run("BTCUSDT", make_candles([*CHOPPY, 95.0, 90.0]))

        assert result.total_trades == 1
        trade = result.trades[0]
        assert trade.entry_price == 95.0
        assert trade.exit_price == 90.0
        assert trade.reason == "Stop Loss (-5.3%)"
        assert trade.quantity == pytest.approx(2_000.0 / 95.0)
        assert trade.pnl == pytest.approx(-5.0 * 2_000.0 / 95.0)
        assert result.losing_trades == 1
        assert result.win_rate == 0.0
        assert result.profit_factor == 0.0
        assert result.final_capital == pytest.approx(10_000.0 + trade.pnl)
        assert [s.action for s in result.signals] == [Action.BUY, Action.SELL]

    def test_strategy_sell_takes_precedence(self) -> None:
        result = Backtester(BOLLINGER).run("BTCUSDT", make_candles([*CHOPPY, 95.0, 110.0]))

        assert result.trades[0].reason == "Price Above Upper Band"
        assert result.winning_trades == 1

    def test_open_position_closed_at_end(self) -> None:
        result = Backtester(BOLLINGER).run("BTCUSDT", make_candles([*CHOPPY, 95.0, 96.0]))

        trade = result.trades[-1]
        assert trade.reason == END_OF_BACKTEST
        assert trade.exit_price == 96.0
        assert math.isinf(result.profit_factor)
        assert result.to_dict()["profit_factor"] is None

    def test_commission_charged_on_entry_and_exit(self) -> None:
        config = BOLLINGER.updated(commission=0.01)

        result = Backtester(config).run("BTCUSDT", make_candles([*CHOPPY, 95.0, 90.0]))

        quantity = 2_000.0 / 95.0
        exit_commission = quantity * 90.0 * 0.01
        assert result.trades[0].pnl == pytest.approx(-5.0 * quantity - exit_commission)
        assert result.final_capital == pytest.approx(
            10_000.0 - 2_000.0 * 0.01 + result.trades[0].pnl
        )

    def test_to_dict_with_series(self) -> None:
        result = run_backtest("ETHUSDT", random_walk_candles(150), BOLLINGER)

        payload = result.to_dict(include_series=True)

        assert payload["strategy"] == "bollingerBreakout"
        assert len(payload["equity_curve"]) == 100
        assert payload["total_trades"] == len(payload["trades"])
        assert 0.0 <= payload["max_drawdown_percent"] <= 100.0
