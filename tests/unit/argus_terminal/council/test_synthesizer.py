from __future__ import annotations

from datetime import UTC, datetime

import pytest

from argus_terminal.core.decision import Action, CouncilModule, ModuleVote
from argus_terminal.council import (
    INSUFFICIENT_DATA_REASON,
    MIN_CANDLES,
    MarketRegime,
    aggregate_votes,
    compute_decision,
    detect_market_regime,
    fallback_decision,
)
from tests.factories import flat_candles, linear_candles, random_walk_candles

FIXED_TIME = datetime(2024, 1, 1, tzinfo=UTC)


def votes(*directions: Action, score: float = 10.0) -> list[ModuleVote]:
    modules = list(CouncilModule)
    result = []
    for module, direction in zip(modules, directions, strict=False):
        signed = score if direction is Action.BUY else -score if direction is Action.SELL else 0.0
        result.append(ModuleVote(module, signed, direction, 50.0, ""))
    return result


class TestAggregateVotes:
    def test_four_agreeing_modules_decide(self) -> None:
        decision = aggregate_votes(
            "BTCUSDT", votes(*[Action.BUY] * 4, *[Action.HOLD] * 3), rsi_value=50.0
        )

        assert decision.final_action is Action.BUY
        assert decision.confidence == pytest.approx(65.0)
        assert decision.reason == "Council voted 4 buy, 0 sell: BUY decision"

    def test_strong_consensus_floor(self) -> None:
        decision = aggregate_votes(
            "BTCUSDT", votes(*[Action.SELL] * 6, Action.HOLD), rsi_value=50.0
        )

        assert decision.final_action is Action.SELL
        assert decision.confidence >= 85.0

    def test_split_council_holds(self) -> None:
        decision = aggregate_votes(
            "BTCUSDT", votes(*[Action.BUY] * 3, *[Action.SELL] * 3, Action.HOLD), rsi_value=50.0
        )

        assert decision.final_action is Action.HOLD
        assert decision.confidence == pytest.approx(30.0)
        assert decision.buy_votes == 3 and decision.sell_votes == 3

    def test_extreme_rsi_overrides_the_vote(self) -> None:
        split = votes(*[Action.SELL] * 5, Action.HOLD, Action.HOLD)

        decision = aggregate_votes("BTCUSDT", split, rsi_value=20.0)

        assert decision.final_action is Action.BUY
        assert decision.reason == "CRITICAL OVERSOLD TRIGGER (RSI < 24)"

    def test_overbought_trigger(self) -> None:
        decision = aggregate_votes("BTCUSDT", votes(*[Action.HOLD] * 7), rsi_value=80.0)

        assert decision.final_action is Action.SELL
        assert decision.reason.startswith("CRITICAL OVERBOUGHT")

    def test_undefined_rsi_is_neutral(self) -> None:
        decision = aggregate_votes("BTCUSDT", votes(*[Action.HOLD] * 7), rsi_value=None)

        assert decision.final_action is Action.HOLD

    def test_confidence_capped_at_100(self) -> None:
        decision = aggregate_votes("BTCUSDT", votes(*[Action.BUY] * 7, score=100.0), 50.0)

        assert decision.confidence == 100.0


class TestComputeDecision:
    def test_short_history_falls_back(self) -> None:
        decision = compute_decision(linear_candles(MIN_CANDLES - 1), "BTCUSDT")

        assert decision.final_action is Action.HOLD
        assert decision.confidence == 0.0
        assert decision.votes == ()
        assert decision.reason == INSUFFICIENT_DATA_REASON

    def test_fallback_accepts_custom_reason(self) -> None:
        decision = fallback_decision("BTCUSDT", reason="Analysis failed: boom")

        assert decision.final_action is Action.HOLD
        assert decision.reason == "Analysis failed: boom"

    def test_seven_votes_in_module_order(self) -> None:
        decision = compute_decision(random_walk_candles(120), "ETHUSDT", FIXED_TIME)

        assert [vote.module for vote in decision.votes] == list(CouncilModule)
        assert decision.symbol == "ETHUSDT"
        assert 0.0 <= decision.confidence <= 100.0
        assert all(-100.0 <= vote.score <= 100.0 for vote in decision.votes)

    def test_relentless_rally_triggers_overbought_sell(self) -> None:
        decision = compute_decision(linear_candles(100), "BTCUSDT")

        assert decision.final_action is Action.SELL
        assert decision.reason.startswith("CRITICAL OVERBOUGHT")

    def test_relentless_decline_triggers_oversold_buy(self) -> None:
        decision = compute_decision(linear_candles(100, start=300.0, slope=-1.0), "BTCUSDT")

        assert decision.final_action is Action.BUY
        assert decision.reason.startswith("CRITICAL OVERSOLD")

    def test_deterministic_for_fixed_timestamp(self) -> None:
        candles = random_walk_candles(150, seed=11)

        first = compute_decision(candles, "BTCUSDT", FIXED_TIME)
        second = compute_decision(candles, "BTCUSDT", FIXED_TIME)

        assert first == second

    def test_to_dict_is_json_ready(self) -> None:
        payload = compute_decision(random_walk_candles(80), "BTCUSDT", FIXED_TIME).to_dict()

        assert payload["final_action"] in {"buy", "sell", "hold"}
        assert payload["timestamp"] == FIXED_TIME.isoformat()
        assert len(payload["votes"]) == 7


class TestMarketRegime:
    def test_trending(self) -> None:
        reading = detect_market_regime(linear_candles(60))

        assert reading.regime is MarketRegime.TRENDING
        assert reading.bias is Action.BUY

    def test_flat_market_is_ranging(self) -> None:
        reading = detect_market_regime(flat_candles(60))

        assert reading.regime is MarketRegime.RANGING
        assert reading.bias is Action.HOLD

    def test_short_history_unknown(self) -> None:
        reading = detect_market_regime(linear_candles(20))

        assert reading.regime is MarketRegime.UNKNOWN
        assert reading.adx is None
