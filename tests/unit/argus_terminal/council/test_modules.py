from __future__ import annotations

from dataclasses import replace

import numpy as np
import pytest

from argus_terminal.core.decision import Action, CouncilModule, ModuleVote
from argus_terminal.council import (
    CouncilInputs,
    aether_vote,
    argus_vote,
    atlas_vote,
    chronos_vote,
    hermes_vote,
    orion_vote,
    poseidon_vote,
)


def neutral_inputs(**overrides) -> CouncilInputs:
    inputs = CouncilInputs(
        price=100.0,
        prev_price=100.0,
        volumes=np.full(30, 1_000.0),
        macd_line=0.0,
        macd_signal=0.0,
        histogram=0.0,
        prev_histogram=0.0,
        adx=20.0,
        sma_20=100.0,
        sma_50=100.0,
        sma_200=100.0,
        bb_upper=110.0,
        bb_middle=100.0,
        bb_lower=90.0,
        rsi=50.0,
        stoch_k=50.0,
        stoch_d=50.0,
        cci=0.0,
    )
    return replace(inputs, **overrides)


class TestOrion:
    def test_rising_histogram_above_signal(self) -> None:
        vote = orion_vote(
            neutral_inputs(histogram=2.0, prev_histogram=1.0, macd_line=1.0, macd_signal=0.5, adx=30)
        )

        assert vote.module is CouncilModule.ORION
        assert vote.score == pytest.approx(51.0)
        assert vote.direction is Action.BUY
        assert vote.confidence == pytest.approx(95.0)
        assert vote.reason == "Positive momentum wave forming"

    def test_score_is_clamped(self) -> None:
        vote = orion_vote(neutral_inputs(histogram=-50.0, prev_histogram=0.0))

        assert vote.score == -100.0
        assert vote.direction is Action.SELL

    def test_undefined_inputs_are_neutral(self) -> None:
        vote = orion_vote(
            neutral_inputs(histogram=None, prev_histogram=None, macd_line=None, adx=None)
        )

        assert vote.score == 0.0
        assert vote.direction is Action.HOLD
        assert vote.confidence == 20.0


class TestAtlas:
    def test_bull_stack_overextended(self) -> None:
        vote = atlas_vote(neutral_inputs(price=110.0, sma_50=100.0, sma_200=90.0))

        assert vote.score == pytest.approx(55.0)
        assert vote.direction is Action.BUY
        assert vote.reason.endswith("(overextended)")

    def test_short_term_downtrend(self) -> None:
        vote = atlas_vote(neutral_inputs(price=95.0, sma_20=97.0, sma_50=99.0, sma_200=90.0))

        assert vote.score == -40.0
        assert vote.direction is Action.SELL


class TestAether:
    def test_price_below_middle_scores_for_reversion(self) -> None:
        vote = aether_vote(neutral_inputs(price=90.0))

        assert vote.score == pytest.approx(80.0)
        assert vote.direction is Action.BUY
        assert "lower band" in vote.reason

    def test_zero_width_band_is_neutral(self) -> None:
        vote = aether_vote(neutral_inputs(bb_upper=100.0, bb_lower=100.0))

        assert vote.score == 0.0


class TestHermes:
    def test_oversold_with_stochastic_confirmation(self) -> None:
        vote = hermes_vote(neutral_inputs(rsi=25.0, stoch_k=10.0))

        assert vote.score == pytest.approx(80.0)
        assert vote.direction is Action.BUY
        assert vote.reason == "Oversold, recovery signals"

    def test_overbought(self) -> None:
        vote = hermes_vote(neutral_inputs(rsi=80.0, stoch_k=90.0))

        assert vote.score == pytest.approx(-90.0)
        assert vote.direction is Action.SELL


class TestChronos:
    def test_deep_cycle_low(self) -> None:
        vote = chronos_vote(neutral_inputs(cci=-300.0))

        assert vote.score == 100.0
        assert vote.direction is Action.BUY
        assert vote.reason == "Cycle bottomed, strong reversal expected"


class TestPoseidon:
    def test_volume_spike_on_up_bar(self) -> None:
        volumes = np.full(30, 1_000.0)
        volumes[-1] = 3_000.0

        vote = poseidon_vote(neutral_inputs(price=101.0, prev_price=100.0, volumes=volumes))

        assert vote.score == pytest.approx(0.01 * (3_000 / 1_100) * 1_500)
        assert vote.direction is Action.BUY
        assert vote.confidence == 100.0
        assert vote.reason == "Extraordinary volume, whale activity"

    def test_zero_volume_is_neutral(self) -> None:
        vote = poseidon_vote(neutral_inputs(price=101.0, volumes=np.zeros(30)))

        assert vote.score == 0.0
        assert vote.direction is Action.HOLD
        assert vote.confidence == 20.0


class TestArgusGuardian:
    def _vote(self, score: float, direction: Action) -> ModuleVote:
        return ModuleVote(CouncilModule.ORION, score, direction, 50.0, "")

    def test_averages_and_counts_consensus(self) -> None:
        votes = [self._vote(40.0, Action.BUY)] * 5 + [self._vote(-10.0, Action.HOLD)]

        vote = argus_vote(votes)

        assert vote.module is CouncilModule.ARGUS
        assert vote.score == pytest.approx(190.0 / 6)
        assert vote.direction is Action.BUY
        assert vote.confidence == 95.0
        assert vote.reason == "Strong council consensus"

    def test_empty_votes(self) -> None:
        vote = argus_vote([])

        assert vote.score == 0.0
        assert vote.direction is Action.HOLD
