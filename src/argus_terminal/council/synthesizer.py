"""
Council decision synthesis.

This is the single decision kernel shared by ad-hoc analysis and the
AutoPilot scan loop. It is deterministic apart from the decision timestamp
and never raises for short or degenerate input.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime

import pandas as pd

from argus_terminal.core.decision import Action, CouncilDecision, ModuleVote
from argus_terminal.core.market import Candle, candles_to_frame
from argus_terminal.logging import get_logger

from .modules import MODULES, CouncilInputs, argus_vote

logger = get_logger(__name__, component="council")

MIN_CANDLES = 50
CONSENSUS_VOTES = 4
STRONG_CONSENSUS_VOTES = 6
RSI_OVERSOLD_TRIGGER = 24
RSI_OVERBOUGHT_TRIGGER = 78

INSUFFICIENT_DATA_REASON = f"Insufficient data (minimum {MIN_CANDLES} candles required)"


def fallback_decision(symbol: str, reason: str = INSUFFICIENT_DATA_REASON) -> CouncilDecision:
    """Canonical neutral decision: hold, zero confidence, no votes."""
    return CouncilDecision(
        symbol=symbol,
        final_action=Action.HOLD,
        overall_score=0.0,
        confidence=0.0,
        reason=reason,
        votes=(),
    )


def collect_votes(inputs: CouncilInputs) -> tuple[ModuleVote, ...]:
    """Run the six data modules, then the guardian over their votes."""
    votes = [module(inputs) for module in MODULES]
    votes.append(argus_vote(votes))
    return tuple(votes)


def aggregate_votes(
    symbol: str,
    votes: Sequence[ModuleVote],
    rsi_value: float | None,
    timestamp: datetime | None = None,
) -> CouncilDecision:
    """
    Merge module votes into one action.

    An extreme RSI overrides the vote (below 24 buys, above 78 sells);
    otherwise four agreeing modules decide, else the Council holds.
    """
    average = sum(vote.score for vote in votes) / len(votes) if votes else 0.0
    buy_votes = sum(1 for vote in votes if vote.direction is Action.BUY)
    sell_votes = sum(1 for vote in votes if vote.direction is Action.SELL)
    rsi_reading = 50.0 if rsi_value is None else rsi_value

    final_action = Action.HOLD
    trigger_reason = ""
    if rsi_reading < RSI_OVERSOLD_TRIGGER:
        final_action = Action.BUY
        trigger_reason = f"CRITICAL OVERSOLD TRIGGER (RSI < {RSI_OVERSOLD_TRIGGER})"
    elif rsi_reading > RSI_OVERBOUGHT_TRIGGER:
        final_action = Action.SELL
        trigger_reason = f"CRITICAL OVERBOUGHT TRIGGER (RSI > {RSI_OVERBOUGHT_TRIGGER})"
    elif buy_votes >= CONSENSUS_VOTES:
        final_action = Action.BUY
    elif sell_votes >= CONSENSUS_VOTES:
        final_action = Action.SELL

    top_votes = max(buy_votes, sell_votes)
    confidence = abs(average) * 0.5 + top_votes * 10
    if top_votes >= CONSENSUS_VOTES:
        confidence = max(65.0, confidence)
    if top_votes >= STRONG_CONSENSUS_VOTES:
        confidence = max(85.0, confidence)
    confidence = min(100.0, confidence)

    reason = trigger_reason or (
        f"Council voted {buy_votes} buy, {sell_votes} sell: "
        f"{final_action.value.upper()} decision"
    )
    return CouncilDecision(
        symbol=symbol,
        final_action=final_action,
        overall_score=average,
        confidence=confidence,
        reason=reason,
        votes=tuple(votes),
        timestamp=timestamp or datetime.now(UTC),
    )


def compute_decision(
    candles: Sequence[Candle] | pd.DataFrame,
    symbol: str,
    timestamp: datetime | None = None,
) -> CouncilDecision:
    """Run the full Council over ``candles`` and return its decision for ``symbol``."""
    frame = candles_to_frame(candles)
    if len(frame) < MIN_CANDLES:
        return fallback_decision(symbol)

    try:
        inputs = CouncilInputs.from_frame(frame)
        votes = collect_votes(inputs)
    except (ArithmeticError, ValueError) as exc:
        logger.warning("Council analysis failed, holding", symbol=symbol, error=str(exc))
        return fallback_decision(symbol, reason=f"Analysis failed: {exc}")

    decision = aggregate_votes(symbol, votes, inputs.rsi, timestamp)
    logger.debug(
        "Council decision",
        symbol=symbol,
        action=decision.final_action.value,
        confidence=round(decision.confidence, 2),
        buy_votes=decision.buy_votes,
        sell_votes=decision.sell_votes,
    )
    return decision


__all__ = [
    "INSUFFICIENT_DATA_REASON",
    "MIN_CANDLES",
    "aggregate_votes",
    "collect_votes",
    "compute_decision",
    "fallback_decision",
]
