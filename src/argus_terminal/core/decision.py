"""Decision types produced by the Council and consumed by the trading layers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class Action(Enum):
    """Directional call made by a module or by the Council as a whole."""

    BUY = "buy"
    SELL = "sell"
    HOLD = "hold"


class TradeDirection(Enum):
    """Side of a position when deriving risk levels."""

    LONG = "long"
    SHORT = "short"


class CouncilModule(Enum):
    """The seven fixed voting modules, in evaluation order."""

    ORION = "Orion"
    ATLAS = "Atlas"
    AETHER = "Aether"
    HERMES = "Hermes"
    CHRONOS = "Chronos"
    POSEIDON = "Poseidon"
    ARGUS = "Argus"


@dataclass(frozen=True, slots=True)
class ModuleVote:
    module: CouncilModule
    score: float
    direction: Action
    confidence: float
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "module": self.module.value,
            "score": self.score,
            "direction": self.direction.value,
            "confidence": self.confidence,
            "reason": self.reason,
        }


@dataclass(frozen=True, slots=True)
class CouncilDecision:
    """Final synthesized decision for one symbol at one point in time."""

    symbol: str
    final_action: Action
    overall_score: float
    confidence: float
    reason: str
    votes: tuple[ModuleVote, ...] = field(default_factory=tuple)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def buy_votes(self) -> int:
        return sum(1 for vote in self.votes if vote.direction is Action.BUY)

    @property
    def sell_votes(self) -> int:
        return sum(1 for vote in self.votes if vote.direction is Action.SELL)

    def to_dict(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "timestamp": self.timestamp.isoformat(),
            "final_action": self.final_action.value,
            "overall_score": self.overall_score,
            "confidence": self.confidence,
            "reason": self.reason,
            "votes": [vote.to_dict() for vote in self.votes],
        }


__all__ = ["Action", "CouncilDecision", "CouncilModule", "ModuleVote", "TradeDirection"]
