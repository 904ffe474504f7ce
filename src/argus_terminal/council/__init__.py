"""The seven-module Council decision synthesizer."""

from .modules import (
    MODULES,
    CouncilInputs,
    aether_vote,
    argus_vote,
    atlas_vote,
    chronos_vote,
    hermes_vote,
    orion_vote,
    poseidon_vote,
)
from .regime import MarketRegime, RegimeReading, detect_market_regime
from .synthesizer import (
    INSUFFICIENT_DATA_REASON,
    MIN_CANDLES,
    aggregate_votes,
    collect_votes,
    compute_decision,
    fallback_decision,
)

__all__ = [
    "CouncilInputs",
    "INSUFFICIENT_DATA_REASON",
    "MIN_CANDLES",
    "MODULES",
    "MarketRegime",
    "RegimeReading",
    "aether_vote",
    "aggregate_votes",
    "argus_vote",
    "atlas_vote",
    "chronos_vote",
    "collect_votes",
    "compute_decision",
    "detect_market_regime",
    "fallback_decision",
    "hermes_vote",
    "orion_vote",
    "poseidon_vote",
]
