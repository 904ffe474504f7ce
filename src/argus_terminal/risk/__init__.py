"""Risk levels, position sizing and portfolio risk statistics."""

from .levels import (
    LevelMethod,
    RiskLevels,
    SupportResistance,
    VolatilityLevel,
    calculate_atr_levels,
    classify_volatility,
    compute_risk_levels,
    default_risk_levels,
    find_support_resistance,
)
from .metrics import (
    RiskAssessment,
    ValueAtRisk,
    assess_risk,
    correlation,
    correlation_matrix,
    value_at_risk,
)
from .sizing import (
    KellySize,
    PositionSize,
    RiskAdjustedPosition,
    kelly_size,
    position_size,
    risk_adjusted_position,
    trailing_stop,
)

__all__ = [
    "KellySize",
    "LevelMethod",
    "PositionSize",
    "RiskAdjustedPosition",
    "RiskAssessment",
    "RiskLevels",
    "SupportResistance",
    "ValueAtRisk",
    "VolatilityLevel",
    "assess_risk",
    "calculate_atr_levels",
    "classify_volatility",
    "compute_risk_levels",
    "correlation",
    "correlation_matrix",
    "default_risk_levels",
    "find_support_resistance",
    "kelly_size",
    "position_size",
    "risk_adjusted_position",
    "trailing_stop",
    "value_at_risk",
]
