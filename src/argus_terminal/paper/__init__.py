"""Paper trading: the simulated portfolio, its ledger rules and the AutoPilot engine."""

from .codec import SCHEMA_VERSION, portfolio_from_dict, portfolio_to_dict
from .engine import DEFAULT_INITIAL_BALANCE, PaperTradingEngine, PortfolioListener
from .models import (
    PaperPortfolio,
    PaperTrade,
    PerformanceStats,
    PortfolioSnapshot,
    PortfolioValue,
    Position,
    PositionValuation,
    ReconciliationResult,
    ScanReport,
    TradeSide,
    TradeStatus,
)
from .portfolio import (
    DRIFT_TOLERANCE,
    DUST_QUANTITY,
    check_buy,
    check_sell,
    close_position,
    open_position,
    performance_stats,
    reconcile,
)

__all__ = [
    "DEFAULT_INITIAL_BALANCE",
    "DRIFT_TOLERANCE",
    "DUST_QUANTITY",
    "PaperPortfolio",
    "PaperTrade",
    "PaperTradingEngine",
    "PerformanceStats",
    "PortfolioListener",
    "PortfolioSnapshot",
    "PortfolioValue",
    "Position",
    "PositionValuation",
    "ReconciliationResult",
    "SCHEMA_VERSION",
    "ScanReport",
    "TradeSide",
    "TradeStatus",
    "check_buy",
    "check_sell",
    "close_position",
    "open_position",
    "performance_stats",
    "portfolio_from_dict",
    "portfolio_to_dict",
    "reconcile",
]
