"""Core domain types shared across all Argus Terminal components."""

from .decision import Action, CouncilDecision, CouncilModule, ModuleVote, TradeDirection
from .market import INTERVALS, OHLCV_COLUMNS, Candle, OrderBook, Ticker, candles_to_frame

__all__ = [
    "Action",
    "Candle",
    "CouncilDecision",
    "CouncilModule",
    "INTERVALS",
    "ModuleVote",
    "OHLCV_COLUMNS",
    "OrderBook",
    "Ticker",
    "TradeDirection",
    "candles_to_frame",
]
