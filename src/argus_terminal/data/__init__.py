"""Market-data collaborators: the source protocol and the Binance adapters."""

from .binance import (
    BINANCE_REST_URL,
    DEFAULT_PAIRS,
    BinanceMarketData,
    filter_tradable_symbols,
    is_excluded_symbol,
    parse_kline,
    parse_order_book,
    parse_ticker,
)
from .source import MarketDataSource
from .stream import BINANCE_WS_URL, BinanceTickerStream, PriceCallback, TickerUpdate

__all__ = [
    "BINANCE_REST_URL",
    "BINANCE_WS_URL",
    "BinanceMarketData",
    "BinanceTickerStream",
    "DEFAULT_PAIRS",
    "MarketDataSource",
    "PriceCallback",
    "TickerUpdate",
    "filter_tradable_symbols",
    "is_excluded_symbol",
    "parse_kline",
    "parse_order_book",
    "parse_ticker",
]
