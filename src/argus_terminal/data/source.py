"""Market-data collaborator contract used by the paper engine and the CLI."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from argus_terminal.core.market import Candle, OrderBook, Ticker


@runtime_checkable
class MarketDataSource(Protocol):
    """Async source of candles, tickers and exchange metadata.

    Implementations raise :class:`~argus_terminal.errors.UpstreamFetchError`
    when data cannot be produced; callers decide whether to skip or abort.
    """

    async def get_candles(self, symbol: str, interval: str, limit: int) -> list[Candle]: ...

    async def get_ticker(self, symbol: str) -> Ticker: ...

    async def get_tickers(self, symbols: Sequence[str]) -> list[Ticker]: ...

    async def get_tradable_symbols(self) -> list[str]: ...

    async def get_order_book(self, symbol: str, limit: int = 10) -> OrderBook: ...


__all__ = ["MarketDataSource"]
