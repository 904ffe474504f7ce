"""Builders for candles, tickers and an in-memory market-data source."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

import numpy as np

from argus_terminal.core.market import Candle, OrderBook, Ticker
from argus_terminal.errors import UpstreamFetchError, WriteError
from argus_terminal.persistence import MemoryKeyValueStore

START_MS = 1_700_000_000_000
HOUR_MS = 3_600_000
# put in FakeMarketData.failing to fail the bulk endpoints too
ALL_SYMBOLS = "*"


def make_candles(
    closes: Iterable[float],
    *,
    spread: float = 1.0,
    volume: float | Sequence[float] = 1_000.0,
    start_ms: int = START_MS,
    step_ms: int = HOUR_MS,
) -> list[Candle]:
    """One candle per close; open is the previous close and high/low sit ``spread`` away."""
    closes = [float(c) for c in closes]
    volumes = [float(volume)] * len(closes) if isinstance(volume, (int, float)) else list(volume)
    candles: list[Candle] = []
    for i, close in enumerate(closes):
        open_ = closes[i - 1] if i else close
        candles.append(
            Candle(
                timestamp=start_ms + i * step_ms,
                open=open_,
                high=max(open_, close) + spread,
                low=min(open_, close) - spread,
                close=close,
                volume=volumes[i],
            )
        )
    return candles


def flat_candles(count: int, price: float = 100.0) -> list[Candle]:
    return make_candles([price] * count, spread=0.0)


def linear_candles(count: int, start: float = 100.0, slope: float = 1.0) -> list[Candle]:
    return make_candles([start + slope * i for i in range(count)])


def random_walk_candles(count: int, seed: int = 7, start: float = 100.0) -> list[Candle]:
    rng = np.random.default_rng(seed)
    steps = rng.normal(0, 0.01, count)
    closes = start * np.exp(np.cumsum(steps))
    return make_candles(closes.tolist(), spread=0.5, volume=rng.uniform(500, 1500, count).tolist())


def make_ticker(symbol: str, price: float) -> Ticker:
    return Ticker(symbol=symbol, price=price, prev_close=price)


class FakeMarketData:
    """Scriptable :class:`~argus_terminal.data.MarketDataSource` for tests."""

    def __init__(
        self,
        prices: dict[str, float] | None = None,
        candles: dict[str, list[Candle]] | None = None,
        symbols: Sequence[str] | None = None,
    ) -> None:
        self.prices = dict(prices or {})
        self.candles = dict(candles or {})
        self.symbols = list(symbols) if symbols is not None else sorted(self.candles)
        self.failing: set[str] = set()
        self.ticker_calls: list[str] = []
        self.candle_calls: list[tuple[str, str, int]] = []

    async def __aenter__(self) -> FakeMarketData:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        return None

    async def get_candles(self, symbol: str, interval: str = "1h", limit: int = 500) -> list[Candle]:
        self.candle_calls.append((symbol, interval, limit))
        if symbol in self.failing:
            raise UpstreamFetchError(f"candles unavailable for {symbol}")
        return list(self.candles.get(symbol, []))[-limit:]

    async def get_ticker(self, symbol: str) -> Ticker:
        self.ticker_calls.append(symbol)
        if symbol in self.failing or symbol not in self.prices:
            raise UpstreamFetchError(f"ticker unavailable for {symbol}")
        return make_ticker(symbol, self.prices[symbol])

    async def get_tickers(self, symbols: Sequence[str]) -> list[Ticker]:
        if ALL_SYMBOLS in self.failing:
            raise UpstreamFetchError("tickers unavailable")
        return [make_ticker(s, self.prices[s]) for s in symbols if s in self.prices]

    async def get_tradable_symbols(self) -> list[str]:
        if ALL_SYMBOLS in self.failing:
            raise UpstreamFetchError("exchange info unavailable")
        return list(self.symbols)

    async def get_order_book(self, symbol: str, limit: int = 10) -> OrderBook:
        price = self.prices[symbol]
        return OrderBook(symbol, bids=((price - 1, 1.0),), asks=((price + 1, 1.0),))


class FailingSaveStore(MemoryKeyValueStore):
    """Memory store whose saves fail for the listed keys."""

    def __init__(self, *failing_keys: str) -> None:
        super().__init__()
        self.failing_keys = set(failing_keys)

    def save(self, key: str, value: object) -> None:
        if key in self.failing_keys:
            raise WriteError("disk full", path=f"{key}.json")
        super().save(key, value)
