"""
Binance public REST market data.

Only unauthenticated spot endpoints are used: klines, 24h tickers,
exchangeInfo and depth. Every request goes through ``_get_json`` so that
transport failures and non-2xx responses surface uniformly as
``UpstreamFetchError``.
"""

from __future__ import annotations

import re
import time
from collections.abc import Sequence
from typing import Any

import aiohttp

from argus_terminal.core.market import INTERVALS, Candle, OrderBook, Ticker
from argus_terminal.errors import UpstreamFetchError, ValidationError
from argus_terminal.logging import get_logger

logger = get_logger(__name__, component="binance")

BINANCE_REST_URL = "https://api.binance.com/api/v3"
QUOTE_ASSET = "USDT"
SYMBOL_CACHE_SECONDS = 300.0

STABLECOINS = frozenset(
    {
        "USDT", "USDC", "BUSD", "DAI", "TUSD", "USDP", "FDUSD", "USDD", "GUSD",
        "FRAX", "LUSD", "SUSD", "CUSD", "USTC", "UST", "EUSD", "AEUR", "EUR",
    }
)  # fmt: skip
LEVERAGED_SUFFIXES = ("UP", "DOWN", "BEAR", "BULL")
EXCLUDED_BASES = frozenset({"BTTC", "NFT", "LUNC", "LUNA2"})
_LEVERAGED_PATTERN = re.compile(r"\d+[LS]$")

DEFAULT_PAIRS: tuple[str, ...] = (
    "BTCUSDT", "ETHUSDT", "BNBUSDT", "SOLUSDT", "XRPUSDT",
    "ADAUSDT", "DOGEUSDT", "AVAXUSDT", "DOTUSDT", "MATICUSDT",
    "LINKUSDT", "LTCUSDT", "ATOMUSDT", "UNIUSDT", "APTUSDT",
    "ARBUSDT", "OPUSDT", "NEARUSDT", "FILUSDT", "INJUSDT",
)  # fmt: skip


def is_excluded_symbol(symbol: str) -> bool:
    """True for stablecoin, leveraged-token and delisted-style pairs."""
    base = symbol.removesuffix(QUOTE_ASSET)
    if base in STABLECOINS or base in EXCLUDED_BASES:
        return True
    for suffix in LEVERAGED_SUFFIXES:
        # BTCUP / ETHDOWN style tokens; short bases such as JUP are real coins
        if base.endswith(suffix) and len(base) - len(suffix) >= 3:
            return True
    return bool(_LEVERAGED_PATTERN.search(base))


def parse_kline(row: Sequence[Any]) -> Candle:
    return Candle(
        timestamp=int(row[0]),
        open=float(row[1]),
        high=float(row[2]),
        low=float(row[3]),
        close=float(row[4]),
        volume=float(row[5]),
    )


def parse_ticker(payload: dict[str, Any]) -> Ticker:
    return Ticker(
        symbol=payload["symbol"],
        price=float(payload["lastPrice"]),
        change=float(payload.get("priceChange", 0.0)),
        change_percent=float(payload.get("priceChangePercent", 0.0)),
        high=float(payload.get("highPrice", 0.0)),
        low=float(payload.get("lowPrice", 0.0)),
        volume=float(payload.get("volume", 0.0)),
        prev_close=float(payload.get("prevClosePrice", 0.0)),
    )


def parse_order_book(symbol: str, payload: dict[str, Any]) -> OrderBook:
    return OrderBook(
        symbol=symbol,
        bids=tuple((float(price), float(qty)) for price, qty in payload.get("bids", [])),
        asks=tuple((float(price), float(qty)) for price, qty in payload.get("asks", [])),
    )


def filter_tradable_symbols(exchange_info: dict[str, Any]) -> list[str]:
    """USDT spot pairs currently trading, minus excluded symbols, sorted."""
    return sorted(
        entry["symbol"]
        for entry in exchange_info.get("symbols", [])
        if entry.get("quoteAsset") == QUOTE_ASSET
        and entry.get("status") == "TRADING"
        and entry.get("isSpotTradingAllowed") is True
        and not is_excluded_symbol(entry["symbol"])
    )


class BinanceMarketData:
    """
    aiohttp client for the Binance public API.

    Usage:
        async with BinanceMarketData() as source:
            candles = await source.get_candles("BTCUSDT", "4h", 200)

    The session is created lazily, so the client can also be used without the
    context manager as long as :meth:`close` is awaited at shutdown.
    """

    def __init__(
        self,
        base_url: str = BINANCE_REST_URL,
        timeout_seconds: float = 10.0,
        session: aiohttp.ClientSession | None = None,
        symbol_cache_seconds: float = SYMBOL_CACHE_SECONDS,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._session = session
        self._owns_session = session is None
        self._symbol_cache: list[str] = []
        self._symbols_fetched_at = 0.0
        self._symbol_cache_seconds = symbol_cache_seconds

    async def __aenter__(self) -> BinanceMarketData:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def close(self) -> None:
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
            self._owns_session = True
        return self._session

    async def _get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        url = f"{self.base_url}/{path}"
        try:
            async with self._get_session().get(url, params=params) as response:
                if response.status < 200 or response.status >= 300:
                    body = await response.text()
                    raise UpstreamFetchError(
                        f"Binance returned HTTP {response.status} for {path}: {body[:200]}",
                        url=url,
                        status_code=response.status,
                    )
                return await response.json()
        except UpstreamFetchError:
            raise
        except (aiohttp.ClientError, TimeoutError, ValueError) as exc:
            raise UpstreamFetchError(
                f"Binance request to {path} failed: {exc}", url=url, original_error=exc
            ) from exc

    async def get_candles(self, symbol: str, interval: str = "1h", limit: int = 500) -> list[Candle]:
        if interval not in INTERVALS:
            raise ValidationError(
                f"Unsupported interval {interval!r}", field="interval", value=interval
            )
        payload = await self._get_json(
            "klines", {"symbol": symbol.upper(), "interval": interval, "limit": int(limit)}
        )
        return [parse_kline(row) for row in payload]

    async def get_ticker(self, symbol: str) -> Ticker:
        payload = await self._get_json("ticker/24hr", {"symbol": symbol.upper()})
        return parse_ticker(payload)

    async def get_tickers(self, symbols: Sequence[str]) -> list[Ticker]:
        wanted = {symbol.upper() for symbol in symbols}
        if not wanted:
            return []
        payload = await self._get_json("ticker/24hr")
        return [parse_ticker(item) for item in payload if item.get("symbol") in wanted]

    async def get_tradable_symbols(self) -> list[str]:
        """Cached tradable universe; falls back to a fixed list when the exchange is unreachable."""
        now = time.monotonic()
        if self._symbol_cache and now - self._symbols_fetched_at < self._symbol_cache_seconds:
            return list(self._symbol_cache)

        try:
            payload = await self._get_json("exchangeInfo")
        except UpstreamFetchError as exc:
            logger.warning(
                "Falling back to default trading pairs", error=str(exc), pairs=len(DEFAULT_PAIRS)
            )
            return list(DEFAULT_PAIRS)

        self._symbol_cache = filter_tradable_symbols(payload)
        self._symbols_fetched_at = now
        logger.info("Loaded tradable pairs", pairs=len(self._symbol_cache))
        return list(self._symbol_cache)

    async def get_order_book(self, symbol: str, limit: int = 10) -> OrderBook:
        payload = await self._get_json("depth", {"symbol": symbol.upper(), "limit": int(limit)})
        return parse_order_book(symbol.upper(), payload)


__all__ = [
    "BINANCE_REST_URL",
    "BinanceMarketData",
    "DEFAULT_PAIRS",
    "filter_tradable_symbols",
    "is_excluded_symbol",
    "parse_kline",
    "parse_order_book",
    "parse_ticker",
]
