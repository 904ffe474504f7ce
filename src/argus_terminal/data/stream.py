"""
Live 24h ticker feed over the Binance all-market WebSocket stream.

``BinanceTickerStream`` owns one connection to ``!ticker@arr``, keeps the most
recent :class:`TickerUpdate` per symbol and fans updates out to per-symbol
subscribers. Dropped connections are retried a bounded number of times.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException

from argus_terminal.logging import get_logger

logger = get_logger(__name__, component="websocket")

BINANCE_WS_URL = "wss://stream.binance.com:9443/ws/!ticker@arr"
MAX_RECONNECT_ATTEMPTS = 5
RECONNECT_DELAY_SECONDS = 3.0


@dataclass(frozen=True, slots=True)
class TickerUpdate:
    symbol: str
    price: float
    change_24h: float
    volume_24h: float
    high_24h: float
    low_24h: float

    @classmethod
    def from_message(cls, payload: dict[str, Any]) -> TickerUpdate:
        return cls(
            symbol=payload["s"],
            price=float(payload["c"]),
            change_24h=float(payload["P"]),
            volume_24h=float(payload["v"]),
            high_24h=float(payload["h"]),
            low_24h=float(payload["l"]),
        )


PriceCallback = Callable[[TickerUpdate], None]


class BinanceTickerStream:
    """
    Connection manager for the all-tickers stream.

    Usage:
        stream = BinanceTickerStream()
        unsubscribe = stream.subscribe("BTCUSDT", lambda update: print(update.price))
        await stream.connect()
        ...
        unsubscribe()
        await stream.disconnect()
    """

    def __init__(
        self,
        url: str = BINANCE_WS_URL,
        max_reconnect_attempts: int = MAX_RECONNECT_ATTEMPTS,
        reconnect_delay: float = RECONNECT_DELAY_SECONDS,
    ) -> None:
        self.url = url
        self.max_reconnect_attempts = max_reconnect_attempts
        self.reconnect_delay = reconnect_delay
        self._subscribers: dict[str, list[PriceCallback]] = {}
        self._tickers: dict[str, TickerUpdate] = {}
        self._task: asyncio.Task[None] | None = None
        self._connection: Any = None
        self._running = False
        self._reconnect_attempts = 0

    @property
    def is_connected(self) -> bool:
        return self._connection is not None

    @property
    def reconnect_attempts(self) -> int:
        return self._reconnect_attempts

    async def connect(self) -> None:
        """Start the receive loop in the background. No-op if already running."""
        if self._running:
            return
        self._running = True
        self._reconnect_attempts = 0
        self._task = asyncio.create_task(self._run())

    async def disconnect(self) -> None:
        """Close the connection, stop reconnecting and drop all subscribers."""
        self._running = False
        if self._connection is not None:
            await self._connection.close()
        if self._task is not None and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        self._connection = None
        self._subscribers.clear()
        logger.info("Ticker stream disconnected")

    def subscribe(self, symbol: str, callback: PriceCallback) -> Callable[[], None]:
        """Register ``callback`` for ``symbol``; returns a function that unregisters it."""
        key = symbol.upper()
        self._subscribers.setdefault(key, []).append(callback)

        def unsubscribe() -> None:
            callbacks = self._subscribers.get(key)
            if not callbacks:
                return
            if callback in callbacks:
                callbacks.remove(callback)
            if not callbacks:
                del self._subscribers[key]

        return unsubscribe

    def subscriber_count(self, symbol: str) -> int:
        return len(self._subscribers.get(symbol.upper(), ()))

    def ticker_data(self, symbol: str) -> TickerUpdate | None:
        return self._tickers.get(symbol.upper())

    def handle_message(self, raw: str | bytes) -> int:
        """Apply one stream frame; returns how many tickers were updated."""
        try:
            payload = json.loads(raw)
        except ValueError as exc:
            logger.warning("Discarding unparseable ticker frame", error=str(exc))
            return 0
        if not isinstance(payload, list):
            return 0

        updated = 0
        for item in payload:
            try:
                update = TickerUpdate.from_message(item)
            except (KeyError, TypeError, ValueError) as exc:
                logger.debug("Skipping malformed ticker entry", error=str(exc))
                continue
            self._tickers[update.symbol] = update
            updated += 1
            for callback in list(self._subscribers.get(update.symbol, ())):
                try:
                    callback(update)
                except Exception as exc:
                    logger.error(
                        "Ticker subscriber failed", symbol=update.symbol, error=str(exc)
                    )
        return updated

    async def _run(self) -> None:
        while self._running:
            try:
                async with websockets.connect(self.url) as connection:
                    self._connection = connection
                    self._reconnect_attempts = 0
                    logger.info("Ticker stream connected", url=self.url)
                    async for message in connection:
                        self.handle_message(message)
            except (ConnectionClosed, WebSocketException, OSError) as exc:
                logger.warning("Ticker stream dropped", error=str(exc))
            finally:
                self._connection = None

            if not self._running:
                break
            if self._reconnect_attempts >= self.max_reconnect_attempts:
                logger.error(
                    "Ticker stream giving up after reconnect attempts",
                    attempts=self._reconnect_attempts,
                )
                self._running = False
                break
            self._reconnect_attempts += 1
            logger.info("Reconnecting ticker stream", attempt=self._reconnect_attempts)
            await asyncio.sleep(self.reconnect_delay)


__all__ = [
    "BINANCE_WS_URL",
    "BinanceTickerStream",
    "MAX_RECONNECT_ATTEMPTS",
    "PriceCallback",
    "RECONNECT_DELAY_SECONDS",
    "TickerUpdate",
]
