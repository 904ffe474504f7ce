"""Price alert book and the periodic monitor that checks it against live tickers."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import replace
from datetime import UTC, datetime

from argus_terminal.data import MarketDataSource
from argus_terminal.errors import (
    CorruptionError,
    PersistenceError,
    UpstreamFetchError,
    ValidationError,
)
from argus_terminal.logging import get_logger
from argus_terminal.persistence import ALERTS_KEY, KeyValueStore
from argus_terminal.scheduling import ScheduledTask

from .models import AlertCondition, NotificationType, PriceAlert
from .notifier import Notifier

logger = get_logger(__name__, component="alerts")

ALERT_CHECK_INTERVAL_SECONDS = 30.0

AlertListener = Callable[[tuple[PriceAlert, ...]], None]


class AlertBook:
    """Ordered collection of price alerts; triggered alerts stay until cleared."""

    def __init__(self, alerts: list[PriceAlert] | None = None) -> None:
        self._alerts: list[PriceAlert] = list(alerts or [])
        self._listeners: list[AlertListener] = []

    @property
    def alerts(self) -> tuple[PriceAlert, ...]:
        return tuple(self._alerts)

    def replace_all(self, alerts: list[PriceAlert]) -> None:
        self._alerts = list(alerts)

    def active(self) -> tuple[PriceAlert, ...]:
        return tuple(alert for alert in self._alerts if not alert.triggered)

    def add(
        self,
        symbol: str,
        target_price: float,
        condition: AlertCondition | str,
        note: str | None = None,
    ) -> PriceAlert:
        if target_price <= 0:
            raise ValidationError(
                f"Alert target must be positive, got {target_price}",
                field="target_price",
                value=target_price,
            )
        alert = PriceAlert(
            symbol=symbol.upper(),
            target_price=float(target_price),
            condition=AlertCondition(condition),
            note=note,
        )
        self._alerts.append(alert)
        logger.info(
            "Alert created",
            symbol=alert.symbol,
            condition=alert.condition.value,
            target_price=alert.target_price,
        )
        self._changed()
        return alert

    def remove(self, alert_id: str) -> bool:
        before = len(self._alerts)
        self._alerts = [alert for alert in self._alerts if alert.id != alert_id]
        removed = len(self._alerts) != before
        if removed:
            self._changed()
        return removed

    def clear_triggered(self) -> int:
        before = len(self._alerts)
        self._alerts = [alert for alert in self._alerts if not alert.triggered]
        cleared = before - len(self._alerts)
        if cleared:
            self._changed()
        return cleared

    def check(
        self, prices: Mapping[str, float], now: datetime | None = None
    ) -> list[PriceAlert]:
        """Mark every active alert whose condition holds at ``prices``; return those alerts."""
        now = now or datetime.now(UTC)
        fired: list[PriceAlert] = []
        for index, alert in enumerate(self._alerts):
            if alert.triggered:
                continue
            price = prices.get(alert.symbol)
            if price is None or not alert.is_hit(price):
                continue
            updated = replace(alert, triggered=True, triggered_at=now)
            self._alerts[index] = updated
            fired.append(updated)
        if fired:
            self._changed()
        return fired

    def subscribe(self, listener: AlertListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _changed(self) -> None:
        snapshot = self.alerts
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as exc:
                logger.error("Alert listener failed", error=str(exc))


class AlertMonitor:
    """
    Checks the alert book against live prices every ``interval_seconds``.

    Triggered alerts produce an ``alert`` notification and the book is
    persisted under the ``alerts`` key after each change.
    """

    def __init__(
        self,
        book: AlertBook,
        source: MarketDataSource,
        notifier: Notifier,
        store: KeyValueStore | None = None,
        interval_seconds: float = ALERT_CHECK_INTERVAL_SECONDS,
    ) -> None:
        self.book = book
        self.source = source
        self.notifier = notifier
        self.store = store
        self._task = ScheduledTask("alert-monitor", self.check_once, interval_seconds)
        if store is not None:
            book.subscribe(lambda _alerts: self.save())

    @property
    def is_running(self) -> bool:
        return self._task.is_running

    def load(self) -> AlertBook:
        """Replace the book contents with the persisted alerts, if any."""
        if self.store is None:
            return self.book
        try:
            payload = self.store.load(ALERTS_KEY) or []
            alerts = [PriceAlert.from_dict(item) for item in payload]
        except CorruptionError as exc:
            logger.warning("Saved alerts unreadable, starting empty", error=str(exc))
            alerts = []
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Discarding unreadable alerts", error=str(exc))
            alerts = []
        self.book.replace_all(alerts)
        return self.book

    def save(self) -> None:
        if self.store is None:
            return
        try:
            self.store.save(ALERTS_KEY, [alert.to_dict() for alert in self.book.alerts])
        except PersistenceError as exc:
            logger.error("Failed to persist alerts", error=str(exc), key=ALERTS_KEY)

    async def check_once(self) -> list[PriceAlert]:
        active = self.book.active()
        if not active:
            return []

        symbols = sorted({alert.symbol for alert in active})
        try:
            tickers = await self.source.get_tickers(symbols)
        except UpstreamFetchError as exc:
            logger.warning("Alert check skipped, prices unavailable", error=str(exc))
            return []

        prices = {ticker.symbol: ticker.price for ticker in tickers}
        fired = self.book.check(prices)
        for alert in fired:
            arrow = "above" if alert.condition is AlertCondition.ABOVE else "below"
            self.notifier.notify(
                NotificationType.ALERT,
                f"Price alert: {alert.symbol.removesuffix('USDT')}",
                f"{alert.symbol} ${prices[alert.symbol]:.4f} crossed {arrow} "
                f"${alert.target_price:g}",
                symbol=alert.symbol,
            )
        return fired

    async def start(self) -> None:
        await self._task.start()

    async def stop(self, wait: bool = False) -> None:
        await self._task.stop(wait=wait)


__all__ = [
    "ALERT_CHECK_INTERVAL_SECONDS",
    "AlertBook",
    "AlertListener",
    "AlertMonitor",
]
