from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

import pytest

from argus_terminal.alerts import AlertBook, AlertCondition, AlertMonitor, NotificationType, Notifier
from argus_terminal.errors import ValidationError
from argus_terminal.persistence import ALERTS_KEY, JsonKeyValueStore, MemoryKeyValueStore
from tests.factories import ALL_SYMBOLS, FailingSaveStore, FakeMarketData


class TestAlertBook:
    def test_add_normalises_symbol(self) -> None:
        book = AlertBook()

        alert = book.add("btcusdt", 50_000, "above", note="breakout")

        assert alert.symbol == "BTCUSDT"
        assert alert.condition is AlertCondition.ABOVE
        assert book.active() == (alert,)

    def test_rejects_non_positive_target(self) -> None:
        with pytest.raises(ValidationError):
            AlertBook().add("BTCUSDT", 0, AlertCondition.BELOW)

    def test_check_fires_once(self) -> None:
        book = AlertBook()
        above = book.add("BTCUSDT", 100.0, AlertCondition.ABOVE)
        book.add("BTCUSDT", 90.0, AlertCondition.BELOW)
        now = datetime(2024, 1, 1, tzinfo=UTC)

        fired = book.check({"BTCUSDT": 100.0}, now)

        assert [a.id for a in fired] == [above.id]
        assert fired[0].triggered_at == now
        assert book.check({"BTCUSDT": 120.0}) == []
        assert len(book.active()) == 1

    def test_remove_and_clear_triggered(self) -> None:
        book = AlertBook()
        first = book.add("BTCUSDT", 100.0, AlertCondition.ABOVE)
        book.add("ETHUSDT", 10.0, AlertCondition.BELOW)
        book.check({"ETHUSDT": 5.0})

        assert book.clear_triggered() == 1
        assert book.remove(first.id) is True
        assert book.remove(first.id) is False
        assert book.alerts == ()


class TestAlertMonitor:
    async def test_check_once_notifies(self, notifier: Notifier) -> None:
        market = FakeMarketData(prices={"BTCUSDT": 105.0, "ETHUSDT": 50.0})
        book = AlertBook()
        book.add("BTCUSDT", 100.0, AlertCondition.ABOVE)
        book.add("ETHUSDT", 40.0, AlertCondition.BELOW)
        monitor = AlertMonitor(book, market, notifier)

        fired = await monitor.check_once()

        assert [a.symbol for a in fired] == ["BTCUSDT"]
        notification = notifier.notifications[0]
        assert notification.type is NotificationType.ALERT
        assert notification.title == "Price alert: BTC"
        assert notification.message == "BTCUSDT $105.0000 crossed above $100"

    async def test_price_outage_skips_cycle(self, notifier: Notifier) -> None:
        market = FakeMarketData(prices={"BTCUSDT": 105.0})
        market.failing.add(ALL_SYMBOLS)
        book = AlertBook()
        book.add("BTCUSDT", 100.0, AlertCondition.ABOVE)

        fired = await AlertMonitor(book, market, notifier).check_once()

        assert fired == []
        assert notifier.notifications == ()

    async def test_no_active_alerts_skips_fetch(self, notifier: Notifier) -> None:
        market = FakeMarketData()
        market.failing.add(ALL_SYMBOLS)

        assert await AlertMonitor(AlertBook(), market, notifier).check_once() == []

    async def test_changes_are_persisted_and_reloaded(self, notifier: Notifier) -> None:
        store = MemoryKeyValueStore()
        market = FakeMarketData(prices={"BTCUSDT": 80.0})
        book = AlertBook()
        monitor = AlertMonitor(book, market, notifier, store)

        book.add("BTCUSDT", 90.0, AlertCondition.BELOW)
        await monitor.check_once()

        stored = store.load(ALERTS_KEY)
        assert stored[0]["triggered"] is True

        reloaded = AlertMonitor(AlertBook(), market, notifier, store).load()
        assert reloaded.alerts[0].triggered
        assert reloaded.alerts[0].symbol == "BTCUSDT"

    async def test_corrupt_alerts_are_discarded(self, notifier: Notifier) -> None:
        store = MemoryKeyValueStore({ALERTS_KEY: [{"symbol": "BTCUSDT"}]})

        book = AlertMonitor(AlertBook(), FakeMarketData(), notifier, store).load()

        assert book.alerts == ()

    async def test_start_and_stop(self, notifier: Notifier) -> None:
        monitor = AlertMonitor(AlertBook(), FakeMarketData(), notifier, interval_seconds=60)

        await monitor.start()
        assert monitor.is_running
        await monitor.stop(wait=True)

        assert not monitor.is_running

    async def test_corrupt_alerts_file_loads_empty(
        self, notifier: Notifier, tmp_path: Path
    ) -> None:
        (tmp_path / f"{ALERTS_KEY}.json").write_text("{not json", encoding="utf-8")
        monitor = AlertMonitor(AlertBook(), FakeMarketData(), notifier, JsonKeyValueStore(tmp_path))

        assert monitor.load().alerts == ()

    async def test_failed_save_still_reports_triggered_alert(self, notifier: Notifier) -> None:
        market = FakeMarketData(prices={"BTCUSDT": 80.0})
        book = AlertBook()
        monitor = AlertMonitor(book, market, notifier, FailingSaveStore(ALERTS_KEY))
        book.add("BTCUSDT", 90.0, AlertCondition.BELOW)

        fired = await monitor.check_once()

        assert [a.symbol for a in fired] == ["BTCUSDT"]
        assert book.alerts[0].triggered
