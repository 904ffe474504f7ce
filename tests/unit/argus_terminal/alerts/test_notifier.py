from __future__ import annotations

from pathlib import Path

from argus_terminal.alerts import MAX_NOTIFICATIONS, Notification, NotificationType, Notifier
from argus_terminal.persistence import NOTIFICATIONS_KEY, JsonKeyValueStore, MemoryKeyValueStore
from tests.factories import FailingSaveStore


class TestNotifier:
    def test_newest_first(self, notifier: Notifier) -> None:
        notifier.notify(NotificationType.INFO, "first", "a")
        notifier.notify("trade", "second", "b", symbol="BTCUSDT")

        titles = [n.title for n in notifier.notifications]

        assert titles == ["second", "first"]
        assert notifier.notifications[0].type is NotificationType.TRADE

    def test_capped_at_limit(self, notifier: Notifier) -> None:
        for i in range(MAX_NOTIFICATIONS + 5):
            notifier.notify(NotificationType.INFO, f"n{i}", "")

        assert len(notifier.notifications) == MAX_NOTIFICATIONS
        assert notifier.notifications[0].title == f"n{MAX_NOTIFICATIONS + 4}"
        assert notifier.notifications[-1].title == "n5"

    def test_mark_read(self, notifier: Notifier) -> None:
        first = notifier.notify(NotificationType.INFO, "a", "")
        notifier.notify(NotificationType.INFO, "b", "")

        assert notifier.mark_read(first.id) is True
        assert notifier.mark_read("missing") is False
        assert notifier.unread_count() == 1

        notifier.mark_all_read()

        assert notifier.unread_count() == 0

    def test_listeners_receive_snapshot(self, notifier: Notifier) -> None:
        seen: list[tuple[Notification, ...]] = []
        unsubscribe = notifier.subscribe(seen.append)

        notifier.notify(NotificationType.SIGNAL, "a", "")
        unsubscribe()
        notifier.clear()

        assert len(seen) == 1
        assert seen[0][0].title == "a"

    def test_persists_and_reloads(self) -> None:
        store = MemoryKeyValueStore()
        Notifier(store).notify(NotificationType.ALERT, "hit", "BTC above 50k", symbol="BTCUSDT")

        reloaded = Notifier(store)
        items = reloaded.load()

        assert [n.title for n in items] == ["hit"]
        assert items[0].symbol == "BTCUSDT"

    def test_unreadable_payload_is_discarded(self) -> None:
        store = MemoryKeyValueStore({NOTIFICATIONS_KEY: [{"title": "no id"}]})

        assert Notifier(store).load() == ()

    def test_corrupt_file_loads_empty(self, tmp_path: Path) -> None:
        (tmp_path / f"{NOTIFICATIONS_KEY}.json").write_text("{not json", encoding="utf-8")

        assert Notifier(JsonKeyValueStore(tmp_path)).load() == ()

    def test_failed_save_keeps_notification_and_listeners(self) -> None:
        notifier = Notifier(FailingSaveStore(NOTIFICATIONS_KEY))
        seen: list[tuple[Notification, ...]] = []
        notifier.subscribe(seen.append)

        notifier.notify(NotificationType.TRADE, "Sell: BTC", "stop hit", symbol="BTCUSDT")

        assert [n.title for n in notifier.notifications] == ["Sell: BTC"]
        assert len(seen) == 1
