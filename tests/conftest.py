"""
Shared fixtures.
"""

from __future__ import annotations

import pytest

from argus_terminal.alerts import Notifier
from argus_terminal.logging.correlation import correlation_id_var, domain_context_var
from argus_terminal.persistence import MemoryKeyValueStore
from tests.factories import FakeMarketData


@pytest.fixture(autouse=True)
def reset_correlation_context():
    """Reset correlation context before and after each test to prevent pollution."""
    correlation_id_var.set("")
    domain_context_var.set(None)
    yield
    correlation_id_var.set("")
    domain_context_var.set(None)


@pytest.fixture
def memory_store() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def notifier() -> Notifier:
    return Notifier()


@pytest.fixture
def market() -> FakeMarketData:
    return FakeMarketData(prices={"BTCUSDT": 100.0, "ETHUSDT": 50.0})
