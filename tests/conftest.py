"""
Shared fixtures.

No test touches the real environment: storage is in memory (or a
tmp_path directory) and notifications go to a recording sink.
"""

import pytest

from finledger.analytics import AnalyticsTracker
from finledger.config import get_settings
from finledger.models.ledger import NotificationRequest
from finledger.orchestrator import FinanceTracker
from finledger.services.notifications import NotificationDispatcher, NotificationSink
from finledger.services.storage import InMemoryKeyValueStorage, StorageError
from finledger.store import LedgerStore


class RecordingSink(NotificationSink):
    """Keeps every delivered request."""

    def __init__(self):
        self.delivered: list[NotificationRequest] = []

    async def deliver(self, request: NotificationRequest) -> None:
        self.delivered.append(request)


class ExplodingSink(NotificationSink):
    """Fails every delivery."""

    async def deliver(self, request: NotificationRequest) -> None:
        raise RuntimeError("push service unavailable")


class FailingStorage(InMemoryKeyValueStorage):
    """
    In-memory storage whose writes can be made to fail.

    fail_keys: keys whose writes raise StorageError
    fail_all: every write raises StorageError
    """

    def __init__(self):
        super().__init__()
        self.fail_keys: set[str] = set()
        self.fail_all = False

    async def set(self, key: str, value: str) -> None:
        if self.fail_all or key in self.fail_keys:
            raise StorageError(f"disk full while writing {key}")
        await super().set(key, value)


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch, tmp_path):
    """Run every test against default settings and a scratch data directory."""
    for name in (
        "FINLEDGER_STORAGE_BACKEND",
        "FINLEDGER_STORAGE_KEY_NAMESPACE",
        "FINLEDGER_CURRENCY_SYMBOL",
        "FINLEDGER_NOTIFICATIONS_ENABLED",
        "FINLEDGER_ANALYTICS_MAX_EVENTS",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("FINLEDGER_STORAGE_DATA_DIR", str(tmp_path / "data"))
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def storage():
    return InMemoryKeyValueStorage()


@pytest.fixture
def failing_storage():
    return FailingStorage()


@pytest.fixture
def store(storage):
    return LedgerStore(storage)


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def tracker(store, storage, sink):
    return FinanceTracker(
        store,
        dispatcher=NotificationDispatcher(sink=sink),
        analytics=AnalyticsTracker(storage=storage),
    )
