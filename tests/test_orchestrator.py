"""
Tests for FinanceTracker

End-to-end flows: mutation, analytics event and notification delivery.
"""

import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from finledger.config import get_settings
from finledger.errors import EntityNotFoundError
from finledger.models.ledger import (
    AlertType,
    BudgetPeriod,
    NotificationKind,
    RecurringFrequency,
    TransactionType,
)
from finledger.orchestrator import FinanceTracker, create_app_components
from finledger.services.notifications import NotificationDispatcher
from finledger.services.storage import InMemoryKeyValueStorage, JsonFileKeyValueStorage

from conftest import ExplodingSink, RecordingSink


class TestRecordingFlows:
    """Tests for expense and budget flows."""

    async def test_expense_delivers_budget_notification(self, tracker, sink):
        """Test that a budget alert reaches the sink."""
        await tracker.create_budget(
            Decimal("200"), BudgetPeriod.MONTHLY, name="Fun", category="Entertainment",
            alert_threshold=80,
        )
        await tracker.add_expense(Decimal("150"), "Entertainment")
        result = await tracker.add_expense(Decimal("80"), "Entertainment", notes="Concert")

        assert [n.kind for n in sink.delivered] == [NotificationKind.BUDGET_EXCEEDED]
        assert sink.delivered == result.notifications
        names = [e.event_name for e in tracker.analytics.events]
        assert names == ["budget_created", "expense_added", "expense_added"]
        assert tracker.analytics.events[-1].properties["has_notes"] == "True"

    async def test_budget_uses_default_threshold(self, tracker):
        """Test that budgets without a threshold use the configured default."""
        result = await tracker.create_budget(Decimal("500"))
        assert result.entity.alert_threshold == 90.0
        assert result.entity.name == "Budget"

    async def test_recurring_expense(self, tracker):
        """Test that a recurring expense also creates its recurring transaction."""
        await tracker.add_expense(
            Decimal("200"),
            "Bills & Utilities",
            recurring_frequency=RecurringFrequency.MONTHLY,
            expense_date=date(2024, 1, 15),
        )
        [transaction] = tracker.store.recurring_transactions
        assert transaction.name == "Auto: Bills & Utilities"

    async def test_notification_failure_does_not_undo(self, store, storage):
        """Test that a failing sink leaves the mutation committed."""
        tracker = FinanceTracker(store, dispatcher=NotificationDispatcher(sink=ExplodingSink()))
        await tracker.create_budget(Decimal("10"), category="Food", alert_threshold=50)

        result = await tracker.add_expense(Decimal("20"), "Food")

        assert len(result.notifications) == 1
        assert len(store.expenses) == 1
        assert tracker.dispatcher.failed == result.notifications


class TestSavingsFlows:
    """Tests for goal flows."""

    async def test_goal_completion_notifies(self, tracker, sink):
        """Test that completing a goal delivers one notification."""
        created = await tracker.create_savings_goal(
            Decimal("10000"), name="Emergency Fund", current_amount=Decimal("9950")
        )
        goal_id = created.entity.id

        await tracker.contribute(goal_id, Decimal("100"))
        await tracker.contribute(goal_id, Decimal("100"))

        assert [n.kind for n in sink.delivered] == [NotificationKind.GOAL_COMPLETED]
        contributions = [
            e for e in tracker.analytics.events if e.event_name == "savings_added"
        ]
        assert [e.properties["goal_completed"] for e in contributions] == ["True", "False"]

    async def test_withdraw_rejected_is_tracked(self, tracker):
        """Test that a rejected withdrawal is tracked under its own name."""
        created = await tracker.create_savings_goal(Decimal("1000"))
        result = await tracker.withdraw(created.entity.id, Decimal("5"))

        assert result.success is False
        assert tracker.analytics.events[-1].event_name == "savings_removal_rejected"

    async def test_delete_entry(self, tracker):
        """Test undoing a contribution."""
        created = await tracker.create_savings_goal(Decimal("1000"))
        goal_id = created.entity.id
        await tracker.contribute(goal_id, Decimal("40"))
        [entry] = tracker.store.get_savings_entries(goal_id)

        result = await tracker.delete_savings_entry(entry.id)

        assert result.entity.current_amount == Decimal("0")
        assert tracker.analytics.events[-1].event_name == "savings_entry_deleted"

    async def test_unknown_goal_propagates(self, tracker):
        """Test that ledger errors reach the caller."""
        with pytest.raises(EntityNotFoundError):
            await tracker.contribute(uuid4(), Decimal("10"))


class TestHousekeeping:
    """Tests for recurring checks, sample data and reset."""

    async def test_check_recurring_due(self, tracker):
        """Test due alerts through the facade."""
        await tracker.add_recurring_transaction(
            "Rent",
            Decimal("1200"),
            "Housing",
            RecurringFrequency.MONTHLY,
            start_date=date(2024, 1, 1),
        )
        result = await tracker.check_recurring_due(date(2024, 2, 1))

        assert [a.type for a in result.alerts] == [AlertType.RECURRING_DUE]
        assert tracker.analytics.events[-1].event_name == "recurring_due"

    async def test_populate_sample_data(self, tracker):
        """Test the demo data set."""
        await tracker.populate_sample_data()
        store = tracker.store

        assert len(store.expenses) == 5
        assert len(store.budgets) == 3
        assert len(store.savings_goals) == 3
        names = [t.name for t in store.recurring_transactions]
        assert names == [
            "Auto: Bills & Utilities",
            "Salary",
            "Rent",
            "Netflix Subscription",
            "Gym Membership",
        ]
        income = store.list_recurring_transactions(transaction_type=TransactionType.INCOME)
        assert [t.name for t in income] == ["Salary"]
        assert tracker.analytics.events[-1].event_name == "sample_data_populated"

    async def test_reset_all_data(self, tracker, storage):
        """Test that reset clears the ledger and leaves only the reset event."""
        await tracker.populate_sample_data()
        await tracker.reset_all_data()

        assert tracker.store.expenses == []
        assert tracker.store.savings_goals == []
        assert [e.event_name for e in tracker.analytics.events] == ["data_reset"]
        assert await storage.keys() == ["finledger.analytics_events"]


class TestFactory:
    """Tests for create_app_components."""

    async def test_memory_backend(self):
        """Test the default in-memory wiring."""
        sink = RecordingSink()
        tracker = create_app_components(sink=sink)
        await tracker.load()

        await tracker.create_budget(Decimal("10"), category="Food", alert_threshold=50)
        await tracker.add_expense(Decimal("20"), "Food")

        assert len(sink.delivered) == 1

    async def test_json_backend_persists(self, monkeypatch, tmp_path):
        """Test that the json backend survives a restart."""
        monkeypatch.setenv("FINLEDGER_STORAGE_BACKEND", "json")
        get_settings.cache_clear()

        first = create_app_components()
        await first.load()
        await first.add_expense(Decimal("12.34"), "Food")

        second = create_app_components()
        await second.load()

        assert [e.amount for e in second.store.expenses] == [Decimal("12.34")]
        assert len(second.analytics.events) == 1
        assert (tmp_path / "data" / "finledger.expenses.json").exists()

    async def test_notifications_disabled(self, monkeypatch):
        """Test that notifications can be switched off by configuration."""
        monkeypatch.setenv("FINLEDGER_NOTIFICATIONS_ENABLED", "false")
        get_settings.cache_clear()
        sink = RecordingSink()

        tracker = create_app_components(storage=InMemoryKeyValueStorage(), sink=sink)
        await tracker.create_budget(Decimal("10"), category="Food", alert_threshold=50)
        await tracker.add_expense(Decimal("20"), "Food")

        assert sink.delivered == []
        assert tracker.dispatcher.enabled is False

    def test_json_storage_selected(self, monkeypatch):
        """Test backend selection from settings."""
        monkeypatch.setenv("FINLEDGER_STORAGE_BACKEND", "json")
        get_settings.cache_clear()
        tracker = create_app_components()
        assert isinstance(tracker.store._storage, JsonFileKeyValueStorage)
