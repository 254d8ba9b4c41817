"""
Main Orchestrator for finledger

This module ties together the ledger store, the notification dispatcher
and the analytics tracker, and defines the end-to-end flows a frontend
calls:
1. Record (expense / budget / goal / recurring) → persist → alert → notify
2. Save (contribute / withdraw / undo entry) → persist → notify on completion
3. Housekeeping (recurring due check, sample data, reset)

DESIGN DECISION: The orchestrator enforces the boundaries:
- The store commits first; notifications go out only after a commit
- A failed notification or analytics write never undoes a mutation
- Every user action is tracked

This is the "glue" that keeps the ledger core free of delivery and
tracking concerns.
"""

from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID

import structlog

from finledger.analytics import AnalyticsTracker
from finledger.config import Settings, get_settings
from finledger.models.analytics import AnalyticsEventBuilder
from finledger.models.ledger import (
    Budget,
    BudgetPeriod,
    ExpenseItem,
    GoalCategory,
    GoalPriority,
    MutationResult,
    PaymentMethod,
    RecurringFrequency,
    RecurringTransaction,
    SavingsGoal,
    TransactionType,
    WithdrawalResult,
)
from finledger.services.notifications import NotificationDispatcher, NotificationSink
from finledger.services.storage import (
    InMemoryKeyValueStorage,
    JsonFileKeyValueStorage,
    KeyValueStorageInterface,
)
from finledger.store import LedgerStore


class FinanceTracker:
    """
    Application facade over a LedgerStore.

    Flow for every action:
    1. Mutate → LedgerStore commits or raises (nothing else happens)
    2. Track → one analytics event
    3. Notify → the mutation's outbox goes to the dispatcher

    Errors from step 1 propagate to the caller. Steps 2 and 3 are best effort.
    """

    def __init__(
        self,
        store: LedgerStore,
        dispatcher: Optional[NotificationDispatcher] = None,
        analytics: Optional[AnalyticsTracker] = None,
        settings: Optional[Settings] = None,
    ):
        self._settings = settings or get_settings()
        self._store = store
        self._dispatcher = dispatcher or NotificationDispatcher(
            enabled=self._settings.app.notifications_enabled,
        )
        self._analytics = analytics or AnalyticsTracker(
            max_events=self._settings.app.analytics_max_events,
        )
        self._logger = structlog.get_logger(__name__)

    @property
    def store(self) -> LedgerStore:
        return self._store

    @property
    def analytics(self) -> AnalyticsTracker:
        return self._analytics

    @property
    def dispatcher(self) -> NotificationDispatcher:
        return self._dispatcher

    async def load(self) -> None:
        """Restore the ledger and the analytics history."""
        await self._store.load()
        await self._analytics.load()

    async def _notify(self, result: MutationResult) -> MutationResult:
        if result.notifications:
            await self._dispatcher.dispatch(result.notifications)
        return result

    # =========================================================================
    # RECORDING
    # =========================================================================

    async def add_expense(
        self,
        amount,
        category: str,
        notes: Optional[str] = None,
        expense_date: Optional[date] = None,
        payment_method: PaymentMethod = PaymentMethod.CASH,
        recurring_frequency: Optional[RecurringFrequency] = None,
        merchant: Optional[str] = None,
        tags: Optional[list[str]] = None,
    ) -> MutationResult:
        """
        Record an expense and deliver any budget notifications it raises.

        Passing recurring_frequency marks the expense as recurring.
        """
        expense = ExpenseItem(
            amount=amount,
            category=category,
            notes=notes,
            expense_date=expense_date or date.today(),
            payment_method=payment_method,
            is_recurring=recurring_frequency is not None,
            recurring_frequency=recurring_frequency,
            merchant=merchant,
            tags=tags or [],
        )
        result = await self._store.add_expense(expense)
        await self._analytics.log(
            AnalyticsEventBuilder.expense_added(expense.amount, category, notes is not None)
        )
        return await self._notify(result)

    async def create_budget(
        self,
        amount,
        period: BudgetPeriod = BudgetPeriod.MONTHLY,
        name: str = "Budget",
        category: Optional[str] = None,
        alert_threshold: Optional[float] = None,
    ) -> MutationResult:
        """Create a budget; the alert threshold defaults to the configured one."""
        if alert_threshold is None:
            alert_threshold = self._settings.app.default_alert_threshold
        budget = Budget(
            name=name,
            amount=amount,
            period=period,
            category=category,
            alert_threshold=alert_threshold,
        )
        result = await self._store.add_budget(budget)
        await self._analytics.log(
            AnalyticsEventBuilder.budget_created(budget.amount, period.value, category)
        )
        return result

    async def create_savings_goal(
        self,
        target_amount,
        name: str = "Savings Goal",
        target_date: Optional[date] = None,
        category: GoalCategory = GoalCategory.GENERAL,
        priority: GoalPriority = GoalPriority.MEDIUM,
        current_amount=Decimal("0"),
    ) -> MutationResult:
        goal = SavingsGoal(
            name=name,
            target_amount=target_amount,
            current_amount=current_amount,
            target_date=target_date,
            category=category,
            priority=priority,
        )
        result = await self._store.add_savings_goal(goal)
        await self._analytics.log(
            AnalyticsEventBuilder.goal_created(
                goal.target_amount,
                target_date.isoformat() if target_date else None,
            )
        )
        return result

    async def add_recurring_transaction(
        self,
        name: str,
        amount,
        category: str,
        frequency: RecurringFrequency,
        transaction_type: TransactionType = TransactionType.EXPENSE,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> MutationResult:
        transaction = RecurringTransaction(
            name=name,
            amount=amount,
            category=category,
            frequency=frequency,
            type=transaction_type,
            start_date=start_date or date.today(),
            end_date=end_date,
        )
        result = await self._store.add_recurring_transaction(transaction)
        await self._analytics.log(
            AnalyticsEventBuilder.recurring_added(
                name, frequency.value, transaction_type.value
            )
        )
        return result

    # =========================================================================
    # SAVINGS
    # =========================================================================

    async def contribute(
        self,
        goal_id: UUID,
        amount,
        notes: Optional[str] = None,
    ) -> MutationResult:
        """Add money to a goal; delivers the completion notification if reached."""
        result = await self._store.contribute(goal_id, amount, notes)
        await self._analytics.log(
            AnalyticsEventBuilder.goal_contribution(
                goal_id, amount, completed=bool(result.notifications)
            )
        )
        return await self._notify(result)

    async def withdraw(
        self,
        goal_id: UUID,
        amount,
        notes: Optional[str] = None,
    ) -> WithdrawalResult:
        result = await self._store.withdraw(goal_id, amount, notes)
        await self._analytics.log(
            AnalyticsEventBuilder.goal_withdrawal(goal_id, amount, result.success)
        )
        return result

    async def delete_savings_entry(self, entry_id: UUID) -> MutationResult:
        result = await self._store.delete_savings_entry(entry_id)
        await self._analytics.track(
            "savings_entry_deleted",
            "goal",
            {"entry_id": entry_id},
        )
        return result

    # =========================================================================
    # HOUSEKEEPING
    # =========================================================================

    async def check_recurring_due(self, as_of: Optional[date] = None) -> MutationResult:
        """Record alerts for recurring transactions that have come due."""
        result = await self._store.check_recurring_due(as_of)
        if result.alerts:
            await self._analytics.track(
                "recurring_due",
                "recurring",
                {"count": len(result.alerts)},
            )
        return result

    async def populate_sample_data(self) -> None:
        """Fill the ledger with a small demo data set."""
        samples = [
            ("45.67", "Food & Dining", "Lunch at cafe", PaymentMethod.CREDIT, None),
            ("120.00", "Transportation", "Gas for week", PaymentMethod.DEBIT, None),
            ("85.50", "Shopping", "Groceries", PaymentMethod.CASH, None),
            ("25.99", "Entertainment", "Movie tickets", PaymentMethod.APPLE_PAY, None),
            (
                "200.00",
                "Bills & Utilities",
                "Electric bill",
                PaymentMethod.BANK_TRANSFER,
                RecurringFrequency.MONTHLY,
            ),
        ]
        for amount, category, notes, method, frequency in samples:
            result = await self._store.add_expense(
                ExpenseItem(
                    amount=Decimal(amount),
                    category=category,
                    notes=notes,
                    payment_method=method,
                    is_recurring=frequency is not None,
                    recurring_frequency=frequency,
                )
            )
            await self._notify(result)

        for name, amount, category, threshold in [
            ("Monthly Food Budget", "500.00", "Food & Dining", 85.0),
            ("Transportation Budget", "300.00", "Transportation", 90.0),
            ("General Spending", "1000.00", None, 80.0),
        ]:
            await self._store.add_budget(
                Budget(
                    name=name,
                    amount=Decimal(amount),
                    period=BudgetPeriod.MONTHLY,
                    category=category,
                    alert_threshold=threshold,
                )
            )

        for name, target, current, category, priority in [
            ("Emergency Fund", "5000.00", "1250.00", GoalCategory.EMERGENCY, GoalPriority.HIGH),
            ("Vacation to Europe", "3000.00", "750.00", GoalCategory.VACATION, GoalPriority.MEDIUM),
            ("New Car Down Payment", "8000.00", "2400.00", GoalCategory.CAR, GoalPriority.HIGH),
        ]:
            await self._store.add_savings_goal(
                SavingsGoal(
                    name=name,
                    target_amount=Decimal(target),
                    current_amount=Decimal(current),
                    category=category,
                    priority=priority,
                )
            )

        for name, amount, category, transaction_type in [
            ("Salary", "4500.00", "Income", TransactionType.INCOME),
            ("Rent", "1200.00", "Housing", TransactionType.EXPENSE),
            ("Netflix Subscription", "15.99", "Entertainment", TransactionType.EXPENSE),
            ("Gym Membership", "29.99", "Healthcare", TransactionType.EXPENSE),
        ]:
            await self._store.add_recurring_transaction(
                RecurringTransaction(
                    name=name,
                    amount=Decimal(amount),
                    category=category,
                    frequency=RecurringFrequency.MONTHLY,
                    type=transaction_type,
                )
            )

        await self._analytics.log(AnalyticsEventBuilder.sample_data_populated())
        self._logger.info("sample_data_populated")

    async def reset_all_data(self) -> None:
        """Clear the ledger and the analytics history."""
        await self._store.reset()
        await self._analytics.clear()
        await self._analytics.log(AnalyticsEventBuilder.data_reset())


def create_storage(settings: Optional[Settings] = None) -> KeyValueStorageInterface:
    """Storage backend selected by FINLEDGER_STORAGE_BACKEND."""
    storage_settings = (settings or get_settings()).storage
    if storage_settings.backend == "json":
        return JsonFileKeyValueStorage(storage_settings.data_dir)
    return InMemoryKeyValueStorage()


def create_app_components(
    settings: Optional[Settings] = None,
    storage: Optional[KeyValueStorageInterface] = None,
    sink: Optional[NotificationSink] = None,
) -> FinanceTracker:
    """
    Factory function to create all application components.

    Args:
        settings: Settings to use; defaults to the cached environment settings
        storage: Storage backend override (e.g. for tests)
        sink: Notification sink override; defaults to the logging sink

    Returns:
        A FinanceTracker whose store and analytics share one storage backend.
        Call `await tracker.load()` before use to restore persisted state.
    """
    settings = settings or get_settings()
    storage = storage or create_storage(settings)

    store = LedgerStore(storage, settings=settings)
    dispatcher = NotificationDispatcher(
        sink=sink,
        enabled=settings.app.notifications_enabled,
    )
    analytics = AnalyticsTracker(
        storage=storage,
        namespace=settings.storage.key_namespace,
        max_events=settings.app.analytics_max_events,
    )
    return FinanceTracker(store, dispatcher=dispatcher, analytics=analytics, settings=settings)
