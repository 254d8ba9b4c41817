"""
Ledger Store

The single owner of every ledger collection: expenses, budgets, savings
goals, savings entries, recurring transactions and alerts. Mutations go
through this class; engines compute, the store persists.

DESIGN DECISION: Whole-collection writes.
Every mutation rebuilds the affected collections and overwrites each one
as a single JSON document under "<namespace>.<collection>". This matches
a flat key-value backend and keeps the on-disk state trivially readable.

CRITICAL: A mutation is all-or-nothing from the caller's point of view.
1. The new collections are built without touching the current ones
2. Each affected collection is written to storage
3. If any write fails, memory is restored, collections already written
   in the same mutation are rewritten (best effort) and PersistenceError
   is raised
4. Only after a successful commit are insights regenerated

Notifications are never delivered from here. Each mutation returns a
MutationResult whose `notifications` list the caller hands to a
NotificationDispatcher.
"""

import asyncio
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

import structlog
from pydantic import TypeAdapter, ValidationError

from finledger.config import Settings, get_settings
from finledger.engines.budgets import evaluate_budget_alerts, get_utilization
from finledger.engines.frequency import due_date
from finledger.engines.insights import InsightGenerator, group_by_month, month_bucket
from finledger.engines.savings import (
    apply_contribution,
    apply_withdrawal,
    calculate_progress,
    completion_events,
    entries_total,
    required_monthly_contribution,
    reverse_entry,
)
from finledger.errors import (
    DuplicateEntityError,
    EntityNotFoundError,
    PersistenceError,
)
from finledger.models.ledger import (
    AlertSeverity,
    AlertType,
    Budget,
    BudgetAlert,
    BudgetUtilization,
    ExpenseItem,
    FinancialInsight,
    MutationResult,
    RecurringTransaction,
    SavingsEntry,
    SavingsEntryType,
    SavingsGoal,
    SavingsProgress,
    TransactionType,
    WithdrawalResult,
    utc_now,
)
from finledger.services.storage import (
    KeyValueStorageInterface,
    SerializationError,
    StorageError,
)


# =============================================================================
# COLLECTIONS
# =============================================================================

EXPENSES = "expenses"
BUDGETS = "budgets"
GOALS = "goals"
SAVINGS_ENTRIES = "savings_entries"
RECURRING = "recurring"
ALERTS = "alerts"

COLLECTIONS = (EXPENSES, BUDGETS, GOALS, SAVINGS_ENTRIES, RECURRING, ALERTS)

_ADAPTERS: dict[str, TypeAdapter] = {
    EXPENSES: TypeAdapter(list[ExpenseItem]),
    BUDGETS: TypeAdapter(list[Budget]),
    GOALS: TypeAdapter(list[SavingsGoal]),
    SAVINGS_ENTRIES: TypeAdapter(list[SavingsEntry]),
    RECURRING: TypeAdapter(list[RecurringTransaction]),
    ALERTS: TypeAdapter(list[BudgetAlert]),
}

_ENTITY_NAMES = {
    EXPENSES: "ExpenseItem",
    BUDGETS: "Budget",
    GOALS: "SavingsGoal",
    SAVINGS_ENTRIES: "SavingsEntry",
    RECURRING: "RecurringTransaction",
    ALERTS: "BudgetAlert",
}


def _index_of(items: list, entity_id: UUID) -> Optional[int]:
    for i, item in enumerate(items):
        if item.id == entity_id:
            return i
    return None


class LedgerStore:
    """
    In-memory ledger backed by a key-value store.

    One instance owns one ledger. Mutations are serialized with an
    asyncio.Lock; reads return copies and never block.
    """

    def __init__(
        self,
        storage: KeyValueStorageInterface,
        settings: Optional[Settings] = None,
        insight_generator: Optional[InsightGenerator] = None,
    ):
        """
        Args:
            storage: Backend holding one document per collection
            settings: Application settings (namespace, currency, thresholds)
            insight_generator: Override for the insight generator
        """
        settings = settings or get_settings()
        self._storage = storage
        self._namespace = settings.storage.key_namespace
        self._currency = settings.app.currency_symbol
        self._insight_generator = insight_generator or InsightGenerator(
            settings.insights,
            currency_symbol=self._currency,
        )
        self._collections: dict[str, list] = {name: [] for name in COLLECTIONS}
        self._insights: list[FinancialInsight] = []
        self._lock = asyncio.Lock()
        self._logger = structlog.get_logger(__name__)

    @classmethod
    async def open(
        cls,
        storage: KeyValueStorageInterface,
        settings: Optional[Settings] = None,
        insight_generator: Optional[InsightGenerator] = None,
    ) -> "LedgerStore":
        """Create a store and restore its collections from storage."""
        store = cls(storage, settings=settings, insight_generator=insight_generator)
        await store.load()
        return store

    # =========================================================================
    # SNAPSHOTS
    # =========================================================================

    @property
    def expenses(self) -> list[ExpenseItem]:
        return list(self._collections[EXPENSES])

    @property
    def budgets(self) -> list[Budget]:
        return list(self._collections[BUDGETS])

    @property
    def savings_goals(self) -> list[SavingsGoal]:
        return list(self._collections[GOALS])

    @property
    def savings_entries(self) -> list[SavingsEntry]:
        return list(self._collections[SAVINGS_ENTRIES])

    @property
    def recurring_transactions(self) -> list[RecurringTransaction]:
        return list(self._collections[RECURRING])

    @property
    def alerts(self) -> list[BudgetAlert]:
        return list(self._collections[ALERTS])

    @property
    def insights(self) -> list[FinancialInsight]:
        """Insights generated after the last successful mutation."""
        return list(self._insights)

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    def _key(self, name: str) -> str:
        return f"{self._namespace}.{name}"

    async def _write(self, name: str) -> None:
        try:
            document = _ADAPTERS[name].dump_json(self._collections[name]).decode()
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Cannot encode {name}: {e}") from e
        await self._storage.set(self._key(name), document)

    async def _commit(self, changes: dict[str, list]) -> None:
        """
        Swap in new collections and persist each of them.

        Raises:
            PersistenceError: If a write fails; memory is already restored
        """
        previous = {name: self._collections[name] for name in changes}
        self._collections.update(changes)

        written: list[str] = []
        for name in changes:
            try:
                await self._write(name)
            except StorageError as e:
                self._collections.update(previous)
                for done in written:
                    try:
                        await self._write(done)
                    except StorageError as restore_error:
                        self._logger.error(
                            "persist_restore_failed",
                            collection=done,
                            error=str(restore_error),
                        )
                self._logger.error("persist_failed", collection=name, error=str(e))
                raise PersistenceError(name, e) from e
            written.append(name)

    async def load(self) -> None:
        """
        Restore every collection from storage.

        A missing document is an empty collection. An unreadable or
        invalid document raises PersistenceError and leaves memory as it was.
        """
        async with self._lock:
            loaded: dict[str, list] = {}
            for name in COLLECTIONS:
                try:
                    raw = await self._storage.get(self._key(name))
                    loaded[name] = _ADAPTERS[name].validate_json(raw) if raw else []
                except (StorageError, ValidationError) as e:
                    self._logger.error("load_failed", collection=name, error=str(e))
                    raise PersistenceError(name, e) from e

            self._collections = loaded
            self._refresh_insights()
            self._logger.info(
                "ledger_loaded",
                **{name: len(items) for name, items in loaded.items()},
            )

    async def reset(self) -> None:
        """Clear every collection in memory and in storage."""
        async with self._lock:
            self._collections = {name: [] for name in COLLECTIONS}
            self._insights = []
            for name in COLLECTIONS:
                try:
                    await self._storage.delete(self._key(name))
                except StorageError as e:
                    self._logger.error("reset_failed", collection=name, error=str(e))
                    raise PersistenceError(name, e) from e
            self._logger.info("ledger_reset")

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _refresh_insights(self) -> None:
        self._insights = self._insight_generator.generate(
            self._collections[EXPENSES],
            self._collections[BUDGETS],
            self._collections[GOALS],
        )

    def _find(self, name: str, entity_id: UUID) -> tuple[int, Any]:
        items = self._collections[name]
        index = _index_of(items, entity_id)
        if index is None:
            raise EntityNotFoundError(_ENTITY_NAMES[name], entity_id)
        return index, items[index]

    def _appended(self, name: str, entity) -> list:
        items = self._collections[name]
        if _index_of(items, entity.id) is not None:
            raise DuplicateEntityError(_ENTITY_NAMES[name], entity.id)
        return [*items, entity]

    def _replaced(self, name: str, entity) -> list:
        index, _ = self._find(name, entity.id)
        items = list(self._collections[name])
        items[index] = entity
        return items

    def _removed(self, name: str, entity_id: UUID) -> list:
        self._find(name, entity_id)
        return [item for item in self._collections[name] if item.id != entity_id]

    async def generate_insights(self) -> list[FinancialInsight]:
        """Regenerate insights from the current snapshot."""
        async with self._lock:
            self._refresh_insights()
            return self.insights

    # =========================================================================
    # EXPENSES
    # =========================================================================

    async def add_expense(self, expense: ExpenseItem) -> MutationResult:
        """
        Record an expense.

        Re-evaluates every budget covering the expense's category and
        records the resulting alerts. A recurring expense also creates an
        "Auto: <category>" recurring transaction starting on its date.
        All of it is committed together.
        """
        async with self._lock:
            expenses = self._appended(EXPENSES, expense)
            alerts, notifications = evaluate_budget_alerts(
                expense.category,
                self._collections[BUDGETS],
                expenses,
                currency_symbol=self._currency,
            )

            changes = {EXPENSES: expenses}
            if alerts:
                changes[ALERTS] = [*self._collections[ALERTS], *alerts]
            if expense.is_recurring and expense.recurring_frequency is not None:
                recurring = RecurringTransaction(
                    name=f"Auto: {expense.category}",
                    amount=expense.amount,
                    category=expense.category,
                    frequency=expense.recurring_frequency,
                    type=TransactionType.EXPENSE,
                    start_date=expense.expense_date,
                    tags=list(expense.tags),
                    notes=expense.notes,
                )
                changes[RECURRING] = [*self._collections[RECURRING], recurring]

            await self._commit(changes)
            self._refresh_insights()

        self._logger.info(
            "expense_added",
            expense_id=str(expense.id),
            category=expense.category,
            amount=str(expense.amount),
            alerts=len(alerts),
        )
        return MutationResult(entity=expense, notifications=notifications, alerts=alerts)

    async def update_expense(self, expense: ExpenseItem) -> MutationResult:
        """Replace the expense carrying the same id."""
        async with self._lock:
            await self._commit({EXPENSES: self._replaced(EXPENSES, expense)})
            self._refresh_insights()
        self._logger.info("expense_updated", expense_id=str(expense.id))
        return MutationResult(entity=expense)

    async def delete_expense(self, expense_id: UUID) -> MutationResult:
        async with self._lock:
            _, expense = self._find(EXPENSES, expense_id)
            await self._commit({EXPENSES: self._removed(EXPENSES, expense_id)})
            self._refresh_insights()
        self._logger.info("expense_deleted", expense_id=str(expense_id))
        return MutationResult(entity=expense)

    def get_expense(self, expense_id: UUID) -> ExpenseItem:
        return self._find(EXPENSES, expense_id)[1]

    def list_expenses(
        self,
        category: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        month: Optional[date] = None,
    ) -> list[ExpenseItem]:
        """
        Expenses in insertion order, optionally filtered.

        Args:
            category: Exact category match
            date_from: Inclusive lower bound on the expense date
            date_to: Inclusive upper bound on the expense date
            month: Any day of the calendar month to restrict to
        """
        result = []
        for expense in self._collections[EXPENSES]:
            if category is not None and expense.category != category:
                continue
            if date_from is not None and expense.expense_date < date_from:
                continue
            if date_to is not None and expense.expense_date > date_to:
                continue
            if month is not None and month_bucket(expense.expense_date) != month_bucket(month):
                continue
            result.append(expense)
        return result

    def get_expenses_by_category(self) -> dict[str, list[ExpenseItem]]:
        grouped: dict[str, list[ExpenseItem]] = {}
        for expense in self._collections[EXPENSES]:
            grouped.setdefault(expense.category, []).append(expense)
        return grouped

    def get_expenses_by_month(self) -> dict[date, list[ExpenseItem]]:
        """Expenses keyed by the first day of their calendar month."""
        return group_by_month(self._collections[EXPENSES])

    # =========================================================================
    # BUDGETS
    # =========================================================================

    async def add_budget(self, budget: Budget) -> MutationResult:
        async with self._lock:
            await self._commit({BUDGETS: self._appended(BUDGETS, budget)})
            self._refresh_insights()
        self._logger.info(
            "budget_added",
            budget_id=str(budget.id),
            category=budget.category,
            amount=str(budget.amount),
        )
        return MutationResult(entity=budget)

    async def update_budget(self, budget: Budget) -> MutationResult:
        async with self._lock:
            await self._commit({BUDGETS: self._replaced(BUDGETS, budget)})
            self._refresh_insights()
        self._logger.info("budget_updated", budget_id=str(budget.id))
        return MutationResult(entity=budget)

    async def delete_budget(self, budget_id: UUID) -> MutationResult:
        async with self._lock:
            _, budget = self._find(BUDGETS, budget_id)
            await self._commit({BUDGETS: self._removed(BUDGETS, budget_id)})
            self._refresh_insights()
        self._logger.info("budget_deleted", budget_id=str(budget_id))
        return MutationResult(entity=budget)

    def get_budget(self, budget_id: UUID) -> Budget:
        return self._find(BUDGETS, budget_id)[1]

    def list_budgets(self, active_only: bool = False) -> list[Budget]:
        return [b for b in self._collections[BUDGETS] if b.is_active or not active_only]

    def get_budget_utilization(self, budget: Budget) -> BudgetUtilization:
        """Utilization of a budget against every expense in the ledger."""
        return get_utilization(budget, self._collections[EXPENSES])

    # =========================================================================
    # SAVINGS GOALS
    # =========================================================================

    async def add_savings_goal(self, goal: SavingsGoal) -> MutationResult:
        async with self._lock:
            await self._commit({GOALS: self._appended(GOALS, goal)})
            self._refresh_insights()
        self._logger.info(
            "goal_added",
            goal_id=str(goal.id),
            target_amount=str(goal.target_amount),
        )
        return MutationResult(entity=goal)

    async def update_savings_goal(self, goal: SavingsGoal) -> MutationResult:
        """
        Replace the goal carrying the same id.

        When the update moves the goal from not completed to completed, a
        goal-achieved alert is recorded and a completion notification is
        returned. Updating an already completed goal raises nothing.
        """
        alerts: list[BudgetAlert] = []
        notifications = []
        async with self._lock:
            _, previous = self._find(GOALS, goal.id)
            if not previous.is_completed and goal.is_completed:
                if goal.completed_at is None:
                    goal = goal.model_copy(update={"completed_at": utc_now()})
                alert, notification = completion_events(goal)
                alerts.append(alert)
                notifications.append(notification)

            changes = {GOALS: self._replaced(GOALS, goal)}
            if alerts:
                changes[ALERTS] = [*self._collections[ALERTS], *alerts]
            await self._commit(changes)
            self._refresh_insights()

        self._logger.info("goal_updated", goal_id=str(goal.id), completed=bool(alerts))
        return MutationResult(entity=goal, notifications=notifications, alerts=alerts)

    async def delete_savings_goal(self, goal_id: UUID) -> MutationResult:
        """Remove a goal together with its savings entries."""
        async with self._lock:
            _, goal = self._find(GOALS, goal_id)
            entries = [
                e for e in self._collections[SAVINGS_ENTRIES] if e.goal_id != goal_id
            ]
            await self._commit({
                GOALS: self._removed(GOALS, goal_id),
                SAVINGS_ENTRIES: entries,
            })
            self._refresh_insights()
        self._logger.info("goal_deleted", goal_id=str(goal_id))
        return MutationResult(entity=goal)

    def get_savings_goal(self, goal_id: UUID) -> SavingsGoal:
        return self._find(GOALS, goal_id)[1]

    def list_savings_goals(self, active_only: bool = False) -> list[SavingsGoal]:
        return [g for g in self._collections[GOALS] if g.is_active or not active_only]

    def get_savings_progress(self, goal_id: UUID, today: Optional[date] = None) -> SavingsProgress:
        return calculate_progress(self.get_savings_goal(goal_id), today)

    def required_monthly_contribution(self, goal_id: UUID, today: Optional[date] = None) -> Decimal:
        return required_monthly_contribution(self.get_savings_goal(goal_id), today)

    # =========================================================================
    # SAVINGS ENTRIES
    # =========================================================================

    async def contribute(
        self,
        goal_id: UUID,
        amount,
        notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> MutationResult:
        """
        Add money to a goal and record an addition entry.

        Raises:
            EntityNotFoundError: If the goal does not exist
            InvalidAmountError: If amount is not strictly positive
        """
        async with self._lock:
            index, goal = self._find(GOALS, goal_id)
            updated, entry, alerts, notifications = apply_contribution(goal, amount, notes, now)

            goals = list(self._collections[GOALS])
            goals[index] = updated
            changes = {
                GOALS: goals,
                SAVINGS_ENTRIES: [*self._collections[SAVINGS_ENTRIES], entry],
            }
            if alerts:
                changes[ALERTS] = [*self._collections[ALERTS], *alerts]
            await self._commit(changes)
            self._refresh_insights()

        self._logger.info(
            "savings_added",
            goal_id=str(goal_id),
            entry_id=str(entry.id),
            amount=str(entry.amount),
            current_amount=str(updated.current_amount),
        )
        return MutationResult(entity=updated, notifications=notifications, alerts=alerts)

    async def withdraw(
        self,
        goal_id: UUID,
        amount,
        notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> WithdrawalResult:
        """
        Take money out of a goal.

        A withdrawal larger than the balance is rejected without any write.

        Raises:
            EntityNotFoundError: If the goal does not exist
            InvalidAmountError: If amount is not strictly positive
        """
        async with self._lock:
            index, goal = self._find(GOALS, goal_id)
            result = apply_withdrawal(goal, amount, notes, now)
            if not result.success:
                self._logger.info(
                    "savings_removal_rejected",
                    goal_id=str(goal_id),
                    amount=str(amount),
                    current_amount=str(goal.current_amount),
                )
                return result

            goals = list(self._collections[GOALS])
            goals[index] = result.goal
            await self._commit({
                GOALS: goals,
                SAVINGS_ENTRIES: [*self._collections[SAVINGS_ENTRIES], result.entry],
            })
            self._refresh_insights()

        self._logger.info(
            "savings_removed",
            goal_id=str(goal_id),
            entry_id=str(result.entry.id),
            amount=str(result.entry.amount),
        )
        return result

    async def delete_savings_entry(self, entry_id: UUID) -> MutationResult:
        """
        Remove an entry and reverse its effect on the goal.

        An entry whose goal no longer exists is simply removed.
        """
        async with self._lock:
            _, entry = self._find(SAVINGS_ENTRIES, entry_id)
            changes = {SAVINGS_ENTRIES: self._removed(SAVINGS_ENTRIES, entry_id)}

            goal = None
            index = _index_of(self._collections[GOALS], entry.goal_id)
            if index is not None:
                goal = reverse_entry(self._collections[GOALS][index], entry)
                goals = list(self._collections[GOALS])
                goals[index] = goal
                changes[GOALS] = goals

            await self._commit(changes)
            self._refresh_insights()

        self._logger.info(
            "savings_entry_deleted",
            entry_id=str(entry_id),
            goal_id=str(entry.goal_id),
        )
        return MutationResult(entity=goal)

    def get_savings_entries(
        self,
        goal_id: UUID,
        entry_type: Optional[SavingsEntryType] = None,
    ) -> list[SavingsEntry]:
        """Entries for a goal, newest first."""
        entries = [
            e for e in self._collections[SAVINGS_ENTRIES]
            if e.goal_id == goal_id and (entry_type is None or e.type == entry_type)
        ]
        return sorted(entries, key=lambda e: e.date, reverse=True)

    def get_total_savings_amount(self, goal_id: UUID) -> Decimal:
        """Additions minus removals recorded for a goal."""
        return entries_total(self.get_savings_entries(goal_id))

    async def reconcile_goal(self, goal_id: UUID, repair: bool = False) -> Decimal:
        """
        Compare a goal's balance with its entry ledger.

        Returns current_amount minus the entry total. A goal created with
        an opening balance reports that balance as the difference. With
        repair=True the balance is reset to the entry total (floored at 0).
        """
        async with self._lock:
            index, goal = self._find(GOALS, goal_id)
            total = entries_total(self.get_savings_entries(goal_id))
            discrepancy = goal.current_amount - total

            if discrepancy != 0:
                self._logger.warning(
                    "goal_balance_mismatch",
                    goal_id=str(goal_id),
                    current_amount=str(goal.current_amount),
                    entries_total=str(total),
                )
                if repair:
                    goals = list(self._collections[GOALS])
                    goals[index] = goal.model_copy(
                        update={"current_amount": max(total, Decimal("0"))}
                    )
                    await self._commit({GOALS: goals})
                    self._refresh_insights()
            return discrepancy

    # =========================================================================
    # RECURRING TRANSACTIONS
    # =========================================================================

    async def add_recurring_transaction(self, transaction: RecurringTransaction) -> MutationResult:
        async with self._lock:
            await self._commit({RECURRING: self._appended(RECURRING, transaction)})
        self._logger.info(
            "recurring_added",
            recurring_id=str(transaction.id),
            frequency=transaction.frequency.value,
        )
        return MutationResult(entity=transaction)

    async def update_recurring_transaction(self, transaction: RecurringTransaction) -> MutationResult:
        async with self._lock:
            await self._commit({RECURRING: self._replaced(RECURRING, transaction)})
        self._logger.info("recurring_updated", recurring_id=str(transaction.id))
        return MutationResult(entity=transaction)

    async def delete_recurring_transaction(self, transaction_id: UUID) -> MutationResult:
        async with self._lock:
            _, transaction = self._find(RECURRING, transaction_id)
            await self._commit({RECURRING: self._removed(RECURRING, transaction_id)})
        self._logger.info("recurring_deleted", recurring_id=str(transaction_id))
        return MutationResult(entity=transaction)

    def get_recurring_transaction(self, transaction_id: UUID) -> RecurringTransaction:
        return self._find(RECURRING, transaction_id)[1]

    def list_recurring_transactions(
        self,
        active_only: bool = False,
        transaction_type: Optional[TransactionType] = None,
    ) -> list[RecurringTransaction]:
        return [
            t for t in self._collections[RECURRING]
            if (t.is_active or not active_only)
            and (transaction_type is None or t.type == transaction_type)
        ]

    def get_due_recurring(self, as_of: Optional[date] = None) -> list[tuple[RecurringTransaction, date]]:
        """Active recurring transactions with an occurrence due on or before as_of."""
        as_of = as_of or date.today()
        due = []
        for transaction in self._collections[RECURRING]:
            if not transaction.is_active:
                continue
            upcoming = due_date(transaction)
            if upcoming is not None and upcoming <= as_of:
                due.append((transaction, upcoming))
        return due

    async def check_recurring_due(self, as_of: Optional[date] = None) -> MutationResult:
        """
        Record a recurring-due alert for every due transaction.

        A transaction that still has an unread recurring-due alert is not
        alerted again.
        """
        async with self._lock:
            pending = {
                a.recurring_id for a in self._collections[ALERTS]
                if a.type == AlertType.RECURRING_DUE and not a.is_read
            }
            alerts = []
            for transaction, upcoming in self.get_due_recurring(as_of):
                if transaction.id in pending:
                    continue
                alerts.append(
                    BudgetAlert(
                        type=AlertType.RECURRING_DUE,
                        severity=AlertSeverity.INFO,
                        message=(
                            f"{transaction.name} ({self._currency}{transaction.amount:.2f}) "
                            f"is due on {upcoming.isoformat()}"
                        ),
                        recurring_id=transaction.id,
                    )
                )
            if alerts:
                await self._commit({ALERTS: [*self._collections[ALERTS], *alerts]})

        if alerts:
            self._logger.info("recurring_due", count=len(alerts))
        return MutationResult(alerts=alerts)

    async def mark_recurring_processed(
        self,
        transaction_id: UUID,
        processed_on: Optional[date] = None,
    ) -> MutationResult:
        """
        Advance a recurring transaction past its current occurrence.

        Defaults to the occurrence that is currently due. Unread due alerts
        for the transaction are marked read and actioned.
        """
        async with self._lock:
            _, transaction = self._find(RECURRING, transaction_id)
            processed_on = processed_on or due_date(transaction) or date.today()
            updated = transaction.model_copy(update={"last_processed": processed_on})

            alerts = [
                a.model_copy(update={"is_read": True, "action_taken": True})
                if a.recurring_id == transaction_id and not a.is_read else a
                for a in self._collections[ALERTS]
            ]
            await self._commit({
                RECURRING: self._replaced(RECURRING, updated),
                ALERTS: alerts,
            })

        self._logger.info(
            "recurring_processed",
            recurring_id=str(transaction_id),
            processed_on=processed_on.isoformat(),
        )
        return MutationResult(entity=updated)

    # =========================================================================
    # ALERTS
    # =========================================================================

    def list_alerts(self, unread_only: bool = False) -> list[BudgetAlert]:
        """Alerts, newest first."""
        alerts = [a for a in self._collections[ALERTS] if not (unread_only and a.is_read)]
        return sorted(alerts, key=lambda a: a.created_at, reverse=True)

    async def _update_alert(self, alert_id: UUID, **update) -> MutationResult:
        async with self._lock:
            _, alert = self._find(ALERTS, alert_id)
            updated = alert.model_copy(update=update)
            await self._commit({ALERTS: self._replaced(ALERTS, updated)})
        return MutationResult(entity=updated)

    async def mark_alert_read(self, alert_id: UUID) -> MutationResult:
        return await self._update_alert(alert_id, is_read=True)

    async def mark_alert_actioned(self, alert_id: UUID) -> MutationResult:
        return await self._update_alert(alert_id, is_read=True, action_taken=True)

    async def delete_alert(self, alert_id: UUID) -> MutationResult:
        async with self._lock:
            _, alert = self._find(ALERTS, alert_id)
            await self._commit({ALERTS: self._removed(ALERTS, alert_id)})
        return MutationResult(entity=alert)
