"""
Core Data Models for finledger

These models define the strict schemas for every entity the ledger owns.
They are designed to:
1. Enforce type safety and amount bounds at runtime
2. Provide clear validation error messages
3. Round-trip through JSON for whole-collection persistence
4. Keep derived values (progress, completion, next due date) computed

DESIGN DECISION: Money is Decimal, ratios are float.
Summing currency as float drifts; percentages and progress are only
ever displayed or compared against thresholds.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)


def utc_now() -> datetime:
    """Timezone-aware current time used for every created_at field."""
    return datetime.now(timezone.utc)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class RecurringFrequency(str, Enum):
    """How often a recurring transaction (or expense) repeats."""
    DAILY = "daily"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class BudgetPeriod(str, Enum):
    """Budget period. Informational: utilization covers the whole ledger."""
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class PayFrequency(str, Enum):
    """Paycheck frequency used by time-to-goal estimates."""
    DAILY = "daily"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"


class PaymentMethod(str, Enum):
    CASH = "cash"
    CREDIT = "credit_card"
    DEBIT = "debit_card"
    BANK_TRANSFER = "bank_transfer"
    PAYPAL = "paypal"
    VENMO = "venmo"
    APPLE_PAY = "apple_pay"
    OTHER = "other"


class GoalCategory(str, Enum):
    """Savings goal categories."""
    EMERGENCY = "emergency"
    VACATION = "vacation"
    HOUSE = "house"
    CAR = "car"
    EDUCATION = "education"
    RETIREMENT = "retirement"
    WEDDING = "wedding"
    GENERAL = "general"

    @property
    def display_name(self) -> str:
        return _GOAL_CATEGORY_NAMES[self]


_GOAL_CATEGORY_NAMES = {
    GoalCategory.EMERGENCY: "Emergency Fund",
    GoalCategory.VACATION: "Vacation",
    GoalCategory.HOUSE: "House/Property",
    GoalCategory.CAR: "Vehicle",
    GoalCategory.EDUCATION: "Education",
    GoalCategory.RETIREMENT: "Retirement",
    GoalCategory.WEDDING: "Wedding",
    GoalCategory.GENERAL: "General",
}


class GoalPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class SavingsEntryType(str, Enum):
    """Direction of a savings ledger entry."""
    ADDITION = "addition"
    REMOVAL = "removal"


class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class InsightType(str, Enum):
    SPENDING = "spending"
    BUDGET = "budget"
    SAVINGS = "savings"
    TREND = "trend"
    ALERT = "alert"
    OPPORTUNITY = "opportunity"
    ACHIEVEMENT = "achievement"
    WARNING = "warning"


class TrendDirection(str, Enum):
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


class InsightPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class AlertType(str, Enum):
    """
    Kinds of alert the ledger records.

    UNUSUAL_SPENDING is accepted when loading stored alerts but the
    engines do not emit it.
    """
    EXCEEDED = "exceeded"
    WARNING = "warning"
    GOAL_ACHIEVED = "goal_achieved"
    RECURRING_DUE = "recurring_due"
    UNUSUAL_SPENDING = "unusual_spending"


class AlertSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class NotificationKind(str, Enum):
    """Requests understood by the notification collaborator."""
    BUDGET_WARNING = "budget_warning"
    BUDGET_EXCEEDED = "budget_exceeded"
    GOAL_COMPLETED = "goal_completed"


# =============================================================================
# LEDGER ENTITIES
# =============================================================================

class ExpenseItem(BaseModel):
    """
    A single recorded expense.

    Frozen: an expense only changes through LedgerStore.update_expense,
    which swaps in a whole new instance carrying the same id.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: UUID = Field(default_factory=uuid4)
    amount: Decimal = Field(
        ...,
        ge=0,
        decimal_places=2,
        description="Amount spent"
    )
    category: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Free-text category label"
    )
    expense_date: date = Field(default_factory=date.today)
    notes: Optional[str] = Field(default=None, max_length=1000)
    is_recurring: bool = False
    recurring_frequency: Optional[RecurringFrequency] = None
    tags: list[str] = Field(default_factory=list)
    merchant: Optional[str] = Field(default=None, max_length=200)
    payment_method: PaymentMethod = PaymentMethod.CASH


class Budget(BaseModel):
    """
    A spending limit, optionally restricted to one category.

    A budget without a category applies to EVERY expense in the ledger,
    not only to uncategorized ones.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: UUID = Field(default_factory=uuid4)
    name: str = Field(..., min_length=1, max_length=200)
    amount: Decimal = Field(
        ...,
        ge=0,
        decimal_places=2,
        description="Spending limit"
    )
    period: BudgetPeriod = BudgetPeriod.MONTHLY
    category: Optional[str] = Field(
        default=None,
        description="Category filter; None matches all expenses"
    )
    is_active: bool = True
    alert_threshold: float = Field(
        default=90.0,
        ge=0.0,
        le=100.0,
        description="Utilization percentage that triggers an alert"
    )
    color: str = "#4CAF50"
    start_date: date = Field(default_factory=date.today)
    end_date: Optional[date] = None
    rollover: bool = False

    @model_validator(mode='after')
    def validate_dates(self) -> 'Budget':
        if self.end_date and self.end_date < self.start_date:
            raise ValueError("Budget end date cannot be before start date")
        return self


class SavingsGoalMilestone(BaseModel):
    """An intermediate target on the way to a savings goal."""
    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    description: str = Field(..., min_length=1, max_length=200)
    is_completed: bool = False
    completed_at: Optional[datetime] = None


class AutomaticContribution(BaseModel):
    """A scheduled contribution plan attached to a goal."""
    model_config = ConfigDict(frozen=True)

    amount: Decimal = Field(..., gt=0, decimal_places=2)
    frequency: RecurringFrequency
    next_contribution: date
    is_active: bool = True


def progress_ratio(current_amount: Decimal, target_amount: Decimal) -> float:
    """
    Fraction of a target reached, clamped to [0, 1].

    A non-positive target has no meaningful progress and reports 0.
    """
    if target_amount <= 0:
        return 0.0
    ratio = float(current_amount / target_amount)
    return min(max(ratio, 0.0), 1.0)


class SavingsGoal(BaseModel):
    """
    A savings target with a running balance.

    current_amount is maintained by the savings engine from the entry
    ledger; the engines never mutate a goal in place, they return a copy.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: UUID = Field(default_factory=uuid4)
    name: str = Field(..., min_length=1, max_length=200)
    target_amount: Decimal = Field(..., gt=0, decimal_places=2)
    current_amount: Decimal = Field(default=Decimal("0"), ge=0)
    target_date: Optional[date] = None
    category: GoalCategory = GoalCategory.GENERAL
    priority: GoalPriority = GoalPriority.MEDIUM
    created_at: datetime = Field(default_factory=utc_now)
    completed_at: Optional[datetime] = None
    is_active: bool = True
    milestones: list[SavingsGoalMilestone] = Field(default_factory=list)
    color: str = "#2196F3"
    automatic_contribution: Optional[AutomaticContribution] = None

    @field_validator('milestones')
    @classmethod
    def validate_milestone_order(
        cls, v: list[SavingsGoalMilestone]
    ) -> list[SavingsGoalMilestone]:
        """Milestones are sub-targets and must be listed in ascending order."""
        amounts = [m.amount for m in v]
        if amounts != sorted(amounts):
            raise ValueError("Milestones must be ordered by ascending amount")
        return v

    @property
    def progress(self) -> float:
        return progress_ratio(self.current_amount, self.target_amount)

    @property
    def is_completed(self) -> bool:
        return self.current_amount >= self.target_amount

    @property
    def remaining_amount(self) -> Decimal:
        return max(self.target_amount - self.current_amount, Decimal("0"))


class SavingsEntry(BaseModel):
    """
    Append-only record of a contribution to or withdrawal from a goal.

    CRITICAL: For a goal funded only through entries, the sum of additions
    minus removals equals the goal's current_amount.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: UUID = Field(default_factory=uuid4)
    goal_id: UUID
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    type: SavingsEntryType = SavingsEntryType.ADDITION
    date: datetime = Field(default_factory=utc_now)
    notes: Optional[str] = Field(default=None, max_length=1000)


class RecurringTransaction(BaseModel):
    """An income or expense that repeats on a fixed frequency."""
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: UUID = Field(default_factory=uuid4)
    name: str = Field(..., min_length=1, max_length=200)
    amount: Decimal = Field(..., ge=0, decimal_places=2)
    category: str = Field(..., min_length=1, max_length=100)
    frequency: RecurringFrequency
    type: TransactionType = TransactionType.EXPENSE
    start_date: date = Field(default_factory=date.today)
    end_date: Optional[date] = None
    is_active: bool = True
    last_processed: Optional[date] = None
    tags: list[str] = Field(default_factory=list)
    notes: Optional[str] = Field(default=None, max_length=1000)

    @model_validator(mode='after')
    def validate_dates(self) -> 'RecurringTransaction':
        if self.end_date and self.end_date < self.start_date:
            raise ValueError("Recurring end date cannot be before start date")
        return self

    @computed_field
    @property
    def next_due(self) -> date:
        """First occurrence after the start date."""
        from finledger.engines.frequency import next_date

        return next_date(self.frequency, self.start_date)


# =============================================================================
# DERIVED / GENERATED MODELS
# =============================================================================

class FinancialInsight(BaseModel):
    """
    A generated observation about the ledger.

    Never created by users; the whole set is replaced on every mutation.
    """
    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    type: InsightType
    title: str
    description: str
    value: str
    trend: TrendDirection
    priority: InsightPriority
    actionable: bool
    category: str
    created_at: datetime = Field(default_factory=utc_now)


class BudgetAlert(BaseModel):
    """A recorded alert about a budget, goal or recurring payment."""
    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    type: AlertType
    severity: AlertSeverity
    message: str = Field(..., min_length=1, max_length=500)
    budget_id: Optional[UUID] = None
    goal_id: Optional[UUID] = None
    recurring_id: Optional[UUID] = None
    created_at: datetime = Field(default_factory=utc_now)
    is_read: bool = False
    action_taken: bool = False


class BudgetUtilization(BaseModel):
    """
    Spend-versus-limit for one budget.

    utilization_percentage and is_over_budget are computed independently:
    a zero-limit budget with spending reports 0% and is still over budget.
    """

    budget: Budget
    amount_spent: Decimal
    utilization_percentage: float
    is_over_budget: bool

    @property
    def remaining_amount(self) -> Decimal:
        """Limit minus spend; negative once over budget."""
        return self.budget.amount - self.amount_spent

    @property
    def is_over_threshold(self) -> bool:
        return self.utilization_percentage >= self.budget.alert_threshold


class SavingsProgress(BaseModel):
    """Progress snapshot for one goal."""

    goal_id: UUID
    percentage_complete: float = Field(..., ge=0.0, le=1.0)
    remaining_amount: Decimal
    is_completed: bool
    is_on_track: bool


class TimeToGoal(BaseModel):
    """How long a per-paycheck savings plan takes to close the gap."""

    paychecks_needed: float = Field(..., ge=0.0)
    value: float = Field(..., ge=0.0)
    unit: str


# =============================================================================
# MUTATION OUTCOMES
# =============================================================================

class NotificationRequest(BaseModel):
    """
    A request for the external notification collaborator.

    Produced by the core as part of a mutation result and delivered
    afterwards by the dispatcher.
    """

    id: UUID = Field(default_factory=uuid4)
    kind: NotificationKind
    payload: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utc_now)


class MutationResult(BaseModel):
    """
    Outcome of a ledger mutation.

    The notifications list is the outbox: the store never talks to the
    notification collaborator directly.
    """

    entity: Optional[Any] = None
    notifications: list[NotificationRequest] = Field(default_factory=list)
    alerts: list[BudgetAlert] = Field(default_factory=list)


class WithdrawalResult(BaseModel):
    """
    Outcome of a withdrawal attempt.

    A rejected withdrawal is a normal outcome, not an error:
    success is False, no entry is recorded and the goal is unchanged.
    """

    success: bool
    goal: SavingsGoal
    entry: Optional[SavingsEntry] = None
    reason: Optional[str] = None
