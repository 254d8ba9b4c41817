"""
Data Models Package

This package contains all Pydantic models used by finledger.
Every entity the ledger owns or produces conforms to these schemas.
"""

from finledger.models.ledger import (
    AlertSeverity,
    AlertType,
    AutomaticContribution,
    Budget,
    BudgetAlert,
    BudgetPeriod,
    BudgetUtilization,
    ExpenseItem,
    FinancialInsight,
    GoalCategory,
    GoalPriority,
    InsightPriority,
    InsightType,
    MutationResult,
    NotificationKind,
    NotificationRequest,
    PayFrequency,
    PaymentMethod,
    RecurringFrequency,
    RecurringTransaction,
    SavingsEntry,
    SavingsEntryType,
    SavingsGoal,
    SavingsGoalMilestone,
    SavingsProgress,
    TimeToGoal,
    TransactionType,
    TrendDirection,
    WithdrawalResult,
    progress_ratio,
    utc_now,
)
from finledger.models.analytics import (
    AnalyticsEvent,
    AnalyticsEventBuilder,
    AnalyticsOverview,
)

__all__ = [
    # Ledger models
    "AlertSeverity",
    "AlertType",
    "AutomaticContribution",
    "Budget",
    "BudgetAlert",
    "BudgetPeriod",
    "BudgetUtilization",
    "ExpenseItem",
    "FinancialInsight",
    "GoalCategory",
    "GoalPriority",
    "InsightPriority",
    "InsightType",
    "MutationResult",
    "NotificationKind",
    "NotificationRequest",
    "PayFrequency",
    "PaymentMethod",
    "RecurringFrequency",
    "RecurringTransaction",
    "SavingsEntry",
    "SavingsEntryType",
    "SavingsGoal",
    "SavingsGoalMilestone",
    "SavingsProgress",
    "TimeToGoal",
    "TransactionType",
    "TrendDirection",
    "WithdrawalResult",
    "progress_ratio",
    "utc_now",
    # Analytics models
    "AnalyticsEvent",
    "AnalyticsEventBuilder",
    "AnalyticsOverview",
]
