"""Domain engines: frequency arithmetic, budgets, savings and insights."""

from finledger.engines.budgets import (
    budget_applies_to,
    evaluate_budget_alerts,
    get_utilization,
)
from finledger.engines.frequency import (
    annualized_amount,
    annualized_budget,
    due_date,
    next_date,
    project_occurrences,
)
from finledger.engines.insights import InsightGenerator, group_by_month
from finledger.engines.savings import (
    apply_contribution,
    apply_withdrawal,
    calculate_progress,
    entries_total,
    estimate_time_to_goal,
    months_remaining,
    required_monthly_contribution,
    reverse_entry,
)

__all__ = [
    "InsightGenerator",
    "annualized_amount",
    "annualized_budget",
    "due_date",
    "apply_contribution",
    "apply_withdrawal",
    "budget_applies_to",
    "calculate_progress",
    "entries_total",
    "estimate_time_to_goal",
    "evaluate_budget_alerts",
    "get_utilization",
    "group_by_month",
    "months_remaining",
    "next_date",
    "project_occurrences",
    "required_monthly_contribution",
    "reverse_entry",
]
