"""
Insight Generator

Derives trend, alert and opportunity insights from a ledger snapshot.

DESIGN DECISION: Insights are regenerated wholesale from the current
snapshot every time, never patched. The generator holds no state beyond
its thresholds, so the same snapshot always yields the same insights
(apart from ids and timestamps).

Order of the combined list: spending insights, then budget insights,
then savings insights. The list is not sorted by priority.
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Optional

from finledger.config import InsightSettings
from finledger.engines.budgets import get_utilization
from finledger.models.ledger import (
    Budget,
    ExpenseItem,
    FinancialInsight,
    InsightPriority,
    InsightType,
    SavingsGoal,
    TrendDirection,
)


def month_bucket(day: date) -> date:
    """First day of the calendar month containing `day`."""
    return day.replace(day=1)


def group_by_month(expenses: list[ExpenseItem]) -> dict[date, list[ExpenseItem]]:
    """Expenses keyed by the first day of their month."""
    months: dict[date, list[ExpenseItem]] = defaultdict(list)
    for expense in expenses:
        months[month_bucket(expense.expense_date)].append(expense)
    return dict(months)


class InsightGenerator:
    """
    Builds the insight set for a ledger snapshot.

    Thresholds come from InsightSettings; the currency symbol is only used
    to format values.
    """

    def __init__(
        self,
        settings: Optional[InsightSettings] = None,
        currency_symbol: str = "$",
    ):
        self._settings = settings or InsightSettings()
        self._currency = currency_symbol

    def generate(
        self,
        expenses: list[ExpenseItem],
        budgets: list[Budget],
        goals: list[SavingsGoal],
    ) -> list[FinancialInsight]:
        """Full insight set, in spending / budget / savings order."""
        insights: list[FinancialInsight] = []
        insights.extend(self.spending_insights(expenses))
        insights.extend(self.budget_insights(budgets, expenses))
        insights.extend(self.savings_insights(goals))
        return insights

    def spending_insights(self, expenses: list[ExpenseItem]) -> list[FinancialInsight]:
        """
        Month-over-month spending trend.

        Compares the two most recent calendar months that have expenses
        (not a rolling 30-day window). Needs at least two such months.
        """
        monthly = group_by_month(expenses)
        if len(monthly) < 2:
            return []

        previous_month, current_month = sorted(monthly)[-2:]
        current_total = sum((e.amount for e in monthly[current_month]), Decimal("0"))
        previous_total = sum((e.amount for e in monthly[previous_month]), Decimal("0"))

        change = current_total - previous_total
        change_percent = float(change / previous_total * 100) if previous_total > 0 else 0.0

        if change > 0:
            trend = TrendDirection.UP
        elif change < 0:
            trend = TrendDirection.DOWN
        else:
            trend = TrendDirection.STABLE

        if abs(change_percent) > self._settings.trend_high_priority_percent:
            priority = InsightPriority.HIGH
        else:
            priority = InsightPriority.MEDIUM

        return [
            FinancialInsight(
                type=InsightType.TREND,
                title="Monthly Spending Trend",
                description=(
                    f"Your spending is {trend.value} by {abs(change_percent):.1f}% "
                    "compared to last month"
                ),
                value=f"{self._currency}{current_total:.2f}",
                trend=trend,
                priority=priority,
                actionable=abs(change_percent) > self._settings.trend_actionable_percent,
                category="Spending",
            )
        ]

    def budget_insights(
        self,
        budgets: list[Budget],
        expenses: list[ExpenseItem],
    ) -> list[FinancialInsight]:
        """One urgent insight per budget currently over its limit."""
        insights = []
        for budget in budgets:
            utilization = get_utilization(budget, expenses)
            if not utilization.is_over_budget:
                continue
            overage = utilization.amount_spent - budget.amount
            insights.append(
                FinancialInsight(
                    type=InsightType.ALERT,
                    title="Budget Exceeded",
                    description=f"{budget.name} is over budget by {self._currency}{overage:.2f}",
                    value=f"{utilization.utilization_percentage:.1f}%",
                    trend=TrendDirection.UP,
                    priority=InsightPriority.URGENT,
                    actionable=True,
                    category=budget.category or "General",
                )
            )
        return insights

    def savings_insights(self, goals: list[SavingsGoal]) -> list[FinancialInsight]:
        """One opportunity per active goal that is nearly, but not yet, complete."""
        insights = []
        for goal in goals:
            if not goal.is_active or goal.is_completed:
                continue
            if goal.progress < self._settings.goal_near_completion_ratio:
                continue
            remaining = goal.target_amount - goal.current_amount
            insights.append(
                FinancialInsight(
                    type=InsightType.OPPORTUNITY,
                    title="Goal Almost Complete",
                    description=f"{goal.name} is {goal.progress * 100:.0f}% complete!",
                    value=f"{self._currency}{remaining:.2f} remaining",
                    trend=TrendDirection.UP,
                    priority=InsightPriority.MEDIUM,
                    actionable=True,
                    category=goal.category.display_name,
                )
            )
        return insights
