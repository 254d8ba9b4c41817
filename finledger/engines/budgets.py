"""
Budget Utilization Engine

Computes spend-versus-limit for a budget against the expense set and
decides which alerts an expense should raise.

DESIGN DECISION: A budget without a category captures every expense in
the ledger. It is an "overall spending" budget, not a bucket for
uncategorized expenses.

utilization_percentage and is_over_budget are deliberately computed from
the raw amounts and never from each other. A zero-limit budget with any
spending reports 0% utilization and is over budget at the same time.
"""

from decimal import Decimal
from typing import Iterable, Optional

import structlog

from finledger.models.ledger import (
    AlertSeverity,
    AlertType,
    Budget,
    BudgetAlert,
    BudgetUtilization,
    ExpenseItem,
    NotificationKind,
    NotificationRequest,
)


logger = structlog.get_logger(__name__)


def budget_applies_to(budget: Budget, category: Optional[str]) -> bool:
    """Does an expense in `category` count against this budget?"""
    return budget.category is None or budget.category == category


def get_utilization(budget: Budget, expenses: Iterable[ExpenseItem]) -> BudgetUtilization:
    """Spend, percentage used and over-budget flag for one budget."""
    spent = sum(
        (e.amount for e in expenses if budget_applies_to(budget, e.category)),
        Decimal("0"),
    )
    if budget.amount > 0:
        percentage = float(spent / budget.amount * 100)
    else:
        percentage = 0.0

    return BudgetUtilization(
        budget=budget,
        amount_spent=spent,
        utilization_percentage=percentage,
        is_over_budget=spent > budget.amount,
    )


def evaluate_budget_alerts(
    category: str,
    budgets: Iterable[Budget],
    expenses: list[ExpenseItem],
    currency_symbol: str = "$",
) -> tuple[list[BudgetAlert], list[NotificationRequest]]:
    """
    Alerts raised by adding an expense in `category`.

    Every budget relevant to the category is re-evaluated. Once
    utilization reaches the budget's alert threshold it raises an
    "exceeded" alert when over the limit, a "warning" alert otherwise.
    Each alert is paired with a notification request.
    """
    alerts: list[BudgetAlert] = []
    notifications: list[NotificationRequest] = []

    for budget in budgets:
        if not budget_applies_to(budget, category):
            continue

        utilization = get_utilization(budget, expenses)
        if utilization.utilization_percentage < budget.alert_threshold:
            continue

        if utilization.is_over_budget:
            overage = utilization.amount_spent - budget.amount
            message = (
                f"You've exceeded your budget by {currency_symbol}{overage:.2f}. "
                "Review your spending."
            )
            alert = BudgetAlert(
                type=AlertType.EXCEEDED,
                severity=AlertSeverity.CRITICAL,
                message=message,
                budget_id=budget.id,
            )
            notification = NotificationRequest(
                kind=NotificationKind.BUDGET_EXCEEDED,
                payload={
                    "identifier": f"budget_exceeded_{budget.id}",
                    "title": f"Budget Exceeded - {budget.name}",
                    "body": message,
                    "budget_id": str(budget.id),
                    "overage": str(overage),
                },
            )
        else:
            percentage = utilization.utilization_percentage
            message = (
                f"You've used {percentage:.1f}% of your budget. "
                "Consider tracking your spending."
            )
            alert = BudgetAlert(
                type=AlertType.WARNING,
                severity=AlertSeverity.WARNING,
                message=message,
                budget_id=budget.id,
            )
            notification = NotificationRequest(
                kind=NotificationKind.BUDGET_WARNING,
                payload={
                    "identifier": f"budget_warning_{budget.id}",
                    "title": f"Budget Alert - {budget.name}",
                    "body": message,
                    "budget_id": str(budget.id),
                    "utilization": f"{percentage:.1f}",
                },
            )

        logger.info(
            "budget_alert_emitted",
            budget_id=str(budget.id),
            alert_type=alert.type.value,
            utilization=round(utilization.utilization_percentage, 2),
        )
        alerts.append(alert)
        notifications.append(notification)

    return alerts, notifications
