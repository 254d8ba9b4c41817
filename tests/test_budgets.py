"""Tests for the budget utilization engine."""

import pytest
from decimal import Decimal

from finledger.engines.budgets import (
    budget_applies_to,
    evaluate_budget_alerts,
    get_utilization,
)
from finledger.models.ledger import (
    AlertSeverity,
    AlertType,
    Budget,
    ExpenseItem,
    NotificationKind,
)


def _expenses(category: str, *amounts: str) -> list[ExpenseItem]:
    return [ExpenseItem(amount=Decimal(a), category=category) for a in amounts]


class TestBudgetApplies:
    """Tests for category matching."""

    def test_category_budget_matches_own_category(self):
        """Test exact category matching."""
        budget = Budget(name="Food", amount=Decimal("500"), category="Food")
        assert budget_applies_to(budget, "Food") is True
        assert budget_applies_to(budget, "Transport") is False

    def test_uncategorized_budget_matches_everything(self):
        """Test that a budget without a category covers every expense."""
        budget = Budget(name="All", amount=Decimal("1000"))
        assert budget_applies_to(budget, "Food") is True
        assert budget_applies_to(budget, "Transport") is True


class TestUtilization:
    """Tests for get_utilization."""

    def test_food_under_budget(self):
        """Test 150 + 200 + 75 against a 500 Food budget."""
        budget = Budget(name="Food", amount=Decimal("500"), category="Food", alert_threshold=80)
        utilization = get_utilization(budget, _expenses("Food", "150", "200", "75"))

        assert utilization.amount_spent == Decimal("425")
        assert utilization.utilization_percentage == pytest.approx(85.0)
        assert utilization.is_over_budget is False
        assert utilization.remaining_amount == Decimal("75")

    def test_entertainment_over_budget(self):
        """Test 150 + 80 against a 200 Entertainment budget."""
        budget = Budget(
            name="Fun", amount=Decimal("200"), category="Entertainment", alert_threshold=80
        )
        utilization = get_utilization(budget, _expenses("Entertainment", "150", "80"))

        assert utilization.amount_spent == Decimal("230")
        assert utilization.utilization_percentage == pytest.approx(115.0)
        assert utilization.is_over_budget is True

    def test_other_categories_ignored(self):
        """Test that only matching expenses count."""
        budget = Budget(name="Food", amount=Decimal("500"), category="Food")
        expenses = _expenses("Food", "100") + _expenses("Transport", "400")
        assert get_utilization(budget, expenses).amount_spent == Decimal("100")

    def test_uncategorized_budget_sums_everything(self):
        """Test that an overall budget sums every expense."""
        budget = Budget(name="All", amount=Decimal("1000"))
        expenses = _expenses("Food", "100") + _expenses("Transport", "400")
        assert get_utilization(budget, expenses).amount_spent == Decimal("500")

    def test_zero_limit_with_spending(self):
        """Test that a zero limit reports 0% and is still over budget."""
        budget = Budget(name="None", amount=Decimal("0"), category="Food")
        utilization = get_utilization(budget, _expenses("Food", "1"))

        assert utilization.utilization_percentage == 0.0
        assert utilization.is_over_budget is True

    def test_zero_limit_without_spending(self):
        """Test that nothing spent against a zero limit is not over budget."""
        budget = Budget(name="None", amount=Decimal("0"), category="Food")
        utilization = get_utilization(budget, [])

        assert utilization.amount_spent == Decimal("0")
        assert utilization.is_over_budget is False

    def test_exactly_at_limit_is_not_over(self):
        """Test that spending equal to the limit is not over budget."""
        budget = Budget(name="Food", amount=Decimal("100"), category="Food")
        utilization = get_utilization(budget, _expenses("Food", "100"))

        assert utilization.utilization_percentage == pytest.approx(100.0)
        assert utilization.is_over_budget is False


class TestBudgetAlerts:
    """Tests for evaluate_budget_alerts."""

    def test_warning_at_threshold(self):
        """Test a warning alert and notification once the threshold is reached."""
        budget = Budget(name="Food", amount=Decimal("500"), category="Food", alert_threshold=80)
        alerts, notifications = evaluate_budget_alerts(
            "Food", [budget], _expenses("Food", "150", "200", "75")
        )

        assert len(alerts) == 1
        assert alerts[0].type == AlertType.WARNING
        assert alerts[0].severity == AlertSeverity.WARNING
        assert alerts[0].budget_id == budget.id

        assert len(notifications) == 1
        assert notifications[0].kind == NotificationKind.BUDGET_WARNING
        assert notifications[0].payload["title"] == "Budget Alert - Food"
        assert notifications[0].payload["utilization"] == "85.0"

    def test_exceeded_over_limit(self):
        """Test an exceeded alert and notification once over the limit."""
        budget = Budget(
            name="Fun", amount=Decimal("200"), category="Entertainment", alert_threshold=80
        )
        alerts, notifications = evaluate_budget_alerts(
            "Entertainment", [budget], _expenses("Entertainment", "150", "80")
        )

        assert [a.type for a in alerts] == [AlertType.EXCEEDED]
        assert alerts[0].severity == AlertSeverity.CRITICAL
        assert "$30.00" in alerts[0].message

        assert notifications[0].kind == NotificationKind.BUDGET_EXCEEDED
        assert notifications[0].payload["identifier"] == f"budget_exceeded_{budget.id}"
        assert notifications[0].payload["overage"] == "30"

    def test_below_threshold_is_silent(self):
        """Test that nothing is raised below the threshold."""
        budget = Budget(name="Food", amount=Decimal("500"), category="Food", alert_threshold=90)
        alerts, notifications = evaluate_budget_alerts(
            "Food", [budget], _expenses("Food", "100")
        )
        assert alerts == []
        assert notifications == []

    def test_unrelated_budget_not_evaluated(self):
        """Test that budgets for other categories are skipped even when over."""
        budget = Budget(name="Travel", amount=Decimal("10"), category="Travel")
        expenses = _expenses("Travel", "50") + _expenses("Food", "5")
        alerts, _ = evaluate_budget_alerts("Food", [budget], expenses)
        assert alerts == []

    def test_zero_limit_budget_alerts_exceeded_only_at_zero_threshold(self):
        """Test that a zero-limit budget (0%) only alerts with a 0 threshold."""
        silent = Budget(name="A", amount=Decimal("0"), category="Food", alert_threshold=50)
        loud = Budget(name="B", amount=Decimal("0"), category="Food", alert_threshold=0)
        alerts, _ = evaluate_budget_alerts("Food", [silent, loud], _expenses("Food", "5"))

        assert len(alerts) == 1
        assert alerts[0].budget_id == loud.id
        assert alerts[0].type == AlertType.EXCEEDED

    def test_currency_symbol(self):
        """Test that the currency symbol formats the overage."""
        budget = Budget(name="Fun", amount=Decimal("10"), category="Fun", alert_threshold=0)
        alerts, _ = evaluate_budget_alerts(
            "Fun", [budget], _expenses("Fun", "12.50"), currency_symbol="€"
        )
        assert "€2.50" in alerts[0].message
