"""Tests for the savings goal engine."""

import pytest
from datetime import date, datetime, timezone
from decimal import Decimal

from finledger.engines.savings import (
    apply_contribution,
    apply_withdrawal,
    calculate_progress,
    entries_total,
    estimate_time_to_goal,
    is_on_track,
    months_remaining,
    required_monthly_contribution,
    reverse_entry,
    to_amount,
)
from finledger.errors import GoalForecastError, InvalidAmountError
from finledger.models.ledger import (
    AlertType,
    NotificationKind,
    PayFrequency,
    SavingsEntryType,
    SavingsGoal,
    SavingsGoalMilestone,
)


def _goal(target: str, current: str = "0", **kwargs) -> SavingsGoal:
    return SavingsGoal(
        name="Emergency Fund",
        target_amount=Decimal(target),
        current_amount=Decimal(current),
        **kwargs,
    )


class TestAmounts:
    """Tests for amount coercion."""

    def test_accepts_numbers_and_strings(self):
        """Test that ints, strings and Decimals become Decimals."""
        assert to_amount(100, "contribute") == Decimal("100")
        assert to_amount("12.34", "contribute") == Decimal("12.34")

    @pytest.mark.parametrize("value", [0, -5, "abc", "NaN", "Infinity"])
    def test_rejects_non_positive_and_invalid(self, value):
        """Test that zero, negative and non-numeric amounts are rejected."""
        with pytest.raises(InvalidAmountError, match="positive amount"):
            to_amount(value, "contribute")

    def test_rounds_to_cents(self):
        """Test that sub-cent precision and float noise are rounded to cents."""
        assert to_amount(Decimal("10.005"), "contribute") == Decimal("10.00")
        assert to_amount(Decimal("10.015"), "contribute") == Decimal("10.02")
        assert to_amount(0.1 + 0.2, "withdraw") == Decimal("0.30")

    def test_rejects_amount_rounding_to_zero(self):
        """Test that an amount below half a cent is rejected."""
        with pytest.raises(InvalidAmountError):
            to_amount(Decimal("0.004"), "contribute")


class TestContribution:
    """Tests for apply_contribution."""

    def test_contribution_records_addition(self):
        """Test that a contribution raises the balance and returns an entry."""
        goal = _goal("1000", "100")
        updated, entry, alerts, notifications = apply_contribution(goal, Decimal("50"), "payday")

        assert updated.current_amount == Decimal("150")
        assert goal.current_amount == Decimal("100")
        assert entry.type == SavingsEntryType.ADDITION
        assert entry.goal_id == goal.id
        assert entry.notes == "payday"
        assert alerts == []
        assert notifications == []

    def test_completion_fires_once(self):
        """Test that 9950 + 100 of 10000 completes with exactly one notification."""
        goal = _goal("10000", "9950")
        updated, _, alerts, notifications = apply_contribution(goal, Decimal("100"))

        assert updated.current_amount == Decimal("10050")
        assert updated.is_completed is True
        assert updated.completed_at is not None
        assert len(notifications) == 1
        assert notifications[0].kind == NotificationKind.GOAL_COMPLETED
        assert [a.type for a in alerts] == [AlertType.GOAL_ACHIEVED]

        again, _, alerts, notifications = apply_contribution(updated, Decimal("10"))
        assert again.current_amount == Decimal("10060")
        assert notifications == []
        assert alerts == []
        assert again.completed_at == updated.completed_at

    def test_invalid_contribution(self):
        """Test that non-positive contributions are rejected."""
        with pytest.raises(InvalidAmountError):
            apply_contribution(_goal("1000"), Decimal("0"))

    def test_milestones_completed(self):
        """Test that reached milestones are marked complete."""
        goal = _goal(
            "1000",
            milestones=[
                SavingsGoalMilestone(amount=Decimal("250"), description="Quarter"),
                SavingsGoalMilestone(amount=Decimal("500"), description="Half"),
            ],
        )
        updated, _, _, _ = apply_contribution(goal, Decimal("300"))
        assert [m.is_completed for m in updated.milestones] == [True, False]
        assert updated.milestones[0].completed_at is not None


class TestWithdrawal:
    """Tests for apply_withdrawal."""

    def test_withdrawal_success(self):
        """Test a withdrawal within the balance."""
        result = apply_withdrawal(_goal("1000", "300"), Decimal("100"))

        assert result.success is True
        assert result.goal.current_amount == Decimal("200")
        assert result.entry.type == SavingsEntryType.REMOVAL

    def test_withdraw_entire_balance(self):
        """Test that the full balance can be withdrawn."""
        result = apply_withdrawal(_goal("1000", "300"), Decimal("300"))
        assert result.success is True
        assert result.goal.current_amount == Decimal("0")

    def test_withdrawal_over_balance_rejected(self):
        """Test that withdrawing more than saved fails without changes."""
        goal = _goal("1000", "50")
        result = apply_withdrawal(goal, Decimal("100"))

        assert result.success is False
        assert result.entry is None
        assert result.goal.current_amount == Decimal("50")
        assert "only 50 saved" in result.reason

    def test_entry_sequence_matches_balance(self):
        """Test that additions minus removals equals the balance."""
        goal = _goal("5000")
        entries = []
        for amount in ("100", "250", "75"):
            goal, entry, _, _ = apply_contribution(goal, Decimal(amount))
            entries.append(entry)
        for amount in ("50", "1000", "125"):
            result = apply_withdrawal(goal, Decimal(amount))
            goal = result.goal
            if result.entry:
                entries.append(result.entry)

        assert goal.current_amount == Decimal("250")
        assert entries_total(entries) == goal.current_amount

    def test_reverse_entries(self):
        """Test undoing additions and removals."""
        goal = _goal("1000", "100")
        goal, addition, _, _ = apply_contribution(goal, Decimal("50"))
        removal = apply_withdrawal(goal, Decimal("30")).entry

        assert reverse_entry(goal, addition).current_amount == Decimal("100")
        assert reverse_entry(goal, removal).current_amount == Decimal("180")

    def test_reverse_addition_floors_at_zero(self):
        """Test that reversing an addition never goes negative."""
        goal = _goal("1000", "100")
        _, addition, _, _ = apply_contribution(goal, Decimal("500"))
        assert reverse_entry(goal, addition).current_amount == Decimal("0")


class TestProgress:
    """Tests for progress and on-track checks."""

    def test_progress_snapshot(self):
        """Test SavingsProgress for 2500 of 10000."""
        progress = calculate_progress(_goal("10000", "2500"))
        assert progress.percentage_complete == 0.25
        assert progress.remaining_amount == Decimal("7500")
        assert progress.is_completed is False
        assert progress.is_on_track is True

    def test_on_track_by_elapsed_time(self):
        """Test that progress is compared with the elapsed share of time."""
        created = datetime(2024, 1, 1, tzinfo=timezone.utc)
        ahead = _goal("1000", "600", target_date=date(2024, 11, 27), created_at=created)
        behind = _goal("1000", "100", target_date=date(2024, 11, 27), created_at=created)
        today = date(2024, 6, 14)

        assert is_on_track(ahead, today) is True
        assert is_on_track(behind, today) is False

    def test_past_target_date_not_on_track(self):
        """Test that an unfinished goal past its date is not on track."""
        goal = _goal("1000", "999", target_date=date(2024, 1, 1))
        assert is_on_track(goal, date(2024, 2, 1)) is False


class TestForecasting:
    """Tests for month counting and required contributions."""

    def test_months_remaining(self):
        """Test whole and partial months."""
        assert months_remaining(date(2025, 1, 1), date(2024, 3, 1)) == 10
        assert months_remaining(date(2025, 1, 15), date(2024, 3, 1)) == 11
        assert months_remaining(date(2024, 3, 1), date(2024, 3, 1)) == 0
        assert months_remaining(date(2024, 1, 1), date(2024, 3, 1)) == 0

    def test_required_monthly_contribution(self):
        """Test 6000 target, 1000 saved, 10 months left."""
        goal = _goal("6000", "1000", target_date=date(2025, 1, 1))
        assert required_monthly_contribution(goal, date(2024, 3, 1)) == Decimal("500")

    def test_required_without_target_date(self):
        """Test that a goal without a date cannot be forecast."""
        with pytest.raises(GoalForecastError, match="no target date"):
            required_monthly_contribution(_goal("6000"))

    def test_required_when_completed(self):
        """Test that a completed goal needs nothing more."""
        goal = _goal("6000", "6000", target_date=date(2025, 1, 1))
        assert required_monthly_contribution(goal, date(2024, 3, 1)) == Decimal("0")

    def test_required_when_date_passed(self):
        """Test that the whole remainder is due once the date has passed."""
        goal = _goal("6000", "1000", target_date=date(2024, 1, 1))
        assert required_monthly_contribution(goal, date(2024, 3, 1)) == Decimal("5000")


class TestTimeToGoal:
    """Tests for estimate_time_to_goal."""

    def test_monthly(self):
        """Test months for monthly pay."""
        estimate = estimate_time_to_goal(Decimal("1000"), Decimal("250"), PayFrequency.MONTHLY)
        assert estimate.paychecks_needed == 4.0
        assert estimate.value == 4.0
        assert estimate.unit == "months"

    def test_biweekly_counts_weeks(self):
        """Test that bi-weekly paychecks are reported in weeks."""
        estimate = estimate_time_to_goal(Decimal("1000"), Decimal("250"), PayFrequency.BIWEEKLY)
        assert estimate.paychecks_needed == 4.0
        assert estimate.value == 8.0
        assert estimate.unit == "weeks"

    def test_daily_counts_workdays(self):
        """Test that daily pay is reported in workdays."""
        estimate = estimate_time_to_goal(Decimal("100"), Decimal("100"), PayFrequency.DAILY)
        assert estimate.value == 1.0
        assert estimate.unit == "workday"

    def test_no_savings_per_paycheck(self):
        """Test that saving nothing per paycheck gives no estimate."""
        estimate = estimate_time_to_goal(Decimal("1000"), Decimal("0"), PayFrequency.WEEKLY)
        assert estimate.paychecks_needed == 0.0
        assert estimate.unit == "weeks"
