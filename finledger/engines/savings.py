"""
Savings Goal Engine

Progress, completion and forecasting for savings goals, plus the rules
that turn contributions and withdrawals into ledger entries.

DESIGN DECISION: The engine is pure. Every function takes a goal and
returns a NEW goal (plus the entry and any completion events); the
ledger store decides what to persist. This keeps the arithmetic testable
without storage.

INVARIANT: For a goal funded only through contribute/withdraw,
current_amount == sum(additions) - sum(removals), floored at 0.
Deleting entries reverses their effect arithmetically; reconcile with
entries_total() when the two may have drifted.
"""

from datetime import date, datetime
from decimal import ROUND_HALF_EVEN, Decimal, InvalidOperation
from typing import Iterable, Optional

import structlog
from dateutil.relativedelta import relativedelta

from finledger.errors import GoalForecastError, InvalidAmountError
from finledger.models.ledger import (
    AlertSeverity,
    AlertType,
    BudgetAlert,
    NotificationKind,
    NotificationRequest,
    PayFrequency,
    SavingsEntry,
    SavingsEntryType,
    SavingsGoal,
    SavingsProgress,
    TimeToGoal,
    WithdrawalResult,
    utc_now,
)


logger = structlog.get_logger(__name__)

ZERO = Decimal("0")
CENT = Decimal("0.01")


def to_amount(value, operation: str) -> Decimal:
    """
    Coerce a caller-supplied amount to a strictly positive Decimal.

    Amounts are rounded to whole cents (banker's rounding), so float noise
    such as 0.1 + 0.2 is accepted. Anything that rounds to zero is rejected.
    """
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise InvalidAmountError(value, operation)
    if not amount.is_finite():
        raise InvalidAmountError(value, operation)
    try:
        amount = amount.quantize(CENT, rounding=ROUND_HALF_EVEN)
    except InvalidOperation:
        raise InvalidAmountError(value, operation)
    if amount <= 0:
        raise InvalidAmountError(value, operation)
    return amount


# =============================================================================
# PROGRESS
# =============================================================================

def is_on_track(goal: SavingsGoal, today: Optional[date] = None) -> bool:
    """
    Is the goal funded at least as far as time has elapsed?

    Completed goals and goals without a target date are always on track.
    A goal past its target date and not completed is not.
    """
    if goal.is_completed or goal.target_date is None:
        return True

    today = today or date.today()
    if today >= goal.target_date:
        return False

    start = goal.created_at.date()
    window = (goal.target_date - start).days
    if window <= 0:
        return False
    elapsed = max((today - start).days, 0) / window
    return goal.progress >= elapsed


def calculate_progress(goal: SavingsGoal, today: Optional[date] = None) -> SavingsProgress:
    """Progress snapshot for a goal."""
    return SavingsProgress(
        goal_id=goal.id,
        percentage_complete=goal.progress,
        remaining_amount=goal.remaining_amount,
        is_completed=goal.is_completed,
        is_on_track=is_on_track(goal, today),
    )


def entries_total(entries: Iterable[SavingsEntry]) -> Decimal:
    """Additions minus removals."""
    total = ZERO
    for entry in entries:
        if entry.type == SavingsEntryType.ADDITION:
            total += entry.amount
        else:
            total -= entry.amount
    return total


# =============================================================================
# CONTRIBUTIONS AND WITHDRAWALS
# =============================================================================

def _refresh_milestones(goal: SavingsGoal, now: datetime) -> list:
    """Mark milestones reached by the current balance as completed."""
    refreshed = []
    for milestone in goal.milestones:
        if not milestone.is_completed and goal.current_amount >= milestone.amount:
            milestone = milestone.model_copy(
                update={"is_completed": True, "completed_at": now}
            )
        refreshed.append(milestone)
    return refreshed


def completion_events(goal: SavingsGoal) -> tuple[BudgetAlert, NotificationRequest]:
    """The alert and notification for a goal that has just been completed."""
    message = f"Congratulations! You've reached your savings goal: {goal.name}"
    alert = BudgetAlert(
        type=AlertType.GOAL_ACHIEVED,
        severity=AlertSeverity.INFO,
        message=message,
        goal_id=goal.id,
    )
    notification = NotificationRequest(
        kind=NotificationKind.GOAL_COMPLETED,
        payload={
            "identifier": f"goal_completed_{goal.id}",
            "title": "Goal Achieved!",
            "body": message,
            "goal_id": str(goal.id),
        },
    )
    return alert, notification


def apply_contribution(
    goal: SavingsGoal,
    amount,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> tuple[SavingsGoal, SavingsEntry, list[BudgetAlert], list[NotificationRequest]]:
    """
    Add money to a goal.

    Returns (updated_goal, entry, alerts, notifications). The alert and
    notification lists hold the goal-completion events, which are raised
    only on the not-completed -> completed transition.

    Raises:
        InvalidAmountError: If amount is not strictly positive
    """
    amount = to_amount(amount, "contribute")
    now = now or utc_now()

    entry = SavingsEntry(
        goal_id=goal.id,
        amount=amount,
        type=SavingsEntryType.ADDITION,
        date=now,
        notes=notes,
    )

    was_completed = goal.is_completed
    updated = goal.model_copy(update={"current_amount": goal.current_amount + amount})
    updated = updated.model_copy(update={"milestones": _refresh_milestones(updated, now)})

    alerts: list[BudgetAlert] = []
    notifications: list[NotificationRequest] = []
    if not was_completed and updated.is_completed:
        updated = updated.model_copy(update={"completed_at": now})
        alert, notification = completion_events(updated)
        alerts.append(alert)
        notifications.append(notification)
        logger.info("goal_completed", goal_id=str(goal.id))

    return updated, entry, alerts, notifications


def apply_withdrawal(
    goal: SavingsGoal,
    amount,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> WithdrawalResult:
    """
    Take money out of a goal.

    A withdrawal larger than the current balance is rejected: the result
    reports success=False, carries the unchanged goal and no entry.

    Raises:
        InvalidAmountError: If amount is not strictly positive
    """
    amount = to_amount(amount, "withdraw")

    if amount > goal.current_amount:
        return WithdrawalResult(
            success=False,
            goal=goal,
            reason=(
                f"Cannot withdraw {amount} from {goal.name}: "
                f"only {goal.current_amount} saved"
            ),
        )

    entry = SavingsEntry(
        goal_id=goal.id,
        amount=amount,
        type=SavingsEntryType.REMOVAL,
        date=now or utc_now(),
        notes=notes,
    )
    updated = goal.model_copy(
        update={"current_amount": max(ZERO, goal.current_amount - amount)}
    )
    return WithdrawalResult(success=True, goal=updated, entry=entry)


def reverse_entry(goal: SavingsGoal, entry: SavingsEntry) -> SavingsGoal:
    """
    Undo an entry's effect on its goal.

    An addition is reversed by subtracting (floored at 0), a removal by
    adding the amount back.
    """
    if entry.type == SavingsEntryType.ADDITION:
        current = max(ZERO, goal.current_amount - entry.amount)
    else:
        current = goal.current_amount + entry.amount
    return goal.model_copy(update={"current_amount": current})


# =============================================================================
# FORECASTING
# =============================================================================

def months_remaining(target_date: date, today: Optional[date] = None) -> int:
    """
    Whole calendar months from today to target_date, partial months rounded up.

    Returns 0 when the target date is today or in the past.
    """
    today = today or date.today()
    if target_date <= today:
        return 0
    delta = relativedelta(target_date, today)
    months = delta.years * 12 + delta.months
    if delta.days > 0:
        months += 1
    return months


def required_monthly_contribution(goal: SavingsGoal, today: Optional[date] = None) -> Decimal:
    """
    Monthly amount needed to reach the target by the target date.

    A completed goal needs nothing. When no whole month is left the full
    remaining amount is due now.

    Raises:
        GoalForecastError: If the goal has no target date
    """
    if goal.target_date is None:
        raise GoalForecastError(
            f"Goal '{goal.name}' has no target date; cannot forecast contributions"
        )
    if goal.is_completed:
        return ZERO

    remaining = goal.target_amount - goal.current_amount
    months = months_remaining(goal.target_date, today)
    if months <= 0:
        return remaining
    return remaining / months


def estimate_time_to_goal(
    remaining_amount: Decimal,
    savings_per_paycheck: Decimal,
    pay_frequency: PayFrequency,
) -> TimeToGoal:
    """
    How many paychecks (and how long) a fixed per-paycheck saving takes.

    Daily pay is counted in workdays, weekly and bi-weekly pay in weeks,
    monthly pay in months. No saving per paycheck means no estimate (0).
    """
    if savings_per_paycheck <= 0 or remaining_amount <= 0:
        paychecks = 0.0
    else:
        paychecks = float(Decimal(remaining_amount) / Decimal(savings_per_paycheck))

    if pay_frequency == PayFrequency.DAILY:
        value, unit = paychecks, "workday"
    elif pay_frequency == PayFrequency.WEEKLY:
        value, unit = paychecks, "week"
    elif pay_frequency == PayFrequency.BIWEEKLY:
        value, unit = paychecks * 2, "week"
    else:
        value, unit = paychecks, "month"

    if value != 1:
        unit += "s"
    return TimeToGoal(paychecks_needed=paychecks, value=value, unit=unit)
