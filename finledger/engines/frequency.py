"""
Frequency and Period Calculators

Pure functions mapping a recurrence rule and an anchor date to the next
occurrence, and a per-occurrence amount to a yearly amount.

DESIGN DECISION: Calendar-aware arithmetic via dateutil.relativedelta.
Adding a month to January 31st lands on the last day of February,
never on March 2nd or 3rd.

FALLBACK POLICY: if a date cannot be advanced (the result would fall
outside the supported date range), next_date returns the anchor date
unchanged and logs a warning instead of raising. Callers iterating
occurrences must treat "no progress" as the end of the series.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

import structlog
from dateutil.relativedelta import relativedelta

from finledger.models.ledger import (
    BudgetPeriod,
    RecurringFrequency,
    RecurringTransaction,
)


logger = structlog.get_logger(__name__)


_STEPS: dict[RecurringFrequency, relativedelta] = {
    RecurringFrequency.DAILY: relativedelta(days=1),
    RecurringFrequency.WEEKLY: relativedelta(weeks=1),
    RecurringFrequency.BIWEEKLY: relativedelta(weeks=2),
    RecurringFrequency.MONTHLY: relativedelta(months=1),
    RecurringFrequency.QUARTERLY: relativedelta(months=3),
    RecurringFrequency.YEARLY: relativedelta(years=1),
}

OCCURRENCES_PER_YEAR: dict[RecurringFrequency, int] = {
    RecurringFrequency.DAILY: 365,
    RecurringFrequency.WEEKLY: 52,
    RecurringFrequency.BIWEEKLY: 26,
    RecurringFrequency.MONTHLY: 12,
    RecurringFrequency.QUARTERLY: 4,
    RecurringFrequency.YEARLY: 1,
}

BUDGET_PERIODS_PER_YEAR: dict[BudgetPeriod, int] = {
    BudgetPeriod.WEEKLY: 52,
    BudgetPeriod.BIWEEKLY: 26,
    BudgetPeriod.MONTHLY: 12,
    BudgetPeriod.QUARTERLY: 4,
    BudgetPeriod.YEARLY: 1,
}


def next_date(frequency: RecurringFrequency, from_date: date) -> date:
    """
    Next occurrence of a recurrence after from_date.

    Returns from_date unchanged when the step cannot be applied.
    """
    try:
        return from_date + _STEPS[frequency]
    except (OverflowError, ValueError) as e:
        logger.warning(
            "frequency_fallback",
            frequency=frequency.value,
            from_date=from_date.isoformat(),
            error=str(e),
        )
        return from_date


def annualized_amount(amount: Decimal, frequency: RecurringFrequency) -> Decimal:
    """Yearly total of an amount repeating at the given frequency."""
    return Decimal(amount) * OCCURRENCES_PER_YEAR[frequency]


def annualized_budget(amount: Decimal, period: BudgetPeriod) -> Decimal:
    """Yearly equivalent of a budget limit."""
    return Decimal(amount) * BUDGET_PERIODS_PER_YEAR[period]


def project_occurrences(
    frequency: RecurringFrequency,
    start: date,
    until: date,
    limit: Optional[int] = None,
) -> list[date]:
    """
    Occurrence dates strictly after start and on or before until.

    Stops early at `limit` dates, or when the calendar fallback returns
    an unchanged date.
    """
    occurrences: list[date] = []
    current = start
    while limit is None or len(occurrences) < limit:
        following = next_date(frequency, current)
        if following <= current or following > until:
            break
        occurrences.append(following)
        current = following
    return occurrences


def due_date(transaction: RecurringTransaction) -> Optional[date]:
    """
    Date the next unprocessed occurrence of a recurring transaction falls on.

    Counts from the later of the start date and the last processed date.
    Returns None once that occurrence would fall after the end date.
    """
    anchor = transaction.start_date
    if transaction.last_processed and transaction.last_processed > anchor:
        anchor = transaction.last_processed
    upcoming = next_date(transaction.frequency, anchor)
    if upcoming <= anchor:
        return None
    if transaction.end_date and upcoming > transaction.end_date:
        return None
    return upcoming
