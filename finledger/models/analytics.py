"""
Analytics Models for finledger

Every user action on the ledger is recorded as an analytics event.
The events are purely observational: no ledger logic reads them back.

DESIGN DECISION: Event properties are stored as strings.
Callers pass whatever is convenient (amounts, flags, enums) and the
event normalizes it once, so persisted events always round-trip.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, field_validator

from finledger.models.ledger import utc_now


class AnalyticsEvent(BaseModel):
    """A single tracked user action."""

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    event_name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="What happened, e.g. 'expense_added'"
    )
    category: str = Field(
        ...,
        min_length=1,
        max_length=50,
        description="Area of the app, e.g. 'expense' or 'goal'"
    )
    properties: Optional[dict[str, str]] = Field(
        default=None,
        description="Event-specific data, stringified"
    )
    timestamp: datetime = Field(
        default_factory=utc_now,
        description="When the event occurred (UTC)"
    )

    @field_validator('properties', mode='before')
    @classmethod
    def stringify_properties(cls, v: Optional[dict[str, Any]]) -> Optional[dict[str, str]]:
        """Convert every value to text; an empty mapping becomes None."""
        if not v:
            return None
        return {
            str(key): str(value.value) if isinstance(value, Enum) else str(value)
            for key, value in v.items()
        }

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.id),
            "timestamp": self.timestamp.isoformat(),
            "event_name": self.event_name,
            "category": self.category,
            "properties": self.properties or {},
        }


class AnalyticsOverview(BaseModel):
    """Summary of tracked events."""

    total_events: int = Field(ge=0)
    events_by_category: dict[str, int] = Field(default_factory=dict)
    events_last_week: int = Field(ge=0)
    most_active_day: str = "Unknown"


class AnalyticsEventBuilder:
    """
    Helper class to build analytics events for ledger actions.

    Usage:
        event = AnalyticsEventBuilder.expense_added(amount, category, has_notes)
        event = AnalyticsEventBuilder.goal_contribution(goal_id, amount, completed)
    """

    @staticmethod
    def expense_added(amount, category: str, has_notes: bool) -> AnalyticsEvent:
        return AnalyticsEvent(
            event_name="expense_added",
            category="expense",
            properties={
                "amount": amount,
                "category": category,
                "has_notes": has_notes,
            },
        )

    @staticmethod
    def budget_created(amount, period: str, category: Optional[str]) -> AnalyticsEvent:
        return AnalyticsEvent(
            event_name="budget_created",
            category="budget",
            properties={
                "amount": amount,
                "period": period,
                "category": category or "all",
            },
        )

    @staticmethod
    def goal_created(target_amount, target_date: Optional[str]) -> AnalyticsEvent:
        return AnalyticsEvent(
            event_name="goal_created",
            category="goal",
            properties={
                "target_amount": target_amount,
                "target_date": target_date or "none",
            },
        )

    @staticmethod
    def goal_contribution(goal_id: UUID, amount, completed: bool) -> AnalyticsEvent:
        return AnalyticsEvent(
            event_name="savings_added",
            category="goal",
            properties={
                "goal_id": goal_id,
                "amount": amount,
                "goal_completed": completed,
            },
        )

    @staticmethod
    def goal_withdrawal(goal_id: UUID, amount, success: bool) -> AnalyticsEvent:
        return AnalyticsEvent(
            event_name="savings_removed" if success else "savings_removal_rejected",
            category="goal",
            properties={
                "goal_id": goal_id,
                "amount": amount,
            },
        )

    @staticmethod
    def recurring_added(name: str, frequency: str, transaction_type: str) -> AnalyticsEvent:
        return AnalyticsEvent(
            event_name="recurring_added",
            category="recurring",
            properties={
                "name": name,
                "frequency": frequency,
                "type": transaction_type,
            },
        )

    @staticmethod
    def data_reset() -> AnalyticsEvent:
        return AnalyticsEvent(event_name="data_reset", category="settings")

    @staticmethod
    def sample_data_populated() -> AnalyticsEvent:
        return AnalyticsEvent(event_name="sample_data_populated", category="demo")
