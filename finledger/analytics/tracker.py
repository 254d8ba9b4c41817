"""
Analytics Tracker

DESIGN DECISION: Every user action on the ledger is tracked.
This provides:
1. A local history of what the user did
2. Usage summaries (by category, last week, busiest weekday)
3. A hand-off point for an external analytics collaborator

The tracker:
- Is async to match the storage interface
- Gracefully handles failures (a failed write never breaks the action)
- Keeps only the newest `max_events` events
"""

from collections import Counter
from datetime import datetime, timedelta
from typing import Any, Optional

import structlog
from pydantic import TypeAdapter, ValidationError

from finledger.models.analytics import AnalyticsEvent, AnalyticsOverview
from finledger.models.ledger import utc_now
from finledger.services.storage import KeyValueStorageInterface, StorageError


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


_EVENTS = TypeAdapter(list[AnalyticsEvent])

ANALYTICS_COLLECTION = "analytics_events"


class AnalyticsTracker:
    """
    Central analytics service.

    Records events both to:
    1. Structured local log
    2. Key-value storage (when configured), capped at max_events
    """

    def __init__(
        self,
        storage: Optional[KeyValueStorageInterface] = None,
        namespace: str = "finledger",
        max_events: int = 1000,
    ):
        """
        Initialize analytics tracker.

        Args:
            storage: Storage backend for persistence.
                    If None, events are only kept in memory and logged.
            namespace: Key prefix shared with the ledger collections
            max_events: Number of events retained (newest kept)
        """
        self._storage = storage
        self._key = f"{namespace}.{ANALYTICS_COLLECTION}"
        self._max_events = max_events
        self._events: list[AnalyticsEvent] = []
        self._logger = structlog.get_logger(__name__)

    @property
    def events(self) -> list[AnalyticsEvent]:
        return list(self._events)

    async def load(self) -> int:
        """
        Restore persisted events.

        A missing or unreadable document starts an empty history.
        Returns the number of events loaded.
        """
        if not self._storage:
            return 0
        try:
            raw = await self._storage.get(self._key)
            self._events = _EVENTS.validate_json(raw) if raw else []
        except (StorageError, ValidationError) as e:
            self._logger.error("analytics_load_failed", error=str(e))
            self._events = []
        return len(self._events)

    async def log(self, event: AnalyticsEvent) -> bool:
        """
        Record an analytics event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        self._logger.info("analytics_event", **event.to_log_dict())

        self._events.append(event)
        if len(self._events) > self._max_events:
            self._events = self._events[-self._max_events:]

        if self._storage:
            try:
                await self._storage.set(self._key, _EVENTS.dump_json(self._events).decode())
                return True
            except StorageError as e:
                # Log failure but don't raise
                self._logger.error(
                    "analytics_storage_failed",
                    error=str(e),
                    event_id=str(event.id),
                )
                return False

        return True

    async def track(
        self,
        event_name: str,
        category: str,
        properties: Optional[dict[str, Any]] = None,
    ) -> AnalyticsEvent:
        """Build and record an event from its parts."""
        event = AnalyticsEvent(
            event_name=event_name,
            category=category,
            properties=properties,
        )
        await self.log(event)
        return event

    def overview(self, now: Optional[datetime] = None) -> AnalyticsOverview:
        """Totals by category, count for the last 7 days and busiest weekday."""
        now = now or utc_now()
        week_ago = now - timedelta(days=7)

        by_category = Counter(e.category for e in self._events)
        by_weekday = Counter(e.timestamp.strftime("%A") for e in self._events)

        return AnalyticsOverview(
            total_events=len(self._events),
            events_by_category=dict(by_category),
            events_last_week=sum(1 for e in self._events if e.timestamp >= week_ago),
            most_active_day=by_weekday.most_common(1)[0][0] if by_weekday else "Unknown",
        )

    async def clear(self) -> None:
        """Drop every event, in memory and in storage."""
        self._events = []
        if self._storage:
            try:
                await self._storage.delete(self._key)
            except StorageError as e:
                self._logger.error("analytics_clear_failed", error=str(e))
