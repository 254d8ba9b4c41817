"""
Notification Dispatch

The ledger never delivers notifications itself. Every mutation returns
its pending NotificationRequests (the outbox) and the dispatcher hands
them to a NotificationSink afterwards.

The dispatcher:
- Is async so delivery never holds the ledger lock
- Gracefully handles failures (a failed delivery is logged, never raised)
- Delivers requests independently; one failure does not stop the rest
"""

from abc import ABC, abstractmethod
from typing import Iterable, Optional

import structlog

from finledger.models.ledger import NotificationRequest


class NotificationSink(ABC):
    """Abstract delivery target (push service, e-mail, desktop, ...)."""

    @abstractmethod
    async def deliver(self, request: NotificationRequest) -> None:
        """
        Deliver one notification request.

        Raises:
            Any exception on delivery failure; the dispatcher absorbs it.
        """
        pass


class LoggingNotificationSink(NotificationSink):
    """Default sink: writes each request to the structured log."""

    def __init__(self):
        self._logger = structlog.get_logger(__name__)

    async def deliver(self, request: NotificationRequest) -> None:
        self._logger.info(
            "notification",
            kind=request.kind.value,
            title=request.payload.get("title"),
            body=request.payload.get("body"),
            identifier=request.payload.get("identifier"),
        )


class NotificationDispatcher:
    """
    Best-effort, at-least-once delivery of notification requests.

    Delivery failures never propagate to the caller: the mutation that
    produced the requests has already been committed.
    """

    def __init__(self, sink: Optional[NotificationSink] = None, enabled: bool = True):
        self._sink = sink or LoggingNotificationSink()
        self._enabled = enabled
        self._logger = structlog.get_logger(__name__)
        self.failed: list[NotificationRequest] = []

    @property
    def enabled(self) -> bool:
        return self._enabled

    async def dispatch(self, requests: Iterable[NotificationRequest]) -> int:
        """
        Deliver every request.

        Returns the number delivered successfully. Failed requests are
        kept in `failed` so a caller can retry them with `retry_failed`.
        """
        if not self._enabled:
            return 0

        delivered = 0
        for request in requests:
            try:
                await self._sink.deliver(request)
                delivered += 1
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "notification_failed",
                    kind=request.kind.value,
                    request_id=str(request.id),
                    error=str(e),
                )
                self.failed.append(request)
        return delivered

    async def retry_failed(self) -> int:
        """Re-dispatch previously failed requests."""
        pending, self.failed = self.failed, []
        return await self.dispatch(pending)
