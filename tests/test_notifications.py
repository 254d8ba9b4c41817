"""Tests for notification dispatch."""

from finledger.models.ledger import NotificationKind, NotificationRequest
from finledger.services.notifications import LoggingNotificationSink, NotificationDispatcher

from conftest import ExplodingSink, RecordingSink


def _request(kind: NotificationKind = NotificationKind.BUDGET_WARNING) -> NotificationRequest:
    return NotificationRequest(
        kind=kind,
        payload={"identifier": "budget_warning_x", "title": "Budget Alert - Food", "body": "85%"},
    )


class TestDispatcher:
    """Tests for NotificationDispatcher."""

    async def test_delivers_all(self):
        """Test that every request reaches the sink."""
        sink = RecordingSink()
        dispatcher = NotificationDispatcher(sink=sink)
        requests = [_request(), _request(NotificationKind.GOAL_COMPLETED)]

        assert await dispatcher.dispatch(requests) == 2
        assert sink.delivered == requests
        assert dispatcher.failed == []

    async def test_failures_are_absorbed(self):
        """Test that a failing sink never raises and keeps the request for retry."""
        dispatcher = NotificationDispatcher(sink=ExplodingSink())
        request = _request()

        assert await dispatcher.dispatch([request]) == 0
        assert dispatcher.failed == [request]

    async def test_retry_failed(self):
        """Test that failed requests can be re-dispatched once the sink recovers."""
        dispatcher = NotificationDispatcher(sink=ExplodingSink())
        request = _request()
        await dispatcher.dispatch([request])

        recovered = RecordingSink()
        dispatcher._sink = recovered
        assert await dispatcher.retry_failed() == 1
        assert recovered.delivered == [request]
        assert dispatcher.failed == []

    async def test_disabled(self):
        """Test that a disabled dispatcher delivers nothing."""
        sink = RecordingSink()
        dispatcher = NotificationDispatcher(sink=sink, enabled=False)

        assert dispatcher.enabled is False
        assert await dispatcher.dispatch([_request()]) == 0
        assert sink.delivered == []

    async def test_logging_sink(self):
        """Test that the default sink accepts requests."""
        dispatcher = NotificationDispatcher()
        assert await dispatcher.dispatch([_request()]) == 1
        assert isinstance(dispatcher._sink, LoggingNotificationSink)
