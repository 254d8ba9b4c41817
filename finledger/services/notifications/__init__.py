"""Notification dispatch package."""

from finledger.services.notifications.dispatcher import (
    LoggingNotificationSink,
    NotificationDispatcher,
    NotificationSink,
)

__all__ = [
    "LoggingNotificationSink",
    "NotificationDispatcher",
    "NotificationSink",
]
