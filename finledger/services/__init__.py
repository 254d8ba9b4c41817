"""Services package."""

from finledger.services.notifications import (
    LoggingNotificationSink,
    NotificationDispatcher,
    NotificationSink,
)
from finledger.services.storage import (
    ConnectionError,
    InMemoryKeyValueStorage,
    JsonFileKeyValueStorage,
    KeyValueStorageInterface,
    SerializationError,
    StorageError,
)

__all__ = [
    # Notification services
    "LoggingNotificationSink",
    "NotificationDispatcher",
    "NotificationSink",
    # Storage services
    "ConnectionError",
    "InMemoryKeyValueStorage",
    "JsonFileKeyValueStorage",
    "KeyValueStorageInterface",
    "SerializationError",
    "StorageError",
]
