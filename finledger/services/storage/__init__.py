"""
Storage Services Package

Provides the abstract key-value interface and its concrete backends.
The ledger only ever sees KeyValueStorageInterface, so backends are swappable.
"""

from finledger.services.storage.interface import (
    ConnectionError,
    KeyValueStorageInterface,
    SerializationError,
    StorageError,
)
from finledger.services.storage.json_file import JsonFileKeyValueStorage
from finledger.services.storage.memory import InMemoryKeyValueStorage

__all__ = [
    # Interface
    "KeyValueStorageInterface",
    # Exceptions
    "ConnectionError",
    "SerializationError",
    "StorageError",
    # Implementations
    "InMemoryKeyValueStorage",
    "JsonFileKeyValueStorage",
]
