"""
Abstract Key-Value Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep the ledger decoupled from where documents live
2. Use in-memory storage for testing
3. Swap the JSON-file backend for anything with get/set semantics

The interface is intentionally tiny. The ledger stores ONE document per
entity collection and always reads or overwrites it whole, so it never
needs partial updates or queries from the backend.
"""

from abc import ABC, abstractmethod
from typing import Optional


class KeyValueStorageInterface(ABC):
    """
    Abstract interface for a flat key-value store of text documents.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """
        Read the document stored under a key.

        Args:
            key: Namespaced collection key

        Returns:
            The stored text, or None if the key is absent

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """
        Store a document under a key, replacing any previous value.

        Args:
            key: Namespaced collection key
            value: Serialized document

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """
        Remove a key.

        Returns:
            True if the key existed
        """
        pass

    @abstractmethod
    async def keys(self, prefix: str = "") -> list[str]:
        """
        List stored keys, optionally restricted to a prefix.

        Returns:
            Sorted list of keys
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class SerializationError(StorageError):
    """A stored document could not be encoded or decoded."""
    pass


class ConnectionError(StorageError):
    """Could not reach the storage backend."""
    pass
