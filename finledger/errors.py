"""
Ledger Exceptions

DESIGN DECISION: The ledger never fails silently.
Unknown ids, invalid amounts and failed writes all surface as one of
these exceptions so the caller can tell what went wrong.

A withdrawal larger than the balance is NOT an exception - it is an
expected outcome and is reported through WithdrawalResult instead.
"""

from typing import Optional
from uuid import UUID


class LedgerError(Exception):
    """Base exception for all ledger operations."""
    pass


class ValidationError(LedgerError, ValueError):
    """A mutation was rejected because its input is invalid."""
    pass


class InvalidAmountError(ValidationError):
    """An amount that must be positive was zero or negative."""

    def __init__(self, amount, operation: str):
        self.amount = amount
        self.operation = operation
        super().__init__(f"{operation} requires a positive amount, got {amount}")


class EntityNotFoundError(LedgerError, LookupError):
    """An update or delete referenced an id the ledger does not hold."""

    def __init__(self, entity_type: str, entity_id: UUID):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} not found: {entity_id}")


class PersistenceError(LedgerError):
    """
    Writing a collection to storage failed.

    The in-memory mutation has already been rolled back when this is raised.
    """

    def __init__(self, collection: str, original_error: Optional[Exception] = None):
        self.collection = collection
        self.original_error = original_error
        message = f"Failed to persist {collection}"
        if original_error is not None:
            message = f"{message}: {original_error}"
        super().__init__(message)


class GoalForecastError(LedgerError):
    """A forecast was requested for a goal that cannot be forecast."""
    pass


class DuplicateEntityError(ValidationError):
    """An add referenced an id the ledger already holds."""

    def __init__(self, entity_type: str, entity_id: UUID):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} already exists: {entity_id}")
