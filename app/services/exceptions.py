"""Service-layer exception hierarchy."""
from __future__ import annotations


class ServiceError(Exception):
    """Base service error."""


class NotFoundError(ServiceError):
    """Raised when an entity is not found."""


class ConflictError(ServiceError):
    """Raised when a domain conflict occurs, e.g. mutating a closed accrual."""


class ValidationError(ServiceError):
    """Raised when business validation fails."""


class AccrualWriteError(ServiceError):
    """Primary accrual mutation failed in the store.

    Never raised for audit or notification writes; those go through
    ``BestEffort`` and only report a ``SideEffectOutcome``.
    """
