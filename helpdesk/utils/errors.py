"""
Exception types shared by services, repositories and routes
"""
from typing import Optional


class HelpdeskError(Exception):
    """Base exception for helpdesk operations."""
    pass


class NotFoundError(HelpdeskError):
    """Raised when a referenced record does not exist."""

    def __init__(self, entity: str, key):
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} not found: {key}")


class InvalidArgumentError(HelpdeskError):
    """Raised when an explicit operation's preconditions are violated."""
    pass


class InvalidTransitionError(InvalidArgumentError):
    """Raised when a status change is not allowed."""
    pass


class PersistenceError(HelpdeskError):
    """Raised when the data store fails (transient, not retried here)."""

    def __init__(self, operation: str, cause: Optional[Exception] = None):
        self.operation = operation
        self.cause = cause
        message = f"Data store failure during {operation}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
