"""Exception hierarchy for the money tracker.

ValidationError and NotFoundError also derive from the builtin ValueError and
LookupError so form handlers can keep catching the builtin types.
"""
from typing import Optional


class TrackerError(Exception):
    """Base class for all money tracker errors.

    Attributes:
        message: Human-readable error message
        details: Optional dictionary with additional error context
        original_error: Optional original exception that caused this error
    """

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.original_error = original_error

    def __str__(self) -> str:
        msg = self.message
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            msg = f"{msg} ({detail_str})"
        return msg


class ValidationError(TrackerError, ValueError):
    """Malformed or out-of-range input; raised before any state change."""
    pass


class NotFoundError(TrackerError, LookupError):
    """An operation referenced a transaction or category that does not exist."""
    pass


class PersistenceError(TrackerError):
    """Reading or writing the persisted snapshot failed."""
    pass
