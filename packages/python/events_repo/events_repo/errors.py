"""Domain-level errors for the events repository."""

from typing import Optional


class EventsRepoError(Exception):
    """Base class for errors raised by the events repository."""


class ValidationError(EventsRepoError):
    """Raised when a document fails a field or cross-document rule."""

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class ConflictError(EventsRepoError):
    """Raised when a write violates a unique index (e.g. a duplicate slug)."""

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class EventNotFoundError(EventsRepoError):
    """Raised when an event cannot be located."""
