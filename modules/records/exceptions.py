"""Custom exceptions for the flat-file record repositories."""
from __future__ import annotations

from typing import Optional


class RecordsError(RuntimeError):
    """Base exception for record repository operations."""


class RecordIOError(RecordsError):
    """Raised when a data file cannot be read or written.

    The originating :class:`OSError` is chained as ``__cause__``.
    """

    def __init__(self, message: str, path: Optional[str] = None) -> None:
        super().__init__(message)
        self.path = path


class RecordValidationError(RecordsError, ValueError):
    """Raised when an entity is rejected before any state is touched."""

    def __init__(self, message: str, entity: str = "", key: Optional[str] = None) -> None:
        super().__init__(message)
        self.entity = entity
        self.key = key


class DuplicateKeyError(RecordValidationError):
    """Raised when ``add`` is called with a key that is already stored."""


class MalformedRowError(RecordValidationError):
    """Raised by strict loads for a row that would otherwise be skipped."""

    def __init__(self, message: str, entity: str = "", line_number: int = 0) -> None:
        super().__init__(message, entity=entity)
        self.line_number = line_number


class RecordNotFoundError(RecordsError, LookupError):
    """Raised when ``update``/``delete`` target a key that is not stored."""

    def __init__(self, message: str, entity: str = "", key: Optional[str] = None) -> None:
        super().__init__(message)
        self.entity = entity
        self.key = key


class SourceNotBoundError(RecordsError):
    """Raised when a repository is saved before ``load`` bound a file."""


__all__ = [
    "RecordsError",
    "RecordIOError",
    "RecordValidationError",
    "DuplicateKeyError",
    "MalformedRowError",
    "RecordNotFoundError",
    "SourceNotBoundError",
]
