"""
Error taxonomy and the Outcome value returned at the boundary.

Core functions raise ChatError subclasses; api.py folds them into an
Outcome so callers get either a value or a categorized failure.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    STORAGE = "storage"

    @property
    def http_status(self) -> int:
        return {
            ErrorKind.VALIDATION: 400,
            ErrorKind.NOT_FOUND: 404,
            ErrorKind.FORBIDDEN: 403,
            ErrorKind.STORAGE: 500,
        }[self]


class ChatError(Exception):
    kind: ErrorKind = ErrorKind.STORAGE

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ChatError):
    kind = ErrorKind.VALIDATION


class NotFoundError(ChatError):
    kind = ErrorKind.NOT_FOUND


class ForbiddenError(ChatError):
    kind = ErrorKind.FORBIDDEN


class StorageError(ChatError):
    kind = ErrorKind.STORAGE


@dataclass(frozen=True)
class Outcome(Generic[T]):
    value: Optional[T] = None
    error: Optional[ChatError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def kind(self) -> Optional[ErrorKind]:
        return self.error.kind if self.error else None

    def unwrap(self) -> T:
        """Return the value or re-raise the stored error."""
        if self.error is not None:
            raise self.error
        return self.value
