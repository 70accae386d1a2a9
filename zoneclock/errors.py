"""
Error taxonomy and result values for the ZoneClock core.

Lifecycle operations never raise for expected state violations; they
return a Result that is either a success carrying a value or a failure
carrying an AppError. Only the storage layer raises (StorageError).
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, Tuple, TypeVar

T = TypeVar("T")


class ErrorKind(Enum):
    """Category of a failed operation."""
    INVALID_STATE = "invalid_state"
    VALIDATION = "validation_error"
    NOT_FOUND = "not_found"
    STORAGE = "storage_error"


class StorageError(Exception):
    """Raised when a persistence read or write fails."""


@dataclass(frozen=True)
class AppError:
    """Typed failure returned by session operations."""
    kind: ErrorKind
    message: str
    details: Tuple[str, ...] = ()

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {'; '.join(self.details)}"
        return self.message


@dataclass(frozen=True)
class Result(Generic[T]):
    """Tagged success/failure value."""
    value: Optional[T] = None
    error: Optional[AppError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Optional[T] = None) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(
        cls,
        kind: ErrorKind,
        message: str,
        details: Tuple[str, ...] = ()
    ) -> "Result[T]":
        return cls(error=AppError(kind=kind, message=message, details=tuple(details)))

    @classmethod
    def invalid_state(cls, message: str) -> "Result[T]":
        return cls.failure(ErrorKind.INVALID_STATE, message)
