"""Tagged results for remote service calls.

Every remote call returns a ServiceResult instead of raising, so the sync
coordinators can branch on the recoverable outcomes (not found, duplicate)
and propagate everything else with ``unwrap()``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Generic, TypeVar

from storysync.client.errors import (
    ContentsUnavailableError,
    DuplicateFolderError,
    NotFoundError,
    ServiceError,
)

T = TypeVar("T")


class ResultKind(Enum):
    """Classification of a remote call's outcome."""

    OK = auto()
    NOT_FOUND = auto()
    DUPLICATE = auto()
    UNAVAILABLE = auto()
    FAILED = auto()


@dataclass(frozen=True)
class ServiceResult(Generic[T]):
    """Outcome of a remote call: a value, or a classified error."""

    kind: ResultKind
    value: T | None = None
    error: Exception | None = None

    @classmethod
    def ok(cls, value: T | None = None) -> ServiceResult[T]:
        return cls(ResultKind.OK, value=value)

    @classmethod
    def not_found(cls, message: str = "Entity not found") -> ServiceResult[T]:
        return cls(ResultKind.NOT_FOUND, error=NotFoundError(message))

    @classmethod
    def duplicate(cls, message: str = "Duplicate folder") -> ServiceResult[T]:
        return cls(ResultKind.DUPLICATE, error=DuplicateFolderError(message))

    @classmethod
    def failed(cls, error: Exception) -> ServiceResult[T]:
        return cls(ResultKind.FAILED, error=error)

    @classmethod
    def from_error(cls, error: Exception) -> ServiceResult[T]:
        """Classify an exception raised while talking to the service."""
        if isinstance(error, NotFoundError):
            return cls(ResultKind.NOT_FOUND, error=error)
        if isinstance(error, DuplicateFolderError):
            return cls(ResultKind.DUPLICATE, error=error)
        if isinstance(error, ContentsUnavailableError):
            return cls(ResultKind.UNAVAILABLE, error=error)
        return cls(ResultKind.FAILED, error=error)

    @property
    def is_ok(self) -> bool:
        return self.kind is ResultKind.OK

    @property
    def is_not_found(self) -> bool:
        return self.kind is ResultKind.NOT_FOUND

    @property
    def is_duplicate(self) -> bool:
        return self.kind is ResultKind.DUPLICATE

    @property
    def is_unavailable(self) -> bool:
        return self.kind is ResultKind.UNAVAILABLE

    def unwrap(self) -> T:
        """Return the value of a successful call.

        Returns:
            The value carried by an OK result.

        Raises:
            ServiceError: The carried error for any other outcome.
        """
        if self.kind is ResultKind.OK:
            return self.value  # type: ignore[return-value]
        if self.error is not None:
            raise self.error
        raise ServiceError(f"Service call failed: {self.kind.name}")
