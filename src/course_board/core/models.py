"""
Core result types for Course Board.

Registry operations return a tagged ``RegistryResult`` instead of raising,
so callers cannot mistake an error for a record.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Generic, TypeVar

from course_board.core.exceptions import (
    DuplicateValueError,
    EntityNotFoundError,
    InvalidPayloadError,
    ReferenceNotFoundError,
    RegistryError,
)

RecordT = TypeVar("RecordT")

Clock = Callable[[], datetime]
IdFactory = Callable[[], str]


class EntityOperation(Enum):
    """Operations on registry entities."""

    READ = "read"
    ADD = "add"
    UPDATE = "update"
    REMOVE = "remove"


class ErrorKind(Enum):
    """Kinds of registry failure."""

    INVALID_PAYLOAD = "invalid_payload"
    REFERENCE_NOT_FOUND = "reference_not_found"
    DUPLICATE_VALUE = "duplicate_value"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class RegistryFailure:
    """Why a registry operation was rejected."""

    kind: ErrorKind
    message: str
    field: str | None = None
    value: Any = None
    errors: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Convert failure to dictionary for serialization."""
        return {
            "kind": self.kind.value,
            "message": self.message,
            "field": self.field,
            "value": self.value,
            "errors": list(self.errors),
        }

    def to_exception(
        self,
        entity_type: str | None = None,
        entity_id: str | None = None,
        operation: str | None = None,
    ) -> RegistryError:
        """Build the exception matching this failure kind."""
        match self.kind:
            case ErrorKind.NOT_FOUND:
                return EntityNotFoundError(
                    self.message,
                    entity_type=entity_type,
                    entity_id=entity_id,
                    operation=operation,
                )
            case ErrorKind.DUPLICATE_VALUE:
                return DuplicateValueError(
                    self.message,
                    entity_type=entity_type,
                    field=self.field,
                    value=self.value,
                    operation=operation,
                )
            case ErrorKind.REFERENCE_NOT_FOUND:
                return ReferenceNotFoundError(
                    self.message,
                    entity_type=entity_type,
                    field=self.field,
                    reference_id=self.value,
                    operation=operation,
                )
            case _:
                return InvalidPayloadError(
                    self.message,
                    entity_type=entity_type,
                    validation_errors=list(self.errors),
                    operation=operation,
                )


@dataclass
class RegistryResult(Generic[RecordT]):
    """Result of a registry operation."""

    status: str  # "success" or "failure"
    operation: str
    entity_type: str
    entity_id: str | None = None
    record: RecordT | None = None
    before_state: dict[str, Any] | None = None
    failure: RegistryFailure | None = None

    @classmethod
    def success(
        cls,
        operation: EntityOperation,
        entity_type: str,
        record: RecordT,
        *,
        entity_id: str,
        before_state: dict[str, Any] | None = None,
    ) -> "RegistryResult[RecordT]":
        return cls(
            status="success",
            operation=operation.value,
            entity_type=entity_type,
            entity_id=entity_id,
            record=record,
            before_state=before_state,
        )

    @classmethod
    def failed(
        cls,
        operation: EntityOperation,
        entity_type: str,
        failure: RegistryFailure,
        *,
        entity_id: str | None = None,
    ) -> "RegistryResult[RecordT]":
        return cls(
            status="failure",
            operation=operation.value,
            entity_type=entity_type,
            entity_id=entity_id,
            failure=failure,
        )

    def is_success(self) -> bool:
        """Return True if the operation was applied."""
        return self.status == "success" and self.failure is None

    @property
    def error_kind(self) -> ErrorKind | None:
        return self.failure.kind if self.failure else None

    def unwrap(self) -> RecordT:
        """
        Return the record, or raise the exception matching the failure.

        Raises:
            RegistryError: Subclass matching ``failure.kind``
        """
        if self.failure is not None:
            raise self.failure.to_exception(
                entity_type=self.entity_type,
                entity_id=self.entity_id,
                operation=self.operation,
            )
        return self.record


def utc_now() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    """Return a fresh collision-resistant identifier."""
    return str(uuid.uuid4())
