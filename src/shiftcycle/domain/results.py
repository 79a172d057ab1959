"""Tagged operation results.

Every public engine operation reports its outcome through an
OperationResult rather than raising: a success carrying data, or a
failure carrying the operation kind, an optional validation error type
and a human readable message.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class OperationType(Enum):
    """Kind of operation a result belongs to."""

    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    VALIDATION = "validation"
    DECODE = "decode"


class ValidationErrorType(Enum):
    """Types of validation and decode errors."""

    EMPTY_PATTERN = "empty_pattern"
    TOO_SHORT = "too_short"
    TOO_LONG = "too_long"
    NON_SEQUENTIAL = "non_sequential"
    MISSING_SHIFT_REFERENCE = "missing_shift_reference"
    START_DATE_TOO_FAR_PAST = "start_date_too_far_past"
    START_DATE_TOO_FAR_FUTURE = "start_date_too_far_future"
    INVALID_NAME = "invalid_name"
    INVALID_DATE_RANGE = "invalid_date_range"
    INVALID_PREVIEW_RANGE = "invalid_preview_range"
    NOT_CUSTOM_PATTERN = "not_custom_pattern"
    CORRUPT_PAYLOAD = "corrupt_payload"


class ShiftCycleError(Exception):
    """Base exception for shiftcycle."""


class StoreError(ShiftCycleError):
    """Raised by store implementations when a storage operation fails."""


@dataclass
class OperationResult(Generic[T]):
    """Outcome of an engine operation.

    Attributes:
        success: True if the operation completed.
        operation: Kind of operation.
        data: Payload on success (may be None for operations without one).
        message: Human readable description.
        error_type: Validation/decode error kind on failure, if any.
        warnings: Non-fatal issues encountered (doesn't affect success).
    """

    success: bool
    operation: OperationType
    data: Optional[T] = None
    message: str = ""
    error_type: Optional[ValidationErrorType] = None
    warnings: list[str] = field(default_factory=list)

    @classmethod
    def ok(
        cls,
        operation: OperationType,
        data: Optional[T] = None,
        message: str = "",
    ) -> "OperationResult[T]":
        return cls(success=True, operation=operation, data=data, message=message)

    @classmethod
    def fail(
        cls,
        operation: OperationType,
        message: str,
        error_type: Optional[ValidationErrorType] = None,
    ) -> "OperationResult[T]":
        return cls(
            success=False,
            operation=operation,
            message=message,
            error_type=error_type,
        )

    @property
    def is_failure(self) -> bool:
        return not self.success

    def add_warning(self, warning: str) -> None:
        self.warnings.append(warning)

    def as_failure(self, operation: OperationType) -> "OperationResult":
        """Re-tag a failure under another operation, keeping message and kind."""
        return OperationResult.fail(operation, self.message, self.error_type)

    def __str__(self) -> str:
        if self.success:
            return f"[{self.operation.value}] OK {self.message}".rstrip()
        tag = self.operation.value
        if self.error_type is not None:
            tag = f"{tag}/{self.error_type.value}"
        return f"[{tag}] {self.message}"
