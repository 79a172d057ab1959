"""Domain models, results and collaborator interfaces."""

from shiftcycle.domain.collaborators import (
    AssignmentStore,
    IdentityProvider,
    RecurrenceRuleStore,
    ShiftLookup,
    StaticIdentityProvider,
)
from shiftcycle.domain.models import (
    Pattern,
    PatternDay,
    PatternStatistics,
    Priority,
    RecurrenceFrequency,
    RecurrenceRule,
    Shift,
    UserScheduleAssignment,
    WorkScheduleDay,
    WorkScheduleShift,
)
from shiftcycle.domain.results import (
    OperationResult,
    OperationType,
    ShiftCycleError,
    StoreError,
    ValidationErrorType,
)
from shiftcycle.domain.status import (
    AssignmentStatus,
    is_processable,
    resolve_effective_status,
    resolve_status,
)

__all__ = [
    # Models
    "Pattern",
    "PatternDay",
    "PatternStatistics",
    "Priority",
    "RecurrenceFrequency",
    "RecurrenceRule",
    "Shift",
    "UserScheduleAssignment",
    "WorkScheduleDay",
    "WorkScheduleShift",
    # Results
    "OperationResult",
    "OperationType",
    "ShiftCycleError",
    "StoreError",
    "ValidationErrorType",
    # Status
    "AssignmentStatus",
    "is_processable",
    "resolve_effective_status",
    "resolve_status",
    # Collaborators
    "AssignmentStore",
    "IdentityProvider",
    "RecurrenceRuleStore",
    "ShiftLookup",
    "StaticIdentityProvider",
]
