"""Domain models for the recurring pattern engine.

This module contains the core data structures: shifts, the days of a
cyclic pattern, the stored recurrence rule, the user assignment that
anchors a rule on the calendar, and the resolved schedule days.
"""

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import Enum
from typing import Iterator, Optional, Sequence

from shiftcycle.domain.status import (
    AssignmentStatus,
    is_processable,
    resolve_effective_status,
    resolve_status,
)


class RecurrenceFrequency(Enum):
    """Base frequency of a recurrence rule.

    Custom patterns share the storage column with the other kinds and
    are stored with QUATTRODUE_CYCLE as their base frequency.
    """

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"
    QUATTRODUE_CYCLE = "quattrodue_cycle"


class Priority(Enum):
    """Assignment priority. Higher level wins when assignments overlap."""

    LOW = 1
    NORMAL = 5
    HIGH = 8
    OVERRIDE = 10

    @property
    def level(self) -> int:
        return self.value


@dataclass(frozen=True)
class Shift:
    """A named, time-boxed work period.

    Attributes:
        id: Unique identifier referenced by work pattern days.
        name: Display name (e.g., "Morning").
        start_time: Time the shift starts, if known.
        end_time: Time the shift ends, if known.
        description: Optional free text.
    """

    id: str
    name: str
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    description: Optional[str] = None

    @property
    def crosses_midnight(self) -> bool:
        """True if the shift ends on the following day."""
        if self.start_time is None or self.end_time is None:
            return False
        return self.end_time <= self.start_time

    @classmethod
    def placeholder(cls, shift_id: str) -> "Shift":
        """Create a minimal shift for an id the lookup could not resolve."""
        return cls(id=shift_id, name=shift_id)

    def __str__(self) -> str:
        if self.start_time is None or self.end_time is None:
            return self.name
        return (
            f"{self.name} ({self.start_time.strftime('%H:%M')}"
            f" - {self.end_time.strftime('%H:%M')})"
        )


@dataclass(frozen=True)
class PatternDay:
    """One position in a cyclic pattern.

    A day carrying a shift reference is a work day; a day without one is
    a rest day.

    Attributes:
        day_number: 1-based position in the cycle.
        shift_ref: Id of the Shift worked on this day, None for rest days.
    """

    day_number: int
    shift_ref: Optional[str] = None

    @classmethod
    def work(cls, day_number: int, shift_ref: str) -> "PatternDay":
        return cls(day_number=day_number, shift_ref=shift_ref)

    @classmethod
    def rest(cls, day_number: int) -> "PatternDay":
        return cls(day_number=day_number, shift_ref=None)

    @property
    def is_work_day(self) -> bool:
        return self.shift_ref is not None

    @property
    def is_rest_day(self) -> bool:
        return self.shift_ref is None

    def __str__(self) -> str:
        label = self.shift_ref if self.is_work_day else "REST"
        return f"Day {self.day_number}: {label}"


@dataclass(frozen=True)
class Pattern:
    """An ordered, finite, cyclically repeating sequence of pattern days.

    The constructor accepts any sequence; structural rules (length bounds,
    sequential numbering) are enforced by PatternValidator so that invalid
    input can be reported instead of raised.

    Attributes:
        days: The pattern days in cycle order.
    """

    days: tuple[PatternDay, ...] = ()

    def __init__(self, days: Sequence[PatternDay] = ()):
        if days is None:
            raise TypeError("Pattern days cannot be None")
        object.__setattr__(self, "days", tuple(days))

    @classmethod
    def from_shift_refs(cls, shift_refs: Sequence[Optional[str]]) -> "Pattern":
        """Build a sequentially numbered pattern.

        Args:
            shift_refs: Shift id for each work day, None for each rest day.
        """
        return cls(
            [PatternDay(day_number=i + 1, shift_ref=ref) for i, ref in enumerate(shift_refs)]
        )

    @property
    def length(self) -> int:
        return len(self.days)

    @property
    def is_empty(self) -> bool:
        return not self.days

    def day(self, day_number: int) -> Optional[PatternDay]:
        """Get the pattern day with the given 1-based number."""
        if 1 <= day_number <= len(self.days):
            candidate = self.days[day_number - 1]
            if candidate.day_number == day_number:
                return candidate
        for pattern_day in self.days:
            if pattern_day.day_number == day_number:
                return pattern_day
        return None

    def work_days(self) -> list[PatternDay]:
        return [d for d in self.days if d.is_work_day]

    def rest_days(self) -> list[PatternDay]:
        return [d for d in self.days if d.is_rest_day]

    def shift_refs(self) -> list[str]:
        """Distinct shift ids in first-appearance order."""
        seen: list[str] = []
        for pattern_day in self.days:
            if pattern_day.shift_ref is not None and pattern_day.shift_ref not in seen:
                seen.append(pattern_day.shift_ref)
        return seen

    def __len__(self) -> int:
        return len(self.days)

    def __iter__(self) -> Iterator[PatternDay]:
        return iter(self.days)

    def __getitem__(self, index: int) -> PatternDay:
        return self.days[index]


def _new_rule_id() -> str:
    return f"custom_pattern_{uuid.uuid4()}"


@dataclass
class RecurrenceRule:
    """Persisted, encoded form of a pattern.

    The pattern itself lives inside `description`, marked with a sentinel
    so custom patterns can share the column with other recurrence kinds.

    Attributes:
        id: Unique identifier.
        name: Display name of the rule.
        description: Generic description field carrying the encoded payload.
        frequency: Base recurrence frequency.
        interval: Repeat every N frequency units.
        start_date: Date the rule was created for, if any.
        pattern_length: Number of days in the cycle.
        work_days: Work days in the cycle.
        rest_days: Rest days in the cycle.
        active: Whether the rule is usable.
        created_at: Creation timestamp.
        updated_at: Last modification timestamp.
    """

    id: str = field(default_factory=_new_rule_id)
    name: str = ""
    description: Optional[str] = None
    frequency: RecurrenceFrequency = RecurrenceFrequency.DAILY
    interval: int = 1
    start_date: Optional[date] = None
    pattern_length: int = 0
    work_days: int = 0
    rest_days: int = 0
    active: bool = True
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)


def _new_assignment_id() -> str:
    return str(uuid.uuid4())


@dataclass
class UserScheduleAssignment:
    """Binds a recurrence rule to a user and team on the calendar.

    Cycle day 1 of the referenced pattern falls on `anchor_date`. The
    status is never stored; it is derived from the dates, the
    administrative flag and "today" on every call.

    Attributes:
        user_id: User being assigned.
        team_id: Team the user belongs to.
        recurrence_rule_id: Id of the RecurrenceRule holding the pattern.
        anchor_date: Date on which cycle day 1 occurs (inclusive start).
        end_date: Last day the assignment applies (inclusive), None = permanent.
        enabled: Administrative enable flag.
        priority: Resolution priority against overlapping assignments.
        title: Display title, usually the pattern name.
        id: Unique identifier.
        created_at: Creation timestamp.
        updated_at: Last modification timestamp.
    """

    user_id: str
    team_id: str
    recurrence_rule_id: str
    anchor_date: date
    end_date: Optional[date] = None
    enabled: bool = True
    priority: Priority = Priority.NORMAL
    title: Optional[str] = None
    id: str = field(default_factory=_new_assignment_id)
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    def __post_init__(self):
        if self.end_date is not None and self.end_date < self.anchor_date:
            raise ValueError(
                f"End date {self.end_date} cannot be before anchor date {self.anchor_date}"
            )

    @property
    def is_permanent(self) -> bool:
        return self.end_date is None

    def status(self, today: Optional[date] = None) -> AssignmentStatus:
        """Temporal status relative to today."""
        return resolve_status(today or date.today(), self.anchor_date, self.end_date)

    def effective_status(self, today: Optional[date] = None) -> AssignmentStatus:
        """Temporal status combined with the administrative flag."""
        return resolve_effective_status(
            today or date.today(), self.anchor_date, self.end_date, self.enabled
        )

    def is_processable(self, today: Optional[date] = None) -> bool:
        """Enabled and not yet expired."""
        return is_processable(
            today or date.today(), self.anchor_date, self.end_date, self.enabled
        )

    def applies_to(self, target_date: date) -> bool:
        """Check if the assignment covers a date (ignores the admin flag)."""
        if target_date < self.anchor_date:
            return False
        if self.end_date is not None and target_date > self.end_date:
            return False
        return True

    def duration_days(self) -> Optional[int]:
        """Number of covered days, both ends inclusive. None if permanent."""
        if self.end_date is None:
            return None
        return (self.end_date - self.anchor_date).days + 1


@dataclass(frozen=True)
class WorkScheduleShift:
    """A shift placed on a concrete calendar day."""

    shift: Shift
    start_time: Optional[time] = None
    end_time: Optional[time] = None

    @classmethod
    def from_shift(cls, shift: Shift) -> "WorkScheduleShift":
        return cls(shift=shift, start_time=shift.start_time, end_time=shift.end_time)


@dataclass(frozen=True)
class WorkScheduleDay:
    """Resolved schedule for one date.

    Attributes:
        date: The calendar date.
        day_number: Cycle position (1-based) the date falls on.
        shifts: Zero shifts for a rest day, one for a work day.
    """

    date: date
    day_number: int
    shifts: tuple[WorkScheduleShift, ...] = ()

    @property
    def shift(self) -> Optional[WorkScheduleShift]:
        return self.shifts[0] if self.shifts else None

    @property
    def is_rest_day(self) -> bool:
        return not self.shifts

    @property
    def is_work_day(self) -> bool:
        return bool(self.shifts)

    def __str__(self) -> str:
        label = str(self.shifts[0].shift) if self.shifts else "Rest"
        return f"{self.date.isoformat()} (day {self.day_number}): {label}"


@dataclass(frozen=True)
class PatternStatistics:
    """Aggregate counts for a pattern.

    Attributes:
        total_days: Cycle length.
        work_days: Days with a shift.
        rest_days: Days without a shift.
        work_day_percentage: Share of work days, 0.0 - 100.0.
        distinct_shift_names: Shift names in first-appearance order.
    """

    total_days: int
    work_days: int
    rest_days: int
    work_day_percentage: float
    distinct_shift_names: tuple[str, ...] = ()
