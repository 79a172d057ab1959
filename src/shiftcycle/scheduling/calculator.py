"""Date resolution for anchored patterns.

The calculator maps a calendar date to the cycle position it falls on and
resolves that position to a concrete shift:

    offset = (date - anchor_date).days
    index  = offset % pattern.length      # floored modulo, always >= 0
    day    = pattern.day(index + 1)

The result repeats every `pattern.length` days within the assignment bounds.
"""

import logging
from datetime import date, timedelta
from typing import Optional

from shiftcycle.domain.collaborators import ShiftLookup
from shiftcycle.domain.models import (
    Pattern,
    PatternDay,
    RecurrenceRule,
    Shift,
    UserScheduleAssignment,
    WorkScheduleDay,
    WorkScheduleShift,
)
from shiftcycle.domain.results import OperationResult, OperationType
from shiftcycle.encoding.codec import RecurrenceCodec

logger = logging.getLogger(__name__)


def pattern_index(anchor_date: date, target_date: date, length: int) -> int:
    """Zero-based cycle index of a date.

    Python's `%` is floored, so dates before the anchor still map into
    [0, length).

    Args:
        anchor_date: Date of cycle day 1.
        target_date: Date to locate.
        length: Cycle length in days.
    """
    if length < 1:
        raise ValueError(f"Pattern length must be positive, got {length}")
    return (target_date - anchor_date).days % length


class ScheduleCalculator:
    """Resolves the shift applicable to a date for an anchored pattern.

    Example:
        >>> calculator = ScheduleCalculator(shift_catalog)
        >>> day = calculator.resolve_shift_for_date(date(2025, 1, 4), assignment, pattern)
        >>> day.shift.shift.name
        'Morning'
    """

    def __init__(
        self,
        shift_lookup: ShiftLookup,
        codec: Optional[RecurrenceCodec] = None,
    ):
        """Initialize the calculator.

        Args:
            shift_lookup: Resolves shift ids of work days.
            codec: Used by resolve_for_rule to decode stored rules.
        """
        self.shift_lookup = shift_lookup
        self.codec = codec or RecurrenceCodec()

    def resolve_shift_for_date(
        self,
        target_date: date,
        assignment: UserScheduleAssignment,
        pattern: Pattern,
    ) -> Optional[WorkScheduleDay]:
        """Resolve the schedule of one date.

        Args:
            target_date: Date to resolve.
            assignment: Assignment anchoring the pattern.
            pattern: Validated pattern referenced by the assignment.

        Returns:
            None if the date is outside the assignment bounds, otherwise a
            WorkScheduleDay (with no shifts on rest days).
        """
        if not assignment.applies_to(target_date):
            logger.debug(
                "Date %s outside assignment %s bounds [%s, %s]",
                target_date,
                assignment.id,
                assignment.anchor_date,
                assignment.end_date or "open",
            )
            return None
        if pattern.is_empty:
            logger.warning("Assignment %s references an empty pattern", assignment.id)
            return None

        index = pattern_index(assignment.anchor_date, target_date, pattern.length)
        pattern_day = pattern.day(index + 1)
        if pattern_day is None:
            logger.warning(
                "Pattern for assignment %s has no day %d", assignment.id, index + 1
            )
            return None

        logger.debug("Date %s falls on pattern day %d", target_date, pattern_day.day_number)
        return self._build_day(target_date, pattern_day)

    def resolve_range(
        self,
        start_date: date,
        end_date: date,
        assignment: UserScheduleAssignment,
        pattern: Pattern,
    ) -> list[WorkScheduleDay]:
        """Resolve every applicable date in [start_date, end_date]."""
        days = []
        current = start_date
        while current <= end_date:
            day = self.resolve_shift_for_date(current, assignment, pattern)
            if day is not None:
                days.append(day)
            current += timedelta(days=1)
        return days

    def resolve_for_rule(
        self,
        target_date: date,
        assignment: UserScheduleAssignment,
        rule: RecurrenceRule,
    ) -> OperationResult[Optional[WorkScheduleDay]]:
        """Decode a stored rule and resolve one date against it."""
        decoded = self.codec.decode(rule)
        if not decoded.success:
            return decoded.as_failure(OperationType.READ)

        day = self.resolve_shift_for_date(target_date, assignment, decoded.data)
        result: OperationResult[Optional[WorkScheduleDay]] = OperationResult.ok(
            OperationType.READ, day
        )
        result.warnings.extend(decoded.warnings)
        return result

    def _build_day(self, target_date: date, pattern_day: PatternDay) -> WorkScheduleDay:
        if pattern_day.is_rest_day:
            return WorkScheduleDay(date=target_date, day_number=pattern_day.day_number)

        shift = self.shift_lookup.get_shift(pattern_day.shift_ref)
        if shift is None:
            logger.warning(
                "Shift '%s' for pattern day %d not found; using placeholder",
                pattern_day.shift_ref,
                pattern_day.day_number,
            )
            shift = Shift.placeholder(pattern_day.shift_ref)

        return WorkScheduleDay(
            date=target_date,
            day_number=pattern_day.day_number,
            shifts=(WorkScheduleShift.from_shift(shift),),
        )
