"""Pattern statistics and naming helpers."""

from datetime import date
from typing import Optional

from shiftcycle.domain.collaborators import ShiftLookup
from shiftcycle.domain.models import Pattern, PatternStatistics


def calculate_statistics(
    pattern: Pattern,
    shift_lookup: Optional[ShiftLookup] = None,
) -> PatternStatistics:
    """Count work and rest days of a pattern.

    Args:
        pattern: Pattern to summarize.
        shift_lookup: Used to report shift names; without it (or for an
            unknown id) the shift id is reported instead.

    Returns:
        PatternStatistics where work_days + rest_days == total_days.
    """
    if pattern is None:
        raise TypeError("pattern cannot be None")

    total_days = pattern.length
    work_days = len(pattern.work_days())
    rest_days = total_days - work_days
    percentage = (work_days * 100.0) / total_days if total_days > 0 else 0.0

    names: list[str] = []
    for shift_ref in pattern.shift_refs():
        shift = shift_lookup.get_shift(shift_ref) if shift_lookup is not None else None
        name = shift.name if shift is not None else shift_ref
        if name not in names:
            names.append(name)

    return PatternStatistics(
        total_days=total_days,
        work_days=work_days,
        rest_days=rest_days,
        work_day_percentage=percentage,
        distinct_shift_names=tuple(names),
    )


def generate_pattern_name(pattern: Pattern, start_date: date) -> str:
    """Default name for a pattern, e.g. 'Pattern 6 days - from 01/03/2025'."""
    return f"Pattern {pattern.length} days - from {start_date.strftime('%d/%m/%Y')}"


def describe_pattern(statistics: PatternStatistics) -> str:
    """One-line human summary of pattern statistics."""
    text = f"{statistics.total_days}-day pattern"
    if statistics.work_days > 0:
        text += f" with {statistics.work_days} work days"
    if statistics.rest_days > 0:
        joiner = " and" if statistics.work_days > 0 else " with"
        text += f"{joiner} {statistics.rest_days} rest days"
    if statistics.distinct_shift_names:
        text += f" (shifts: {', '.join(statistics.distinct_shift_names)})"
    return text
