"""Date resolution, preview and statistics for patterns."""

from shiftcycle.scheduling.calculator import ScheduleCalculator, pattern_index
from shiftcycle.scheduling.preview import PreviewGenerator
from shiftcycle.scheduling.statistics import (
    calculate_statistics,
    describe_pattern,
    generate_pattern_name,
)

__all__ = [
    "ScheduleCalculator",
    "pattern_index",
    "PreviewGenerator",
    "calculate_statistics",
    "describe_pattern",
    "generate_pattern_name",
]
