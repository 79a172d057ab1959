"""Validation module for patterns and anchor dates."""

from shiftcycle.validation.validator import PATTERN_RULES, PatternRule, PatternValidator

__all__ = [
    "PATTERN_RULES",
    "PatternRule",
    "PatternValidator",
]
