"""Validation of patterns and anchor dates.

This module is the single source of truth for the structural and business
rules a pattern must satisfy before it is encoded or persisted. Checks
short-circuit: the first violated rule is reported.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable, Optional

from dateutil.relativedelta import relativedelta

from shiftcycle.config import EngineConfig
from shiftcycle.domain.collaborators import ShiftLookup
from shiftcycle.domain.models import Pattern
from shiftcycle.domain.results import (
    OperationResult,
    OperationType,
    ValidationErrorType,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PatternRule:
    """A single pattern rule.

    Attributes:
        error_type: Error reported when the rule is violated.
        check: Returns a message if violated, None if the pattern passes.
    """

    error_type: ValidationErrorType
    check: Callable[["PatternValidator", Pattern], Optional[str]]


def _check_not_empty(validator: "PatternValidator", pattern: Pattern) -> Optional[str]:
    if pattern.is_empty:
        return "Pattern must contain at least one day"
    return None


def _check_min_length(validator: "PatternValidator", pattern: Pattern) -> Optional[str]:
    minimum = validator.config.min_pattern_days
    if pattern.length < minimum:
        return f"Pattern must contain at least {minimum} day(s)"
    return None


def _check_max_length(validator: "PatternValidator", pattern: Pattern) -> Optional[str]:
    maximum = validator.config.max_pattern_days
    if pattern.length > maximum:
        return f"Pattern cannot exceed {maximum} days (got {pattern.length})"
    return None


def _check_sequential(validator: "PatternValidator", pattern: Pattern) -> Optional[str]:
    for i, pattern_day in enumerate(pattern):
        if pattern_day.day_number != i + 1:
            return (
                f"Pattern days must be numbered 1..{pattern.length} in order "
                f"(position {i + 1} has day number {pattern_day.day_number})"
            )
    return None


def _check_shift_references(validator: "PatternValidator", pattern: Pattern) -> Optional[str]:
    for pattern_day in pattern.work_days():
        ref = pattern_day.shift_ref
        if not isinstance(ref, str) or not ref.strip():
            return f"Work day {pattern_day.day_number} has invalid shift reference"
        if validator.shift_lookup is not None and validator.shift_lookup.get_shift(ref) is None:
            return f"Work day {pattern_day.day_number} references unknown shift '{ref}'"
    return None


PATTERN_RULES: tuple[PatternRule, ...] = (
    PatternRule(ValidationErrorType.EMPTY_PATTERN, _check_not_empty),
    PatternRule(ValidationErrorType.TOO_SHORT, _check_min_length),
    PatternRule(ValidationErrorType.TOO_LONG, _check_max_length),
    PatternRule(ValidationErrorType.NON_SEQUENTIAL, _check_sequential),
    PatternRule(ValidationErrorType.MISSING_SHIFT_REFERENCE, _check_shift_references),
)


class PatternValidator:
    """Validates patterns, anchor dates and pattern names.

    Example:
        >>> validator = PatternValidator()
        >>> result = validator.validate_pattern_days(pattern)
        >>> if not result.success:
        ...     print(result)
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        shift_lookup: Optional[ShiftLookup] = None,
        rules: tuple[PatternRule, ...] = PATTERN_RULES,
    ):
        """Initialize the validator.

        Args:
            config: Limits to validate against.
            shift_lookup: If given, work days must reference a known shift.
            rules: Ordered pattern rules; the first violation is reported.
        """
        self.config = config or EngineConfig()
        self.shift_lookup = shift_lookup
        self.rules = rules

    def validate_pattern_days(self, pattern: Pattern) -> OperationResult[None]:
        """Check the structural rules of a pattern."""
        if pattern is None:
            raise TypeError("pattern cannot be None")

        for rule in self.rules:
            message = rule.check(self, pattern)
            if message is not None:
                logger.debug("Pattern rejected (%s): %s", rule.error_type.value, message)
                return OperationResult.fail(OperationType.VALIDATION, message, rule.error_type)

        return OperationResult.ok(OperationType.VALIDATION, message="Pattern days are valid")

    def validate_start_date(
        self,
        start_date: date,
        today: Optional[date] = None,
    ) -> OperationResult[None]:
        """Check that an anchor date lies within the allowed window.

        Args:
            start_date: Candidate anchor date.
            today: Reference date (defaults to the current date).
        """
        today = today or date.today()
        earliest = today - relativedelta(years=self.config.max_past_years)
        latest = today + relativedelta(years=self.config.max_future_years)

        if start_date < earliest:
            return OperationResult.fail(
                OperationType.VALIDATION,
                f"Pattern start date cannot be more than "
                f"{self.config.max_past_years} years in the past",
                ValidationErrorType.START_DATE_TOO_FAR_PAST,
            )
        if start_date > latest:
            return OperationResult.fail(
                OperationType.VALIDATION,
                f"Pattern start date cannot be more than "
                f"{self.config.max_future_years} years in the future",
                ValidationErrorType.START_DATE_TOO_FAR_FUTURE,
            )

        return OperationResult.ok(OperationType.VALIDATION, message="Start date is valid")

    def validate_pattern_name(self, name: Optional[str]) -> OperationResult[None]:
        """Check that a pattern name is present and not too long."""
        if name is None or not name.strip():
            return OperationResult.fail(
                OperationType.VALIDATION,
                "Pattern name cannot be empty",
                ValidationErrorType.INVALID_NAME,
            )
        if len(name) > self.config.max_name_length:
            return OperationResult.fail(
                OperationType.VALIDATION,
                f"Pattern name cannot exceed {self.config.max_name_length} characters",
                ValidationErrorType.INVALID_NAME,
            )
        return OperationResult.ok(OperationType.VALIDATION, message="Pattern name is valid")

    def validate_assignment_bounds(
        self,
        anchor_date: date,
        end_date: Optional[date],
    ) -> OperationResult[None]:
        """Check that an optional end date does not precede the anchor."""
        if end_date is not None and end_date < anchor_date:
            return OperationResult.fail(
                OperationType.VALIDATION,
                f"End date {end_date} cannot be before start date {anchor_date}",
                ValidationErrorType.INVALID_DATE_RANGE,
            )
        return OperationResult.ok(OperationType.VALIDATION)

    def validate_pattern_configuration(
        self,
        pattern: Pattern,
        start_date: date,
        name: Optional[str],
        today: Optional[date] = None,
    ) -> OperationResult[None]:
        """Validate a pattern, its anchor date and its name together.

        Returns:
            The first failure encountered, or a success.
        """
        checks = (
            lambda: self.validate_pattern_days(pattern),
            lambda: self.validate_start_date(start_date, today),
            lambda: self.validate_pattern_name(name),
        )
        for check in checks:
            result = check()
            if not result.success:
                return result

        today = today or date.today()
        if start_date > today:
            logger.info(
                "Pattern anchored %d days in the future (%s); assignment starts PENDING",
                (start_date - today).days,
                start_date,
            )

        return OperationResult.ok(
            OperationType.VALIDATION, message="Pattern configuration is valid"
        )
