"""Tests for pattern validation."""

from datetime import date

import pytest

from shiftcycle.config import EngineConfig
from shiftcycle.domain.models import Pattern, PatternDay
from shiftcycle.domain.results import OperationType, ValidationErrorType
from shiftcycle.validation.validator import (
    PATTERN_RULES,
    PatternRule,
    PatternValidator,
)

TODAY = date(2025, 6, 15)


class TestPatternDaysValidation:
    """Tests for structural pattern rules."""

    @pytest.fixture
    def validator(self):
        """Create a validator with default limits and no shift lookup."""
        return PatternValidator()

    def test_valid_pattern(self, validator):
        result = validator.validate_pattern_days(Pattern.from_shift_refs(["M", "M", None]))
        assert result.success
        assert result.operation == OperationType.VALIDATION

    def test_empty_pattern_rejected(self, validator):
        result = validator.validate_pattern_days(Pattern())
        assert not result.success
        assert result.error_type == ValidationErrorType.EMPTY_PATTERN

    def test_single_day_pattern_accepted(self, validator):
        assert validator.validate_pattern_days(Pattern.from_shift_refs(["M"])).success

    def test_365_days_accepted(self, validator):
        pattern = Pattern.from_shift_refs(["M"] * 365)
        assert validator.validate_pattern_days(pattern).success

    def test_366_days_rejected(self, validator):
        pattern = Pattern.from_shift_refs(["M"] * 366)
        result = validator.validate_pattern_days(pattern)
        assert result.error_type == ValidationErrorType.TOO_LONG

    def test_configured_minimum(self):
        validator = PatternValidator(EngineConfig(min_pattern_days=3))
        result = validator.validate_pattern_days(Pattern.from_shift_refs(["M", None]))
        assert result.error_type == ValidationErrorType.TOO_SHORT

    def test_gap_in_numbering_rejected(self, validator):
        pattern = Pattern([PatternDay.work(1, "M"), PatternDay.work(2, "M"), PatternDay.rest(4)])
        result = validator.validate_pattern_days(pattern)
        assert not result.success
        assert result.error_type == ValidationErrorType.NON_SEQUENTIAL

    def test_numbering_must_start_at_one(self, validator):
        pattern = Pattern([PatternDay.work(0, "M"), PatternDay.rest(1)])
        result = validator.validate_pattern_days(pattern)
        assert result.error_type == ValidationErrorType.NON_SEQUENTIAL

    def test_out_of_order_numbering_rejected(self, validator):
        pattern = Pattern([PatternDay.work(2, "M"), PatternDay.work(1, "M")])
        result = validator.validate_pattern_days(pattern)
        assert result.error_type == ValidationErrorType.NON_SEQUENTIAL

    def test_blank_shift_reference_rejected(self, validator):
        pattern = Pattern([PatternDay.work(1, "  "), PatternDay.rest(2)])
        result = validator.validate_pattern_days(pattern)
        assert result.error_type == ValidationErrorType.MISSING_SHIFT_REFERENCE

    def test_non_string_shift_reference_rejected(self, validator):
        result = validator.validate_pattern_days(Pattern([PatternDay(1, 5), PatternDay.rest(2)]))
        assert result.is_failure
        assert result.error_type == ValidationErrorType.MISSING_SHIFT_REFERENCE
        assert "Work day 1" in result.message

    def test_unknown_shift_rejected_with_lookup(self, shift_catalog):
        validator = PatternValidator(shift_lookup=shift_catalog)
        result = validator.validate_pattern_days(Pattern.from_shift_refs(["M", "X"]))
        assert result.error_type == ValidationErrorType.MISSING_SHIFT_REFERENCE
        assert "'X'" in result.message

    def test_known_shifts_accepted_with_lookup(self, shift_catalog):
        validator = PatternValidator(shift_lookup=shift_catalog)
        result = validator.validate_pattern_days(Pattern.from_shift_refs(["M", "A", "N", None]))
        assert result.success

    def test_all_rest_days_accepted(self, validator):
        assert validator.validate_pattern_days(Pattern.from_shift_refs([None, None])).success

    def test_none_pattern_raises(self, validator):
        with pytest.raises(TypeError):
            validator.validate_pattern_days(None)

    def test_rule_table_order(self):
        assert [r.error_type for r in PATTERN_RULES] == [
            ValidationErrorType.EMPTY_PATTERN,
            ValidationErrorType.TOO_SHORT,
            ValidationErrorType.TOO_LONG,
            ValidationErrorType.NON_SEQUENTIAL,
            ValidationErrorType.MISSING_SHIFT_REFERENCE,
        ]

    def test_custom_rule_table(self):
        no_nights = PatternRule(
            ValidationErrorType.MISSING_SHIFT_REFERENCE,
            lambda v, p: "Nights not allowed" if "N" in p.shift_refs() else None,
        )
        validator = PatternValidator(rules=PATTERN_RULES + (no_nights,))
        result = validator.validate_pattern_days(Pattern.from_shift_refs(["M", "N"]))
        assert not result.success
        assert result.message == "Nights not allowed"


class TestStartDateValidation:
    """Tests for the anchor date window."""

    @pytest.fixture
    def validator(self):
        return PatternValidator()

    def test_three_years_past_rejected(self, validator):
        result = validator.validate_start_date(date(2022, 6, 15), TODAY)
        assert result.error_type == ValidationErrorType.START_DATE_TOO_FAR_PAST

    def test_one_year_past_accepted(self, validator):
        assert validator.validate_start_date(date(2024, 6, 15), TODAY).success

    def test_exactly_two_years_past_accepted(self, validator):
        assert validator.validate_start_date(date(2023, 6, 15), TODAY).success

    def test_just_over_two_years_past_rejected(self, validator):
        result = validator.validate_start_date(date(2023, 6, 14), TODAY)
        assert result.error_type == ValidationErrorType.START_DATE_TOO_FAR_PAST

    def test_four_years_future_rejected(self, validator):
        result = validator.validate_start_date(date(2029, 6, 15), TODAY)
        assert result.error_type == ValidationErrorType.START_DATE_TOO_FAR_FUTURE

    def test_two_years_future_accepted(self, validator):
        assert validator.validate_start_date(date(2027, 6, 15), TODAY).success

    def test_exactly_three_years_future_accepted(self, validator):
        assert validator.validate_start_date(date(2028, 6, 15), TODAY).success

    def test_today_accepted(self, validator):
        assert validator.validate_start_date(TODAY, TODAY).success

    def test_leap_day_reference(self, validator):
        # 2024-02-29 minus two years clamps to 2022-02-28
        assert validator.validate_start_date(date(2022, 2, 28), date(2024, 2, 29)).success
        result = validator.validate_start_date(date(2022, 2, 27), date(2024, 2, 29))
        assert not result.success

    def test_configured_window(self):
        validator = PatternValidator(EngineConfig(max_past_years=0, max_future_years=1))
        assert not validator.validate_start_date(date(2025, 6, 14), TODAY).success
        assert validator.validate_start_date(date(2026, 6, 15), TODAY).success


class TestNameValidation:
    """Tests for pattern names."""

    @pytest.fixture
    def validator(self):
        return PatternValidator()

    @pytest.mark.parametrize("name", [None, "", "   "])
    def test_blank_names_rejected(self, validator, name):
        result = validator.validate_pattern_name(name)
        assert result.error_type == ValidationErrorType.INVALID_NAME

    def test_100_chars_accepted(self, validator):
        assert validator.validate_pattern_name("x" * 100).success

    def test_101_chars_rejected(self, validator):
        result = validator.validate_pattern_name("x" * 101)
        assert result.error_type == ValidationErrorType.INVALID_NAME


class TestConfigurationValidation:
    """Tests for combined validation."""

    @pytest.fixture
    def validator(self):
        return PatternValidator()

    def test_valid_configuration(self, validator):
        result = validator.validate_pattern_configuration(
            Pattern.from_shift_refs(["M", None]), date(2025, 7, 1), "Rotation", TODAY
        )
        assert result.success

    def test_first_failure_reported(self, validator):
        result = validator.validate_pattern_configuration(
            Pattern(), date(2010, 1, 1), "", TODAY
        )
        assert result.error_type == ValidationErrorType.EMPTY_PATTERN

    def test_date_checked_before_name(self, validator):
        result = validator.validate_pattern_configuration(
            Pattern.from_shift_refs(["M"]), date(2010, 1, 1), "", TODAY
        )
        assert result.error_type == ValidationErrorType.START_DATE_TOO_FAR_PAST

    def test_name_checked_last(self, validator):
        result = validator.validate_pattern_configuration(
            Pattern.from_shift_refs(["M"]), TODAY, " ", TODAY
        )
        assert result.error_type == ValidationErrorType.INVALID_NAME


class TestAssignmentBounds:
    """Tests for assignment date ranges."""

    def test_end_before_anchor_rejected(self):
        result = PatternValidator().validate_assignment_bounds(date(2025, 3, 2), date(2025, 3, 1))
        assert result.error_type == ValidationErrorType.INVALID_DATE_RANGE

    def test_open_ended_accepted(self):
        assert PatternValidator().validate_assignment_bounds(date(2025, 3, 2), None).success

    def test_same_day_accepted(self):
        result = PatternValidator().validate_assignment_bounds(date(2025, 3, 2), date(2025, 3, 2))
        assert result.success
