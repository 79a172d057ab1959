"""What-if preview of an unsaved pattern.

The preview encodes the pattern into a transient rule and a transient
assignment, exactly as a save would, then resolves each date with the
schedule calculator. Nothing is written to any store.
"""

import logging
from datetime import date, timedelta
from typing import Optional

from shiftcycle.config import EngineConfig
from shiftcycle.domain.collaborators import IdentityProvider, StaticIdentityProvider
from shiftcycle.domain.models import Pattern, UserScheduleAssignment, WorkScheduleDay
from shiftcycle.domain.results import (
    OperationResult,
    OperationType,
    ValidationErrorType,
)
from shiftcycle.scheduling.calculator import ScheduleCalculator
from shiftcycle.validation.validator import PatternValidator

logger = logging.getLogger(__name__)

PREVIEW_RULE_NAME = "Preview Pattern"


class PreviewGenerator:
    """Builds the schedule a pattern would produce, without persisting it."""

    def __init__(
        self,
        calculator: ScheduleCalculator,
        validator: Optional[PatternValidator] = None,
        identity: Optional[IdentityProvider] = None,
        config: Optional[EngineConfig] = None,
    ):
        self.calculator = calculator
        self.config = config or EngineConfig()
        self.validator = validator or PatternValidator(self.config)
        self.identity = identity or StaticIdentityProvider()

    def generate_preview(
        self,
        pattern: Pattern,
        anchor_date: date,
        days: Optional[int] = None,
    ) -> OperationResult[list[WorkScheduleDay]]:
        """Resolve `days` consecutive dates starting at the anchor.

        Args:
            pattern: Candidate pattern (validated here).
            anchor_date: Date cycle day 1 would fall on.
            days: Number of days to preview (config default if None).

        Returns:
            Exactly `days` WorkScheduleDay entries for
            anchor_date .. anchor_date + days - 1, or a VALIDATION failure.
        """
        if days is None:
            days = self.config.default_preview_days
        if days < 1:
            return OperationResult.fail(
                OperationType.VALIDATION,
                f"Preview length must be at least 1 day (got {days})",
                ValidationErrorType.INVALID_PREVIEW_RANGE,
            )

        validation = self.validator.validate_pattern_days(pattern)
        if not validation.success:
            return validation

        end_date = anchor_date + timedelta(days=days - 1)
        rule = self.calculator.codec.encode(
            pattern, name=PREVIEW_RULE_NAME, start_date=anchor_date
        )
        decoded = self.calculator.codec.decode(rule)
        if not decoded.success:
            return decoded.as_failure(OperationType.VALIDATION)

        assignment = UserScheduleAssignment(
            user_id=self.identity.current_user_id(),
            team_id=self.identity.current_team_id(),
            recurrence_rule_id=rule.id,
            anchor_date=anchor_date,
            end_date=end_date,
            title=PREVIEW_RULE_NAME,
        )

        schedule = self.calculator.resolve_range(
            anchor_date, end_date, assignment, decoded.data
        )
        logger.debug("Generated %d-day preview from %s", len(schedule), anchor_date)
        return OperationResult.ok(
            OperationType.READ,
            schedule,
            f"Preview of {len(schedule)} days",
        )
