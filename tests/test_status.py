"""Tests for assignment status resolution."""

from datetime import date

import pytest

from shiftcycle.domain.models import UserScheduleAssignment
from shiftcycle.domain.status import (
    AssignmentStatus,
    is_processable,
    resolve_effective_status,
    resolve_status,
)

ANCHOR = date(2025, 3, 1)
END = date(2025, 3, 31)


class TestResolveStatus:
    """Tests for the temporal status."""

    @pytest.mark.parametrize(
        "today,expected",
        [
            (date(2025, 2, 28), AssignmentStatus.PENDING),
            (date(2025, 3, 1), AssignmentStatus.ACTIVE),
            (date(2025, 3, 15), AssignmentStatus.ACTIVE),
            (date(2025, 3, 31), AssignmentStatus.ACTIVE),
            (date(2025, 4, 1), AssignmentStatus.EXPIRED),
        ],
    )
    def test_bounded_assignment(self, today, expected):
        assert resolve_status(today, ANCHOR, END) == expected

    def test_permanent_assignment_never_expires(self):
        assert resolve_status(date(2099, 1, 1), ANCHOR) == AssignmentStatus.ACTIVE

    def test_permanent_assignment_pending_before_anchor(self):
        assert resolve_status(date(2025, 2, 1), ANCHOR) == AssignmentStatus.PENDING

    def test_status_never_goes_backward(self):
        order = [AssignmentStatus.PENDING, AssignmentStatus.ACTIVE, AssignmentStatus.EXPIRED]
        day = date(2025, 2, 20)
        previous = 0
        while day <= date(2025, 4, 10):
            current = order.index(resolve_status(day, ANCHOR, END))
            assert current >= previous
            previous = current
            day = date.fromordinal(day.toordinal() + 1)


class TestEffectiveStatus:
    """Tests for the effective status and processability."""

    def test_disabled_is_inactive(self):
        status = resolve_effective_status(date(2025, 3, 15), ANCHOR, END, enabled=False)
        assert status == AssignmentStatus.INACTIVE

    def test_enabled_matches_temporal_status(self):
        status = resolve_effective_status(date(2025, 2, 1), ANCHOR, END, enabled=True)
        assert status == AssignmentStatus.PENDING

    def test_processable_when_pending_or_active(self):
        assert is_processable(date(2025, 2, 1), ANCHOR, END, True) is True
        assert is_processable(date(2025, 3, 10), ANCHOR, END, True) is True

    def test_not_processable_when_expired(self):
        assert is_processable(date(2025, 4, 1), ANCHOR, END, True) is False

    def test_not_processable_when_disabled(self):
        assert is_processable(date(2025, 3, 10), ANCHOR, END, False) is False


class TestAssignmentStatusMethods:
    """Tests for the status methods on UserScheduleAssignment."""

    @pytest.fixture
    def assignment(self):
        return UserScheduleAssignment(
            user_id="1",
            team_id="A",
            recurrence_rule_id="rule",
            anchor_date=ANCHOR,
            end_date=END,
        )

    def test_status(self, assignment):
        assert assignment.status(date(2025, 2, 28)) == AssignmentStatus.PENDING
        assert assignment.status(date(2025, 3, 1)) == AssignmentStatus.ACTIVE
        assert assignment.status(date(2025, 4, 1)) == AssignmentStatus.EXPIRED

    def test_status_follows_flag_changes(self, assignment):
        today = date(2025, 3, 10)
        assert assignment.effective_status(today) == AssignmentStatus.ACTIVE
        assignment.enabled = False
        assert assignment.effective_status(today) == AssignmentStatus.INACTIVE
        assert assignment.is_processable(today) is False

    def test_defaults_to_current_date(self, assignment):
        expected = resolve_status(date.today(), ANCHOR, END)
        assert assignment.status() == expected
