"""In-memory implementations of the collaborator interfaces."""

import threading
from dataclasses import replace
from typing import Iterable, Optional

from shiftcycle.domain.collaborators import (
    AssignmentStore,
    RecurrenceRuleStore,
    ShiftLookup,
)
from shiftcycle.domain.models import RecurrenceRule, Shift, UserScheduleAssignment


class InMemoryShiftCatalog(ShiftLookup):
    """Shift lookup backed by a dict."""

    def __init__(self, shifts: Iterable[Shift] = ()):
        self._shifts: dict[str, Shift] = {s.id: s for s in shifts}

    def add(self, shift: Shift) -> None:
        self._shifts[shift.id] = shift

    def get_shift(self, shift_id: str) -> Optional[Shift]:
        return self._shifts.get(shift_id)

    def all(self) -> list[Shift]:
        return list(self._shifts.values())


class InMemoryAssignmentStore(AssignmentStore):
    """Thread-safe dict-backed assignment store."""

    def __init__(self):
        self._lock = threading.RLock()
        self._assignments: dict[str, UserScheduleAssignment] = {}

    def save_assignment(self, assignment: UserScheduleAssignment) -> UserScheduleAssignment:
        with self._lock:
            stored = replace(assignment)
            self._assignments[stored.id] = stored
            return replace(stored)

    def get_assignment(self, assignment_id: str) -> Optional[UserScheduleAssignment]:
        with self._lock:
            stored = self._assignments.get(assignment_id)
            return replace(stored) if stored is not None else None

    def delete_assignment(self, assignment_id: str) -> bool:
        with self._lock:
            return self._assignments.pop(assignment_id, None) is not None

    def list_for_user(self, user_id: str) -> list[UserScheduleAssignment]:
        with self._lock:
            return [
                replace(a) for a in self._assignments.values() if a.user_id == user_id
            ]

    def references_rule(self, rule_id: str) -> bool:
        with self._lock:
            return any(
                a.recurrence_rule_id == rule_id for a in self._assignments.values()
            )

    def __len__(self) -> int:
        with self._lock:
            return len(self._assignments)


class InMemoryRecurrenceRuleStore(RecurrenceRuleStore):
    """Thread-safe dict-backed rule store.

    Reference checks are answered by the assignment store the rules are
    attached to.
    """

    def __init__(self, assignments: AssignmentStore):
        self._lock = threading.RLock()
        self._rules: dict[str, RecurrenceRule] = {}
        self._assignments = assignments

    def save_rule(self, rule: RecurrenceRule) -> RecurrenceRule:
        with self._lock:
            stored = replace(rule)
            self._rules[stored.id] = stored
            return replace(stored)

    def get_rule(self, rule_id: str) -> Optional[RecurrenceRule]:
        with self._lock:
            stored = self._rules.get(rule_id)
            return replace(stored) if stored is not None else None

    def delete_rule(self, rule_id: str) -> bool:
        with self._lock:
            return self._rules.pop(rule_id, None) is not None

    def is_referenced(self, rule_id: str) -> bool:
        return self._assignments.references_rule(rule_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._rules)
