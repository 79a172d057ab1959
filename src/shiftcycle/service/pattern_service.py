"""Pattern service orchestrating persistence of user patterns.

Mutations (create, update, delete, enable/disable) run on a bounded
background pool and return a Future resolving to an OperationResult.
At most one operation per assignment id runs at a time. A mutation that
fails halfway deletes the recurrence rule it already wrote; if that
cleanup also fails the orphan is left for a later sweep.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Callable, Iterator, Optional, TypeVar

from shiftcycle.config import EngineConfig
from shiftcycle.domain.collaborators import (
    AssignmentStore,
    IdentityProvider,
    RecurrenceRuleStore,
    ShiftLookup,
    StaticIdentityProvider,
)
from shiftcycle.domain.models import (
    Pattern,
    PatternStatistics,
    Priority,
    RecurrenceRule,
    UserScheduleAssignment,
    WorkScheduleDay,
)
from shiftcycle.domain.results import OperationResult, OperationType, StoreError
from shiftcycle.encoding.codec import RecurrenceCodec
from shiftcycle.scheduling.calculator import ScheduleCalculator
from shiftcycle.scheduling.preview import PreviewGenerator
from shiftcycle.scheduling.statistics import calculate_statistics, generate_pattern_name
from shiftcycle.validation.validator import PatternValidator

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class PatternEditingData:
    """Everything needed to edit a stored pattern.

    Attributes:
        assignment: The stored assignment.
        rule: The recurrence rule it references.
        pattern: The decoded pattern.
        warnings: Issues met while decoding (lenient mode only).
    """

    assignment: UserScheduleAssignment
    rule: RecurrenceRule
    pattern: Pattern
    warnings: list[str] = field(default_factory=list)


class KeyedLock:
    """One lock per key, dropped once no thread holds or waits for it."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}
        self._users: dict[str, int] = {}

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._guard:
            lock = self._locks.setdefault(key, threading.Lock())
            self._users[key] = self._users.get(key, 0) + 1
        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._guard:
                self._users[key] -= 1
                if self._users[key] == 0:
                    del self._users[key]
                    del self._locks[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


class PatternService:
    """Creates, edits, deletes and queries user patterns.

    Example:
        >>> with PatternService(rules, assignments, shifts) as service:
        ...     result = service.create_pattern(pattern, date(2025, 1, 1)).result()
        ...     if result.success:
        ...         print(result.data.id)
    """

    def __init__(
        self,
        rules: RecurrenceRuleStore,
        assignments: AssignmentStore,
        shift_lookup: ShiftLookup,
        identity: Optional[IdentityProvider] = None,
        config: Optional[EngineConfig] = None,
        clock: Callable[[], date] = date.today,
    ):
        """Initialize the service.

        Args:
            rules: Recurrence rule storage.
            assignments: Assignment storage.
            shift_lookup: Resolves shift ids.
            identity: Current user and team (single user by default).
            config: Engine limits and pool size.
            clock: Returns "today"; injectable for tests.
        """
        self.rules = rules
        self.assignments = assignments
        self.shift_lookup = shift_lookup
        self.identity = identity or StaticIdentityProvider()
        self.config = config or EngineConfig()
        self.clock = clock

        self.validator = PatternValidator(self.config, shift_lookup)
        self.codec = RecurrenceCodec(lenient=self.config.lenient_decode)
        self.calculator = ScheduleCalculator(shift_lookup, self.codec)
        self.previewer = PreviewGenerator(
            self.calculator, self.validator, self.identity, self.config
        )

        self._locks = KeyedLock()
        self._executor = ThreadPoolExecutor(
            max_workers=self.config.max_workers,
            thread_name_prefix="pattern-service",
        )
        logger.debug("PatternService initialized with %d workers", self.config.max_workers)

    # Lifecycle

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> "PatternService":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown(wait=True)

    def _submit(
        self,
        key: str,
        operation: OperationType,
        task: Callable[[], OperationResult[T]],
    ) -> "Future[OperationResult[T]]":
        return self._executor.submit(self._run_locked, key, operation, task)

    def _run_locked(
        self,
        key: str,
        operation: OperationType,
        task: Callable[[], OperationResult[T]],
    ) -> OperationResult[T]:
        with self._locks.hold(key):
            try:
                return task()
            except Exception as e:
                logger.error("Unexpected error during %s of %s", operation.value, key, exc_info=True)
                return OperationResult.fail(operation, f"Unexpected error: {e}")

    # Mutations

    def create_pattern(
        self,
        pattern: Pattern,
        start_date: date,
        name: Optional[str] = None,
        end_date: Optional[date] = None,
    ) -> "Future[OperationResult[UserScheduleAssignment]]":
        """Save a new pattern and assign it to the current user.

        Args:
            pattern: Pattern to save.
            start_date: Anchor date (cycle day 1).
            name: Pattern name; generated from length and date if None.
            end_date: Optional last day of the assignment.
        """
        if name is None:
            name = generate_pattern_name(pattern, start_date)
        assignment = UserScheduleAssignment(
            user_id=self.identity.current_user_id(),
            team_id=self.identity.current_team_id(),
            recurrence_rule_id="",
            anchor_date=start_date,
            priority=Priority.NORMAL,
            enabled=True,
            title=name,
        )
        return self._submit(
            assignment.id,
            OperationType.CREATE,
            lambda: self._create(assignment, pattern, start_date, name, end_date),
        )

    def _create(
        self,
        draft: UserScheduleAssignment,
        pattern: Pattern,
        start_date: date,
        name: str,
        end_date: Optional[date],
    ) -> OperationResult[UserScheduleAssignment]:
        validation = self._validate(pattern, start_date, name, end_date)
        if not validation.success:
            return validation

        try:
            rule = self.rules.save_rule(self.codec.encode(pattern, name=name, start_date=start_date))
        except StoreError as e:
            return OperationResult.fail(
                OperationType.CREATE, f"Failed to save recurrence rule: {e}"
            )

        assignment = replace(draft, recurrence_rule_id=rule.id, end_date=end_date)
        try:
            saved = self.assignments.save_assignment(assignment)
        except StoreError as e:
            self._discard_rule(rule.id)
            return OperationResult.fail(OperationType.CREATE, f"Failed to save assignment: {e}")
        except Exception:
            self._discard_rule(rule.id)
            raise

        today = self.clock()
        logger.info(
            "Created pattern '%s' (%d days) as assignment %s, status %s",
            name,
            pattern.length,
            saved.id,
            saved.effective_status(today).value,
        )
        return OperationResult.ok(OperationType.CREATE, saved, "User pattern created")

    def update_pattern(
        self,
        assignment_id: str,
        pattern: Pattern,
        start_date: date,
        name: str,
        end_date: Optional[date] = None,
    ) -> "Future[OperationResult[UserScheduleAssignment]]":
        """Replace the pattern of an existing assignment.

        A new rule is written and the assignment is pointed at it; the old
        rule is deleted once nothing references it.
        """
        return self._submit(
            assignment_id,
            OperationType.UPDATE,
            lambda: self._update(assignment_id, pattern, start_date, name, end_date),
        )

    def _update(
        self,
        assignment_id: str,
        pattern: Pattern,
        start_date: date,
        name: str,
        end_date: Optional[date],
    ) -> OperationResult[UserScheduleAssignment]:
        validation = self._validate(pattern, start_date, name, end_date)
        if not validation.success:
            return validation

        existing = self._load_assignment(assignment_id)
        if not existing.success:
            return existing

        try:
            rule = self.rules.save_rule(self.codec.encode(pattern, name=name, start_date=start_date))
        except StoreError as e:
            return OperationResult.fail(
                OperationType.UPDATE, f"Failed to save updated recurrence rule: {e}"
            )

        updated = replace(
            existing.data,
            recurrence_rule_id=rule.id,
            anchor_date=start_date,
            end_date=end_date,
            title=name,
            updated_at=datetime.now(),
        )
        try:
            saved = self.assignments.save_assignment(updated)
        except StoreError as e:
            self._discard_rule(rule.id)
            return OperationResult.fail(
                OperationType.UPDATE, f"Failed to save updated assignment: {e}"
            )
        except Exception:
            self._discard_rule(rule.id)
            raise

        old_rule_id = existing.data.recurrence_rule_id
        if old_rule_id != rule.id:
            self._release_rule(old_rule_id)

        logger.info("Updated pattern of assignment %s to rule %s", assignment_id, rule.id)
        return OperationResult.ok(OperationType.UPDATE, saved, "User pattern updated")

    def delete_pattern(self, assignment_id: str) -> "Future[OperationResult[bool]]":
        """Delete an assignment and, if unreferenced, its rule."""
        return self._submit(
            assignment_id,
            OperationType.DELETE,
            lambda: self._delete(assignment_id),
        )

    def _delete(self, assignment_id: str) -> OperationResult[bool]:
        existing = self._load_assignment(assignment_id)
        if not existing.success:
            return existing

        try:
            deleted = self.assignments.delete_assignment(assignment_id)
        except StoreError as e:
            return OperationResult.fail(OperationType.DELETE, f"Failed to delete assignment: {e}")
        if not deleted:
            return OperationResult.fail(
                OperationType.DELETE, f"Assignment {assignment_id} was already removed"
            )

        self._release_rule(existing.data.recurrence_rule_id)
        logger.info("Deleted pattern assignment %s", assignment_id)
        return OperationResult.ok(OperationType.DELETE, True, "User pattern deleted")

    def set_enabled(
        self,
        assignment_id: str,
        enabled: bool,
    ) -> "Future[OperationResult[UserScheduleAssignment]]":
        """Toggle the administrative enable flag of an assignment."""
        return self._submit(
            assignment_id,
            OperationType.UPDATE,
            lambda: self._set_enabled(assignment_id, enabled),
        )

    def _set_enabled(
        self,
        assignment_id: str,
        enabled: bool,
    ) -> OperationResult[UserScheduleAssignment]:
        existing = self._load_assignment(assignment_id)
        if not existing.success:
            return existing
        try:
            saved = self.assignments.save_assignment(
                replace(existing.data, enabled=enabled, updated_at=datetime.now())
            )
        except StoreError as e:
            return OperationResult.fail(OperationType.UPDATE, f"Failed to save assignment: {e}")
        logger.info("Assignment %s %s", assignment_id, "enabled" if enabled else "disabled")
        return OperationResult.ok(OperationType.UPDATE, saved)

    # Reads

    def load_pattern_for_editing(
        self,
        assignment_id: str,
    ) -> "Future[OperationResult[PatternEditingData]]":
        """Load an assignment with its rule and decoded pattern."""
        return self._submit(
            assignment_id,
            OperationType.READ,
            lambda: self._load_for_editing(assignment_id),
        )

    def _load_for_editing(self, assignment_id: str) -> OperationResult[PatternEditingData]:
        existing = self._load_assignment(assignment_id)
        if not existing.success:
            return existing
        assignment = existing.data

        rule = self._load_rule(assignment.recurrence_rule_id)
        if not rule.success:
            return rule

        decoded = self.codec.decode(rule.data)
        if not decoded.success:
            return decoded

        return OperationResult.ok(
            OperationType.READ,
            PatternEditingData(assignment, rule.data, decoded.data, list(decoded.warnings)),
        )

    def list_user_patterns(
        self,
        user_id: Optional[str] = None,
    ) -> "Future[OperationResult[list[UserScheduleAssignment]]]":
        """List the assignments of a user (current user by default)."""
        user_id = user_id or self.identity.current_user_id()
        return self._submit(
            f"user:{user_id}",
            OperationType.READ,
            lambda: self._list(user_id),
        )

    def _list(self, user_id: str) -> OperationResult[list[UserScheduleAssignment]]:
        try:
            assignments = self.assignments.list_for_user(user_id)
        except StoreError as e:
            return OperationResult.fail(OperationType.READ, f"Failed to list assignments: {e}")
        assignments.sort(key=lambda a: a.anchor_date)
        logger.debug("Loaded %d patterns for user %s", len(assignments), user_id)
        return OperationResult.ok(OperationType.READ, assignments)

    def get_schedule_for_date(
        self,
        target_date: date,
        user_id: Optional[str] = None,
    ) -> "Future[OperationResult[Optional[WorkScheduleDay]]]":
        """Resolve what is scheduled on a date for a user.

        Among the processable assignments covering the date, the one with
        the highest priority wins, then the most recent anchor date. The result
        data is None when no assignment covers the date.
        """
        user_id = user_id or self.identity.current_user_id()
        return self._submit(
            f"user:{user_id}",
            OperationType.READ,
            lambda: self._schedule_for_date(target_date, user_id),
        )

    def _schedule_for_date(
        self,
        target_date: date,
        user_id: str,
    ) -> OperationResult[Optional[WorkScheduleDay]]:
        listed = self._list(user_id)
        if not listed.success:
            return listed

        today = self.clock()
        candidates = [
            a for a in listed.data if a.is_processable(today) and a.applies_to(target_date)
        ]
        if not candidates:
            return OperationResult.ok(OperationType.READ, None, "No assignment covers the date")

        chosen = max(candidates, key=lambda a: (a.priority.level, a.anchor_date))
        rule = self._load_rule(chosen.recurrence_rule_id)
        if not rule.success:
            return rule
        return self.calculator.resolve_for_rule(target_date, chosen, rule.data)

    # Pure helpers

    def generate_preview(
        self,
        pattern: Pattern,
        anchor_date: date,
        days: Optional[int] = None,
    ) -> OperationResult[list[WorkScheduleDay]]:
        """Preview an unsaved pattern. Never touches the stores."""
        return self.previewer.generate_preview(pattern, anchor_date, days)

    def calculate_statistics(self, pattern: Pattern) -> OperationResult[PatternStatistics]:
        """Statistics for a pattern, or a VALIDATION failure if malformed."""
        validation = self.validator.validate_pattern_days(pattern)
        if not validation.success:
            return validation
        return OperationResult.ok(
            OperationType.READ, calculate_statistics(pattern, self.shift_lookup)
        )

    # Internals

    def _validate(
        self,
        pattern: Pattern,
        start_date: date,
        name: Optional[str],
        end_date: Optional[date],
    ) -> OperationResult:
        result = self.validator.validate_pattern_configuration(
            pattern, start_date, name, self.clock()
        )
        if not result.success:
            return result
        return self.validator.validate_assignment_bounds(start_date, end_date)

    def _load_assignment(self, assignment_id: str) -> OperationResult[UserScheduleAssignment]:
        try:
            assignment = self.assignments.get_assignment(assignment_id)
        except StoreError as e:
            return OperationResult.fail(OperationType.READ, f"Failed to load assignment: {e}")
        if assignment is None:
            return OperationResult.fail(
                OperationType.READ, f"Assignment not found: {assignment_id}"
            )
        return OperationResult.ok(OperationType.READ, assignment)

    def _load_rule(self, rule_id: str) -> OperationResult[RecurrenceRule]:
        try:
            rule = self.rules.get_rule(rule_id)
        except StoreError as e:
            return OperationResult.fail(OperationType.READ, f"Failed to load recurrence rule: {e}")
        if rule is None:
            return OperationResult.fail(
                OperationType.READ, f"Recurrence rule not found: {rule_id}"
            )
        return OperationResult.ok(OperationType.READ, rule)

    def _discard_rule(self, rule_id: str) -> None:
        """Compensating delete of a rule written by a failed mutation."""
        try:
            self.rules.delete_rule(rule_id)
            logger.info("Removed orphaned recurrence rule %s", rule_id)
        except Exception as e:
            logger.warning("Could not remove orphaned recurrence rule %s: %s", rule_id, e)

    def _release_rule(self, rule_id: str) -> None:
        """Delete a rule no assignment references any more."""
        try:
            if self.rules.is_referenced(rule_id):
                logger.debug("Recurrence rule %s still referenced, keeping it", rule_id)
                return
            self.rules.delete_rule(rule_id)
        except StoreError as e:
            logger.warning("Could not release recurrence rule %s: %s", rule_id, e)
