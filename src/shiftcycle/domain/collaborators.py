"""Interfaces for the collaborators the engine consumes.

Shift lookup, rule and assignment storage and identity are owned by the
host application. They are kept separate from the engine so it can be
tested against in-memory implementations and wired to real storage later.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from shiftcycle.domain.models import RecurrenceRule, Shift, UserScheduleAssignment


class ShiftLookup(ABC):
    """Resolves shift identifiers to full shifts."""

    @abstractmethod
    def get_shift(self, shift_id: str) -> Optional[Shift]:
        """Get a shift by id, or None if unknown."""
        pass


class RecurrenceRuleStore(ABC):
    """Storage for recurrence rules.

    Implementations raise StoreError when the underlying storage fails.
    """

    @abstractmethod
    def save_rule(self, rule: RecurrenceRule) -> RecurrenceRule:
        """Insert or replace a rule and return the stored rule."""
        pass

    @abstractmethod
    def get_rule(self, rule_id: str) -> Optional[RecurrenceRule]:
        pass

    @abstractmethod
    def delete_rule(self, rule_id: str) -> bool:
        """Delete a rule. Returns False if it did not exist."""
        pass

    @abstractmethod
    def is_referenced(self, rule_id: str) -> bool:
        """Check if any assignment still references the rule."""
        pass


class AssignmentStore(ABC):
    """Storage for user schedule assignments.

    Implementations raise StoreError when the underlying storage fails.
    """

    @abstractmethod
    def save_assignment(self, assignment: UserScheduleAssignment) -> UserScheduleAssignment:
        """Insert or replace an assignment and return the stored assignment."""
        pass

    @abstractmethod
    def get_assignment(self, assignment_id: str) -> Optional[UserScheduleAssignment]:
        pass

    @abstractmethod
    def delete_assignment(self, assignment_id: str) -> bool:
        """Delete an assignment. Returns False if it did not exist."""
        pass

    @abstractmethod
    def list_for_user(self, user_id: str) -> list[UserScheduleAssignment]:
        pass

    @abstractmethod
    def references_rule(self, rule_id: str) -> bool:
        """Check if any stored assignment points at the rule."""
        pass


class IdentityProvider(ABC):
    """Supplies the current user and team."""

    @abstractmethod
    def current_user_id(self) -> str:
        pass

    @abstractmethod
    def current_team_id(self) -> str:
        pass


@dataclass(frozen=True)
class StaticIdentityProvider(IdentityProvider):
    """Single-user identity fixed at construction.

    Attributes:
        user_id: The one user the engine works for.
        team_id: The team that user belongs to.
    """

    user_id: str = "1"
    team_id: str = "A"

    def current_user_id(self) -> str:
        return self.user_id

    def current_team_id(self) -> str:
        return self.team_id
