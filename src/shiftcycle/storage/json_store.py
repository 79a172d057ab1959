"""JSON file persistence for recurrence rules and assignments.

Rules and assignments live in one JSON document:

    {
      "version": "1.0",
      "recurrenceRules": {"<id>": {...}},
      "assignments": {"<id>": {...}}
    }

Every write goes to a temporary file which then replaces the document; the
previous document is kept as a `.bak` file and used for recovery when the
main file cannot be read.
"""

import json
import logging
import threading
from datetime import date, datetime
from pathlib import Path
from typing import Any, Optional, Union

from shiftcycle.domain.collaborators import AssignmentStore, RecurrenceRuleStore
from shiftcycle.domain.models import (
    Priority,
    RecurrenceFrequency,
    RecurrenceRule,
    UserScheduleAssignment,
)
from shiftcycle.domain.results import StoreError

logger = logging.getLogger(__name__)

DOCUMENT_VERSION = "1.0"


def _date_or_none(value: Optional[str]) -> Optional[date]:
    return date.fromisoformat(value) if value else None


def rule_to_dict(rule: RecurrenceRule) -> dict[str, Any]:
    return {
        "id": rule.id,
        "name": rule.name,
        "description": rule.description,
        "frequency": rule.frequency.value,
        "interval": rule.interval,
        "startDate": rule.start_date.isoformat() if rule.start_date else None,
        "patternLength": rule.pattern_length,
        "workDays": rule.work_days,
        "restDays": rule.rest_days,
        "active": rule.active,
        "createdAt": rule.created_at.isoformat(),
        "updatedAt": rule.updated_at.isoformat(),
    }


def rule_from_dict(data: dict[str, Any]) -> RecurrenceRule:
    return RecurrenceRule(
        id=data["id"],
        name=data.get("name", ""),
        description=data.get("description"),
        frequency=RecurrenceFrequency(data.get("frequency", RecurrenceFrequency.DAILY.value)),
        interval=data.get("interval", 1),
        start_date=_date_or_none(data.get("startDate")),
        pattern_length=data.get("patternLength", 0),
        work_days=data.get("workDays", 0),
        rest_days=data.get("restDays", 0),
        active=data.get("active", True),
        created_at=datetime.fromisoformat(data["createdAt"]) if data.get("createdAt") else datetime.now(),
        updated_at=datetime.fromisoformat(data["updatedAt"]) if data.get("updatedAt") else datetime.now(),
    )


def assignment_to_dict(assignment: UserScheduleAssignment) -> dict[str, Any]:
    return {
        "id": assignment.id,
        "userId": assignment.user_id,
        "teamId": assignment.team_id,
        "recurrenceRuleId": assignment.recurrence_rule_id,
        "anchorDate": assignment.anchor_date.isoformat(),
        "endDate": assignment.end_date.isoformat() if assignment.end_date else None,
        "enabled": assignment.enabled,
        "priority": assignment.priority.name,
        "title": assignment.title,
        "createdAt": assignment.created_at.isoformat(),
        "updatedAt": assignment.updated_at.isoformat(),
    }


def assignment_from_dict(data: dict[str, Any]) -> UserScheduleAssignment:
    return UserScheduleAssignment(
        id=data["id"],
        user_id=str(data["userId"]),
        team_id=str(data["teamId"]),
        recurrence_rule_id=data["recurrenceRuleId"],
        anchor_date=date.fromisoformat(data["anchorDate"]),
        end_date=_date_or_none(data.get("endDate")),
        enabled=data.get("enabled", True),
        priority=Priority[data.get("priority", Priority.NORMAL.name)],
        title=data.get("title"),
        created_at=datetime.fromisoformat(data["createdAt"]) if data.get("createdAt") else datetime.now(),
        updated_at=datetime.fromisoformat(data["updatedAt"]) if data.get("updatedAt") else datetime.now(),
    )


class JsonFileStore(RecurrenceRuleStore, AssignmentStore):
    """Rule and assignment store persisted to a single JSON file.

    Example:
        >>> store = JsonFileStore("data/patterns.json")
        >>> service = PatternService(rules=store, assignments=store, ...)
    """

    def __init__(self, data_file: Union[str, Path]):
        self.data_file = Path(data_file)
        self.backup_file = self.data_file.with_suffix(self.data_file.suffix + ".bak")
        self._lock = threading.RLock()
        self._data = self._load()

    # Loading

    def _empty_document(self) -> dict[str, Any]:
        return {"version": DOCUMENT_VERSION, "recurrenceRules": {}, "assignments": {}}

    def _read(self, path: Path) -> dict[str, Any]:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"{path} does not contain a JSON object")
        document = self._empty_document()
        document.update(data)
        return document

    def _load(self) -> dict[str, Any]:
        if self.data_file.exists():
            try:
                return self._read(self.data_file)
            except (OSError, ValueError) as e:
                logger.error("Error loading data file %s: %s", self.data_file, e)
                if not self.backup_file.exists():
                    raise StoreError(
                        f"Data file {self.data_file} is corrupted and no backup is available: {e}"
                    ) from e

        if self.backup_file.exists():
            try:
                logger.info("Attempting recovery from backup file %s", self.backup_file)
                data = self._read(self.backup_file)
                logger.info("Recovered data from backup")
                return data
            except (OSError, ValueError) as e:
                logger.error("Backup file also unreadable: %s", e)
                if self.data_file.exists():
                    raise StoreError(
                        f"Data file {self.data_file} and its backup are both unreadable"
                    ) from e

        logger.info("No usable data file at %s, starting empty", self.data_file)
        return self._empty_document()

    def _flush(self) -> None:
        temp_file = self.data_file.with_suffix(self.data_file.suffix + ".tmp")
        try:
            self.data_file.parent.mkdir(parents=True, exist_ok=True)
            with open(temp_file, "w", encoding="utf-8") as f:
                json.dump(self._data, f, indent=2, ensure_ascii=False)
            if self.data_file.exists():
                self.data_file.replace(self.backup_file)
            temp_file.replace(self.data_file)
        except OSError as e:
            logger.error("I/O error saving %s: %s", self.data_file, e, exc_info=True)
            raise StoreError(f"Failed to save {self.data_file}: {e}") from e
        finally:
            if temp_file.exists():
                try:
                    temp_file.unlink()
                except OSError as cleanup_e:
                    logger.error("Failed to remove temporary file %s: %s", temp_file, cleanup_e)

    def _commit(self, section: str, key: str, value: Optional[dict[str, Any]]) -> None:
        """Apply one change and persist it, undoing the change if the write fails."""
        previous = self._data[section].get(key)
        if value is None:
            self._data[section].pop(key, None)
        else:
            self._data[section][key] = value
        try:
            self._flush()
        except StoreError:
            if previous is None:
                self._data[section].pop(key, None)
            else:
                self._data[section][key] = previous
            raise

    # RecurrenceRuleStore

    def save_rule(self, rule: RecurrenceRule) -> RecurrenceRule:
        with self._lock:
            self._commit("recurrenceRules", rule.id, rule_to_dict(rule))
            return rule_from_dict(self._data["recurrenceRules"][rule.id])

    def get_rule(self, rule_id: str) -> Optional[RecurrenceRule]:
        with self._lock:
            data = self._data["recurrenceRules"].get(rule_id)
            return rule_from_dict(data) if data is not None else None

    def delete_rule(self, rule_id: str) -> bool:
        with self._lock:
            if rule_id not in self._data["recurrenceRules"]:
                return False
            self._commit("recurrenceRules", rule_id, None)
            return True

    def is_referenced(self, rule_id: str) -> bool:
        return self.references_rule(rule_id)

    # AssignmentStore

    def save_assignment(self, assignment: UserScheduleAssignment) -> UserScheduleAssignment:
        with self._lock:
            self._commit("assignments", assignment.id, assignment_to_dict(assignment))
            return assignment_from_dict(self._data["assignments"][assignment.id])

    def get_assignment(self, assignment_id: str) -> Optional[UserScheduleAssignment]:
        with self._lock:
            data = self._data["assignments"].get(assignment_id)
            return assignment_from_dict(data) if data is not None else None

    def delete_assignment(self, assignment_id: str) -> bool:
        with self._lock:
            if assignment_id not in self._data["assignments"]:
                return False
            self._commit("assignments", assignment_id, None)
            return True

    def list_for_user(self, user_id: str) -> list[UserScheduleAssignment]:
        with self._lock:
            return [
                assignment_from_dict(a)
                for a in self._data["assignments"].values()
                if str(a.get("userId")) == user_id
            ]

    def references_rule(self, rule_id: str) -> bool:
        with self._lock:
            return any(
                a.get("recurrenceRuleId") == rule_id
                for a in self._data["assignments"].values()
            )
