"""Store implementations for rules, assignments and shifts."""

from shiftcycle.storage.json_store import JsonFileStore
from shiftcycle.storage.memory import (
    InMemoryAssignmentStore,
    InMemoryRecurrenceRuleStore,
    InMemoryShiftCatalog,
)

__all__ = [
    "InMemoryAssignmentStore",
    "InMemoryRecurrenceRuleStore",
    "InMemoryShiftCatalog",
    "JsonFileStore",
]
