"""Asynchronous pattern persistence service."""

from shiftcycle.service.pattern_service import KeyedLock, PatternEditingData, PatternService

__all__ = ["KeyedLock", "PatternEditingData", "PatternService"]
