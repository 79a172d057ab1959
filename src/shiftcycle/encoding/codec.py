"""Encoding of patterns into recurrence rules and back.

Custom patterns share the generic `description` column with other
recurrence kinds. The pattern is stored there as a compact JSON payload
wrapped in sentinel markers:

    Custom pattern: 3 days, 2 work, 1 rest

    CUSTOM_PATTERN_DATA:{"version":"1.0","pattern_days":[...]}:END_CUSTOM_PATTERN_DATA

The markers, the key names and their order are a stable storage format.
Changing any of them breaks rules already on disk.
"""

import json
import logging
from datetime import date, datetime
from typing import Any, Optional

from shiftcycle.domain.models import (
    Pattern,
    PatternDay,
    RecurrenceFrequency,
    RecurrenceRule,
)
from shiftcycle.domain.results import (
    OperationResult,
    OperationType,
    ValidationErrorType,
)

logger = logging.getLogger(__name__)

START_MARKER = "CUSTOM_PATTERN_DATA:"
END_MARKER = ":END_CUSTOM_PATTERN_DATA"
PAYLOAD_VERSION = "1.0"
CUSTOM_PATTERN_FREQUENCY = RecurrenceFrequency.QUATTRODUE_CYCLE

KEY_VERSION = "version"
KEY_PATTERN_DAYS = "pattern_days"
KEY_DAY_NUMBER = "dayNumber"
KEY_IS_REST_DAY = "isRestDay"
KEY_SHIFT_ID = "shiftId"


class PayloadError(ValueError):
    """Raised internally when a payload entry cannot be converted."""


def is_custom_pattern(rule: RecurrenceRule) -> bool:
    """Check if a rule carries an encoded custom pattern."""
    description = rule.description
    return (
        description is not None
        and START_MARKER in description
        and rule.frequency == CUSTOM_PATTERN_FREQUENCY
    )


def _payload_start(description: str) -> int:
    """Index just past the start marker of the generated block, or -1.

    The encoder always writes the block last, after a blank line, so user
    text placed before it may itself mention the markers.
    """
    end = description.rfind(END_MARKER)
    limit = end if end != -1 else len(description)
    start = description.rfind("\n\n" + START_MARKER, 0, limit)
    if start != -1:
        return start + 2 + len(START_MARKER)
    start = description.find(START_MARKER, 0, limit)
    if start == -1:
        start = description.rfind(START_MARKER)
    if start == -1:
        return -1
    return start + len(START_MARKER)


def extract_payload(description: str) -> Optional[str]:
    """Return the text between the sentinel markers, or None if unmarked."""
    start = _payload_start(description)
    if start == -1:
        return None
    end = description.rfind(END_MARKER)
    if end < start:
        return None
    return description[start:end]


def encode_payload(pattern: Pattern) -> str:
    """Serialize pattern days to the compact, deterministic JSON payload."""
    days = []
    for pattern_day in pattern:
        entry: dict[str, Any] = {
            KEY_DAY_NUMBER: pattern_day.day_number,
            KEY_IS_REST_DAY: pattern_day.is_rest_day,
        }
        if pattern_day.is_work_day:
            entry[KEY_SHIFT_ID] = pattern_day.shift_ref
        days.append(entry)

    return json.dumps(
        {KEY_VERSION: PAYLOAD_VERSION, KEY_PATTERN_DAYS: days},
        separators=(",", ":"),
        ensure_ascii=False,
    )


def _summary_line(pattern: Pattern) -> str:
    work = len(pattern.work_days())
    return f"Custom pattern: {pattern.length} days, {work} work, {pattern.length - work} rest"


def _entry_to_day(entry: Any) -> PatternDay:
    if not isinstance(entry, dict):
        raise PayloadError(f"pattern day entry is not an object: {entry!r}")

    day_number = entry.get(KEY_DAY_NUMBER)
    if not isinstance(day_number, int) or isinstance(day_number, bool):
        raise PayloadError(f"invalid {KEY_DAY_NUMBER}: {day_number!r}")

    is_rest = entry.get(KEY_IS_REST_DAY)
    if not isinstance(is_rest, bool):
        raise PayloadError(f"invalid {KEY_IS_REST_DAY} for day {day_number}: {is_rest!r}")

    if is_rest:
        return PatternDay.rest(day_number)

    shift_id = entry.get(KEY_SHIFT_ID)
    if not isinstance(shift_id, str) or not shift_id.strip():
        raise PayloadError(f"work day {day_number} has no {KEY_SHIFT_ID}")
    return PatternDay.work(day_number, shift_id)


def _salvage_entries(text: str) -> list[Any]:
    """Recover the complete day objects at the head of a damaged payload."""
    key_pos = text.find(f'"{KEY_PATTERN_DAYS}"')
    if key_pos == -1:
        return []
    pos = text.find("[", key_pos)
    if pos == -1:
        return []
    pos += 1

    decoder = json.JSONDecoder()
    entries: list[Any] = []
    while pos < len(text):
        while pos < len(text) and text[pos] in " \t\r\n,":
            pos += 1
        if pos >= len(text) or text[pos] == "]":
            break
        try:
            entry, pos = decoder.raw_decode(text, pos)
        except json.JSONDecodeError:
            break
        entries.append(entry)
    return entries


class RecurrenceCodec:
    """Encodes patterns into recurrence rules and decodes them back.

    Decoding is strict by default: any structural damage is reported as a
    DECODE failure. With `lenient=True` the codec instead returns the
    longest run of valid days from the start of the payload and attaches
    a warning to the result.

    Example:
        >>> codec = RecurrenceCodec()
        >>> rule = codec.encode(pattern, name="Four on, two off")
        >>> codec.decode(rule).data == pattern
        True
    """

    def __init__(self, lenient: bool = False):
        self.lenient = lenient

    def encode(
        self,
        pattern: Pattern,
        name: Optional[str] = None,
        start_date: Optional[date] = None,
        description: Optional[str] = None,
        rule_id: Optional[str] = None,
    ) -> RecurrenceRule:
        """Encode a pattern into a new recurrence rule.

        The pattern is expected to have passed PatternValidator.

        Args:
            pattern: Pattern to encode.
            name: Rule name.
            start_date: Anchor date the rule is created for.
            description: User text placed before the generated summary.
            rule_id: Explicit id; a fresh one is generated otherwise.
        """
        if pattern is None:
            raise TypeError("pattern cannot be None")

        parts = []
        if description and description.strip():
            parts.append(description)
        parts.append(_summary_line(pattern))
        parts.append(f"{START_MARKER}{encode_payload(pattern)}{END_MARKER}")

        work = len(pattern.work_days())
        now = datetime.now()
        kwargs: dict[str, Any] = {}
        if rule_id is not None:
            kwargs["id"] = rule_id

        rule = RecurrenceRule(
            name=name or f"Custom pattern ({pattern.length} days)",
            description="\n\n".join(parts),
            frequency=CUSTOM_PATTERN_FREQUENCY,
            interval=1,
            start_date=start_date,
            pattern_length=pattern.length,
            work_days=work,
            rest_days=pattern.length - work,
            active=True,
            created_at=now,
            updated_at=now,
            **kwargs,
        )
        logger.debug("Encoded %d-day pattern into rule %s", pattern.length, rule.id)
        return rule

    def decode(self, rule: RecurrenceRule) -> OperationResult[Pattern]:
        """Decode the pattern stored in a recurrence rule."""
        if not is_custom_pattern(rule):
            logger.warning("Rule %s is not a custom pattern", rule.id)
            return OperationResult.fail(
                OperationType.DECODE,
                f"Rule {rule.id} is not a custom pattern",
                ValidationErrorType.NOT_CUSTOM_PATTERN,
            )

        payload = extract_payload(rule.description or "")
        try:
            if payload is None:
                raise PayloadError("end marker missing")
            pattern = self._decode_strict(payload)
        except (PayloadError, json.JSONDecodeError) as e:
            if not self.lenient:
                logger.warning("Corrupt pattern payload in rule %s: %s", rule.id, e)
                return OperationResult.fail(
                    OperationType.DECODE,
                    f"Corrupt pattern payload in rule {rule.id}: {e}",
                    ValidationErrorType.CORRUPT_PAYLOAD,
                )
            return self._decode_lenient(rule, str(e))

        result: OperationResult[Pattern] = OperationResult.ok(
            OperationType.DECODE,
            pattern,
            f"Decoded {pattern.length} pattern days",
        )
        if rule.pattern_length and rule.pattern_length != pattern.length:
            result.add_warning(
                f"Rule declares {rule.pattern_length} days but payload holds {pattern.length}"
            )
        return result

    def _decode_strict(self, payload: str) -> Pattern:
        data = json.loads(payload)
        if not isinstance(data, dict) or not isinstance(data.get(KEY_PATTERN_DAYS), list):
            raise PayloadError(f"payload has no '{KEY_PATTERN_DAYS}' list")

        days = [_entry_to_day(entry) for entry in data[KEY_PATTERN_DAYS]]
        if not days:
            raise PayloadError("payload holds no pattern days")
        for i, pattern_day in enumerate(days):
            if pattern_day.day_number != i + 1:
                raise PayloadError(
                    f"day numbering breaks at position {i + 1} "
                    f"(found {pattern_day.day_number})"
                )
        return Pattern(days)

    def _decode_lenient(self, rule: RecurrenceRule, reason: str) -> OperationResult[Pattern]:
        description = rule.description or ""
        text = description[_payload_start(description):]

        days: list[PatternDay] = []
        for entry in _salvage_entries(text):
            try:
                pattern_day = _entry_to_day(entry)
            except PayloadError:
                break
            if pattern_day.day_number != len(days) + 1:
                break
            days.append(pattern_day)

        if not days:
            logger.warning("Nothing recoverable in rule %s: %s", rule.id, reason)
            return OperationResult.fail(
                OperationType.DECODE,
                f"Corrupt pattern payload in rule {rule.id}: {reason}",
                ValidationErrorType.CORRUPT_PAYLOAD,
            )

        warning = (
            f"Rule {rule.id} payload is corrupt ({reason}); "
            f"recovered {len(days)} leading pattern days"
        )
        logger.warning("%s", warning)
        result: OperationResult[Pattern] = OperationResult.ok(
            OperationType.DECODE,
            Pattern(days),
            f"Recovered {len(days)} pattern days",
        )
        result.add_warning(warning)
        return result
