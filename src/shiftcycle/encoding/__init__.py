"""Storage encoding of patterns as recurrence rules."""

from shiftcycle.encoding.codec import (
    END_MARKER,
    START_MARKER,
    RecurrenceCodec,
    encode_payload,
    extract_payload,
    is_custom_pattern,
)

__all__ = [
    "END_MARKER",
    "START_MARKER",
    "RecurrenceCodec",
    "encode_payload",
    "extract_payload",
    "is_custom_pattern",
]
