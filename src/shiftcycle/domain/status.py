"""Assignment status resolution.

Status is a pure function of today's date, the assignment bounds and the
administrative flag. It is recomputed on every call and never persisted.
Because it only depends on `today`, it moves PENDING -> ACTIVE -> EXPIRED
as time advances and never goes backward.
"""

from datetime import date
from enum import Enum
from typing import Optional


class AssignmentStatus(Enum):
    """Lifecycle state of an assignment.

    PENDING, ACTIVE and EXPIRED are temporal states. INACTIVE is only
    produced by the effective status, when the assignment has been
    administratively disabled.
    """

    PENDING = "pending"
    ACTIVE = "active"
    EXPIRED = "expired"
    INACTIVE = "inactive"


def resolve_status(
    today: date,
    anchor_date: date,
    end_date: Optional[date] = None,
) -> AssignmentStatus:
    """Derive the temporal status of an assignment.

    Args:
        today: Reference date.
        anchor_date: First day of the assignment (inclusive).
        end_date: Last day of the assignment (inclusive), None if permanent.

    Returns:
        PENDING before the anchor, EXPIRED after the end date, ACTIVE otherwise.
    """
    if today < anchor_date:
        return AssignmentStatus.PENDING
    if end_date is not None and today > end_date:
        return AssignmentStatus.EXPIRED
    return AssignmentStatus.ACTIVE


def resolve_effective_status(
    today: date,
    anchor_date: date,
    end_date: Optional[date],
    enabled: bool,
) -> AssignmentStatus:
    """Temporal status, overridden by INACTIVE when disabled."""
    if not enabled:
        return AssignmentStatus.INACTIVE
    return resolve_status(today, anchor_date, end_date)


def is_processable(
    today: date,
    anchor_date: date,
    end_date: Optional[date],
    enabled: bool,
) -> bool:
    """An assignment is processable when enabled and not expired."""
    if not enabled:
        return False
    return resolve_status(today, anchor_date, end_date) != AssignmentStatus.EXPIRED
