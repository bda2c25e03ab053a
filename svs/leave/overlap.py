"""Same-type overlap detection between leave requests."""

from __future__ import annotations

import uuid
from typing import Iterable, Optional

from svs.common.constants import LeaveStatus, LeaveType
from svs.leave.holidays import DayLike, to_day
from svs.leave.models import LeaveRequest


def ranges_overlap(
    a_start: DayLike,
    a_end: DayLike,
    b_start: DayLike,
    b_end: DayLike,
) -> bool:
    """Inclusive day-range intersection, symmetric in its two ranges."""
    return to_day(a_start) <= to_day(b_end) and to_day(b_start) <= to_day(a_end)


def find_overlap(
    existing: Iterable[LeaveRequest],
    user_id: uuid.UUID,
    start: DayLike,
    end: DayLike,
    leave_type: LeaveType,
    excluding_request_id: Optional[uuid.UUID] = None,
) -> Optional[LeaveRequest]:
    """Return the first request blocking [start, end], if any.

    Only the same user's non-rejected requests of the same type block.
    Sick leave may overlap vacation and vice versa.
    """
    for req in existing:
        if req.user_id != user_id:
            continue
        if excluding_request_id is not None and req.id == excluding_request_id:
            continue
        if req.status == LeaveStatus.rejected:
            continue
        if req.leave_type != leave_type:
            continue
        if ranges_overlap(req.start_date, req.end_date, start, end):
            return req
    return None


def has_overlap(
    existing: Iterable[LeaveRequest],
    user_id: uuid.UUID,
    start: DayLike,
    end: DayLike,
    leave_type: LeaveType,
    excluding_request_id: Optional[uuid.UUID] = None,
) -> bool:
    return find_overlap(
        existing, user_id, start, end, leave_type, excluding_request_id,
    ) is not None
