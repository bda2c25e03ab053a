"""Vacation balance accounting.

Two different "remaining" figures exist on purpose:

* ``remaining_leave_days`` only counts *approved* vacation. It is the number
  shown to employees and only shrinks once a request is approved.
* ``available_vacation_days_for_requests`` counts pending + approved
  vacation. It gates new and edited requests, so a pending request already
  reserves its days.
"""

from __future__ import annotations

import uuid
from typing import Iterable, Optional

from svs.common.constants import LeaveStatus, LeaveType
from svs.leave.holidays import working_days
from svs.leave.models import LeaveRequest
from svs.users.models import User


def _vacation_of(requests: Iterable[LeaveRequest], user_id: uuid.UUID):
    return (
        r for r in requests
        if r.user_id == user_id and r.leave_type == LeaveType.vacation
    )


def request_days(request: LeaveRequest) -> int:
    return max(working_days(request.start_date, request.end_date), 0)


def used_vacation_days(user: User, requests: Iterable[LeaveRequest]) -> int:
    """Working days of the user's approved vacation."""
    return sum(
        request_days(r)
        for r in _vacation_of(requests, user.id)
        if r.status == LeaveStatus.approved
    )


def reserved_vacation_days(
    user: User,
    requests: Iterable[LeaveRequest],
    excluding_request_id: Optional[uuid.UUID] = None,
) -> int:
    """Working days of the user's pending and approved vacation."""
    return sum(
        request_days(r)
        for r in _vacation_of(requests, user.id)
        if r.status != LeaveStatus.rejected and r.id != excluding_request_id
    )


def remaining_leave_days(user: User, requests: Iterable[LeaveRequest]) -> int:
    return max(user.annual_leave_days - used_vacation_days(user, requests), 0)


def available_vacation_days_for_requests(
    user: User,
    requests: Iterable[LeaveRequest],
    excluding_request_id: Optional[uuid.UUID] = None,
) -> int:
    reserved = reserved_vacation_days(user, requests, excluding_request_id)
    return max(user.annual_leave_days - reserved, 0)
