"""Leave Pydantic v2 schemas — request / response validation.

Naming conventions:
  - *Create / *Update   → request bodies (write)
  - *Out                → response bodies (read)
"""

from __future__ import annotations

import enum
import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from svs.common.constants import LeaveStatus, LeaveType
from svs.users.schemas import UserBrief


# ═════════════════════════════════════════════════════════════════════
# Leave Request — write
# ═════════════════════════════════════════════════════════════════════


class _DateRange(BaseModel):
    start_date: date = Field(..., description="First day of absence (inclusive)")
    end_date: date = Field(..., description="Last day of absence (inclusive)")

    @model_validator(mode="after")
    def end_not_before_start(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date.")
        return self


class LeaveRequestCreate(_DateRange):
    """Payload for submitting a vacation or sick-leave entry.

    Omitting ``user_id`` files the request for the caller. Only admins may
    file for someone else or approve a vacation immediately.
    """

    leave_type: LeaveType
    user_id: Optional[uuid.UUID] = None
    approve_immediately: bool = False
    reason: str = Field("", max_length=1000)


class LeaveRequestUpdate(_DateRange):
    """Full replacement of an existing request's editable fields."""

    leave_type: LeaveType
    reason: str = Field("", max_length=1000)
    status: Optional[LeaveStatus] = Field(
        None, description="Admin only; ignored for sick leave (always approved)",
    )


class LeaveStatusUpdate(BaseModel):
    status: LeaveStatus


# ═════════════════════════════════════════════════════════════════════
# Leave Request — read
# ═════════════════════════════════════════════════════════════════════


class LeaveRequestOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    user: UserBrief
    start_date: date
    end_date: date
    leave_type: LeaveType
    reason: str = ""
    status: LeaveStatus
    status_label: str = ""
    working_days: int = 0

    created_at: datetime
    created_by_user_id: uuid.UUID
    updated_at: Optional[datetime] = None
    updated_by_user_id: Optional[uuid.UUID] = None


class LeaveErrorKind(str, enum.Enum):
    insufficient_balance = "insufficient_balance"
    overlapping_request = "overlapping_request"
    not_found = "not_found"
    no_active_user = "no_active_user"
    forbidden = "forbidden"
    invalid_range = "invalid_range"
    invalid_transition = "invalid_transition"


class LeaveOutcome(BaseModel):
    """Result of a lifecycle operation; failures are values, not exceptions."""

    ok: bool
    message: str = ""
    request: Optional[LeaveRequestOut] = None
    error: Optional[LeaveErrorKind] = None
    requested_days: Optional[int] = None
    available_days: Optional[int] = None

    @classmethod
    def success(
        cls,
        message: str = "",
        request: Optional[LeaveRequestOut] = None,
    ) -> "LeaveOutcome":
        return cls(ok=True, message=message, request=request)

    @classmethod
    def failure(
        cls,
        error: LeaveErrorKind,
        message: str,
        *,
        requested_days: Optional[int] = None,
        available_days: Optional[int] = None,
    ) -> "LeaveOutcome":
        return cls(
            ok=False,
            error=error,
            message=message,
            requested_days=requested_days,
            available_days=available_days,
        )


class PermissionOut(BaseModel):
    request_id: uuid.UUID
    can_edit_or_delete: bool


# ═════════════════════════════════════════════════════════════════════
# Calendar
# ═════════════════════════════════════════════════════════════════════


class HolidayOut(BaseModel):
    day: date
    name: str


class CalendarDayOut(BaseModel):
    day: date
    is_working_day: bool
    holiday_name: Optional[str] = None
    requests: list[LeaveRequestOut] = []


class WorkingDaysOut(BaseModel):
    start_date: date
    end_date: date
    working_days: int
