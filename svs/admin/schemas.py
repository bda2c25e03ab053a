"""Snapshot schemas — the three stored collections in camelCase record form.

Decoding is lenient towards older stored data:
  - ``type`` / ``status`` accept the German labels of the legacy app
  - timestamps may be ISO-8601 strings or numeric seconds since
    2001-01-01 UTC (the legacy encoder's reference date)
  - missing ``reason`` → "", missing ``createdAt`` → now,
    missing ``createdByUserId`` → the embedded user's id
  - ``pin`` is a bcrypt hash, or a plain legacy PIN that is hashed on import
"""

from __future__ import annotations

import uuid
from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional
from zoneinfo import ZoneInfo

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from svs.common.audit import utcnow
from svs.common.constants import (
    DEFAULT_ANNUAL_LEAVE_DAYS,
    DEFAULT_USER_COLOR,
    LEGACY_LEAVE_STATUSES,
    LEGACY_LEAVE_TYPES,
    MAX_ANNUAL_LEAVE_DAYS,
    LeaveStatus,
    LeaveType,
    TaskStatus,
    UserRole,
)

REFERENCE_DATE = datetime(2001, 1, 1, tzinfo=timezone.utc)

# Calendar days in legacy records are local midnights of the office.
OFFICE_TZ = ZoneInfo("Europe/Berlin")


def parse_timestamp(value: Any) -> Any:
    """Numeric reference-date seconds → aware datetime; anything else untouched."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return REFERENCE_DATE + timedelta(seconds=value)
    return value


def parse_day(value: Any) -> Any:
    """Reduce a stored instant to the office calendar day it falls on."""
    value = parse_timestamp(value)
    if isinstance(value, str) and len(value) > 10:
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(OFFICE_TZ)
        return value.date()
    return value


class _Record(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserRecord(_Record):
    id: uuid.UUID
    name: str
    role: UserRole
    pin: str = Field(..., max_length=72)
    color_name: str = DEFAULT_USER_COLOR
    annual_leave_days: int = Field(DEFAULT_ANNUAL_LEAVE_DAYS, ge=0, le=MAX_ANNUAL_LEAVE_DAYS)


class EmbeddedUserRecord(UserRecord):
    """Copy of the owner inside a leave request; the PIN hash may be missing."""

    pin: str = Field("", max_length=72)


class LeaveRequestRecord(_Record):
    id: uuid.UUID
    user: EmbeddedUserRecord
    start_date: date
    end_date: date
    type: LeaveType
    reason: str = ""
    status: LeaveStatus
    created_at: Optional[datetime] = None
    created_by_user_id: Optional[uuid.UUID] = None
    updated_at: Optional[datetime] = None
    updated_by_user_id: Optional[uuid.UUID] = None

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def legacy_day(cls, v: Any) -> Any:
        return parse_day(v)

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def legacy_timestamp(cls, v: Any) -> Any:
        return parse_timestamp(v)

    @field_validator("type", mode="before")
    @classmethod
    def legacy_type(cls, v: Any) -> Any:
        return LEGACY_LEAVE_TYPES.get(v, v) if isinstance(v, str) else v

    @field_validator("status", mode="before")
    @classmethod
    def legacy_status(cls, v: Any) -> Any:
        return LEGACY_LEAVE_STATUSES.get(v, v) if isinstance(v, str) else v

    @model_validator(mode="after")
    def fill_audit_defaults(self):
        if self.end_date < self.start_date:
            raise ValueError("endDate must not be before startDate.")
        if self.created_at is None:
            self.created_at = utcnow()
        if self.created_by_user_id is None:
            self.created_by_user_id = self.user.id
        return self


class TaskRecord(_Record):
    id: uuid.UUID
    title: str
    details: str = ""
    due_date: Optional[date] = None
    status: TaskStatus = TaskStatus.open
    assigned_user_id: uuid.UUID
    creator_user_id: uuid.UUID
    created_at: Optional[datetime] = None

    @field_validator("due_date", mode="before")
    @classmethod
    def legacy_day(cls, v: Any) -> Any:
        return parse_day(v)

    @field_validator("created_at", mode="before")
    @classmethod
    def legacy_timestamp(cls, v: Any) -> Any:
        return parse_timestamp(v)

    @model_validator(mode="after")
    def fill_created_at(self):
        if self.created_at is None:
            self.created_at = utcnow()
        return self


class SnapshotDocument(_Record):
    users: list[UserRecord] = []
    leave_requests: list[LeaveRequestRecord] = []
    tasks: list[TaskRecord] = []


class SnapshotImportResult(BaseModel):
    users: int
    leave_requests: int
    tasks: int
