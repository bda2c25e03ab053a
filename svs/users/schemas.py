"""User Pydantic v2 schemas."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from svs.common.constants import (
    DEFAULT_ANNUAL_LEAVE_DAYS,
    DEFAULT_USER_COLOR,
    MAX_ANNUAL_LEAVE_DAYS,
    ROLE_LABELS,
    USER_COLORS,
    UserRole,
)


def _check_color(value: Optional[str]) -> Optional[str]:
    if value is not None and value not in USER_COLORS:
        raise ValueError(f"Unknown color '{value}'. Allowed: {', '.join(USER_COLORS)}.")
    return value


def _check_name(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip()
    if not value:
        raise ValueError("Name must not be blank.")
    return value


def _check_pin(value: Optional[str]) -> Optional[str]:
    if value is not None and not value.strip():
        raise ValueError("PIN must not be empty.")
    return value


class UserBrief(BaseModel):
    """Denormalized user embedded in leave requests."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    role: UserRole
    color_name: str = DEFAULT_USER_COLOR
    annual_leave_days: int = DEFAULT_ANNUAL_LEAVE_DAYS


class LoginRosterEntry(BaseModel):
    """Public entry on the PIN login screen."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    color_name: str


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    role: UserRole
    color_name: str
    annual_leave_days: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @computed_field
    @property
    def role_label(self) -> str:
        return ROLE_LABELS[self.role]


class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    role: UserRole = UserRole.employee
    pin: str = Field(..., min_length=1, max_length=32)
    color_name: str = DEFAULT_USER_COLOR
    annual_leave_days: int = Field(
        DEFAULT_ANNUAL_LEAVE_DAYS, ge=0, le=MAX_ANNUAL_LEAVE_DAYS,
    )

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return _check_name(v)

    @field_validator("color_name")
    @classmethod
    def known_color(cls, v: Optional[str]) -> Optional[str]:
        return _check_color(v)

    @field_validator("pin")
    @classmethod
    def non_blank_pin(cls, v: Optional[str]) -> Optional[str]:
        return _check_pin(v)


class UserUpdate(BaseModel):
    """Partial update — only provided fields change."""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    role: Optional[UserRole] = None
    pin: Optional[str] = Field(None, min_length=1, max_length=32)
    color_name: Optional[str] = None
    annual_leave_days: Optional[int] = Field(None, ge=0, le=MAX_ANNUAL_LEAVE_DAYS)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: Optional[str]) -> Optional[str]:
        return _check_name(v)

    @field_validator("color_name")
    @classmethod
    def known_color(cls, v: Optional[str]) -> Optional[str]:
        return _check_color(v)

    @field_validator("pin")
    @classmethod
    def non_blank_pin(cls, v: Optional[str]) -> Optional[str]:
        return _check_pin(v)


class BalanceSummary(BaseModel):
    """Vacation figures for one user."""

    user_id: uuid.UUID
    annual_leave_days: int
    used_days: int
    reserved_days: int
    remaining_days: int
    available_days: int
