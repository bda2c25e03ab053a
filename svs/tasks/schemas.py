"""Task Pydantic v2 schemas."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from svs.common.constants import PayoutMethod, TaskStatus


class TaskCreate(BaseModel):
    """New task. ``assigned_user_id`` is honoured for admins only."""

    title: str = Field(..., min_length=1, max_length=200)
    details: str = Field("", max_length=5000)
    due_date: Optional[date] = None
    assigned_user_id: Optional[uuid.UUID] = None

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Title must not be blank.")
        return v


class TaskUpdate(BaseModel):
    """Partial update — only provided fields change."""

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    details: Optional[str] = Field(None, max_length=5000)
    due_date: Optional[date] = None
    status: Optional[TaskStatus] = None
    assigned_user_id: Optional[uuid.UUID] = None


class TaskOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    details: str
    due_date: Optional[date] = None
    status: TaskStatus
    assigned_user_id: uuid.UUID
    creator_user_id: uuid.UUID
    created_at: datetime


class TaskBoardOut(BaseModel):
    """Task lists for the caller; ``others_*`` are filled for admins only."""

    mine_open: list[TaskOut] = []
    mine_done: list[TaskOut] = []
    others_open: list[TaskOut] = []
    others_done: list[TaskOut] = []


class CommissionReport(BaseModel):
    """Commission to be paid out by an admin.

    Fields are checked by :meth:`TaskService.report_commission` so that each
    problem comes back with its own German message.
    """

    customer_name: str = Field("", max_length=200)
    customer_address: str = Field("", max_length=500)
    amount: str = Field("", max_length=32, description="e.g. 50,00 or 50.00 €")
    payout_method: PayoutMethod = PayoutMethod.paypal
    paypal_address: str = Field("", max_length=200)
    iban: str = Field("", max_length=64)

    @field_validator("amount", mode="before")
    @classmethod
    def amount_as_text(cls, v: Any) -> Any:
        if isinstance(v, (int, float, Decimal)) and not isinstance(v, bool):
            return str(v)
        return v
