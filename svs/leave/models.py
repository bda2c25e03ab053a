"""LeaveRequest ORM model."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from svs.common.audit import utcnow
from svs.common.constants import LeaveStatus, LeaveType
from svs.database import Base


class LeaveRequest(Base):
    """A vacation or sick-leave entry.

    ``user_id`` is deliberately not a foreign key: deleting a user keeps
    their requests, which still carry ``user_snapshot`` (the user's state
    at creation / last re-sync).
    """

    __tablename__ = "leave_requests"
    __table_args__ = (
        sa.CheckConstraint("end_date >= start_date", name="ck_leave_request_range"),
        sa.Index("ix_leave_requests_user_type", "user_id", "leave_type"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(sa.Uuid, nullable=False)
    user_snapshot: Mapped[dict] = mapped_column(sa.JSON, nullable=False)
    start_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    end_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    leave_type: Mapped[LeaveType] = mapped_column(
        sa.Enum(LeaveType, name="leave_type"), nullable=False,
    )
    reason: Mapped[str] = mapped_column(sa.Text, nullable=False, default="")
    status: Mapped[LeaveStatus] = mapped_column(
        sa.Enum(LeaveStatus, name="leave_status"),
        nullable=False,
        default=LeaveStatus.pending,
    )

    # Audit
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=utcnow,
    )
    created_by_user_id: Mapped[uuid.UUID] = mapped_column(sa.Uuid, nullable=False)
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        sa.DateTime(timezone=True),
    )
    updated_by_user_id: Mapped[Optional[uuid.UUID]] = mapped_column(sa.Uuid)

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    def __repr__(self) -> str:
        return (
            f"<LeaveRequest {self.leave_type.value} {self.start_date}..{self.end_date}"
            f" {self.status.value} user={self.user_id}>"
        )
