"""Task ORM model."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from svs.common.audit import utcnow
from svs.common.constants import TaskStatus
from svs.database import Base


class Task(Base):
    __tablename__ = "tasks"

    id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    title: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    details: Mapped[str] = mapped_column(sa.Text, nullable=False, default="")
    due_date: Mapped[Optional[date]] = mapped_column(sa.Date, nullable=True)
    status: Mapped[TaskStatus] = mapped_column(
        sa.Enum(TaskStatus, name="task_status"),
        nullable=False,
        default=TaskStatus.open,
    )
    # Plain ids: tasks outlive deleted users, like leave requests do.
    assigned_user_id: Mapped[uuid.UUID] = mapped_column(sa.Uuid, nullable=False, index=True)
    creator_user_id: Mapped[uuid.UUID] = mapped_column(sa.Uuid, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    def __repr__(self) -> str:
        return f"<Task {self.title!r} ({self.status.value})>"
