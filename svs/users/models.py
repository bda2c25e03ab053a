"""User ORM model."""

from __future__ import annotations

import uuid

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from svs.common.audit import AuditMixin
from svs.common.constants import (
    DEFAULT_ANNUAL_LEAVE_DAYS,
    DEFAULT_USER_COLOR,
    UserRole,
)
from svs.database import Base


def user_snapshot(
    user_id: uuid.UUID,
    name: str,
    role: UserRole,
    color_name: str,
    annual_leave_days: int,
) -> dict:
    return {
        "id": str(user_id),
        "name": name,
        "role": role.value,
        "color_name": color_name,
        "annual_leave_days": annual_leave_days,
    }


class User(Base, AuditMixin):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    role: Mapped[UserRole] = mapped_column(
        sa.Enum(UserRole, name="user_role"),
        nullable=False,
        default=UserRole.employee,
    )
    pin_hash: Mapped[str] = mapped_column(sa.String(60), nullable=False)
    color_name: Mapped[str] = mapped_column(
        sa.String(20), nullable=False, default=DEFAULT_USER_COLOR,
    )
    annual_leave_days: Mapped[int] = mapped_column(
        sa.Integer, nullable=False, default=DEFAULT_ANNUAL_LEAVE_DAYS,
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.admin

    def snapshot(self) -> dict:
        """Denormalized copy embedded into leave requests (never the PIN)."""
        return user_snapshot(
            self.id, self.name, self.role, self.color_name, self.annual_leave_days,
        )

    def __repr__(self) -> str:
        return f"<User {self.name} ({self.role.value})>"
