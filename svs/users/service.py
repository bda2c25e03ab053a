"""User service layer — roster CRUD, PIN reset, snapshot fan-out.

Leave requests embed a copy of their owner; every update here re-syncs
that copy through :meth:`LeaveService.resync_user_snapshot`. Deleting a
user leaves their requests in place with the last snapshot.
"""

from __future__ import annotations

import logging
import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from svs.auth.security import hash_pin
from svs.common.constants import DEFAULT_RESET_PIN, UNKNOWN_USER_NAME
from svs.common.exceptions import ForbiddenException, NotFoundException
from svs.leave.service import LeaveService
from svs.leave.store import SqlLeaveStore
from svs.users.models import User
from svs.users.schemas import UserCreate, UserUpdate

logger = logging.getLogger(__name__)


class UserService:
    """Async CRUD operations for users."""

    # ── Reads ───────────────────────────────────────────────────────

    @staticmethod
    async def list_users(db: AsyncSession) -> list[User]:
        result = await db.execute(select(User).order_by(User.name))
        return list(result.scalars().all())

    @staticmethod
    async def get_user(db: AsyncSession, user_id: uuid.UUID) -> User:
        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundException("User", str(user_id))
        return user

    @staticmethod
    async def user_name(db: AsyncSession, user_id: Optional[uuid.UUID]) -> str:
        """Display name for *user_id*, or ``Unbekannt`` when gone."""
        if user_id is None:
            return UNKNOWN_USER_NAME
        user = await db.get(User, user_id)
        return user.name if user is not None else UNKNOWN_USER_NAME

    # ── Writes ──────────────────────────────────────────────────────

    @staticmethod
    async def create_user(db: AsyncSession, data: UserCreate) -> User:
        user = User(
            id=uuid.uuid4(),
            name=data.name,
            role=data.role,
            pin_hash=hash_pin(data.pin),
            color_name=data.color_name,
            annual_leave_days=data.annual_leave_days,
        )
        db.add(user)
        await db.flush()
        await db.refresh(user)
        logger.info("User created", extra={"user_id": str(user.id)})
        return user

    @staticmethod
    async def update_user(
        db: AsyncSession,
        user_id: uuid.UUID,
        data: UserUpdate,
    ) -> User:
        """Apply provided fields, then refresh the user's leave snapshots."""
        user = await UserService.get_user(db, user_id)
        changes = data.model_dump(exclude_unset=True)
        pin = changes.pop("pin", None)
        if pin is not None:
            user.pin_hash = hash_pin(pin)
        for field, value in changes.items():
            if value is not None:
                setattr(user, field, value)
        await db.flush()
        await db.refresh(user)

        await LeaveService(SqlLeaveStore(db)).resync_user_snapshot(user)
        return user

    @staticmethod
    async def delete_user(db: AsyncSession, user_id: uuid.UUID, actor: User) -> None:
        if user_id == actor.id:
            raise ForbiddenException(detail="Sie können Ihr eigenes Konto nicht löschen.")
        user = await UserService.get_user(db, user_id)
        await db.delete(user)
        await db.flush()
        logger.info("User deleted", extra={"user_id": str(user_id)})

    @staticmethod
    async def reset_pin(db: AsyncSession, user_id: uuid.UUID) -> User:
        user = await UserService.get_user(db, user_id)
        user.pin_hash = hash_pin(DEFAULT_RESET_PIN)
        await db.flush()
        logger.info("PIN reset", extra={"user_id": str(user_id)})
        return user
