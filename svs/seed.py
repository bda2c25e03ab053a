"""Default roster for a fresh database."""

from __future__ import annotations

import logging
import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from svs.auth.security import hash_pin
from svs.common.constants import DEFAULT_ANNUAL_LEAVE_DAYS, UserRole
from svs.users.models import User

logger = logging.getLogger(__name__)

DEFAULT_USERS: list[tuple[str, UserRole, str, str]] = [
    ("Hussein", UserRole.admin, "1111", "blue"),
    ("Ahmet", UserRole.employee, "2222", "green"),
    ("Hadi", UserRole.employee, "3333", "orange"),
    ("Osama", UserRole.employee, "4444", "purple"),
]


async def seed_default_users(db: AsyncSession) -> int:
    """Insert the default users when the user table is empty. Returns the count added."""
    existing = (await db.execute(select(func.count()).select_from(User))).scalar_one()
    if existing:
        return 0

    db.add_all([
        User(
            id=uuid.uuid4(),
            name=name,
            role=role,
            pin_hash=hash_pin(pin),
            color_name=color,
            annual_leave_days=DEFAULT_ANNUAL_LEAVE_DAYS,
        )
        for name, role, pin, color in DEFAULT_USERS
    ])
    await db.flush()
    logger.info("Seeded %d default users", len(DEFAULT_USERS))
    return len(DEFAULT_USERS)
