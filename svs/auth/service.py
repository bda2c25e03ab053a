"""Auth service — PIN verification and JWT issuing."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from svs.auth.security import verify_pin
from svs.common.constants import UserRole
from svs.common.exceptions import UnauthorizedException
from svs.config import settings
from svs.users.models import User

logger = logging.getLogger(__name__)


# ── JWT ─────────────────────────────────────────────────────────────

def create_access_token(user_id: uuid.UUID, role: UserRole) -> tuple[str, int]:
    """Return (encoded_jwt, expires_in_seconds)."""
    expires_in = settings.JWT_EXPIRY_HOURS * 3600
    payload = {
        "sub": str(user_id),
        "role": role.value,
        "type": "access",
        "exp": datetime.now(timezone.utc) + timedelta(hours=settings.JWT_EXPIRY_HOURS),
    }
    token = jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
    return token, expires_in


def decode_access_token(token: str) -> dict[str, Any]:
    """Decode and verify a token. Raises ``jose.JWTError`` when invalid or expired."""
    return jwt.decode(
        token,
        settings.JWT_SECRET,
        algorithms=[settings.JWT_ALGORITHM],
    )


# ── PIN login ───────────────────────────────────────────────────────

async def authenticate(db: AsyncSession, user_id: uuid.UUID, pin: str) -> User:
    """Return the user when *pin* matches, else raise 401.

    Unknown users and wrong PINs produce the same error.
    """
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalars().first()
    if user is None or not verify_pin(pin, user.pin_hash):
        logger.info("Failed PIN login", extra={"user_id": str(user_id)})
        raise UnauthorizedException(detail="Falsche PIN.")
    logger.info("PIN login", extra={"user_id": str(user.id)})
    return user
