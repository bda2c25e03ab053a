"""Auth dependencies — JWT validation, RBAC enforcement."""

from __future__ import annotations

import uuid
from typing import Callable

from fastapi import Depends, Request
from jose import ExpiredSignatureError, JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from svs.auth.service import decode_access_token
from svs.common.constants import UserRole
from svs.common.exceptions import ForbiddenException, UnauthorizedException
from svs.database import get_db
from svs.users.models import User


def _extract_bearer(request: Request) -> str:
    """Extract Bearer token from Authorization header."""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise UnauthorizedException(detail="Missing or invalid Authorization header.")
    return auth_header[7:]


# ── Core dependency ─────────────────────────────────────────────────

async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> User:
    """Validate the JWT and return the live user row."""
    token = _extract_bearer(request)

    try:
        payload = decode_access_token(token)
    except ExpiredSignatureError:
        raise UnauthorizedException(detail="Token has expired.")
    except JWTError:
        raise UnauthorizedException(detail="Invalid token.")

    if payload.get("type") != "access":
        raise UnauthorizedException(detail="Invalid token type.")

    try:
        user_id = uuid.UUID(payload["sub"])
    except (KeyError, ValueError):
        raise UnauthorizedException(detail="Invalid token subject.")

    # The role in the token is informational; the stored role wins.
    user = await db.get(User, user_id)
    if user is None:
        raise UnauthorizedException(detail="User account not found.")
    request.state.user_id = str(user.id)
    return user


# ── Role-based dependency ───────────────────────────────────────────

def require_role(*allowed_roles: UserRole) -> Callable:
    """Return a FastAPI dependency that enforces role membership."""

    async def _check(user: User = Depends(get_current_user)) -> User:
        if user.role not in allowed_roles:
            raise ForbiddenException(
                detail=f"Role '{user.role.value}' is not permitted. Required: {[r.value for r in allowed_roles]}.",
            )
        return user

    return _check


require_admin = require_role(UserRole.admin)
