"""Auth router — PIN login, login roster, current user profile."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from svs.auth.dependencies import get_current_user
from svs.auth.schemas import PinLoginRequest, TokenResponse
from svs.auth.service import authenticate, create_access_token
from svs.common.rate_limit import limiter
from svs.config import settings
from svs.database import get_db
from svs.users.models import User
from svs.users.schemas import LoginRosterEntry, UserOut

router = APIRouter(prefix="", tags=["auth"])


# ── POST /login — PIN login ─────────────────────────────────────────

@router.post("/login", response_model=TokenResponse)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def login(
    request: Request,
    body: PinLoginRequest,
    db: AsyncSession = Depends(get_db),
):
    user = await authenticate(db, body.user_id, body.pin)
    access_token, expires_in = create_access_token(user.id, user.role)
    return TokenResponse(
        access_token=access_token,
        expires_in=expires_in,
        user=UserOut.model_validate(user),
    )


# ── GET /users — login roster ───────────────────────────────────────

@router.get("/users", response_model=list[LoginRosterEntry])
async def login_roster(db: AsyncSession = Depends(get_db)):
    """Names and colors for the PIN screen. No authentication required."""
    result = await db.execute(select(User).order_by(User.name))
    return [LoginRosterEntry.model_validate(u) for u in result.scalars().all()]


# ── GET /me — Current user profile ─────────────────────────────────

@router.get("/me", response_model=UserOut)
async def me(user: User = Depends(get_current_user)):
    return UserOut.model_validate(user)
