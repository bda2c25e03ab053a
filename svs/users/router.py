"""Users router — roster management (admin) and balances."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from svs.auth.dependencies import get_current_user, require_admin
from svs.common.exceptions import ForbiddenException
from svs.database import get_db
from svs.leave.service import LeaveService
from svs.leave.store import SqlLeaveStore
from svs.users.models import User
from svs.users.schemas import BalanceSummary, UserCreate, UserOut, UserUpdate
from svs.users.service import UserService

router = APIRouter(prefix="", tags=["users"])


@router.get("", response_model=list[UserOut])
async def list_users(
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await UserService.list_users(db)


@router.get("/{user_id}", response_model=UserOut)
async def get_user(
    user_id: uuid.UUID,
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await UserService.get_user(db, user_id)


@router.post("", response_model=UserOut, status_code=201)
async def create_user(
    body: UserCreate,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await UserService.create_user(db, body)


@router.patch("/{user_id}", response_model=UserOut)
async def update_user(
    user_id: uuid.UUID,
    body: UserUpdate,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Update a user; their leave requests pick up the new name/color/allowance."""
    return await UserService.update_user(db, user_id, body)


@router.delete("/{user_id}", status_code=204)
async def delete_user(
    user_id: uuid.UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    await UserService.delete_user(db, user_id, admin)
    return Response(status_code=204)


@router.post("/{user_id}/reset-pin", response_model=UserOut)
async def reset_pin(
    user_id: uuid.UUID,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Reset the PIN to the default ``0000``."""
    return await UserService.reset_pin(db, user_id)


@router.get("/{user_id}/balance", response_model=BalanceSummary)
async def user_balance(
    user_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if user_id != user.id and not user.is_admin:
        raise ForbiddenException()
    target = await UserService.get_user(db, user_id)
    return await LeaveService(SqlLeaveStore(db)).balance_summary(target)
