"""Tasks router — board, create, update, toggle, delete, commission reports."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from svs.auth.dependencies import get_current_user, require_role
from svs.common.constants import UserRole
from svs.database import get_db
from svs.tasks.schemas import CommissionReport, TaskBoardOut, TaskCreate, TaskOut, TaskUpdate
from svs.tasks.service import TaskService
from svs.users.models import User

router = APIRouter(prefix="", tags=["tasks"])


@router.get("", response_model=TaskBoardOut)
async def task_board(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await TaskService.board(db, user)


@router.post("", response_model=TaskOut, status_code=201)
async def create_task(
    body: TaskCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await TaskService.create_task(db, body, user)


@router.post("/commission", response_model=TaskOut, status_code=201)
async def report_commission(
    body: CommissionReport,
    user: User = Depends(require_role(UserRole.admin, UserRole.expert)),
    db: AsyncSession = Depends(get_db),
):
    """Ask the admin to pay out a commission (admins and experts only)."""
    return await TaskService.report_commission(db, body, user)


@router.patch("/{task_id}", response_model=TaskOut)
async def update_task(
    task_id: uuid.UUID,
    body: TaskUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await TaskService.update_task(db, task_id, body, user)


@router.post("/{task_id}/toggle", response_model=TaskOut)
async def toggle_task(
    task_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await TaskService.toggle_status(db, task_id, user)


@router.delete("/{task_id}", status_code=204)
async def delete_task(
    task_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await TaskService.delete_task(db, task_id, user)
    return Response(status_code=204)
