"""Admin router — full data snapshot export / import."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from svs.admin.schemas import SnapshotDocument, SnapshotImportResult
from svs.admin.service import SnapshotService
from svs.auth.dependencies import require_admin
from svs.database import get_db
from svs.users.models import User

router = APIRouter(prefix="", tags=["admin"])


@router.get("/snapshot", response_model=SnapshotDocument)
async def export_snapshot(
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """All users (with PIN hashes), leave requests and tasks."""
    return await SnapshotService.export_snapshot(db)


@router.put("/snapshot", response_model=SnapshotImportResult)
async def import_snapshot(
    body: SnapshotDocument,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Replace every user, leave request and task with *body*."""
    return await SnapshotService.import_snapshot(db, body)
