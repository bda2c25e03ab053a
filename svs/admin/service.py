"""Snapshot service — export and wholesale replacement of all stored data."""

from __future__ import annotations

import logging
import uuid
from typing import Iterable, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from svs.admin.schemas import (
    EmbeddedUserRecord,
    LeaveRequestRecord,
    SnapshotDocument,
    SnapshotImportResult,
    TaskRecord,
    UserRecord,
)
from svs.auth.security import ensure_pin_hash
from svs.common.exceptions import ConflictError
from svs.leave.models import LeaveRequest
from svs.leave.store import SqlLeaveStore
from svs.tasks.models import Task
from svs.users.models import User, user_snapshot

logger = logging.getLogger(__name__)


def _first_duplicate(ids: Iterable[uuid.UUID]) -> Optional[uuid.UUID]:
    seen: set[uuid.UUID] = set()
    for item_id in ids:
        if item_id in seen:
            return item_id
        seen.add(item_id)
    return None


class SnapshotService:

    @staticmethod
    async def export_snapshot(db: AsyncSession) -> SnapshotDocument:
        users = list((await db.execute(select(User).order_by(User.name))).scalars().all())
        pins = {u.id: u.pin_hash for u in users}
        store = SqlLeaveStore(db)
        tasks = (await db.execute(select(Task).order_by(Task.created_at))).scalars().all()

        return SnapshotDocument(
            users=[
                UserRecord(
                    id=u.id,
                    name=u.name,
                    role=u.role,
                    pin=u.pin_hash,
                    color_name=u.color_name,
                    annual_leave_days=u.annual_leave_days,
                )
                for u in users
            ],
            leave_requests=[
                LeaveRequestRecord(
                    id=r.id,
                    user=EmbeddedUserRecord(
                        **r.user_snapshot, pin=pins.get(r.user_id, ""),
                    ),
                    start_date=r.start_date,
                    end_date=r.end_date,
                    type=r.leave_type,
                    reason=r.reason,
                    status=r.status,
                    created_at=r.created_at,
                    created_by_user_id=r.created_by_user_id,
                    updated_at=r.updated_at,
                    updated_by_user_id=r.updated_by_user_id,
                )
                for r in await store.list_all()
            ],
            tasks=[TaskRecord.model_validate(t, from_attributes=True) for t in tasks],
        )

    @staticmethod
    async def import_snapshot(
        db: AsyncSession,
        document: SnapshotDocument,
    ) -> SnapshotImportResult:
        """Replace users, leave requests and tasks in one transaction."""
        for collection, ids in (
            ("users", (u.id for u in document.users)),
            ("leaveRequests", (r.id for r in document.leave_requests)),
            ("tasks", (t.id for t in document.tasks)),
        ):
            duplicate = _first_duplicate(ids)
            if duplicate is not None:
                raise ConflictError(f"{collection}.id", duplicate)

        await db.execute(delete(Task))
        await db.execute(delete(User))
        await db.flush()

        db.add_all([
            User(
                id=u.id,
                name=u.name,
                role=u.role,
                pin_hash=ensure_pin_hash(u.pin),
                color_name=u.color_name,
                annual_leave_days=u.annual_leave_days,
            )
            for u in document.users
        ])

        await SqlLeaveStore(db).replace_all([
            LeaveRequest(
                id=r.id,
                user_id=r.user.id,
                user_snapshot=user_snapshot(
                    r.user.id,
                    r.user.name,
                    r.user.role,
                    r.user.color_name,
                    r.user.annual_leave_days,
                ),
                start_date=r.start_date,
                end_date=r.end_date,
                leave_type=r.type,
                reason=r.reason,
                status=r.status,
                created_at=r.created_at,
                created_by_user_id=r.created_by_user_id,
                updated_at=r.updated_at,
                updated_by_user_id=r.updated_by_user_id,
            )
            for r in document.leave_requests
        ])

        db.add_all([
            Task(
                id=t.id,
                title=t.title,
                details=t.details,
                due_date=t.due_date,
                status=t.status,
                assigned_user_id=t.assigned_user_id,
                creator_user_id=t.creator_user_id,
                created_at=t.created_at,
            )
            for t in document.tasks
        ])
        await db.flush()

        result = SnapshotImportResult(
            users=len(document.users),
            leave_requests=len(document.leave_requests),
            tasks=len(document.tasks),
        )
        logger.info(
            "Snapshot imported: %d users, %d leave requests, %d tasks",
            result.users, result.leave_requests, result.tasks,
        )
        return result
