"""Leave request repositories.

The lifecycle service depends only on :class:`LeaveStore`, so the same
business rules run against the database or an in-memory collection.
"""

from __future__ import annotations

import uuid
from typing import Optional, Protocol, Sequence

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from svs.leave.models import LeaveRequest
from svs.users.models import User


class LeaveStore(Protocol):
    async def lock_user(self, user_id: uuid.UUID) -> None:
        """Serialize writers for one user until the unit of work ends."""

    async def list_for_user(self, user_id: uuid.UUID) -> list[LeaveRequest]: ...

    async def list_all(self) -> list[LeaveRequest]: ...

    async def get(self, request_id: uuid.UUID) -> Optional[LeaveRequest]: ...

    async def add(self, request: LeaveRequest) -> None: ...

    async def save(self, request: LeaveRequest) -> None: ...

    async def delete(self, request: LeaveRequest) -> None: ...

    async def replace_all(self, requests: Sequence[LeaveRequest]) -> None: ...


class SqlLeaveStore:
    """LeaveStore backed by an async SQLAlchemy session.

    Writes are flushed, not committed; the session owner commits.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def lock_user(self, user_id: uuid.UUID) -> None:
        # Row lock on the owning user: concurrent create/update for the same
        # user wait here until this transaction ends. No-op on SQLite, which
        # serializes writers itself.
        await self.db.execute(
            select(User.id).where(User.id == user_id).with_for_update()
        )

    async def list_for_user(self, user_id: uuid.UUID) -> list[LeaveRequest]:
        result = await self.db.execute(
            select(LeaveRequest)
            .where(LeaveRequest.user_id == user_id)
            .order_by(LeaveRequest.start_date)
        )
        return list(result.scalars().all())

    async def list_all(self) -> list[LeaveRequest]:
        result = await self.db.execute(
            select(LeaveRequest).order_by(LeaveRequest.start_date)
        )
        return list(result.scalars().all())

    async def get(self, request_id: uuid.UUID) -> Optional[LeaveRequest]:
        return await self.db.get(LeaveRequest, request_id)

    async def add(self, request: LeaveRequest) -> None:
        self.db.add(request)
        await self.db.flush()

    async def save(self, request: LeaveRequest) -> None:
        self.db.add(request)
        await self.db.flush()

    async def delete(self, request: LeaveRequest) -> None:
        await self.db.delete(request)
        await self.db.flush()

    async def replace_all(self, requests: Sequence[LeaveRequest]) -> None:
        await self.db.execute(delete(LeaveRequest))
        self.db.add_all(list(requests))
        await self.db.flush()


class InMemoryLeaveStore:
    """Process-local LeaveStore; insertion order is preserved."""

    def __init__(self, requests: Sequence[LeaveRequest] = ()) -> None:
        self._requests: dict[uuid.UUID, LeaveRequest] = {
            r.id: r for r in requests
        }

    async def lock_user(self, user_id: uuid.UUID) -> None:
        return None

    async def list_for_user(self, user_id: uuid.UUID) -> list[LeaveRequest]:
        return [r for r in self._requests.values() if r.user_id == user_id]

    async def list_all(self) -> list[LeaveRequest]:
        return list(self._requests.values())

    async def get(self, request_id: uuid.UUID) -> Optional[LeaveRequest]:
        return self._requests.get(request_id)

    async def add(self, request: LeaveRequest) -> None:
        self._requests[request.id] = request

    async def save(self, request: LeaveRequest) -> None:
        self._requests[request.id] = request

    async def delete(self, request: LeaveRequest) -> None:
        self._requests.pop(request.id, None)

    async def replace_all(self, requests: Sequence[LeaveRequest]) -> None:
        self._requests = {r.id: r for r in requests}
