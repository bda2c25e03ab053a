"""Leave lifecycle service — create, update, status transitions, deletion.

Business logic:
  - Vacation requests are gated by the *reserved* balance (pending + approved)
  - Same-type, non-rejected requests of one user must not overlap
  - Sick leave is recorded as approved immediately and stays approved
  - Permission checks live inside every mutation, not only in the UI

Every operation returns a :class:`LeaveOutcome`; expected rule violations
are never raised. Messages are German end-user text for direct display.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime
from typing import Callable, Optional, Union

from svs.common.audit import utcnow
from svs.common.constants import STATUS_LABELS, LeaveStatus, LeaveType
from svs.leave import balance
from svs.leave.holidays import DayLike, to_day, working_days
from svs.leave.models import LeaveRequest
from svs.leave.overlap import find_overlap, ranges_overlap
from svs.leave.schemas import (
    LeaveErrorKind,
    LeaveOutcome,
    LeaveRequestOut,
    LeaveRequestUpdate,
)
from svs.leave.store import LeaveStore
from svs.users.models import User
from svs.users.schemas import BalanceSummary, UserBrief

logger = logging.getLogger(__name__)

# Either a live user row or the snapshot embedded in a request.
BalanceOwner = Union[User, UserBrief]

MSG_NO_ACTIVE_USER = "Kein Benutzer angemeldet."
MSG_INSUFFICIENT_BALANCE = (
    "Nicht genügend Resturlaub. Verfügbar: {available} Tag(e), "
    "angefragt: {requested} Tag(e)."
)
MSG_SICK_OVERLAP_DAY = "Für diesen Tag haben Sie sich bereits krank gemeldet."
MSG_SICK_OVERLAP_RANGE = "In diesem Zeitraum haben Sie sich bereits krank gemeldet."
MSG_VACATION_OVERLAP = (
    "Dieser Zeitraum überschneidet sich mit einem bestehenden Urlaubsantrag."
)
MSG_UPDATE_OVERLAP = (
    "Dieser Zeitraum überschneidet sich mit einer bestehenden Abwesenheit. "
    "Änderungen wurden nicht gespeichert."
)
MSG_NOT_FOUND = "Der Antrag konnte nicht gefunden werden."
MSG_FORBIDDEN = "Sie dürfen diesen Antrag nicht bearbeiten."
MSG_FORBIDDEN_OTHER_USER = "Nur Admins dürfen Anträge für andere Mitarbeiter anlegen."
MSG_FORBIDDEN_APPROVE = "Nur Admins dürfen Urlaub direkt genehmigen."
MSG_INVALID_RANGE = "Das Enddatum darf nicht vor dem Startdatum liegen."
MSG_SICK_ALWAYS_APPROVED = "Krankmeldungen sind immer genehmigt."

MSG_CREATED_SICK = "Krankmeldung erfolgreich gespeichert."
MSG_CREATED_VACATION_APPROVED = "Urlaub erfolgreich eingetragen."
MSG_CREATED_VACATION_PENDING = "Urlaubsantrag erfolgreich erstellt."
MSG_UPDATED = "Änderungen gespeichert."
MSG_STATUS_UPDATED = "Status aktualisiert."
MSG_DELETED = "Antrag gelöscht."


def _failure(error: LeaveErrorKind, message: str, **kwargs) -> LeaveOutcome:
    return LeaveOutcome.failure(error, message, **kwargs)


class LeaveService:
    """Leave request lifecycle on top of an injected :class:`LeaveStore`."""

    def __init__(
        self,
        store: LeaveStore,
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store
        self._clock = clock

    # ─────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    def snapshot_owner(req: LeaveRequest) -> UserBrief:
        """The user as embedded in the request."""
        return UserBrief.model_validate(req.user_snapshot)

    @staticmethod
    def build_response(req: LeaveRequest) -> LeaveRequestOut:
        return LeaveRequestOut(
            id=req.id,
            user_id=req.user_id,
            user=LeaveService.snapshot_owner(req),
            start_date=req.start_date,
            end_date=req.end_date,
            leave_type=req.leave_type,
            reason=req.reason or "",
            status=req.status,
            status_label=STATUS_LABELS[req.status],
            working_days=balance.request_days(req),
            created_at=req.created_at,
            created_by_user_id=req.created_by_user_id,
            updated_at=req.updated_at,
            updated_by_user_id=req.updated_by_user_id,
        )

    @staticmethod
    def can_edit_or_delete(req: LeaveRequest, acting_user: Optional[User]) -> bool:
        """Admins always; others only their own pending vacation requests."""
        if acting_user is None:
            return False
        if acting_user.is_admin:
            return True
        if acting_user.id != req.user_id:
            return False
        return req.leave_type == LeaveType.vacation and req.status == LeaveStatus.pending

    @staticmethod
    def _overlap_message(leave_type: LeaveType, start: date, end: date) -> str:
        if leave_type == LeaveType.sick:
            return MSG_SICK_OVERLAP_DAY if start == end else MSG_SICK_OVERLAP_RANGE
        return MSG_VACATION_OVERLAP

    def _stamp(self, req: LeaveRequest, actor: User) -> None:
        req.updated_at = self._clock()
        req.updated_by_user_id = actor.id

    def _check_balance(
        self,
        owner: BalanceOwner,
        existing: list[LeaveRequest],
        start: date,
        end: date,
        excluding_request_id: Optional[uuid.UUID] = None,
    ) -> Optional[LeaveOutcome]:
        requested = working_days(start, end)
        available = balance.available_vacation_days_for_requests(
            owner, existing, excluding_request_id,
        )
        if requested > available:
            logger.info(
                "Vacation refused for user %s: requested %d, available %d",
                owner.id, requested, available,
            )
            return _failure(
                LeaveErrorKind.insufficient_balance,
                MSG_INSUFFICIENT_BALANCE.format(available=available, requested=requested),
                requested_days=requested,
                available_days=available,
            )
        return None

    # ─────────────────────────────────────────────────────────────────
    # Balance queries
    # ─────────────────────────────────────────────────────────────────

    async def used_vacation_days(self, user: BalanceOwner) -> int:
        return balance.used_vacation_days(user, await self.store.list_for_user(user.id))

    async def reserved_vacation_days(
        self,
        user: BalanceOwner,
        excluding_request_id: Optional[uuid.UUID] = None,
    ) -> int:
        return balance.reserved_vacation_days(
            user, await self.store.list_for_user(user.id), excluding_request_id,
        )

    async def remaining_leave_days(self, user: BalanceOwner) -> int:
        return balance.remaining_leave_days(user, await self.store.list_for_user(user.id))

    async def available_vacation_days_for_requests(
        self,
        user: BalanceOwner,
        excluding_request_id: Optional[uuid.UUID] = None,
    ) -> int:
        return balance.available_vacation_days_for_requests(
            user, await self.store.list_for_user(user.id), excluding_request_id,
        )

    async def balance_summary(self, user: BalanceOwner) -> BalanceSummary:
        requests = await self.store.list_for_user(user.id)
        return BalanceSummary(
            user_id=user.id,
            annual_leave_days=user.annual_leave_days,
            used_days=balance.used_vacation_days(user, requests),
            reserved_days=balance.reserved_vacation_days(user, requests),
            remaining_days=balance.remaining_leave_days(user, requests),
            available_days=balance.available_vacation_days_for_requests(user, requests),
        )

    async def has_overlap(
        self,
        user_id: uuid.UUID,
        start: DayLike,
        end: DayLike,
        leave_type: LeaveType,
        excluding_request_id: Optional[uuid.UUID] = None,
    ) -> bool:
        existing = await self.store.list_for_user(user_id)
        return find_overlap(
            existing, user_id, start, end, leave_type, excluding_request_id,
        ) is not None

    # ─────────────────────────────────────────────────────────────────
    # Reads
    # ─────────────────────────────────────────────────────────────────

    async def get_request(self, request_id: uuid.UUID) -> Optional[LeaveRequest]:
        return await self.store.get(request_id)

    async def requests_for_user(self, user_id: uuid.UUID) -> list[LeaveRequestOut]:
        """A user's requests, latest start date first."""
        requests = await self.store.list_for_user(user_id)
        requests.sort(key=lambda r: r.start_date, reverse=True)
        return [self.build_response(r) for r in requests]

    async def list_requests(
        self,
        *,
        status: Optional[LeaveStatus] = None,
        leave_type: Optional[LeaveType] = None,
        user_id: Optional[uuid.UUID] = None,
        name: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[LeaveRequestOut]:
        """Admin console listing, latest start date first.

        *name* matches part of the owner's name, ignoring case. The
        *date_from* / *date_to* window keeps requests touching it; either
        end may be open.
        """
        needle = name.strip().casefold() if name else ""
        requests = [
            r for r in await self.store.list_all()
            if (status is None or r.status == status)
            and (leave_type is None or r.leave_type == leave_type)
            and (user_id is None or r.user_id == user_id)
            and needle in str(r.user_snapshot.get("name", "")).casefold()
            and ranges_overlap(
                r.start_date, r.end_date,
                date_from or date.min, date_to or date.max,
            )
        ]
        requests.sort(key=lambda r: r.start_date, reverse=True)
        return [self.build_response(r) for r in requests]

    async def requests_on(self, day: DayLike) -> list[LeaveRequestOut]:
        """All requests whose inclusive range covers *day*."""
        target = to_day(day)
        return [
            self.build_response(r)
            for r in await self.store.list_all()
            if r.covers(target)
        ]

    # ─────────────────────────────────────────────────────────────────
    # Create
    # ─────────────────────────────────────────────────────────────────

    async def create_leave_request(
        self,
        start: DayLike,
        end: DayLike,
        leave_type: LeaveType,
        *,
        requesting_user: Optional[User],
        target_user: Optional[User] = None,
        approve_immediately: bool = False,
        reason: str = "",
    ) -> LeaveOutcome:
        """File a request for *target_user* (defaults to the requester).

        Checks run in order: actor, permission, date range, vacation
        balance, same-type overlap. Nothing is written on failure.
        """
        if requesting_user is None:
            return _failure(LeaveErrorKind.no_active_user, MSG_NO_ACTIVE_USER)

        owner = target_user or requesting_user
        if owner.id != requesting_user.id and not requesting_user.is_admin:
            return _failure(LeaveErrorKind.forbidden, MSG_FORBIDDEN_OTHER_USER)
        if approve_immediately and not requesting_user.is_admin:
            return _failure(LeaveErrorKind.forbidden, MSG_FORBIDDEN_APPROVE)

        start_day, end_day = to_day(start), to_day(end)
        if end_day < start_day:
            return _failure(LeaveErrorKind.invalid_range, MSG_INVALID_RANGE)

        await self.store.lock_user(owner.id)
        existing = await self.store.list_for_user(owner.id)

        if leave_type == LeaveType.vacation:
            refused = self._check_balance(owner, existing, start_day, end_day)
            if refused is not None:
                return refused

        if find_overlap(existing, owner.id, start_day, end_day, leave_type) is not None:
            logger.info(
                "%s request for user %s overlaps an existing one",
                leave_type.value, owner.id,
            )
            return _failure(
                LeaveErrorKind.overlapping_request,
                self._overlap_message(leave_type, start_day, end_day),
            )

        if leave_type == LeaveType.sick or approve_immediately:
            status = LeaveStatus.approved
        else:
            status = LeaveStatus.pending

        req = LeaveRequest(
            id=uuid.uuid4(),
            user_id=owner.id,
            user_snapshot=owner.snapshot(),
            start_date=start_day,
            end_date=end_day,
            leave_type=leave_type,
            reason=reason,
            status=status,
            created_at=self._clock(),
            created_by_user_id=requesting_user.id,
        )
        await self.store.add(req)
        logger.info(
            "Leave request created",
            extra={"leave_request_id": str(req.id), "user_id": str(owner.id)},
        )

        if leave_type == LeaveType.sick:
            message = MSG_CREATED_SICK
        elif status == LeaveStatus.approved:
            message = MSG_CREATED_VACATION_APPROVED
        else:
            message = MSG_CREATED_VACATION_PENDING
        return LeaveOutcome.success(message, self.build_response(req))

    async def create_own_leave_request(
        self,
        start: DayLike,
        end: DayLike,
        leave_type: LeaveType,
        *,
        requesting_user: Optional[User],
        reason: str = "",
    ) -> LeaveOutcome:
        """Self-service: the requester files for themselves, never auto-approved."""
        return await self.create_leave_request(
            start,
            end,
            leave_type,
            requesting_user=requesting_user,
            reason=reason,
        )

    # ─────────────────────────────────────────────────────────────────
    # Update
    # ─────────────────────────────────────────────────────────────────

    async def update_leave_request(
        self,
        request_id: uuid.UUID,
        changes: LeaveRequestUpdate,
        *,
        actor: Optional[User],
        owner: Optional[User] = None,
    ) -> LeaveOutcome:
        """Replace dates, type, reason (and for admins, status) of a request.

        *owner* is the live user row, when it still exists; otherwise the
        balance is computed from the request's embedded snapshot. Either
        every check passes and the whole change is applied, or nothing
        changes.
        """
        if actor is None:
            return _failure(LeaveErrorKind.no_active_user, MSG_NO_ACTIVE_USER)

        req = await self.store.get(request_id)
        if req is None:
            return _failure(LeaveErrorKind.not_found, MSG_NOT_FOUND)
        if not self.can_edit_or_delete(req, actor):
            return _failure(LeaveErrorKind.forbidden, MSG_FORBIDDEN)
        if changes.end_date < changes.start_date:
            return _failure(LeaveErrorKind.invalid_range, MSG_INVALID_RANGE)

        if changes.leave_type == LeaveType.sick:
            status = LeaveStatus.approved
        elif actor.is_admin and changes.status is not None:
            status = changes.status
        else:
            status = req.status

        balance_owner: BalanceOwner = owner if owner is not None else self.snapshot_owner(req)

        await self.store.lock_user(req.user_id)
        existing = await self.store.list_for_user(req.user_id)

        # A rejected request neither reserves days nor blocks others
        if status != LeaveStatus.rejected:
            if changes.leave_type == LeaveType.vacation:
                refused = self._check_balance(
                    balance_owner, existing, changes.start_date, changes.end_date,
                    excluding_request_id=req.id,
                )
                if refused is not None:
                    return refused

            if find_overlap(
                existing, req.user_id, changes.start_date, changes.end_date,
                changes.leave_type, excluding_request_id=req.id,
            ) is not None:
                return _failure(LeaveErrorKind.overlapping_request, MSG_UPDATE_OVERLAP)

        req.start_date = changes.start_date
        req.end_date = changes.end_date
        req.leave_type = changes.leave_type
        req.reason = changes.reason
        req.status = status
        if owner is not None:
            req.user_snapshot = owner.snapshot()
        self._stamp(req, actor)
        await self.store.save(req)
        logger.info(
            "Leave request updated",
            extra={"leave_request_id": str(req.id), "user_id": str(actor.id)},
        )
        return LeaveOutcome.success(MSG_UPDATED, self.build_response(req))

    # ─────────────────────────────────────────────────────────────────
    # Status transition
    # ─────────────────────────────────────────────────────────────────

    async def update_status(
        self,
        request_id: uuid.UUID,
        new_status: LeaveStatus,
        *,
        actor: Optional[User],
    ) -> LeaveOutcome:
        """Admin approve / reject / reset. Balance and overlap are not re-checked."""
        if actor is None:
            return _failure(LeaveErrorKind.no_active_user, MSG_NO_ACTIVE_USER)
        if not actor.is_admin:
            return _failure(LeaveErrorKind.forbidden, MSG_FORBIDDEN)

        req = await self.store.get(request_id)
        if req is None:
            return _failure(LeaveErrorKind.not_found, MSG_NOT_FOUND)
        if req.leave_type == LeaveType.sick and new_status != LeaveStatus.approved:
            return _failure(LeaveErrorKind.invalid_transition, MSG_SICK_ALWAYS_APPROVED)

        previous = req.status
        req.status = new_status
        self._stamp(req, actor)
        await self.store.save(req)
        logger.info(
            "Leave request status %s -> %s", previous.value, new_status.value,
            extra={"leave_request_id": str(req.id), "user_id": str(actor.id)},
        )
        return LeaveOutcome.success(MSG_STATUS_UPDATED, self.build_response(req))

    # ─────────────────────────────────────────────────────────────────
    # Delete
    # ─────────────────────────────────────────────────────────────────

    async def delete_leave_request(
        self,
        request_id: uuid.UUID,
        *,
        actor: Optional[User],
    ) -> LeaveOutcome:
        if actor is None:
            return _failure(LeaveErrorKind.no_active_user, MSG_NO_ACTIVE_USER)

        req = await self.store.get(request_id)
        if req is None:
            return _failure(LeaveErrorKind.not_found, MSG_NOT_FOUND)
        if not self.can_edit_or_delete(req, actor):
            return _failure(LeaveErrorKind.forbidden, MSG_FORBIDDEN)

        await self.store.delete(req)
        logger.info(
            "Leave request deleted",
            extra={"leave_request_id": str(request_id), "user_id": str(actor.id)},
        )
        return LeaveOutcome.success(MSG_DELETED)

    # ─────────────────────────────────────────────────────────────────
    # User snapshot fan-out
    # ─────────────────────────────────────────────────────────────────

    async def resync_user_snapshot(self, user: User) -> int:
        """Copy the user's current state into all of their requests."""
        snapshot = user.snapshot()
        count = 0
        for req in await self.store.list_for_user(user.id):
            if req.user_snapshot != snapshot:
                req.user_snapshot = snapshot
                await self.store.save(req)
                count += 1
        logger.info("Re-synced %d leave requests for user %s", count, user.id)
        return count
