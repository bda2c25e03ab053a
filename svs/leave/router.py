"""Leave router — requests, status transitions, balance, calendar, holidays.

All endpoints require authentication. Business-rule failures come back from
:class:`LeaveService` as outcomes and are raised here as problem documents.
"""

from __future__ import annotations

import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from svs.auth.dependencies import get_current_user
from svs.common.constants import LeaveStatus, LeaveType
from svs.common.exceptions import (
    AppException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from svs.common.pagination import PaginatedResponse, PaginationParams, paginate
from svs.database import get_db
from svs.leave.holidays import holiday_name, holidays_for_year, is_working_day, working_days
from svs.leave.models import LeaveRequest
from svs.leave.schemas import (
    CalendarDayOut,
    HolidayOut,
    LeaveErrorKind,
    LeaveOutcome,
    LeaveRequestCreate,
    LeaveRequestOut,
    LeaveRequestUpdate,
    LeaveStatusUpdate,
    PermissionOut,
    WorkingDaysOut,
)
from svs.leave.service import MSG_NOT_FOUND, LeaveService
from svs.leave.store import SqlLeaveStore
from svs.users.models import User
from svs.users.schemas import BalanceSummary

router = APIRouter(prefix="", tags=["leave"])

_STATUS_CODES: dict[LeaveErrorKind, int] = {
    LeaveErrorKind.not_found: 404,
    LeaveErrorKind.forbidden: 403,
    LeaveErrorKind.no_active_user: 401,
}

_TITLES: dict[LeaveErrorKind, str] = {
    LeaveErrorKind.insufficient_balance: "Insufficient Balance",
    LeaveErrorKind.overlapping_request: "Overlapping Request",
    LeaveErrorKind.not_found: "Leave Request Not Found",
    LeaveErrorKind.no_active_user: "No Active User",
    LeaveErrorKind.forbidden: "Forbidden",
    LeaveErrorKind.invalid_range: "Invalid Date Range",
    LeaveErrorKind.invalid_transition: "Invalid Status Transition",
}


def get_leave_service(db: AsyncSession = Depends(get_db)) -> LeaveService:
    return LeaveService(SqlLeaveStore(db))


def _unwrap(outcome: LeaveOutcome) -> LeaveOutcome:
    """Return a successful outcome or raise it as an ``AppException``."""
    if outcome.ok:
        return outcome
    kind = outcome.error
    errors = None
    if kind == LeaveErrorKind.insufficient_balance:
        errors = {
            "requested_days": outcome.requested_days,
            "available_days": outcome.available_days,
        }
    raise AppException(
        status_code=_STATUS_CODES.get(kind, 422),
        error_type=kind.value.replace("_", "-"),
        title=_TITLES[kind],
        detail=outcome.message,
        errors=errors,
    )


async def _load_request(service: LeaveService, request_id: uuid.UUID) -> LeaveRequest:
    req = await service.get_request(request_id)
    if req is None:
        raise AppException(
            status_code=404,
            error_type="not-found",
            title=_TITLES[LeaveErrorKind.not_found],
            detail=MSG_NOT_FOUND,
        )
    return req


# ── POST /requests ──────────────────────────────────────────────────

@router.post("/requests", response_model=LeaveOutcome, status_code=201)
async def create_request(
    body: LeaveRequestCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    service: LeaveService = Depends(get_leave_service),
):
    """File vacation or sick leave. Omit ``user_id`` to file for yourself."""
    if body.user_id is None or body.user_id == user.id:
        if not body.approve_immediately:
            return _unwrap(await service.create_own_leave_request(
                body.start_date, body.end_date, body.leave_type,
                requesting_user=user, reason=body.reason,
            ))
        target = user
    else:
        target = await db.get(User, body.user_id)
        if target is None:
            raise NotFoundException("User", str(body.user_id))

    return _unwrap(await service.create_leave_request(
        body.start_date,
        body.end_date,
        body.leave_type,
        requesting_user=user,
        target_user=target,
        approve_immediately=body.approve_immediately,
        reason=body.reason,
    ))


# ── GET /requests ───────────────────────────────────────────────────

@router.get("/requests", response_model=PaginatedResponse[LeaveRequestOut])
async def list_requests(
    status: Optional[LeaveStatus] = Query(None),
    leave_type: Optional[LeaveType] = Query(None),
    user_id: Optional[uuid.UUID] = Query(None),
    q: Optional[str] = Query(None, max_length=100, description="Part of the owner's name"),
    date_from: Optional[date] = Query(None, alias="from"),
    date_to: Optional[date] = Query(None, alias="to"),
    pagination: PaginationParams = Depends(),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Admins see every request; everyone else only their own.

    ``from`` / ``to`` keep requests touching that window (e.g. today, this week).
    """
    if date_from is not None and date_to is not None and date_to < date_from:
        raise ValidationException({"to": ["to must not be before from."]})

    query = select(LeaveRequest).order_by(
        LeaveRequest.start_date.desc(), LeaveRequest.created_at.desc(),
    )
    if not user.is_admin:
        user_id = user.id
    if user_id is not None:
        query = query.where(LeaveRequest.user_id == user_id)
    if status is not None:
        query = query.where(LeaveRequest.status == status)
    if leave_type is not None:
        query = query.where(LeaveRequest.leave_type == leave_type)
    if q and q.strip():
        query = query.where(
            LeaveRequest.user_snapshot["name"].as_string().ilike(f"%{q.strip()}%"),
        )
    if date_from is not None:
        query = query.where(LeaveRequest.end_date >= date_from)
    if date_to is not None:
        query = query.where(LeaveRequest.start_date <= date_to)

    page = await paginate(db, query, pagination, model=LeaveRequest)
    return PaginatedResponse[LeaveRequestOut](
        data=[LeaveService.build_response(r) for r in page.data],
        meta=page.meta,
    )


@router.get("/requests/mine", response_model=list[LeaveRequestOut])
async def my_requests(
    user: User = Depends(get_current_user),
    service: LeaveService = Depends(get_leave_service),
):
    return await service.requests_for_user(user.id)


@router.get("/requests/{request_id}", response_model=LeaveRequestOut)
async def get_request(
    request_id: uuid.UUID,
    user: User = Depends(get_current_user),
    service: LeaveService = Depends(get_leave_service),
):
    req = await _load_request(service, request_id)
    if not user.is_admin and req.user_id != user.id:
        raise ForbiddenException(detail="Kein Zugriff auf diesen Antrag.")
    return LeaveService.build_response(req)


# ── PUT /requests/{id} ──────────────────────────────────────────────

@router.put("/requests/{request_id}", response_model=LeaveOutcome)
async def update_request(
    request_id: uuid.UUID,
    body: LeaveRequestUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    service: LeaveService = Depends(get_leave_service),
):
    req = await _load_request(service, request_id)
    owner = await db.get(User, req.user_id)
    return _unwrap(await service.update_leave_request(
        request_id, body, actor=user, owner=owner,
    ))


@router.put("/requests/{request_id}/status", response_model=LeaveOutcome)
async def update_status(
    request_id: uuid.UUID,
    body: LeaveStatusUpdate,
    user: User = Depends(get_current_user),
    service: LeaveService = Depends(get_leave_service),
):
    """Approve, reject or reset a request (admin only)."""
    return _unwrap(await service.update_status(request_id, body.status, actor=user))


@router.delete("/requests/{request_id}", response_model=LeaveOutcome)
async def delete_request(
    request_id: uuid.UUID,
    user: User = Depends(get_current_user),
    service: LeaveService = Depends(get_leave_service),
):
    return _unwrap(await service.delete_leave_request(request_id, actor=user))


@router.get("/requests/{request_id}/permissions", response_model=PermissionOut)
async def request_permissions(
    request_id: uuid.UUID,
    user: User = Depends(get_current_user),
    service: LeaveService = Depends(get_leave_service),
):
    req = await _load_request(service, request_id)
    return PermissionOut(
        request_id=req.id,
        can_edit_or_delete=LeaveService.can_edit_or_delete(req, user),
    )


# ── Calendar / holidays ─────────────────────────────────────────────

@router.get("/calendar/{day}", response_model=CalendarDayOut)
async def calendar_day(
    day: date,
    _user: User = Depends(get_current_user),
    service: LeaveService = Depends(get_leave_service),
):
    return CalendarDayOut(
        day=day,
        is_working_day=is_working_day(day),
        holiday_name=holiday_name(day),
        requests=await service.requests_on(day),
    )


@router.get("/holidays", response_model=list[HolidayOut])
async def list_holidays(
    year: int = Query(..., ge=1583, le=9999),
    _user: User = Depends(get_current_user),
):
    return [HolidayOut(day=d, name=name) for d, name in holidays_for_year(year)]


@router.get("/working-days", response_model=WorkingDaysOut)
async def count_working_days(
    start: date = Query(...),
    end: date = Query(...),
    _user: User = Depends(get_current_user),
):
    if end < start:
        raise ValidationException({"end": ["end must not be before start."]})
    return WorkingDaysOut(start_date=start, end_date=end, working_days=working_days(start, end))


# ── GET /balance ────────────────────────────────────────────────────

@router.get("/balance", response_model=BalanceSummary)
async def my_balance(
    user: User = Depends(get_current_user),
    service: LeaveService = Depends(get_leave_service),
):
    return await service.balance_summary(user)
