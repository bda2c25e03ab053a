"""Leave lifecycle tests against the in-memory store.

Covers creation gates (balance, overlap, permissions), updates, status
transitions, deletion, the embedded user snapshot, and the end-to-end
scenarios of the vacation workflow.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone

import pytest

from svs.common.constants import LeaveStatus, LeaveType, UserRole
from svs.leave.schemas import LeaveErrorKind, LeaveRequestUpdate
from svs.leave.service import (
    MSG_CREATED_SICK,
    MSG_CREATED_VACATION_APPROVED,
    MSG_CREATED_VACATION_PENDING,
    MSG_SICK_OVERLAP_DAY,
    MSG_SICK_OVERLAP_RANGE,
    MSG_UPDATE_OVERLAP,
    MSG_VACATION_OVERLAP,
    LeaveService,
)
from svs.leave.store import InMemoryLeaveStore
from tests.conftest import make_request, make_user

FIXED_NOW = datetime(2025, 5, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def store() -> InMemoryLeaveStore:
    return InMemoryLeaveStore()


@pytest.fixture
def service(store) -> LeaveService:
    return LeaveService(store, clock=lambda: FIXED_NOW)


@pytest.fixture
def ahmet():
    return make_user()


@pytest.fixture
def boss():
    return make_user(name="Hussein", role=UserRole.admin, pin="1111", color_name="blue")


# ═════════════════════════════════════════════════════════════════════
# Scenarios
# ═════════════════════════════════════════════════════════════════════


class TestVacationWorkflow:

    async def test_full_scenario(self, service, ahmet, boss):
        # 1. pending vacation reserves its days
        first = await service.create_own_leave_request(
            date(2025, 6, 2), date(2025, 6, 6), LeaveType.vacation, requesting_user=ahmet,
        )
        assert first.ok
        assert first.message == MSG_CREATED_VACATION_PENDING
        assert first.request.status == LeaveStatus.pending
        assert first.request.working_days == 5
        assert await service.available_vacation_days_for_requests(ahmet) == 25
        assert await service.remaining_leave_days(ahmet) == 30

        # 2. sick leave may overlap vacation and is approved at once
        sick = await service.create_own_leave_request(
            date(2025, 6, 3), date(2025, 6, 3), LeaveType.sick, requesting_user=ahmet,
        )
        assert sick.ok
        assert sick.message == MSG_CREATED_SICK
        assert sick.request.status == LeaveStatus.approved

        # 3. a second vacation inside the pending one is refused
        clash = await service.create_own_leave_request(
            date(2025, 6, 5), date(2025, 6, 5), LeaveType.vacation, requesting_user=ahmet,
        )
        assert not clash.ok
        assert clash.error == LeaveErrorKind.overlapping_request
        assert clash.message == MSG_VACATION_OVERLAP

        # 4. once the first one is rejected it no longer blocks
        rejected = await service.update_status(
            first.request.id, LeaveStatus.rejected, actor=boss,
        )
        assert rejected.ok
        retry = await service.create_own_leave_request(
            date(2025, 6, 5), date(2025, 6, 5), LeaveType.vacation, requesting_user=ahmet,
        )
        assert retry.ok
        assert await service.available_vacation_days_for_requests(ahmet) == 29

    async def test_sick_leave_does_not_touch_balance(self, service, ahmet):
        await service.create_own_leave_request(
            date(2025, 6, 2), date(2025, 6, 13), LeaveType.sick, requesting_user=ahmet,
        )
        summary = await service.balance_summary(ahmet)
        assert summary.used_days == 0
        assert summary.reserved_days == 0
        assert summary.available_days == 30


# ═════════════════════════════════════════════════════════════════════
# Creation gates
# ═════════════════════════════════════════════════════════════════════


class TestCreateLeaveRequest:

    async def test_no_active_user(self, service):
        outcome = await service.create_leave_request(
            date(2025, 6, 2), date(2025, 6, 2), LeaveType.vacation, requesting_user=None,
        )
        assert not outcome.ok
        assert outcome.error == LeaveErrorKind.no_active_user

    async def test_insufficient_balance_reports_counts(self, service, store):
        user = make_user(annual_leave_days=3)
        outcome = await service.create_own_leave_request(
            date(2025, 6, 2), date(2025, 6, 6), LeaveType.vacation, requesting_user=user,
        )
        assert not outcome.ok
        assert outcome.error == LeaveErrorKind.insufficient_balance
        assert outcome.requested_days == 5
        assert outcome.available_days == 3
        assert "Verfügbar: 3 Tag(e), angefragt: 5 Tag(e)" in outcome.message
        assert await store.list_all() == []

    async def test_exact_balance_is_accepted(self, service):
        user = make_user(annual_leave_days=5)
        outcome = await service.create_own_leave_request(
            date(2025, 6, 2), date(2025, 6, 6), LeaveType.vacation, requesting_user=user,
        )
        assert outcome.ok

    async def test_pending_requests_reserve_days(self, service):
        user = make_user(annual_leave_days=7)
        assert (await service.create_own_leave_request(
            date(2025, 6, 2), date(2025, 6, 6), LeaveType.vacation, requesting_user=user,
        )).ok
        second = await service.create_own_leave_request(
            date(2025, 6, 16), date(2025, 6, 18), LeaveType.vacation, requesting_user=user,
        )
        assert second.error == LeaveErrorKind.insufficient_balance
        assert second.available_days == 2

    async def test_holiday_only_vacation_costs_nothing(self, service):
        user = make_user(annual_leave_days=0)
        outcome = await service.create_own_leave_request(
            date(2025, 12, 25), date(2025, 12, 26), LeaveType.vacation, requesting_user=user,
        )
        assert outcome.ok
        assert outcome.request.working_days == 0

    async def test_invalid_range(self, service, ahmet):
        outcome = await service.create_own_leave_request(
            date(2025, 6, 6), date(2025, 6, 2), LeaveType.vacation, requesting_user=ahmet,
        )
        assert outcome.error == LeaveErrorKind.invalid_range

    async def test_sick_overlap_messages(self, service, ahmet):
        await service.create_own_leave_request(
            date(2025, 6, 2), date(2025, 6, 4), LeaveType.sick, requesting_user=ahmet,
        )
        single = await service.create_own_leave_request(
            date(2025, 6, 3), date(2025, 6, 3), LeaveType.sick, requesting_user=ahmet,
        )
        ranged = await service.create_own_leave_request(
            date(2025, 6, 4), date(2025, 6, 6), LeaveType.sick, requesting_user=ahmet,
        )
        assert single.message == MSG_SICK_OVERLAP_DAY
        assert ranged.message == MSG_SICK_OVERLAP_RANGE

    async def test_employee_cannot_file_for_colleague(self, service, ahmet):
        other = make_user(name="Osama")
        outcome = await service.create_leave_request(
            date(2025, 6, 2), date(2025, 6, 2), LeaveType.vacation,
            requesting_user=ahmet, target_user=other,
        )
        assert outcome.error == LeaveErrorKind.forbidden

    async def test_employee_cannot_approve_immediately(self, service, ahmet):
        outcome = await service.create_leave_request(
            date(2025, 6, 2), date(2025, 6, 2), LeaveType.vacation,
            requesting_user=ahmet, approve_immediately=True,
        )
        assert outcome.error == LeaveErrorKind.forbidden

    async def test_admin_files_approved_vacation_for_employee(self, service, ahmet, boss):
        outcome = await service.create_leave_request(
            date(2025, 6, 2), date(2025, 6, 6), LeaveType.vacation,
            requesting_user=boss, target_user=ahmet, approve_immediately=True,
            reason="Familienfeier",
        )
        assert outcome.ok
        assert outcome.message == MSG_CREATED_VACATION_APPROVED
        req = outcome.request
        assert req.status == LeaveStatus.approved
        assert req.user_id == ahmet.id
        assert req.user.name == "Ahmet"
        assert req.created_by_user_id == boss.id
        assert req.created_at == FIXED_NOW
        assert req.reason == "Familienfeier"
        assert await service.remaining_leave_days(ahmet) == 25

    async def test_admin_is_still_gated_by_balance(self, service, boss):
        poor = make_user(annual_leave_days=1)
        outcome = await service.create_leave_request(
            date(2025, 6, 2), date(2025, 6, 6), LeaveType.vacation,
            requesting_user=boss, target_user=poor, approve_immediately=True,
        )
        assert outcome.error == LeaveErrorKind.insufficient_balance


# ═════════════════════════════════════════════════════════════════════
# Update
# ═════════════════════════════════════════════════════════════════════


def _update(start, end, leave_type=LeaveType.vacation, **kwargs) -> LeaveRequestUpdate:
    return LeaveRequestUpdate(start_date=start, end_date=end, leave_type=leave_type, **kwargs)


class TestUpdateLeaveRequest:

    async def test_own_pending_vacation_can_be_moved(self, service, store, ahmet):
        req = make_request(ahmet, date(2025, 6, 2), date(2025, 6, 6))
        await store.add(req)

        outcome = await service.update_leave_request(
            req.id, _update(date(2025, 6, 9), date(2025, 6, 13), reason="verschoben"),
            actor=ahmet, owner=ahmet,
        )
        assert outcome.ok
        assert outcome.request.start_date == date(2025, 6, 9)
        # Whit Monday falls into the new range
        assert outcome.request.working_days == 4
        assert outcome.request.updated_at == FIXED_NOW
        assert outcome.request.updated_by_user_id == ahmet.id

    async def test_own_request_is_excluded_from_balance(self, service, store):
        user = make_user(annual_leave_days=5)
        req = make_request(user, date(2025, 6, 2), date(2025, 6, 6))
        await store.add(req)

        outcome = await service.update_leave_request(
            req.id, _update(date(2025, 6, 3), date(2025, 6, 6)), actor=user, owner=user,
        )
        assert outcome.ok

    async def test_balance_refusal_leaves_request_untouched(self, service, store):
        user = make_user(annual_leave_days=5)
        req = make_request(user, date(2025, 6, 2), date(2025, 6, 6))
        await store.add(req)

        outcome = await service.update_leave_request(
            req.id, _update(date(2025, 6, 2), date(2025, 6, 13)), actor=user, owner=user,
        )
        assert outcome.error == LeaveErrorKind.insufficient_balance
        stored = await store.get(req.id)
        assert stored.end_date == date(2025, 6, 6)

    async def test_overlap_with_another_request(self, service, store, ahmet):
        first = make_request(ahmet, date(2025, 6, 2), date(2025, 6, 6))
        second = make_request(ahmet, date(2025, 6, 16), date(2025, 6, 20))
        await store.add(first)
        await store.add(second)

        outcome = await service.update_leave_request(
            second.id, _update(date(2025, 6, 5), date(2025, 6, 17)), actor=ahmet, owner=ahmet,
        )
        assert outcome.error == LeaveErrorKind.overlapping_request
        assert outcome.message == MSG_UPDATE_OVERLAP

    async def test_unknown_request(self, service, ahmet):
        outcome = await service.update_leave_request(
            uuid.uuid4(), _update(date(2025, 6, 2), date(2025, 6, 2)), actor=ahmet,
        )
        assert outcome.error == LeaveErrorKind.not_found

    async def test_employee_cannot_edit_approved_request(self, service, store, ahmet):
        req = make_request(ahmet, date(2025, 6, 2), date(2025, 6, 6), status=LeaveStatus.approved)
        await store.add(req)
        outcome = await service.update_leave_request(
            req.id, _update(date(2025, 6, 2), date(2025, 6, 3)), actor=ahmet, owner=ahmet,
        )
        assert outcome.error == LeaveErrorKind.forbidden

    async def test_employee_cannot_edit_colleagues_request(self, service, store, ahmet):
        other = make_user(name="Hadi")
        req = make_request(other, date(2025, 6, 2), date(2025, 6, 6))
        await store.add(req)
        outcome = await service.update_leave_request(
            req.id, _update(date(2025, 6, 2), date(2025, 6, 3)), actor=ahmet,
        )
        assert outcome.error == LeaveErrorKind.forbidden

    async def test_employee_status_change_is_ignored(self, service, store, ahmet):
        req = make_request(ahmet, date(2025, 6, 2), date(2025, 6, 6))
        await store.add(req)
        outcome = await service.update_leave_request(
            req.id, _update(date(2025, 6, 2), date(2025, 6, 3), status=LeaveStatus.approved),
            actor=ahmet, owner=ahmet,
        )
        assert outcome.request.status == LeaveStatus.pending

    async def test_admin_may_set_status(self, service, store, ahmet, boss):
        req = make_request(ahmet, date(2025, 6, 2), date(2025, 6, 6))
        await store.add(req)
        outcome = await service.update_leave_request(
            req.id, _update(date(2025, 6, 2), date(2025, 6, 6), status=LeaveStatus.approved),
            actor=boss, owner=ahmet,
        )
        assert outcome.request.status == LeaveStatus.approved

    async def test_switch_to_sick_forces_approved(self, service, store, ahmet, boss):
        req = make_request(ahmet, date(2025, 6, 2), date(2025, 6, 6))
        await store.add(req)
        outcome = await service.update_leave_request(
            req.id,
            _update(date(2025, 6, 2), date(2025, 6, 6), LeaveType.sick, status=LeaveStatus.pending),
            actor=boss, owner=ahmet,
        )
        assert outcome.request.leave_type == LeaveType.sick
        assert outcome.request.status == LeaveStatus.approved

    async def test_admin_can_reject_after_entitlement_cut(self, service, store, ahmet, boss):
        req = make_request(ahmet, date(2025, 6, 2), date(2025, 6, 6))
        await store.add(req)
        ahmet.annual_leave_days = 2

        still_pending = await service.update_leave_request(
            req.id, _update(date(2025, 6, 2), date(2025, 6, 6)), actor=boss, owner=ahmet,
        )
        assert still_pending.error == LeaveErrorKind.insufficient_balance

        rejected = await service.update_leave_request(
            req.id,
            _update(date(2025, 6, 2), date(2025, 6, 6), status=LeaveStatus.rejected),
            actor=boss, owner=ahmet,
        )
        assert rejected.ok
        assert rejected.request.status == LeaveStatus.rejected

    async def test_rejecting_ignores_overlap(self, service, store, ahmet, boss):
        first = make_request(ahmet, date(2025, 6, 2), date(2025, 6, 6))
        second = make_request(ahmet, date(2025, 6, 9), date(2025, 6, 10))
        await store.add(first)
        await store.add(second)
        outcome = await service.update_leave_request(
            second.id,
            _update(date(2025, 6, 5), date(2025, 6, 10), status=LeaveStatus.rejected),
            actor=boss, owner=ahmet,
        )
        assert outcome.ok

    async def test_balance_uses_snapshot_when_user_is_gone(self, service, store, boss):
        gone = make_user(annual_leave_days=2)
        req = make_request(gone, date(2025, 6, 2), date(2025, 6, 3))
        await store.add(req)
        outcome = await service.update_leave_request(
            req.id, _update(date(2025, 6, 2), date(2025, 6, 4)), actor=boss,
        )
        assert outcome.error == LeaveErrorKind.insufficient_balance


# ═════════════════════════════════════════════════════════════════════
# Status transitions and deletion
# ═════════════════════════════════════════════════════════════════════


class TestUpdateStatus:

    async def test_employee_cannot_approve(self, service, store, ahmet):
        req = make_request(ahmet, date(2025, 6, 2), date(2025, 6, 6))
        await store.add(req)
        outcome = await service.update_status(req.id, LeaveStatus.approved, actor=ahmet)
        assert outcome.error == LeaveErrorKind.forbidden
        assert (await store.get(req.id)).status == LeaveStatus.pending

    async def test_approve_moves_days_to_used(self, service, store, ahmet, boss):
        req = make_request(ahmet, date(2025, 6, 2), date(2025, 6, 6))
        await store.add(req)
        assert await service.used_vacation_days(ahmet) == 0
        outcome = await service.update_status(req.id, LeaveStatus.approved, actor=boss)
        assert outcome.ok
        assert outcome.request.updated_by_user_id == boss.id
        assert await service.used_vacation_days(ahmet) == 5
        assert await service.reserved_vacation_days(ahmet) == 5

    async def test_sick_leave_cannot_be_rejected(self, service, store, ahmet, boss):
        req = make_request(
            ahmet, date(2025, 6, 2), date(2025, 6, 2),
            leave_type=LeaveType.sick, status=LeaveStatus.approved,
        )
        await store.add(req)
        outcome = await service.update_status(req.id, LeaveStatus.rejected, actor=boss)
        assert outcome.error == LeaveErrorKind.invalid_transition

    async def test_unknown_request(self, service, boss):
        outcome = await service.update_status(uuid.uuid4(), LeaveStatus.approved, actor=boss)
        assert outcome.error == LeaveErrorKind.not_found

    async def test_approving_all_pending_stays_within_budget(self, service, ahmet, boss):
        ids = []
        for start, end in [
            (date(2025, 3, 3), date(2025, 3, 14)),
            (date(2025, 7, 7), date(2025, 7, 18)),
            (date(2025, 9, 1), date(2025, 9, 12)),
        ]:
            outcome = await service.create_own_leave_request(
                start, end, LeaveType.vacation, requesting_user=ahmet,
            )
            if outcome.ok:
                ids.append(outcome.request.id)
        for request_id in ids:
            await service.update_status(request_id, LeaveStatus.approved, actor=boss)
        assert await service.used_vacation_days(ahmet) <= ahmet.annual_leave_days


class TestDeleteLeaveRequest:

    async def test_owner_deletes_pending_vacation(self, service, store, ahmet):
        req = make_request(ahmet, date(2025, 6, 2), date(2025, 6, 6))
        await store.add(req)
        outcome = await service.delete_leave_request(req.id, actor=ahmet)
        assert outcome.ok
        assert await store.get(req.id) is None

    async def test_owner_cannot_delete_sick_leave(self, service, store, ahmet):
        req = make_request(
            ahmet, date(2025, 6, 2), date(2025, 6, 2),
            leave_type=LeaveType.sick, status=LeaveStatus.approved,
        )
        await store.add(req)
        outcome = await service.delete_leave_request(req.id, actor=ahmet)
        assert outcome.error == LeaveErrorKind.forbidden

    async def test_admin_deletes_anything(self, service, store, ahmet, boss):
        req = make_request(ahmet, date(2025, 6, 2), date(2025, 6, 6), status=LeaveStatus.approved)
        await store.add(req)
        assert (await service.delete_leave_request(req.id, actor=boss)).ok

    async def test_no_active_user(self, service, store, ahmet):
        req = make_request(ahmet, date(2025, 6, 2), date(2025, 6, 6))
        await store.add(req)
        outcome = await service.delete_leave_request(req.id, actor=None)
        assert outcome.error == LeaveErrorKind.no_active_user


class TestCanEditOrDelete:

    def test_rules(self, ahmet, boss):
        other = make_user(name="Hadi")
        pending = make_request(ahmet, date(2025, 6, 2), date(2025, 6, 6))
        approved = make_request(ahmet, date(2025, 6, 2), date(2025, 6, 6), status=LeaveStatus.approved)
        sick = make_request(
            ahmet, date(2025, 6, 2), date(2025, 6, 2),
            leave_type=LeaveType.sick, status=LeaveStatus.approved,
        )
        assert LeaveService.can_edit_or_delete(pending, ahmet)
        assert not LeaveService.can_edit_or_delete(approved, ahmet)
        assert not LeaveService.can_edit_or_delete(sick, ahmet)
        assert not LeaveService.can_edit_or_delete(pending, other)
        assert not LeaveService.can_edit_or_delete(pending, None)
        assert all(LeaveService.can_edit_or_delete(r, boss) for r in (pending, approved, sick))


# ═════════════════════════════════════════════════════════════════════
# Queries and snapshot re-sync
# ═════════════════════════════════════════════════════════════════════


class TestQueries:

    async def test_requests_on_day(self, service, store, ahmet):
        other = make_user(name="Hadi")
        await store.add(make_request(ahmet, date(2025, 6, 2), date(2025, 6, 6)))
        await store.add(make_request(other, date(2025, 6, 6), date(2025, 6, 10)))
        await store.add(make_request(other, date(2025, 7, 1), date(2025, 7, 1)))

        on_friday = await service.requests_on(date(2025, 6, 6))
        assert len(on_friday) == 2
        assert await service.requests_on(datetime(2025, 6, 11, 12, 0)) == []

    async def test_requests_for_user_newest_first(self, service, store, ahmet):
        await store.add(make_request(ahmet, date(2025, 3, 3), date(2025, 3, 3)))
        await store.add(make_request(ahmet, date(2025, 9, 1), date(2025, 9, 1)))
        await store.add(make_request(ahmet, date(2025, 6, 2), date(2025, 6, 2)))
        starts = [r.start_date for r in await service.requests_for_user(ahmet.id)]
        assert starts == [date(2025, 9, 1), date(2025, 6, 2), date(2025, 3, 3)]

    async def test_list_requests_filters(self, service, store, ahmet):
        other = make_user(name="Hadi")
        await store.add(make_request(ahmet, date(2025, 6, 2), date(2025, 6, 2)))
        await store.add(make_request(ahmet, date(2025, 6, 9), date(2025, 6, 9), status=LeaveStatus.approved))
        await store.add(make_request(other, date(2025, 6, 2), date(2025, 6, 2), leave_type=LeaveType.sick))

        assert len(await service.list_requests()) == 3
        assert len(await service.list_requests(user_id=ahmet.id)) == 2
        assert len(await service.list_requests(status=LeaveStatus.approved)) == 1
        assert len(await service.list_requests(leave_type=LeaveType.sick)) == 1
        assert len(await service.list_requests(name="HAD")) == 1
        assert len(await service.list_requests(date_from=date(2025, 6, 3))) == 1
        assert len(await service.list_requests(date_to=date(2025, 6, 2))) == 2
        assert len(await service.list_requests(
            name="ahmet", date_from=date(2025, 6, 2), date_to=date(2025, 6, 2),
        )) == 1

    async def test_has_overlap(self, service, store, ahmet):
        await store.add(make_request(ahmet, date(2025, 6, 2), date(2025, 6, 6)))
        assert await service.has_overlap(ahmet.id, date(2025, 6, 6), date(2025, 6, 9), LeaveType.vacation)
        assert not await service.has_overlap(ahmet.id, date(2025, 6, 6), date(2025, 6, 9), LeaveType.sick)

    async def test_resync_user_snapshot(self, service, store, ahmet):
        await store.add(make_request(ahmet, date(2025, 6, 2), date(2025, 6, 2)))
        await store.add(make_request(ahmet, date(2025, 6, 9), date(2025, 6, 9)))

        ahmet.name = "Ahmet K."
        ahmet.color_name = "teal"
        assert await service.resync_user_snapshot(ahmet) == 2
        for req in await service.requests_for_user(ahmet.id):
            assert req.user.name == "Ahmet K."
            assert req.user.color_name == "teal"
        assert await service.resync_user_snapshot(ahmet) == 0

    async def test_snapshot_never_contains_pin(self, service, ahmet):
        outcome = await service.create_own_leave_request(
            date(2025, 6, 2), date(2025, 6, 2), LeaveType.vacation, requesting_user=ahmet,
        )
        assert "pin" not in outcome.request.user.model_dump()
