"""Task service layer — team to-dos with a simple open/done lifecycle.

Rules:
  - Non-admins create tasks for themselves only
  - Only the assignee, the creator or an admin may change or delete a task
  - Re-assigning a task is admin-only
  - Commission reports become a task for the first admin
"""

from __future__ import annotations

import logging
import uuid
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from svs.common.audit import utcnow
from svs.common.constants import MIN_IBAN_LENGTH, PayoutMethod, TaskStatus, UserRole
from svs.common.exceptions import (
    AppException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from svs.tasks.models import Task
from svs.tasks.schemas import (
    CommissionReport,
    TaskBoardOut,
    TaskCreate,
    TaskOut,
    TaskUpdate,
)
from svs.users.models import User

logger = logging.getLogger(__name__)


def can_modify(task: Task, user: User) -> bool:
    return user.is_admin or user.id in (task.assigned_user_id, task.creator_user_id)


# ── Commission helpers ──────────────────────────────────────────────

MSG_NO_ADMIN = "Kein Admin-Benutzer gefunden."
MSG_BAD_AMOUNT = "Bitte einen gültigen Betrag eingeben."
MSG_NO_CUSTOMER_NAME = "Bitte den Kundennamen eintragen."
MSG_NO_CUSTOMER_ADDRESS = "Bitte die Kundenadresse eintragen."
MSG_NO_PAYPAL = "Bitte eine PayPal-Adresse eintragen."
MSG_BAD_IBAN = "Bitte eine gültige IBAN eintragen."


def parse_amount(text: str) -> Optional[Decimal]:
    """Parse a euro amount typed as ``50,00``, ``50.5`` or ``50 €``."""
    cleaned = text.replace("€", "").replace(" ", "").replace(",", ".").strip()
    if not cleaned:
        return None
    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        return None
    return amount if amount.is_finite() else None


def normalize_iban(text: str) -> str:
    return text.upper().replace(" ", "").strip()


def format_euro(amount: Decimal) -> str:
    """German currency notation, e.g. ``1.234,50 €``."""
    cents = amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    grouped = f"{cents:,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")
    return f"{grouped} €"


class TaskService:
    """Async CRUD operations for tasks."""

    @staticmethod
    async def get_task(db: AsyncSession, task_id: uuid.UUID) -> Task:
        task = await db.get(Task, task_id)
        if task is None:
            raise NotFoundException("Task", str(task_id))
        return task

    @staticmethod
    async def _get_modifiable(db: AsyncSession, task_id: uuid.UUID, user: User) -> Task:
        task = await TaskService.get_task(db, task_id)
        if not can_modify(task, user):
            raise ForbiddenException(detail="Sie dürfen diese Aufgabe nicht bearbeiten.")
        return task

    # ── Board ───────────────────────────────────────────────────────

    @staticmethod
    async def board(db: AsyncSession, user: User) -> TaskBoardOut:
        """Split tasks by assignee and status, newest first."""
        result = await db.execute(select(Task).order_by(Task.created_at.desc()))
        board = TaskBoardOut()
        for task in result.scalars().all():
            mine = task.assigned_user_id == user.id
            if not mine and not user.is_admin:
                continue
            out = TaskOut.model_validate(task)
            if mine:
                target = board.mine_open if task.status == TaskStatus.open else board.mine_done
            else:
                target = board.others_open if task.status == TaskStatus.open else board.others_done
            target.append(out)
        return board

    # ── Writes ──────────────────────────────────────────────────────

    @staticmethod
    async def create_task(db: AsyncSession, data: TaskCreate, creator: User) -> Task:
        assignee_id = creator.id
        if creator.is_admin and data.assigned_user_id is not None:
            if await db.get(User, data.assigned_user_id) is None:
                raise NotFoundException("User", str(data.assigned_user_id))
            assignee_id = data.assigned_user_id

        task = Task(
            id=uuid.uuid4(),
            title=data.title,
            details=data.details,
            due_date=data.due_date,
            status=TaskStatus.open,
            assigned_user_id=assignee_id,
            creator_user_id=creator.id,
            created_at=utcnow(),
        )
        db.add(task)
        await db.flush()
        logger.info("Task created", extra={"task_id": str(task.id), "user_id": str(creator.id)})
        return task

    @staticmethod
    async def update_task(
        db: AsyncSession,
        task_id: uuid.UUID,
        data: TaskUpdate,
        user: User,
    ) -> Task:
        task = await TaskService._get_modifiable(db, task_id, user)
        changes = data.model_dump(exclude_unset=True)

        assignee = changes.pop("assigned_user_id", None)
        if assignee is not None and assignee != task.assigned_user_id:
            if not user.is_admin:
                raise ForbiddenException(detail="Nur Admins dürfen Aufgaben neu zuweisen.")
            if await db.get(User, assignee) is None:
                raise NotFoundException("User", str(assignee))
            task.assigned_user_id = assignee

        for field, value in changes.items():
            # due_date may be cleared explicitly; the rest ignore nulls
            if value is None and field != "due_date":
                continue
            setattr(task, field, value)
        await db.flush()
        return task

    @staticmethod
    async def toggle_status(db: AsyncSession, task_id: uuid.UUID, user: User) -> Task:
        task = await TaskService._get_modifiable(db, task_id, user)
        task.status = TaskStatus.done if task.status == TaskStatus.open else TaskStatus.open
        await db.flush()
        logger.info("Task marked %s", task.status.value, extra={"task_id": str(task.id)})
        return task

    @staticmethod
    async def delete_task(db: AsyncSession, task_id: uuid.UUID, user: User) -> None:
        task = await TaskService._get_modifiable(db, task_id, user)
        await db.delete(task)
        await db.flush()
        logger.info("Task deleted", extra={"task_id": str(task_id)})

    # ── Commission report ───────────────────────────────────────────

    @staticmethod
    async def report_commission(
        db: AsyncSession,
        report: CommissionReport,
        reporter: User,
    ) -> Task:
        """File a payout task for the first admin on the roster."""
        result = await db.execute(
            select(User)
            .where(User.role == UserRole.admin)
            .order_by(User.created_at, User.name)
            .limit(1)
        )
        admin = result.scalars().first()
        if admin is None:
            raise AppException(
                status_code=409,
                error_type="no-admin",
                title="No Admin",
                detail=MSG_NO_ADMIN,
            )

        amount = parse_amount(report.amount)
        if amount is None or amount <= 0:
            raise ValidationException({"amount": [MSG_BAD_AMOUNT]})
        customer_name = report.customer_name.strip()
        if not customer_name:
            raise ValidationException({"customer_name": [MSG_NO_CUSTOMER_NAME]})
        customer_address = report.customer_address.strip()
        if not customer_address:
            raise ValidationException({"customer_address": [MSG_NO_CUSTOMER_ADDRESS]})

        if report.payout_method == PayoutMethod.paypal:
            paypal = report.paypal_address.strip()
            if not paypal:
                raise ValidationException({"paypal_address": [MSG_NO_PAYPAL]})
            payout_line = f"PayPal: {paypal}"
        else:
            iban = normalize_iban(report.iban)
            if len(iban) < MIN_IBAN_LENGTH:
                raise ValidationException({"iban": [MSG_BAD_IBAN]})
            payout_line = f"IBAN: {iban}"

        details = (
            f"Kunde: {customer_name}\n"
            f"Adresse: {customer_address}\n"
            f"Provision: {format_euro(amount)}\n"
            f"Auszahlung: {payout_line}\n"
            f"Angefragt von: {reporter.name}\n"
        )
        task = Task(
            id=uuid.uuid4(),
            title=f"Provision zahlen – {customer_name}",
            details=details,
            due_date=None,
            status=TaskStatus.open,
            assigned_user_id=admin.id,
            creator_user_id=reporter.id,
            created_at=utcnow(),
        )
        db.add(task)
        await db.flush()
        logger.info(
            "Commission reported",
            extra={"task_id": str(task.id), "user_id": str(reporter.id)},
        )
        return task
