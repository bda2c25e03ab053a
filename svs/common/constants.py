"""Enums and constants for the SVS absence planner."""

from __future__ import annotations

import enum


# ── Auth / Roles ────────────────────────────────────────────────────

class UserRole(str, enum.Enum):
    admin = "admin"
    employee = "employee"
    expert = "expert"


ROLE_LABELS: dict[UserRole, str] = {
    UserRole.admin: "Admin",
    UserRole.employee: "Mitarbeiter",
    UserRole.expert: "Sachverständiger",
}


# ── Leave ───────────────────────────────────────────────────────────

class LeaveType(str, enum.Enum):
    vacation = "vacation"
    sick = "sick"


class LeaveStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


# Labels written by the legacy mobile app into its stored records.
LEGACY_LEAVE_TYPES: dict[str, LeaveType] = {
    "Urlaub": LeaveType.vacation,
    "Krankheit": LeaveType.sick,
}

LEGACY_LEAVE_STATUSES: dict[str, LeaveStatus] = {
    "Offen": LeaveStatus.pending,
    "Genehmigt": LeaveStatus.approved,
    "Abgelehnt": LeaveStatus.rejected,
}

STATUS_LABELS: dict[LeaveStatus, str] = {
    status: label for label, status in LEGACY_LEAVE_STATUSES.items()
}


# ── Tasks ───────────────────────────────────────────────────────────

class TaskStatus(str, enum.Enum):
    open = "open"
    done = "done"


class PayoutMethod(str, enum.Enum):
    paypal = "paypal"
    iban = "iban"


MIN_IBAN_LENGTH = 15


# ── Misc constants ──────────────────────────────────────────────────

USER_COLORS: tuple[str, ...] = (
    "blue", "green", "orange", "purple", "red",
    "pink", "teal", "indigo", "yellow", "gray",
)
DEFAULT_USER_COLOR = "gray"
DEFAULT_ANNUAL_LEAVE_DAYS = 30
MAX_ANNUAL_LEAVE_DAYS = 365
DEFAULT_RESET_PIN = "0000"
UNKNOWN_USER_NAME = "Unbekannt"
MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 50
