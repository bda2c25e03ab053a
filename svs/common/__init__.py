"""Common module — shared utilities for the SVS absence planner."""

from svs.common.audit import AuditMixin, utcnow
from svs.common.constants import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    LeaveStatus,
    LeaveType,
    TaskStatus,
    UserRole,
)
from svs.common.exceptions import (
    AppException,
    ConflictError,
    ForbiddenException,
    NotFoundException,
    UnauthorizedException,
    ValidationException,
)

__all__ = [
    "AuditMixin",
    "utcnow",
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    "LeaveStatus",
    "LeaveType",
    "TaskStatus",
    "UserRole",
    "AppException",
    "ConflictError",
    "ForbiddenException",
    "NotFoundException",
    "UnauthorizedException",
    "ValidationException",
]
