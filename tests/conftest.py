"""Shared test fixtures — async DB, client, auth helpers, factories.

Uses SQLite + aiosqlite in memory; tables are created and dropped around
every test.
"""

from __future__ import annotations

import os

# Set test settings before any other import touches pydantic-settings
os.environ.setdefault("JWT_SECRET", "test-secret-for-ci-do-not-use-in-production")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("SEED_DEFAULT_USERS", "false")
os.environ.setdefault("PIN_HASH_ROUNDS", "4")

import uuid
from datetime import date, datetime, timedelta, timezone
from typing import AsyncGenerator, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from svs.auth.security import hash_pin
from svs.common.constants import LeaveStatus, LeaveType, UserRole
from svs.common.rate_limit import limiter
from svs.config import settings
from svs.database import Base, get_db
from svs.main import create_app

# Register every table on Base.metadata
import svs.leave.models  # noqa: F401
import svs.tasks.models  # noqa: F401
from svs.leave.models import LeaveRequest
from svs.users.models import User


# ── Test database (SQLite in-memory) ────────────────────────────────

TEST_DATABASE_URL = "sqlite+aiosqlite://"

engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestSessionFactory = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False,
)


@pytest.fixture(autouse=True)
async def _setup_db():
    """Create all tables before each test, drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    """Clear slowapi's in-memory counters between tests."""
    limiter.reset()
    yield


async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── FastAPI test client ─────────────────────────────────────────────

@pytest.fixture
async def app():
    """Create a fresh app instance with DB dependency overridden."""
    application = create_app()
    application.dependency_overrides[get_db] = _override_get_db
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client wired to the test app."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# ── Database session (for direct DB operations in tests) ────────────

@pytest.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        yield session
        await session.commit()


# ── Model factories ─────────────────────────────────────────────────

def make_user(
    *,
    name: str = "Ahmet",
    role: UserRole = UserRole.employee,
    pin: str = "2222",
    color_name: str = "green",
    annual_leave_days: int = 30,
) -> User:
    """Unsaved user; usable directly with the in-memory leave store."""
    return User(
        id=uuid.uuid4(),
        name=name,
        role=role,
        pin_hash=hash_pin(pin),
        color_name=color_name,
        annual_leave_days=annual_leave_days,
    )


def make_request(
    user: User,
    start: date,
    end: date,
    *,
    leave_type: LeaveType = LeaveType.vacation,
    status: LeaveStatus = LeaveStatus.pending,
    reason: str = "",
) -> LeaveRequest:
    return LeaveRequest(
        id=uuid.uuid4(),
        user_id=user.id,
        user_snapshot=user.snapshot(),
        start_date=start,
        end_date=end,
        leave_type=leave_type,
        reason=reason,
        status=status,
        created_at=datetime.now(timezone.utc),
        created_by_user_id=user.id,
    )


async def _persist(db: AsyncSession, user: User) -> User:
    db.add(user)
    await db.flush()
    await db.commit()
    return user


@pytest.fixture
async def admin(db) -> User:
    return await _persist(
        db, make_user(name="Hussein", role=UserRole.admin, pin="1111", color_name="blue"),
    )


@pytest.fixture
async def employee(db) -> User:
    return await _persist(db, make_user())


@pytest.fixture
async def colleague(db) -> User:
    return await _persist(
        db, make_user(name="Hadi", pin="3333", color_name="orange"),
    )


# ── Auth helpers ────────────────────────────────────────────────────

def create_access_token(
    user_id: uuid.UUID,
    role: UserRole = UserRole.employee,
    expired: bool = False,
    token_type: str = "access",
) -> str:
    """Generate a JWT access token for testing."""
    if expired:
        exp = datetime.now(timezone.utc) - timedelta(hours=1)
    else:
        exp = datetime.now(timezone.utc) + timedelta(hours=settings.JWT_EXPIRY_HOURS)
    payload = {
        "sub": str(user_id),
        "role": role.value,
        "type": token_type,
        "exp": exp,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def auth_headers(user: User, token: Optional[str] = None) -> dict[str, str]:
    token = token or create_access_token(user.id, user.role)
    return {"Authorization": f"Bearer {token}"}
