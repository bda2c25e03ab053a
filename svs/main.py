"""SVS Absence Planner — FastAPI Application Factory."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from svs.admin.router import router as admin_router
from svs.auth.router import router as auth_router
from svs.common.exceptions import register_exception_handlers
from svs.common.logging import RequestLoggingMiddleware, configure_logging
from svs.common.rate_limit import limiter
from svs.config import settings
from svs.database import async_session_factory, init_db
from svs.leave.router import router as leave_router
from svs.seed import seed_default_users
from svs.tasks.router import router as tasks_router
from svs.users.router import router as users_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown events."""
    configure_logging(settings.LOG_LEVEL)
    await init_db()
    if settings.SEED_DEFAULT_USERS:
        async with async_session_factory() as session:
            await seed_default_users(session)
            await session.commit()
    yield


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="SVS Absence Planner",
        description="Vacation and sick-leave planning with German public holidays",
        version="1.0.0",
        docs_url="/api/docs" if settings.ENVIRONMENT != "production" else None,
        redoc_url="/api/redoc" if settings.ENVIRONMENT != "production" else None,
        lifespan=lifespan,
    )

    # Exception handlers (RFC 7807)
    register_exception_handlers(app)

    # Rate limiting (slowapi)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Access log
    app.add_middleware(RequestLoggingMiddleware)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health check (no auth)
    @app.get("/api/v1/health", tags=["system"])
    async def health_check():
        return {
            "status": "healthy",
            "version": "1.0.0",
            "environment": settings.ENVIRONMENT,
        }

    # Register routers
    app.include_router(auth_router, prefix="/api/v1/auth", tags=["auth"])
    app.include_router(users_router, prefix="/api/v1/users", tags=["users"])
    app.include_router(leave_router, prefix="/api/v1/leave", tags=["leave"])
    app.include_router(tasks_router, prefix="/api/v1/tasks", tags=["tasks"])
    app.include_router(admin_router, prefix="/api/v1/admin", tags=["admin"])

    return app


app = create_app()
