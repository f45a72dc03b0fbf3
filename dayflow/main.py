"""Dayflow — FastAPI Application Factory."""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from dayflow.attendance.router import router as attendance_router
from dayflow.auth.router import router as auth_router
from dayflow.common.exceptions import register_exception_handlers
from dayflow.common.rate_limit import limiter
from dayflow.config import settings
from dayflow.core_hr.router import company_router, employees_router
from dayflow.leave.router import router as leave_router
from dayflow.salary.router import router as salary_router

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    """Root logging at ``settings.LOG_LEVEL``; a no-op once handlers exist."""
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    configure_logging()

    app = FastAPI(
        title="Dayflow",
        description="Dayflow HR — employees, attendance, time off and salary",
        version="1.0.0",
        docs_url="/api/docs" if settings.ENVIRONMENT != "production" else None,
        redoc_url="/api/redoc" if settings.ENVIRONMENT != "production" else None,
    )

    # Exception handlers (RFC 7807)
    register_exception_handlers(app)

    # Rate limiting (slowapi)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

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

    # Uploaded files (profile pictures, logos, leave attachments)
    app.mount(
        settings.UPLOAD_URL_PREFIX,
        StaticFiles(directory=settings.UPLOAD_DIR, check_dir=False),
        name="uploads",
    )

    # Register routers
    app.include_router(auth_router, prefix="/api/v1/auth", tags=["auth"])
    app.include_router(employees_router, prefix="/api/v1/employees", tags=["employees"])
    app.include_router(company_router, prefix="/api/v1/company", tags=["company"])
    app.include_router(attendance_router, prefix="/api/v1/attendance", tags=["attendance"])
    app.include_router(leave_router, prefix="/api/v1/leave", tags=["leave"])
    app.include_router(salary_router, prefix="/api/v1/salary", tags=["salary"])

    logger.info("Dayflow app created (environment=%s)", settings.ENVIRONMENT)
    return app


app = create_app()
