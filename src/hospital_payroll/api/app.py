"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from hospital_payroll.api.routes import (
    attendance_router,
    end_of_service_router,
    health_router,
    payroll_router,
    revenue_router,
)
from hospital_payroll.database import init_db
from hospital_payroll.exceptions import PayrollCoreError, UnknownReferenceError
from hospital_payroll.services.state_machine import InvalidTransitionError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    engine, _ = init_db()
    yield
    await engine.dispose()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Hospital Payroll API",
        description="Attendance-to-payroll pipeline and service revenue sharing",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Exception handlers
    @app.exception_handler(UnknownReferenceError)
    async def unknown_reference_handler(
        request: Request, exc: UnknownReferenceError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"detail": str(exc), "code": exc.code},
        )

    @app.exception_handler(InvalidTransitionError)
    async def invalid_transition_handler(
        request: Request, exc: InvalidTransitionError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={
                "detail": exc.reason or str(exc),
                "code": exc.code,
                "context": {"from_status": exc.from_status, "to_status": exc.to_status},
            },
        )

    @app.exception_handler(PayrollCoreError)
    async def payroll_core_error_handler(request: Request, exc: PayrollCoreError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": str(exc), "code": exc.code},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "An unexpected error occurred",
                "code": "INTERNAL_ERROR",
            },
        )

    # Include routers
    app.include_router(health_router)
    app.include_router(attendance_router, prefix="/api/v1")
    app.include_router(payroll_router, prefix="/api/v1")
    app.include_router(revenue_router, prefix="/api/v1")
    app.include_router(end_of_service_router, prefix="/api/v1")

    return app


# Default app instance for uvicorn
app = create_app()
