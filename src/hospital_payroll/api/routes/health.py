"""Health, readiness and liveness endpoints."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Response, status
from pydantic import BaseModel
from sqlalchemy import inspect, text
from sqlalchemy.exc import SQLAlchemyError

from hospital_payroll.api.dependencies import DbSession, Policy
from hospital_payroll.models import Base

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime
    database: str
    policy_version: str


class ReadinessResponse(BaseModel):
    status: str
    missing_tables: list[str] = []


@router.get("/health", response_model=HealthResponse)
async def health_check(db: DbSession, policy: Policy) -> HealthResponse:
    """Report database reachability and the payroll policy in force."""
    db_status = "unhealthy"
    try:
        await db.execute(text("SELECT 1"))
        db_status = "healthy"
    except (SQLAlchemyError, OSError):
        logger.warning("Database health check failed", exc_info=True)

    return HealthResponse(
        status="healthy" if db_status == "healthy" else "degraded",
        timestamp=datetime.now(timezone.utc),
        database=db_status,
        policy_version=policy.version,
    )


@router.get("/ready", response_model=ReadinessResponse)
async def readiness_check(db: DbSession, response: Response) -> ReadinessResponse:
    """Ready once every payroll table exists (see ``hospital-payroll --create-schema``)."""
    connection = await db.connection()
    existing = await connection.run_sync(lambda sync_conn: set(inspect(sync_conn).get_table_names()))
    missing = sorted(set(Base.metadata.tables) - existing)
    if missing:
        logger.warning("Not ready, missing tables: %s", ", ".join(missing))
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return ReadinessResponse(status="not ready", missing_tables=missing)
    return ReadinessResponse(status="ready")


@router.get("/live", status_code=status.HTTP_200_OK)
async def liveness_check() -> dict[str, str]:
    return {"status": "alive"}
