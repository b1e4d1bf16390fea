"""End-of-service provision API endpoints."""

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Query

from hospital_payroll.api.dependencies import Exports
from hospital_payroll.api.schemas import EndOfServiceRowResponse

router = APIRouter(prefix="/end-of-service", tags=["end-of-service"])


@router.get("/provisions", response_model=list[EndOfServiceRowResponse])
async def list_provisions(
    exports: Exports,
    as_of: Annotated[date | None, Query()] = None,
    department: Annotated[str | None, Query()] = None,
) -> list[EndOfServiceRowResponse]:
    """Provisions of active employees, largest first. as_of defaults to today."""
    rows = await exports.end_of_service_provisions(as_of or date.today(), department)
    return [EndOfServiceRowResponse.model_validate(r) for r in rows]
