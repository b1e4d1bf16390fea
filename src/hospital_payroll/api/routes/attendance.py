"""Attendance API endpoints."""

from datetime import date, datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Path, Query, status

from hospital_payroll.api.dependencies import Attendance
from hospital_payroll.api.schemas import (
    AttendanceExceptionResponse,
    ClockEventRequest,
    ClockEventResponse,
    DailyAttendanceResponse,
    ErrorResponse,
)

router = APIRouter(prefix="/attendance", tags=["attendance"])


@router.get(
    "/employees/{employee_id}/daily/{work_date}",
    response_model=DailyAttendanceResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_daily_attendance(
    service: Attendance,
    employee_id: Annotated[str, Path()],
    work_date: Annotated[date, Path()],
) -> DailyAttendanceResponse:
    """Derive one employee's attendance on one date."""
    record = await service.get_daily_attendance(employee_id, work_date)
    return DailyAttendanceResponse.model_validate(record)


@router.get(
    "/employees/{employee_id}/range",
    response_model=list[DailyAttendanceResponse],
    responses={404: {"model": ErrorResponse}},
)
async def get_attendance_range(
    service: Attendance,
    employee_id: Annotated[str, Path()],
    start: Annotated[date, Query()],
    end: Annotated[date, Query()],
) -> list[DailyAttendanceResponse]:
    """Derive one record per date of start..end inclusive."""
    records = await service.get_attendance_range(employee_id, start, end)
    return [DailyAttendanceResponse.model_validate(r) for r in records]


@router.post(
    "/clock-events",
    response_model=ClockEventResponse,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def record_clock_event(
    service: Attendance,
    payload: ClockEventRequest,
) -> ClockEventResponse:
    """Record a check-in or check-out, enforcing alternation."""
    event = await service.record_clock_event(
        payload.employee_id,
        payload.kind,
        payload.at or datetime.now(timezone.utc),
        payload.source,
    )
    return ClockEventResponse.model_validate(event)


@router.get(
    "/exceptions",
    response_model=list[AttendanceExceptionResponse],
)
async def list_exceptions(
    service: Attendance,
    start: Annotated[date, Query()],
    end: Annotated[date, Query()],
) -> list[AttendanceExceptionResponse]:
    """Attendance anomalies of all active employees over a date range."""
    found = await service.list_exceptions(start, end)
    return [AttendanceExceptionResponse.model_validate(e) for e in found]
