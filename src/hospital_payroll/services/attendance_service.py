"""Attendance service - derived daily records and clock event capture."""

from __future__ import annotations

import logging
from datetime import date, datetime

from hospital_payroll.calculators.attendance_deriver import (
    derive_daily_record,
    derive_range,
    detect_exceptions,
)
from hospital_payroll.calculators.types import (
    AttendanceException,
    ClockEvent,
    ClockEventKind,
    ClockEventSource,
    DailyAttendanceRecord,
)
from hospital_payroll.exceptions import UnknownEmployeeError
from hospital_payroll.policy import AttendancePolicy
from hospital_payroll.services.clock_capture import alternation_violation
from hospital_payroll.services.repository import PayrollRepository
from hospital_payroll.services.state_machine import InvalidTransitionError

logger = logging.getLogger(__name__)

# Attempts at compare-and-append before giving up on a contended day
MAX_APPEND_ATTEMPTS = 3


class AttendanceService:
    """Service for attendance queries and clock capture.

    Daily records are always derived from the stored clock events and
    leave; they are never persisted.
    """

    def __init__(self, repository: PayrollRepository, policy: AttendancePolicy | None = None):
        self.repository = repository
        self.policy = policy or AttendancePolicy()

    async def get_daily_attendance(self, employee_id: str, work_date: date) -> DailyAttendanceRecord:
        await self._require_employee(employee_id)
        events = await self.repository.list_clock_events(employee_id, work_date, work_date)
        leaves = await self.repository.list_leaves(employee_id, work_date, work_date)
        return derive_daily_record(employee_id, work_date, events, leaves, self.policy)

    async def get_attendance_range(
        self, employee_id: str, start: date, end: date
    ) -> list[DailyAttendanceRecord]:
        await self._require_employee(employee_id)
        events = await self.repository.list_clock_events(employee_id, start, end)
        leaves = await self.repository.list_leaves(employee_id, start, end)
        return derive_range(employee_id, start, end, events, leaves, self.policy)

    async def record_clock_event(
        self,
        employee_id: str,
        kind: ClockEventKind,
        at: datetime,
        source: ClockEventSource = ClockEventSource.BIOMETRIC,
    ) -> ClockEvent:
        """Append a clock event if it keeps the day's events alternating.

        A timezone-aware reading is converted to the facility timezone
        first; a naive one is taken as facility wall-clock time. Raises
        UnknownEmployeeError for an unknown employee and
        InvalidTransitionError when the alternation rule rejects the event.
        """
        await self._require_employee(employee_id)
        if at.tzinfo is not None:
            at = at.astimezone(self.policy.zone)
        work_date = at.date()

        for _ in range(MAX_APPEND_ATTEMPTS):
            latest = await self.repository.latest_clock_event(employee_id, work_date)
            latest_kind = latest.kind if latest else None
            reason = alternation_violation(kind, latest_kind)
            if reason:
                raise InvalidTransitionError(
                    latest_kind.value if latest_kind else "NONE", kind.value, reason
                )

            event = ClockEvent(
                employee_id=employee_id,
                work_date=work_date,
                event_time=at.time().replace(microsecond=0),
                kind=kind,
                source=source,
                sequence_no=latest.sequence_no + 1 if latest else 1,
            )
            if await self.repository.append_clock_event(event):
                logger.info(
                    "Recorded %s for employee %s at %s (%s)",
                    kind.value,
                    employee_id,
                    at.isoformat(timespec="seconds"),
                    source.value,
                )
                return event
            logger.debug("Concurrent clock event for %s on %s, retrying", employee_id, work_date)

        raise InvalidTransitionError(
            "CONTENDED", kind.value, "another clock event was recorded concurrently"
        )

    async def list_exceptions(self, start: date, end: date) -> list[AttendanceException]:
        """Attendance anomalies of all active employees over start..end."""
        found: list[AttendanceException] = []
        for employee in await self.repository.list_employees(active_only=True):
            records = await self.get_attendance_range(employee.employee_id, start, end)
            for record in records:
                found.extend(detect_exceptions(record, self.policy))
        return found

    async def _require_employee(self, employee_id: str) -> None:
        if await self.repository.get_employee(employee_id) is None:
            raise UnknownEmployeeError(employee_id)
