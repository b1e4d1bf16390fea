"""Tests for the attendance service."""

import asyncio
from datetime import date, datetime, time, timezone
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest

from hospital_payroll.calculators.types import (
    AttendanceExceptionType,
    AttendanceStatus,
    ClockEventKind,
    ClockEventSource,
    Employee,
    EmploymentStatus,
    LeaveInterval,
)
from hospital_payroll.exceptions import UnknownEmployeeError
from hospital_payroll.policy import AttendancePolicy
from hospital_payroll.services.attendance_service import AttendanceService
from hospital_payroll.services.clock_capture import ClockCaptureStation, ScannerState
from hospital_payroll.services.repository import InMemoryRepository
from hospital_payroll.services.state_machine import InvalidTransitionError

from .conftest import shift

EMP = "EMP-001"
DAY = date(2026, 4, 6)


@pytest.fixture
def repository(nurse) -> InMemoryRepository:
    repository = InMemoryRepository()
    repository.add_employee(nurse)
    return repository


@pytest.fixture
def service(repository) -> AttendanceService:
    return AttendanceService(repository)


class TestRecordClockEvent:
    """Test compare-and-append clock capture."""

    async def test_check_in_then_out(self, service, repository):
        first = await service.record_clock_event(EMP, ClockEventKind.CHECK_IN, datetime(2026, 4, 6, 8, 29, 41))
        second = await service.record_clock_event(
            EMP, ClockEventKind.CHECK_OUT, datetime(2026, 4, 6, 16, 45), ClockEventSource.CARD
        )

        assert first.sequence_no == 1
        assert first.event_time == time(8, 29, 41)
        assert second.sequence_no == 2
        assert second.source == ClockEventSource.CARD
        assert len(repository.clock_events) == 2

    async def test_check_out_first_rejected(self, service, repository):
        with pytest.raises(InvalidTransitionError) as exc_info:
            await service.record_clock_event(EMP, ClockEventKind.CHECK_OUT, datetime(2026, 4, 6, 9, 0))

        assert exc_info.value.reason == "must check in first"
        assert repository.clock_events == []

    async def test_double_check_in_rejected(self, service, repository):
        await service.record_clock_event(EMP, ClockEventKind.CHECK_IN, datetime(2026, 4, 6, 8, 0))

        with pytest.raises(InvalidTransitionError) as exc_info:
            await service.record_clock_event(EMP, ClockEventKind.CHECK_IN, datetime(2026, 4, 6, 8, 1))

        assert exc_info.value.reason == "already checked in"
        assert len(repository.clock_events) == 1

    async def test_alternation_is_per_day(self, service):
        await service.record_clock_event(EMP, ClockEventKind.CHECK_IN, datetime(2026, 4, 6, 8, 0))

        event = await service.record_clock_event(EMP, ClockEventKind.CHECK_IN, datetime(2026, 4, 7, 8, 0))

        assert event.sequence_no == 1

    async def test_aware_reading_dated_in_facility_time(self, service, repository):
        # 22:30 UTC on 6 April is 01:30 on 7 April in Baghdad (UTC+3)
        at = datetime(2026, 4, 6, 22, 30, tzinfo=timezone.utc)

        event = await service.record_clock_event(EMP, ClockEventKind.CHECK_IN, at)

        assert event.work_date == date(2026, 4, 7)
        assert event.event_time == time(1, 30)
        assert await repository.latest_clock_event(EMP, date(2026, 4, 6)) is None

    async def test_facility_timezone_is_configurable(self, repository):
        service = AttendanceService(repository, AttendancePolicy(timezone="UTC"))
        at = datetime(2026, 4, 6, 23, 30, tzinfo=ZoneInfo("Asia/Baghdad"))

        event = await service.record_clock_event(EMP, ClockEventKind.CHECK_IN, at)

        assert event.work_date == date(2026, 4, 6)
        assert event.event_time == time(20, 30)

    async def test_unknown_employee_rejected(self, service, repository):
        with pytest.raises(UnknownEmployeeError):
            await service.record_clock_event("EMP-404", ClockEventKind.CHECK_IN, datetime(2026, 4, 6, 8, 0))

        assert repository.clock_events == []

    async def test_concurrent_check_ins_append_once(self, service, repository):
        at = datetime(2026, 4, 6, 8, 0)

        results = await asyncio.gather(
            service.record_clock_event(EMP, ClockEventKind.CHECK_IN, at),
            service.record_clock_event(EMP, ClockEventKind.CHECK_IN, at),
            return_exceptions=True,
        )

        assert len(repository.clock_events) == 1
        assert sum(isinstance(r, InvalidTransitionError) for r in results) == 1

    async def test_station_records_through_service(self, service, repository):
        station = ClockCaptureStation(
            service.record_clock_event, clock=lambda: datetime(2026, 4, 6, 8, 10)
        )

        station.begin_scan()
        await station.submit(EMP, ClockEventKind.CHECK_IN)
        station.reset()
        station.begin_scan()
        await station.submit(EMP, ClockEventKind.CHECK_IN)

        assert station.state == ScannerState.ERROR
        assert station.error == "already checked in"
        assert len(repository.clock_events) == 1


class TestDerivedAttendance:
    async def test_daily_record_from_stored_events(self, service, repository):
        repository.add_clock_events(*shift(EMP, DAY, time(8, 40), time(18, 40)))

        record = await service.get_daily_attendance(EMP, DAY)

        assert record.status == AttendanceStatus.PRESENT
        assert record.total_hours == Decimal("10")
        assert record.overtime_hours == Decimal("2")
        assert record.is_late is True

    async def test_range_respects_leave(self, service, repository):
        repository.add_clock_events(*shift(EMP, DAY))
        repository.add_leave(LeaveInterval(EMP, date(2026, 4, 7), date(2026, 4, 8), "ANNUAL"))

        records = await service.get_attendance_range(EMP, DAY, date(2026, 4, 9))

        assert [r.status for r in records] == [
            AttendanceStatus.PRESENT,
            AttendanceStatus.ON_LEAVE,
            AttendanceStatus.ON_LEAVE,
            AttendanceStatus.ABSENT,
        ]

    async def test_unknown_employee(self, service):
        with pytest.raises(UnknownEmployeeError):
            await service.get_daily_attendance("EMP-404", DAY)

    async def test_list_exceptions_covers_active_employees(self, service, repository):
        repository.add_employee(
            Employee("EMP-002", "Omar", "Jaber", employment_status=EmploymentStatus.TERMINATED)
        )
        repository.add_clock_events(*shift(EMP, DAY, time(9, 0), None))

        found = await service.list_exceptions(DAY, date(2026, 4, 7))

        assert {(e.employee_id, e.work_date, e.exception_type) for e in found} == {
            (EMP, DAY, AttendanceExceptionType.LATE_ARRIVAL),
            (EMP, DAY, AttendanceExceptionType.MISSING_CHECKOUT),
            (EMP, date(2026, 4, 7), AttendanceExceptionType.UNAUTHORIZED_ABSENCE),
        }
