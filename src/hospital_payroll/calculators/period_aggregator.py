"""Roll daily attendance records up into payroll period totals."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from decimal import Decimal

from hospital_payroll.calculators.types import (
    AggregatedTotals,
    AttendanceStatus,
    DailyAttendanceRecord,
)
from hospital_payroll.exceptions import DataIntegrityError
from hospital_payroll.policy import AttendancePolicy

_DEFAULT_POLICY = AttendancePolicy()


def aggregate_period(
    employee_id: str,
    period_start: date,
    period_end: date,
    records: Iterable[DailyAttendanceRecord],
    policy: AttendancePolicy = _DEFAULT_POLICY,
) -> AggregatedTotals:
    """Aggregate an employee's daily records over period_start..period_end.

    - Records outside the period (or for other employees) are ignored.
    - A date without a record counts as ABSENT; PRESENT is never fabricated.
    - Regular hours are capped per day at the standard shift length.

    Raises DataIntegrityError if two records exist for the same date.
    """
    if period_end < period_start:
        raise ValueError(f"Period end {period_end} is before start {period_start}")

    by_date: dict[date, DailyAttendanceRecord] = {}
    for record in records:
        if record.employee_id != employee_id:
            continue
        if not period_start <= record.work_date <= period_end:
            continue
        if record.work_date in by_date:
            raise DataIntegrityError(
                f"More than one attendance record for {employee_id} on {record.work_date}",
                employee_id=employee_id,
                work_date=record.work_date,
            )
        by_date[record.work_date] = record

    total_days = period_end.toordinal() - period_start.toordinal() + 1
    days_present = 0
    days_on_leave = 0
    regular_hours = Decimal("0")
    overtime_hours = Decimal("0")
    late_count = 0
    early_count = 0

    for record in by_date.values():
        if record.status == AttendanceStatus.PRESENT:
            days_present += 1
            regular_hours += min(record.total_hours, policy.standard_shift_hours)
            overtime_hours += record.overtime_hours
            if record.is_late:
                late_count += 1
            if record.is_early_departure:
                early_count += 1
        elif record.status == AttendanceStatus.ON_LEAVE:
            days_on_leave += 1

    # Missing dates and explicit ABSENT records both land here
    days_absent = total_days - days_present - days_on_leave

    return AggregatedTotals(
        employee_id=employee_id,
        period_start=period_start,
        period_end=period_end,
        total_days=total_days,
        days_present=days_present,
        days_absent=days_absent,
        days_on_leave=days_on_leave,
        regular_hours=regular_hours,
        overtime_hours=overtime_hours,
        late_count=late_count,
        early_departure_count=early_count,
    )
