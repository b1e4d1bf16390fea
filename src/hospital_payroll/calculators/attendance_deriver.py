"""Daily attendance derivation: clock events + approved leave -> one record per day."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable, Sequence
from datetime import date, datetime, time, timedelta
from decimal import Decimal

from hospital_payroll.calculators.rounding import round_hours
from hospital_payroll.calculators.types import (
    AttendanceException,
    AttendanceExceptionType,
    AttendanceStatus,
    ClockEvent,
    ClockEventKind,
    DailyAttendanceRecord,
    IntegrityWarning,
    LeaveInterval,
    WarningCode,
)
from hospital_payroll.policy import AttendancePolicy

logger = logging.getLogger(__name__)

_DEFAULT_POLICY = AttendancePolicy()
_SECONDS_PER_HOUR = Decimal("3600")


def derive_daily_record(
    employee_id: str,
    work_date: date,
    events: Iterable[ClockEvent],
    leaves: Iterable[LeaveInterval],
    policy: AttendancePolicy = _DEFAULT_POLICY,
) -> DailyAttendanceRecord:
    """Derive the attendance record of one employee on one date.

    Derivation order:
    1) Approved leave covering the date wins; clock events are ignored
    2) No CHECK_IN -> ABSENT
    3) First IN / last OUT -> PRESENT with hours, overtime, lateness

    Events for other employees or dates are ignored, so callers may pass
    the events of a whole range. Pure: the same inputs always produce the
    same record.
    """
    day_events = [
        e for e in events if e.employee_id == employee_id and e.work_date == work_date
    ]

    leave = next(
        (
            lv
            for lv in leaves
            if lv.employee_id == employee_id and lv.is_approved and lv.covers(work_date)
        ),
        None,
    )
    if leave is not None:
        warnings: tuple[IntegrityWarning, ...] = ()
        if day_events:
            warnings = (
                _warn(
                    WarningCode.EVENTS_ON_LEAVE_DAY,
                    f"{len(day_events)} clock event(s) recorded during approved "
                    f"{leave.leave_type} leave were ignored",
                    employee_id,
                    work_date,
                ),
            )
        return DailyAttendanceRecord(
            employee_id=employee_id,
            work_date=work_date,
            status=AttendanceStatus.ON_LEAVE,
            leave_type=leave.leave_type,
            warnings=warnings,
        )

    check_ins = sorted(e.event_time for e in day_events if e.kind == ClockEventKind.CHECK_IN)
    check_outs = sorted(e.event_time for e in day_events if e.kind == ClockEventKind.CHECK_OUT)

    if not check_ins:
        warnings = ()
        if check_outs:
            warnings = (
                _warn(
                    WarningCode.ORPHAN_CHECK_OUT,
                    f"{len(check_outs)} CHECK_OUT event(s) without any CHECK_IN",
                    employee_id,
                    work_date,
                ),
            )
        return DailyAttendanceRecord(
            employee_id=employee_id,
            work_date=work_date,
            status=AttendanceStatus.ABSENT,
            warnings=warnings,
        )

    first_in = check_ins[0]
    orphans = [t for t in check_outs if t < first_in]
    valid_outs = [t for t in check_outs if t >= first_in]
    last_out = valid_outs[-1] if valid_outs else None

    warnings_list: list[IntegrityWarning] = []
    if orphans:
        warnings_list.append(
            _warn(
                WarningCode.ORPHAN_CHECK_OUT,
                f"CHECK_OUT at {orphans[0].isoformat()} precedes first CHECK_IN "
                f"at {first_in.isoformat()}; ignored for hours",
                employee_id,
                work_date,
            )
        )

    total_hours = Decimal("0")
    regular_hours = Decimal("0")
    overtime_hours = Decimal("0")
    if last_out is not None:
        total_hours = round_hours(_hours_between(work_date, first_in, last_out))
        regular_hours = min(total_hours, policy.standard_shift_hours)
        overtime_hours = max(Decimal("0"), total_hours - policy.standard_shift_hours)

    late_threshold = _at(work_date, policy.shift_start) + timedelta(minutes=policy.grace_minutes)
    is_late = _at(work_date, first_in) > late_threshold
    late_minutes = _minutes_between(work_date, policy.shift_start, first_in) if is_late else 0

    is_early = last_out is not None and last_out < policy.shift_end
    early_minutes = (
        _minutes_between(work_date, last_out, policy.shift_end)
        if is_early and last_out is not None
        else 0
    )

    return DailyAttendanceRecord(
        employee_id=employee_id,
        work_date=work_date,
        status=AttendanceStatus.PRESENT,
        first_in=first_in,
        last_out=last_out,
        total_hours=total_hours,
        regular_hours=regular_hours,
        overtime_hours=overtime_hours,
        late_minutes=late_minutes,
        is_late=is_late,
        early_departure_minutes=early_minutes,
        is_early_departure=is_early,
        warnings=tuple(warnings_list),
    )


def derive_range(
    employee_id: str,
    start: date,
    end: date,
    events: Iterable[ClockEvent],
    leaves: Sequence[LeaveInterval],
    policy: AttendancePolicy = _DEFAULT_POLICY,
) -> list[DailyAttendanceRecord]:
    """Derive one record per date of start..end inclusive."""
    if end < start:
        raise ValueError(f"Range end {end} is before start {start}")

    by_date: dict[date, list[ClockEvent]] = defaultdict(list)
    for event in events:
        if event.employee_id == employee_id:
            by_date[event.work_date].append(event)

    records = []
    for ordinal in range(start.toordinal(), end.toordinal() + 1):
        day = date.fromordinal(ordinal)
        records.append(derive_daily_record(employee_id, day, by_date.get(day, ()), leaves, policy))
    return records


def detect_exceptions(
    record: DailyAttendanceRecord,
    policy: AttendancePolicy = _DEFAULT_POLICY,
) -> list[AttendanceException]:
    """List the attendance anomalies of a derived record."""
    found: list[AttendanceException] = []

    def add(kind: AttendanceExceptionType, details: str) -> None:
        found.append(AttendanceException(record.employee_id, record.work_date, kind, details))

    if record.status == AttendanceStatus.ABSENT:
        add(
            AttendanceExceptionType.UNAUTHORIZED_ABSENCE,
            "No attendance record for the entire day and no approved leave",
        )
        return found

    if record.status != AttendanceStatus.PRESENT:
        return found

    if record.is_late and record.first_in is not None:
        add(
            AttendanceExceptionType.LATE_ARRIVAL,
            f"Arrived {record.late_minutes} minutes late. Scheduled: "
            f"{policy.shift_start:%H:%M}, Actual: {record.first_in:%H:%M}",
        )
    if record.last_out is None:
        add(
            AttendanceExceptionType.MISSING_CHECKOUT,
            f"No check-out recorded for shift ending at {policy.shift_end:%H:%M}",
        )
    elif record.is_early_departure:
        add(
            AttendanceExceptionType.EARLY_DEPARTURE,
            f"Left at {record.last_out:%H:%M}, scheduled end: {policy.shift_end:%H:%M}",
        )
    if record.total_hours > policy.abnormal_hours_threshold:
        add(
            AttendanceExceptionType.ABNORMAL_HOURS,
            f"Recorded {record.total_hours} hours in a single day",
        )
    return found


def _warn(code: WarningCode, message: str, employee_id: str, work_date: date) -> IntegrityWarning:
    logger.warning(
        "Attendance integrity warning %s for employee %s on %s: %s",
        code.value,
        employee_id,
        work_date,
        message,
    )
    return IntegrityWarning(code=code, message=message, employee_id=employee_id, work_date=work_date)


def _at(work_date: date, t: time) -> datetime:
    return datetime.combine(work_date, t)


def _hours_between(work_date: date, start: time, end: time) -> Decimal:
    seconds = (_at(work_date, end) - _at(work_date, start)).total_seconds()
    return Decimal(int(seconds)) / _SECONDS_PER_HOUR


def _minutes_between(work_date: date, start: time, end: time) -> int:
    """Whole minutes from start to end, partial minutes rounded up."""
    seconds = int((_at(work_date, end) - _at(work_date, start)).total_seconds())
    return -(-seconds // 60)
