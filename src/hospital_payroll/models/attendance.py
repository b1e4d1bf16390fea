"""Attendance input models: clock events and leave requests."""

from __future__ import annotations

from datetime import date, time
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, Date, ForeignKey, Integer, String, Time, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from hospital_payroll.models.base import Base, TimestampMixin


class ClockEvent(Base, TimestampMixin):
    """Recorded check-in or check-out. Append-only.

    The (employee, date, sequence) key makes concurrent appends for the same
    day collide instead of interleaving.
    """

    __tablename__ = "clock_event"

    event_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("employee.employee_id", ondelete="RESTRICT"),
        nullable=False,
    )
    work_date: Mapped[date] = mapped_column(Date, nullable=False)
    event_time: Mapped[time] = mapped_column(Time, nullable=False)
    kind: Mapped[str] = mapped_column(String, nullable=False)
    source: Mapped[str] = mapped_column(String, nullable=False, default="BIOMETRIC")
    sequence_no: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        UniqueConstraint(
            "employee_id",
            "work_date",
            "sequence_no",
            name="clock_event_employee_date_seq_unique",
        ),
        CheckConstraint("kind IN ('CHECK_IN', 'CHECK_OUT')", name="clock_event_kind_check"),
        CheckConstraint(
            "source IN ('BIOMETRIC', 'CARD', 'MANUAL')",
            name="clock_event_source_check",
        ),
        CheckConstraint("sequence_no > 0", name="clock_event_seq_positive"),
    )


class LeaveRequest(Base, TimestampMixin):
    """Leave interval, inclusive of both ends."""

    __tablename__ = "leave_request"

    leave_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("employee.employee_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    leave_type: Mapped[str] = mapped_column(String, nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="DRAFT")

    __table_args__ = (
        CheckConstraint("end_date >= start_date", name="leave_request_dates_check"),
        CheckConstraint(
            "status IN ('DRAFT', 'SUBMITTED', 'PENDING_APPROVAL', 'APPROVED', 'REJECTED', 'CANCELLED')",
            name="leave_request_status_check",
        ),
    )
