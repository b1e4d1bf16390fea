"""Type definitions for the attendance, payroll and revenue-share pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID, uuid4


# ===== Enumerations =====


class ClockEventKind(str, Enum):
    """Clock event kinds. A day's events must alternate, starting with CHECK_IN."""

    CHECK_IN = "CHECK_IN"
    CHECK_OUT = "CHECK_OUT"


class ClockEventSource(str, Enum):
    BIOMETRIC = "BIOMETRIC"
    CARD = "CARD"
    MANUAL = "MANUAL"


class LeaveStatus(str, Enum):
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    PENDING_APPROVAL = "PENDING_APPROVAL"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


class AttendanceStatus(str, Enum):
    PRESENT = "PRESENT"
    ABSENT = "ABSENT"
    ON_LEAVE = "ON_LEAVE"


class AttendanceExceptionType(str, Enum):
    LATE_ARRIVAL = "LATE_ARRIVAL"
    EARLY_DEPARTURE = "EARLY_DEPARTURE"
    MISSING_CHECKOUT = "MISSING_CHECKOUT"
    ABNORMAL_HOURS = "ABNORMAL_HOURS"
    UNAUTHORIZED_ABSENCE = "UNAUTHORIZED_ABSENCE"


class EmploymentStatus(str, Enum):
    ACTIVE = "ACTIVE"
    ON_LEAVE = "ON_LEAVE"
    SUSPENDED = "SUSPENDED"
    TERMINATED = "TERMINATED"


class ShiftType(str, Enum):
    DAY = "DAY"
    NIGHT = "NIGHT"


class LoanStatus(str, Enum):
    PENDING_APPROVAL = "PENDING_APPROVAL"
    ACTIVE = "ACTIVE"
    PAID_OFF = "PAID_OFF"
    CANCELLED = "CANCELLED"


class PayrollPeriodStatus(str, Enum):
    """Payroll period status values."""

    DRAFT = "DRAFT"
    CALCULATED = "CALCULATED"
    APPROVED = "APPROVED"
    PAID = "PAID"


class StakeholderRole(str, Enum):
    HOSPITAL = "HOSPITAL"
    DOCTOR = "DOCTOR"
    NURSE = "NURSE"
    ANESTHESIOLOGIST = "ANESTHESIOLOGIST"
    LAB_TECHNICIAN = "LAB_TECHNICIAN"
    PHARMACIST = "PHARMACIST"
    OUTSOURCE_DOCTOR = "OUTSOURCE_DOCTOR"
    OTHER_HEALTHCARE_WORKER = "OTHER_HEALTHCARE_WORKER"


class ShareType(str, Enum):
    PERCENTAGE = "PERCENTAGE"
    FIXED_AMOUNT = "FIXED_AMOUNT"


class SharePaymentStatus(str, Enum):
    PENDING = "PENDING"
    PARTIALLY_PAID = "PARTIALLY_PAID"
    PAID = "PAID"


class WarningCode(str, Enum):
    """Recoverable data-integrity findings. Logged and reported, never fatal."""

    ORPHAN_CHECK_OUT = "ORPHAN_CHECK_OUT"
    EVENTS_ON_LEAVE_DAY = "EVENTS_ON_LEAVE_DAY"
    MISSING_BASIC_SALARY = "MISSING_BASIC_SALARY"
    SHARE_OVER_ALLOCATION = "SHARE_OVER_ALLOCATION"
    UNKNOWN_STAKEHOLDER = "UNKNOWN_STAKEHOLDER"


@dataclass(frozen=True)
class IntegrityWarning:
    """A data-integrity warning attached to a derived record or run result."""

    code: WarningCode
    message: str
    employee_id: str | None = None
    work_date: date | None = None


# ===== Attendance =====


@dataclass(frozen=True)
class ClockEvent:
    """A single recorded check-in or check-out. Immutable once recorded."""

    employee_id: str
    work_date: date
    event_time: time
    kind: ClockEventKind
    source: ClockEventSource = ClockEventSource.BIOMETRIC
    sequence_no: int = 0
    event_id: UUID = field(default_factory=uuid4)


@dataclass(frozen=True)
class LeaveInterval:
    """Leave request spanning start_date..end_date inclusive."""

    employee_id: str
    start_date: date
    end_date: date
    leave_type: str
    status: LeaveStatus = LeaveStatus.APPROVED
    leave_id: UUID = field(default_factory=uuid4)

    def covers(self, work_date: date) -> bool:
        return self.start_date <= work_date <= self.end_date

    @property
    def is_approved(self) -> bool:
        return self.status == LeaveStatus.APPROVED


@dataclass(frozen=True)
class DailyAttendanceRecord:
    """Derived attendance status of one employee on one date."""

    employee_id: str
    work_date: date
    status: AttendanceStatus
    first_in: time | None = None
    last_out: time | None = None
    total_hours: Decimal = Decimal("0")
    regular_hours: Decimal = Decimal("0")
    overtime_hours: Decimal = Decimal("0")
    late_minutes: int = 0
    is_late: bool = False
    early_departure_minutes: int = 0
    is_early_departure: bool = False
    leave_type: str | None = None
    warnings: tuple[IntegrityWarning, ...] = ()

    @property
    def needs_review(self) -> bool:
        """Flagged for manual review when any integrity warning was raised."""
        return len(self.warnings) > 0

    @property
    def is_still_in(self) -> bool:
        return self.status == AttendanceStatus.PRESENT and self.last_out is None


@dataclass(frozen=True)
class AttendanceException:
    """An attendance anomaly surfaced for HR review."""

    employee_id: str
    work_date: date
    exception_type: AttendanceExceptionType
    details: str


@dataclass(frozen=True)
class AggregatedTotals:
    """Per-employee attendance totals over a payroll period."""

    employee_id: str
    period_start: date
    period_end: date
    total_days: int = 0
    days_present: int = 0
    days_absent: int = 0
    days_on_leave: int = 0
    regular_hours: Decimal = Decimal("0")
    overtime_hours: Decimal = Decimal("0")
    late_count: int = 0
    early_departure_count: int = 0


# ===== HR reference data =====


@dataclass(frozen=True)
class Employee:
    employee_id: str
    first_name: str
    last_name: str
    employee_number: str | None = None
    department: str | None = None
    employment_status: EmploymentStatus = EmploymentStatus.ACTIVE
    hire_date: date | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def is_active(self) -> bool:
        return self.employment_status == EmploymentStatus.ACTIVE


@dataclass(frozen=True)
class CompensationProfile:
    """Compensation profile owned by HR. Read-only to the payroll core."""

    employee_id: str
    basic_salary: Decimal | None
    grade: str | None = None
    shift_type: ShiftType = ShiftType.DAY
    bank_name: str | None = None
    bank_account_number: str | None = None


@dataclass(frozen=True)
class EmployeeLoan:
    employee_id: str
    principal: Decimal
    installment_amount: Decimal
    remaining_balance: Decimal
    status: LoanStatus = LoanStatus.ACTIVE
    loan_type: str = "PERSONAL"
    loan_id: UUID = field(default_factory=uuid4)

    @property
    def is_active(self) -> bool:
        return self.status == LoanStatus.ACTIVE


# ===== Payroll =====


@dataclass
class PayrollPeriod:
    """Payroll period. Status only moves forward (see PayrollPeriodStateMachine)."""

    period_id: UUID
    name: str
    start_date: date
    end_date: date
    status: PayrollPeriodStatus = PayrollPeriodStatus.DRAFT
    calculated_at: datetime | None = None
    approved_at: datetime | None = None
    paid_at: datetime | None = None


@dataclass(frozen=True)
class PayrollLine:
    """Computed pay of one employee for one period. Replaced wholesale on recalculation."""

    period_id: UUID
    employee_id: str
    basic_salary: Decimal
    housing_allowance: Decimal
    transport_allowance: Decimal
    meal_allowance: Decimal
    overtime_pay: Decimal
    night_shift_premium: Decimal
    gross: Decimal
    social_security_employee: Decimal
    social_security_employer: Decimal
    income_tax: Decimal
    loan_repayment: Decimal
    absence_deduction: Decimal
    total_deductions: Decimal
    net: Decimal
    days_present: int = 0
    days_absent: int = 0
    days_on_leave: int = 0
    overtime_hours: Decimal = Decimal("0")
    policy_version: str = ""
    calculation_hash: str = ""
    warnings: tuple[IntegrityWarning, ...] = ()

    def to_canonical_dict(self) -> dict[str, Any]:
        """Return canonical dict for hashing (deterministic ordering)."""
        return {
            "period_id": str(self.period_id),
            "employee_id": self.employee_id,
            "basic_salary": str(self.basic_salary),
            "housing_allowance": str(self.housing_allowance),
            "transport_allowance": str(self.transport_allowance),
            "meal_allowance": str(self.meal_allowance),
            "overtime_pay": str(self.overtime_pay),
            "night_shift_premium": str(self.night_shift_premium),
            "gross": str(self.gross),
            "social_security_employee": str(self.social_security_employee),
            "social_security_employer": str(self.social_security_employer),
            "income_tax": str(self.income_tax),
            "loan_repayment": str(self.loan_repayment),
            "absence_deduction": str(self.absence_deduction),
            "total_deductions": str(self.total_deductions),
            "net": str(self.net),
            "days_present": self.days_present,
            "days_absent": self.days_absent,
            "days_on_leave": self.days_on_leave,
            "overtime_hours": str(self.overtime_hours),
            "policy_version": self.policy_version,
        }


# ===== Revenue sharing =====


@dataclass(frozen=True)
class Stakeholder:
    stakeholder_id: str
    name: str
    role: StakeholderRole
    code: str | None = None
    is_active: bool = True


@dataclass(frozen=True)
class ShareTemplate:
    """How revenue of one service is split with one stakeholder.

    share_value is a percentage (0-100) for PERCENTAGE templates and an
    amount for FIXED_AMOUNT templates.
    """

    service_id: str
    stakeholder_id: str
    share_type: ShareType
    share_value: Decimal
    display_order: int = 0
    template_id: UUID = field(default_factory=uuid4)


@dataclass(frozen=True)
class InvoiceLine:
    invoice_line_id: UUID
    invoice_id: UUID
    service_id: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal


@dataclass(frozen=True)
class InvoiceShare:
    """A stakeholder's portion of an invoice line. Only payment fields ever change."""

    invoice_id: UUID
    invoice_line_id: UUID
    stakeholder_id: str
    share_type: ShareType
    share_amount: Decimal
    share_percentage: Decimal | None = None
    payment_status: SharePaymentStatus = SharePaymentStatus.PENDING
    amount_paid: Decimal = Decimal("0")
    payment_date: date | None = None
    template_id: UUID | None = None
    share_id: UUID = field(default_factory=uuid4)

    @property
    def outstanding(self) -> Decimal:
        return self.share_amount - self.amount_paid


@dataclass(frozen=True)
class AllocationResult:
    """Shares computed for one invoice line."""

    invoice_line_id: UUID
    line_total: Decimal
    shares: tuple[InvoiceShare, ...]
    warnings: tuple[IntegrityWarning, ...] = ()
    over_allocated: bool = False

    @property
    def total_allocated(self) -> Decimal:
        return sum((s.share_amount for s in self.shares), Decimal("0"))

    @property
    def residual(self) -> Decimal:
        """Portion of the line total retained by the facility."""
        return self.line_total - self.total_allocated
