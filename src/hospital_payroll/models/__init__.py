"""SQLAlchemy ORM models for the hospital payroll core."""

from hospital_payroll.models.base import Base, TimestampMixin
from hospital_payroll.models.employee import CompensationProfile, Employee, EmployeeLoan
from hospital_payroll.models.attendance import ClockEvent, LeaveRequest
from hospital_payroll.models.payroll import PayrollLine, PayrollPeriod
from hospital_payroll.models.revenue import InvoiceLine, InvoiceShare, ShareTemplate, Stakeholder

__all__ = [
    "Base",
    "TimestampMixin",
    "Employee",
    "CompensationProfile",
    "EmployeeLoan",
    "ClockEvent",
    "LeaveRequest",
    "PayrollPeriod",
    "PayrollLine",
    "Stakeholder",
    "ShareTemplate",
    "InvoiceLine",
    "InvoiceShare",
]
