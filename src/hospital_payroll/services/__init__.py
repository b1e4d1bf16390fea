"""Hospital payroll services."""

from hospital_payroll.services.state_machine import PayrollPeriodStateMachine, InvalidTransitionError
from hospital_payroll.services.repository import InMemoryRepository, PayrollRepository
from hospital_payroll.services.clock_capture import ClockCaptureStation, ScannerState
from hospital_payroll.services.attendance_service import AttendanceService
from hospital_payroll.services.payroll_service import PayrollRunResult, PayrollService, RunFailure
from hospital_payroll.services.revenue_service import RevenueShareService
from hospital_payroll.services.export_service import ExportService

__all__ = [
    "PayrollPeriodStateMachine",
    "InvalidTransitionError",
    "InMemoryRepository",
    "PayrollRepository",
    "ClockCaptureStation",
    "ScannerState",
    "AttendanceService",
    "PayrollRunResult",
    "PayrollService",
    "RunFailure",
    "RevenueShareService",
    "ExportService",
]
