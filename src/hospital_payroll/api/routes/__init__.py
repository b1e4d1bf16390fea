"""API routes."""

from hospital_payroll.api.routes.attendance import router as attendance_router
from hospital_payroll.api.routes.end_of_service import router as end_of_service_router
from hospital_payroll.api.routes.health import router as health_router
from hospital_payroll.api.routes.payroll import router as payroll_router
from hospital_payroll.api.routes.revenue import router as revenue_router

__all__ = [
    "attendance_router",
    "end_of_service_router",
    "health_router",
    "payroll_router",
    "revenue_router",
]
