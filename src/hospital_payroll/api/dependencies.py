"""FastAPI dependencies for dependency injection."""

from collections.abc import AsyncGenerator
from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from hospital_payroll.config import get_settings
from hospital_payroll.database import init_db
from hospital_payroll.policy import DEFAULT_POLICY, PayrollPolicy, load_policy_file
from hospital_payroll.services.attendance_service import AttendanceService
from hospital_payroll.services.export_service import ExportService
from hospital_payroll.services.payroll_service import PayrollService
from hospital_payroll.services.repository import PayrollRepository
from hospital_payroll.services.revenue_service import RevenueShareService
from hospital_payroll.services.sql_repository import SqlRepository


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency, committed when the request succeeds."""
    _, factory = init_db()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


DbSession = Annotated[AsyncSession, Depends(get_db_session)]


async def get_repository(db: DbSession) -> PayrollRepository:
    """Repository dependency. Tests override this with an in-memory repository."""
    return SqlRepository(db)


@lru_cache(maxsize=1)
def get_policy() -> PayrollPolicy:
    settings = get_settings()
    if settings.policy_file:
        return load_policy_file(settings.policy_file)
    return DEFAULT_POLICY


Repository = Annotated[PayrollRepository, Depends(get_repository)]
Policy = Annotated[PayrollPolicy, Depends(get_policy)]


def get_attendance_service(repository: Repository, policy: Policy) -> AttendanceService:
    return AttendanceService(repository, policy.attendance)


def get_payroll_service(repository: Repository, policy: Policy) -> PayrollService:
    return PayrollService(repository, policy, engine_version=get_settings().engine_version)


def get_revenue_service(repository: Repository) -> RevenueShareService:
    return RevenueShareService(repository)


def get_export_service(repository: Repository, policy: Policy) -> ExportService:
    return ExportService(repository, policy.compensation)


# Type aliases for cleaner dependency injection
Attendance = Annotated[AttendanceService, Depends(get_attendance_service)]
Payroll = Annotated[PayrollService, Depends(get_payroll_service)]
RevenueShares = Annotated[RevenueShareService, Depends(get_revenue_service)]
Exports = Annotated[ExportService, Depends(get_export_service)]
