"""Integration test fixtures backed by an in-memory SQLite database."""

from collections.abc import AsyncGenerator
from datetime import date, time, timedelta
from decimal import Decimal
from uuid import UUID

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from hospital_payroll import models
from hospital_payroll.api.app import create_app
from hospital_payroll.api.dependencies import get_db_session
from hospital_payroll.database import create_schema, make_session_factory

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Fixed IDs for seeded rows
PERIOD_ID = UUID("7c1a4f52-3a0e-4b59-9a51-0c2f6e0d1001")
INVOICE_ID = UUID("7c1a4f52-3a0e-4b59-9a51-0c2f6e0d2001")
INVOICE_LINE_ID = UUID("7c1a4f52-3a0e-4b59-9a51-0c2f6e0d2002")

PERIOD_START = date(2026, 3, 1)
PERIOD_END = date(2026, 3, 22)
OVERTIME_DAY = date(2026, 3, 10)


@pytest_asyncio.fixture
async def test_engine() -> AsyncGenerator[AsyncEngine, None]:
    """One private in-memory database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
    )
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    factory = make_session_factory(test_engine)
    async with factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def seeded_db(db_session: AsyncSession) -> AsyncSession:
    """Seed one nurse who worked every day of the period, plus a surgery invoice line.

    2026-03-10 runs four hours past the shift end.
    """
    db_session.add(
        models.Employee(
            employee_id="EMP-001",
            employee_number="N-1001",
            first_name="Layla",
            last_name="Hassan",
            department="Nursing",
            hire_date=date(2018, 1, 1),
        )
    )
    db_session.add(
        models.CompensationProfile(
            employee_id="EMP-001",
            basic_salary=Decimal("2000000"),
            grade="G5",
            bank_name="Rafidain Bank",
            bank_account_number="IQ12RAFI0000001",
        )
    )
    db_session.add(
        models.PayrollPeriod(
            period_id=PERIOD_ID,
            name="March 2026 (1-22)",
            start_date=PERIOD_START,
            end_date=PERIOD_END,
        )
    )

    work_date = PERIOD_START
    while work_date <= PERIOD_END:
        check_out = time(20, 30) if work_date == OVERTIME_DAY else time(16, 30)
        for seq, (kind, at) in enumerate(
            [("CHECK_IN", time(8, 30)), ("CHECK_OUT", check_out)], start=1
        ):
            db_session.add(
                models.ClockEvent(
                    employee_id="EMP-001",
                    work_date=work_date,
                    event_time=at,
                    kind=kind,
                    source="BIOMETRIC",
                    sequence_no=seq,
                )
            )
        work_date += timedelta(days=1)

    db_session.add_all(
        [
            models.Stakeholder(stakeholder_id="HOSP", code="HOSP", name="Al-Noor Hospital", role="HOSPITAL"),
            models.Stakeholder(stakeholder_id="DR-7", code="DR7", name="Dr. Karim Saleh", role="DOCTOR"),
            models.Stakeholder(
                stakeholder_id="AN-2", code="AN2", name="Dr. Rana Aziz", role="ANESTHESIOLOGIST"
            ),
            models.ShareTemplate(
                service_id="SURG-APPX",
                stakeholder_id="DR-7",
                share_type="PERCENTAGE",
                share_value=Decimal("40"),
                display_order=1,
            ),
            models.ShareTemplate(
                service_id="SURG-APPX",
                stakeholder_id="AN-2",
                share_type="FIXED_AMOUNT",
                share_value=Decimal("150000"),
                display_order=2,
            ),
            models.ShareTemplate(
                service_id="SURG-APPX",
                stakeholder_id="HOSP",
                share_type="PERCENTAGE",
                share_value=Decimal("35"),
                display_order=3,
            ),
            models.InvoiceLine(
                invoice_line_id=INVOICE_LINE_ID,
                invoice_id=INVOICE_ID,
                service_id="SURG-APPX",
                quantity=1,
                unit_price=Decimal("1000000"),
                line_total=Decimal("1000000"),
            ),
        ]
    )
    await db_session.commit()
    return db_session


@pytest_asyncio.fixture
async def client(test_engine: AsyncEngine, seeded_db: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client whose requests each get their own session on the test database."""
    app = create_app()
    factory = make_session_factory(test_engine)

    async def override_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_db_session
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
