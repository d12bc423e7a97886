"""Pytest fixtures for attendance payroll tests."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import AsyncGenerator
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from attendance_payroll.database import create_schema, make_session_factory
from attendance_payroll.models import (
    AttendanceInterval,
    Employee,
    PayrollCycle,
    PayrollDetail,
)
from attendance_payroll.services.audit_trail import AuditContext, AuditTrail

# In-memory SQLite shared by every session of a test through one connection
TEST_DATABASE_URL = "sqlite+aiosqlite://"

ADMIN_ID = UUID("0f4a3c2e-6b1d-4e8a-9c7f-2d5b8e1a6c30")

PERIOD_START = date(2026, 1, 1)
PERIOD_END = date(2026, 1, 15)


def at(day: date, hour: int, minute: int = 0) -> datetime:
    """UTC timestamp on a given day."""
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=timezone.utc)


def shift(employee: Employee, day: date, start_hour: int, hours: float) -> AttendanceInterval:
    """An attendance interval starting at start_hour and lasting the given hours."""
    check_in = at(day, start_hour)
    return AttendanceInterval(
        attendance_interval_id=uuid4(),
        employee_id=employee.employee_id,
        check_in_at=check_in,
        check_out_at=check_in + timedelta(hours=hours),
    )


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create a fresh in-memory database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return make_session_factory(engine)


@pytest_asyncio.fixture
async def session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def audit(session_factory: async_sessionmaker[AsyncSession]) -> AuditTrail:
    return AuditTrail(session_factory, max_limit=500)


@pytest.fixture
def actor() -> AuditContext:
    return AuditContext(actor_user_id=ADMIN_ID, ip_address="203.0.113.7", user_agent="pytest")


@pytest_asyncio.fixture
async def employees(session: AsyncSession) -> dict[str, Employee]:
    """Employees with different rate setups."""
    alice = Employee(
        employee_id=uuid4(),
        full_name="Alice Chan",
        hourly_rate=Decimal("50.00"),
        daily_rate=Decimal("600.00"),
    )
    bob = Employee(
        employee_id=uuid4(),
        full_name="Bob Suzuki",
        hourly_rate=Decimal("100.00"),
        daily_rate=None,
    )
    carol = Employee(
        employee_id=uuid4(),
        full_name="Carol Diaz",
        hourly_rate=None,
        daily_rate=Decimal("800.00"),
    )
    session.add_all([alice, bob, carol])
    await session.commit()
    return {"alice": alice, "bob": bob, "carol": carol}


@pytest_asyncio.fixture
async def cycle(session: AsyncSession) -> PayrollCycle:
    """An active cycle covering the first half of January 2026."""
    cycle = PayrollCycle(
        payroll_cycle_id=uuid4(),
        name="January 2026 (1st half)",
        period_start=PERIOD_START,
        period_end=PERIOD_END,
        status="active",
    )
    session.add(cycle)
    await session.commit()
    return cycle


@pytest_asyncio.fixture
async def scenario_detail(
    session: AsyncSession,
    cycle: PayrollCycle,
    employees: dict[str, Employee],
) -> PayrollDetail:
    """Base 30000, overtime 5000, bonus 2000, deduction 1500: net 35500."""
    detail = PayrollDetail(
        payroll_detail_id=uuid4(),
        payroll_cycle_id=cycle.payroll_cycle_id,
        employee_id=employees["alice"].employee_id,
        base_pay=Decimal("30000.00"),
        overtime_hours=Decimal("10.00"),
        overtime_rate=Decimal("500.00"),
        bonus=Decimal("2000.00"),
        bonus_reason="Quarterly target reached",
        deduction=Decimal("1500.00"),
        deduction_reason="Uniform",
    )
    session.add(detail)
    await session.commit()
    return detail
