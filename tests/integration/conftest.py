"""Integration test fixtures: the HTTP API over an in-memory database."""

from collections.abc import AsyncGenerator
from datetime import date, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from attendance_payroll.api.app import create_app
from attendance_payroll.api.dependencies import provide_session_factory
from attendance_payroll.models import AttendanceInterval, Employee

from ..conftest import ADMIN_ID, at

ADMIN_HEADERS = {
    "X-Actor-ID": str(ADMIN_ID),
    "X-Actor-Role": "admin",
    "X-Forwarded-For": "198.51.100.20, 10.0.0.1",
    "User-Agent": "integration-tests",
}


@pytest_asyncio.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client bound to the test database."""
    app = create_app()
    app.dependency_overrides[provide_session_factory] = lambda: session_factory
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return dict(ADMIN_HEADERS)


@pytest_asyncio.fixture
async def staff(session: AsyncSession) -> dict[str, Employee]:
    """Two employees with a week of attendance in January 2026.

    Dana: 5 shifts of 8h at 40.00/h = 1600.00
    Eli: 3 shifts of 10h at 1000.00/day = 3000.00
    """
    dana = Employee(
        employee_id=uuid4(),
        full_name="Dana Okafor",
        hourly_rate=Decimal("40.00"),
        daily_rate=None,
    )
    eli = Employee(
        employee_id=uuid4(),
        full_name="Eli Novak",
        hourly_rate=None,
        daily_rate=Decimal("1000.00"),
    )
    session.add_all([dana, eli])

    first = date(2026, 1, 5)
    for n in range(5):
        check_in = at(first + timedelta(days=n), 9)
        session.add(
            AttendanceInterval(
                attendance_interval_id=uuid4(),
                employee_id=dana.employee_id,
                check_in_at=check_in,
                check_out_at=check_in + timedelta(hours=8),
            )
        )
    for n in range(3):
        check_in = at(first + timedelta(days=n), 7)
        session.add(
            AttendanceInterval(
                attendance_interval_id=uuid4(),
                employee_id=eli.employee_id,
                check_in_at=check_in,
                check_out_at=check_in + timedelta(hours=10),
            )
        )
    await session.commit()
    return {"dana": dana, "eli": eli}
