"""Employee and attendance records supplied by the attendance system.

The payroll engine only reads these tables; check-in gating and employee
management live elsewhere.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from attendance_payroll.models.base import Base, TimestampMixin


class Employee(Base, TimestampMixin):
    """Employee with the pay rates used by the calculator."""

    __tablename__ = "employee"

    employee_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    full_name: Mapped[str] = mapped_column(String, nullable=False)
    hourly_rate: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    daily_rate: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        CheckConstraint(
            "hourly_rate IS NULL OR hourly_rate >= 0", name="employee_hourly_rate_check"
        ),
        CheckConstraint(
            "daily_rate IS NULL OR daily_rate >= 0", name="employee_daily_rate_check"
        ),
    )

    intervals: Mapped[list[AttendanceInterval]] = relationship(back_populates="employee")


class AttendanceInterval(Base, TimestampMixin):
    """One check-in/check-out pair. Checkout may still be missing."""

    __tablename__ = "attendance_interval"

    attendance_interval_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="CASCADE"),
        nullable=False,
    )
    branch_id: Mapped[UUID | None] = mapped_column(nullable=True)
    check_in_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    check_out_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("attendance_interval_employee_check_in_idx", "employee_id", "check_in_at"),
    )

    employee: Mapped[Employee] = relationship(back_populates="intervals")
