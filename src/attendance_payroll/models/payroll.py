"""Payroll cycle and payroll detail models."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    event,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from attendance_payroll.calculators.net_pay import compute_net_pay, compute_overtime_pay
from attendance_payroll.models.attendance import Employee
from attendance_payroll.models.base import Base, TimestampMixin, utcnow


class PayrollCycle(Base, TimestampMixin):
    """A named, inclusive date range that attendance is aggregated over."""

    __tablename__ = "payroll_cycle"

    payroll_cycle_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    period_start: Mapped[date] = mapped_column(Date, nullable=False)
    period_end: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="active")
    finalized_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    finalized_by: Mapped[UUID | None] = mapped_column(nullable=True)
    total_employees: Mapped[int | None] = mapped_column(Integer, nullable=True)
    total_amount: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)

    __table_args__ = (
        UniqueConstraint("name", name="payroll_cycle_name_unique"),
        CheckConstraint(
            "status IN ('active', 'completed')",
            name="payroll_cycle_status_check",
        ),
        CheckConstraint("period_end >= period_start", name="payroll_cycle_dates_check"),
        CheckConstraint(
            "(status = 'active' AND finalized_at IS NULL AND finalized_by IS NULL) OR "
            "(status = 'completed' AND finalized_at IS NOT NULL AND finalized_by IS NOT NULL)",
            name="payroll_cycle_finalized_check",
        ),
    )

    details: Mapped[list[PayrollDetail]] = relationship(
        back_populates="cycle",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def is_completed(self) -> bool:
        return self.status == "completed"


class PayrollDetail(Base, TimestampMixin):
    """Pay for one employee in one cycle.

    net_pay is derived and recomputed on every insert and update.
    """

    __tablename__ = "payroll_detail"

    payroll_detail_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    payroll_cycle_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_cycle.payroll_cycle_id", ondelete="CASCADE"),
        nullable=False,
    )
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="CASCADE"),
        nullable=False,
    )
    base_pay: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    overtime_hours: Mapped[Decimal] = mapped_column(
        Numeric(8, 2), nullable=False, default=Decimal("0")
    )
    overtime_rate: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0")
    )
    overtime_pay: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0")
    )
    bonus: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    bonus_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    deduction: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0")
    )
    deduction_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    net_pay: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))

    # Attendance totals from the last calculation
    total_hours: Mapped[Decimal] = mapped_column(
        Numeric(8, 2), nullable=False, default=Decimal("0")
    )
    total_days_worked: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    calculation_method: Mapped[str | None] = mapped_column(String, nullable=True)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        UniqueConstraint("payroll_cycle_id", "employee_id", name="payroll_detail_cycle_employee_unique"),
        CheckConstraint("base_pay >= 0", name="payroll_detail_base_pay_check"),
        CheckConstraint("overtime_hours >= 0", name="payroll_detail_overtime_hours_check"),
        CheckConstraint("overtime_rate >= 0", name="payroll_detail_overtime_rate_check"),
        CheckConstraint("bonus >= 0", name="payroll_detail_bonus_check"),
        CheckConstraint("deduction >= 0", name="payroll_detail_deduction_check"),
        CheckConstraint(
            "(bonus = 0 AND bonus_reason IS NULL) OR "
            "(bonus > 0 AND bonus_reason IS NOT NULL AND length(trim(bonus_reason)) > 0)",
            name="payroll_detail_bonus_reason_check",
        ),
        CheckConstraint(
            "(deduction = 0 AND deduction_reason IS NULL) OR "
            "(deduction > 0 AND deduction_reason IS NOT NULL AND length(trim(deduction_reason)) > 0)",
            name="payroll_detail_deduction_reason_check",
        ),
        CheckConstraint(
            "calculation_method IS NULL OR calculation_method IN ('hourly', 'daily', 'mixed')",
            name="payroll_detail_calculation_method_check",
        ),
    )

    cycle: Mapped[PayrollCycle] = relationship(back_populates="details")
    employee: Mapped[Employee] = relationship()

    def recompute_net_pay(self) -> Decimal:
        """Refresh overtime_pay and net_pay from the stored inputs."""
        self.overtime_pay = compute_overtime_pay(self.overtime_hours, self.overtime_rate)
        self.net_pay = compute_net_pay(
            self.base_pay or Decimal("0"),
            self.overtime_pay,
            self.bonus or Decimal("0"),
            self.deduction or Decimal("0"),
        )
        return self.net_pay

    def adjustment_snapshot(self) -> dict[str, Any]:
        """Values captured in the audit trail around an adjustment."""
        return {
            "bonus": self.bonus,
            "bonus_reason": self.bonus_reason,
            "deduction": self.deduction,
            "deduction_reason": self.deduction_reason,
            "overtime_hours": self.overtime_hours,
            "overtime_rate": self.overtime_rate,
            "overtime_pay": self.overtime_pay,
            "net_pay": self.net_pay,
        }


@event.listens_for(PayrollDetail, "before_insert")
@event.listens_for(PayrollDetail, "before_update")
def _recompute_derived_pay(mapper: Any, connection: Any, target: PayrollDetail) -> None:
    target.recompute_net_pay()
