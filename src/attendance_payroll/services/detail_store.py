"""Persistence of payroll details, guarded by the owning cycle's status."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from attendance_payroll.calculators import PayMethod, to_money
from attendance_payroll.errors import CycleLockedError, NotFoundError
from attendance_payroll.models import PayrollCycle, PayrollDetail
from attendance_payroll.services.state_machine import CycleStateMachine


@dataclass
class UpsertResult:
    detail: PayrollDetail
    created: bool
    previous: dict[str, Any] | None = None


class PayrollDetailStore:
    """Reads and writes payroll details.

    Every write first takes a shared lock on the cycle row, so writes
    serialize against finalization and see a completed status once it has
    committed. The store never commits; callers own the transaction.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def lock_cycle(
        self,
        cycle_id: UUID,
        operation: str,
        exclusive: bool = False,
    ) -> PayrollCycle:
        """Load the cycle row locked and check that it still accepts writes."""
        result = await self.session.execute(
            select(PayrollCycle)
            .where(PayrollCycle.payroll_cycle_id == cycle_id)
            .with_for_update(read=not exclusive)
            .execution_options(populate_existing=True)
        )
        cycle = result.scalar_one_or_none()
        if cycle is None:
            raise NotFoundError("Payroll cycle", cycle_id)
        if not CycleStateMachine.accepts_writes(cycle.status):
            raise CycleLockedError(cycle_id, operation)
        return cycle

    async def get(self, cycle_id: UUID, employee_id: UUID) -> PayrollDetail | None:
        result = await self.session.execute(
            select(PayrollDetail).where(
                PayrollDetail.payroll_cycle_id == cycle_id,
                PayrollDetail.employee_id == employee_id,
            )
        )
        return result.scalar_one_or_none()

    async def get_by_id(self, detail_id: UUID) -> PayrollDetail | None:
        return await self.session.get(PayrollDetail, detail_id)

    async def list_by_cycle(self, cycle_id: UUID) -> list[PayrollDetail]:
        result = await self.session.execute(
            select(PayrollDetail)
            .where(PayrollDetail.payroll_cycle_id == cycle_id)
            .order_by(PayrollDetail.created_at, PayrollDetail.payroll_detail_id)
        )
        return list(result.scalars().all())

    async def lock_detail(self, detail_id: UUID, operation: str) -> PayrollDetail:
        """Load a detail for modification.

        The owning cycle is share-locked and checked first, then the detail
        row is locked for update and refreshed from the database.
        """
        cycle_id = await self.session.scalar(
            select(PayrollDetail.payroll_cycle_id).where(
                PayrollDetail.payroll_detail_id == detail_id
            )
        )
        if cycle_id is None:
            raise NotFoundError("Payroll detail", detail_id)

        await self.lock_cycle(cycle_id, operation)

        result = await self.session.execute(
            select(PayrollDetail)
            .where(PayrollDetail.payroll_detail_id == detail_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        detail = result.scalar_one_or_none()
        if detail is None:
            raise NotFoundError("Payroll detail", detail_id)
        return detail

    async def upsert_base_pay(
        self,
        cycle_id: UUID,
        employee_id: UUID,
        base_pay: Decimal,
        total_hours: Decimal = Decimal("0"),
        total_days_worked: int = 0,
        calculation_method: PayMethod | str | None = None,
        overtime_hours: Decimal | None = None,
        overtime_rate: Decimal | None = None,
        cycle_locked: bool = False,
    ) -> UpsertResult:
        """Create or refresh the detail for one employee.

        Base pay and attendance totals are replaced, overtime inputs only
        when given. Bonus and deduction are kept. net_pay is recomputed.
        """
        if not cycle_locked:
            await self.lock_cycle(cycle_id, "upsert base pay")

        if isinstance(calculation_method, PayMethod):
            calculation_method = calculation_method.value

        result = await self.session.execute(
            select(PayrollDetail)
            .where(
                PayrollDetail.payroll_cycle_id == cycle_id,
                PayrollDetail.employee_id == employee_id,
            )
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        detail = result.scalar_one_or_none()

        if detail is None:
            detail = PayrollDetail(
                payroll_detail_id=uuid4(),
                payroll_cycle_id=cycle_id,
                employee_id=employee_id,
                base_pay=to_money(base_pay),
                overtime_hours=to_money(overtime_hours or 0),
                overtime_rate=to_money(overtime_rate or 0),
                bonus=Decimal("0.00"),
                deduction=Decimal("0.00"),
                total_hours=to_money(total_hours),
                total_days_worked=total_days_worked,
                calculation_method=calculation_method,
            )
            detail.recompute_net_pay()
            self.session.add(detail)
            return UpsertResult(detail=detail, created=True)

        previous = {
            "base_pay": detail.base_pay,
            "overtime_pay": detail.overtime_pay,
            "net_pay": detail.net_pay,
        }
        detail.base_pay = to_money(base_pay)
        detail.total_hours = to_money(total_hours)
        detail.total_days_worked = total_days_worked
        detail.calculation_method = calculation_method
        if overtime_hours is not None:
            detail.overtime_hours = to_money(overtime_hours)
        if overtime_rate is not None:
            detail.overtime_rate = to_money(overtime_rate)
        detail.recompute_net_pay()
        return UpsertResult(detail=detail, created=False, previous=previous)

    async def delete_by_cycle(self, cycle_id: UUID) -> int:
        """Remove every detail of an active cycle. Returns the count removed."""
        await self.lock_cycle(cycle_id, "reset details")
        detail_ids = list(
            await self.session.scalars(
                select(PayrollDetail.payroll_detail_id).where(
                    PayrollDetail.payroll_cycle_id == cycle_id
                )
            )
        )
        if detail_ids:
            await self.session.execute(
                delete(PayrollDetail)
                .where(PayrollDetail.payroll_detail_id.in_(detail_ids))
                .execution_options(synchronize_session="fetch")
            )
        return len(detail_ids)
