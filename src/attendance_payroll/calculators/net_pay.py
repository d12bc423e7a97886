"""Net pay arithmetic shared by the detail store and the adjustment service."""

from __future__ import annotations

from decimal import Decimal

from attendance_payroll.calculators.types import ZERO, to_money


def compute_overtime_pay(hours: Decimal | None, rate: Decimal | None) -> Decimal:
    """overtime_pay = overtime_hours x overtime_rate, in cents."""
    return to_money((hours or ZERO) * (rate or ZERO))


def compute_net_pay(
    base_pay: Decimal,
    overtime_pay: Decimal = ZERO,
    bonus: Decimal = ZERO,
    deduction: Decimal = ZERO,
) -> Decimal:
    """net_pay = base_pay + overtime_pay + bonus - deduction.

    The result may be negative; finalization refuses such cycles.
    """
    return to_money(
        (base_pay or ZERO) + (overtime_pay or ZERO) + (bonus or ZERO) - (deduction or ZERO)
    )
