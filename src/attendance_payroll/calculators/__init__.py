"""Pay calculation."""

from attendance_payroll.calculators.net_pay import compute_net_pay, compute_overtime_pay
from attendance_payroll.calculators.pay_calculator import PayCalculator, calculate_hours_worked
from attendance_payroll.calculators.types import (
    AttendanceRecord,
    BasePayResult,
    IntervalPay,
    PayMethod,
    PayRule,
    to_money,
)

__all__ = [
    "AttendanceRecord",
    "BasePayResult",
    "IntervalPay",
    "PayCalculator",
    "PayMethod",
    "PayRule",
    "calculate_hours_worked",
    "compute_net_pay",
    "compute_overtime_pay",
    "to_money",
]
