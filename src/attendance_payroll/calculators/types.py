"""Type definitions for the pay calculation pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Protocol
from uuid import UUID

CENT = Decimal("0.01")
ZERO = Decimal("0")


def to_money(value: Decimal | int | float | str) -> Decimal:
    """Quantize a value to cents using half-up rounding."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


class PayMethod(str, Enum):
    """How an interval (or a whole employee) was paid."""

    HOURLY = "hourly"
    DAILY = "daily"
    MIXED = "mixed"


class IntervalLike(Protocol):
    """Anything shaped like an attendance interval."""

    employee_id: UUID
    check_in_at: datetime | None
    check_out_at: datetime | None


@dataclass(frozen=True)
class AttendanceRecord:
    """Plain attendance interval, detached from the ORM."""

    employee_id: UUID
    check_in_at: datetime | None
    check_out_at: datetime | None
    branch_id: UUID | None = None


@dataclass(frozen=True)
class PayRule:
    """Rate-selection rule.

    An interval longer than ``daily_rate_threshold_hours`` is paid the flat
    daily rate; anything up to and including the threshold is paid hourly.
    """

    daily_rate_threshold_hours: Decimal = Decimal("12")

    def __post_init__(self) -> None:
        if self.daily_rate_threshold_hours <= 0:
            raise ValueError("daily_rate_threshold_hours must be positive")


@dataclass(frozen=True)
class IntervalPay:
    """Pay for a single payable interval."""

    work_date: date
    hours: Decimal
    method: PayMethod
    pay: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.work_date.isoformat(),
            "hours": str(self.hours),
            "method": self.method.value,
            "pay": str(self.pay),
        }


@dataclass
class BasePayResult:
    """Result of calculating base pay for one employee over one cycle."""

    employee_id: UUID
    base_pay: Decimal = ZERO
    total_hours: Decimal = ZERO
    breakdown: list[IntervalPay] = field(default_factory=list)
    skipped_intervals: int = 0

    @property
    def total_days_worked(self) -> int:
        return len({line.work_date for line in self.breakdown})

    @property
    def calculation_method(self) -> PayMethod:
        methods = {line.method for line in self.breakdown}
        if methods == {PayMethod.DAILY}:
            return PayMethod.DAILY
        if len(methods) > 1:
            return PayMethod.MIXED
        return PayMethod.HOURLY
