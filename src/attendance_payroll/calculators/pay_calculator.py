"""Base pay calculation from attendance intervals.

Rate selection:
    - An interval longer than the threshold (12 hours by default) is paid the
      flat daily rate, whatever its actual length.
    - Otherwise the interval is paid hours x hourly rate.
    - Each interval is rounded to cents before summing.

Intervals with a missing or non-positive duration pay nothing and are
counted as skipped. The calculator is a pure function of its arguments.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from attendance_payroll.calculators.types import (
    ZERO,
    BasePayResult,
    IntervalLike,
    IntervalPay,
    PayMethod,
    PayRule,
    to_money,
)

logger = logging.getLogger(__name__)

SECONDS_PER_HOUR = Decimal(3600)


def calculate_hours_worked(check_in_at: datetime | None, check_out_at: datetime | None) -> Decimal:
    """Exact hours between check-in and check-out, or 0 if not payable."""
    if check_in_at is None or check_out_at is None:
        return ZERO
    if (check_in_at.tzinfo is None) != (check_out_at.tzinfo is None):
        # Naive and aware timestamps cannot be compared
        return ZERO
    if check_out_at <= check_in_at:
        return ZERO

    delta = check_out_at - check_in_at
    seconds = Decimal(delta.days * 86400 + delta.seconds) + (
        Decimal(delta.microseconds) / Decimal(1_000_000)
    )
    return seconds / SECONDS_PER_HOUR


def interval_in_period(interval: IntervalLike, period_start: date, period_end: date) -> bool:
    """Check whether an interval's check-in date falls within the period.

    An overnight shift belongs to the cycle it started in.
    """
    if interval.check_in_at is None:
        return False
    return period_start <= interval.check_in_at.date() <= period_end


class PayCalculator:
    """Converts attendance intervals into base pay under a PayRule."""

    def __init__(self, rule: PayRule | None = None):
        self.rule = rule or PayRule()

    def interval_pay(
        self,
        hours: Decimal,
        hourly_rate: Decimal | None,
        daily_rate: Decimal | None,
    ) -> tuple[PayMethod, Decimal]:
        """Pick the rate for one interval and return (method, pay in cents)."""
        over_threshold = hours > self.rule.daily_rate_threshold_hours

        if over_threshold and daily_rate is not None:
            return PayMethod.DAILY, to_money(daily_rate)
        if hourly_rate is not None:
            return PayMethod.HOURLY, to_money(hours * hourly_rate)
        if daily_rate is not None:
            return PayMethod.DAILY, to_money(daily_rate)
        return PayMethod.HOURLY, ZERO

    def calculate_base_pay(
        self,
        employee_id: UUID,
        intervals: Iterable[IntervalLike],
        period_start: date,
        period_end: date,
        hourly_rate: Decimal | None,
        daily_rate: Decimal | None,
    ) -> BasePayResult:
        """Calculate base pay for one employee over one cycle.

        Intervals belonging to other employees or outside the period are
        ignored, so callers may pass a broader list.
        """
        result = BasePayResult(employee_id=employee_id)
        if hourly_rate is None and daily_rate is None:
            logger.warning("Employee %s has no hourly or daily rate; paying 0", employee_id)

        total_hours = ZERO
        ordered = sorted(
            (
                i
                for i in intervals
                if i.employee_id == employee_id
                and interval_in_period(i, period_start, period_end)
            ),
            key=lambda i: i.check_in_at,
        )

        for interval in ordered:
            hours = calculate_hours_worked(interval.check_in_at, interval.check_out_at)
            if hours <= ZERO:
                result.skipped_intervals += 1
                continue

            method, pay = self.interval_pay(hours, hourly_rate, daily_rate)
            result.breakdown.append(
                IntervalPay(
                    work_date=interval.check_in_at.date(),
                    hours=to_money(hours),
                    method=method,
                    pay=pay,
                )
            )
            total_hours += hours
            result.base_pay += pay

        result.total_hours = to_money(total_hours)
        result.base_pay = to_money(result.base_pay)
        return result
