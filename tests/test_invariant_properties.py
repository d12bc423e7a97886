"""Property-based tests for payroll invariants.

These tests use hypothesis to generate amounts, adjustment sequences and
attendance sets, and check that the net pay formula and the calculator
hold for all of them.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

from hypothesis import given, settings, strategies as st

from attendance_payroll.calculators import (
    AttendanceRecord,
    PayCalculator,
    compute_net_pay,
    compute_overtime_pay,
    to_money,
)
from attendance_payroll.errors import ValidationError
from attendance_payroll.services.adjustment_service import validate_adjustment

EMPLOYEE = uuid4()
START = date(2026, 1, 1)
END = date(2026, 1, 31)

money = st.decimals(
    min_value=Decimal("0"),
    max_value=Decimal("1000000"),
    places=2,
    allow_nan=False,
    allow_infinity=False,
)
rates = st.one_of(st.none(), money)

intervals = st.lists(
    st.builds(
        lambda day, minute, length: AttendanceRecord(
            employee_id=EMPLOYEE,
            check_in_at=datetime(2026, 1, day, tzinfo=timezone.utc) + timedelta(minutes=minute),
            check_out_at=(
                datetime(2026, 1, day, tzinfo=timezone.utc)
                + timedelta(minutes=minute + length)
            ),
        ),
        day=st.integers(min_value=1, max_value=31),
        minute=st.integers(min_value=0, max_value=23 * 60),
        length=st.integers(min_value=-60, max_value=20 * 60),
    ),
    max_size=20,
)


# =============================================================================
# Net pay
# =============================================================================


@given(base=money, hours=money, rate=money, bonus=money, deduction=money)
def test_net_pay_formula(base, hours, rate, bonus, deduction):
    overtime = compute_overtime_pay(hours, rate)
    net = compute_net_pay(base, overtime, bonus, deduction)

    assert net == base + overtime + bonus - deduction
    assert net == to_money(net)


@given(
    base=money,
    steps=st.lists(
        st.tuples(st.sampled_from(["bonus", "deduction"]), money),
        min_size=1,
        max_size=10,
    ),
)
def test_net_pay_holds_after_any_adjustment_sequence(base, steps):
    state = {"bonus": Decimal("0.00"), "deduction": Decimal("0.00")}
    for field_name, amount in steps:
        amount, reason = validate_adjustment(amount, "reason", field_name.capitalize())
        state[field_name] = amount
        assert (reason is None) == (amount == 0)

        net = compute_net_pay(base, Decimal("0"), state["bonus"], state["deduction"])
        assert net == base + state["bonus"] - state["deduction"]


@given(amount=money.filter(lambda a: a > 0))
def test_positive_amount_always_needs_reason(amount):
    try:
        validate_adjustment(amount, "  ", "Bonus")
    except ValidationError as exc:
        assert len(exc.errors) == 1
    else:
        raise AssertionError("blank reason accepted")


# =============================================================================
# Calculator
# =============================================================================


@settings(max_examples=200)
@given(records=intervals, hourly=rates, daily=rates)
def test_calculation_is_idempotent(records, hourly, daily):
    calculator = PayCalculator()
    first = calculator.calculate_base_pay(EMPLOYEE, records, START, END, hourly, daily)
    second = calculator.calculate_base_pay(EMPLOYEE, list(reversed(records)), START, END, hourly, daily)

    assert first.base_pay == second.base_pay
    assert first.total_hours == second.total_hours


@given(records=intervals, hourly=rates, daily=rates)
def test_base_pay_is_sum_of_rounded_lines(records, hourly, daily):
    result = PayCalculator().calculate_base_pay(EMPLOYEE, records, START, END, hourly, daily)

    assert result.base_pay == sum((line.pay for line in result.breakdown), Decimal("0"))
    assert all(line.pay == to_money(line.pay) for line in result.breakdown)
    assert all(line.pay >= 0 for line in result.breakdown)
    assert len(result.breakdown) + result.skipped_intervals == len(records)
