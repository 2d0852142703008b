"""Core calculation engine for the mortgage calculator.

This module implements the financial logic required to build amortization
schedules for fixed-rate annuity loans. It supports a recurring extra
principal payment and one-time lump sums, both described by a
``ScenarioOverride``. Schedules are returned as a list of ``PaymentRow``
objects; ``calculate_summary`` reduces a schedule to a ``ScenarioSummary``,
optionally compared against a baseline schedule.

Amounts are plain floats and are never rounded to cents inside the schedule.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from .data_models import LoanParameters, PaymentRow, ScenarioOverride, ScenarioSummary
from .utils import add_months

# Balances at or below this amount count as paid off. Absorbs the floating
# point residue left after the final payment.
PAYOFF_EPSILON = 0.01


def calculate_monthly_payment(principal: float, annual_rate: float, term_months: int) -> float:
    """Return the annuity (equal installment) monthly payment for a loan.

    The formula is:

        payment = P * i / (1 - (1 + i)^-n)

    which equals ``P * (i * (1 + i)^n) / ((1 + i)^n - 1)`` but cannot overflow
    for large rates or terms; it tends to ``P * i`` as ``n`` grows. ``P`` is
    the principal, ``i`` is the monthly interest rate
    (``annual_rate / 100 / 12``) and ``n`` is the number of payments. When the
    interest rate is zero, or too small to change ``1 + i``, the payment
    simplifies to ``P / n``.
    """
    rate_per_month = annual_rate / 100 / 12
    if rate_per_month == 0:
        return principal / term_months
    discount = 1 - (1 + rate_per_month) ** -term_months
    if discount == 0:
        return principal / term_months
    return principal * rate_per_month / discount


def generate_schedule(
    params: LoanParameters, override: Optional[ScenarioOverride] = None
) -> List[PaymentRow]:
    """Compute the amortization schedule for a loan.

    Parameters
    ----------
    params: LoanParameters
        The loan being amortized.
    override: ScenarioOverride, optional
        Extra principal to apply on top of the regular installment. Without
        an override the base schedule is produced.

    Returns
    -------
    List[PaymentRow]
        One row per elapsed month. The schedule ends early when the balance
        is paid off before ``term_months``.
    """
    rate_per_month = params.annual_rate / 100 / 12
    base_payment = calculate_monthly_payment(params.principal, params.annual_rate, params.term_months)
    extra_monthly = override.extra_monthly_principal if override else 0.0
    lump_sums = override.lump_sum_payments if override else {}

    schedule: List[PaymentRow] = []
    balance = params.principal
    period = 1
    while period <= params.term_months and balance > PAYOFF_EPSILON:
        interest_paid = balance * rate_per_month
        scheduled_principal = base_payment - interest_paid
        requested_extra = extra_monthly + lump_sums.get(period, 0.0)

        # Never pay more principal than is outstanding
        principal_paid = min(scheduled_principal + requested_extra, balance)
        extra_payment = principal_paid - scheduled_principal

        balance -= principal_paid
        schedule.append(
            PaymentRow(
                period=period,
                date=add_months(params.start_date, period - 1),
                base_payment=base_payment,
                extra_payment=extra_payment,
                total_payment=base_payment + extra_payment + params.fixed_monthly_add_on,
                principal_paid=principal_paid,
                interest_paid=interest_paid,
                remaining_balance=max(0.0, balance),
            )
        )
        period += 1

    return schedule


def calculate_summary(
    schedule: Sequence[PaymentRow], base_schedule: Optional[Sequence[PaymentRow]] = None
) -> ScenarioSummary:
    """Reduce a schedule to totals, optionally compared to a baseline.

    ``interest_saved`` and ``months_saved`` are baseline minus scenario, so
    they are negative when the scenario is worse. Without ``base_schedule``
    both are zero.
    """
    total_interest = sum(row.interest_paid for row in schedule)
    total_paid = sum(row.total_payment for row in schedule)
    months_to_payoff = len(schedule)

    interest_saved = 0.0
    months_saved = 0
    if base_schedule is not None:
        interest_saved = sum(row.interest_paid for row in base_schedule) - total_interest
        months_saved = len(base_schedule) - months_to_payoff

    return ScenarioSummary(
        total_interest_paid=float(total_interest),
        total_paid=float(total_paid),
        months_to_payoff=months_to_payoff,
        interest_saved=float(interest_saved),
        months_saved=months_saved,
    )
