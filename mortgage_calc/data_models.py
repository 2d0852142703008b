"""Data models for the mortgage calculator.

This module defines dataclasses representing the different entities used by the
calculator: the loan parameters, scenario overrides (extra principal and lump
sums), individual schedule rows and the summary statistics derived from a
schedule. All of them are frozen so a computation never mutates its inputs.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import List, Mapping, Tuple

from .utils import lump_sums_to_map


@dataclass(frozen=True)
class LoanParameters:
    """Inputs of a fixed-rate installment loan.

    Attributes
    ----------
    principal: float
        The financed amount.
    annual_rate: float
        Annual nominal interest rate in percent (6.5 means 6.5 %).
    term_months: int
        Number of monthly payments.
    start_date: date
        First payment month. Dates are normalized to the first day of the
        month when parsed.
    fixed_monthly_add_on: float
        Taxes, insurance and other fixed monthly costs. They are added to the
        total cash paid every month but never reduce the balance.
    """

    principal: float
    annual_rate: float
    term_months: int
    start_date: date
    fixed_monthly_add_on: float = 0.0


@dataclass(frozen=True)
class ScenarioOverride:
    """Extra principal applied on top of the regular installment.

    Attributes
    ----------
    extra_monthly_principal: float
        Extra principal paid in every period.
    lump_sum_payments: Mapping[int, float]
        One-time extra principal keyed by 1-based period number. Periods not
        present in the mapping pay no lump sum.
    """

    extra_monthly_principal: float = 0.0
    lump_sum_payments: Mapping[int, float] = field(default_factory=dict)


@dataclass(frozen=True)
class PaymentRow:
    """A row of the amortization schedule.

    ``extra_payment`` is the extra principal actually absorbed in the period;
    on the payoff period it can be lower than what the scenario requested.
    ``total_payment`` includes the fixed monthly add-on.
    """

    period: int
    date: date
    base_payment: float
    extra_payment: float
    total_payment: float
    principal_paid: float
    interest_paid: float
    remaining_balance: float


@dataclass(frozen=True)
class ScenarioSummary:
    total_interest_paid: float
    total_paid: float
    months_to_payoff: int
    interest_saved: float = 0.0  # compared to the baseline schedule
    months_saved: int = 0


@dataclass(frozen=True)
class Scenario:
    """A named what-if scenario in its persisted form.

    Lump sums are kept as ``(period, amount)`` pairs sorted by period, which
    is how they are stored. Use :meth:`to_override` to get the lookup
    structure consumed by the engine.
    """

    id: str
    name: str
    extra_monthly_principal: float = 0.0
    lump_sum_payments: Tuple[Tuple[int, float], ...] = ()

    def to_override(self) -> ScenarioOverride:
        return ScenarioOverride(
            extra_monthly_principal=self.extra_monthly_principal,
            lump_sum_payments=lump_sums_to_map(self.lump_sum_payments),
        )


BASE_SCENARIO_ID = "base"


@dataclass(frozen=True)
class ScenarioResult:
    """A scenario together with its computed schedule and summary."""

    scenario: Scenario
    schedule: List[PaymentRow]
    summary: ScenarioSummary
