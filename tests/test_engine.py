import math
from datetime import date

import pytest

from mortgage_calc.data_models import LoanParameters, ScenarioOverride
from mortgage_calc.engine import calculate_monthly_payment, calculate_summary, generate_schedule


def make_loan(**overrides):
    values = dict(
        principal=300_000.0,
        annual_rate=6.5,
        term_months=360,
        start_date=date(2025, 1, 1),
        fixed_monthly_add_on=0.0,
    )
    values.update(overrides)
    return LoanParameters(**values)


def test_monthly_payment_known_case():
    pmt = calculate_monthly_payment(300_000, 6.5, 360)
    assert pmt == pytest.approx(1896.20, abs=0.01)


def test_monthly_payment_zero_rate_is_linear():
    assert calculate_monthly_payment(24_000, 0.0, 24) == 1000.0


@pytest.mark.parametrize("principal, rate, term", [(300_000, 6.5, 360), (100_000, 3.0, 120), (5_000, 18.0, 12)])
def test_monthly_payment_matches_textbook_formula(principal, rate, term):
    i = rate / 100 / 12
    growth = (1 + i) ** term
    expected = principal * i * growth / (growth - 1)
    assert calculate_monthly_payment(principal, rate, term) == pytest.approx(expected, rel=1e-12)


def test_monthly_payment_extreme_rate_does_not_overflow():
    pmt = calculate_monthly_payment(300_000, 10_000.0, 360)
    assert math.isfinite(pmt)
    assert pmt == pytest.approx(300_000 * 10_000.0 / 1200)


def test_monthly_payment_very_long_term_tends_to_interest_only():
    pmt = calculate_monthly_payment(300_000, 6.5, 10**6)
    assert pmt == pytest.approx(300_000 * 6.5 / 1200)


def test_monthly_payment_negligible_rate_is_linear():
    assert calculate_monthly_payment(300_000, 1e-15, 360) == pytest.approx(300_000 / 360)


def test_extreme_rate_schedule_stays_finite():
    schedule = generate_schedule(make_loan(annual_rate=10_000.0))
    assert len(schedule) == 360
    for row in schedule:
        assert all(
            math.isfinite(value)
            for value in (row.base_payment, row.principal_paid, row.interest_paid, row.remaining_balance)
        )
    assert schedule[-1].remaining_balance == pytest.approx(300_000.0)


@pytest.mark.parametrize(
    "principal, rate, term",
    [(1_000, 0.0, 1), (100_000, 3.0, 120), (250_000, 7.25, 360), (5_000, 18.0, 12), (600_000, 4.0, 600)],
)
def test_payment_covers_principal_over_term(principal, rate, term):
    assert calculate_monthly_payment(principal, rate, term) * term >= principal - 1e-9


def test_base_schedule_has_full_term_and_ends_at_zero():
    schedule = generate_schedule(make_loan())
    assert len(schedule) == 360
    assert schedule[-1].remaining_balance == pytest.approx(0.0, abs=1e-6)
    assert [row.period for row in schedule] == list(range(1, 361))


def test_base_schedule_principal_sums_to_loan():
    schedule = generate_schedule(make_loan())
    assert sum(row.principal_paid for row in schedule) == pytest.approx(300_000.0, rel=1e-6)


def test_base_payment_is_constant():
    schedule = generate_schedule(make_loan())
    assert {row.base_payment for row in schedule} == {schedule[0].base_payment}


def test_row_invariants_hold_with_extras():
    override = ScenarioOverride(extra_monthly_principal=350.0, lump_sum_payments={12: 25_000.0, 60: 40_000.0})
    schedule = generate_schedule(make_loan(), override)
    previous_balance = 300_000.0
    for row in schedule:
        assert row.principal_paid + row.interest_paid == pytest.approx(row.base_payment + row.extra_payment)
        assert row.remaining_balance >= 0
        assert row.remaining_balance == pytest.approx(max(0.0, previous_balance - row.principal_paid), abs=1e-6)
        previous_balance = row.remaining_balance


def test_first_row_split():
    row = generate_schedule(make_loan())[0]
    assert row.interest_paid == pytest.approx(1625.0)
    assert row.principal_paid == pytest.approx(1896.20 - 1625.0, abs=0.01)
    assert row.extra_payment == pytest.approx(0.0)


def test_dates_advance_by_month():
    schedule = generate_schedule(make_loan(start_date=date(2024, 11, 1), term_months=4))
    assert [row.date for row in schedule] == [
        date(2024, 11, 1),
        date(2024, 12, 1),
        date(2025, 1, 1),
        date(2025, 2, 1),
    ]


def test_fixed_add_on_only_changes_total_payment():
    plain = generate_schedule(make_loan())
    with_costs = generate_schedule(make_loan(fixed_monthly_add_on=300.0))
    assert len(plain) == len(with_costs)
    assert with_costs[0].principal_paid == plain[0].principal_paid
    assert with_costs[0].total_payment == pytest.approx(plain[0].total_payment + 300.0)


def test_extra_monthly_principal_pays_off_early():
    params = make_loan()
    base = generate_schedule(params)
    extra = generate_schedule(params, ScenarioOverride(extra_monthly_principal=200.0))
    base_summary = calculate_summary(base)
    summary = calculate_summary(extra, base)

    assert summary.months_to_payoff < 360
    assert summary.total_interest_paid < base_summary.total_interest_paid
    assert summary.interest_saved > 0
    assert summary.months_saved > 0
    assert extra[0].extra_payment == pytest.approx(200.0)


def test_lump_sum_larger_than_balance_is_clamped():
    params = make_loan()
    schedule = generate_schedule(params, ScenarioOverride(lump_sum_payments={1: 400_000.0}))
    assert len(schedule) == 1
    row = schedule[0]
    scheduled_principal = row.base_payment - row.interest_paid
    assert row.remaining_balance == 0.0
    assert row.principal_paid == pytest.approx(300_000.0)
    assert row.extra_payment == pytest.approx(300_000.0 - scheduled_principal)
    assert row.extra_payment < 400_000.0


def test_lump_sum_only_applies_to_its_period():
    schedule = generate_schedule(make_loan(), ScenarioOverride(lump_sum_payments={3: 10_000.0}))
    assert schedule[1].extra_payment == pytest.approx(0.0)
    assert schedule[2].extra_payment == pytest.approx(10_000.0)
    assert schedule[3].extra_payment == pytest.approx(0.0)


@pytest.mark.parametrize(
    "override",
    [
        ScenarioOverride(extra_monthly_principal=50.0),
        ScenarioOverride(lump_sum_payments={100: 5_000.0}),
        ScenarioOverride(extra_monthly_principal=1_000.0, lump_sum_payments={1: 1.0}),
    ],
)
def test_extras_never_make_things_worse(override):
    params = make_loan()
    base = calculate_summary(generate_schedule(params))
    scenario = calculate_summary(generate_schedule(params, override))
    assert scenario.months_to_payoff <= base.months_to_payoff
    assert scenario.total_interest_paid <= base.total_interest_paid


def test_schedule_is_deterministic():
    params = make_loan()
    override = ScenarioOverride(extra_monthly_principal=125.0, lump_sum_payments={24: 7_500.0})
    assert generate_schedule(params, override) == generate_schedule(params, override)


def test_zero_rate_schedule():
    schedule = generate_schedule(make_loan(principal=24_000.0, annual_rate=0.0, term_months=24))
    assert len(schedule) == 24
    assert all(row.interest_paid == 0.0 for row in schedule)
    assert schedule[-1].remaining_balance == pytest.approx(0.0, abs=1e-9)


def test_summary_without_baseline_has_no_savings():
    schedule = generate_schedule(make_loan(fixed_monthly_add_on=300.0))
    summary = calculate_summary(schedule)
    assert summary.months_to_payoff == 360
    assert summary.interest_saved == 0.0
    assert summary.months_saved == 0
    assert summary.total_paid == pytest.approx(sum(row.total_payment for row in schedule))
    assert summary.total_interest_paid == pytest.approx(1896.20 * 360 - 300_000, abs=5)


def test_summary_savings_can_be_negative():
    params = make_loan()
    fast = generate_schedule(params, ScenarioOverride(extra_monthly_principal=500.0))
    base = generate_schedule(params)
    summary = calculate_summary(base, fast)
    assert summary.interest_saved < 0
    assert summary.months_saved < 0
