"""Persisted application state.

The calculator keeps the loan inputs and the scenario list as a single JSON
blob under a fixed key in a key/value store. This module defines that state,
its default value and its serialization, and turns a state into engine inputs.

Any object with ``get(key) -> Optional[str]`` and ``put(key, value)`` methods
can serve as the store (see ``mortgage_calc_web.kv_store.KeyValueStore``).
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

from .data_models import LoanParameters, PaymentRow, Scenario, ScenarioResult, ScenarioSummary
from .engine import calculate_monthly_payment, calculate_summary, generate_schedule
from .scenarios import ScenarioList, base_scenario
from .utils import lump_sums_to_map, lump_sums_to_pairs, parse_start_date

logger = logging.getLogger(__name__)

STORAGE_KEY = "mortgage-explorer-state"
MAX_TERM_YEARS = 50


@dataclass(frozen=True)
class AppState:
    """Loan inputs and scenarios as entered by the user.

    ``start_date`` stays a ``"YYYY-MM"`` string so that an unparseable value
    survives a save/load round trip; it is only interpreted by
    :func:`to_loan_parameters`. ``extra_monthly_payment`` is the fixed monthly
    add-on (taxes, insurance).
    """

    principal: float
    annual_rate: float
    term_years: int
    start_date: str
    extra_monthly_payment: float
    scenarios: ScenarioList = field(default_factory=lambda: ScenarioList([base_scenario()]))


def default_state(today: Optional[date] = None) -> AppState:
    today = today or date.today()
    return AppState(
        principal=300000.0,
        annual_rate=6.5,
        term_years=30,
        start_date=today.strftime("%Y-%m"),
        extra_monthly_payment=300.0,
        scenarios=ScenarioList([base_scenario()]),
    )


def scenario_to_dict(scenario: Scenario) -> Dict[str, Any]:
    return {
        "id": scenario.id,
        "name": scenario.name,
        "extraMonthlyPrincipal": scenario.extra_monthly_principal,
        "lumpSumPayments": [[period, amount] for period, amount in scenario.lump_sum_payments],
    }


def scenario_from_dict(data: Dict[str, Any]) -> Scenario:
    """Build a scenario from its stored form.

    Raises
    ------
    ValueError
        If a field is missing or has the wrong type, an amount is negative,
        or lump sums repeat a period.
    """
    if not isinstance(data, dict):
        raise ValueError(f"Scenario must be a JSON object; got {data!r}")
    try:
        extra = float(data.get("extraMonthlyPrincipal", 0) or 0)
        pairs = [(period, float(amount)) for period, amount in data.get("lumpSumPayments", [])]
        scenario_id = str(data["id"])
        name = str(data.get("name", scenario_id))
    except (KeyError, TypeError, ValueError) as exc:
        raise ValueError(f"Invalid scenario: {data!r}") from exc
    if not all(math.isfinite(value) for value in [extra] + [amount for _, amount in pairs]):
        raise ValueError("Scenario amounts must be finite numbers")
    if extra < 0:
        raise ValueError(f"Extra monthly principal must not be negative; got {extra}")
    if any(amount < 0 for _, amount in pairs):
        raise ValueError("Lump sum amounts must not be negative")
    return Scenario(
        id=scenario_id,
        name=name,
        extra_monthly_principal=extra,
        lump_sum_payments=lump_sums_to_pairs(lump_sums_to_map(pairs)),
    )


def state_to_dict(state: AppState) -> Dict[str, Any]:
    return {
        "principal": state.principal,
        "annualRate": state.annual_rate,
        "termYears": state.term_years,
        "startDate": state.start_date,
        "extraMonthlyPayment": state.extra_monthly_payment,
        "scenarios": [scenario_to_dict(s) for s in state.scenarios],
    }


def state_from_dict(data: Dict[str, Any]) -> AppState:
    """Build an ``AppState`` from its stored (camelCase) form.

    Raises
    ------
    ValueError
        If the payload is not a valid state.
    """
    if not isinstance(data, dict):
        raise ValueError("State must be a JSON object")
    try:
        principal = float(data["principal"])
        annual_rate = float(data["annualRate"])
        term_years = int(data["termYears"])
        start_date = str(data.get("startDate", ""))
        extra_monthly_payment = float(data.get("extraMonthlyPayment", 0) or 0)
        raw_scenarios = list(data.get("scenarios") or [])
    except (KeyError, TypeError, ValueError, OverflowError) as exc:
        raise ValueError(f"Invalid state: {exc}") from exc
    if not all(math.isfinite(value) for value in (principal, annual_rate, extra_monthly_payment)):
        raise ValueError("Loan amounts and rate must be finite numbers")
    if principal <= 0:
        raise ValueError("Principal must be positive")
    if annual_rate < 0:
        raise ValueError("Interest rate must not be negative")
    if not 1 <= term_years <= MAX_TERM_YEARS:
        raise ValueError(f"Loan term must be between 1 and {MAX_TERM_YEARS} years")
    if extra_monthly_payment < 0:
        raise ValueError("Extra monthly payment must not be negative")

    scenarios = [scenario_from_dict(s) for s in raw_scenarios]
    if not scenarios:
        scenarios = [base_scenario()]
    return AppState(
        principal=principal,
        annual_rate=annual_rate,
        term_years=term_years,
        start_date=start_date,
        extra_monthly_payment=extra_monthly_payment,
        scenarios=ScenarioList(scenarios),
    )


def dumps_state(state: AppState) -> str:
    return json.dumps(state_to_dict(state))


def loads_state(blob: str) -> AppState:
    try:
        data = json.loads(blob)
    except json.JSONDecodeError as exc:
        raise ValueError(f"State is not valid JSON: {exc}") from exc
    return state_from_dict(data)


def load_state(store, key: str = STORAGE_KEY) -> AppState:
    """Load the saved state, or the default state if none can be read."""
    blob = store.get(key)
    if blob is None:
        return default_state()
    try:
        return loads_state(blob)
    except ValueError as exc:
        logger.warning("Failed to load state %r: %s", key, exc)
        return default_state()


def save_state(store, state: AppState, key: str = STORAGE_KEY) -> None:
    store.put(key, dumps_state(state))


def to_loan_parameters(state: AppState, today: Optional[date] = None) -> LoanParameters:
    return LoanParameters(
        principal=state.principal,
        annual_rate=state.annual_rate,
        term_months=state.term_years * 12,
        start_date=parse_start_date(state.start_date, today),
        fixed_monthly_add_on=state.extra_monthly_payment,
    )


def monthly_payment_for(state: AppState) -> float:
    return calculate_monthly_payment(state.principal, state.annual_rate, state.term_years * 12)


def analyze_state(state: AppState, today: Optional[date] = None) -> List[ScenarioResult]:
    """Compute every scenario's schedule and summary.

    The first scenario is the baseline: its summary has no savings, and every
    other scenario is compared against its schedule.
    """
    params = to_loan_parameters(state, today)
    schedules = [generate_schedule(params, s.to_override()) for s in state.scenarios]
    if not schedules:
        return []
    base_schedule = schedules[0]
    results: List[ScenarioResult] = []
    for index, (scenario, schedule) in enumerate(zip(state.scenarios, schedules)):
        summary = calculate_summary(schedule, base_schedule if index > 0 else None)
        results.append(ScenarioResult(scenario=scenario, schedule=schedule, summary=summary))
    return results


def schedule_to_records(schedule: Sequence[PaymentRow]) -> List[Dict[str, Any]]:
    """Convert schedule rows into JSON-serialisable dictionaries."""
    return [
        {
            "month": row.period,
            "date": row.date.strftime("%Y-%m"),
            "basePayment": row.base_payment,
            "extraPayment": row.extra_payment,
            "totalPayment": row.total_payment,
            "principalPaid": row.principal_paid,
            "interestPaid": row.interest_paid,
            "remainingBalance": row.remaining_balance,
        }
        for row in schedule
    ]


def summary_to_dict(summary: ScenarioSummary) -> Dict[str, Any]:
    return {
        "totalInterestPaid": summary.total_interest_paid,
        "totalPaid": summary.total_paid,
        "monthsToPayoff": summary.months_to_payoff,
        "interestSaved": summary.interest_saved,
        "monthsSaved": summary.months_saved,
    }
