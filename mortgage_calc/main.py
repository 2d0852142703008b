"""Command-line interface for the mortgage calculator.

This module uses the ``click`` library to implement a multi-command interface.
Users can compute full amortization schedules, view summaries with the savings
of extra principal payments, compare the saved what-if scenarios side by side
and edit those scenarios. Schedules can be printed to the terminal or exported
to JSON/CSV files.
"""

from __future__ import annotations

import csv
import json
import math
from dataclasses import replace
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import click

from .data_models import LoanParameters, PaymentRow, Scenario, ScenarioOverride, ScenarioSummary
from .engine import calculate_monthly_payment, calculate_summary, generate_schedule
from .formatter import (
    format_currency,
    format_currency_precise,
    print_comparison,
    print_schedule,
    print_summary,
)
from .scenarios import new_scenario, with_lump_sum
from .state import (
    MAX_TERM_YEARS,
    STORAGE_KEY,
    AppState,
    analyze_state,
    load_state,
    monthly_payment_for,
    save_state,
    schedule_to_records,
    summary_to_dict,
)
from .utils import parse_year_month
from mortgage_calc_web.kv_store import KeyValueStore, create_store_from_env

MAX_PRINTED_ROWS = 120


def parse_amount(value: str) -> float:
    """Parse a numeric string with optional suffixes.

    Accepts plain floats ("500000") and shorthand with ``k``/``m`` suffixes
    (e.g., "500k" meaning 500_000). Returns a float.
    """
    value = value.strip().lower()
    value = value.replace(",", "").replace("$", "")
    factor = 1.0
    if value.endswith("k"):
        factor = 1_000.0
        value = value[:-1]
    elif value.endswith("m"):
        factor = 1_000_000.0
        value = value[:-1]
    try:
        amount = float(value) * factor
    except ValueError:
        raise click.BadParameter(f"Invalid amount: {value}")
    if not math.isfinite(amount):
        raise click.BadParameter(f"Invalid amount: {value}")
    return amount


def parse_non_negative_amount(value: str) -> float:
    amount = parse_amount(value)
    if amount < 0:
        raise click.BadParameter(f"Amount must not be negative: {value}")
    return amount


def parse_lump_sum_strings(values: Tuple[str, ...]) -> Dict[int, float]:
    lump_sums: Dict[int, float] = {}
    for item in values:
        parts = item.split(":")
        if len(parts) != 2:
            raise click.BadParameter(f"Lump sum must be in PERIOD:AMOUNT format; got {item}")
        period_str, amt_str = parts
        try:
            period = int(period_str)
        except ValueError:
            raise click.BadParameter(f"Lump sum period must be a whole month number; got {period_str}")
        if period < 1:
            raise click.BadParameter(f"Lump sum period must be at least 1; got {period}")
        if period in lump_sums:
            raise click.BadParameter(f"Only one lump sum per month is allowed; month {period} repeats")
        lump_sums[period] = parse_non_negative_amount(amt_str)
    return lump_sums


def build_parameters_from_options(
    principal: str,
    rate: float,
    term: int,
    start_date: Optional[str],
    fixed_add_on: Optional[str],
) -> LoanParameters:
    principal_value = parse_amount(principal)
    if principal_value <= 0:
        raise click.BadParameter("Principal must be positive")
    if not math.isfinite(rate) or rate < 0:
        raise click.BadParameter("Interest rate must be a non-negative number")
    if not 1 <= term <= MAX_TERM_YEARS:
        raise click.BadParameter(f"Loan term must be between 1 and {MAX_TERM_YEARS} years")
    if start_date:
        try:
            start_dt = parse_year_month(start_date)
        except ValueError as exc:
            raise click.BadParameter(str(exc))
    else:
        start_dt = date.today().replace(day=1)
    return LoanParameters(
        principal=principal_value,
        annual_rate=rate,
        term_months=term * 12,
        start_date=start_dt,
        fixed_monthly_add_on=parse_non_negative_amount(fixed_add_on) if fixed_add_on else 0.0,
    )


def build_override_from_options(
    extra_principal: Optional[str], lump_sum: Tuple[str, ...]
) -> Optional[ScenarioOverride]:
    """Return the scenario override, or ``None`` when no extras were given."""
    if not extra_principal and not lump_sum:
        return None
    return ScenarioOverride(
        extra_monthly_principal=parse_non_negative_amount(extra_principal) if extra_principal else 0.0,
        lump_sum_payments=parse_lump_sum_strings(lump_sum),
    )


def export_to_json(path: Path, schedule: List[PaymentRow], summary: ScenarioSummary) -> None:
    """Export schedule and summary to a JSON file."""
    data = {"summary": summary_to_dict(summary), "schedule": schedule_to_records(schedule)}
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def export_to_csv(path: Path, schedule: List[PaymentRow]) -> None:
    """Export schedule to a CSV file."""
    header = [
        "Month",
        "Date",
        "Base_Payment",
        "Extra_Payment",
        "Total_Payment",
        "Principal",
        "Interest",
        "Remaining_Balance",
    ]
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        for row in schedule:
            writer.writerow(
                [
                    row.period,
                    row.date.strftime("%Y-%m"),
                    row.base_payment,
                    row.extra_payment,
                    row.total_payment,
                    row.principal_paid,
                    row.interest_paid,
                    row.remaining_balance,
                ]
            )


def loan_options(func):
    """Attach the options describing a loan and an optional scenario."""
    options = [
        click.option("--principal", "-p", "principal", required=True, help="Loan amount (e.g. 300000 or 300k)"),
        click.option("--rate", "-r", "rate", required=True, type=float, help="Annual interest rate (percent)"),
        click.option("--term", "-t", "term", type=int, default=30, show_default=True, help="Loan term in years"),
        click.option("--start-date", "-s", "start_date", help="First payment month (YYYY-MM); defaults to this month"),
        click.option("--fixed-add-on", "fixed_add_on", help="Fixed monthly costs such as taxes and insurance"),
        click.option("--extra-principal", "extra_principal", help="Extra principal paid every month"),
        click.option("--lump-sum", "lump_sum", multiple=True, help="One-time extra principal in PERIOD:AMOUNT format"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _run_scenario(
    principal: str,
    rate: float,
    term: int,
    start_date: Optional[str],
    fixed_add_on: Optional[str],
    extra_principal: Optional[str],
    lump_sum: Tuple[str, ...],
) -> Tuple[LoanParameters, List[PaymentRow], ScenarioSummary, bool]:
    params = build_parameters_from_options(principal, rate, term, start_date, fixed_add_on)
    override = build_override_from_options(extra_principal, lump_sum)
    schedule_rows = generate_schedule(params, override)
    if override is None:
        return params, schedule_rows, calculate_summary(schedule_rows), False
    base_rows = generate_schedule(params)
    return params, schedule_rows, calculate_summary(schedule_rows, base_rows), True


@click.group()
@click.option(
    "--database-url",
    envvar="MORTGAGE_STATE_DATABASE_URL",
    help="SQLAlchemy URL of the store holding saved scenarios",
)
@click.pass_context
def cli(ctx: click.Context, database_url: Optional[str]) -> None:
    """A command-line mortgage calculator with what-if scenarios."""
    ctx.ensure_object(dict)
    ctx.obj["database_url"] = database_url


@cli.command()
@loan_options
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
def schedule(
    principal: str,
    rate: float,
    term: int,
    start_date: Optional[str],
    fixed_add_on: Optional[str],
    extra_principal: Optional[str],
    lump_sum: Tuple[str, ...],
    output: Optional[str],
) -> None:
    """Compute and print the full amortization schedule."""
    params, schedule_rows, summary_data, compared = _run_scenario(
        principal, rate, term, start_date, fixed_add_on, extra_principal, lump_sum
    )
    if output:
        path = Path(output)
        if path.suffix.lower() == ".json":
            export_to_json(path, schedule_rows, summary_data)
        elif path.suffix.lower() == ".csv":
            export_to_csv(path, schedule_rows)
        else:
            raise click.BadParameter("Unsupported output format; use .json or .csv")
        click.echo(f"Schedule exported to {path}")
        return

    monthly = calculate_monthly_payment(params.principal, params.annual_rate, params.term_months)
    print_summary(summary_data, monthly, compared=compared)
    # Limit schedule length printed to avoid flooding the terminal
    if len(schedule_rows) > MAX_PRINTED_ROWS:
        click.echo(f"Schedule has {len(schedule_rows)} rows; showing first {MAX_PRINTED_ROWS} rows.")
        print_schedule(schedule_rows[:MAX_PRINTED_ROWS])
    else:
        print_schedule(schedule_rows)


@cli.command()
@loan_options
@click.option("--output", "output", type=str, help="Output file path (.json)")
def summary(
    principal: str,
    rate: float,
    term: int,
    start_date: Optional[str],
    fixed_add_on: Optional[str],
    extra_principal: Optional[str],
    lump_sum: Tuple[str, ...],
    output: Optional[str],
) -> None:
    """Compute and print only the summary metrics for a loan.

    When extra principal or lump sums are given, the savings against the
    same loan without extras are shown as well.
    """
    params, _, summary_data, compared = _run_scenario(
        principal, rate, term, start_date, fixed_add_on, extra_principal, lump_sum
    )
    if output:
        path = Path(output)
        if path.suffix.lower() != ".json":
            raise click.BadParameter("Summary export must use .json extension")
        with path.open("w", encoding="utf-8") as f:
            json.dump({"summary": summary_to_dict(summary_data)}, f, indent=2)
        click.echo(f"Summary exported to {path}")
    else:
        monthly = calculate_monthly_payment(params.principal, params.annual_rate, params.term_months)
        print_summary(summary_data, monthly, compared=compared)


@cli.command()
@click.pass_context
def compare(ctx: click.Context) -> None:
    """Compare all saved scenarios against the base scenario."""
    state = load_state(_store(ctx))
    results = analyze_state(state)
    monthly = monthly_payment_for(state)
    click.echo(f"Base monthly P&I: {format_currency_precise(monthly)}")
    extras = [r.scenario.extra_monthly_principal for r in results]
    print_comparison(
        [r.scenario.name for r in results],
        [r.summary for r in results],
        extras,
        [monthly + extra + state.extra_monthly_payment for extra in extras],
    )


def _store(ctx: click.Context) -> KeyValueStore:
    obj = ctx.find_root().obj
    if "store" not in obj:
        obj["store"] = create_store_from_env(obj.get("database_url"))
    return obj["store"]


def _update_state(ctx: click.Context, state: AppState) -> None:
    save_state(_store(ctx), state)


def _scenario_at(state: AppState, index: int) -> Scenario:
    if not 0 <= index < len(state.scenarios):
        raise click.BadParameter(f"No scenario at index {index}; there are {len(state.scenarios)}")
    return state.scenarios[index]


@cli.group()
def scenario() -> None:
    """Edit the saved loan and its what-if scenarios."""
    pass


@scenario.command("list")
@click.pass_context
def list_scenarios(ctx: click.Context) -> None:
    """List the saved loan and scenarios."""
    state = load_state(_store(ctx))
    click.echo(
        f"Loan: {format_currency(state.principal)} at {state.annual_rate:g}% for {state.term_years} years, "
        f"starting {state.start_date}, fixed monthly {format_currency(state.extra_monthly_payment)}"
    )
    for index, item in enumerate(state.scenarios):
        lump_sums = ", ".join(f"month {p}: {format_currency(a)}" for p, a in item.lump_sum_payments)
        line = f"[{index}] {item.name}: extra {format_currency(item.extra_monthly_principal)}/month"
        if lump_sums:
            line += f"; lump sums {lump_sums}"
        click.echo(line)


@scenario.command("add")
@click.option("--name", "name", help="Scenario name")
@click.pass_context
def add_scenario(ctx: click.Context, name: Optional[str]) -> None:
    """Append a new scenario with 200 extra principal per month."""
    state = load_state(_store(ctx))
    item = new_scenario(state.scenarios)
    if name:
        item = replace(item, name=name)
    _update_state(ctx, replace(state, scenarios=state.scenarios.append(item)))
    click.echo(f"Added scenario [{len(state.scenarios)}] {item.name}")


@scenario.command("remove")
@click.argument("index", type=int)
@click.pass_context
def remove_scenario(ctx: click.Context, index: int) -> None:
    """Remove the scenario at INDEX (the base scenario cannot be removed)."""
    state = load_state(_store(ctx))
    try:
        scenarios = state.scenarios.remove(index)
    except (IndexError, ValueError) as exc:
        raise click.BadParameter(str(exc))
    _update_state(ctx, replace(state, scenarios=scenarios))
    click.echo(f"Removed scenario [{index}]")


@scenario.command("rename")
@click.argument("index", type=int)
@click.argument("name")
@click.pass_context
def rename_scenario(ctx: click.Context, index: int, name: str) -> None:
    """Rename the scenario at INDEX."""
    state = load_state(_store(ctx))
    item = replace(_scenario_at(state, index), name=name)
    _update_state(ctx, replace(state, scenarios=state.scenarios.replace(index, item)))


@scenario.command("set-extra")
@click.argument("index", type=int)
@click.argument("amount")
@click.pass_context
def set_extra(ctx: click.Context, index: int, amount: str) -> None:
    """Set the extra monthly principal of the scenario at INDEX."""
    state = load_state(_store(ctx))
    item = replace(_scenario_at(state, index), extra_monthly_principal=parse_non_negative_amount(amount))
    _update_state(ctx, replace(state, scenarios=state.scenarios.replace(index, item)))


@scenario.command("lump-sum")
@click.argument("index", type=int)
@click.argument("period", type=int)
@click.argument("amount")
@click.pass_context
def set_lump_sum(ctx: click.Context, index: int, period: int, amount: str) -> None:
    """Set a lump sum for PERIOD in the scenario at INDEX; 0 removes it."""
    state = load_state(_store(ctx))
    if period < 1:
        raise click.BadParameter(f"Lump sum period must be at least 1; got {period}")
    item = with_lump_sum(_scenario_at(state, index), period, parse_non_negative_amount(amount))
    _update_state(ctx, replace(state, scenarios=state.scenarios.replace(index, item)))


@scenario.command("loan")
@click.option("--principal", "-p", "principal", help="Loan amount")
@click.option("--rate", "-r", "rate", type=float, help="Annual interest rate (percent)")
@click.option("--term", "-t", "term", type=int, help="Loan term in years")
@click.option("--start-date", "-s", "start_date", help="First payment month (YYYY-MM)")
@click.option("--fixed-add-on", "fixed_add_on", help="Fixed monthly costs such as taxes and insurance")
@click.pass_context
def update_loan(
    ctx: click.Context,
    principal: Optional[str],
    rate: Optional[float],
    term: Optional[int],
    start_date: Optional[str],
    fixed_add_on: Optional[str],
) -> None:
    """Update the saved loan inputs."""
    state = load_state(_store(ctx))
    changes: Dict[str, Any] = {}
    if principal is not None:
        changes["principal"] = parse_amount(principal)
        if changes["principal"] <= 0:
            raise click.BadParameter("Principal must be positive")
    if rate is not None:
        if not math.isfinite(rate) or rate < 0:
            raise click.BadParameter("Interest rate must be a non-negative number")
        changes["annual_rate"] = rate
    if term is not None:
        if not 1 <= term <= MAX_TERM_YEARS:
            raise click.BadParameter(f"Loan term must be between 1 and {MAX_TERM_YEARS} years")
        changes["term_years"] = term
    if start_date is not None:
        try:
            parse_year_month(start_date)
        except ValueError as exc:
            raise click.BadParameter(str(exc))
        changes["start_date"] = parse_year_month(start_date).strftime("%Y-%m")
    if fixed_add_on is not None:
        changes["extra_monthly_payment"] = parse_non_negative_amount(fixed_add_on)
    _update_state(ctx, replace(state, **changes))


@scenario.command("reset")
@click.confirmation_option(prompt="Reset all data to defaults?")
@click.pass_context
def reset(ctx: click.Context) -> None:
    """Reset the loan and scenarios to the defaults."""
    _store(ctx).delete(STORAGE_KEY)
    click.echo("Reset to defaults")


if __name__ == "__main__":
    cli()
