"""Output helpers for the mortgage calculator.

This module provides presentation functions: currency, month and duration
formatting, and simple text renderings of summaries, schedules and scenario
comparisons for the command line. None of them feed back into the model.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable, Sequence

import click

from .data_models import PaymentRow, ScenarioSummary


def _with_sign(amount: float, text: str) -> str:
    if amount < 0 and text.strip("0.,"):
        return f"-${text}"
    return f"${text}"


def format_currency(amount: float) -> str:
    """Format an amount in whole dollars, e.g. ``$1,896``."""
    return _with_sign(amount, f"{abs(amount):,.0f}")


def format_currency_precise(amount: float) -> str:
    """Format an amount with cents, e.g. ``$1,896.20``."""
    return _with_sign(amount, f"{abs(amount):,.2f}")


def format_date(dt: date) -> str:
    """Format a payment month as abbreviated month and year, e.g. ``Jan 2025``."""
    return f"{dt:%b} {dt.year}"


def format_duration(months: int) -> str:
    """Render a month count as years and months.

    ``7`` -> ``"7 months"``, ``24`` -> ``"2 years"``, ``30`` -> ``"2y 6m"``.
    """
    years, remaining = divmod(months, 12)
    if years == 0:
        return f"{remaining} month{'s' if remaining != 1 else ''}"
    if remaining == 0:
        return f"{years} year{'s' if years != 1 else ''}"
    return f"{years}y {remaining}m"


def print_summary(summary: ScenarioSummary, monthly_payment: float, compared: bool = False) -> None:
    """Print a summary of scenario metrics in a human-readable format."""
    click.echo("Summary")
    click.echo("-" * 72)
    click.echo(f"Monthly P&I        : {format_currency_precise(monthly_payment)}")
    click.echo(f"Total interest     : {format_currency_precise(summary.total_interest_paid)}")
    click.echo(f"Total paid         : {format_currency_precise(summary.total_paid)}")
    click.echo(f"Time to payoff     : {format_duration(summary.months_to_payoff)}")
    if compared:
        click.echo(f"Interest saved     : {format_currency_precise(summary.interest_saved)}")
        click.echo(f"Time saved         : {format_duration(summary.months_saved)}")
    click.echo("-" * 72)


def print_schedule(schedule: Iterable[PaymentRow]) -> None:
    """Print the amortization schedule as a simple table."""
    headers = ["#", "Date", "Payment", "Extra", "Principal", "Interest", "Balance"]
    click.echo("\t".join(headers))
    for row in schedule:
        cells = [
            str(row.period),
            format_date(row.date),
            format_currency(row.base_payment),
            format_currency(row.extra_payment) if row.extra_payment > 0 else "-",
            format_currency(row.principal_paid),
            format_currency(row.interest_paid),
            format_currency(row.remaining_balance),
        ]
        click.echo("\t".join(cells))


def print_comparison(
    names: Sequence[str],
    summaries: Sequence[ScenarioSummary],
    extra_principals: Sequence[float],
    total_monthlies: Sequence[float],
) -> None:
    """Print scenario summaries side by side.

    The first column is the base scenario; savings of the others are shown
    relative to it. A negative saving means the scenario costs more.
    ``total_monthlies`` is the monthly outlay of each scenario: P&I plus its
    extra principal plus the fixed add-on.
    """
    click.echo("Comparison")
    click.echo("=" * 72)
    click.echo(f"{'Metric':18s}" + "".join(f"{name[:15]:>16s}" for name in names))
    rows = [
        ("Extra principal", [format_currency(value) for value in extra_principals]),
        ("Total monthly", [format_currency_precise(value) for value in total_monthlies]),
        ("Total interest", [format_currency(s.total_interest_paid) for s in summaries]),
        ("Total paid", [format_currency(s.total_paid) for s in summaries]),
        ("Time to payoff", [format_duration(s.months_to_payoff) for s in summaries]),
        ("Interest saved", [format_currency(s.interest_saved) for s in summaries]),
        ("Months saved", [str(s.months_saved) for s in summaries]),
    ]
    for label, values in rows:
        click.echo(f"{label:18s}" + "".join(f"{value:>16s}" for value in values))
    click.echo("=" * 72)
