"""Utility functions for the mortgage calculator.

This module provides helpers for parsing user input into Python data types and
for handling dates, including adding months and normalizing year-month strings
to ``datetime.date`` instances. It also converts lump-sum payments between
their stored form (a sorted list of ``(period, amount)`` pairs) and the
period-keyed mapping consumed by the engine.
"""

from __future__ import annotations

import calendar
import re
from datetime import date
from typing import Dict, Iterable, Mapping, Optional, Tuple

YEAR_MONTH_RE = re.compile(r"^\d{4}-\d{2}$")


def parse_year_month(ym: str) -> date:
    """Parse a YYYY-MM string into a ``date`` object (first day of month).

    Parameters
    ----------
    ym: str
        A string in the form ``"YYYY-MM"``. The day component, if present,
        will be ignored.

    Returns
    -------
    date
        A date object representing the first day of the specified month.

    Raises
    ------
    ValueError
        If the string is not a valid year-month.
    """
    try:
        parts = ym.split("-")
        if len(parts) < 2:
            raise ValueError
        year = int(parts[0])
        month = int(parts[1])
        return date(year, month, 1)
    except (AttributeError, ValueError) as exc:
        raise ValueError(f"Invalid year-month string: {ym}") from exc


def parse_start_date(value: Optional[str], today: Optional[date] = None) -> date:
    """Parse a stored start month, falling back to the current month.

    Only strict ``YYYY-MM`` strings are accepted so that partial input such as
    ``"1-01"`` does not silently turn into a date in year 1. Anything else
    yields the first day of the current month.
    """
    fallback = (today or date.today()).replace(day=1)
    if not value or not YEAR_MONTH_RE.match(value):
        return fallback
    try:
        return parse_year_month(value)
    except ValueError:
        return fallback


def add_months(dt: date, months: int) -> date:
    """Return a new date a number of months after ``dt``.

    The day of the month is clamped to the last valid day if needed (e.g.,
    adding one month to Jan 31 yields Feb 28 or 29).
    """
    year = dt.year + (dt.month - 1 + months) // 12
    month = (dt.month - 1 + months) % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def lump_sums_to_map(pairs: Iterable[Tuple[int, float]]) -> Dict[int, float]:
    """Convert stored ``(period, amount)`` pairs into a period lookup.

    Raises
    ------
    ValueError
        If a period is not a positive integer or appears more than once.
    """
    mapping: Dict[int, float] = {}
    for period, amount in pairs:
        if isinstance(period, bool) or not isinstance(period, int) or period < 1:
            raise ValueError(f"Lump sum period must be a positive integer; got {period!r}")
        if period in mapping:
            raise ValueError(f"Duplicate lump sum for period {period}")
        mapping[period] = float(amount)
    return dict(sorted(mapping.items()))


def lump_sums_to_pairs(mapping: Mapping[int, float]) -> Tuple[Tuple[int, float], ...]:
    """Return lump sums as pairs sorted by period ascending."""
    return tuple((period, float(mapping[period])) for period in sorted(mapping))
