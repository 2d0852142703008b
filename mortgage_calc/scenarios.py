"""Ordered scenario collection.

The first scenario is always the base (no extras) scenario that the others
are compared against. ``ScenarioList`` never changes in place: ``append``,
``replace`` and ``remove`` return a new list, so a caller holding an older
list keeps a consistent view.
"""

from __future__ import annotations

from dataclasses import replace as dc_replace
from typing import Iterable, Iterator, Tuple
from uuid import uuid4

from .data_models import BASE_SCENARIO_ID, Scenario
from .utils import lump_sums_to_map, lump_sums_to_pairs

DEFAULT_EXTRA_PRINCIPAL = 200.0


class ScenarioList:
    """Immutable ordered collection of scenarios."""

    def __init__(self, scenarios: Iterable[Scenario] = ()) -> None:
        self._items: Tuple[Scenario, ...] = tuple(scenarios)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Scenario]:
        return iter(self._items)

    def __getitem__(self, index: int) -> Scenario:
        return self._items[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ScenarioList):
            return NotImplemented
        return self._items == other._items

    def __repr__(self) -> str:
        return f"ScenarioList({list(self._items)!r})"

    def append(self, scenario: Scenario) -> "ScenarioList":
        return ScenarioList(self._items + (scenario,))

    def replace(self, index: int, scenario: Scenario) -> "ScenarioList":
        self._check_index(index)
        items = list(self._items)
        items[index] = scenario
        return ScenarioList(items)

    def remove(self, index: int) -> "ScenarioList":
        self._check_index(index)
        if index == 0:
            raise ValueError("The base scenario cannot be removed")
        return ScenarioList(s for i, s in enumerate(self._items) if i != index)

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._items):
            raise IndexError(f"Scenario index out of range: {index}")


def base_scenario() -> Scenario:
    return Scenario(id=BASE_SCENARIO_ID, name="Base")


def new_scenario(existing: ScenarioList) -> Scenario:
    """Return a fresh scenario named after the current scenario count."""
    return Scenario(
        id=f"scenario-{uuid4().hex[:12]}",
        name=f"Scenario {len(existing)}",
        extra_monthly_principal=DEFAULT_EXTRA_PRINCIPAL,
    )


def with_lump_sum(scenario: Scenario, period: int, amount: float) -> Scenario:
    """Set the lump sum of ``period``, replacing any existing one.

    An amount of zero or less removes the period's lump sum instead.
    """
    if period < 1:
        raise ValueError(f"Lump sum period must be at least 1; got {period}")
    mapping = lump_sums_to_map(scenario.lump_sum_payments)
    mapping.pop(period, None)
    if amount > 0:
        mapping[period] = amount
    return dc_replace(scenario, lump_sum_payments=lump_sums_to_pairs(mapping))
