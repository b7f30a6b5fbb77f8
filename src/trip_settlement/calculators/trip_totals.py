"""Cached trip total projections."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from trip_settlement.calculators.types import (
    ZERO,
    ExpenseCategory,
    ExpenseRecord,
    LoadRecord,
    round_to_cents,
)


@dataclass(frozen=True)
class TripTotals:
    """Totals cached on the trip row. Never authoritative past the last recompute."""

    revenue_total: Decimal
    driver_pay_total: Decimal
    fuel_total: Decimal
    tolls_total: Decimal
    other_expenses_total: Decimal

    @property
    def profit_total(self) -> Decimal:
        return self.revenue_total - (
            self.driver_pay_total + self.fuel_total + self.tolls_total + self.other_expenses_total
        )


def compute_trip_totals(
    loads: Iterable[LoadRecord],
    expenses: Iterable[ExpenseRecord],
    driver_pay: Decimal | None = None,
) -> TripTotals:
    """Recompute trip totals from its loads and expenses.

    Before settlement driver pay is the sum of driver_pay expenses. Once a
    settlement exists its gross pay is passed in and replaces that sum.
    """
    revenue = sum((load.total_revenue for load in loads), ZERO)

    by_category = {c: ZERO for c in ExpenseCategory}
    for expense in expenses:
        by_category[expense.category] += expense.amount

    fuel = by_category[ExpenseCategory.FUEL]
    tolls = by_category[ExpenseCategory.TOLLS]
    pay_expenses = by_category[ExpenseCategory.DRIVER_PAY]
    other = sum(by_category.values(), ZERO) - fuel - tolls - pay_expenses

    return TripTotals(
        revenue_total=round_to_cents(revenue),
        driver_pay_total=round_to_cents(pay_expenses if driver_pay is None else driver_pay),
        fuel_total=round_to_cents(fuel),
        tolls_total=round_to_cents(tolls),
        other_expenses_total=round_to_cents(other),
    )
