"""Expense classification by payer and category."""

from __future__ import annotations

from collections.abc import Iterable

from trip_settlement.calculators.types import (
    ExpenseRecord,
    ExpenseSummary,
    PayerClass,
)
from trip_settlement.config import DEFAULT_COMPANY_FUNDED_PAYERS


class ExpenseClassifier:
    """Partitions trip expenses into company-funded and driver-funded buckets.

    A payer tag on the allow-list means the company already paid. Every other
    tag, including an empty or missing one, is owed back to the driver.
    """

    def __init__(self, company_funded_payers: Iterable[str] = DEFAULT_COMPANY_FUNDED_PAYERS):
        self.company_funded_payers = frozenset(tag.strip().lower() for tag in company_funded_payers)

    def payer_class(self, paid_by: str | None) -> PayerClass:
        if paid_by and paid_by.strip().lower() in self.company_funded_payers:
            return PayerClass.COMPANY_FUNDED
        return PayerClass.DRIVER_FUNDED

    def classify(self, expenses: Iterable[ExpenseRecord]) -> ExpenseSummary:
        summary = ExpenseSummary()

        for expense in expenses:
            summary.by_category[expense.category] += expense.amount

            if self.payer_class(expense.paid_by) == PayerClass.COMPANY_FUNDED:
                summary.company_paid += expense.amount
            else:
                summary.driver_paid += expense.amount
                summary.driver_funded.append(expense)

        return summary
