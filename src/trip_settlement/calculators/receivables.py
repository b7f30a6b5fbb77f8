"""Receivable and payable generation for a settled trip."""

from __future__ import annotations

import logging
from uuid import UUID

from trip_settlement.calculators.types import (
    ZERO,
    ExpenseSummary,
    GrossPayResult,
    PayableCandidate,
    ReceivableCandidate,
    RevenueSummary,
    round_to_cents,
)

logger = logging.getLogger(__name__)


class ReconciliationError(Exception):
    """Raised when generated entries do not reconcile to trip totals."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__("; ".join(errors))


class ReceivablePayableGenerator:
    """Builds one receivable per company and one payable for the driver.

    receivable(company) = company revenue - company collected on delivery
    payable(driver)     = gross pay + driver-funded expenses - total collected

    Receivables are not clamped: a negative amount means the driver collected
    more than the company was invoiced and is flagged as overcollected.
    """

    @staticmethod
    def build_receivables(revenue: RevenueSummary) -> list[ReceivableCandidate]:
        receivables: list[ReceivableCandidate] = []

        for company in revenue.companies:
            # A bucket with neither revenue nor collections has nothing to owe
            if company.total_revenue == 0 and company.total_collected == 0:
                continue

            receivable = ReceivableCandidate(
                company_id=company.company_id,
                company_name=company.company_name,
                revenue=round_to_cents(company.total_revenue),
                collected=round_to_cents(company.total_collected),
                amount=round_to_cents(company.total_receivable),
            )
            if receivable.overcollected:
                logger.warning(
                    "Overcollection for company %s: collected %s against revenue %s",
                    company.company_name,
                    receivable.collected,
                    receivable.revenue,
                )
            receivables.append(receivable)

        return receivables

    @staticmethod
    def build_payable(
        driver_id: UUID,
        pay: GrossPayResult,
        expenses: ExpenseSummary,
        revenue: RevenueSummary,
    ) -> PayableCandidate:
        reimbursements = round_to_cents(expenses.driver_paid)
        collections = round_to_cents(revenue.total_collected)
        return PayableCandidate(
            driver_id=driver_id,
            gross_pay=pay.gross_pay,
            reimbursements=reimbursements,
            collections=collections,
            amount=pay.gross_pay + reimbursements - collections,
        )

    @classmethod
    def generate(
        cls,
        driver_id: UUID,
        pay: GrossPayResult,
        expenses: ExpenseSummary,
        revenue: RevenueSummary,
    ) -> tuple[list[ReceivableCandidate], PayableCandidate]:
        """Build receivables and the payable, then verify they reconcile.

        Raises:
            ReconciliationError: If the entries do not tie back to trip totals
        """
        receivables = cls.build_receivables(revenue)
        payable = cls.build_payable(driver_id, pay, expenses, revenue)

        errors = cls.reconcile(receivables, payable, revenue)
        if errors:
            raise ReconciliationError(errors)

        return receivables, payable

    @staticmethod
    def reconcile(
        receivables: list[ReceivableCandidate],
        payable: PayableCandidate,
        revenue: RevenueSummary,
    ) -> list[str]:
        """Check that receivables plus collections equal trip revenue.

        Returns list of error messages (empty if balanced).
        """
        errors: list[str] = []

        receivable_total = sum((r.amount for r in receivables), ZERO)
        expected_revenue = round_to_cents(revenue.total_revenue)
        if receivable_total + payable.collections != expected_revenue:
            errors.append(
                f"Receivables {receivable_total} plus collections {payable.collections} "
                f"do not equal revenue {expected_revenue}"
            )

        expected_amount = payable.gross_pay + payable.reimbursements - payable.collections
        if payable.amount != expected_amount:
            errors.append(f"Payable {payable.amount} does not equal {expected_amount}")

        return errors
