"""Settlement line item builder with idempotent hashing."""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal

from trip_settlement.calculators.types import (
    ZERO,
    ExpenseCategory,
    ExpenseRecord,
    ExpenseSummary,
    GrossPayResult,
    LineCandidate,
    LineType,
    PayComponent,
    RevenueSummary,
    round_to_cents,
)

_EXPENSE_LINE_TYPES = {
    ExpenseCategory.FUEL: LineType.FUEL,
    ExpenseCategory.TOLLS: LineType.TOLLS,
}


class SettlementLineBuilder:
    """Builds settlement line items with deterministic hashing.

    Sign conventions:
    - REVENUE, DRIVER_PAY, FUEL, TOLLS, EXPENSE, REIMBURSEMENT: positive
    - COLLECTION: negative (cash the driver already holds)
    - ROUNDING: either sign

    Driver-side lines (DRIVER_PAY + ROUNDING + REIMBURSEMENT + COLLECTION)
    sum to the payable amount.
    """

    @staticmethod
    def compute_line_hash(line: LineCandidate) -> str:
        """Compute deterministic hash for a line item."""
        canonical = line.to_canonical_dict()
        json_str = json.dumps(canonical, sort_keys=True)
        return hashlib.sha256(json_str.encode()).hexdigest()[:32]

    @staticmethod
    def create_revenue_lines(revenue: RevenueSummary) -> list[LineCandidate]:
        lines: list[LineCandidate] = []
        for company in revenue.companies:
            for load in company.loads:
                if load.total_revenue == 0:
                    continue
                lines.append(
                    LineCandidate(
                        line_type=LineType.REVENUE,
                        amount=load.total_revenue,
                        description=f"Load {load.load_number or load.load_id} ({company.company_name})",
                        load_id=load.load_id,
                        company_id=company.company_id,
                    )
                )
        return lines

    @staticmethod
    def create_collection_lines(revenue: RevenueSummary) -> list[LineCandidate]:
        lines: list[LineCandidate] = []
        for company in revenue.companies:
            for load in company.loads:
                if load.amount_collected_on_delivery == 0:
                    continue
                lines.append(
                    LineCandidate(
                        line_type=LineType.COLLECTION,
                        amount=-load.amount_collected_on_delivery,
                        description=f"Collected on delivery, load {load.load_number or load.load_id}",
                        load_id=load.load_id,
                        company_id=company.company_id,
                    )
                )
        return lines

    @staticmethod
    def create_pay_line(component: PayComponent) -> LineCandidate:
        return LineCandidate(
            line_type=LineType.DRIVER_PAY,
            amount=component.amount,
            description=component.description,
            quantity=component.quantity,
            rate=component.rate,
        )

    @staticmethod
    def create_expense_line(expense: ExpenseRecord) -> LineCandidate:
        line_type = _EXPENSE_LINE_TYPES.get(expense.category, LineType.EXPENSE)
        return LineCandidate(
            line_type=line_type,
            amount=expense.amount,
            description=expense.description or expense.category.value.replace("_", " ").title(),
            expense_id=expense.expense_id,
        )

    @staticmethod
    def create_reimbursement_line(expense: ExpenseRecord) -> LineCandidate:
        return LineCandidate(
            line_type=LineType.REIMBURSEMENT,
            amount=expense.amount,
            description=f"Reimbursement: {expense.description or expense.category.value}",
            expense_id=expense.expense_id,
        )

    @staticmethod
    def create_rounding_line(amount: Decimal) -> LineCandidate:
        """Create a rounding adjustment line item.

        Amount can be positive or negative to reconcile penny drift.
        """
        return LineCandidate(
            line_type=LineType.ROUNDING,
            amount=round_to_cents(amount),
            description="Rounding adjustment",
        )

    @classmethod
    def build(
        cls,
        revenue: RevenueSummary,
        pay: GrossPayResult,
        expenses: list[ExpenseRecord],
        expense_summary: ExpenseSummary,
    ) -> list[LineCandidate]:
        """Build all lines in a stable order: revenue, pay, expenses,
        reimbursements, collections."""
        lines = cls.create_revenue_lines(revenue)

        lines.extend(cls.create_pay_line(c) for c in pay.components if c.amount != 0)
        if pay.rounding_adjustment != 0:
            lines.append(cls.create_rounding_line(pay.rounding_adjustment))

        lines.extend(cls.create_expense_line(e) for e in expenses)
        lines.extend(cls.create_reimbursement_line(e) for e in expense_summary.driver_funded)
        lines.extend(cls.create_collection_lines(revenue))
        return lines

    @staticmethod
    def sum_by_type(lines: list[LineCandidate]) -> dict[LineType, Decimal]:
        """Sum line amounts by type."""
        totals: dict[LineType, Decimal] = {lt: ZERO for lt in LineType}
        for line in lines:
            totals[line.line_type] += line.amount
        return totals

    @classmethod
    def driver_total(cls, lines: list[LineCandidate]) -> Decimal:
        """Sum of the lines that make up the driver payable."""
        totals = cls.sum_by_type(lines)
        return (
            totals[LineType.DRIVER_PAY]
            + totals[LineType.ROUNDING]
            + totals[LineType.REIMBURSEMENT]
            + totals[LineType.COLLECTION]
        )

    @staticmethod
    def validate_line_signs(lines: list[LineCandidate]) -> list[str]:
        """Validate that all line items have correct signs.

        Returns list of error messages (empty if all valid).
        """
        errors: list[str] = []

        for i, line in enumerate(lines):
            if line.line_type == LineType.COLLECTION:
                if line.amount > 0:
                    errors.append(
                        f"Line {i} ({line.line_type.value}) has positive amount {line.amount}, expected negative"
                    )
            elif line.line_type != LineType.ROUNDING and line.amount < 0:
                errors.append(
                    f"Line {i} ({line.line_type.value}) has negative amount {line.amount}, expected positive"
                )

        return errors
