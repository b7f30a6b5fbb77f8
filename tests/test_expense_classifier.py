"""Tests for expense classification."""

from decimal import Decimal
from uuid import uuid4

import pytest

from trip_settlement.calculators.expense_classifier import ExpenseClassifier
from trip_settlement.calculators.types import (
    ExpenseCategory,
    ExpenseRecord,
    InvalidRecordError,
    PayerClass,
)


def expense(category: str, amount: str, paid_by: str | None) -> ExpenseRecord:
    return ExpenseRecord(expense_id=uuid4(), category=category, amount=amount, paid_by=paid_by)


class TestPayerClass:
    """Allow-list membership decides who paid."""

    @pytest.mark.parametrize("tag", ["company_card", "fuel_card", "efs_card", "comdata"])
    def test_company_funded_tags(self, tag):
        assert ExpenseClassifier().payer_class(tag) == PayerClass.COMPANY_FUNDED

    @pytest.mark.parametrize("tag", ["driver_personal", "driver_cash", "", None, "mystery"])
    def test_everything_else_is_driver_funded(self, tag):
        assert ExpenseClassifier().payer_class(tag) == PayerClass.DRIVER_FUNDED

    def test_tags_are_normalized(self):
        assert ExpenseClassifier().payer_class("  Company_Card ") == PayerClass.COMPANY_FUNDED

    def test_custom_allow_list(self):
        classifier = ExpenseClassifier({"wex"})
        assert classifier.payer_class("wex") == PayerClass.COMPANY_FUNDED
        assert classifier.payer_class("company_card") == PayerClass.DRIVER_FUNDED

    def test_custom_allow_list_is_normalized(self):
        classifier = ExpenseClassifier({" EFS_Card "})
        assert classifier.company_funded_payers == frozenset({"efs_card"})
        assert classifier.payer_class("efs_card") == PayerClass.COMPANY_FUNDED
        assert classifier.payer_class("EFS_CARD") == PayerClass.COMPANY_FUNDED


class TestClassify:
    """Totals by payer and category."""

    def test_split_and_categories(self):
        expenses = [
            expense("fuel", "80.00", "driver_cash"),
            expense("fuel", "120.00", "fuel_card"),
            expense("tolls", "15.50", "company_card"),
            expense("lumper", "60.00", None),
            expense("parking", "12.00", "driver_personal"),
        ]

        summary = ExpenseClassifier().classify(expenses)

        assert summary.company_paid == Decimal("135.50")
        assert summary.driver_paid == Decimal("152.00")
        assert summary.fuel == Decimal("200.00")
        assert summary.tolls == Decimal("15.50")
        assert summary.other == Decimal("72.00")
        assert len(summary.driver_funded) == 3

    def test_category_totals_match_payer_totals(self):
        expenses = [
            expense("fuel", "10", "driver_cash"),
            expense("maintenance", "20", "company_card"),
            expense("driver_pay", "30", None),
        ]

        summary = ExpenseClassifier().classify(expenses)

        assert summary.fuel + summary.tolls + summary.other == summary.total
        assert summary.total == summary.company_paid + summary.driver_paid

    def test_operating_total_excludes_driver_pay(self):
        summary = ExpenseClassifier().classify(
            [expense("fuel", "10", "fuel_card"), expense("driver_pay", "30", "company_card")]
        )
        assert summary.by_category[ExpenseCategory.DRIVER_PAY] == Decimal("30")
        assert summary.operating_total == Decimal("10")

    def test_no_expenses(self):
        summary = ExpenseClassifier().classify([])
        assert summary.total == 0
        assert summary.driver_funded == []


class TestExpenseRecord:
    """Record validation at the boundary."""

    def test_negative_amount_rejected(self):
        with pytest.raises(InvalidRecordError) as exc_info:
            expense("fuel", "-1", "driver_cash")
        assert exc_info.value.field == "amount"

    def test_unknown_category_rejected(self):
        with pytest.raises(InvalidRecordError):
            expense("snacks", "5", "driver_cash")

    def test_amount_normalized_to_cents(self):
        assert expense("fuel", "10.005", "driver_cash").amount == Decimal("10.01")
