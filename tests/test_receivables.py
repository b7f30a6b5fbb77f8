"""Tests for receivable/payable generation and net settlement."""

import logging
from decimal import Decimal
from uuid import uuid4

import pytest

from trip_settlement.calculators.expense_classifier import ExpenseClassifier
from trip_settlement.calculators.net_settlement import NetSettlementCalculator
from trip_settlement.calculators.receivables import (
    ReceivablePayableGenerator,
    ReconciliationError,
)
from trip_settlement.calculators.revenue_aggregator import RevenueAggregator
from trip_settlement.calculators.types import (
    ExpenseRecord,
    GrossPayResult,
    LoadRecord,
    PayableCandidate,
    SettlementDirection,
)


def load(company_id, name, revenue, collected) -> LoadRecord:
    return LoadRecord(
        load_id=uuid4(),
        company_id=company_id,
        company_name=name,
        total_revenue=revenue,
        amount_collected_on_delivery=collected,
        actual_cuft_loaded="0",
    )


def gross(amount: str) -> GrossPayResult:
    return GrossPayResult(pay_mode="per_mile", gross_pay=Decimal(amount), components=())


class TestReceivables:
    """One receivable per company, net of collections."""

    def test_two_companies(self):
        """A: 1000 revenue, 400 collected. B: 600 revenue, 600 collected."""
        a, b = uuid4(), uuid4()
        revenue = RevenueAggregator.aggregate(
            [load(a, "A", "1000", "400"), load(b, "B", "600", "600")]
        )

        receivables = ReceivablePayableGenerator.build_receivables(revenue)

        amounts = {r.company_name: r.amount for r in receivables}
        assert amounts == {"A": Decimal("600.00"), "B": Decimal("0.00")}
        assert sum(r.amount for r in receivables) == Decimal("600.00")

    def test_overcollection_is_surfaced_not_clamped(self, caplog):
        a = uuid4()
        revenue = RevenueAggregator.aggregate([load(a, "A", "500", "650")])

        with caplog.at_level(logging.WARNING, logger="trip_settlement"):
            receivables = ReceivablePayableGenerator.build_receivables(revenue)

        assert receivables[0].amount == Decimal("-150.00")
        assert receivables[0].overcollected is True
        assert "Overcollection" in caplog.text

    def test_empty_bucket_skipped(self):
        revenue = RevenueAggregator.aggregate([load(uuid4(), "Z", "0", "0")])
        assert ReceivablePayableGenerator.build_receivables(revenue) == []

    def test_collection_only_bucket_kept(self):
        """Collections without revenue still need a (negative) receivable to reconcile."""
        revenue = RevenueAggregator.aggregate([load(uuid4(), "Z", "0", "25")])
        receivables = ReceivablePayableGenerator.build_receivables(revenue)
        assert [r.amount for r in receivables] == [Decimal("-25.00")]


class TestPayable:
    """payable = gross pay + driver-paid expenses - total collected."""

    def test_driver_paid_fuel(self):
        """Gross 300, fuel 80 paid by driver cash, 100 collected: payable 280."""
        driver_id = uuid4()
        revenue = RevenueAggregator.aggregate([load(uuid4(), "A", "1000", "100")])
        expenses = ExpenseClassifier().classify(
            [ExpenseRecord(expense_id=uuid4(), category="fuel", amount="80", paid_by="driver_cash")]
        )

        receivables, payable = ReceivablePayableGenerator.generate(
            driver_id, gross("300.00"), expenses, revenue
        )

        assert payable.driver_id == driver_id
        assert payable.amount == Decimal("280.00")
        assert payable.reimbursements == Decimal("80.00")
        assert payable.collections == Decimal("100.00")
        assert NetSettlementCalculator.calculate(payable.amount).direction == (
            SettlementDirection.COMPANY_OWES_DRIVER
        )

    def test_company_paid_expenses_not_reimbursed(self):
        revenue = RevenueAggregator.aggregate([])
        expenses = ExpenseClassifier().classify(
            [ExpenseRecord(expense_id=uuid4(), category="fuel", amount="80", paid_by="fuel_card")]
        )

        _, payable = ReceivablePayableGenerator.generate(uuid4(), gross("300.00"), expenses, revenue)

        assert payable.amount == Decimal("300.00")

    def test_negative_payable(self):
        revenue = RevenueAggregator.aggregate([load(uuid4(), "A", "2000", "1500")])
        _, payable = ReceivablePayableGenerator.generate(
            uuid4(), gross("550.00"), ExpenseClassifier().classify([]), revenue
        )
        assert payable.amount == Decimal("-950.00")

    def test_reconcile_detects_mismatch(self):
        revenue = RevenueAggregator.aggregate([load(uuid4(), "A", "100", "0")])
        receivables = ReceivablePayableGenerator.build_receivables(revenue)
        bad_payable = PayableCandidate(
            driver_id=uuid4(),
            gross_pay=Decimal("10"),
            reimbursements=Decimal("0"),
            collections=Decimal("5"),
            amount=Decimal("10"),
        )

        errors = ReceivablePayableGenerator.reconcile(receivables, bad_payable, revenue)

        assert len(errors) == 2
        assert "do not equal revenue" in str(ReconciliationError(errors))


class TestNetSettlement:
    """Net amount and direction."""

    @pytest.mark.parametrize(
        "payable,net,direction",
        [
            ("280.00", "280.00", SettlementDirection.COMPANY_OWES_DRIVER),
            ("-950.00", "950.00", SettlementDirection.DRIVER_OWES_COMPANY),
            ("0", "0.00", SettlementDirection.EVEN),
            ("0.004", "0.00", SettlementDirection.EVEN),
            ("-0.005", "0.01", SettlementDirection.DRIVER_OWES_COMPANY),
        ],
    )
    def test_direction(self, payable, net, direction):
        result = NetSettlementCalculator.calculate(Decimal(payable))
        assert result.net_amount == Decimal(net)
        assert result.direction == direction
