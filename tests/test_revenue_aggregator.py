"""Tests for load revenue aggregation."""

from decimal import Decimal
from uuid import uuid4

import pytest

from trip_settlement.calculators.revenue_aggregator import UNKNOWN_COMPANY_NAME, RevenueAggregator
from trip_settlement.calculators.types import InvalidRecordError, LoadRecord


def load(company_id, revenue="0", collected="0", cuft="0", name=None) -> LoadRecord:
    return LoadRecord(
        load_id=uuid4(),
        company_id=company_id,
        company_name=name,
        total_revenue=revenue,
        amount_collected_on_delivery=collected,
        actual_cuft_loaded=cuft,
    )


class TestRevenueAggregator:
    """Grand totals and per-company buckets."""

    def test_grand_totals(self):
        a, b = uuid4(), uuid4()
        summary = RevenueAggregator.aggregate(
            [
                load(a, "1000", "400", "500", "Acme"),
                load(b, "600", "600", "300", "Beta"),
                load(a, "250.50", "0", "120", "Acme"),
            ]
        )

        assert summary.total_revenue == Decimal("1850.50")
        assert summary.total_collected == Decimal("1000")
        assert summary.total_cuft == Decimal("920")
        assert summary.total_receivable == Decimal("850.50")

    def test_groups_by_company_sorted_by_revenue(self):
        a, b = uuid4(), uuid4()
        summary = RevenueAggregator.aggregate(
            [load(b, "600", name="Beta"), load(a, "1000", name="Acme"), load(b, "50", name="Beta")]
        )

        assert [c.company_name for c in summary.companies] == ["Acme", "Beta"]
        beta = summary.companies[1]
        assert len(beta.loads) == 2
        assert beta.total_revenue == Decimal("650")

    def test_ties_keep_first_appearance(self):
        a, b = uuid4(), uuid4()
        summary = RevenueAggregator.aggregate([load(b, "100", name="B"), load(a, "100", name="A")])
        assert [c.company_name for c in summary.companies] == ["B", "A"]

    def test_loads_without_company_share_one_bucket(self):
        summary = RevenueAggregator.aggregate(
            [load(None, "100"), load(None, "200", name="ignored"), load(uuid4(), "50", name="X")]
        )

        unknown = [c for c in summary.companies if c.company_id is None]
        assert len(unknown) == 1
        assert unknown[0].company_name == UNKNOWN_COMPANY_NAME
        assert unknown[0].total_revenue == Decimal("300")

    def test_every_load_counted_once(self):
        loads = [load(uuid4() if i % 3 else None, str(i * 10)) for i in range(10)]
        summary = RevenueAggregator.aggregate(loads)

        assert sum(len(c.loads) for c in summary.companies) == len(loads)
        assert sum(c.total_revenue for c in summary.companies) == summary.total_revenue

    def test_company_name_falls_back_to_id(self):
        company_id = uuid4()
        summary = RevenueAggregator.aggregate([load(company_id, "10")])
        assert summary.companies[0].company_name == str(company_id)

    def test_empty(self):
        summary = RevenueAggregator.aggregate([])
        assert summary.total_revenue == 0
        assert summary.companies == []


class TestLoadRecord:
    """Load validation at the boundary."""

    @pytest.mark.parametrize("field", ["total_revenue", "amount_collected_on_delivery"])
    def test_negative_money_rejected(self, field):
        kwargs = {"total_revenue": "1", "amount_collected_on_delivery": "0"}
        kwargs[field] = "-0.01"
        with pytest.raises(InvalidRecordError) as exc_info:
            LoadRecord(
                load_id=uuid4(),
                company_id=None,
                company_name=None,
                actual_cuft_loaded="0",
                **kwargs,
            )
        assert exc_info.value.field == field

    def test_missing_revenue_rejected(self):
        with pytest.raises(InvalidRecordError):
            load(None, revenue=None)

    def test_float_inputs_converted_exactly(self):
        record = load(None, revenue=0.1, collected=0.2, cuft=1.5)
        assert record.total_revenue == Decimal("0.10")
        assert record.amount_collected_on_delivery == Decimal("0.20")
        assert record.actual_cuft_loaded == Decimal("1.5")

    def test_from_dict(self):
        company_id = uuid4()
        record = LoadRecord.from_dict(
            {
                "load_id": str(uuid4()),
                "company_id": str(company_id),
                "company_name": "Acme",
                "total_revenue": "1000",
                "amount_collected_on_delivery": 0,
                "actual_cuft_loaded": "500",
            }
        )
        assert record.company_id == company_id
        assert record.total_revenue == Decimal("1000.00")
