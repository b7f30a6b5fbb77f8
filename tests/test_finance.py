"""Tests for finance summary aggregation."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

from trip_settlement.services.finance_service import (
    ReceivableRecord,
    SettlementRecord,
    summarize,
)

BASE_TIME = datetime(2026, 3, 1, tzinfo=timezone.utc)


def settlement(revenue, profit, days_ago=0, trip_number=None) -> SettlementRecord:
    return SettlementRecord(
        settlement_id=uuid4(),
        trip_id=uuid4(),
        trip_number=trip_number,
        status="pending",
        total_revenue=Decimal(revenue),
        total_driver_pay=Decimal("100"),
        total_expenses=Decimal("10"),
        total_profit=Decimal(profit),
        net_amount=Decimal("0"),
        net_direction="even",
        created_at=BASE_TIME - timedelta(days=days_ago),
    )


def receivable(name, amount, status="open", company_id=None) -> ReceivableRecord:
    return ReceivableRecord(
        company_id=company_id, company_name=name, amount=Decimal(amount), status=status
    )


class TestSummarize:
    """Totals, open balances and ordering."""

    def test_totals(self):
        summary = summarize([settlement("1000", "890"), settlement("500", "390")], [])

        assert summary.settlement_count == 2
        assert summary.total_revenue == Decimal("1500")
        assert summary.total_driver_pay == Decimal("200")
        assert summary.total_expenses == Decimal("20")
        assert summary.total_profit == Decimal("1280")

    def test_only_open_positive_receivables_count(self):
        summary = summarize(
            [],
            [
                receivable("Acme", "600"),
                receivable("Acme", "100"),
                receivable("Beta", "0"),
                receivable("Gamma", "-50"),
                receivable("Delta", "300", status="paid"),
            ],
        )

        assert summary.open_receivables_amount == Decimal("700")
        assert summary.open_receivables_count == 2
        assert [c.company_name for c in summary.top_companies] == ["Acme"]
        assert summary.top_companies[0].open_count == 2

    def test_top_companies_ordered_and_capped(self):
        receivables = [receivable(f"Co{i}", str(100 * i)) for i in range(1, 8)]
        receivables.append(receivable("Aaa", "700"))

        summary = summarize([], receivables, top_n=3)

        assert [c.company_name for c in summary.top_companies] == ["Aaa", "Co7", "Co6"]

    def test_recent_settlements_newest_first(self):
        old = settlement("1", "1", days_ago=10, trip_number="T-old")
        new = settlement("1", "1", days_ago=1, trip_number="T-new")
        mid = settlement("1", "1", days_ago=5, trip_number="T-mid")

        summary = summarize([old, new, mid], [], recent_n=2)

        assert [s.trip_number for s in summary.recent_settlements] == ["T-new", "T-mid"]

    def test_to_dict(self):
        data = summarize([settlement("1000", "890", trip_number="T-1")], [receivable("Acme", "5")]).to_dict()

        assert data["total_revenue"] == "1000"
        assert data["top_companies"][0]["open_amount"] == "5"
        assert data["recent_settlements"][0]["trip_number"] == "T-1"

    def test_empty(self):
        summary = summarize([], [])
        assert summary.settlement_count == 0
        assert summary.top_companies == []
        assert summary.recent_settlements == []
