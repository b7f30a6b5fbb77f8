"""Owner-level finance summary over settlements and receivables."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from trip_settlement.calculators.types import ZERO
from trip_settlement.models import SettlementReceivable, Trip, TripSettlement
from trip_settlement.models.base import utcnow
from trip_settlement.services.state_machine import EntryStatus

TOP_COMPANIES = 5
RECENT_SETTLEMENTS = 5


@dataclass(frozen=True)
class SettlementRecord:
    settlement_id: UUID
    trip_id: UUID
    trip_number: str | None
    status: str
    total_revenue: Decimal
    total_driver_pay: Decimal
    total_expenses: Decimal
    total_profit: Decimal
    net_amount: Decimal
    net_direction: str
    created_at: datetime


@dataclass(frozen=True)
class ReceivableRecord:
    company_id: UUID | None
    company_name: str
    amount: Decimal
    status: str


@dataclass
class CompanyBalance:
    company_id: UUID | None
    company_name: str
    open_amount: Decimal = ZERO
    open_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "company_id": str(self.company_id) if self.company_id else None,
            "company_name": self.company_name,
            "open_amount": str(self.open_amount),
            "open_count": self.open_count,
        }


@dataclass
class FinanceSummary:
    """Totals across an owner's settlements."""

    settlement_count: int = 0
    total_revenue: Decimal = ZERO
    total_driver_pay: Decimal = ZERO
    total_expenses: Decimal = ZERO
    total_profit: Decimal = ZERO
    open_receivables_amount: Decimal = ZERO
    open_receivables_count: int = 0
    top_companies: list[CompanyBalance] = field(default_factory=list)
    recent_settlements: list[SettlementRecord] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "settlement_count": self.settlement_count,
            "total_revenue": str(self.total_revenue),
            "total_driver_pay": str(self.total_driver_pay),
            "total_expenses": str(self.total_expenses),
            "total_profit": str(self.total_profit),
            "open_receivables_amount": str(self.open_receivables_amount),
            "open_receivables_count": self.open_receivables_count,
            "top_companies": [c.to_dict() for c in self.top_companies],
            "recent_settlements": [
                {
                    "settlement_id": str(s.settlement_id),
                    "trip_id": str(s.trip_id),
                    "trip_number": s.trip_number,
                    "status": s.status,
                    "total_revenue": str(s.total_revenue),
                    "total_profit": str(s.total_profit),
                    "net_amount": str(s.net_amount),
                    "net_direction": s.net_direction,
                    "created_at": s.created_at.isoformat(),
                }
                for s in self.recent_settlements
            ],
        }


def summarize(
    settlements: Iterable[SettlementRecord],
    receivables: Iterable[ReceivableRecord],
    top_n: int = TOP_COMPANIES,
    recent_n: int = RECENT_SETTLEMENTS,
) -> FinanceSummary:
    """Aggregate settlements and receivables into a finance summary.

    Only open receivables with a positive amount count as outstanding;
    overcollected and fully collected ones are left out.
    """
    summary = FinanceSummary()
    settlements = list(settlements)

    for s in settlements:
        summary.settlement_count += 1
        summary.total_revenue += s.total_revenue
        summary.total_driver_pay += s.total_driver_pay
        summary.total_expenses += s.total_expenses
        summary.total_profit += s.total_profit

    balances: dict[tuple[UUID | None, str], CompanyBalance] = {}
    for r in receivables:
        if r.status != EntryStatus.OPEN or r.amount <= 0:
            continue
        summary.open_receivables_amount += r.amount
        summary.open_receivables_count += 1
        key = (r.company_id, r.company_name)
        balance = balances.setdefault(key, CompanyBalance(r.company_id, r.company_name))
        balance.open_amount += r.amount
        balance.open_count += 1

    summary.top_companies = sorted(
        balances.values(), key=lambda b: (-b.open_amount, b.company_name)
    )[:top_n]
    summary.recent_settlements = sorted(
        settlements, key=lambda s: (s.created_at, str(s.settlement_id)), reverse=True
    )[:recent_n]
    return summary


class FinanceSummaryService:
    """Reads an owner's settlements and open receivables."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_summary(self, owner_id: UUID, period_days: int | None = None) -> FinanceSummary:
        """Build the finance summary, optionally limited to the last period_days."""
        settlement_query = (
            select(TripSettlement, Trip.trip_number)
            .join(Trip, Trip.trip_id == TripSettlement.trip_id)
            .where(TripSettlement.owner_id == owner_id)
        )
        receivable_query = (
            select(SettlementReceivable)
            .join(TripSettlement, TripSettlement.settlement_id == SettlementReceivable.settlement_id)
            .where(
                SettlementReceivable.owner_id == owner_id,
                SettlementReceivable.status == EntryStatus.OPEN.value,
            )
        )
        if period_days is not None:
            since = utcnow() - timedelta(days=period_days)
            settlement_query = settlement_query.where(TripSettlement.created_at >= since)
            receivable_query = receivable_query.where(TripSettlement.created_at >= since)

        settlement_rows = (await self.session.execute(settlement_query)).all()
        receivable_rows = (await self.session.execute(receivable_query)).scalars().all()

        settlements = [
            SettlementRecord(
                settlement_id=s.settlement_id,
                trip_id=s.trip_id,
                trip_number=trip_number,
                status=s.status,
                total_revenue=s.total_revenue,
                total_driver_pay=s.total_driver_pay,
                total_expenses=s.total_expenses,
                total_profit=s.total_profit,
                net_amount=s.net_amount,
                net_direction=s.net_direction,
                created_at=s.created_at,
            )
            for s, trip_number in settlement_rows
        ]
        receivables = [
            ReceivableRecord(
                company_id=r.company_id,
                company_name=r.company_name,
                amount=r.amount,
                status=r.status,
            )
            for r in receivable_rows
        ]
        return summarize(settlements, receivables)
