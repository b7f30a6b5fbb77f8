"""Load revenue aggregation, grand totals and per-company."""

from __future__ import annotations

from collections.abc import Iterable
from uuid import UUID

from trip_settlement.calculators.types import (
    CompanyBreakdown,
    LoadRecord,
    RevenueSummary,
)

UNKNOWN_COMPANY_NAME = "Unknown Company"


class RevenueAggregator:
    """Sums load revenue, collections and cubic feet.

    Every load lands in exactly one company bucket. Loads without a company
    share a single unknown-company bucket. Buckets are ordered by revenue,
    highest first, ties kept in order of first appearance.
    """

    @staticmethod
    def aggregate(loads: Iterable[LoadRecord]) -> RevenueSummary:
        summary = RevenueSummary()
        buckets: dict[UUID | None, CompanyBreakdown] = {}

        for load in loads:
            bucket = buckets.get(load.company_id)
            if bucket is None:
                bucket = CompanyBreakdown(
                    company_id=load.company_id,
                    company_name=RevenueAggregator._company_name(load),
                )
                buckets[load.company_id] = bucket

            bucket.loads.append(load)
            bucket.total_revenue += load.total_revenue
            bucket.total_collected += load.amount_collected_on_delivery
            bucket.total_cuft += load.actual_cuft_loaded

            summary.total_revenue += load.total_revenue
            summary.total_collected += load.amount_collected_on_delivery
            summary.total_cuft += load.actual_cuft_loaded

        summary.companies = sorted(buckets.values(), key=lambda b: -b.total_revenue)
        return summary

    @staticmethod
    def _company_name(load: LoadRecord) -> str:
        if load.company_id is None:
            return UNKNOWN_COMPANY_NAME
        return load.company_name or str(load.company_id)
