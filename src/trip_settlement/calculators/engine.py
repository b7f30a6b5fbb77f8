"""Settlement calculation engine - main orchestrator."""

from __future__ import annotations

import hashlib
import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Any
from uuid import UUID

from trip_settlement.calculators.expense_classifier import ExpenseClassifier
from trip_settlement.calculators.line_builder import SettlementLineBuilder
from trip_settlement.calculators.net_settlement import NetSettlementCalculator
from trip_settlement.calculators.pay_modes import (
    PayModeCalculator,
    pay_mode_to_canonical_dict,
    resolve_pay_mode,
)
from trip_settlement.calculators.receivables import ReceivablePayableGenerator, ReconciliationError
from trip_settlement.calculators.revenue_aggregator import RevenueAggregator
from trip_settlement.calculators.types import (
    DriverPayConfig,
    ExpenseRecord,
    ExpenseSummary,
    GrossPayResult,
    LineCandidate,
    LoadRecord,
    NetSettlement,
    PayableCandidate,
    ReceivableCandidate,
    RevenueSummary,
    TripMetrics,
    TripSnapshot,
    round_to_cents,
)
from trip_settlement.config import SettlementPolicy, get_settings

logger = logging.getLogger(__name__)


class TripNotSettleableError(ValueError):
    """Raised when a trip lacks what settlement needs (e.g. a driver)."""

    def __init__(self, trip_id: UUID, reason: str):
        self.trip_id = trip_id
        self.reason = reason
        super().__init__(f"Trip {trip_id} cannot be settled: {reason}")


@dataclass
class SettlementCalculation:
    """Everything derived for one trip settlement, before persistence."""

    trip_id: UUID
    driver_id: UUID
    calculation_id: UUID
    inputs_fingerprint: str
    metrics: TripMetrics
    pay: GrossPayResult
    revenue: RevenueSummary
    expenses: ExpenseSummary
    receivables: list[ReceivableCandidate]
    payable: PayableCandidate
    net: NetSettlement
    lines: list[LineCandidate]

    @property
    def total_revenue(self) -> Decimal:
        return round_to_cents(self.revenue.total_revenue)

    @property
    def total_driver_pay(self) -> Decimal:
        return self.pay.gross_pay

    @property
    def total_expenses(self) -> Decimal:
        """Trip expenses, excluding the driver_pay category."""
        return round_to_cents(self.expenses.operating_total)

    @property
    def total_profit(self) -> Decimal:
        return self.total_revenue - self.total_driver_pay - self.total_expenses

    @property
    def has_overcollection(self) -> bool:
        return any(r.overcollected for r in self.receivables)

    def to_dict(self) -> dict[str, Any]:
        return {
            "trip_id": str(self.trip_id),
            "driver_id": str(self.driver_id),
            "calculation_id": str(self.calculation_id),
            "inputs_fingerprint": self.inputs_fingerprint,
            "metrics": self.metrics.to_canonical_dict(),
            "totals": {
                "total_revenue": str(self.total_revenue),
                "total_driver_pay": str(self.total_driver_pay),
                "total_expenses": str(self.total_expenses),
                "total_profit": str(self.total_profit),
            },
            "pay": self.pay.to_dict(),
            "revenue": self.revenue.to_dict(),
            "expenses": self.expenses.to_dict(),
            "receivables": [r.to_dict() for r in self.receivables],
            "payable": self.payable.to_dict(),
            "net": self.net.to_dict(),
            "has_overcollection": self.has_overcollection,
            "lines": [
                {**line.to_canonical_dict(), "line_hash": SettlementLineBuilder.compute_line_hash(line)}
                for line in self.lines
            ],
        }


class SettlementEngine:
    """Trip settlement calculation engine.

    Calculation pipeline (stable order):
    1) Aggregate load revenue, collections and cubic feet per company
    2) Classify expenses by payer and category
    3) Derive trip metrics (odometer miles, cubic feet, revenue, days)
    4) Compute gross pay under the driver's pay mode
    5) Build receivables per company and the driver payable, and reconcile
    6) Fold the payable into a net amount and direction
    7) Build line items and check they tie to the payable
    8) Fingerprint inputs and derive a deterministic calculation id

    Pure: reads nothing beyond its arguments and writes nothing.
    """

    def __init__(self, policy: SettlementPolicy | None = None, engine_version: str | None = None):
        self.policy = policy or SettlementPolicy()
        self.engine_version = engine_version or get_settings().engine_version
        self.classifier = ExpenseClassifier(self.policy.company_funded_payers)

    def calculate(
        self,
        trip: TripSnapshot,
        pay_config: DriverPayConfig,
        loads: Sequence[LoadRecord],
        expenses: Sequence[ExpenseRecord],
    ) -> SettlementCalculation:
        """Calculate the settlement for one trip.

        Raises:
            TripNotSettleableError: If the trip has no driver or the pay
                configuration belongs to a different driver
            MissingRateParameterError / InvalidPercentError / UnknownPayModeError:
                If the driver's pay configuration is unusable
            MissingTripMetricError: If the pay mode needs miles and the
                odometer readings are missing
        """
        if trip.driver_id is None:
            raise TripNotSettleableError(trip.trip_id, "no driver assigned")
        if pay_config.driver_id != trip.driver_id:
            raise TripNotSettleableError(
                trip.trip_id, f"pay configuration is for driver {pay_config.driver_id}"
            )

        pay_mode = resolve_pay_mode(pay_config)

        revenue = RevenueAggregator.aggregate(loads)
        expense_summary = self.classifier.classify(expenses)

        metrics = TripMetrics(
            miles=trip.miles,
            cubic_feet=revenue.total_cuft,
            revenue=revenue.total_revenue,
            days=trip.days,
        )
        pay = PayModeCalculator.calculate(pay_mode, metrics)

        receivables, payable = ReceivablePayableGenerator.generate(
            trip.driver_id, pay, expense_summary, revenue
        )
        net = NetSettlementCalculator.calculate(payable.amount)
        lines = SettlementLineBuilder.build(revenue, pay, list(expenses), expense_summary)
        self._validate_lines(lines, payable)

        inputs_data = {
            "trip_id": str(trip.trip_id),
            "driver_id": str(trip.driver_id),
            "metrics": metrics.to_canonical_dict(),
            "pay_mode": pay_mode_to_canonical_dict(pay_mode),
            "loads": [load.to_canonical_dict() for load in loads],
            "expenses": [expense.to_canonical_dict() for expense in expenses],
            "company_funded_payers": sorted(self.classifier.company_funded_payers),
        }
        inputs_fingerprint = self._compute_inputs_fingerprint(inputs_data)
        calculation_id = self._generate_calculation_id(trip.trip_id, inputs_fingerprint)

        logger.debug(
            "Calculated trip %s: gross pay %s, payable %s (%s)",
            trip.trip_id,
            pay.gross_pay,
            payable.amount,
            net.direction.value,
        )

        return SettlementCalculation(
            trip_id=trip.trip_id,
            driver_id=trip.driver_id,
            calculation_id=calculation_id,
            inputs_fingerprint=inputs_fingerprint,
            metrics=metrics,
            pay=pay,
            revenue=revenue,
            expenses=expense_summary,
            receivables=receivables,
            payable=payable,
            net=net,
            lines=lines,
        )

    @staticmethod
    def _validate_lines(lines: list[LineCandidate], payable: PayableCandidate) -> None:
        """Check line signs and that the driver-side lines sum to the payable."""
        errors = SettlementLineBuilder.validate_line_signs(lines)
        driver_total = SettlementLineBuilder.driver_total(lines)
        if driver_total != payable.amount:
            errors.append(f"Driver lines total {driver_total}, payable is {payable.amount}")
        if errors:
            raise ReconciliationError(errors)

    def _generate_calculation_id(self, trip_id: UUID, inputs_fingerprint: str) -> UUID:
        """Generate deterministic calculation ID."""
        data = {
            "trip_id": str(trip_id),
            "engine_version": self.engine_version,
            "inputs_fingerprint": inputs_fingerprint,
        }
        json_str = json.dumps(data, sort_keys=True)
        hash_bytes = hashlib.sha256(json_str.encode()).digest()
        return UUID(bytes=hash_bytes[:16])

    @staticmethod
    def _compute_inputs_fingerprint(inputs_data: dict[str, Any]) -> str:
        """Compute fingerprint of all inputs used in calculation."""
        json_str = json.dumps(inputs_data, sort_keys=True)
        return hashlib.sha256(json_str.encode()).hexdigest()[:32]
