"""Trip settlement calculation engine."""

from trip_settlement.calculators.engine import (
    SettlementCalculation,
    SettlementEngine,
    TripNotSettleableError,
)
from trip_settlement.calculators.expense_classifier import ExpenseClassifier
from trip_settlement.calculators.line_builder import SettlementLineBuilder
from trip_settlement.calculators.net_settlement import NetSettlementCalculator
from trip_settlement.calculators.pay_modes import (
    InvalidPercentError,
    InvalidRateParameterError,
    MissingRateParameterError,
    MissingTripMetricError,
    PayModeCalculator,
    UnknownPayModeError,
)
from trip_settlement.calculators.receivables import (
    ReceivablePayableGenerator,
    ReconciliationError,
)
from trip_settlement.calculators.revenue_aggregator import RevenueAggregator
from trip_settlement.calculators.trip_totals import TripTotals, compute_trip_totals
from trip_settlement.calculators.types import InvalidRecordError

__all__ = [
    "SettlementEngine",
    "SettlementCalculation",
    "TripNotSettleableError",
    "ExpenseClassifier",
    "SettlementLineBuilder",
    "NetSettlementCalculator",
    "PayModeCalculator",
    "MissingRateParameterError",
    "InvalidRateParameterError",
    "InvalidPercentError",
    "UnknownPayModeError",
    "MissingTripMetricError",
    "ReceivablePayableGenerator",
    "ReconciliationError",
    "RevenueAggregator",
    "TripTotals",
    "compute_trip_totals",
    "InvalidRecordError",
]
