"""Business logic services."""

from trip_settlement.services.finance_service import FinanceSummaryService, summarize
from trip_settlement.services.settlement_service import (
    InvalidPaymentMethodError,
    PaymentMethod,
    SettlementAlreadyExistsError,
    SettlementService,
)
from trip_settlement.services.state_machine import (
    EntryStatus,
    InvalidTransitionError,
    SettlementLockedError,
    SettlementStateMachine,
    SettlementStatus,
)
from trip_settlement.services.trip_repository import NotFoundError, TripRepository

__all__ = [
    "FinanceSummaryService",
    "summarize",
    "InvalidPaymentMethodError",
    "PaymentMethod",
    "SettlementAlreadyExistsError",
    "SettlementService",
    "EntryStatus",
    "InvalidTransitionError",
    "SettlementLockedError",
    "SettlementStateMachine",
    "SettlementStatus",
    "NotFoundError",
    "TripRepository",
]
