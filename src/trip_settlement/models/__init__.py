"""ORM models."""

from trip_settlement.models.base import Base, TimestampMixin
from trip_settlement.models.company import Company, Driver
from trip_settlement.models.settlement import (
    SettlementLineItem,
    SettlementPayable,
    SettlementReceivable,
    TripSettlement,
)
from trip_settlement.models.trip import Load, Trip, TripExpense

__all__ = [
    "Base",
    "TimestampMixin",
    "Company",
    "Driver",
    "Trip",
    "Load",
    "TripExpense",
    "TripSettlement",
    "SettlementReceivable",
    "SettlementPayable",
    "SettlementLineItem",
]
