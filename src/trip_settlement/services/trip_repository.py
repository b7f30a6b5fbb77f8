"""Loads trip snapshots from storage for the settlement engine."""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from trip_settlement.calculators.types import (
    DriverPayConfig,
    ExpenseRecord,
    LoadRecord,
    TripSnapshot,
)
from trip_settlement.models import Driver, Load, Trip


class NotFoundError(LookupError):
    """Raised when a record does not exist or is not owned by the caller."""

    def __init__(self, kind: str, record_id: UUID):
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind} {record_id} not found")


@dataclass(frozen=True)
class TripInputs:
    """Consistent snapshot of everything one settlement reads."""

    trip: TripSnapshot
    pay_config: DriverPayConfig | None
    loads: tuple[LoadRecord, ...]
    expenses: tuple[ExpenseRecord, ...]


class TripRepository:
    """Reads trips, loads, expenses and driver pay configuration."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_trip(self, trip_id: UUID, owner_id: UUID) -> Trip:
        """Load a trip with loads, expenses and driver.

        Raises:
            NotFoundError: If the trip is missing or owned by someone else
        """
        result = await self.session.execute(
            select(Trip)
            .where(Trip.trip_id == trip_id, Trip.owner_id == owner_id)
            .options(
                selectinload(Trip.loads).selectinload(Load.company),
                selectinload(Trip.expenses),
                selectinload(Trip.driver),
            )
            .execution_options(populate_existing=True)
        )
        trip = result.scalar_one_or_none()
        if trip is None:
            raise NotFoundError("Trip", trip_id)
        return trip

    async def load_snapshot(self, trip_id: UUID, owner_id: UUID) -> tuple[Trip, TripInputs]:
        """Load the trip row and convert it to an immutable snapshot."""
        trip = await self.get_trip(trip_id, owner_id)
        return trip, self.to_inputs(trip)

    @staticmethod
    def to_inputs(trip: Trip) -> TripInputs:
        """Convert ORM rows to engine records. Malformed values fail here."""
        snapshot = TripSnapshot(
            trip_id=trip.trip_id,
            owner_id=trip.owner_id,
            driver_id=trip.driver_id,
            start_date=trip.start_date,
            end_date=trip.end_date,
            odometer_start=trip.odometer_start,
            odometer_end=trip.odometer_end,
            trip_number=trip.trip_number,
            status=trip.status,
        )

        pay_config = None
        driver: Driver | None = trip.driver
        if driver is not None and driver.owner_id == trip.owner_id:
            pay_config = DriverPayConfig(
                driver_id=driver.driver_id,
                pay_mode=driver.pay_mode,
                rate_per_mile=driver.rate_per_mile,
                rate_per_cuft=driver.rate_per_cuft,
                percent_of_revenue=driver.percent_of_revenue,
                flat_daily_rate=driver.flat_daily_rate,
            )

        loads = tuple(
            LoadRecord(
                load_id=load.load_id,
                company_id=load.company_id,
                company_name=load.company.name if load.company else None,
                total_revenue=load.total_revenue,
                amount_collected_on_delivery=load.amount_collected_on_delivery,
                actual_cuft_loaded=load.actual_cuft_loaded,
                load_number=load.load_number,
            )
            for load in trip.loads
        )
        expenses = tuple(
            ExpenseRecord(
                expense_id=expense.expense_id,
                category=expense.category,
                amount=expense.amount,
                paid_by=expense.paid_by,
                description=expense.description,
                receipt_url=expense.receipt_photo_url,
            )
            for expense in trip.expenses
        )
        return TripInputs(trip=snapshot, pay_config=pay_config, loads=loads, expenses=expenses)
