"""Trip, load and expense models (read side of settlement)."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, Date, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from trip_settlement.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from trip_settlement.models.company import Company, Driver


class Trip(Base, TimestampMixin):
    """A driver's trip with cached financial totals."""

    __tablename__ = "trip"

    trip_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    owner_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    trip_number: Mapped[str | None] = mapped_column(String, nullable=True)
    status: Mapped[str] = mapped_column(String, nullable=False, default="planned")
    driver_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("driver.driver_id", ondelete="SET NULL"), nullable=True
    )
    truck_id: Mapped[UUID | None] = mapped_column(nullable=True)
    trailer_id: Mapped[UUID | None] = mapped_column(nullable=True)
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    odometer_start: Mapped[Decimal | None] = mapped_column(Numeric(12, 1), nullable=True)
    odometer_end: Mapped[Decimal | None] = mapped_column(Numeric(12, 1), nullable=True)
    actual_miles: Mapped[Decimal | None] = mapped_column(Numeric(12, 1), nullable=True)

    # Cached projections, recomputed on settle/recalculate
    revenue_total: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    driver_pay_total: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    fuel_total: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    tolls_total: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    other_expenses_total: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    profit_total: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    settled_at: Mapped[datetime | None] = mapped_column(nullable=True)

    __table_args__ = (
        CheckConstraint(
            "status IN ('planned', 'active', 'en_route', 'completed', 'settled', 'cancelled')",
            name="trip_status_check",
        ),
        CheckConstraint(
            "revenue_total >= 0 AND fuel_total >= 0 AND tolls_total >= 0 "
            "AND other_expenses_total >= 0 AND driver_pay_total >= 0",
            name="trip_totals_non_negative",
        ),
    )

    # Relationships
    driver: Mapped[Driver | None] = relationship()
    loads: Mapped[list[Load]] = relationship(
        back_populates="trip", order_by="Load.sequence_index"
    )
    expenses: Mapped[list[TripExpense]] = relationship(
        back_populates="trip",
        order_by=lambda: [TripExpense.incurred_at, TripExpense.expense_id],
    )


class Load(Base, TimestampMixin):
    """A load assigned to a trip, hauled for one company."""

    __tablename__ = "load"

    load_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    owner_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    trip_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("trip.trip_id", ondelete="SET NULL"), nullable=True, index=True
    )
    sequence_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    load_number: Mapped[str | None] = mapped_column(String, nullable=True)
    company_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("company.company_id", ondelete="SET NULL"), nullable=True
    )
    total_revenue: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    amount_collected_on_delivery: Mapped[Decimal] = mapped_column(
        nullable=False, default=Decimal("0")
    )
    actual_cuft_loaded: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0")
    )

    __table_args__ = (
        CheckConstraint(
            "total_revenue >= 0 AND amount_collected_on_delivery >= 0 AND actual_cuft_loaded >= 0",
            name="load_amounts_non_negative",
        ),
    )

    # Relationships
    trip: Mapped[Trip | None] = relationship(back_populates="loads")
    company: Mapped[Company | None] = relationship()


class TripExpense(Base, TimestampMixin):
    """An expense incurred on a trip and who paid for it."""

    __tablename__ = "trip_expense"

    expense_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    owner_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    trip_id: Mapped[UUID] = mapped_column(
        ForeignKey("trip.trip_id", ondelete="CASCADE"), nullable=False, index=True
    )
    category: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(String, nullable=True)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    paid_by: Mapped[str | None] = mapped_column(String, nullable=True)
    receipt_photo_url: Mapped[str | None] = mapped_column(String, nullable=True)
    incurred_at: Mapped[date | None] = mapped_column(Date, nullable=True)

    __table_args__ = (
        CheckConstraint("amount >= 0", name="trip_expense_amount_non_negative"),
        CheckConstraint(
            "category IN ('fuel', 'tolls', 'driver_pay', 'lumper', 'parking', "
            "'maintenance', 'other')",
            name="trip_expense_category_check",
        ),
    )

    # Relationships
    trip: Mapped[Trip] = relationship(back_populates="expenses")
