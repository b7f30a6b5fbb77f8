"""Trip settlement, receivable, payable and line item models."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from trip_settlement.models.base import Base, TimestampMixin


class TripSettlement(Base, TimestampMixin):
    """One settlement per trip.

    Amounts may be recomputed in place until the settlement is paid; after
    that the row is immutable.
    """

    __tablename__ = "trip_settlement"

    settlement_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    owner_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    trip_id: Mapped[UUID] = mapped_column(
        ForeignKey("trip.trip_id", ondelete="CASCADE"), nullable=False
    )
    driver_id: Mapped[UUID] = mapped_column(
        ForeignKey("driver.driver_id", ondelete="RESTRICT"), nullable=False
    )
    status: Mapped[str] = mapped_column(String, nullable=False, default="pending")

    total_revenue: Mapped[Decimal] = mapped_column(nullable=False)
    total_driver_pay: Mapped[Decimal] = mapped_column(nullable=False)
    total_expenses: Mapped[Decimal] = mapped_column(nullable=False)
    total_profit: Mapped[Decimal] = mapped_column(nullable=False)
    total_reimbursements: Mapped[Decimal] = mapped_column(nullable=False)
    total_collected: Mapped[Decimal] = mapped_column(nullable=False)
    net_amount: Mapped[Decimal] = mapped_column(nullable=False)
    net_direction: Mapped[str] = mapped_column(String, nullable=False)
    has_overcollection: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    pay_mode: Mapped[str] = mapped_column(String, nullable=False)
    pay_breakdown_json: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    calculation_id: Mapped[UUID] = mapped_column(nullable=False)
    inputs_fingerprint: Mapped[str] = mapped_column(String(64), nullable=False)
    recalculation_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    payment_method: Mapped[str | None] = mapped_column(String, nullable=True)
    payment_reference: Mapped[str | None] = mapped_column(String, nullable=True)
    payment_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    paid_at: Mapped[datetime | None] = mapped_column(nullable=True)

    __table_args__ = (
        UniqueConstraint("trip_id", name="trip_settlement_trip_unique"),
        CheckConstraint(
            "status IN ('pending', 'review', 'approved', 'paid')",
            name="trip_settlement_status_check",
        ),
        CheckConstraint(
            "net_direction IN ('company_owes_driver', 'driver_owes_company', 'even')",
            name="trip_settlement_direction_check",
        ),
        CheckConstraint(
            "(status = 'paid') = (paid_at IS NOT NULL AND payment_method IS NOT NULL)",
            name="trip_settlement_paid_fields_check",
        ),
    )

    # Relationships
    receivables: Mapped[list[SettlementReceivable]] = relationship(
        back_populates="settlement",
        cascade="all, delete-orphan",
        order_by="SettlementReceivable.position",
    )
    payables: Mapped[list[SettlementPayable]] = relationship(
        back_populates="settlement",
        cascade="all, delete-orphan",
    )
    line_items: Mapped[list[SettlementLineItem]] = relationship(
        back_populates="settlement",
        cascade="all, delete-orphan",
        order_by="SettlementLineItem.position",
    )

    @property
    def is_paid(self) -> bool:
        return self.status == "paid"


class SettlementReceivable(Base, TimestampMixin):
    """Amount a company owes for its loads on the settled trip."""

    __tablename__ = "settlement_receivable"

    receivable_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    settlement_id: Mapped[UUID] = mapped_column(
        ForeignKey("trip_settlement.settlement_id", ondelete="CASCADE"), nullable=False
    )
    owner_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    trip_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    company_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("company.company_id", ondelete="SET NULL"), nullable=True
    )
    company_name: Mapped[str] = mapped_column(String, nullable=False)
    revenue: Mapped[Decimal] = mapped_column(nullable=False)
    collected: Mapped[Decimal] = mapped_column(nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    overcollected: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="open")

    __table_args__ = (
        CheckConstraint("status IN ('open', 'paid')", name="settlement_receivable_status_check"),
        CheckConstraint("overcollected = (amount < 0)", name="settlement_receivable_overcollected"),
    )

    settlement: Mapped[TripSettlement] = relationship(back_populates="receivables")


class SettlementPayable(Base, TimestampMixin):
    """Amount owed to the driver. Negative means the driver owes the company."""

    __tablename__ = "settlement_payable"

    payable_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    settlement_id: Mapped[UUID] = mapped_column(
        ForeignKey("trip_settlement.settlement_id", ondelete="CASCADE"), nullable=False
    )
    owner_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    trip_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    driver_id: Mapped[UUID] = mapped_column(
        ForeignKey("driver.driver_id", ondelete="RESTRICT"), nullable=False
    )
    gross_pay: Mapped[Decimal] = mapped_column(nullable=False)
    reimbursements: Mapped[Decimal] = mapped_column(nullable=False)
    collections: Mapped[Decimal] = mapped_column(nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="open")

    __table_args__ = (
        UniqueConstraint("settlement_id", "driver_id", name="settlement_payable_driver_unique"),
        CheckConstraint("status IN ('open', 'paid')", name="settlement_payable_status_check"),
    )

    settlement: Mapped[TripSettlement] = relationship(back_populates="payables")


class SettlementLineItem(Base, TimestampMixin):
    """Ledger-style line backing the settlement totals."""

    __tablename__ = "settlement_line_item"

    line_item_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    settlement_id: Mapped[UUID] = mapped_column(
        ForeignKey("trip_settlement.settlement_id", ondelete="CASCADE"), nullable=False
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    line_type: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str] = mapped_column(String, nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    quantity: Mapped[Decimal | None] = mapped_column(Numeric(14, 4), nullable=True)
    rate: Mapped[Decimal | None] = mapped_column(Numeric(14, 4), nullable=True)
    load_id: Mapped[UUID | None] = mapped_column(nullable=True)
    company_id: Mapped[UUID | None] = mapped_column(nullable=True)
    expense_id: Mapped[UUID | None] = mapped_column(nullable=True)
    calculation_id: Mapped[UUID] = mapped_column(nullable=False)
    line_hash: Mapped[str] = mapped_column(String(64), nullable=False)

    __table_args__ = (
        CheckConstraint(
            "line_type IN ('revenue', 'driver_pay', 'fuel', 'tolls', 'expense', "
            "'reimbursement', 'collection', 'rounding')",
            name="settlement_line_item_type_check",
        ),
    )

    settlement: Mapped[TripSettlement] = relationship(back_populates="line_items")
