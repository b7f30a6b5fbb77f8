"""Company and driver models (read side of settlement)."""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from trip_settlement.models.base import Base, TimestampMixin


class Company(Base, TimestampMixin):
    """Company a load is hauled for; the counterparty of a receivable."""

    __tablename__ = "company"

    company_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    owner_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    name: Mapped[str] = mapped_column(String, nullable=False)


class Driver(Base, TimestampMixin):
    """Driver with a single active pay configuration.

    Only the rate column(s) the active pay_mode needs are read.
    """

    __tablename__ = "driver"

    driver_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    owner_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    first_name: Mapped[str] = mapped_column(String, nullable=False)
    last_name: Mapped[str] = mapped_column(String, nullable=False)
    pay_mode: Mapped[str | None] = mapped_column(String, nullable=True)
    rate_per_mile: Mapped[Decimal | None] = mapped_column(Numeric(10, 4), nullable=True)
    rate_per_cuft: Mapped[Decimal | None] = mapped_column(Numeric(10, 4), nullable=True)
    percent_of_revenue: Mapped[Decimal | None] = mapped_column(Numeric(5, 2), nullable=True)
    flat_daily_rate: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)

    __table_args__ = (
        CheckConstraint(
            "pay_mode IS NULL OR pay_mode IN ('per_mile', 'per_cuft', 'per_mile_and_cuft', "
            "'percent_of_revenue', 'flat_daily_rate')",
            name="driver_pay_mode_check",
        ),
    )
