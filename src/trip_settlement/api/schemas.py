"""Pydantic schemas for API request/response models."""

from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

# ============================================================================
# Pay preview schemas
# ============================================================================


class PayPreviewRequest(BaseModel):
    """Schema for previewing gross pay from raw pay fields and trip metrics."""

    pay_mode: str
    rate_per_mile: Decimal | None = None
    rate_per_cuft: Decimal | None = None
    percent_of_revenue: Decimal | None = None
    flat_daily_rate: Decimal | None = None
    miles: Decimal | None = Field(default=None, ge=0)
    cubic_feet: Decimal = Field(default=Decimal("0"), ge=0)
    revenue: Decimal = Field(default=Decimal("0"), ge=0)
    days: int = Field(default=1, ge=1)


class PayComponentResponse(BaseModel):
    """One term of the gross pay formula."""

    kind: str
    quantity: Decimal
    rate: Decimal
    amount: Decimal
    description: str


class PayPreviewResponse(BaseModel):
    """Schema for pay preview response."""

    pay_mode: str
    gross_pay: Decimal
    rounding_adjustment: Decimal
    components: list[PayComponentResponse]


# ============================================================================
# Settlement schemas
# ============================================================================


class ReceivableResponse(BaseModel):
    """Schema for a settlement receivable."""

    model_config = ConfigDict(from_attributes=True)

    receivable_id: UUID
    position: int
    company_id: UUID | None = None
    company_name: str
    revenue: Decimal
    collected: Decimal
    amount: Decimal
    overcollected: bool
    status: str


class PayableResponse(BaseModel):
    """Schema for the driver payable."""

    model_config = ConfigDict(from_attributes=True)

    payable_id: UUID
    driver_id: UUID
    gross_pay: Decimal
    reimbursements: Decimal
    collections: Decimal
    amount: Decimal
    status: str


class LineItemResponse(BaseModel):
    """Schema for a settlement line item."""

    model_config = ConfigDict(from_attributes=True)

    line_item_id: UUID
    position: int
    line_type: str
    description: str
    amount: Decimal
    quantity: Decimal | None = None
    rate: Decimal | None = None
    load_id: UUID | None = None
    company_id: UUID | None = None
    expense_id: UUID | None = None
    line_hash: str


class SettlementResponse(BaseModel):
    """Schema for a settlement with its receivables, payable and lines."""

    model_config = ConfigDict(from_attributes=True)

    settlement_id: UUID
    owner_id: UUID
    trip_id: UUID
    driver_id: UUID
    status: str
    total_revenue: Decimal
    total_driver_pay: Decimal
    total_expenses: Decimal
    total_profit: Decimal
    total_reimbursements: Decimal
    total_collected: Decimal
    net_amount: Decimal
    net_direction: str
    has_overcollection: bool
    pay_mode: str
    pay_breakdown_json: dict[str, Any]
    calculation_id: UUID
    inputs_fingerprint: str
    recalculation_count: int
    payment_method: str | None = None
    payment_reference: str | None = None
    payment_notes: str | None = None
    paid_at: datetime | None = None
    created_at: datetime
    updated_at: datetime
    receivables: list[ReceivableResponse]
    payables: list[PayableResponse]
    line_items: list[LineItemResponse]


class TransitionRequest(BaseModel):
    """Schema for a status transition."""

    to_status: str


class MarkPaidRequest(BaseModel):
    """Schema for recording a settlement payment."""

    method: str
    reference: str | None = None
    notes: str | None = None


# ============================================================================
# Finance schemas
# ============================================================================


class CompanyBalanceResponse(BaseModel):
    company_id: UUID | None = None
    company_name: str
    open_amount: Decimal
    open_count: int


class RecentSettlementResponse(BaseModel):
    settlement_id: UUID
    trip_id: UUID
    trip_number: str | None = None
    status: str
    total_revenue: Decimal
    total_profit: Decimal
    net_amount: Decimal
    net_direction: str
    created_at: datetime


class FinanceSummaryResponse(BaseModel):
    """Schema for the owner finance summary."""

    settlement_count: int
    total_revenue: Decimal
    total_driver_pay: Decimal
    total_expenses: Decimal
    total_profit: Decimal
    open_receivables_amount: Decimal
    open_receivables_count: int
    top_companies: list[CompanyBalanceResponse]
    recent_settlements: list[RecentSettlementResponse]


# ============================================================================
# Error schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """Schema for error response."""

    detail: str
    code: str | None = None
