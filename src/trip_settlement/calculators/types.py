"""Type definitions for the settlement calculation pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Any
from uuid import UUID

CENTS = Decimal("0.01")
ZERO = Decimal("0")


def round_to_cents(amount: Decimal) -> Decimal:
    """Round amount to 2 decimal places, half up."""
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


class InvalidRecordError(ValueError):
    """Raised when an input record carries a missing or malformed value."""

    def __init__(self, record: str, field_name: str, value: Any, reason: str):
        self.record = record
        self.field = field_name
        self.value = value
        self.reason = reason
        super().__init__(f"{record}.{field_name}={value!r}: {reason}")


def require_amount(value: Any, record: str, field_name: str) -> Decimal:
    """Convert a numeric input to Decimal, rejecting missing and negative values.

    Floats are converted through their repr so 0.1 stays 0.1.
    """
    if value is None:
        raise InvalidRecordError(record, field_name, value, "value is required")
    if isinstance(value, bool):
        raise InvalidRecordError(record, field_name, value, "must be numeric")
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float, str)):
        try:
            amount = Decimal(str(value).strip())
        except InvalidOperation:
            raise InvalidRecordError(record, field_name, value, "must be numeric") from None
    else:
        raise InvalidRecordError(record, field_name, value, "must be numeric")

    if not amount.is_finite():
        raise InvalidRecordError(record, field_name, value, "must be finite")
    if amount < 0:
        raise InvalidRecordError(record, field_name, value, "must be non-negative")
    return amount


def require_money(value: Any, record: str, field_name: str) -> Decimal:
    """Like require_amount, normalized to cents."""
    return round_to_cents(require_amount(value, record, field_name))


def optional_amount(value: Any, record: str, field_name: str) -> Decimal | None:
    """Like require_amount, but None stays None."""
    if value is None:
        return None
    return require_amount(value, record, field_name)


def _optional_uuid(value: Any) -> UUID | None:
    if value is None or value == "":
        return None
    return value if isinstance(value, UUID) else UUID(str(value))


def _optional_date(value: Any) -> date | None:
    if value is None or value == "":
        return None
    return value if isinstance(value, date) else date.fromisoformat(str(value))


class ExpenseCategory(str, Enum):
    """Trip expense categories."""

    FUEL = "fuel"
    TOLLS = "tolls"
    DRIVER_PAY = "driver_pay"
    LUMPER = "lumper"
    PARKING = "parking"
    MAINTENANCE = "maintenance"
    OTHER = "other"


class PayerClass(str, Enum):
    """Who funded an expense."""

    COMPANY_FUNDED = "company_funded"
    DRIVER_FUNDED = "driver_funded"


class SettlementDirection(str, Enum):
    """Which side owes money once a trip is settled."""

    COMPANY_OWES_DRIVER = "company_owes_driver"
    DRIVER_OWES_COMPANY = "driver_owes_company"
    EVEN = "even"


class PayComponentKind(str, Enum):
    """Pay breakdown component kinds."""

    MILES = "miles"
    CUBIC_FEET = "cubic_feet"
    REVENUE_PERCENT = "revenue_percent"
    DAYS = "days"


class LineType(str, Enum):
    """Settlement line item categories."""

    REVENUE = "revenue"
    DRIVER_PAY = "driver_pay"
    FUEL = "fuel"
    TOLLS = "tolls"
    EXPENSE = "expense"
    REIMBURSEMENT = "reimbursement"
    COLLECTION = "collection"
    ROUNDING = "rounding"


# ===== Input snapshots =====


@dataclass(frozen=True)
class LoadRecord:
    """A load as seen from the trip being settled."""

    load_id: UUID
    company_id: UUID | None
    company_name: str | None
    total_revenue: Decimal
    amount_collected_on_delivery: Decimal
    actual_cuft_loaded: Decimal
    load_number: str | None = None

    def __post_init__(self) -> None:
        for name in ("total_revenue", "amount_collected_on_delivery"):
            object.__setattr__(self, name, require_money(getattr(self, name), "load", name))
        object.__setattr__(
            self,
            "actual_cuft_loaded",
            require_amount(self.actual_cuft_loaded, "load", "actual_cuft_loaded"),
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LoadRecord:
        return cls(
            load_id=UUID(str(data["load_id"])),
            company_id=_optional_uuid(data.get("company_id")),
            company_name=data.get("company_name"),
            total_revenue=data.get("total_revenue"),
            amount_collected_on_delivery=data.get("amount_collected_on_delivery"),
            actual_cuft_loaded=data.get("actual_cuft_loaded"),
            load_number=data.get("load_number"),
        )

    def to_canonical_dict(self) -> dict[str, Any]:
        return {
            "load_id": str(self.load_id),
            "company_id": str(self.company_id) if self.company_id else None,
            "company_name": self.company_name or "",
            "load_number": self.load_number or "",
            "total_revenue": str(self.total_revenue),
            "amount_collected_on_delivery": str(self.amount_collected_on_delivery),
            "actual_cuft_loaded": str(self.actual_cuft_loaded),
        }


@dataclass(frozen=True)
class ExpenseRecord:
    """A trip expense with its payer tag."""

    expense_id: UUID
    category: ExpenseCategory
    amount: Decimal
    paid_by: str | None = None
    description: str | None = None
    receipt_url: str | None = None

    def __post_init__(self) -> None:
        try:
            category = ExpenseCategory(self.category)
        except ValueError:
            raise InvalidRecordError(
                "expense", "category", self.category, "unknown expense category"
            ) from None
        object.__setattr__(self, "category", category)
        object.__setattr__(self, "amount", require_money(self.amount, "expense", "amount"))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ExpenseRecord:
        return cls(
            expense_id=UUID(str(data["expense_id"])),
            category=data.get("category"),
            amount=data.get("amount"),
            paid_by=data.get("paid_by"),
            description=data.get("description"),
            receipt_url=data.get("receipt_url"),
        )

    def to_canonical_dict(self) -> dict[str, Any]:
        return {
            "expense_id": str(self.expense_id),
            "category": self.category.value,
            "amount": str(self.amount),
            "paid_by": self.paid_by or "",
            "description": self.description or "",
            "receipt_url": self.receipt_url or "",
        }


@dataclass(frozen=True)
class TripSnapshot:
    """Immutable view of the trip fields the engine reads."""

    trip_id: UUID
    owner_id: UUID
    driver_id: UUID | None
    start_date: date | None = None
    end_date: date | None = None
    odometer_start: Decimal | None = None
    odometer_end: Decimal | None = None
    trip_number: str | None = None
    status: str = "completed"

    def __post_init__(self) -> None:
        start = optional_amount(self.odometer_start, "trip", "odometer_start")
        end = optional_amount(self.odometer_end, "trip", "odometer_end")
        object.__setattr__(self, "odometer_start", start)
        object.__setattr__(self, "odometer_end", end)

        if start is not None and end is not None and end < start:
            raise InvalidRecordError(
                "trip", "odometer_end", end, f"is below odometer_start {start}"
            )
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise InvalidRecordError(
                "trip", "end_date", self.end_date, f"is before start_date {self.start_date}"
            )

    @property
    def miles(self) -> Decimal | None:
        """Actual miles from the odometer, or None if a reading is missing."""
        if self.odometer_start is None or self.odometer_end is None:
            return None
        return self.odometer_end - self.odometer_start

    @property
    def days(self) -> int:
        """Calendar days on the trip, counting both ends. At least 1."""
        if self.start_date and self.end_date:
            return (self.end_date - self.start_date).days + 1
        return 1

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TripSnapshot:
        return cls(
            trip_id=UUID(str(data["trip_id"])),
            owner_id=UUID(str(data["owner_id"])),
            driver_id=_optional_uuid(data.get("driver_id")),
            start_date=_optional_date(data.get("start_date")),
            end_date=_optional_date(data.get("end_date")),
            odometer_start=data.get("odometer_start"),
            odometer_end=data.get("odometer_end"),
            trip_number=data.get("trip_number"),
            status=data.get("status", "completed"),
        )


@dataclass(frozen=True)
class DriverPayConfig:
    """Raw driver pay configuration as stored on the driver record.

    Only the fields required by pay_mode are read; the rest are ignored.
    """

    driver_id: UUID
    pay_mode: str | None
    rate_per_mile: Any = None
    rate_per_cuft: Any = None
    percent_of_revenue: Any = None
    flat_daily_rate: Any = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DriverPayConfig:
        return cls(
            driver_id=UUID(str(data["driver_id"])),
            pay_mode=data.get("pay_mode"),
            rate_per_mile=data.get("rate_per_mile"),
            rate_per_cuft=data.get("rate_per_cuft"),
            percent_of_revenue=data.get("percent_of_revenue"),
            flat_daily_rate=data.get("flat_daily_rate"),
        )


@dataclass(frozen=True)
class TripMetrics:
    """Metrics a pay mode may draw on."""

    miles: Decimal | None
    cubic_feet: Decimal
    revenue: Decimal
    days: int

    def to_canonical_dict(self) -> dict[str, Any]:
        return {
            "miles": str(self.miles) if self.miles is not None else None,
            "cubic_feet": str(self.cubic_feet),
            "revenue": str(self.revenue),
            "days": self.days,
        }


# ===== Calculation results =====


@dataclass(frozen=True)
class PayComponent:
    """One term of the gross pay formula: quantity x rate."""

    kind: PayComponentKind
    quantity: Decimal
    rate: Decimal
    amount: Decimal  # rounded to cents for display

    @property
    def description(self) -> str:
        if self.kind == PayComponentKind.MILES:
            return f"{self.quantity} mi x ${self.rate}/mi"
        if self.kind == PayComponentKind.CUBIC_FEET:
            return f"{self.quantity} cuft x ${self.rate}/cuft"
        if self.kind == PayComponentKind.REVENUE_PERCENT:
            return f"{self.rate}% of ${self.quantity} revenue"
        return f"{self.quantity} day(s) x ${self.rate}/day"

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "quantity": str(self.quantity),
            "rate": str(self.rate),
            "amount": str(self.amount),
            "description": self.description,
        }


@dataclass(frozen=True)
class GrossPayResult:
    """Gross pay and the components that produced it."""

    pay_mode: str
    gross_pay: Decimal
    components: tuple[PayComponent, ...]

    @property
    def rounding_adjustment(self) -> Decimal:
        """Difference between gross pay and the sum of rounded components."""
        return self.gross_pay - sum((c.amount for c in self.components), ZERO)

    def to_dict(self) -> dict[str, Any]:
        return {
            "pay_mode": self.pay_mode,
            "gross_pay": str(self.gross_pay),
            "components": [c.to_dict() for c in self.components],
        }


@dataclass
class ExpenseSummary:
    """Expenses split by payer class and by category."""

    company_paid: Decimal = ZERO
    driver_paid: Decimal = ZERO
    by_category: dict[ExpenseCategory, Decimal] = field(
        default_factory=lambda: {c: ZERO for c in ExpenseCategory}
    )
    driver_funded: list[ExpenseRecord] = field(default_factory=list)

    @property
    def total(self) -> Decimal:
        return self.company_paid + self.driver_paid

    @property
    def fuel(self) -> Decimal:
        return self.by_category[ExpenseCategory.FUEL]

    @property
    def tolls(self) -> Decimal:
        return self.by_category[ExpenseCategory.TOLLS]

    @property
    def other(self) -> Decimal:
        """Everything that is neither fuel nor tolls."""
        return self.total - self.fuel - self.tolls

    @property
    def operating_total(self) -> Decimal:
        """Expenses excluding the driver_pay category."""
        return self.total - self.by_category[ExpenseCategory.DRIVER_PAY]

    def to_dict(self) -> dict[str, Any]:
        return {
            "company_paid": str(self.company_paid),
            "driver_paid": str(self.driver_paid),
            "total": str(self.total),
            "by_category": {
                "fuel": str(self.fuel),
                "tolls": str(self.tolls),
                "other": str(self.other),
            },
        }


@dataclass
class CompanyBreakdown:
    """Loads and totals for one company on a trip."""

    company_id: UUID | None
    company_name: str
    loads: list[LoadRecord] = field(default_factory=list)
    total_revenue: Decimal = ZERO
    total_collected: Decimal = ZERO
    total_cuft: Decimal = ZERO

    @property
    def total_receivable(self) -> Decimal:
        return self.total_revenue - self.total_collected

    def to_dict(self) -> dict[str, Any]:
        return {
            "company_id": str(self.company_id) if self.company_id else None,
            "company_name": self.company_name,
            "load_ids": [str(load.load_id) for load in self.loads],
            "total_revenue": str(self.total_revenue),
            "total_collected": str(self.total_collected),
            "total_receivable": str(self.total_receivable),
        }


@dataclass
class RevenueSummary:
    """Trip-level revenue totals plus the per-company breakdown."""

    total_revenue: Decimal = ZERO
    total_collected: Decimal = ZERO
    total_cuft: Decimal = ZERO
    companies: list[CompanyBreakdown] = field(default_factory=list)

    @property
    def total_receivable(self) -> Decimal:
        return self.total_revenue - self.total_collected

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_revenue": str(self.total_revenue),
            "total_collected": str(self.total_collected),
            "total_cuft": str(self.total_cuft),
            "total_receivable": str(self.total_receivable),
            "companies": [c.to_dict() for c in self.companies],
        }


@dataclass(frozen=True)
class ReceivableCandidate:
    """Amount a company owes for its loads on the trip, net of collections."""

    company_id: UUID | None
    company_name: str
    revenue: Decimal
    collected: Decimal
    amount: Decimal

    @property
    def overcollected(self) -> bool:
        return self.amount < 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "company_id": str(self.company_id) if self.company_id else None,
            "company_name": self.company_name,
            "revenue": str(self.revenue),
            "collected": str(self.collected),
            "amount": str(self.amount),
            "overcollected": self.overcollected,
        }


@dataclass(frozen=True)
class PayableCandidate:
    """Amount owed to the driver. Negative means the driver owes the company."""

    driver_id: UUID
    gross_pay: Decimal
    reimbursements: Decimal
    collections: Decimal
    amount: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "driver_id": str(self.driver_id),
            "gross_pay": str(self.gross_pay),
            "reimbursements": str(self.reimbursements),
            "collections": str(self.collections),
            "amount": str(self.amount),
        }


@dataclass(frozen=True)
class NetSettlement:
    """Unsigned net amount and the direction it flows."""

    net_amount: Decimal
    direction: SettlementDirection

    def to_dict(self) -> dict[str, Any]:
        return {"net_amount": str(self.net_amount), "direction": self.direction.value}


@dataclass
class LineCandidate:
    """A settlement line item before persistence."""

    line_type: LineType
    amount: Decimal  # signed: collections are negative
    description: str
    load_id: UUID | None = None
    company_id: UUID | None = None
    expense_id: UUID | None = None
    quantity: Decimal | None = None
    rate: Decimal | None = None

    def to_canonical_dict(self) -> dict[str, Any]:
        """Return canonical dict for hashing (deterministic ordering)."""
        return {
            "line_type": self.line_type.value,
            "amount": str(self.amount),
            "description": self.description,
            "load_id": str(self.load_id) if self.load_id else None,
            "company_id": str(self.company_id) if self.company_id else None,
            "expense_id": str(self.expense_id) if self.expense_id else None,
            "quantity": str(self.quantity) if self.quantity is not None else None,
            "rate": str(self.rate) if self.rate is not None else None,
        }
