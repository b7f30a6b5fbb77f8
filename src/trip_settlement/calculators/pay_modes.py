"""Driver pay modes and the gross pay calculator."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Union, assert_never

from trip_settlement.calculators.types import (
    ZERO,
    DriverPayConfig,
    GrossPayResult,
    PayComponent,
    PayComponentKind,
    TripMetrics,
    round_to_cents,
)

HUNDRED = Decimal("100")


class PayModeTag(str, Enum):
    """Pay mode tags as stored on the driver record."""

    PER_MILE = "per_mile"
    PER_CUFT = "per_cuft"
    PER_MILE_AND_CUFT = "per_mile_and_cuft"
    PERCENT_OF_REVENUE = "percent_of_revenue"
    FLAT_DAILY_RATE = "flat_daily_rate"


class MissingRateParameterError(ValueError):
    """Raised when the active pay mode is missing a required rate."""

    def __init__(self, pay_mode: str, field_name: str, value: Any = None):
        self.pay_mode = pay_mode
        self.field = field_name
        self.value = value
        if value is None:
            detail = "is required"
        else:
            detail = f"must be numeric (got {value!r})"
        super().__init__(f"Pay mode '{pay_mode}': {field_name} {detail}")


class InvalidRateParameterError(ValueError):
    """Raised when a rate is numeric but negative."""

    def __init__(self, pay_mode: str, field_name: str, value: Decimal):
        self.pay_mode = pay_mode
        self.field = field_name
        self.value = value
        super().__init__(f"Pay mode '{pay_mode}': {field_name} must be non-negative, got {value}")


class InvalidPercentError(ValueError):
    """Raised when percent of revenue falls outside [0, 100]."""

    def __init__(self, value: Decimal):
        self.value = value
        super().__init__(f"percent_of_revenue must be between 0 and 100, got {value}")


class UnknownPayModeError(ValueError):
    """Raised when a driver's pay mode tag is not recognized."""

    def __init__(self, pay_mode: Any):
        self.pay_mode = pay_mode
        super().__init__(f"Unknown pay mode: {pay_mode!r}")


class MissingTripMetricError(ValueError):
    """Raised when the pay mode needs a trip metric the trip does not have."""

    def __init__(self, pay_mode: str, field_name: str):
        self.pay_mode = pay_mode
        self.field = field_name
        super().__init__(
            f"Pay mode '{pay_mode}' requires {field_name}, which is not available for this trip"
        )


# ===== Pay mode variants =====


@dataclass(frozen=True)
class PerMile:
    rate_per_mile: Decimal

    tag = PayModeTag.PER_MILE


@dataclass(frozen=True)
class PerCuft:
    rate_per_cuft: Decimal

    tag = PayModeTag.PER_CUFT


@dataclass(frozen=True)
class PerMileAndCuft:
    rate_per_mile: Decimal
    rate_per_cuft: Decimal

    tag = PayModeTag.PER_MILE_AND_CUFT


@dataclass(frozen=True)
class PercentOfRevenue:
    percent: Decimal

    tag = PayModeTag.PERCENT_OF_REVENUE

    def __post_init__(self) -> None:
        if self.percent < 0 or self.percent > HUNDRED:
            raise InvalidPercentError(self.percent)


@dataclass(frozen=True)
class FlatDailyRate:
    daily_rate: Decimal

    tag = PayModeTag.FLAT_DAILY_RATE


PayMode = Union[PerMile, PerCuft, PerMileAndCuft, PercentOfRevenue, FlatDailyRate]


def pay_mode_to_canonical_dict(mode: PayMode) -> dict[str, str]:
    """Return canonical dict for fingerprinting."""
    params = {name: str(value) for name, value in vars(mode).items()}
    return {"pay_mode": mode.tag.value, **params}


def _require_rate(pay_mode: PayModeTag, field_name: str, value: Any) -> Decimal:
    """Parse a non-negative rate parameter."""
    rate = _parse_rate(pay_mode, field_name, value)
    if rate < 0:
        raise InvalidRateParameterError(pay_mode.value, field_name, rate)
    return rate


def _parse_rate(pay_mode: PayModeTag, field_name: str, value: Any) -> Decimal:
    """Parse a rate parameter. Missing or non-numeric values never default to zero."""
    if value is None or isinstance(value, bool):
        raise MissingRateParameterError(pay_mode.value, field_name, value)
    if isinstance(value, Decimal):
        rate = value
    else:
        if isinstance(value, str) and not value.strip():
            raise MissingRateParameterError(pay_mode.value, field_name)
        try:
            rate = Decimal(str(value).strip())
        except InvalidOperation:
            raise MissingRateParameterError(pay_mode.value, field_name, value) from None
    if not rate.is_finite():
        raise MissingRateParameterError(pay_mode.value, field_name, value)
    return rate


def build_pay_mode(
    pay_mode: str | None,
    *,
    rate_per_mile: Any = None,
    rate_per_cuft: Any = None,
    percent_of_revenue: Any = None,
    flat_daily_rate: Any = None,
) -> PayMode:
    """Build a pay mode variant from raw driver fields.

    Raises:
        UnknownPayModeError: pay_mode is missing or not a known tag
        MissingRateParameterError: a rate required by the mode is absent or non-numeric
        InvalidPercentError: percent_of_revenue is outside [0, 100]
    """
    try:
        tag = PayModeTag(pay_mode)
    except ValueError:
        raise UnknownPayModeError(pay_mode) from None

    if tag == PayModeTag.PER_MILE:
        return PerMile(_require_rate(tag, "rate_per_mile", rate_per_mile))
    if tag == PayModeTag.PER_CUFT:
        return PerCuft(_require_rate(tag, "rate_per_cuft", rate_per_cuft))
    if tag == PayModeTag.PER_MILE_AND_CUFT:
        return PerMileAndCuft(
            _require_rate(tag, "rate_per_mile", rate_per_mile),
            _require_rate(tag, "rate_per_cuft", rate_per_cuft),
        )
    if tag == PayModeTag.PERCENT_OF_REVENUE:
        return PercentOfRevenue(_parse_rate(tag, "percent_of_revenue", percent_of_revenue))
    return FlatDailyRate(_require_rate(tag, "flat_daily_rate", flat_daily_rate))


def resolve_pay_mode(config: DriverPayConfig) -> PayMode:
    """Build the active pay mode from a driver's stored configuration."""
    return build_pay_mode(
        config.pay_mode,
        rate_per_mile=config.rate_per_mile,
        rate_per_cuft=config.rate_per_cuft,
        percent_of_revenue=config.percent_of_revenue,
        flat_daily_rate=config.flat_daily_rate,
    )


class PayModeCalculator:
    """Computes a driver's gross pay for one trip.

    Each mode reads only its own inputs:
    - per_mile: miles x rate_per_mile
    - per_cuft: cubic_feet x rate_per_cuft
    - per_mile_and_cuft: both of the above, reported separately
    - percent_of_revenue: revenue x percent / 100
    - flat_daily_rate: days x daily_rate

    Gross pay is rounded half up to cents once, on the exact sum of the
    components. Each component is also rounded for display; any penny
    difference is exposed as GrossPayResult.rounding_adjustment.
    """

    @staticmethod
    def calculate(mode: PayMode, metrics: TripMetrics) -> GrossPayResult:
        terms: list[tuple[PayComponentKind, Decimal, Decimal, Decimal]] = []

        match mode:
            case PerMile(rate_per_mile=rate):
                miles = PayModeCalculator._require_miles(mode, metrics)
                terms.append((PayComponentKind.MILES, miles, rate, miles * rate))
            case PerCuft(rate_per_cuft=rate):
                cuft = metrics.cubic_feet
                terms.append((PayComponentKind.CUBIC_FEET, cuft, rate, cuft * rate))
            case PerMileAndCuft(rate_per_mile=mile_rate, rate_per_cuft=cuft_rate):
                miles = PayModeCalculator._require_miles(mode, metrics)
                cuft = metrics.cubic_feet
                terms.append((PayComponentKind.MILES, miles, mile_rate, miles * mile_rate))
                terms.append((PayComponentKind.CUBIC_FEET, cuft, cuft_rate, cuft * cuft_rate))
            case PercentOfRevenue(percent=percent):
                revenue = metrics.revenue
                terms.append(
                    (PayComponentKind.REVENUE_PERCENT, revenue, percent, revenue * percent / HUNDRED)
                )
            case FlatDailyRate(daily_rate=rate):
                days = Decimal(metrics.days)
                terms.append((PayComponentKind.DAYS, days, rate, days * rate))
            case _:
                assert_never(mode)

        exact_total = sum((exact for _, _, _, exact in terms), ZERO)
        components = tuple(
            PayComponent(kind=kind, quantity=qty, rate=rate, amount=round_to_cents(exact))
            for kind, qty, rate, exact in terms
        )
        return GrossPayResult(
            pay_mode=mode.tag.value,
            gross_pay=round_to_cents(exact_total),
            components=components,
        )

    @staticmethod
    def calculate_from_fields(
        pay_mode: str | None,
        metrics: TripMetrics,
        **rates: Any,
    ) -> GrossPayResult:
        """Build the pay mode from raw fields, then calculate."""
        return PayModeCalculator.calculate(build_pay_mode(pay_mode, **rates), metrics)

    @staticmethod
    def _require_miles(mode: PayMode, metrics: TripMetrics) -> Decimal:
        if metrics.miles is None:
            raise MissingTripMetricError(mode.tag.value, "miles")
        return metrics.miles
