"""Tests for driver pay modes and the gross pay calculator."""

from decimal import Decimal
from uuid import uuid4

import pytest

from trip_settlement.calculators.pay_modes import (
    FlatDailyRate,
    InvalidPercentError,
    InvalidRateParameterError,
    MissingRateParameterError,
    MissingTripMetricError,
    PayModeCalculator,
    PerCuft,
    PercentOfRevenue,
    PerMile,
    PerMileAndCuft,
    UnknownPayModeError,
    build_pay_mode,
    pay_mode_to_canonical_dict,
    resolve_pay_mode,
)
from trip_settlement.calculators.types import DriverPayConfig, PayComponentKind, TripMetrics


def metrics(miles="1000", cubic_feet="0", revenue="0", days=1) -> TripMetrics:
    return TripMetrics(
        miles=Decimal(miles) if miles is not None else None,
        cubic_feet=Decimal(cubic_feet),
        revenue=Decimal(revenue),
        days=days,
    )


class TestPayModes:
    """Gross pay per mode."""

    def test_per_mile(self):
        """1000 miles at 0.55 pays 550.00."""
        result = PayModeCalculator.calculate(PerMile(Decimal("0.55")), metrics(miles="1000"))

        assert result.gross_pay == Decimal("550.00")
        assert result.pay_mode == "per_mile"
        assert len(result.components) == 1
        assert result.components[0].kind == PayComponentKind.MILES
        assert result.components[0].description == "1000 mi x $0.55/mi"

    def test_per_cuft(self):
        result = PayModeCalculator.calculate(
            PerCuft(Decimal("0.40")), metrics(miles=None, cubic_feet="1250")
        )
        assert result.gross_pay == Decimal("500.00")

    def test_per_mile_and_cuft_reports_both_components(self):
        """Both terms are computed and reported separately."""
        result = PayModeCalculator.calculate(
            PerMileAndCuft(Decimal("0.50"), Decimal("0.25")),
            metrics(miles="800", cubic_feet="1000"),
        )

        assert result.gross_pay == Decimal("650.00")
        kinds = [c.kind for c in result.components]
        assert kinds == [PayComponentKind.MILES, PayComponentKind.CUBIC_FEET]
        assert [c.amount for c in result.components] == [Decimal("400.00"), Decimal("250.00")]

    def test_percent_of_revenue(self):
        """10% of 2500.00 pays 250.00."""
        result = PayModeCalculator.calculate(
            PercentOfRevenue(Decimal("10")), metrics(miles=None, revenue="2500.00")
        )
        assert result.gross_pay == Decimal("250.00")
        assert result.components[0].description == "10% of $2500.00 revenue"

    def test_flat_daily_rate(self):
        result = PayModeCalculator.calculate(
            FlatDailyRate(Decimal("200")), metrics(miles=None, days=3)
        )
        assert result.gross_pay == Decimal("600.00")

    def test_zero_metrics_yield_zero_pay(self):
        """Zero miles or cubic feet are valid, not an error."""
        result = PayModeCalculator.calculate(
            PerMileAndCuft(Decimal("0.50"), Decimal("0.25")),
            metrics(miles="0", cubic_feet="0"),
        )
        assert result.gross_pay == Decimal("0.00")

    def test_per_mile_without_odometer_fails(self):
        with pytest.raises(MissingTripMetricError) as exc_info:
            PayModeCalculator.calculate(PerMile(Decimal("0.55")), metrics(miles=None))

        assert exc_info.value.field == "miles"
        assert exc_info.value.pay_mode == "per_mile"

    def test_per_cuft_ignores_missing_odometer(self):
        result = PayModeCalculator.calculate(
            PerCuft(Decimal("1")), metrics(miles=None, cubic_feet="10")
        )
        assert result.gross_pay == Decimal("10.00")


class TestRounding:
    """Rounding happens once, on the exact total."""

    def test_half_up(self):
        # 0.005 rounds up
        result = PayModeCalculator.calculate(
            PerMile(Decimal("0.015")), metrics(miles="1")
        )
        assert result.gross_pay == Decimal("0.02")

    def test_gross_pay_rounded_on_exact_sum(self):
        """Two components each ending in half a cent round once, not twice."""
        result = PayModeCalculator.calculate(
            PerMileAndCuft(Decimal("0.005"), Decimal("0.005")),
            metrics(miles="1", cubic_feet="1"),
        )

        # exact total 0.010; each component alone rounds to 0.01
        assert result.gross_pay == Decimal("0.01")
        assert sum(c.amount for c in result.components) == Decimal("0.02")
        assert result.rounding_adjustment == Decimal("-0.01")

    def test_outputs_have_two_decimal_places(self):
        result = PayModeCalculator.calculate(
            PerMile(Decimal("0.5537")), metrics(miles="1234.7")
        )
        assert result.gross_pay.as_tuple().exponent == -2
        assert result.gross_pay == Decimal("683.65")


class TestBuildPayMode:
    """Pay mode construction from raw driver fields."""

    def test_unused_rates_are_ignored(self):
        mode = build_pay_mode("per_mile", rate_per_mile="0.55", rate_per_cuft="garbage")
        assert mode == PerMile(Decimal("0.55"))

    def test_missing_rate_fails_with_field(self):
        with pytest.raises(MissingRateParameterError) as exc_info:
            build_pay_mode("per_mile_and_cuft", rate_per_mile="0.50")

        assert exc_info.value.field == "rate_per_cuft"
        assert exc_info.value.pay_mode == "per_mile_and_cuft"

    @pytest.mark.parametrize("value", ["", "  ", "abc", True, "NaN"])
    def test_non_numeric_rate_fails(self, value):
        with pytest.raises(MissingRateParameterError):
            build_pay_mode("flat_daily_rate", flat_daily_rate=value)

    def test_negative_rate_fails(self):
        with pytest.raises(InvalidRateParameterError) as exc_info:
            build_pay_mode("per_cuft", rate_per_cuft="-0.10")
        assert exc_info.value.field == "rate_per_cuft"

    @pytest.mark.parametrize("percent", ["150", "-5", "100.01"])
    def test_percent_out_of_range_rejected(self, percent):
        with pytest.raises(InvalidPercentError):
            build_pay_mode("percent_of_revenue", percent_of_revenue=percent)

    @pytest.mark.parametrize("percent", ["0", "100"])
    def test_percent_bounds_accepted(self, percent):
        mode = build_pay_mode("percent_of_revenue", percent_of_revenue=percent)
        assert mode == PercentOfRevenue(Decimal(percent))

    @pytest.mark.parametrize("tag", [None, "", "hourly", "PER_MILE"])
    def test_unknown_mode(self, tag):
        with pytest.raises(UnknownPayModeError):
            build_pay_mode(tag, rate_per_mile="1")

    def test_float_rates_keep_their_decimal_value(self):
        mode = build_pay_mode("per_mile", rate_per_mile=0.1)
        assert mode == PerMile(Decimal("0.1"))

    def test_resolve_from_driver_config(self):
        config = DriverPayConfig(
            driver_id=uuid4(), pay_mode="flat_daily_rate", flat_daily_rate="175.50"
        )
        assert resolve_pay_mode(config) == FlatDailyRate(Decimal("175.50"))

    def test_canonical_dict(self):
        mode = PerMileAndCuft(Decimal("0.50"), Decimal("0.25"))
        assert pay_mode_to_canonical_dict(mode) == {
            "pay_mode": "per_mile_and_cuft",
            "rate_per_mile": "0.50",
            "rate_per_cuft": "0.25",
        }

    def test_calculate_from_fields(self):
        result = PayModeCalculator.calculate_from_fields(
            "per_mile", metrics(miles="1000"), rate_per_mile="0.55"
        )
        assert result.gross_pay == Decimal("550.00")
