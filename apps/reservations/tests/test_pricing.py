"""Tests for the pricing calculator and its modifiers."""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from apps.reservations.domain.pricing import (
    Adjustment,
    PricingCalculator,
    build_calculator,
    long_duration_discount,
    weekend_surcharge,
)
from shared.domain.exceptions import InvalidVehicle
from shared.domain.value_objects import Interval, Money


@dataclass
class FakeVehicle:
    price_per_day: Decimal
    currency: str = "USD"
    id: object = None

    def __post_init__(self):
        self.id = self.id or uuid4()


# 2025-06-02 is a Monday
WEEKDAYS = Interval(date(2025, 6, 2), date(2025, 6, 5))


def test_base_price_is_daily_rate_times_days():
    quote = PricingCalculator().quote(FakeVehicle(Decimal("50.00")), WEEKDAYS)

    assert quote.days == 3
    assert quote.base_price == Money("150.00")
    assert quote.total == Money("150.00")
    assert quote.adjustments == ()


def test_quote_is_deterministic():
    calculator = PricingCalculator([weekend_surcharge(20), long_duration_discount(7, 10)])
    vehicle = FakeVehicle(Decimal("42.50"))
    interval = Interval(date(2025, 6, 1), date(2025, 6, 15))

    assert calculator.quote(vehicle, interval) == calculator.quote(vehicle, interval)


@pytest.mark.parametrize("price", [Decimal("0"), Decimal("-5"), None, "abc"])
def test_non_positive_price_is_invalid(price):
    with pytest.raises(InvalidVehicle):
        PricingCalculator().quote(FakeVehicle(price), WEEKDAYS)


def test_long_duration_discount_applies_from_min_days():
    calculator = PricingCalculator([long_duration_discount(min_days=7, percent=10)])
    vehicle = FakeVehicle(Decimal("100.00"))

    short = calculator.quote(vehicle, Interval(date(2025, 6, 2), date(2025, 6, 8)))
    week = calculator.quote(vehicle, Interval(date(2025, 6, 2), date(2025, 6, 9)))

    assert short.total == Money("600.00")
    assert week.base_price == Money("700.00")
    assert week.adjustments_total == Decimal("-70.00")
    assert week.total == Money("630.00")


def test_weekend_surcharge_counts_saturdays_and_sundays():
    calculator = PricingCalculator([weekend_surcharge(percent=20)])
    # Fri, Sat, Sun, Mon
    quote = calculator.quote(FakeVehicle(Decimal("50.00")), Interval(date(2025, 6, 6), date(2025, 6, 10)))

    assert quote.base_price == Money("200.00")
    assert quote.adjustments == (Adjustment("weekend_surcharge", Decimal("20.00")),)
    assert quote.total == Money("220.00")


def test_modifiers_see_base_price_not_running_total():
    calculator = PricingCalculator([weekend_surcharge(20), long_duration_discount(7, 10)])
    # Mon Jun 2 to Mon Jun 9: one Saturday and one Sunday
    quote = calculator.quote(FakeVehicle(Decimal("100.00")), Interval(date(2025, 6, 2), date(2025, 6, 9)))

    assert [a.amount for a in quote.adjustments] == [Decimal("40.00"), Decimal("-70.00")]
    assert quote.total == Money("670.00")


def test_total_is_clamped_at_zero():
    def wipe_out(interval, base_price):
        return Adjustment("voucher", -(base_price.amount * 2))

    quote = PricingCalculator([wipe_out]).quote(FakeVehicle(Decimal("10.00")), WEEKDAYS)

    assert quote.total == Money("0.00")


def test_applied_adjustments_are_logged(caplog):
    calculator = PricingCalculator([long_duration_discount(min_days=1, percent=5)])

    with caplog.at_level("INFO", logger="apps.reservations.domain.pricing"):
        calculator.quote(FakeVehicle(Decimal("20.00")), WEEKDAYS)

    assert "long_duration_discount_1d" in caplog.text


def test_build_calculator_from_settings_style_config():
    calculator = build_calculator([
        {"name": "weekend_surcharge", "percent": 25},
        {"name": "long_duration_discount", "min_days": 3, "percent": 50},
    ])

    assert [m.__name__ for m in calculator.modifiers] == ["weekend_surcharge", "long_duration_discount"]
    assert calculator.quote(FakeVehicle(Decimal("10.00")), WEEKDAYS).total == Money("15.00")

    with pytest.raises(ValueError):
        build_calculator([{"name": "surge"}])


def test_quote_breakdown_is_json_ready():
    quote = PricingCalculator().quote(FakeVehicle(Decimal("50.00"), "EUR"), WEEKDAYS)

    assert quote.to_dict() == {
        "start": "2025-06-02",
        "end": "2025-06-05",
        "days": 3,
        "price_per_day": "50.00",
        "base_price": "150.00",
        "adjustments": [],
        "total": "150.00",
        "currency": "EUR",
    }
