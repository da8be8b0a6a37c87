"""Tests for Interval and Money."""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from shared.domain.exceptions import InvalidInterval
from shared.domain.value_objects import Interval, Money, contains, duration_days, overlaps


def d(day: int, month: int = 6) -> date:
    return date(2025, month, day)


def test_interval_is_half_open():
    interval = Interval(d(1), d(4))

    assert interval.contains(d(1))
    assert interval.contains(d(3))
    assert not interval.contains(d(4))
    assert duration_days(interval) == 3
    assert len(interval) == 3


def test_adjacent_intervals_do_not_overlap():
    first = Interval(d(1), d(4))
    second = Interval(d(4), d(6))

    assert not overlaps(first, second)
    assert not overlaps(second, first)
    assert first.is_adjacent_to(second)


@pytest.mark.parametrize(
    "other, expected",
    [
        (Interval(d(3), d(5)), True),
        (Interval(d(2), d(3)), True),
        (Interval(date(2025, 5, 20), d(2)), True),
        (Interval(date(2025, 5, 20), d(1)), False),
        (Interval(d(10), d(12)), False),
    ],
)
def test_overlap_is_symmetric(other, expected):
    interval = Interval(d(1), d(4))

    assert overlaps(interval, other) is expected
    assert overlaps(other, interval) is expected


@pytest.mark.parametrize(
    "start, end",
    [
        (d(4), d(4)),
        (d(5), d(4)),
        (None, d(4)),
        (d(1), "not-a-date"),
        (d(1), 20250604),
    ],
)
def test_invalid_interval_is_rejected(start, end):
    with pytest.raises(InvalidInterval):
        Interval(start, end)


def test_datetime_and_string_bounds_are_normalised_to_days():
    interval = Interval(datetime(2025, 6, 1, 18, 30, tzinfo=timezone.utc), "2025-06-04")

    assert interval == Interval(d(1), d(4))
    assert Interval("2025-06-01T10:00:00Z", "2025-06-02T00:00:00Z").duration_days == 1


def test_same_day_datetimes_make_an_empty_interval():
    with pytest.raises(InvalidInterval):
        Interval(datetime(2025, 6, 1, 8, 0), datetime(2025, 6, 1, 20, 0))


def test_contains_accepts_datetime_points():
    interval = Interval(d(1), d(4))

    assert contains(interval, datetime(2025, 6, 3, 23, 59))
    assert not contains(interval, datetime(2025, 6, 4, 0, 0))


def test_intervals_sort_by_start_then_end():
    intervals = [Interval(d(5), d(7)), Interval(d(1), d(3)), Interval(d(1), d(2))]

    assert sorted(intervals) == [Interval(d(1), d(2)), Interval(d(1), d(3)), Interval(d(5), d(7))]
    assert str(Interval(d(1), d(3))) == "[2025-06-01, 2025-06-03)"


def test_money_arithmetic_keeps_cents():
    price = Money("49.995")

    assert price.amount == Decimal("50.00")
    assert (price * 3).amount == Decimal("150.00")
    assert (price + Money("0.50")).amount == Decimal("50.50")
    assert (price - Money("10")).amount == Decimal("40.00")


def test_money_rejects_negative_and_mixed_currencies():
    with pytest.raises(ValueError):
        Money("-1")
    with pytest.raises(ValueError):
        Money("1", "USD") + Money("1", "EUR")
    with pytest.raises(ValueError):
        Money("1", "XXX")
