"""
Pricing Calculator

Derives the total price of a vehicle over an interval:

    base = price_per_day * duration_days(interval)
    total = max(base + sum(adjustments), 0)

The calculator is pure. It reads no clock and holds no state beyond
its ordered list of modifiers, so the snapshot stored on a reservation
can be reproduced later for auditing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Iterable, Optional, Sequence, Tuple

from shared.domain.exceptions import InvalidVehicle
from shared.domain.value_objects import CENT, Interval, Money, to_decimal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Adjustment:
    """Signed price change produced by a modifier"""
    label: str
    amount: Decimal

    def __post_init__(self):
        object.__setattr__(
            self, 'amount', to_decimal(self.amount).quantize(CENT, rounding=ROUND_HALF_UP)
        )

    def to_dict(self) -> dict:
        return {'label': self.label, 'amount': str(self.amount)}


Modifier = Callable[[Interval, Money], Optional[Adjustment]]


@dataclass(frozen=True)
class Quote:
    """Price snapshot for one vehicle over one interval"""
    interval: Interval
    price_per_day: Money
    base_price: Money
    adjustments: Tuple[Adjustment, ...] = field(default_factory=tuple)

    @property
    def days(self) -> int:
        return self.interval.duration_days

    @property
    def currency(self) -> str:
        return self.base_price.currency

    @property
    def adjustments_total(self) -> Decimal:
        return sum((a.amount for a in self.adjustments), Decimal('0.00'))

    @property
    def total(self) -> Money:
        amount = self.base_price.amount + self.adjustments_total
        return Money(max(amount, Decimal('0')), self.currency)

    def to_dict(self) -> dict:
        return {
            'start': self.interval.start.isoformat(),
            'end': self.interval.end.isoformat(),
            'days': self.days,
            'price_per_day': str(self.price_per_day.amount),
            'base_price': str(self.base_price.amount),
            'adjustments': [a.to_dict() for a in self.adjustments],
            'total': str(self.total.amount),
            'currency': self.currency,
        }


class PricingCalculator:
    """
    Quote calculator with pluggable modifiers

    Modifiers run in order, each receiving the interval and the base
    price (never the running total), and may return None to skip.
    """

    def __init__(self, modifiers: Sequence[Modifier] = ()):
        self._modifiers: Tuple[Modifier, ...] = tuple(modifiers)

    @property
    def modifiers(self) -> Tuple[Modifier, ...]:
        return self._modifiers

    def quote(self, vehicle, interval: Interval) -> Quote:
        """
        Price `vehicle` (anything with price_per_day and currency) over `interval`

        Raises InvalidVehicle if the price per day is missing or not positive.
        """
        raw_price = getattr(vehicle, 'price_per_day', None)
        try:
            price = to_decimal(raw_price)
        except ValueError:
            price = None
        if price is None or not price.is_finite() or price <= 0:
            raise InvalidVehicle(
                f"Vehicle {getattr(vehicle, 'id', '?')} has invalid price per day: {raw_price!r}",
                vehicle_id=str(getattr(vehicle, 'id', '')) or None,
            )

        currency = getattr(vehicle, 'currency', None) or 'USD'
        price_per_day = Money(price, currency)
        base_price = price_per_day * interval.duration_days

        adjustments = []
        for modifier in self._modifiers:
            adjustment = modifier(interval, base_price)
            if adjustment is None or adjustment.amount == 0:
                continue
            logger.info(
                f"Pricing adjustment {adjustment.label}: {adjustment.amount} {currency} "
                f"for vehicle {getattr(vehicle, 'id', '?')} over {interval}"
            )
            adjustments.append(adjustment)

        return Quote(
            interval=interval,
            price_per_day=price_per_day,
            base_price=base_price,
            adjustments=tuple(adjustments),
        )


# ===== Modifiers =====

def long_duration_discount(min_days: int = 7, percent=10) -> Modifier:
    """Percentage off the base price for rentals of at least `min_days`"""
    rate = to_decimal(percent) / Decimal('100')

    def modifier(interval: Interval, base_price: Money) -> Adjustment | None:
        if interval.duration_days < min_days:
            return None
        return Adjustment(f'long_duration_discount_{min_days}d', -(base_price.amount * rate))

    modifier.__name__ = 'long_duration_discount'
    return modifier


def weekend_surcharge(percent=20) -> Modifier:
    """Percentage on top of the daily rate for each Saturday and Sunday"""
    rate = to_decimal(percent) / Decimal('100')

    def modifier(interval: Interval, base_price: Money) -> Adjustment | None:
        weekend_days = sum(
            1 for offset in range(interval.duration_days)
            if (interval.start + timedelta(days=offset)).weekday() >= 5
        )
        if not weekend_days:
            return None
        daily = base_price.amount / interval.duration_days
        return Adjustment('weekend_surcharge', daily * rate * weekend_days)

    modifier.__name__ = 'weekend_surcharge'
    return modifier


MODIFIERS = {
    'long_duration_discount': long_duration_discount,
    'weekend_surcharge': weekend_surcharge,
}


def build_calculator(config: Iterable[dict] = ()) -> PricingCalculator:
    """
    Build a calculator from settings-style modifier entries

        [{"name": "long_duration_discount", "min_days": 7, "percent": 10}]
    """
    modifiers = []
    for entry in config:
        options = dict(entry)
        name = options.pop('name')
        try:
            factory = MODIFIERS[name]
        except KeyError:
            raise ValueError(f"Unknown pricing modifier: {name}") from None
        modifiers.append(factory(**options))
    return PricingCalculator(modifiers)
