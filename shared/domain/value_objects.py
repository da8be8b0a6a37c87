"""
Common Value Objects

Value objects used across the engine:
- Money: Represents monetary amounts with currency
- Interval: Half-open calendar-day range [start, end)
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from shared.domain.base import ValueObject
from shared.domain.exceptions import InvalidInterval

CENT = Decimal('0.01')
SUPPORTED_CURRENCIES = frozenset({'USD', 'EUR', 'GBP', 'KZT', 'RUB'})


def to_decimal(value) -> Decimal:
    """Convert int/str/float/Decimal to Decimal without float artifacts"""
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"Invalid amount: {value!r}") from exc


@dataclass(frozen=True)
class Money(ValueObject):
    """
    Money value object

    Represents a non-negative monetary amount with currency.
    Amounts are quantised to cents on construction.
    """
    amount: Decimal
    currency: str = 'USD'

    def __post_init__(self):
        amount = to_decimal(self.amount).quantize(CENT, rounding=ROUND_HALF_UP)
        object.__setattr__(self, 'amount', amount)
        if amount < 0:
            raise ValueError("Amount cannot be negative")
        if not self.currency:
            raise ValueError("Currency is required")
        if self.currency not in SUPPORTED_CURRENCIES:
            raise ValueError(f"Unsupported currency: {self.currency}")

    @classmethod
    def zero(cls, currency: str = 'USD') -> 'Money':
        return cls(Decimal('0'), currency)

    def __add__(self, other: 'Money') -> 'Money':
        """Add two money objects"""
        if not isinstance(other, Money):
            raise TypeError("Can only add Money to Money")
        if self.currency != other.currency:
            raise ValueError(f"Cannot add different currencies: {self.currency} and {other.currency}")
        return Money(self.amount + other.amount, self.currency)

    def __sub__(self, other: 'Money') -> 'Money':
        """Subtract two money objects"""
        if not isinstance(other, Money):
            raise TypeError("Can only subtract Money from Money")
        if self.currency != other.currency:
            raise ValueError(f"Cannot subtract different currencies: {self.currency} and {other.currency}")
        return Money(self.amount - other.amount, self.currency)

    def __mul__(self, factor) -> 'Money':
        """Multiply money by a factor"""
        if isinstance(factor, bool) or not isinstance(factor, (int, float, Decimal)):
            raise TypeError("Can only multiply Money by number")
        return Money(self.amount * to_decimal(factor), self.currency)

    __rmul__ = __mul__

    def __str__(self):
        return f"{self.amount:,.2f} {self.currency}"

    def __repr__(self):
        return f"Money({self.amount}, '{self.currency}')"


def to_calendar_date(value) -> date:
    """
    Normalise a bound to a calendar date

    Accepts date, datetime (time part dropped) and ISO 8601 strings.
    Raises InvalidInterval for anything else.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            if len(text) > 10:
                return datetime.fromisoformat(text.replace('Z', '+00:00')).date()
            return date.fromisoformat(text)
        except ValueError as exc:
            raise InvalidInterval(f"Malformed date: {value!r}") from exc
    raise InvalidInterval(f"Malformed date: {value!r}")


@dataclass(frozen=True, order=True)
class Interval(ValueObject):
    """
    Interval value object

    Represents a range from start (inclusive) to end (exclusive) on
    calendar-day granularity. Renters cannot book partial days, so any
    time component is normalised away.
    """
    start: date
    end: date

    def __post_init__(self):
        object.__setattr__(self, 'start', to_calendar_date(self.start))
        object.__setattr__(self, 'end', to_calendar_date(self.end))
        if self.start >= self.end:
            raise InvalidInterval(
                f"Start date ({self.start}) must be before end date ({self.end})"
            )

    def overlaps_with(self, other: 'Interval') -> bool:
        """
        Check if this interval overlaps with another

        End is exclusive, so adjacent intervals don't overlap:
            - [1, 4) overlaps with [3, 5) -> True
            - [1, 4) overlaps with [4, 6) -> False (adjacent)
        """
        if not isinstance(other, Interval):
            raise TypeError("Can only check overlap with another Interval")
        return self.start < other.end and other.start < self.end

    def is_adjacent_to(self, other: 'Interval') -> bool:
        return self.end == other.start or other.end == self.start

    def contains(self, point) -> bool:
        """Start is inclusive, end is exclusive"""
        return self.start <= to_calendar_date(point) < self.end

    @property
    def duration_days(self) -> int:
        return (self.end - self.start).days

    def __len__(self) -> int:
        return self.duration_days

    def __str__(self):
        return f"[{self.start.isoformat()}, {self.end.isoformat()})"

    def __repr__(self):
        return f"Interval({self.start}, {self.end})"


def overlaps(a: Interval, b: Interval) -> bool:
    return a.overlaps_with(b)


def contains(a: Interval, point) -> bool:
    return a.contains(point)


def duration_days(a: Interval) -> int:
    return a.duration_days
