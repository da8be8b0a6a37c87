"""
Domain Errors

Error taxonomy shared by the reservation engine:
- InvalidInterval: malformed or empty date range
- InvalidVehicle: bad pricing config or inactive vehicle
- Conflict: requested interval overlaps an existing hold (recoverable)
- InvalidTransition: reservation state machine misuse
- NotFound: unknown vehicle or reservation id
- InvalidLocation: coordinates out of range in a position report

None of these are fatal to the process. The HTTP layer maps them to
responses in shared.infrastructure.exception_handler.
"""

from __future__ import annotations

from typing import Any


class DomainError(Exception):
    """Base class for all engine errors"""

    code = 'domain_error'

    def __init__(self, message: str = '', **context: Any):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__
        self.context = context

    def to_dict(self) -> dict:
        payload = {'detail': self.message, 'code': self.code}
        payload.update({k: v for k, v in self.context.items() if v is not None})
        return payload


class InvalidInterval(DomainError, ValueError):
    code = 'invalid_interval'


class InvalidVehicle(DomainError, ValueError):
    code = 'invalid_vehicle'


class Conflict(DomainError):
    """
    The requested interval overlaps an interval already held.

    Carries the conflicting interval and the reservation holding it so the
    caller can pick different dates.
    """

    code = 'conflict'

    def __init__(self, message: str = '', *, interval=None, reservation_id=None):
        super().__init__(
            message or f"Interval overlaps existing hold {interval}",
            conflict=_interval_payload(interval),
            reservation_id=str(reservation_id) if reservation_id else None,
        )
        self.interval = interval
        self.reservation_id = reservation_id


class InvalidTransition(DomainError):
    code = 'invalid_transition'


class CancellationNotAllowed(InvalidTransition):
    """Raised by a cancellation policy before the cancel transition"""

    code = 'cancellation_not_allowed'


class NotFound(DomainError, LookupError):
    code = 'not_found'


class InvalidLocation(DomainError, ValueError):
    code = 'invalid_location'


def _interval_payload(interval) -> dict | None:
    if interval is None:
        return None
    return {
        'start': interval.start.isoformat(),
        'end': interval.end.isoformat(),
    }
