from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Union

from bookings.models import Booking


@dataclass(frozen=True)
class Availability:
    capacity: int
    booked_count: int
    remaining_spots: int
    is_full: bool
    can_join_waitlist: bool


def calculate_availability(capacity: int, confirmed_bookings: Union[int, Iterable]) -> Availability:
    """
    Derive remaining spots for a session from its capacity and confirmed bookings.

    ``confirmed_bookings`` may be a count or any iterable of CONFIRMED bookings;
    callers are responsible for passing only confirmed ones. Overbooked sessions
    report zero remaining spots rather than a negative number.
    """

    if capacity < 0:
        raise ValueError("capacity must be non-negative")

    if isinstance(confirmed_bookings, int):
        booked = confirmed_bookings
    else:
        booked = sum(1 for _ in confirmed_bookings)
    if booked < 0:
        raise ValueError("confirmed booking count must be non-negative")

    remaining = max(0, capacity - booked)
    is_full = remaining == 0
    return Availability(
        capacity=capacity,
        booked_count=booked,
        remaining_spots=remaining,
        is_full=is_full,
        can_join_waitlist=is_full,
    )


def confirmed_count(session) -> int:
    return Booking.objects.filter(session=session, status=Booking.CONFIRMED).count()


def session_availability(session) -> Availability:
    return calculate_availability(session.capacity, confirmed_count(session))
