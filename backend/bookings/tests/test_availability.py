import dataclasses

import pytest

from bookings.models import Booking
from bookings.services.availability import calculate_availability, session_availability


def test_empty_session_has_all_spots():
    availability = calculate_availability(5, [])

    assert availability.capacity == 5
    assert availability.booked_count == 0
    assert availability.remaining_spots == 5
    assert availability.is_full is False
    assert availability.can_join_waitlist is False


def test_counts_iterable_of_bookings():
    availability = calculate_availability(3, iter([object(), object()]))

    assert availability.booked_count == 2
    assert availability.remaining_spots == 1


def test_full_session_offers_waitlist():
    availability = calculate_availability(2, 2)

    assert availability.remaining_spots == 0
    assert availability.is_full is True
    assert availability.can_join_waitlist is True


def test_overbooked_session_is_clamped_to_zero():
    availability = calculate_availability(2, 5)

    assert availability.remaining_spots == 0
    assert availability.booked_count == 5
    assert availability.is_full is True


def test_zero_capacity_is_always_full():
    assert calculate_availability(0, 0).is_full is True


def test_negative_capacity_is_rejected():
    with pytest.raises(ValueError):
        calculate_availability(-1, 0)


def test_result_is_immutable():
    availability = calculate_availability(1, 0)

    with pytest.raises(dataclasses.FrozenInstanceError):
        availability.remaining_spots = 10


@pytest.mark.django_db
def test_session_availability_counts_only_confirmed(make_session, make_user):
    session = make_session(capacity=3)
    Booking.objects.create(user=make_user("a@example.com"), session=session)
    Booking.objects.create(user=make_user("b@example.com"), session=session, status=Booking.CANCELLED)
    Booking.objects.create(user=make_user("c@example.com"), session=session, status=Booking.PENDING)

    availability = session_availability(session)

    assert availability.booked_count == 1
    assert availability.remaining_spots == 2
