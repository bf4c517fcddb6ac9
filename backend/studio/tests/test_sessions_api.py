from datetime import timedelta

import pytest
from django.utils import timezone

from bookings.models import Booking
from studio.models import ClassSession


@pytest.mark.django_db
def test_public_schedule_lists_upcoming_sessions_with_counts(api_client, make_session, member):
    make_session(starts_in=-timedelta(hours=3))
    upcoming = make_session(capacity=2)
    Booking.objects.create(user=member, session=upcoming)

    response = api_client.get("/api/sessions/")

    assert response.status_code == 200
    rows = response.json()
    assert [row["id"] for row in rows] == [upcoming.pk]
    row = rows[0]
    assert row["booked_count"] == 1
    assert row["remaining_spots"] == 1
    assert row["is_full"] is False
    assert row["class_type"]["name"] == "Vinyasa Flow"
    assert row["instructor"]["name"] == "Maya Chen"


@pytest.mark.django_db
def test_cancelled_bookings_do_not_count_toward_capacity(api_client, session, member):
    Booking.objects.create(user=member, session=session, status=Booking.CANCELLED)

    response = api_client.get(f"/api/sessions/{session.pk}/")

    assert response.status_code == 200
    assert response.json()["booked_count"] == 0


@pytest.mark.django_db
def test_available_only_hides_full_sessions(api_client, make_session, member):
    full = make_session(capacity=1)
    open_session = make_session(starts_in=timedelta(days=3), capacity=5)
    Booking.objects.create(user=member, session=full)

    response = api_client.get("/api/sessions/", {"available_only": "true"})

    assert [row["id"] for row in response.json()] == [open_session.pk]


@pytest.mark.django_db
def test_schedule_filters_by_date_and_location(api_client, make_session):
    target = make_session(starts_in=timedelta(days=4), location="Rooftop Deck")
    make_session(starts_in=timedelta(days=5), location="Studio B")
    day = timezone.localtime(target.starts_at).date().isoformat()

    by_date = api_client.get("/api/sessions/", {"date": day})
    by_location = api_client.get("/api/sessions/", {"location": "rooftop"})

    assert target.pk in [row["id"] for row in by_date.json()]
    assert [row["id"] for row in by_location.json()] == [target.pk]


@pytest.mark.django_db
def test_session_availability_endpoint(api_client, make_session, member, other_member):
    session = make_session(capacity=2)
    Booking.objects.create(user=member, session=session)
    Booking.objects.create(user=other_member, session=session)

    response = api_client.get(f"/api/sessions/{session.pk}/availability/")

    assert response.status_code == 200
    assert response.json() == {
        "session_id": session.pk,
        "capacity": 2,
        "booked_count": 2,
        "remaining_spots": 0,
        "is_full": True,
        "can_join_waitlist": True,
    }


@pytest.mark.django_db
def test_session_availability_missing_session(api_client):
    response = api_client.get("/api/sessions/999999/availability/")

    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"


@pytest.mark.django_db
def test_schedule_and_availability_agree_on_overbooked_session(api_client, make_session, member, other_member):
    session = make_session(capacity=2)
    Booking.objects.create(user=member, session=session)
    Booking.objects.create(user=other_member, session=session)
    ClassSession.objects.filter(pk=session.pk).update(capacity=1)

    row = api_client.get("/api/sessions/").json()[0]
    availability = api_client.get(f"/api/sessions/{session.pk}/availability/").json()

    assert row["booked_count"] == availability["booked_count"] == 2
    assert row["remaining_spots"] == availability["remaining_spots"] == 0
    assert row["is_full"] is availability["is_full"] is True
