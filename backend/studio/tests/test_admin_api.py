from datetime import timedelta

import pytest
from django.db import IntegrityError, transaction
from django.utils import timezone

from bookings.models import Booking
from studio.models import ClassSession, ClassType, Instructor


def _future(days=3, hour=9):
    return (timezone.now() + timedelta(days=days)).replace(hour=hour, minute=0, second=0, microsecond=0)


@pytest.fixture
def admin_client(client_for, studio_admin):
    return client_for(studio_admin)


@pytest.mark.django_db
def test_admin_endpoints_reject_members(client_for, member):
    response = client_for(member).get("/api/admin/sessions/")

    assert response.status_code == 403


@pytest.mark.django_db
def test_create_session_defaults_capacity_and_end_from_class_type(admin_client, class_type, instructor):
    starts_at = _future()

    response = admin_client.post(
        "/api/admin/sessions/",
        {"class_type": class_type.pk, "instructor": instructor.pk, "starts_at": starts_at.isoformat()},
        format="json",
    )

    assert response.status_code == 201, response.json()
    session = ClassSession.objects.get(pk=response.json()["id"])
    assert session.capacity == class_type.default_capacity
    assert session.ends_at == starts_at + timedelta(minutes=class_type.duration_minutes)


@pytest.mark.django_db
def test_create_session_in_the_past_is_rejected(admin_client, class_type, instructor):
    response = admin_client.post(
        "/api/admin/sessions/",
        {
            "class_type": class_type.pk,
            "instructor": instructor.pk,
            "starts_at": (timezone.now() - timedelta(hours=1)).isoformat(),
        },
        format="json",
    )

    assert response.status_code == 400
    assert "starts_at" in response.json()["errors"]


@pytest.mark.django_db
@pytest.mark.parametrize(
    "minutes, capacity, field",
    [
        (10, 10, "ends_at"),
        (240, 10, "ends_at"),
        (60, 0, "capacity"),
        (60, 51, "capacity"),
    ],
)
def test_session_length_and_capacity_bounds(admin_client, class_type, instructor, minutes, capacity, field):
    starts_at = _future()

    response = admin_client.post(
        "/api/admin/sessions/",
        {
            "class_type": class_type.pk,
            "instructor": instructor.pk,
            "starts_at": starts_at.isoformat(),
            "ends_at": (starts_at + timedelta(minutes=minutes)).isoformat(),
            "capacity": capacity,
        },
        format="json",
    )

    assert response.status_code == 400
    assert field in response.json()["errors"]


@pytest.mark.django_db
def test_overlapping_instructor_session_is_a_conflict(admin_client, class_type, instructor):
    starts_at = _future()
    ClassSession.objects.create(
        class_type=class_type,
        instructor=instructor,
        starts_at=starts_at,
        ends_at=starts_at + timedelta(hours=1),
        capacity=10,
    )

    response = admin_client.post(
        "/api/admin/sessions/",
        {
            "class_type": class_type.pk,
            "instructor": instructor.pk,
            "starts_at": (starts_at + timedelta(minutes=30)).isoformat(),
        },
        format="json",
    )

    assert response.status_code == 409
    body = response.json()
    assert body["code"] == "CONFLICT"
    assert "INSTRUCTOR_CONFLICT" in body["detail"]


@pytest.mark.django_db
def test_capacity_cannot_drop_below_confirmed_bookings(admin_client, make_session, member, other_member):
    session = make_session(capacity=5)
    Booking.objects.create(user=member, session=session)
    Booking.objects.create(user=other_member, session=session)

    response = admin_client.patch(f"/api/admin/sessions/{session.pk}/", {"capacity": 1}, format="json")

    assert response.status_code == 400
    assert "capacity" in response.json()["errors"]

    ok = admin_client.patch(f"/api/admin/sessions/{session.pk}/", {"capacity": 2}, format="json")
    assert ok.status_code == 200
    assert ok.json()["booked_count"] == 2


@pytest.mark.django_db
def test_started_session_cannot_be_edited(admin_client, make_session):
    session = make_session(starts_in=-timedelta(minutes=10))

    response = admin_client.patch(f"/api/admin/sessions/{session.pk}/", {"location": "Studio B"}, format="json")

    assert response.status_code == 400


@pytest.mark.django_db
def test_session_with_confirmed_bookings_cannot_be_deleted(admin_client, session, member):
    Booking.objects.create(user=member, session=session)

    response = admin_client.delete(f"/api/admin/sessions/{session.pk}/")

    assert response.status_code == 409
    assert response.json()["code"] == "CONFLICT"
    assert ClassSession.objects.filter(pk=session.pk).exists()


@pytest.mark.django_db
def test_deleting_session_removes_cancelled_bookings(admin_client, session, member):
    Booking.objects.create(user=member, session=session, status=Booking.CANCELLED)

    response = admin_client.delete(f"/api/admin/sessions/{session.pk}/")

    assert response.status_code == 204
    assert not Booking.objects.exists()


@pytest.mark.django_db
def test_class_type_in_use_cannot_be_deleted(admin_client, session, class_type):
    response = admin_client.delete(f"/api/admin/class-types/{class_type.pk}/")

    assert response.status_code == 409
    assert "Remove those sessions first" in response.json()["detail"]
    assert ClassType.objects.filter(pk=class_type.pk).exists()


@pytest.mark.django_db
def test_unused_instructor_can_be_deleted(admin_client):
    spare = Instructor.objects.create(name="Cover Instructor")

    response = admin_client.delete(f"/api/admin/instructors/{spare.pk}/")

    assert response.status_code == 204


@pytest.mark.django_db
def test_class_type_detail_lists_sessions_with_counts(admin_client, session, class_type, member):
    Booking.objects.create(user=member, session=session)

    response = admin_client.get(f"/api/admin/class-types/{class_type.pk}/")

    assert response.status_code == 200
    sessions = response.json()["sessions"]
    assert [(row["id"], row["booked_count"]) for row in sessions] == [(session.pk, 1)]


@pytest.mark.django_db
def test_database_rejects_session_ending_before_it_starts(class_type, instructor):
    starts_at = _future()
    session = ClassSession(
        class_type=class_type,
        instructor=instructor,
        starts_at=starts_at,
        ends_at=starts_at - timedelta(minutes=5),
        capacity=5,
    )

    with pytest.raises(IntegrityError), transaction.atomic():
        # Bypass full_clean() to reach the check constraint.
        super(ClassSession, session).save()
