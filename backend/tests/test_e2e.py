from datetime import timedelta

import pytest
from django.core import mail
from django.utils import timezone
from rest_framework.test import APIClient

from accounts.models import User
from bookings.models import Booking
from payments.models import Pass, Payment


@pytest.mark.django_db(transaction=True)
def test_end_to_end_booking_and_payment_flow(settings):
    settings.STRIPE_USE_STUB = True
    settings.FRONTEND_URL = "https://studio.test"

    # Admin schedules a class
    admin = User.objects.create_user(
        username="admin@studio.test", email="admin@studio.test", password="pass12345", role=User.ADMIN
    )
    admin_client = APIClient()
    admin_client.force_authenticate(user=admin)
    class_type = admin_client.post(
        "/api/admin/class-types/",
        {"name": "Sunrise Flow", "duration_minutes": 45, "default_capacity": 8},
        format="json",
    )
    assert class_type.status_code == 201
    instructor = admin_client.post("/api/admin/instructors/", {"name": "Ravi Rao"}, format="json")
    assert instructor.status_code == 201
    starts_at = (timezone.now() + timedelta(days=2)).replace(minute=0, second=0, microsecond=0)
    session_response = admin_client.post(
        "/api/admin/sessions/",
        {
            "class_type": class_type.data["id"],
            "instructor": instructor.data["id"],
            "starts_at": starts_at.isoformat(),
            "location": "Studio A",
        },
        format="json",
    )
    assert session_response.status_code == 201
    session_id = session_response.data["id"]
    assert session_response.data["capacity"] == 8

    # Member registers and finds the class on the public schedule
    client = APIClient()
    register_response = client.post(
        "/api/auth/register/",
        {"email": "yogi@example.com", "password": "pass12345", "name": "Yara Yogi"},
        format="json",
    )
    assert register_response.status_code == 201
    schedule = client.get("/api/sessions/")
    assert [item["id"] for item in schedule.data] == [session_id]
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {register_response.data['access']}")

    # Book, then pay through the stub checkout
    booking_response = client.post("/api/bookings/", {"session_id": session_id}, format="json")
    assert booking_response.status_code == 201
    booking_id = booking_response.data["id"]
    assert [message.subject for message in mail.outbox] == ["Booking confirmed: Sunrise Flow"]

    checkout = client.post(f"/api/bookings/{booking_id}/checkout/", {"price_type": "PACK_5"}, format="json")
    assert checkout.status_code == 200
    confirm = client.post(
        "/api/payments/mock/confirm/",
        {
            "booking_id": booking_id,
            "session_id": checkout.data["id"],
            "amount": checkout.data["amount_cents"],
            "price_type": "PACK_5",
            "outcome": "succeeded",
        },
        format="json",
    )
    assert confirm.status_code == 200
    assert confirm.data["booking"]["is_paid"] is True

    booking = Booking.objects.get(pk=booking_id)
    assert booking.status == Booking.CONFIRMED
    assert booking.payment.external_session_id == checkout.data["id"]
    assert Payment.objects.count() == 1

    # The pack purchase leaves four credits
    passes = client.get("/api/passes/")
    assert [(item["pass_type"], item["credits_remaining"]) for item in passes.data] == [(Pass.PACK_5, 4)]

    availability = client.get(f"/api/sessions/{session_id}/availability/")
    assert availability.data["remaining_spots"] == 7

    # Cancelling frees the spot again
    assert client.delete(f"/api/bookings/{booking_id}/").status_code == 204
    availability = client.get(f"/api/sessions/{session_id}/availability/")
    assert availability.data["remaining_spots"] == 8
