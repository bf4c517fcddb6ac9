
import pytest
import stripe

from bookings.models import Booking
from payments.models import Pass, Payment


@pytest.fixture
def member_client(client_for, member):
    return client_for(member)


@pytest.mark.django_db
def test_booking_requires_authentication(api_client, session):
    response = api_client.post("/api/bookings/", {"session_id": session.pk}, format="json")

    assert response.status_code == 401


@pytest.mark.django_db
def test_create_booking_returns_201_with_session_counts(member_client, session):
    response = member_client.post("/api/bookings/", {"session_id": session.pk}, format="json")

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == Booking.CONFIRMED
    assert body["is_paid"] is False
    assert body["session"]["id"] == session.pk
    assert body["session"]["booked_count"] == 1


@pytest.mark.django_db
def test_create_booking_error_codes_are_distinguishable(client_for, member, other_member, make_session):
    session = make_session(capacity=1)
    client_for(member).post("/api/bookings/", {"session_id": session.pk}, format="json")

    duplicate = client_for(member).post("/api/bookings/", {"session_id": session.pk}, format="json")
    full = client_for(other_member).post("/api/bookings/", {"session_id": session.pk}, format="json")
    missing = client_for(member).post("/api/bookings/", {"session_id": 999999}, format="json")
    malformed = client_for(member).post("/api/bookings/", {}, format="json")

    assert (duplicate.status_code, duplicate.json()["code"]) == (409, "CONFLICT")
    assert (full.status_code, full.json()["code"]) == (409, "CAPACITY_EXCEEDED")
    assert (missing.status_code, missing.json()["code"]) == (404, "NOT_FOUND")
    assert (malformed.status_code, malformed.json()["code"]) == (400, "VALIDATION_ERROR")


@pytest.mark.django_db
def test_list_returns_only_my_bookings(member_client, make_session, member, other_member):
    mine = Booking.objects.create(user=member, session=make_session())
    Booking.objects.create(user=other_member, session=make_session())

    response = member_client.get("/api/bookings/")

    assert response.status_code == 200
    assert [row["id"] for row in response.json()] == [mine.pk]


@pytest.mark.django_db
def test_retrieve_other_users_booking_is_forbidden(client_for, session, member, other_member):
    booking = Booking.objects.create(user=member, session=session)

    response = client_for(other_member).get(f"/api/bookings/{booking.pk}/")

    assert response.status_code == 403
    assert response.json()["code"] == "FORBIDDEN"


@pytest.mark.django_db
def test_delete_cancels_and_is_idempotent(member_client, session, member):
    booking = Booking.objects.create(user=member, session=session)

    first = member_client.delete(f"/api/bookings/{booking.pk}/")
    second = member_client.delete(f"/api/bookings/{booking.pk}/")

    assert first.status_code == 204
    assert second.status_code == 204
    booking.refresh_from_db()
    assert booking.status == Booking.CANCELLED


@pytest.mark.django_db
def test_patch_cannot_revive_cancelled_booking(member_client, session, member):
    booking = Booking.objects.create(user=member, session=session, status=Booking.CANCELLED)

    response = member_client.patch(f"/api/bookings/{booking.pk}/", {"status": "CONFIRMED"}, format="json")

    assert response.status_code == 409
    assert response.json()["code"] == "INVALID_TRANSITION"


@pytest.mark.django_db
def test_patch_with_unknown_status_is_validation_error(member_client, session, member):
    booking = Booking.objects.create(user=member, session=session)

    response = member_client.patch(f"/api/bookings/{booking.pk}/", {"status": "ATTENDED"}, format="json")

    assert response.status_code == 400
    assert "status" in response.json()["errors"]


@pytest.mark.django_db
def test_checkout_stub_returns_mock_url(member_client, session, member, settings):
    settings.STRIPE_USE_STUB = True
    settings.FRONTEND_URL = "https://studio.test"
    booking = Booking.objects.create(user=member, session=session)

    response = member_client.post(
        f"/api/bookings/{booking.pk}/checkout/", {"price_type": "PACK_5"}, format="json"
    )

    assert response.status_code == 200
    body = response.json()
    assert body["id"].startswith("mock_session_")
    assert body["amount_cents"] == settings.STUDIO_PRICES["PACK_5"]
    assert body["url"].startswith("https://studio.test/booking/mock-checkout?")
    assert f"booking={booking.pk}" in body["url"]
    assert not Payment.objects.exists()


@pytest.mark.django_db
def test_checkout_rejects_unknown_price_type(member_client, session, member):
    booking = Booking.objects.create(user=member, session=session)

    response = member_client.post(
        f"/api/bookings/{booking.pk}/checkout/", {"price_type": "LIFETIME"}, format="json"
    )

    assert response.status_code == 400
    assert "price_type" in response.json()["errors"]


@pytest.mark.django_db
def test_checkout_refuses_cancelled_paid_and_foreign_bookings(client_for, make_session, member, other_member):
    cancelled = Booking.objects.create(user=member, session=make_session(), status=Booking.CANCELLED)
    paid = Booking.objects.create(
        user=member,
        session=make_session(),
        payment=Payment.objects.create(
            user=member,
            amount_cents=1500,
            status=Payment.SUCCEEDED,
            provider=Payment.MOCK,
            external_session_id="mock_session_paid",
        ),
    )
    client = client_for(member)

    assert client.post(f"/api/bookings/{cancelled.pk}/checkout/", {}, format="json").json()["code"] == (
        "INVALID_TRANSITION"
    )
    assert client.post(f"/api/bookings/{paid.pk}/checkout/", {}, format="json").status_code == 409
    foreign = client_for(other_member).post(f"/api/bookings/{paid.pk}/checkout/", {}, format="json")
    assert foreign.status_code == 403


@pytest.mark.django_db
def test_checkout_maps_stripe_errors_to_bad_gateway(monkeypatch, member_client, session, member, settings):
    settings.STRIPE_USE_STUB = False
    settings.STRIPE_SECRET_KEY = "sk_test_123"
    booking = Booking.objects.create(user=member, session=session)
    original_api_key = stripe.api_key

    def fake_create(**kwargs):
        raise stripe.StripeError("card network down")

    monkeypatch.setattr(stripe.checkout.Session, "create", staticmethod(fake_create))

    try:
        response = member_client.post(f"/api/bookings/{booking.pk}/checkout/", {}, format="json")
    finally:
        stripe.api_key = original_api_key

    assert response.status_code == 502


@pytest.mark.django_db
def test_redeem_pass_settles_booking(member_client, session, member):
    booking = Booking.objects.create(user=member, session=session)
    pack = Pass.objects.create(user=member, pass_type=Pass.PACK_5, credits_remaining=2)

    response = member_client.post(
        f"/api/bookings/{booking.pk}/redeem-pass/", {"pass_id": pack.pk}, format="json"
    )

    assert response.status_code == 200
    assert response.json()["is_paid"] is True
    pack.refresh_from_db()
    assert pack.credits_remaining == 1


@pytest.mark.django_db
def test_availability_scenario_book_full_cancel_rebook(client_for, api_client, make_session, member, other_member):
    session = make_session(capacity=1)
    user_a, user_b = client_for(member), client_for(other_member)

    booked = user_a.post("/api/bookings/", {"session_id": session.pk}, format="json")
    assert booked.status_code == 201
    availability = api_client.get(f"/api/sessions/{session.pk}/availability/").json()
    assert (availability["remaining_spots"], availability["is_full"]) == (0, True)

    rejected = user_b.post("/api/bookings/", {"session_id": session.pk}, format="json")
    assert rejected.json()["code"] == "CAPACITY_EXCEEDED"

    assert user_a.delete(f"/api/bookings/{booked.json()['id']}/").status_code == 204
    availability = api_client.get(f"/api/sessions/{session.pk}/availability/").json()
    assert availability["remaining_spots"] == 1

    retried = user_b.post("/api/bookings/", {"session_id": session.pk}, format="json")
    assert retried.status_code == 201
