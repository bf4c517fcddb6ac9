from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlencode
from uuid import uuid4

import stripe
from django.conf import settings

from bookings.models import Booking


@dataclass
class CheckoutSession:
    """
    What the client needs to send a user to pay for a booking.

    In stub mode nothing talks to Stripe; the id is prefixed ``mock_session_``
    and the url points at the frontend's mock checkout page, which later calls
    the mock confirmation endpoint with the same id.
    """

    id: str
    url: str
    amount_cents: int
    currency: str


def price_for(price_type: str) -> int:
    prices = settings.STUDIO_PRICES
    if price_type not in prices:
        raise ValueError(f"Unknown price type: {price_type}")
    return prices[price_type]


def _frontend_url() -> str:
    return settings.FRONTEND_URL.rstrip("/")


def _get_stripe_api_key() -> Optional[str]:
    key = getattr(settings, "STRIPE_SECRET_KEY", "")
    return key or None


def _should_use_stub() -> bool:
    if getattr(settings, "STRIPE_USE_STUB", False):
        return True
    return _get_stripe_api_key() is None


def _stub_checkout_session(*, booking: Booking, amount_cents: int, currency: str) -> CheckoutSession:
    session_id = f"mock_session_{uuid4().hex}"
    query = urlencode({"session": session_id, "booking": booking.pk, "amount": amount_cents})
    return CheckoutSession(
        id=session_id,
        url=f"{_frontend_url()}/booking/mock-checkout?{query}",
        amount_cents=amount_cents,
        currency=currency,
    )


def create_checkout_session(
    booking: Booking,
    price_type: str,
    success_url: str | None = None,
    cancel_url: str | None = None,
) -> CheckoutSession:
    """
    Start a checkout for ``booking`` at the configured price for ``price_type``.

    Nothing is persisted here; the payment row is written when the provider
    reports success.
    """

    amount_cents = price_for(price_type)
    currency = settings.STUDIO_CURRENCY

    if _should_use_stub():
        return _stub_checkout_session(booking=booking, amount_cents=amount_cents, currency=currency)

    stripe.api_key = _get_stripe_api_key()
    session = booking.session
    product_name = f"{session.class_type.name} ({price_type.replace('_', ' ').title()})"

    checkout = stripe.checkout.Session.create(
        mode="payment",
        payment_method_types=["card"],
        customer_email=booking.user.email or None,
        line_items=[
            {
                "quantity": 1,
                "price_data": {
                    "currency": currency,
                    "unit_amount": amount_cents,
                    "product_data": {"name": product_name},
                },
            }
        ],
        success_url=success_url or f"{_frontend_url()}/booking/success?booking={booking.pk}",
        cancel_url=cancel_url or f"{_frontend_url()}/booking/start?sessionId={session.pk}",
        metadata={
            "booking_id": str(booking.pk),
            "user_id": str(booking.user_id),
            "price_type": price_type,
        },
    )
    return CheckoutSession(
        id=checkout.id,
        url=checkout.url,
        amount_cents=amount_cents,
        currency=currency,
    )
