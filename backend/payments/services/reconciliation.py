from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from bookings.models import Booking
from bookings.services.availability import calculate_availability, confirmed_count
from bookings.services.lifecycle import notify_after_commit
from core.errors import ErrorCode, ServiceResult
from payments.models import Pass, Payment
from studio.models import ClassSession

logger = logging.getLogger(__name__)

UNLIMITED_PASS_DAYS = 30


@dataclass(frozen=True)
class PaymentNotification:
    """A provider's report that a checkout for a booking completed (or failed)."""

    booking_id: int
    amount: int
    external_session_id: str
    currency: str = "usd"
    provider: str = Payment.STRIPE
    external_intent_id: str = ""
    price_type: Optional[str] = None

    def __post_init__(self):
        if self.booking_id in (None, ""):
            raise ValueError("booking_id is required")
        if not self.external_session_id:
            raise ValueError("external_session_id is required")
        if not isinstance(self.amount, int) or isinstance(self.amount, bool) or self.amount < 0:
            raise ValueError("amount must be a non-negative integer in minor units")
        if self.provider not in {value for value, _ in Payment.PROVIDERS}:
            raise ValueError(f"unknown provider: {self.provider}")


def missing_booking_policy() -> str:
    return getattr(settings, "PAYMENT_MISSING_BOOKING_POLICY", "acknowledge")


def _grant_pass(user, price_type: str | None, payment: Payment) -> Pass | None:
    if price_type == Pass.PACK_5:
        # The fifth credit is spent on the booking that paid for the pack.
        return Pass.objects.create(user=user, pass_type=Pass.PACK_5, credits_remaining=4, payment=payment)
    if price_type == Pass.UNLIMITED_MONTH:
        now = timezone.now()
        return Pass.objects.create(
            user=user,
            pass_type=Pass.UNLIMITED_MONTH,
            credits_remaining=None,
            starts_at=now,
            expires_at=now + timedelta(days=UNLIMITED_PASS_DAYS),
            payment=payment,
        )
    return None


def _refund_needed(notification: PaymentNotification, booking, code: str, reason: str) -> ServiceResult:
    logger.error(
        "Payment %s for booking %s (%s %s) not applied: %s; refund manually",
        notification.external_session_id,
        booking.pk,
        notification.amount,
        notification.currency,
        reason,
    )
    return ServiceResult.failure(code, reason)


def _reconcile(notification: PaymentNotification) -> ServiceResult:
    with transaction.atomic():
        booking = (
            Booking.objects.select_for_update()
            .filter(pk=notification.booking_id)
            .first()
        )
        if booking is None:
            return ServiceResult.failure(ErrorCode.NOT_FOUND, "Booking not found.")

        existing = Payment.objects.filter(
            provider=notification.provider,
            external_session_id=notification.external_session_id,
        ).first()
        if existing is not None:
            if booking.payment_id != existing.pk:
                logger.error(
                    "Payment %s is already linked elsewhere; notification named booking %s",
                    notification.external_session_id,
                    booking.pk,
                )
                return ServiceResult.failure(
                    ErrorCode.CONFLICT, "This payment belongs to a different booking."
                )
            return ServiceResult.success(booking, payment=existing, created=False)

        if booking.status == Booking.CANCELLED:
            return _refund_needed(
                notification, booking, ErrorCode.INVALID_TRANSITION,
                "Booking was cancelled before payment completed.",
            )
        if booking.is_paid:
            return _refund_needed(
                notification, booking, ErrorCode.CONFLICT, "Booking is already paid."
            )
        if booking.status == Booking.PENDING:
            session = ClassSession.objects.select_for_update().get(pk=booking.session_id)
            if calculate_availability(session.capacity, confirmed_count(session)).is_full:
                return _refund_needed(
                    notification, booking, ErrorCode.CAPACITY_EXCEEDED, "This session is full."
                )

        booking.status = Booking.CONFIRMED
        payment = Payment.objects.create(
            user_id=booking.user_id,
            amount_cents=notification.amount,
            currency=notification.currency,
            status=Payment.SUCCEEDED,
            provider=notification.provider,
            price_type=notification.price_type or "",
            external_session_id=notification.external_session_id,
            external_intent_id=notification.external_intent_id or "",
        )
        booking.payment = payment
        booking.save(update_fields=["status", "payment", "updated_at"])
        granted = _grant_pass(booking.user, notification.price_type, payment)
        notify_after_commit(booking.pk)

    return ServiceResult.success(booking, payment=payment, granted_pass=granted, created=True)


def reconcile_payment(notification: PaymentNotification) -> ServiceResult:
    """
    Apply a successful payment to its booking.

    Confirming the booking, writing the payment and linking the two commit
    together or not at all. Redelivery of the same notification is a no-op
    reported with ``created=False``.
    """

    try:
        result = _reconcile(notification)
    except Exception:
        logger.exception(
            "Reconciliation failed for booking %s (%s %s)",
            notification.booking_id,
            notification.provider,
            notification.external_session_id,
        )
        return ServiceResult.failure(ErrorCode.INTERNAL, "Payment could not be applied to the booking.")

    if result.ok and result.details.get("created"):
        logger.info(
            "Booking %s confirmed by %s payment %s",
            notification.booking_id,
            notification.provider,
            notification.external_session_id,
        )
    elif result.ok:
        logger.info(
            "Duplicate payment notification %s for booking %s ignored",
            notification.external_session_id,
            notification.booking_id,
        )
    elif result.code == ErrorCode.NOT_FOUND:
        logger.warning(
            "Payment %s references missing booking %s",
            notification.external_session_id,
            notification.booking_id,
        )
    return result


def record_payment_failure(notification: PaymentNotification, reason: str = "") -> ServiceResult:
    logger.warning(
        "Payment %s failed for booking %s%s",
        notification.external_session_id,
        notification.booking_id,
        f": {reason}" if reason else "",
    )
    return ServiceResult.failure(
        ErrorCode.PAYMENT_FAILED,
        "Payment failed. The booking was not changed.",
        booking_id=notification.booking_id,
    )
