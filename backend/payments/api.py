import logging

import stripe
from django.conf import settings
from rest_framework import mixins, permissions, status, viewsets
from rest_framework.response import Response
from rest_framework.views import APIView

from bookings.models import Booking
from bookings.serializers import BookingSerializer
from core.errors import ErrorCode, error_response, result_response
from .models import Payment
from .serializers import MockPaymentConfirmSerializer, PassSerializer, PaymentSerializer
from .services.reconciliation import (
    PaymentNotification,
    missing_booking_policy,
    reconcile_payment,
    record_payment_failure,
)

logger = logging.getLogger(__name__)

CHECKOUT_COMPLETED = "checkout.session.completed"
CHECKOUT_ASYNC_FAILED = "checkout.session.async_payment_failed"
REFUND_BY_HAND_CODES = {ErrorCode.INVALID_TRANSITION, ErrorCode.CAPACITY_EXCEEDED, ErrorCode.CONFLICT}


def _missing_booking_response(booking_id):
    if missing_booking_policy() == "reject":
        return error_response(ErrorCode.NOT_FOUND, "Booking not found.")
    logger.warning("Acknowledging payment for missing booking %s", booking_id)
    return Response({"received": True, "detail": "Booking not found; notification ignored."})


class StripeWebhookView(APIView):
    """Receive Stripe Checkout events and apply them to bookings."""

    permission_classes: list = []
    authentication_classes: list = []

    def post(self, request, *args, **kwargs):
        payload = request.body
        sig_header = request.META.get("HTTP_STRIPE_SIGNATURE")
        if not settings.STRIPE_WEBHOOK_SECRET:
            logger.error("Stripe webhook secret not configured.")
            return Response(status=status.HTTP_500_INTERNAL_SERVER_ERROR)

        try:
            event = stripe.Webhook.construct_event(
                payload, sig_header, settings.STRIPE_WEBHOOK_SECRET
            )
        except ValueError:
            logger.warning("Invalid payload received on Stripe webhook.")
            return Response(status=status.HTTP_400_BAD_REQUEST)
        except stripe.SignatureVerificationError:
            logger.warning("Invalid Stripe signature.")
            return Response(status=status.HTTP_400_BAD_REQUEST)

        event_type = event["type"]
        if event_type not in {CHECKOUT_COMPLETED, CHECKOUT_ASYNC_FAILED}:
            logger.debug("Ignoring Stripe event %s", event_type)
            return Response({"received": True})

        checkout = event["data"]["object"]
        metadata = checkout.get("metadata") or {}
        booking_id = metadata.get("booking_id")
        if not booking_id:
            logger.warning("Stripe event %s without booking_id metadata", event.get("id"))
            return error_response(ErrorCode.VALIDATION_ERROR, "Missing booking_id metadata.")

        try:
            notification = PaymentNotification(
                booking_id=int(booking_id),
                amount=int(checkout.get("amount_total") or 0),
                currency=checkout.get("currency") or settings.STUDIO_CURRENCY,
                external_session_id=checkout.get("id") or "",
                external_intent_id=checkout.get("payment_intent") or "",
                provider=Payment.STRIPE,
                price_type=metadata.get("price_type") or None,
            )
        except (TypeError, ValueError) as exc:
            logger.warning("Malformed Stripe checkout event %s: %s", event.get("id"), exc)
            return error_response(ErrorCode.VALIDATION_ERROR, str(exc))

        if event_type == CHECKOUT_ASYNC_FAILED:
            record_payment_failure(notification, reason="async payment failed")
            return Response({"received": True})

        result = reconcile_payment(notification)
        if result.ok:
            return Response({"received": True, "created": result.details.get("created", False)})
        if result.code == ErrorCode.NOT_FOUND:
            return _missing_booking_response(notification.booking_id)
        if result.code in REFUND_BY_HAND_CODES:
            # Redelivery cannot change the outcome; the refund is handled by hand.
            return Response({"received": True, "code": result.code, "detail": result.message})
        return result_response(result)


class MockPaymentConfirmView(APIView):
    """Complete a stub-mode checkout; the local stand-in for the Stripe webhook."""

    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, *args, **kwargs):
        serializer = MockPaymentConfirmSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        booking = Booking.objects.filter(pk=data["booking_id"]).first()
        if booking is None:
            logger.warning("Mock payment %s references missing booking %s", data["session_id"], data["booking_id"])
            return _missing_booking_response(data["booking_id"])
        if booking.user_id != request.user.pk and not request.user.is_studio_admin:
            return error_response(ErrorCode.FORBIDDEN, "You cannot pay for this booking.")

        notification = PaymentNotification(
            booking_id=booking.pk,
            amount=data["amount"],
            currency=data["currency"],
            external_session_id=data["session_id"],
            provider=Payment.MOCK,
            price_type=data.get("price_type") or None,
        )

        if data["outcome"] == MockPaymentConfirmSerializer.FAILED:
            return result_response(record_payment_failure(notification, reason="mock checkout declined"))

        result = reconcile_payment(notification)
        if not result.ok:
            if result.code == ErrorCode.NOT_FOUND:
                return _missing_booking_response(notification.booking_id)
            return result_response(result)

        return Response(
            {
                "booking": BookingSerializer(result.data).data,
                "payment": PaymentSerializer(result.details["payment"]).data,
                "created": result.details["created"],
            }
        )


class PassViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    serializer_class = PassSerializer
    permission_classes = [permissions.IsAuthenticated]
    filter_backends = []

    def get_queryset(self):
        return self.request.user.passes.order_by("-created_at", "-id")
