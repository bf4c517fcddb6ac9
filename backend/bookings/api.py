import logging

import stripe
from rest_framework import permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from core.errors import ErrorCode, error_response, result_response
from payments.services.checkout import create_checkout_session
from payments.services.passes import redeem_pass as redeem_booking_pass
from .models import Booking
from .serializers import (
    BookingCreateSerializer,
    BookingListFilterSerializer,
    BookingSerializer,
    BookingStatusSerializer,
    CheckoutRequestSerializer,
    CheckoutSessionSerializer,
    RedeemPassSerializer,
)
from .services.lifecycle import (
    cancel_booking,
    create_booking,
    get_booking,
    list_user_bookings,
    update_booking_status,
)

logger = logging.getLogger(__name__)


class BookingViewSet(viewsets.GenericViewSet):
    """The caller's bookings; every write goes through the lifecycle services."""

    serializer_class = BookingSerializer
    permission_classes = [permissions.IsAuthenticated]
    queryset = Booking.objects.none()
    filter_backends = []
    lookup_value_regex = r"\d+"

    def list(self, request):
        filters = BookingListFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)
        bookings = list_user_bookings(request.user, filters.validated_data)
        page = self.paginate_queryset(bookings)
        if page is not None:
            return self.get_paginated_response(BookingSerializer(page, many=True).data)
        return Response(BookingSerializer(bookings, many=True).data)

    def create(self, request):
        serializer = BookingCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = create_booking(request.user, serializer.validated_data["session_id"])
        return result_response(result, BookingSerializer, success_status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        return result_response(get_booking(pk, request.user), BookingSerializer)

    def partial_update(self, request, pk=None):
        serializer = BookingStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = update_booking_status(pk, serializer.validated_data["status"], request.user)
        return result_response(result, BookingSerializer)

    def destroy(self, request, pk=None):
        result = cancel_booking(pk, request.user)
        if not result.ok:
            return result_response(result)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["post"])
    def checkout(self, request, pk=None):
        lookup = get_booking(pk, request.user)
        if not lookup.ok:
            return result_response(lookup)
        booking = lookup.data
        if booking.user_id != request.user.pk:
            return error_response(ErrorCode.FORBIDDEN, "Only the booking owner can pay for it.")
        if booking.status == Booking.CANCELLED:
            return error_response(ErrorCode.INVALID_TRANSITION, "This booking has been cancelled.")
        if booking.is_paid:
            return error_response(ErrorCode.CONFLICT, "This booking is already paid.")

        serializer = CheckoutRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            checkout = create_checkout_session(booking, **serializer.validated_data)
        except stripe.StripeError as exc:
            logger.warning("Stripe checkout failed for booking %s: %s", booking.pk, exc)
            return Response(
                {"code": "PAYMENT_PROVIDER_ERROR", "detail": str(exc)},
                status=status.HTTP_502_BAD_GATEWAY,
            )

        logger.info("Checkout %s started for booking %s", checkout.id, booking.pk)
        return Response(CheckoutSessionSerializer(checkout).data)

    @action(detail=True, methods=["post"], url_path="redeem-pass")
    def redeem_pass(self, request, pk=None):
        serializer = RedeemPassSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = redeem_booking_pass(pk, serializer.validated_data["pass_id"], request.user)
        return result_response(result, BookingSerializer)
