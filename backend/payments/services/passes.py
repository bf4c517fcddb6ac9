from __future__ import annotations

import logging

from django.db import transaction
from django.utils import timezone

from bookings.models import Booking
from core.errors import ErrorCode, ServiceResult, internal_on_database_error
from payments.models import Pass

logger = logging.getLogger(__name__)


@internal_on_database_error
def redeem_pass(booking_id, pass_id, user) -> ServiceResult:
    """Settle a booking with a credit from one of the user's passes."""

    with transaction.atomic():
        booking = Booking.objects.select_for_update().filter(pk=booking_id).first()
        if booking is None:
            return ServiceResult.failure(ErrorCode.NOT_FOUND, "Booking not found.")
        if booking.user_id != user.pk:
            return ServiceResult.failure(ErrorCode.FORBIDDEN, "You cannot modify this booking.")
        if booking.status == Booking.CANCELLED:
            return ServiceResult.failure(ErrorCode.INVALID_TRANSITION, "This booking has been cancelled.")
        if booking.is_paid:
            return ServiceResult.failure(ErrorCode.CONFLICT, "This booking is already paid.")

        studio_pass = Pass.objects.select_for_update().filter(pk=pass_id, user=user).first()
        if studio_pass is None:
            return ServiceResult.failure(ErrorCode.NOT_FOUND, "Pass not found.")
        if not studio_pass.is_usable(timezone.now()):
            return ServiceResult.failure(ErrorCode.VALIDATION_ERROR, "This pass has no usable credits.")

        if not studio_pass.is_unlimited:
            studio_pass.credits_remaining -= 1
            studio_pass.save(update_fields=["credits_remaining", "updated_at"])
        booking.redeemed_pass = studio_pass
        booking.save(update_fields=["redeemed_pass", "updated_at"])

    logger.info("Booking %s settled with pass %s", booking.pk, studio_pass.pk)
    return ServiceResult.success(booking, pass_id=studio_pass.pk)
