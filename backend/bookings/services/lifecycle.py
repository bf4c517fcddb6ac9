from __future__ import annotations

import logging
from datetime import timedelta

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from bookings.models import Booking
from core.errors import ErrorCode, ServiceResult, internal_on_database_error
from studio.models import ClassSession
from .availability import calculate_availability, confirmed_count
from .notifications import send_booking_confirmation

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    Booking.PENDING: {Booking.CONFIRMED, Booking.CANCELLED},
    Booking.CONFIRMED: {Booking.CANCELLED},
    Booking.CANCELLED: set(),
}


def _is_admin(user) -> bool:
    return bool(getattr(user, "is_studio_admin", False))


def notify_after_commit(booking_id: int) -> None:
    def _send():
        booking = (
            Booking.objects.select_related("user", "session__class_type", "session__instructor")
            .filter(pk=booking_id)
            .first()
        )
        if booking is not None:
            send_booking_confirmation(booking)

    transaction.on_commit(_send)


@internal_on_database_error
def create_booking(user, session_id) -> ServiceResult:
    """
    Reserve a spot in a session for ``user``.

    The session row is locked for the duration of the transaction, so the
    confirmed count, the capacity comparison and the insert happen as one
    step for that session. The partial unique constraint on (user, session)
    backs up the duplicate check.
    """

    now = timezone.now()
    try:
        with transaction.atomic():
            session = ClassSession.objects.select_for_update().filter(pk=session_id).first()
            if session is None:
                return ServiceResult.failure(ErrorCode.NOT_FOUND, "Session not found.")

            if session.starts_at <= now:
                return ServiceResult.failure(
                    ErrorCode.VALIDATION_ERROR, "This session has already started."
                )
            max_advance = timedelta(days=settings.BOOKING_MAX_ADVANCE_DAYS)
            if session.starts_at > now + max_advance:
                return ServiceResult.failure(
                    ErrorCode.VALIDATION_ERROR,
                    f"Sessions can be booked at most {settings.BOOKING_MAX_ADVANCE_DAYS} days ahead.",
                )

            already_booked = (
                Booking.objects.filter(user=user, session=session)
                .exclude(status=Booking.CANCELLED)
                .exists()
            )
            if already_booked:
                return ServiceResult.failure(ErrorCode.CONFLICT, "You already have a booking for this session.")

            active = Booking.objects.filter(
                user=user,
                status=Booking.CONFIRMED,
                session__starts_at__gt=now,
            ).count()
            if active >= settings.BOOKING_MAX_ACTIVE_PER_USER:
                return ServiceResult.failure(
                    ErrorCode.VALIDATION_ERROR,
                    f"You can hold at most {settings.BOOKING_MAX_ACTIVE_PER_USER} upcoming bookings.",
                )

            availability = calculate_availability(session.capacity, confirmed_count(session))
            if availability.is_full:
                return ServiceResult.failure(
                    ErrorCode.CAPACITY_EXCEEDED,
                    "This session is full.",
                    can_join_waitlist=availability.can_join_waitlist,
                )

            booking = Booking.objects.create(user=user, session=session, status=Booking.CONFIRMED)
            notify_after_commit(booking.pk)
    except IntegrityError:
        logger.info("Duplicate booking rejected for user %s session %s", user.pk, session_id)
        return ServiceResult.failure(ErrorCode.CONFLICT, "You already have a booking for this session.")

    logger.info("Booking %s created for user %s session %s", booking.pk, user.pk, session_id)
    return ServiceResult.success(booking)


def _cancellation_error(booking: Booking, acting_user, now) -> ServiceResult | None:
    starts_at = booking.session.starts_at
    if starts_at <= now:
        return ServiceResult.failure(ErrorCode.VALIDATION_ERROR, "This session has already started.")
    cutoff = timedelta(hours=settings.BOOKING_CANCELLATION_CUTOFF_HOURS)
    if not _is_admin(acting_user) and starts_at - now < cutoff:
        return ServiceResult.failure(
            ErrorCode.VALIDATION_ERROR,
            f"Bookings can only be cancelled up to {settings.BOOKING_CANCELLATION_CUTOFF_HOURS} hours before class.",
        )
    return None


def _mark_cancelled(booking: Booking, now) -> None:
    booking.status = Booking.CANCELLED
    booking.cancelled_at = now
    booking.save(update_fields=["status", "cancelled_at", "updated_at"])


@internal_on_database_error
def cancel_booking(booking_id, user) -> ServiceResult:
    """Cancel a booking; cancelling an already cancelled booking succeeds unchanged."""

    now = timezone.now()
    with transaction.atomic():
        booking = (
            Booking.objects.select_for_update()
            .select_related("session")
            .filter(pk=booking_id)
            .first()
        )
        if booking is None:
            return ServiceResult.failure(ErrorCode.NOT_FOUND, "Booking not found.")
        if booking.user_id != user.pk and not _is_admin(user):
            return ServiceResult.failure(ErrorCode.FORBIDDEN, "You cannot modify this booking.")
        if booking.status == Booking.CANCELLED:
            return ServiceResult.success(booking, changed=False)

        error = _cancellation_error(booking, user, now)
        if error is not None:
            return error
        _mark_cancelled(booking, now)

    logger.info("Booking %s cancelled by %s", booking.pk, user.pk)
    return ServiceResult.success(booking, changed=True)


@internal_on_database_error
def update_booking_status(booking_id, new_status, acting_user) -> ServiceResult:
    valid_statuses = {value for value, _ in Booking.STATUSES}
    now = timezone.now()

    with transaction.atomic():
        booking = (
            Booking.objects.select_for_update()
            .select_related("session")
            .filter(pk=booking_id)
            .first()
        )
        if booking is None:
            return ServiceResult.failure(ErrorCode.NOT_FOUND, "Booking not found.")
        is_admin = _is_admin(acting_user)
        if booking.user_id != acting_user.pk and not is_admin:
            return ServiceResult.failure(ErrorCode.FORBIDDEN, "You cannot modify this booking.")
        if new_status not in valid_statuses:
            return ServiceResult.failure(ErrorCode.VALIDATION_ERROR, f"Unknown booking status: {new_status}.")
        if new_status == booking.status:
            return ServiceResult.success(booking, changed=False)
        if new_status not in ALLOWED_TRANSITIONS[booking.status]:
            return ServiceResult.failure(
                ErrorCode.INVALID_TRANSITION,
                f"Cannot change a {booking.status.lower()} booking to {new_status.lower()}.",
            )

        if new_status == Booking.CANCELLED:
            error = _cancellation_error(booking, acting_user, now)
            if error is not None:
                return error
            _mark_cancelled(booking, now)
        else:
            if not is_admin:
                return ServiceResult.failure(ErrorCode.FORBIDDEN, "Only admins can confirm bookings.")
            session = ClassSession.objects.select_for_update().get(pk=booking.session_id)
            availability = calculate_availability(session.capacity, confirmed_count(session))
            if availability.is_full:
                return ServiceResult.failure(ErrorCode.CAPACITY_EXCEEDED, "This session is full.")
            booking.status = Booking.CONFIRMED
            booking.save(update_fields=["status", "updated_at"])
            notify_after_commit(booking.pk)

    logger.info("Booking %s moved to %s by %s", booking.pk, new_status, acting_user.pk)
    return ServiceResult.success(booking, changed=True)


def list_user_bookings(user, filters=None):
    filters = filters or {}
    queryset = Booking.objects.filter(user=user).select_related(
        "session__class_type", "session__instructor", "payment", "redeemed_pass"
    )
    if filters.get("status"):
        queryset = queryset.filter(status=filters["status"])
    if filters.get("session"):
        queryset = queryset.filter(session_id=filters["session"])
    if filters.get("start"):
        queryset = queryset.filter(session__starts_at__gte=filters["start"])
    if filters.get("end"):
        queryset = queryset.filter(session__starts_at__lte=filters["end"])
    return queryset.order_by("session__starts_at", "id")


def get_booking(booking_id, user) -> ServiceResult:
    booking = (
        Booking.objects.select_related("session__class_type", "session__instructor", "payment", "redeemed_pass")
        .filter(pk=booking_id)
        .first()
    )
    if booking is None:
        return ServiceResult.failure(ErrorCode.NOT_FOUND, "Booking not found.")
    if booking.user_id != user.pk and not _is_admin(user):
        return ServiceResult.failure(ErrorCode.FORBIDDEN, "You cannot view this booking.")
    return ServiceResult.success(booking)
