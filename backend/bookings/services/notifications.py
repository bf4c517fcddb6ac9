from __future__ import annotations

import logging

from django.conf import settings
from django.core.mail import send_mail
from django.utils import timezone

from bookings.models import Booking

logger = logging.getLogger(__name__)


def send_booking_confirmation(booking: Booking) -> bool:
    """
    E-mail the booking's user that their spot is confirmed.

    Returns False when nothing was sent. Delivery problems are logged and
    swallowed here so they never undo a committed booking.
    """

    user = booking.user
    if not user.email:
        logger.info("Skipping confirmation for booking %s: user has no email", booking.pk)
        return False

    session = booking.session
    class_name = session.class_type.name
    starts_at = timezone.localtime(session.starts_at)
    body_lines = [
        f"Hi {user.name or user.email},",
        "",
        f"Your spot in {class_name} with {session.instructor.name} is confirmed.",
        f"When: {starts_at:%A %B %d, %Y at %H:%M}",
    ]
    if session.location:
        body_lines.append(f"Where: {session.location}")
    body_lines += [
        "",
        f"Manage your bookings: {settings.FRONTEND_URL.rstrip('/')}/bookings",
        "",
        "See you on the mat!",
    ]

    try:
        send_mail(
            f"Booking confirmed: {class_name}",
            "\n".join(body_lines),
            settings.DEFAULT_FROM_EMAIL,
            [user.email],
            fail_silently=False,
        )
    except Exception:
        logger.exception("Failed to send confirmation email for booking %s", booking.pk)
        return False
    return True
