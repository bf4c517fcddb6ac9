from django.conf import settings
from django.db import models
from django.db.models import Q


class Booking(models.Model):
    """A user's place in one class session."""

    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    STATUSES = [
        (PENDING, "Pending"),
        (CONFIRMED, "Confirmed"),
        (CANCELLED, "Cancelled"),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="bookings")
    session = models.ForeignKey("studio.ClassSession", on_delete=models.CASCADE, related_name="bookings")
    status = models.CharField(max_length=12, choices=STATUSES, default=CONFIRMED)
    payment = models.OneToOneField(
        "payments.Payment",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="booking",
    )
    redeemed_pass = models.ForeignKey(
        "payments.Pass",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="bookings",
    )
    cancelled_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["session__starts_at", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["user", "session"],
                condition=~Q(status="CANCELLED"),
                name="one_active_booking_per_user_session",
            ),
        ]
        indexes = [
            models.Index(fields=["session", "status"], name="bookings_bo_session_3e8c1a_idx"),
        ]

    def __str__(self):
        return f"{self.user} / {self.session_id} ({self.status})"

    @property
    def is_paid(self) -> bool:
        return self.payment_id is not None or self.redeemed_pass_id is not None
