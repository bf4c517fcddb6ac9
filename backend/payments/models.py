from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone


class Payment(models.Model):
    """A settled (or attempted) charge for a booking, keyed by the provider's checkout id."""

    PENDING = "PENDING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"
    STATUSES = [
        (PENDING, "Pending"),
        (SUCCEEDED, "Succeeded"),
        (FAILED, "Failed"),
        (REFUNDED, "Refunded"),
    ]

    MOCK = "MOCK"
    STRIPE = "STRIPE"
    PROVIDERS = [
        (MOCK, "Mock"),
        (STRIPE, "Stripe"),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="payments")
    amount_cents = models.PositiveIntegerField()
    currency = models.CharField(max_length=10, default="usd")
    status = models.CharField(max_length=12, choices=STATUSES, default=PENDING)
    provider = models.CharField(max_length=12, choices=PROVIDERS, default=STRIPE)
    price_type = models.CharField(max_length=20, blank=True)
    external_session_id = models.CharField(max_length=255)
    external_intent_id = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        constraints = [
            models.UniqueConstraint(
                fields=["provider", "external_session_id"],
                name="unique_provider_checkout_session",
            ),
        ]

    def __str__(self):
        return f"{self.provider} {self.external_session_id} ({self.status})"

    def save(self, *args, **kwargs):
        if self.pk is not None:
            stored_status = (
                Payment.objects.filter(pk=self.pk).values_list("status", flat=True).first()
            )
            if stored_status == self.SUCCEEDED:
                raise ValidationError("Succeeded payments are immutable.")
        return super().save(*args, **kwargs)


class Pass(models.Model):
    """Prepaid class credits. ``credits_remaining`` of None means unlimited."""

    DROPIN = "DROPIN"
    PACK_5 = "PACK_5"
    UNLIMITED_MONTH = "UNLIMITED_MONTH"
    PASS_TYPES = [
        (DROPIN, "Drop-in"),
        (PACK_5, "5-class pack"),
        (UNLIMITED_MONTH, "Unlimited month"),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="passes")
    pass_type = models.CharField(max_length=20, choices=PASS_TYPES)
    credits_remaining = models.PositiveIntegerField(null=True, blank=True)
    starts_at = models.DateTimeField(default=timezone.now)
    expires_at = models.DateTimeField(null=True, blank=True)
    payment = models.ForeignKey(
        Payment,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="passes",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        verbose_name_plural = "passes"

    def __str__(self):
        return f"{self.get_pass_type_display()} for {self.user}"

    @property
    def is_unlimited(self) -> bool:
        return self.credits_remaining is None

    def is_usable(self, at=None) -> bool:
        at = at or timezone.now()
        if self.starts_at and self.starts_at > at:
            return False
        if self.expires_at and self.expires_at <= at:
            return False
        return self.is_unlimited or self.credits_remaining > 0
