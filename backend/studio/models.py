from datetime import timedelta

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import F, Q


class ClassType(models.Model):
    """Template for a class; sessions copy its capacity and duration as defaults."""

    name = models.CharField(max_length=120, unique=True)
    description = models.TextField(blank=True)
    duration_minutes = models.PositiveIntegerField(default=60, validators=[MinValueValidator(1)])
    default_capacity = models.PositiveIntegerField(default=12)
    difficulty = models.CharField(max_length=50, blank=True)
    image_url = models.URLField(blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("name",)

    def __str__(self):
        return self.name


class Instructor(models.Model):
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="instructor_profile",
    )
    name = models.CharField(max_length=150)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=30, blank=True)
    bio = models.TextField(blank=True)
    credentials = models.CharField(max_length=255, blank=True)
    image_url = models.URLField(blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("name",)

    def __str__(self):
        return self.name


class ClassSessionQuerySet(models.QuerySet):
    def with_booked_count(self):
        """Annotate each session with the number of CONFIRMED bookings."""
        from bookings.models import Booking

        return self.annotate(
            booked_count=models.Count(
                "bookings",
                filter=Q(bookings__status=Booking.CONFIRMED),
                distinct=True,
            )
        )

    def upcoming(self, now=None):
        from django.utils import timezone

        return self.filter(starts_at__gt=now or timezone.now())


class ClassSession(models.Model):
    """A scheduled occurrence of a class type taught by an instructor."""

    class_type = models.ForeignKey(ClassType, on_delete=models.PROTECT, related_name="sessions")
    instructor = models.ForeignKey(Instructor, on_delete=models.PROTECT, related_name="sessions")
    starts_at = models.DateTimeField()
    ends_at = models.DateTimeField()
    capacity = models.PositiveIntegerField()
    location = models.CharField(max_length=100, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ClassSessionQuerySet.as_manager()

    class Meta:
        ordering = ("starts_at", "id")
        constraints = [
            models.CheckConstraint(
                condition=Q(ends_at__gt=F("starts_at")),
                name="class_session_ends_after_start",
            ),
        ]
        indexes = [
            models.Index(fields=["starts_at"], name="studio_clas_starts__1c9a4e_idx"),
            models.Index(fields=["instructor", "starts_at"], name="studio_clas_instruc_5b7f2d_idx"),
        ]

    def __str__(self):
        return f"{self.class_type.name} @ {self.starts_at:%Y-%m-%d %H:%M}"

    @property
    def duration(self) -> timedelta:
        return self.ends_at - self.starts_at

    def clean(self):
        super().clean()
        if self.starts_at and self.ends_at and self.ends_at <= self.starts_at:
            raise ValidationError({"ends_at": "End time must be after the start time."})

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)
