from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Studio member account; ``role`` is changed only through the admin API."""

    USER = "USER"
    INSTRUCTOR = "INSTRUCTOR"
    ADMIN = "ADMIN"
    ROLES = [
        (USER, "User"),
        (INSTRUCTOR, "Instructor"),
        (ADMIN, "Admin"),
    ]

    email = models.EmailField(unique=True)
    name = models.CharField(max_length=150, blank=True)
    role = models.CharField(max_length=20, choices=ROLES, default=USER)

    def __str__(self):
        return self.name or self.email

    @property
    def is_studio_admin(self) -> bool:
        return self.is_superuser or self.role == self.ADMIN
