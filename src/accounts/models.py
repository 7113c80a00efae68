"""Custom user model for the tracker."""

from django.contrib.auth.models import AbstractUser
from django.db import models


class CustomUser(AbstractUser):
    """User with a display name, a unique email and an organisation role."""

    ROLE_OWNER = "owner"
    ROLE_ADMIN = "admin"
    ROLE_SELF_SERVICE = "self_service"
    ROLE_BASE = "base"

    ROLE_CHOICES = [
        (ROLE_OWNER, "Owner"),
        (ROLE_ADMIN, "Administrator"),
        (ROLE_SELF_SERVICE, "Self service"),
        (ROLE_BASE, "Base"),
    ]

    display_name = models.CharField(
        max_length=255,
        blank=True,
        help_text="Human-readable name shown on custody records",
    )
    email = models.EmailField("email address", blank=False, unique=True)
    role = models.CharField(
        max_length=20,
        choices=ROLE_CHOICES,
        default=ROLE_BASE,
        help_text="Organisation role; decides custody and asset rights",
    )

    class Meta:
        verbose_name = "user"
        verbose_name_plural = "users"

    def get_display_name(self):
        """Return display_name if set, otherwise full name or username."""
        if self.display_name:
            return self.display_name
        full = self.get_full_name()
        return full if full else self.username

    def __str__(self):
        return self.get_display_name()
