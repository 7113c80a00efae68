"""Document templates attached to bookings and custody."""

from django.conf import settings
from django.db import models
from django.urls import reverse


class Template(models.Model):
    """A user's PDF template for one kind of agreement.

    At most one template per user and type is the default; a template
    that is made inactive stops being the default.
    """

    TYPE_BOOKINGS = "BOOKINGS"
    TYPE_CUSTODY = "CUSTODY"

    TYPE_CHOICES = [
        (TYPE_BOOKINGS, "Bookings"),
        (TYPE_CUSTODY, "Custody"),
    ]

    name = models.CharField(max_length=200)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    description = models.TextField(blank=True)
    signature_required = models.BooleanField(default=False)
    is_default = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    pdf_url = models.CharField(max_length=500, blank=True, null=True)
    pdf_size = models.PositiveIntegerField(null=True, blank=True)
    pdf_name = models.CharField(max_length=255, blank=True, null=True)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="templates",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-updated_at"]
        indexes = [
            models.Index(
                fields=["user", "type"], name="idx_template_user_type"
            ),
        ]

    def __str__(self):
        return self.name

    def get_absolute_url(self):
        return reverse("documents:template_edit", kwargs={"pk": self.pk})
