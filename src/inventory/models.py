"""Models for tracker inventory: assets, kits, QR codes and custody."""

import uuid

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.urls import reverse


def generate_qr_id():
    """Return a new scan identifier for a QR code label."""
    return uuid.uuid4().hex[:20]


class Category(models.Model):
    """Asset classification. Each asset can have one category."""

    name = models.CharField(max_length=100, unique=True)
    description = models.TextField(blank=True)
    color = models.CharField(max_length=20, default="#808080")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name_plural = "categories"
        ordering = ["name"]

    def __str__(self):
        return self.name


class Tag(models.Model):
    """Free-form label; an asset can carry several."""

    name = models.CharField(max_length=50, unique=True)
    description = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name


class Location(models.Model):
    """Place where an asset is supposed to be located."""

    name = models.CharField(max_length=100, unique=True)
    description = models.TextField(blank=True)
    address = models.TextField(blank=True)
    image = models.ImageField(upload_to="locations/", blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name

    @property
    def thumbnail_url(self):
        return self.image.url if self.image else None


class TeamMemberQuerySet(models.QuerySet):
    def active(self):
        return self.filter(deleted_at__isnull=True)


class TeamMember(models.Model):
    """Person that can hold custody. May or may not have a user account."""

    name = models.CharField(max_length=200)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="team_memberships",
    )
    deleted_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = TeamMemberQuerySet.as_manager()

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.resolved_name()

    def resolved_name(self, include_email=False):
        """Name shown in custodian pickers.

        Members linked to a user show the user's display name, optionally
        followed by their email.
        """
        if self.user_id is None:
            return self.name
        name = self.user.get_display_name()
        if include_email and self.user.email:
            return f"{name} ({self.user.email})"
        return name


class Kit(models.Model):
    """Named bundle of assets tracked as a single custody unit."""

    STATUS_AVAILABLE = "available"
    STATUS_IN_CUSTODY = "in_custody"
    STATUS_CHECKED_OUT = "checked_out"

    STATUS_CHOICES = [
        (STATUS_AVAILABLE, "Available"),
        (STATUS_IN_CUSTODY, "In custody"),
        (STATUS_CHECKED_OUT, "Checked out"),
    ]

    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    status = models.CharField(
        max_length=20, choices=STATUS_CHOICES, default=STATUS_AVAILABLE
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name="created_kits",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name


class AssetManager(models.Manager):
    """Custom manager with the shared queryset builder for Asset."""

    def with_related(self):
        """Apply the select/prefetch calls the index and scanner need."""
        return self.select_related(
            "category",
            "location",
            "kit",
            "custody__custodian",
            "custody__custodian__user",
        ).prefetch_related("tags", "qr_codes")


class Asset(models.Model):
    """Individual trackable asset."""

    STATUS_AVAILABLE = Kit.STATUS_AVAILABLE
    STATUS_IN_CUSTODY = Kit.STATUS_IN_CUSTODY
    STATUS_CHECKED_OUT = Kit.STATUS_CHECKED_OUT

    STATUS_CHOICES = Kit.STATUS_CHOICES

    title = models.CharField(max_length=200)
    description = models.TextField(blank=True, max_length=1000)
    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=STATUS_AVAILABLE,
    )
    category = models.ForeignKey(
        Category,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="assets",
    )
    location = models.ForeignKey(
        Location,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="assets",
    )
    kit = models.ForeignKey(
        Kit,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="assets",
    )
    tags = models.ManyToManyField(Tag, blank=True, related_name="assets")
    valuation = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(0)],
    )
    main_image = models.ImageField(upload_to="assets/", blank=True, null=True)
    thumbnail_image = models.ImageField(
        upload_to="thumbnails/", blank=True, null=True
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name="created_assets",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = AssetManager()

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="idx_asset_status"),
            models.Index(fields=["created_at"], name="idx_asset_created_at"),
            models.Index(fields=["updated_at"], name="idx_asset_updated_at"),
        ]
        permissions = [
            ("can_assign_custody", "Can assign custody of assets"),
            ("can_view_all_custody", "Can see every custodian"),
        ]

    def __str__(self):
        return self.title

    def get_absolute_url(self):
        return reverse("inventory:asset_edit", kwargs={"pk": self.pk})

    @property
    def custodian(self):
        """Team member holding custody, or None."""
        try:
            return self.custody.custodian
        except Custody.DoesNotExist:
            return None

    @property
    def qr_id(self):
        """Scan identifier of the first QR code linked to this asset."""
        qr = self.qr_codes.first()
        return qr.pk if qr else None


class Qr(models.Model):
    """QR label. Its id is the scan identifier read by the scanner."""

    id = models.CharField(
        primary_key=True, max_length=40, default=generate_qr_id
    )
    asset = models.ForeignKey(
        Asset,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="qr_codes",
    )
    kit = models.ForeignKey(
        Kit,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="qr_codes",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "QR code"
        verbose_name_plural = "QR codes"
        constraints = [
            models.CheckConstraint(
                condition=~models.Q(asset__isnull=False, kit__isnull=False),
                name="qr_links_asset_or_kit",
            ),
        ]

    def __str__(self):
        return self.pk

    def clean(self):
        super().clean()
        if self.asset_id and self.kit_id:
            raise ValidationError(
                "A QR code can be linked to an asset or a kit, not both."
            )


class Barcode(models.Model):
    """Additional barcode on an asset next to its QR code."""

    TYPE_CODE128 = "code128"
    TYPE_CODE39 = "code39"
    TYPE_DATAMATRIX = "datamatrix"

    TYPE_CHOICES = [
        (TYPE_CODE128, "Code 128"),
        (TYPE_CODE39, "Code 39"),
        (TYPE_DATAMATRIX, "Data Matrix"),
    ]

    asset = models.ForeignKey(
        Asset, on_delete=models.CASCADE, related_name="barcodes"
    )
    type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    value = models.CharField(max_length=100, unique=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]

    def __str__(self):
        return f"{self.get_type_display()}: {self.value}"

    def clean(self):
        from .services.barcodes import barcode_value_error

        super().clean()
        error = barcode_value_error(self.type, self.value)
        if error:
            raise ValidationError({"value": error})


class Custody(models.Model):
    """An asset held by a team member."""

    asset = models.OneToOneField(
        Asset, on_delete=models.CASCADE, related_name="custody"
    )
    custodian = models.ForeignKey(
        TeamMember, on_delete=models.PROTECT, related_name="custodies"
    )
    assigned_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name="assigned_custodies",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name_plural = "custodies"

    def __str__(self):
        return f"{self.asset} held by {self.custodian}"


class KitCustody(models.Model):
    """A whole kit held by a team member."""

    kit = models.OneToOneField(
        Kit, on_delete=models.CASCADE, related_name="custody"
    )
    custodian = models.ForeignKey(
        TeamMember, on_delete=models.PROTECT, related_name="kit_custodies"
    )
    assigned_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name="assigned_kit_custodies",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name_plural = "kit custodies"

    def __str__(self):
        return f"{self.kit} held by {self.custodian}"


class Note(models.Model):
    """Activity entry on an asset's timeline."""

    TYPE_COMMENT = "comment"
    TYPE_UPDATE = "update"

    TYPE_CHOICES = [
        (TYPE_COMMENT, "Comment"),
        (TYPE_UPDATE, "Update"),
    ]

    asset = models.ForeignKey(
        Asset, on_delete=models.CASCADE, related_name="notes"
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name="asset_notes",
    )
    type = models.CharField(
        max_length=20, choices=TYPE_CHOICES, default=TYPE_COMMENT
    )
    content = models.TextField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return self.content[:50]


class CustomField(models.Model):
    """Organisation-defined extra field shown on the asset form."""

    TYPE_TEXT = "text"
    TYPE_NUMBER = "number"
    TYPE_DATE = "date"
    TYPE_BOOLEAN = "boolean"
    TYPE_OPTION = "option"

    TYPE_CHOICES = [
        (TYPE_TEXT, "Text"),
        (TYPE_NUMBER, "Number"),
        (TYPE_DATE, "Date"),
        (TYPE_BOOLEAN, "Boolean"),
        (TYPE_OPTION, "Option"),
    ]

    name = models.CharField(max_length=100, unique=True)
    help_text = models.CharField(max_length=300, blank=True)
    type = models.CharField(
        max_length=20, choices=TYPE_CHOICES, default=TYPE_TEXT
    )
    required = models.BooleanField(default=False)
    options = models.JSONField(
        default=list,
        blank=True,
        help_text="Allowed values for option fields",
    )
    active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]

    def __str__(self):
        return self.name

    def clean(self):
        super().clean()
        if self.type == self.TYPE_OPTION and not self.options:
            raise ValidationError(
                {"options": "Option fields need at least one option."}
            )

    @property
    def form_field_name(self):
        return f"cf-{self.pk}"


class CustomFieldValue(models.Model):
    """Value of a custom field on one asset."""

    asset = models.ForeignKey(
        Asset, on_delete=models.CASCADE, related_name="custom_field_values"
    )
    custom_field = models.ForeignKey(
        CustomField, on_delete=models.CASCADE, related_name="values"
    )
    value = models.JSONField(null=True, blank=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["asset", "custom_field"],
                name="unique_custom_field_value_per_asset",
            ),
        ]

    def __str__(self):
        return f"{self.custom_field.name}: {self.value}"


INDEX_COLUMNS = [
    ("id", "ID"),
    ("status", "Status"),
    ("description", "Description"),
    ("valuation", "Value"),
    ("qrId", "QR code ID"),
    ("createdAt", "Date created"),
    ("category", "Category"),
    ("tags", "Tags"),
    ("location", "Location"),
    ("kit", "Kit"),
    ("custody", "Custody"),
]


def default_index_columns():
    return [
        {"name": name, "visible": True, "position": position}
        for position, (name, _label) in enumerate(INDEX_COLUMNS)
    ]


class AssetIndexSettings(models.Model):
    """Per-user preferences for the asset index."""

    MODE_SIMPLE = "simple"
    MODE_ADVANCED = "advanced"

    MODE_CHOICES = [
        (MODE_SIMPLE, "Simple"),
        (MODE_ADVANCED, "Advanced"),
    ]

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="asset_index_settings",
    )
    mode = models.CharField(
        max_length=20, choices=MODE_CHOICES, default=MODE_SIMPLE
    )
    freeze_column = models.BooleanField(default=True)
    show_image = models.BooleanField(default=True)
    columns = models.JSONField(default=default_index_columns)

    class Meta:
        verbose_name_plural = "asset index settings"

    def __str__(self):
        return f"Index settings for {self.user}"

    @property
    def mode_is_simple(self):
        return self.mode == self.MODE_SIMPLE

    @property
    def mode_is_advanced(self):
        return self.mode == self.MODE_ADVANCED

    @property
    def visible_columns(self):
        """Names of the visible columns in display order."""
        ordered = sorted(self.columns, key=lambda c: c.get("position", 0))
        return [c["name"] for c in ordered if c.get("visible")]
