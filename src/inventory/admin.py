"""Admin configuration for the inventory app using django-unfold."""

from unfold.admin import ModelAdmin, TabularInline
from unfold.contrib.filters.admin import (
    ChoicesDropdownFilter,
    MultipleRelatedDropdownFilter,
    RelatedDropdownFilter,
)
from unfold.decorators import display

from django.contrib import admin

from .models import (
    Asset,
    AssetIndexSettings,
    Barcode,
    Category,
    Custody,
    CustomField,
    CustomFieldValue,
    Kit,
    KitCustody,
    Location,
    Note,
    Qr,
    Tag,
    TeamMember,
)

STATUS_LABELS = {
    Asset.STATUS_AVAILABLE: "success",
    Asset.STATUS_IN_CUSTODY: "info",
    Asset.STATUS_CHECKED_OUT: "warning",
}


class QrInline(TabularInline):
    model = Qr
    fk_name = "asset"
    extra = 0
    fields = ["id", "created_at"]
    readonly_fields = ["id", "created_at"]


class BarcodeInline(TabularInline):
    model = Barcode
    extra = 0
    fields = ["type", "value"]


class CustomFieldValueInline(TabularInline):
    model = CustomFieldValue
    extra = 0
    fields = ["custom_field", "value"]


class NoteInline(TabularInline):
    model = Note
    extra = 0
    fields = ["type", "content", "user", "created_at"]
    readonly_fields = ["created_at"]


@admin.register(Category)
class CategoryAdmin(ModelAdmin):
    list_display = ["name", "color", "display_asset_count"]
    search_fields = ["name", "description"]

    @display(description="Assets")
    def display_asset_count(self, obj):
        return obj.assets.count()


@admin.register(Tag)
class TagAdmin(ModelAdmin):
    list_display = ["name", "display_asset_count"]
    search_fields = ["name"]

    @display(description="Assets")
    def display_asset_count(self, obj):
        return obj.assets.count()


@admin.register(Location)
class LocationAdmin(ModelAdmin):
    list_display = ["name", "address", "display_asset_count"]
    search_fields = ["name", "address"]

    @display(description="Assets")
    def display_asset_count(self, obj):
        return obj.assets.count()


@admin.register(TeamMember)
class TeamMemberAdmin(ModelAdmin):
    list_display = ["display_name", "user", "display_active"]
    search_fields = ["name", "user__email", "user__username"]
    autocomplete_fields = ["user"]

    @display(description="Team member", ordering="name")
    def display_name(self, obj):
        return obj.resolved_name(include_email=True)

    @display(description="Active", boolean=True)
    def display_active(self, obj):
        return obj.deleted_at is None


@admin.register(Kit)
class KitAdmin(ModelAdmin):
    list_display = ["name", "display_status", "display_asset_count"]
    list_filter = [("status", ChoicesDropdownFilter)]
    list_filter_submit = True
    search_fields = ["name", "description"]

    @display(description="Status", label=STATUS_LABELS)
    def display_status(self, obj):
        return obj.status

    @display(description="Assets")
    def display_asset_count(self, obj):
        return obj.assets.count()


@admin.register(Asset)
class AssetAdmin(ModelAdmin):
    list_display = [
        "display_header",
        "display_status",
        "category",
        "location",
        "kit",
        "display_custodian",
        "updated_at",
    ]
    list_filter = [
        ("status", ChoicesDropdownFilter),
        ("category", RelatedDropdownFilter),
        ("location", RelatedDropdownFilter),
        ("kit", RelatedDropdownFilter),
        ("tags", MultipleRelatedDropdownFilter),
    ]
    list_filter_submit = True
    search_fields = ["title", "description", "qr_codes__id", "barcodes__value"]
    readonly_fields = ["created_at", "updated_at"]
    autocomplete_fields = ["category", "location", "kit"]
    filter_horizontal = ["tags"]
    inlines = [QrInline, BarcodeInline, CustomFieldValueInline, NoteInline]

    def get_queryset(self, request):
        return super().get_queryset(request).select_related(
            "category", "location", "kit", "custody__custodian__user"
        )

    @display(description="Asset", header=True, ordering="title")
    def display_header(self, obj):
        return obj.title, obj.qr_id or "-"

    @display(description="Status", label=STATUS_LABELS)
    def display_status(self, obj):
        return obj.status

    @display(description="Custodian")
    def display_custodian(self, obj):
        custodian = obj.custodian
        return custodian.resolved_name() if custodian else "-"


@admin.register(Qr)
class QrAdmin(ModelAdmin):
    list_display = ["id", "asset", "kit", "created_at"]
    search_fields = ["id", "asset__title", "kit__name"]
    autocomplete_fields = ["asset", "kit"]


@admin.register(Custody)
class CustodyAdmin(ModelAdmin):
    list_display = ["asset", "custodian", "assigned_by", "created_at"]
    autocomplete_fields = ["asset", "custodian"]


@admin.register(KitCustody)
class KitCustodyAdmin(ModelAdmin):
    list_display = ["kit", "custodian", "assigned_by", "created_at"]
    autocomplete_fields = ["kit", "custodian"]


@admin.register(CustomField)
class CustomFieldAdmin(ModelAdmin):
    list_display = ["name", "type", "required", "active"]
    list_filter = [("type", ChoicesDropdownFilter), "active"]
    search_fields = ["name"]


@admin.register(AssetIndexSettings)
class AssetIndexSettingsAdmin(ModelAdmin):
    list_display = ["user", "mode", "freeze_column", "show_image"]
