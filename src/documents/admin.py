"""Admin configuration for document templates using django-unfold."""

from unfold.admin import ModelAdmin
from unfold.contrib.filters.admin import ChoicesDropdownFilter
from unfold.decorators import display

from django.contrib import admin

from .models import Template


@admin.register(Template)
class TemplateAdmin(ModelAdmin):
    list_display = [
        "display_header",
        "type",
        "display_default",
        "display_active",
        "updated_at",
    ]
    list_filter = [("type", ChoicesDropdownFilter), "is_active", "is_default"]
    list_filter_submit = True
    search_fields = ["name", "description", "user__email"]
    readonly_fields = ["pdf_url", "pdf_size", "created_at", "updated_at"]

    @display(description="Template", header=True, ordering="name")
    def display_header(self, obj):
        return obj.name, obj.pdf_name or "-"

    @display(description="Default", boolean=True)
    def display_default(self, obj):
        return obj.is_default

    @display(description="Active", boolean=True)
    def display_active(self, obj):
        return obj.is_active
