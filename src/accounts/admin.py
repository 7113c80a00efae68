"""Admin configuration for accounts app."""

from unfold.admin import ModelAdmin
from unfold.decorators import display

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from .models import CustomUser


@admin.register(CustomUser)
class CustomUserAdmin(UserAdmin, ModelAdmin):
    model = CustomUser
    list_display = [
        "display_user",
        "email",
        "display_role",
        "is_active",
    ]
    list_filter = ["role", "is_active", "is_staff", "is_superuser"]
    search_fields = ["username", "email", "display_name"]
    fieldsets = UserAdmin.fieldsets + (
        ("Organisation", {"fields": ("display_name", "role")}),
    )
    add_fieldsets = UserAdmin.add_fieldsets + (
        ("Organisation", {"fields": ("email", "display_name", "role")}),
    )

    @display(description="User", ordering="username")
    def display_user(self, obj):
        return obj.get_display_name()

    @display(
        description="Role",
        ordering="role",
        label={
            CustomUser.ROLE_OWNER: "danger",
            CustomUser.ROLE_ADMIN: "warning",
            CustomUser.ROLE_SELF_SERVICE: "info",
            CustomUser.ROLE_BASE: "success",
        },
    )
    def display_role(self, obj):
        return obj.role
