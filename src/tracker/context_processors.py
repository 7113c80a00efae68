"""Context processors for site-wide template variables."""

from django.conf import settings


def site_settings(request):
    """Add site configuration to template context."""
    return {"SITE_NAME": settings.SITE_NAME}


def user_role(request):
    """Expose the current user's role and custody visibility to templates."""
    user = getattr(request, "user", None)
    if user is None or not user.is_authenticated:
        return {
            "user_role": "anonymous",
            "can_see_all_custody": False,
            "can_assign_custody": False,
        }

    from inventory.services.permissions import (
        can_assign_custody,
        get_user_role,
        user_has_custody_view_permission,
    )

    return {
        "user_role": get_user_role(user),
        "can_see_all_custody": user_has_custody_view_permission(user),
        "can_assign_custody": can_assign_custody(user),
    }
