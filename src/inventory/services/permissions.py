"""Role checks for custody and asset management."""

from django.conf import settings
from django.contrib.auth import get_user_model

User = get_user_model()

ADMIN_ROLES = (User.ROLE_OWNER, User.ROLE_ADMIN)


def get_user_role(user: User) -> str:
    """Return the user's organisation role.

    Superusers count as owners whatever their stored role is.
    """
    if user.is_superuser:
        return User.ROLE_OWNER
    return user.role


def user_has_custody_view_permission(user: User) -> bool:
    """Whether the user may see who holds every asset.

    Owners and admins always can. Self service and base users depend on
    the organisation settings, and an explicit permission overrides both.
    """
    role = get_user_role(user)
    if role in ADMIN_ROLES:
        return True
    if user.has_perm("inventory.can_view_all_custody"):
        return True
    if role == User.ROLE_SELF_SERVICE:
        return settings.SELF_SERVICE_CAN_SEE_CUSTODY
    if role == User.ROLE_BASE:
        return settings.BASE_USER_CAN_SEE_CUSTODY
    return False


def can_assign_custody(user: User) -> bool:
    if get_user_role(user) in ADMIN_ROLES:
        return True
    return user.has_perm("inventory.can_assign_custody")


def can_manage_assets(user: User) -> bool:
    """Create and edit assets."""
    return get_user_role(user) in ADMIN_ROLES


def can_use_barcodes(user: User) -> bool:
    return get_user_role(user) in ADMIN_ROLES
