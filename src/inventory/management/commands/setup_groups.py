"""Management command to create the custody permission groups."""

from django.contrib.auth.models import Group, Permission
from django.contrib.contenttypes.models import ContentType
from django.core.management.base import BaseCommand

from inventory.models import Asset, Kit

GROUPS = {
    "Custody Manager": {
        Asset: [
            "view_asset",
            "add_asset",
            "change_asset",
            "can_assign_custody",
            "can_view_all_custody",
        ],
        Kit: ["view_kit", "change_kit"],
    },
    "Custody Viewer": {
        Asset: ["view_asset", "can_view_all_custody"],
        Kit: ["view_kit"],
    },
    "Viewer": {
        Asset: ["view_asset"],
        Kit: ["view_kit"],
    },
}


class Command(BaseCommand):
    help = "Create the permission groups used for custody workflows"

    def handle(self, *args, **options):
        for name, grants in GROUPS.items():
            permissions = []
            for model, codenames in grants.items():
                ct = ContentType.objects.get_for_model(model)
                permissions.extend(
                    Permission.objects.get(codename=codename, content_type=ct)
                    for codename in codenames
                )
            group, _ = Group.objects.get_or_create(name=name)
            group.permissions.set(permissions)
            self.stdout.write(
                self.style.SUCCESS(f"Created/updated '{name}' group")
            )

        self.stdout.write(
            self.style.SUCCESS("All permission groups configured.")
        )
