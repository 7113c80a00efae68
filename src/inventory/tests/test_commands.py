"""Tests for inventory management commands."""

from io import StringIO

import pytest

from django.contrib.auth.models import Group
from django.core.management import call_command

from inventory.services.permissions import (
    can_assign_custody,
    user_has_custody_view_permission,
)


@pytest.mark.django_db
class TestSetupGroups:
    def test_creates_groups(self):
        out = StringIO()
        call_command("setup_groups", stdout=out)
        names = set(Group.objects.values_list("name", flat=True))
        assert names == {"Custody Manager", "Custody Viewer", "Viewer"}
        assert "All permission groups configured." in out.getvalue()

    def test_is_idempotent(self):
        call_command("setup_groups", stdout=StringIO())
        call_command("setup_groups", stdout=StringIO())
        manager = Group.objects.get(name="Custody Manager")
        assert manager.permissions.filter(
            codename="can_assign_custody"
        ).exists()

    def test_custody_manager_can_assign(self, user):
        call_command("setup_groups", stdout=StringIO())
        user.groups.add(Group.objects.get(name="Custody Manager"))
        from django.contrib.auth import get_user_model

        user = get_user_model().objects.get(pk=user.pk)
        assert can_assign_custody(user)
        assert user_has_custody_view_permission(user)

    def test_viewer_cannot_assign(self, user):
        call_command("setup_groups", stdout=StringIO())
        user.groups.add(Group.objects.get(name="Viewer"))
        assert not can_assign_custody(user)
