"""Tests for the accounts admin."""

import pytest

from django.contrib.auth import get_user_model
from django.urls import reverse

User = get_user_model()


@pytest.mark.django_db
class TestCustomUserAdmin:
    def test_admin_uses_unfold_model_admin(self):
        from unfold.admin import ModelAdmin as UnfoldModelAdmin

        from accounts.admin import CustomUserAdmin

        assert issubclass(CustomUserAdmin, UnfoldModelAdmin)

    def test_changelist_renders(self, client, owner_user, password):
        client.login(username=owner_user.username, password=password)
        response = client.get(reverse("admin:accounts_customuser_changelist"))
        assert response.status_code == 200

    def test_search_by_email(self, client, owner_user, user, password):
        client.login(username=owner_user.username, password=password)
        response = client.get(
            reverse("admin:accounts_customuser_changelist"),
            {"q": user.email},
        )
        assert response.status_code == 200
        assert user.email.encode() in response.content

    def test_role_in_change_form(self, client, owner_user, user, password):
        client.login(username=owner_user.username, password=password)
        response = client.get(
            reverse("admin:accounts_customuser_change", args=[user.pk])
        )
        assert response.status_code == 200
        assert b'name="role"' in response.content
