"""Tests for the inventory admin."""

import pytest

from django.urls import reverse


@pytest.fixture
def owner_client(client, owner_user, password):
    client.login(username=owner_user.username, password=password)
    return client


@pytest.mark.parametrize(
    "model",
    [
        "asset",
        "kit",
        "qr",
        "teammember",
        "category",
        "tag",
        "location",
        "custody",
        "kitcustody",
        "customfield",
        "assetindexsettings",
    ],
)
def test_changelist_renders(owner_client, asset, kit, team_member, model):
    response = owner_client.get(reverse(f"admin:inventory_{model}_changelist"))
    assert response.status_code == 200


def test_asset_change_form_renders(owner_client, asset):
    response = owner_client.get(
        reverse("admin:inventory_asset_change", args=[asset.pk])
    )
    assert response.status_code == 200
    assert b"Canon EOS R5" in response.content


def test_template_changelist_renders(owner_client):
    response = owner_client.get(reverse("admin:documents_template_changelist"))
    assert response.status_code == 200
