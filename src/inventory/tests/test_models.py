"""Tests for inventory models."""

import pytest

from django.core.exceptions import ValidationError
from django.db import IntegrityError

from inventory.factories import (
    AssetFactory,
    CustomFieldFactory,
    KitFactory,
    QrFactory,
    TeamMemberFactory,
    UserFactory,
)
from inventory.models import (
    Asset,
    AssetIndexSettings,
    CustomField,
    Qr,
    TeamMember,
)


class TestQr:
    def test_generated_id(self, db):
        qr = Qr.objects.create()
        assert qr.pk
        assert len(qr.pk) <= 40

    def test_cannot_link_asset_and_kit(self, db):
        qr = QrFactory.build(asset=AssetFactory(), kit=KitFactory())
        with pytest.raises(ValidationError):
            qr.full_clean()

    def test_database_rejects_asset_and_kit(self, db):
        with pytest.raises(IntegrityError):
            QrFactory(asset=AssetFactory(), kit=KitFactory())

    def test_asset_qr_id(self, asset):
        assert asset.qr_id == "qr-asset-1"


class TestTeamMember:
    def test_name_without_user(self, db):
        member = TeamMemberFactory(name="Sam Lee")
        assert member.resolved_name() == "Sam Lee"
        assert str(member) == "Sam Lee"

    def test_name_from_linked_user(self, db):
        user = UserFactory(display_name="Robin Park", email="robin@x.com")
        member = TeamMemberFactory(name="ignored", user=user)
        assert member.resolved_name() == "Robin Park"
        assert (
            member.resolved_name(include_email=True)
            == "Robin Park (robin@x.com)"
        )

    def test_active_excludes_deleted(self, db):
        from django.utils import timezone

        kept = TeamMemberFactory()
        TeamMemberFactory(deleted_at=timezone.now())
        assert list(TeamMember.objects.active()) == [kept]


class TestAsset:
    def test_defaults(self, db):
        asset = AssetFactory()
        assert asset.status == Asset.STATUS_AVAILABLE
        assert asset.custodian is None

    def test_custodian(self, db):
        from inventory.factories import CustodyFactory

        custody = CustodyFactory()
        assert custody.asset.custodian == custody.custodian


class TestCustomField:
    def test_option_field_needs_options(self, db):
        field = CustomFieldFactory.build(
            type=CustomField.TYPE_OPTION, options=[]
        )
        with pytest.raises(ValidationError):
            field.full_clean()

    def test_form_field_name(self, db):
        field = CustomFieldFactory()
        assert field.form_field_name == f"cf-{field.pk}"


class TestAssetIndexSettings:
    def test_default_columns_cover_every_column(self, user):
        index_settings = AssetIndexSettings.objects.create(user=user)
        names = [c["name"] for c in index_settings.columns]
        assert names[0] == "id"
        assert index_settings.mode_is_simple
        assert index_settings.visible_columns == names
