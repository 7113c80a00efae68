"""Tests for inventory service functions."""

from io import BytesIO

import pytest
from PIL import Image

from django.core.exceptions import ValidationError
from django.core.files.uploadedfile import SimpleUploadedFile
from django.utils import timezone

from inventory.factories import (
    AssetFactory,
    BarcodeFactory,
    CustodyFactory,
    CustomFieldFactory,
    KitFactory,
    QrFactory,
    TeamMemberFactory,
    UserFactory,
)
from inventory.models import (
    Asset,
    Custody,
    CustomFieldValue,
    Kit,
    KitCustody,
    Note,
)


def _png(width=2400, height=1200, name="photo.png"):
    buf = BytesIO()
    Image.new("RGB", (width, height), color="red").save(buf, format="PNG")
    return SimpleUploadedFile(name, buf.getvalue(), content_type="image/png")


# ============================================================
# SCAN RESOLUTION
# ============================================================


@pytest.mark.django_db
class TestResolveScan:
    def test_qr_linked_to_asset(self, asset, admin_user):
        from inventory.services.resolve import resolve_scan

        kind, payload, error = resolve_scan("qr-asset-1", admin_user)
        assert error is None
        assert kind == "asset"
        assert payload == {
            "id": asset.pk,
            "title": "Canon EOS R5",
            "status": "available",
            "kit_id": None,
        }

    def test_qr_linked_to_kit_includes_members(self, kit, admin_user):
        from inventory.services.resolve import resolve_scan

        kind, payload, error = resolve_scan("qr-kit-1", admin_user)
        assert kind == "kit"
        assert payload["id"] == kit.pk
        assert [m["title"] for m in payload["assets"]] == [
            "Boom Pole",
            "Lav Mic",
        ]
        assert payload["asset_count"] == 2

    def test_barcode_match_is_case_insensitive(self, admin_user):
        from inventory.services.resolve import resolve_scan

        barcode = BarcodeFactory(value="ABC-123")
        kind, payload, error = resolve_scan("abc-123", admin_user)
        assert kind == "asset"
        assert payload["id"] == barcode.asset_id

    def test_unknown_code(self, admin_user):
        from inventory.services.resolve import NOT_FOUND, resolve_scan

        assert resolve_scan("nope", admin_user) == (None, None, NOT_FOUND)

    def test_unlinked_qr(self, admin_user):
        from inventory.services.resolve import NOT_LINKED, resolve_scan

        QrFactory(id="blank-qr")
        assert resolve_scan("blank-qr", admin_user) == (None, None, NOT_LINKED)

    def test_user_without_custody_rights(self, asset, user):
        from inventory.services.resolve import UNAUTHORIZED, resolve_scan

        assert resolve_scan("qr-asset-1", user) == (None, None, UNAUTHORIZED)

    def test_empty_code(self, admin_user):
        from inventory.services.resolve import resolve_scan

        _kind, _payload, error = resolve_scan("   ", admin_user)
        assert error == "No code was scanned."


# ============================================================
# CUSTODY
# ============================================================


@pytest.mark.django_db
class TestAssignCustody:
    def test_assigns_loose_assets(self, asset, team_member, admin_user):
        from inventory.services.custody import assign_custody

        custodies = assign_custody([asset.pk], team_member, admin_user)

        assert len(custodies) == 1
        asset.refresh_from_db()
        assert asset.status == Asset.STATUS_IN_CUSTODY
        assert asset.custody.custodian == team_member
        note = Note.objects.get(asset=asset)
        assert note.type == Note.TYPE_UPDATE
        assert "Jamie Rivers" in note.content

    def test_assigns_whole_kit(self, kit, team_member, admin_user):
        from inventory.services.custody import assign_custody

        member_ids = list(kit.assets.values_list("pk", flat=True))
        assign_custody(member_ids, team_member, admin_user, kit_ids=[kit.pk])

        kit.refresh_from_db()
        assert kit.status == Kit.STATUS_IN_CUSTODY
        assert KitCustody.objects.get(kit=kit).custodian == team_member
        assert Custody.objects.filter(asset__kit=kit).count() == 2
        assert not kit.assets.exclude(status="in_custody").exists()

    def test_kit_members_are_covered_without_listing_them(
        self, kit, team_member, admin_user
    ):
        from inventory.services.custody import assign_custody

        custodies = assign_custody(
            [], team_member, admin_user, kit_ids=[kit.pk]
        )
        assert len(custodies) == 2

    def test_blockers_abort_assignment(self, asset, team_member, admin_user):
        from inventory.services.custody import assign_custody

        held = CustodyFactory().asset
        with pytest.raises(ValidationError) as exc_info:
            assign_custody([asset.pk, held.pk], team_member, admin_user)

        assert exc_info.value.messages == ["1 asset is already in custody."]
        asset.refresh_from_db()
        assert asset.status == Asset.STATUS_AVAILABLE
        assert not Note.objects.exists()

    def test_lone_kit_member_is_blocked(self, kit, team_member, admin_user):
        from inventory.services.custody import assign_custody

        member = kit.assets.first()
        with pytest.raises(ValidationError) as exc_info:
            assign_custody([member.pk], team_member, admin_user)
        assert exc_info.value.messages == ["1 asset is part of a kit."]

    def test_kit_with_member_in_custody_is_blocked(
        self, kit, team_member, admin_user
    ):
        from inventory.services.custody import assign_custody

        member = kit.assets.first()
        CustodyFactory(asset=member)
        Asset.objects.filter(pk=member.pk).update(status="in_custody")

        with pytest.raises(ValidationError) as exc_info:
            assign_custody([], team_member, admin_user, kit_ids=[kit.pk])
        assert exc_info.value.messages == [
            "1 kit already has assets in custody."
        ]

    def test_checked_out_asset_is_blocked(self, team_member, admin_user):
        from inventory.services.custody import assign_custody

        asset = AssetFactory(status="checked_out")
        with pytest.raises(ValidationError, match="1 asset is checked out."):
            assign_custody([asset.pk], team_member, admin_user)

    def test_removed_custodian(self, asset, admin_user):
        from inventory.services.custody import assign_custody

        gone = TeamMemberFactory(deleted_at=timezone.now())
        with pytest.raises(ValidationError, match="has been removed"):
            assign_custody([asset.pk], gone, admin_user)

    def test_missing_asset(self, team_member, admin_user):
        from inventory.services.custody import assign_custody

        with pytest.raises(ValidationError, match="no longer exist"):
            assign_custody([999999], team_member, admin_user)

    def test_nothing_to_assign(self, team_member, admin_user):
        from inventory.services.custody import assign_custody

        empty_kit = KitFactory()
        with pytest.raises(ValidationError, match="at least one"):
            assign_custody([], team_member, admin_user, kit_ids=[empty_kit.pk])


@pytest.mark.django_db
class TestReleaseCustody:
    def test_release(self, asset, team_member, admin_user):
        from inventory.services.custody import assign_custody, release_custody

        assign_custody([asset.pk], team_member, admin_user)
        asset.refresh_from_db()
        release_custody(asset, admin_user)

        asset.refresh_from_db()
        assert asset.status == Asset.STATUS_AVAILABLE
        assert not Custody.objects.filter(asset=asset).exists()

    def test_release_kit_member_releases_kit(
        self, kit, team_member, admin_user
    ):
        from inventory.services.custody import assign_custody, release_custody

        assign_custody([], team_member, admin_user, kit_ids=[kit.pk])
        member = Asset.objects.get(pk=kit.assets.first().pk)
        release_custody(member, admin_user)

        kit.refresh_from_db()
        assert kit.status == Kit.STATUS_AVAILABLE
        assert not KitCustody.objects.filter(kit=kit).exists()

    def test_release_without_custody(self, asset, admin_user):
        from inventory.services.custody import release_custody

        with pytest.raises(ValidationError, match="not in custody"):
            release_custody(asset, admin_user)


# ============================================================
# PERMISSIONS
# ============================================================


@pytest.mark.django_db
class TestPermissions:
    def test_roles(self, user, admin_user, owner_user):
        from inventory.services.permissions import get_user_role

        assert get_user_role(user) == "base"
        assert get_user_role(admin_user) == "admin"
        assert get_user_role(owner_user) == "owner"

    def test_superuser_counts_as_owner(self):
        from inventory.services.permissions import get_user_role

        su = UserFactory(role="base", is_superuser=True)
        assert get_user_role(su) == "owner"

    def test_admins_see_all_custody(self, admin_user):
        from inventory.services.permissions import (
            user_has_custody_view_permission,
        )

        assert user_has_custody_view_permission(admin_user) is True

    def test_self_service_follows_setting(self, settings, self_service_user):
        from inventory.services.permissions import (
            user_has_custody_view_permission,
        )

        settings.SELF_SERVICE_CAN_SEE_CUSTODY = False
        assert user_has_custody_view_permission(self_service_user) is False
        settings.SELF_SERVICE_CAN_SEE_CUSTODY = True
        assert user_has_custody_view_permission(self_service_user) is True

    def test_base_user_follows_setting(self, settings, user):
        from inventory.services.permissions import (
            user_has_custody_view_permission,
        )

        settings.BASE_USER_CAN_SEE_CUSTODY = True
        assert user_has_custody_view_permission(user) is True

    def test_custody_permission_grant(self, user):
        from django.contrib.auth.models import Permission

        from inventory.services.permissions import can_assign_custody

        assert can_assign_custody(user) is False
        user.user_permissions.add(
            Permission.objects.get(codename="can_assign_custody")
        )
        fresh = type(user).objects.get(pk=user.pk)
        assert can_assign_custody(fresh) is True


# ============================================================
# BARCODES
# ============================================================


class TestBarcodeValidation:
    @pytest.mark.parametrize(
        "barcode_type,value",
        [
            ("code128", "Ab-12 x"),
            ("code39", "ABC-123 $/+%"),
            ("datamatrix", "any value ~ with unicode é"),
        ],
    )
    def test_valid(self, barcode_type, value):
        from inventory.services.barcodes import barcode_value_error

        assert barcode_value_error(barcode_type, value) is None

    @pytest.mark.parametrize(
        "barcode_type,value",
        [
            ("code128", "abc"),
            ("code128", "x" * 41),
            ("code39", "abcd"),
            ("code39", "A" * 44),
            ("datamatrix", "abc"),
            ("datamatrix", "x" * 101),
            ("code128", ""),
            ("ean13", "12345678"),
        ],
    )
    def test_invalid(self, barcode_type, value):
        from inventory.services.barcodes import barcode_value_error

        assert barcode_value_error(barcode_type, value)


# ============================================================
# INDEX SETTINGS
# ============================================================


@pytest.mark.django_db
class TestIndexSettings:
    def test_defaults(self, user):
        from inventory.services.index_settings import get_index_settings

        index_settings = get_index_settings(user)
        assert index_settings.mode_is_simple
        assert index_settings.freeze_column is True
        assert index_settings.show_image is True
        assert index_settings.visible_columns[0] == "id"

    def test_change_freeze_and_image(self, user):
        from inventory.services.index_settings import apply_intent

        apply_intent(user, "changeFreeze", {"freezeColumn": "no"})
        index_settings = apply_intent(
            user, "changeShowImage", {"showAssetImage": "no"}
        )
        index_settings.refresh_from_db()
        assert index_settings.freeze_column is False
        assert index_settings.show_image is False

    def test_change_mode(self, user):
        from inventory.services.index_settings import apply_intent

        index_settings = apply_intent(user, "changeMode", {"mode": "advanced"})
        assert index_settings.mode_is_advanced

    def test_change_mode_rejects_unknown(self, user):
        from inventory.services.index_settings import apply_intent

        with pytest.raises(ValidationError):
            apply_intent(user, "changeMode", {"mode": "fancy"})

    def test_change_columns(self, user):
        from inventory.services.index_settings import apply_intent

        columns = (
            '[{"name": "status", "visible": true, "position": 1},'
            ' {"name": "id", "visible": false, "position": 0},'
            ' {"name": "kit", "visible": true, "position": 2}]'
        )
        index_settings = apply_intent(
            user, "changeColumns", {"columns": columns}
        )
        assert index_settings.visible_columns == ["status", "kit"]
        assert [c["position"] for c in index_settings.columns] == [0, 1, 2]

    def test_change_columns_rejects_unknown_column(self, user):
        from inventory.services.index_settings import apply_intent

        with pytest.raises(ValidationError, match="Unknown column"):
            apply_intent(
                user, "changeColumns", {"columns": '[{"name": "secret"}]'}
            )

    def test_unknown_intent(self, user):
        from inventory.services.index_settings import apply_intent

        with pytest.raises(ValidationError):
            apply_intent(user, "changeEverything", {})


# ============================================================
# CUSTOM FIELDS
# ============================================================


@pytest.mark.django_db
class TestCustomFields:
    def test_form_field_types(self):
        from django import forms

        from inventory.services.custom_fields import build_form_field

        assert isinstance(
            build_form_field(CustomFieldFactory(type="number")),
            forms.DecimalField,
        )
        assert isinstance(
            build_form_field(CustomFieldFactory(type="date")),
            forms.DateField,
        )
        option = build_form_field(
            CustomFieldFactory(type="option", options=["Red", "Blue"])
        )
        assert ("Red", "Red") in option.choices

    def test_save_and_clear_values(self, asset):
        from inventory.services.custom_fields import save_custom_field_values

        field = CustomFieldFactory(name="Serial", type="text")
        save_custom_field_values(
            asset, [field], {field.form_field_name: " SN-1 "}
        )
        assert CustomFieldValue.objects.get(asset=asset).value == "SN-1"

        save_custom_field_values(asset, [field], {field.form_field_name: ""})
        assert not CustomFieldValue.objects.filter(asset=asset).exists()

    def test_option_field_requires_options(self):
        field = CustomFieldFactory.build(type="option", options=[])
        with pytest.raises(ValidationError):
            field.clean()


# ============================================================
# IMAGES
# ============================================================


@pytest.mark.django_db
class TestAssetImages:
    def test_rejects_wrong_extension(self):
        from inventory.services.images import validate_asset_image

        upload = _png(name="photo.gif")
        with pytest.raises(ValidationError, match="PNG, JPG or JPEG"):
            validate_asset_image(upload)

    def test_rejects_large_files(self, settings):
        from inventory.services.images import validate_asset_image

        settings.ASSET_IMAGE_MAX_BYTES = 10
        with pytest.raises(ValidationError, match="too big"):
            validate_asset_image(_png())

    def test_rejects_non_images(self):
        from inventory.services.images import validate_asset_image

        upload = SimpleUploadedFile("photo.png", b"not an image")
        with pytest.raises(ValidationError, match="not a valid image"):
            validate_asset_image(upload)

    def test_resize_keeps_aspect_ratio(self, settings):
        from inventory.services.images import process_asset_image

        settings.ASSET_IMAGE_WIDTH = 1200
        main, thumbnail = process_asset_image(_png(2400, 1200))
        with Image.open(main) as img:
            assert img.size == (1200, 600)
            assert img.format == "JPEG"
        with Image.open(thumbnail) as img:
            assert max(img.size) <= 108

    def test_small_images_are_not_enlarged(self):
        from inventory.services.images import process_asset_image

        main, _thumbnail = process_asset_image(_png(300, 200))
        with Image.open(main) as img:
            assert img.size == (300, 200)

    def test_save_asset_image(self, asset, media_root):
        from inventory.services.images import save_asset_image

        save_asset_image(asset, _png(1600, 800))
        asset.refresh_from_db()
        assert asset.main_image.name.endswith(".jpg")
        assert asset.thumbnail_image.name.startswith("thumbnails/")

    def test_undecodable_image_raises_validation_error(self):
        from inventory.services.images import process_asset_image

        upload = SimpleUploadedFile("photo.png", b"\x89PNG\r\n\x1a\ntruncated")
        with pytest.raises(ValidationError, match="could not be processed"):
            process_asset_image(upload)
        assert upload.tell() == 0
