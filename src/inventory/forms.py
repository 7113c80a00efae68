"""Forms for the inventory app."""

import logging

from django import forms
from django.db import transaction as db_transaction
from django.forms import inlineformset_factory

from .models import (
    Asset,
    Barcode,
    Category,
    Location,
    Note,
    Qr,
    Tag,
    TeamMember,
)
from .services.barcodes import barcode_value_error
from .services.custom_fields import (
    active_custom_fields,
    build_form_field,
    initial_values,
    save_custom_field_values,
)
from .services.images import (
    process_asset_image,
    store_asset_image,
    validate_asset_image,
)

logger = logging.getLogger(__name__)

INPUT_CLASS = "form-input w-full rounded-lg px-4 py-2.5"


class AssetForm(forms.Form):
    """Asset create/edit form with the organisation's custom fields.

    ``instance`` is the asset being edited, or None when creating.
    """

    title = forms.CharField(
        max_length=200,
        min_length=2,
        error_messages={
            "required": "Name is required",
            "min_length": "Name is required",
        },
        widget=forms.TextInput(
            attrs={"class": INPUT_CLASS, "placeholder": "Asset name"}
        ),
    )
    description = forms.CharField(
        required=False,
        max_length=1000,
        widget=forms.Textarea(attrs={"class": INPUT_CLASS, "rows": 5}),
    )
    category = forms.ModelChoiceField(
        queryset=Category.objects.all(),
        required=False,
        widget=forms.Select(attrs={"class": INPUT_CLASS}),
    )
    new_location_id = forms.ModelChoiceField(
        queryset=Location.objects.all(),
        required=False,
        label="Location",
        widget=forms.Select(attrs={"class": INPUT_CLASS}),
    )
    current_location_id = forms.CharField(
        required=False, widget=forms.HiddenInput
    )
    qr_id = forms.CharField(required=False, widget=forms.HiddenInput)
    tags = forms.CharField(
        required=False,
        help_text="Comma separated tag ids",
        widget=forms.HiddenInput(attrs={"id": "id_tags"}),
    )
    valuation = forms.DecimalField(
        required=False,
        min_value=0,
        max_digits=12,
        decimal_places=2,
        label="Value",
        widget=forms.NumberInput(
            attrs={"class": INPUT_CLASS, "step": "0.01", "min": "0"}
        ),
    )
    add_another = forms.CharField(required=False, widget=forms.HiddenInput)
    main_image = forms.FileField(
        required=False,
        widget=forms.ClearableFileInput(
            attrs={"accept": "image/png,image/jpeg"}
        ),
    )

    def __init__(self, *args, instance=None, **kwargs):
        self.instance = instance
        if instance is not None and "initial" not in kwargs:
            kwargs["initial"] = {
                "title": instance.title,
                "description": instance.description,
                "category": instance.category_id,
                "new_location_id": instance.location_id,
                "current_location_id": instance.location_id or "",
                "tags": ",".join(
                    str(tag.pk) for tag in instance.tags.all()
                ),
                "valuation": instance.valuation,
                **initial_values(instance),
            }
        super().__init__(*args, **kwargs)
        self.custom_fields = active_custom_fields()
        for custom_field in self.custom_fields:
            self.fields[custom_field.form_field_name] = build_form_field(
                custom_field
            )

    def clean_title(self):
        title = self.cleaned_data["title"].strip()
        if len(title) < 2:
            raise forms.ValidationError("Name is required")
        return title

    def clean_tags(self):
        raw = self.cleaned_data.get("tags", "")
        ids = [part.strip() for part in raw.split(",") if part.strip()]
        if not ids:
            return []
        if not all(tag_id.isdigit() for tag_id in ids):
            raise forms.ValidationError("Invalid tag selection.")
        tags = list(Tag.objects.filter(pk__in=ids))
        if len(tags) != len(set(ids)):
            raise forms.ValidationError(
                "Some of the selected tags no longer exist."
            )
        return tags

    def clean_qr_id(self):
        qr_id = self.cleaned_data.get("qr_id", "").strip()
        if not qr_id or self.instance is not None:
            return None
        qr = Qr.objects.filter(pk=qr_id).first()
        if qr is None:
            raise forms.ValidationError("This QR code is not found.")
        if qr.asset_id or qr.kit_id:
            raise forms.ValidationError(
                "This QR code is already linked to an asset or kit."
            )
        return qr

    def clean_add_another(self):
        return self.cleaned_data.get("add_another") == "true"

    def clean_main_image(self):
        image = self.cleaned_data.get("main_image")
        if image:
            validate_asset_image(image)
        return image

    @property
    def location_changed(self):
        """True when the picked location differs from the submitted one."""
        new = self.cleaned_data.get("new_location_id")
        new_id = str(new.pk) if new else ""
        return new_id != (self.cleaned_data.get("current_location_id") or "")

    def _location_note(self, asset, user, previous):
        location = asset.location
        if location is None:
            content = (
                f"{user.get_display_name()} removed the location of "
                f"**{asset.title}**."
            )
        elif previous is None:
            content = (
                f"{user.get_display_name()} set the location of "
                f"**{asset.title}** to **{location.name}**."
            )
        else:
            content = (
                f"{user.get_display_name()} updated the location of "
                f"**{asset.title}** from **{previous.name}** to "
                f"**{location.name}**."
            )
        Note.objects.create(
            asset=asset, user=user, type=Note.TYPE_UPDATE, content=content
        )

    def save(self, user, barcodes=None):
        """Create or update the asset; returns it.

        ``barcodes`` is a bound, valid ``BarcodeFormSet`` or None.
        Raises ``ValidationError`` if the image cannot be processed or
        stored; nothing is written to the database in that case.
        """
        data = self.cleaned_data
        creating = self.instance is None
        asset = Asset(created_by=user) if creating else self.instance
        images = None
        if data.get("main_image"):
            images = process_asset_image(data["main_image"])

        with db_transaction.atomic():
            asset.title = data["title"]
            asset.description = data.get("description", "").strip()
            asset.category = data.get("category")
            asset.valuation = data.get("valuation")
            previous = None
            location_changed = self.location_changed
            if location_changed:
                previous = asset.location
                asset.location = data.get("new_location_id")
            asset.save()

            asset.tags.set(data["tags"])
            save_custom_field_values(asset, self.custom_fields, data)

            if creating:
                qr = data.get("qr_id")
                if qr is None:
                    Qr.objects.create(asset=asset)
                else:
                    qr.asset = asset
                    qr.save(update_fields=["asset"])

            if location_changed and (previous or asset.location):
                self._location_note(asset, user, previous)

            if barcodes is not None:
                barcodes.instance = asset
                barcodes.save()

            if images is not None:
                store_asset_image(asset, *images)

        logger.info(
            "Asset %s %s by %s",
            asset.pk,
            "created" if creating else "updated",
            user.pk,
        )
        return asset


class BarcodeForm(forms.ModelForm):
    class Meta:
        model = Barcode
        fields = ["type", "value"]
        widgets = {
            "type": forms.Select(attrs={"class": INPUT_CLASS}),
            "value": forms.TextInput(attrs={"class": INPUT_CLASS}),
        }

    def clean_value(self):
        value = self.cleaned_data["value"].strip()
        error = barcode_value_error(self.cleaned_data.get("type"), value)
        if error:
            raise forms.ValidationError(error)
        return value


BarcodeFormSet = inlineformset_factory(
    Asset,
    Barcode,
    form=BarcodeForm,
    extra=0,
    can_delete=True,
)


class IdListField(forms.Field):
    """Repeated hidden inputs holding integer ids."""

    widget = forms.MultipleHiddenInput

    def to_python(self, value):
        if not value:
            return []
        if isinstance(value, str):
            value = [value]
        ids = []
        for item in value:
            try:
                pk = int(item)
            except (TypeError, ValueError):
                raise forms.ValidationError(f"'{item}' is not a valid id.")
            if pk not in ids:
                ids.append(pk)
        return ids


class AssignCustodyForm(forms.Form):
    """Custodian picker submitted from the scanner drawer."""

    custodian = forms.ModelChoiceField(
        queryset=TeamMember.objects.active().select_related("user"),
        error_messages={"required": "Please select a custodian"},
        widget=forms.Select(attrs={"class": INPUT_CLASS}),
    )
    asset_ids = IdListField(required=False)
    kit_ids = IdListField(required=False)

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["custodian"].label_from_instance = (
            lambda member: member.resolved_name(include_email=True)
        )

    def clean(self):
        cleaned = super().clean()
        if not cleaned.get("asset_ids") and not cleaned.get("kit_ids"):
            raise forms.ValidationError("Scan at least one asset or kit.")
        return cleaned
