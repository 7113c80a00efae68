"""Organisation-defined custom fields on the asset form."""

from django import forms

from ..models import CustomField, CustomFieldValue


def active_custom_fields():
    return list(CustomField.objects.filter(active=True))


def build_form_field(custom_field):
    """Django form field matching a custom field's type."""
    kwargs = {
        "label": custom_field.name,
        "required": custom_field.required,
        "help_text": custom_field.help_text,
    }
    if custom_field.type == CustomField.TYPE_NUMBER:
        return forms.DecimalField(**kwargs)
    if custom_field.type == CustomField.TYPE_DATE:
        return forms.DateField(
            widget=forms.DateInput(attrs={"type": "date"}), **kwargs
        )
    if custom_field.type == CustomField.TYPE_BOOLEAN:
        return forms.BooleanField(**kwargs)
    if custom_field.type == CustomField.TYPE_OPTION:
        choices = [(option, option) for option in custom_field.options]
        if not custom_field.required:
            choices.insert(0, ("", "---------"))
        return forms.ChoiceField(choices=choices, **kwargs)
    return forms.CharField(max_length=1000, **kwargs)


def to_json_value(custom_field, value):
    """Form value -> what is stored in ``CustomFieldValue.value``."""
    if value in (None, ""):
        return None
    if custom_field.type == CustomField.TYPE_NUMBER:
        return str(value)
    if custom_field.type == CustomField.TYPE_DATE:
        return value.isoformat()
    if custom_field.type == CustomField.TYPE_TEXT:
        return value.strip() or None
    return value


def initial_values(asset):
    """Initial form data for an existing asset's custom fields."""
    if asset is None or asset.pk is None:
        return {}
    return {
        value.custom_field.form_field_name: value.value
        for value in asset.custom_field_values.select_related("custom_field")
    }


def save_custom_field_values(asset, custom_fields, cleaned_data):
    """Create, update or drop the asset's custom field values."""
    for custom_field in custom_fields:
        value = to_json_value(
            custom_field, cleaned_data.get(custom_field.form_field_name)
        )
        if value is None or value is False:
            CustomFieldValue.objects.filter(
                asset=asset, custom_field=custom_field
            ).delete()
            continue
        CustomFieldValue.objects.update_or_create(
            asset=asset,
            custom_field=custom_field,
            defaults={"value": value},
        )
