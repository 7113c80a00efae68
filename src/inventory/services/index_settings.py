"""Per-user asset index preferences."""

import json
import logging

from django.core.exceptions import ValidationError

from ..models import INDEX_COLUMNS, AssetIndexSettings

logger = logging.getLogger(__name__)

INTENT_FREEZE = "changeFreeze"
INTENT_SHOW_IMAGE = "changeShowImage"
INTENT_MODE = "changeMode"
INTENT_COLUMNS = "changeColumns"
INTENTS = (INTENT_FREEZE, INTENT_SHOW_IMAGE, INTENT_MODE, INTENT_COLUMNS)

KNOWN_COLUMNS = {name for name, _label in INDEX_COLUMNS}


def get_index_settings(user):
    index_settings, _created = AssetIndexSettings.objects.get_or_create(
        user=user
    )
    return index_settings


def _as_bool(value):
    return str(value).lower() in ("1", "true", "yes", "on")


def parse_columns(raw):
    """Validate a column configuration posted as JSON.

    Unknown columns and duplicates are rejected; positions are
    renumbered from 0 in the posted order.
    """
    try:
        columns = json.loads(raw) if isinstance(raw, str) else raw
    except json.JSONDecodeError:
        raise ValidationError("Columns must be valid JSON.")
    if not isinstance(columns, list) or not columns:
        raise ValidationError("Columns must be a non-empty list.")
    seen = set()
    for column in columns:
        name = column.get("name") if isinstance(column, dict) else None
        if name not in KNOWN_COLUMNS:
            raise ValidationError(f"Unknown column '{name}'.")
        if name in seen:
            raise ValidationError(f"Column '{name}' is listed twice.")
        seen.add(name)
    ordered = sorted(
        columns, key=lambda c: c.get("position", columns.index(c))
    )
    return [
        {
            "name": column["name"],
            "visible": bool(column.get("visible", True)),
            "position": position,
        }
        for position, column in enumerate(ordered)
    ]


def apply_intent(user, intent, data):
    """Apply one settings change posted from the index header."""
    if intent not in INTENTS:
        raise ValidationError(f"Unknown intent '{intent}'.")
    index_settings = get_index_settings(user)
    if intent == INTENT_FREEZE:
        index_settings.freeze_column = _as_bool(data.get("freezeColumn"))
        fields = ["freeze_column"]
    elif intent == INTENT_SHOW_IMAGE:
        index_settings.show_image = _as_bool(data.get("showAssetImage"))
        fields = ["show_image"]
    elif intent == INTENT_MODE:
        mode = data.get("mode")
        if mode not in dict(AssetIndexSettings.MODE_CHOICES):
            raise ValidationError(f"Unknown mode '{mode}'.")
        index_settings.mode = mode
        fields = ["mode"]
    else:
        index_settings.columns = parse_columns(data.get("columns"))
        fields = ["columns"]
    index_settings.save(update_fields=fields)
    logger.debug("Index settings %s updated for user %s", fields, user.pk)
    return index_settings
