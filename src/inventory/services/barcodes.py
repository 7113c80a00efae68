"""Barcode value validation per symbology."""

import re

from ..models import Barcode

# Printable ASCII
CODE128_PATTERN = re.compile(r"^[\x20-\x7E]{4,40}$")
CODE39_PATTERN = re.compile(r"^[A-Z0-9 \-.$/+%]{4,43}$")
DATAMATRIX_MAX_LENGTH = 100
MIN_LENGTH = 4


def barcode_value_error(barcode_type, value):
    """Return an error message for ``value`` or None when it is valid."""
    value = (value or "").strip()
    if not value:
        return "Barcode value is required."

    if barcode_type == Barcode.TYPE_CODE128:
        if not CODE128_PATTERN.match(value):
            return (
                "Code 128 barcodes must be 4-40 printable ASCII characters."
            )
    elif barcode_type == Barcode.TYPE_CODE39:
        if not CODE39_PATTERN.match(value):
            return (
                "Code 39 barcodes must be 4-43 characters of A-Z, 0-9, "
                "space or - . $ / + %."
            )
    elif barcode_type == Barcode.TYPE_DATAMATRIX:
        if not MIN_LENGTH <= len(value) <= DATAMATRIX_MAX_LENGTH:
            return "Data Matrix barcodes must be 4-100 characters."
    else:
        return f"'{barcode_type}' is not a supported barcode type."
    return None
