"""Resolve a scanned code to the asset or kit it labels.

Lookups never raise for a bad code: the outcome is returned as
``(kind, payload, error)`` so the scanner can show the error on the
scanned row.
"""

from django.db.models import Prefetch

from ..models import Asset, Barcode, Kit, Qr
from ..scanner.payloads import asset_payload, kit_payload
from ..scanner.session import KIND_ASSET, KIND_KIT
from .permissions import can_assign_custody

NOT_FOUND = "This QR code is not found."
NOT_LINKED = "This QR code is not linked to any asset or kit."
UNAUTHORIZED = "You are not authorized to use this QR code."


def _load_kit(kit_id):
    return Kit.objects.prefetch_related(
        Prefetch("assets", queryset=Asset.objects.order_by("title"))
    ).get(pk=kit_id)


def resolve_scan(code, user):
    """Look up ``code`` on behalf of ``user``.

    Tries, in order: the QR code id, then an asset barcode value
    (case-insensitive, scanners differ in case handling).
    """
    code = (code or "").strip()
    if not code:
        return None, None, "No code was scanned."

    if not can_assign_custody(user):
        return None, None, UNAUTHORIZED

    qr = Qr.objects.select_related("asset").filter(pk=code).first()
    if qr is not None:
        if qr.asset_id:
            return KIND_ASSET, asset_payload(qr.asset), None
        if qr.kit_id:
            return KIND_KIT, kit_payload(_load_kit(qr.kit_id)), None
        return None, None, NOT_LINKED

    barcode = (
        Barcode.objects.select_related("asset")
        .filter(value__iexact=code)
        .first()
    )
    if barcode is not None:
        return KIND_ASSET, asset_payload(barcode.asset), None

    return None, None, NOT_FOUND
