"""Bulk custody assignment for scanned assets and kits."""

import logging

from django.core.exceptions import ValidationError
from django.db import transaction as db_transaction

from ..models import Asset, Custody, Kit, KitCustody, Note
from ..scanner.blockers import evaluate_blockers
from ..scanner.payloads import asset_payload, kit_payload
from ..scanner.session import KIND_ASSET, KIND_KIT, ScanSession

logger = logging.getLogger(__name__)


def _blocker_session(assets, kits):
    """Rebuild a scan session from freshly loaded rows.

    Asset ids that belong to one of the submitted kits arrive as part of
    that kit and are not entered on their own.
    """
    session = ScanSession()
    for asset in assets:
        scan_id = f"asset-{asset.pk}"
        session.add(scan_id)
        session.settle(scan_id, KIND_ASSET, asset_payload(asset))
    for kit in kits:
        scan_id = f"kit-{kit.pk}"
        session.add(scan_id)
        session.settle(scan_id, KIND_KIT, kit_payload(kit))
    return session


def assign_custody(asset_ids, custodian, user, kit_ids=()):
    """Give ``custodian`` custody of the given assets and kits.

    ``asset_ids`` may include members of the kits in ``kit_ids`` (the
    scanner submits kit members alongside plain assets). The blockers are
    evaluated again on current database state; any blocker aborts the
    whole assignment with a ValidationError listing the blocker messages.

    Returns the list of created Custody rows.
    """
    if custodian.deleted_at is not None:
        raise ValidationError("The selected team member has been removed.")

    asset_ids = {int(pk) for pk in asset_ids}
    kit_ids = {int(pk) for pk in kit_ids}

    with db_transaction.atomic():
        kits = list(
            Kit.objects.select_for_update()
            .filter(pk__in=kit_ids)
            .prefetch_related("assets")
        )
        if len(kits) != len(kit_ids):
            raise ValidationError("Some of the scanned kits no longer exist.")
        kit_members = [a for kit in kits for a in kit.assets.all()]
        member_ids = {a.pk for a in kit_members}

        loose_ids = asset_ids - member_ids
        assets = list(
            Asset.objects.select_for_update().filter(pk__in=loose_ids)
        )
        if len(assets) != len(loose_ids):
            raise ValidationError(
                "Some of the scanned assets no longer exist."
            )

        report = evaluate_blockers(_blocker_session(assets, kits))
        if report.has_blockers:
            raise ValidationError([b.message for b in report])

        targets = assets + kit_members
        if not targets:
            raise ValidationError("Scan at least one asset or kit.")

        custodies = Custody.objects.bulk_create(
            [
                Custody(asset=asset, custodian=custodian, assigned_by=user)
                for asset in targets
            ]
        )
        Asset.objects.filter(pk__in=[a.pk for a in targets]).update(
            status=Asset.STATUS_IN_CUSTODY
        )
        KitCustody.objects.bulk_create(
            [
                KitCustody(kit=kit, custodian=custodian, assigned_by=user)
                for kit in kits
            ]
        )
        Kit.objects.filter(pk__in=kit_ids).update(
            status=Kit.STATUS_IN_CUSTODY
        )
        holder = custodian.resolved_name()
        Note.objects.bulk_create(
            [
                Note(
                    asset=asset,
                    user=user,
                    type=Note.TYPE_UPDATE,
                    content=(
                        f"{user.get_display_name()} granted {holder} "
                        f"custody."
                    ),
                )
                for asset in targets
            ]
        )

    logger.info(
        "Custody of %d assets and %d kits assigned to team member %s by %s",
        len(targets),
        len(kits),
        custodian.pk,
        user.pk,
    )
    return custodies


def release_custody(asset, user):
    """Take an asset back into the pool.

    Releasing one member of a kit in custody releases the kit as well.
    """
    with db_transaction.atomic():
        try:
            custody = asset.custody
        except Custody.DoesNotExist:
            raise ValidationError(f"'{asset}' is not in custody.")
        holder = custody.custodian.resolved_name()
        custody.delete()
        asset.status = Asset.STATUS_AVAILABLE
        asset.save(update_fields=["status", "updated_at"])
        Note.objects.create(
            asset=asset,
            user=user,
            type=Note.TYPE_UPDATE,
            content=f"{user.get_display_name()} released {holder}'s custody.",
        )
        if asset.kit_id:
            KitCustody.objects.filter(kit_id=asset.kit_id).delete()
            Kit.objects.filter(pk=asset.kit_id).update(
                status=Kit.STATUS_AVAILABLE
            )
    logger.info("Custody of asset %s released by %s", asset.pk, user.pk)
