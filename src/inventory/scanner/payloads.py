"""JSON-safe snapshots of assets and kits carried by scanned items."""


def asset_payload(asset):
    return {
        "id": asset.pk,
        "title": asset.title,
        "status": asset.status,
        "kit_id": asset.kit_id,
    }


def kit_payload(kit):
    """Snapshot of a kit with its member assets.

    Uses the prefetched ``assets`` relation when the caller loaded it.
    """
    members = [
        {"id": a.pk, "title": a.title, "status": a.status}
        for a in kit.assets.all()
    ]
    return {
        "id": kit.pk,
        "name": kit.name,
        "status": kit.status,
        "assets": members,
        "asset_count": len(members),
    }
