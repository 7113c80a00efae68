"""Custody blockers for the scanner drawer.

Given the scanned items of a session, work out which of them stop a bulk
custody assignment and how to clear them. Evaluation is a pure function
of the mapping it is handed: callers re-run it after every change to the
session and never keep a result around across changes.
"""

from ..models import Asset, Kit
from .session import KIND_ASSET, KIND_KIT

REMOVE_BY_ASSET = "asset"
REMOVE_BY_SCAN = "scan"


def _pluralize(count, singular, plural):
    return (singular if count == 1 else plural).format(count=count)


class BlockerCondition:
    """One reason the custody action is blocked.

    ``ids`` are the affected asset ids, kit ids or (for invalid codes)
    scan ids, in scan order. ``scan_ids`` are the session entries they
    came from.
    """

    def __init__(
        self,
        key,
        ids,
        scan_ids,
        message,
        description=None,
        remove_by=REMOVE_BY_SCAN,
    ):
        self.key = key
        self.ids = ids
        self.scan_ids = scan_ids
        self.message = message
        self.description = description
        self.remove_by = remove_by

    def __repr__(self):
        return f"BlockerCondition({self.key!r}, count={self.count})"

    @property
    def count(self):
        return len(self.ids)

    def resolve(self, session):
        """Remove exactly the offending items from ``session``."""
        if self.remove_by == REMOVE_BY_ASSET:
            session.remove_by_asset_id(self.ids)
        else:
            session.remove_many(self.scan_ids)

    def to_dict(self):
        return {
            "key": self.key,
            "count": self.count,
            "ids": self.ids,
            "message": self.message,
            "description": self.description,
        }


class BlockerReport:
    """Ordered blockers plus the resolve-all action."""

    def __init__(self, blockers):
        self.blockers = blockers

    def __iter__(self):
        return iter(self.blockers)

    def __len__(self):
        return len(self.blockers)

    @property
    def has_blockers(self):
        return bool(self.blockers)

    def get(self, key):
        for blocker in self.blockers:
            if blocker.key == key:
                return blocker
        return None

    def asset_ids_to_remove(self):
        ids = set()
        for blocker in self.blockers:
            if blocker.remove_by == REMOVE_BY_ASSET:
                ids.update(blocker.ids)
        return ids

    def scan_ids_to_remove(self):
        ids = set()
        for blocker in self.blockers:
            if blocker.remove_by == REMOVE_BY_SCAN:
                ids.update(blocker.scan_ids)
        return ids

    def resolve_all(self, session):
        """Remove the union of every blocker's items in one pass."""
        session.remove_by_asset_id(self.asset_ids_to_remove())
        session.remove_many(self.scan_ids_to_remove())

    def to_dict(self):
        return {
            "has_blockers": self.has_blockers,
            "blockers": [b.to_dict() for b in self.blockers],
        }


# (key, predicate, singular, plural, note)
# Order is the order blockers are shown to the user.
ASSET_RULES = [
    (
        "assets_in_custody",
        lambda asset: asset["status"] == Asset.STATUS_IN_CUSTODY,
        "{count} asset is already in custody.",
        "{count} assets are already in custody.",
        None,
    ),
    (
        "assets_checked_out",
        lambda asset: asset["status"] == Asset.STATUS_CHECKED_OUT,
        "{count} asset is checked out.",
        "{count} assets are checked out.",
        "Note: Checked out assets cannot be assigned custody.",
    ),
    (
        "assets_in_kit",
        lambda asset: asset.get("kit_id") is not None,
        "{count} asset is part of a kit.",
        "{count} assets are part of a kit.",
        "Note: Scan Kit QR to add the full kit",
    ),
]

KIT_RULES = [
    (
        "kits_in_custody",
        lambda kit: kit["status"] == Kit.STATUS_IN_CUSTODY,
        "{count} kit is already in custody.",
        "{count} kits are already in custody.",
        None,
    ),
    (
        "kits_with_assets_in_custody",
        lambda kit: any(
            member["status"] == Asset.STATUS_IN_CUSTODY
            for member in kit.get("assets", [])
        ),
        "{count} kit already has assets in custody.",
        "{count} kits already have assets in custody.",
        None,
    ),
    (
        "kits_checked_out",
        lambda kit: kit["status"] == Kit.STATUS_CHECKED_OUT,
        "{count} kit is checked out.",
        "{count} kits are checked out.",
        "Note: Checked out kits cannot be assigned custody.",
    ),
]


def _matching(entries, predicate):
    """Unique payload ids matching ``predicate`` and their scan ids."""
    ids = []
    scan_ids = []
    for scan_id, payload in entries:
        if not predicate(payload):
            continue
        scan_ids.append(scan_id)
        if payload["id"] not in ids:
            ids.append(payload["id"])
    return ids, scan_ids


def evaluate_blockers(items):
    """Return the ``BlockerReport`` for a mapping of scan id -> item.

    ``items`` is anything with an ``items()`` method yielding
    ``(scan_id, ScannedItem or None)``; a ``ScanSession`` qualifies.
    Pending entries (no payload, no error) block nothing. Partitions
    overlap freely: one asset can be checked out and part of a kit.
    """
    assets = []
    kits = []
    errors = []
    for scan_id, item in items.items():
        if item is None:
            continue
        if item.error:
            errors.append(scan_id)
        elif item.payload is None:
            continue
        elif item.kind == KIND_ASSET:
            assets.append((scan_id, item.payload))
        elif item.kind == KIND_KIT:
            kits.append((scan_id, item.payload))

    blockers = []
    for entries, rules, remove_by in (
        (assets, ASSET_RULES, REMOVE_BY_ASSET),
        (kits, KIT_RULES, REMOVE_BY_SCAN),
    ):
        for key, predicate, singular, plural, note in rules:
            ids, scan_ids = _matching(entries, predicate)
            if not ids:
                continue
            blockers.append(
                BlockerCondition(
                    key,
                    ids,
                    scan_ids,
                    _pluralize(len(ids), singular, plural),
                    description=note,
                    remove_by=remove_by,
                )
            )

    if errors:
        blockers.append(
            BlockerCondition(
                "invalid_codes",
                list(errors),
                list(errors),
                _pluralize(
                    len(errors),
                    "{count} QR code is invalid.",
                    "{count} QR codes are invalid.",
                ),
            )
        )

    return BlockerReport(blockers)
