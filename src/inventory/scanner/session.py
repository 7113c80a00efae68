"""In-memory scan session for the custody scanner.

A session maps scan identifiers (the value read off a QR code or barcode)
to ``ScannedItem`` entries. Entries are queued when a code is scanned and
settled once the lookup finishes. The session has one owner (the scanner
consumer or a view); everything else only reads it.
"""

import itertools
import logging

logger = logging.getLogger(__name__)

KIND_ASSET = "asset"
KIND_KIT = "kit"
KINDS = (KIND_ASSET, KIND_KIT)
REQUIRED_PAYLOAD_KEYS = ("id", "status")


def _check_payload(scan_id, payload):
    if not isinstance(payload, dict) or not all(
        key in payload for key in REQUIRED_PAYLOAD_KEYS
    ):
        raise ValueError(f"Payload of '{scan_id}' needs an id and a status.")


class ScannedItem:
    """One scanned code and the result of looking it up.

    ``kind`` and ``payload`` stay ``None`` while the lookup is in flight;
    a failed lookup sets ``error`` instead. Once settled, an entry never
    changes kind.
    """

    def __init__(self, scan_id, kind=None, payload=None, error=None, token=0):
        self.scan_id = scan_id
        self.kind = kind
        self.payload = payload
        self.error = error
        self.token = token

    def __repr__(self):
        return (
            f"ScannedItem({self.scan_id!r}, kind={self.kind!r}, "
            f"error={self.error!r})"
        )

    @property
    def is_pending(self):
        return self.payload is None and not self.error

    @property
    def is_asset(self):
        return self.kind == KIND_ASSET and self.payload is not None

    @property
    def is_kit(self):
        return self.kind == KIND_KIT and self.payload is not None

    def references_asset(self, asset_ids):
        """True if this entry is one of the assets or a kit holding one.

        ``asset_ids`` must already be a set of strings.
        """
        if self.is_asset:
            return str(self.payload["id"]) in asset_ids
        if self.is_kit:
            return any(
                str(member["id"]) in asset_ids
                for member in self.payload.get("assets", [])
            )
        return False

    def to_dict(self):
        return {
            "kind": self.kind,
            "payload": self.payload,
            "error": self.error,
        }

    @classmethod
    def from_dict(cls, scan_id, data):
        """Rebuild an entry sent back by a client.

        Raises ``ValueError`` when the entry is not a well-formed snapshot.
        """
        if not isinstance(scan_id, str) or not isinstance(data, dict):
            raise ValueError(f"Malformed scan entry '{scan_id}'.")
        kind = data.get("kind")
        payload = data.get("payload")
        if kind is not None and kind not in KINDS:
            raise ValueError(f"Unknown scan kind '{kind}'.")
        if payload is not None:
            if kind is None:
                raise ValueError(f"Scan entry '{scan_id}' has no kind.")
            _check_payload(scan_id, payload)
            if kind == KIND_KIT:
                members = payload.get("assets", [])
                if not isinstance(members, list):
                    raise ValueError(
                        f"Kit members of '{scan_id}' must be a list."
                    )
                for member in members:
                    _check_payload(scan_id, member)
        return cls(
            scan_id,
            kind=kind,
            payload=payload,
            error=data.get("error"),
        )


class ScanSession:
    """Ordered collection of scanned items with an explicit mutation API.

    Every removal is idempotent: removing an identifier that is not in
    the session does nothing.
    """

    def __init__(self):
        self._items = {}
        self._tokens = itertools.count(1)

    def __len__(self):
        return len(self._items)

    def __contains__(self, scan_id):
        return scan_id in self._items

    def __iter__(self):
        return iter(list(self._items))

    def get(self, scan_id):
        return self._items.get(scan_id)

    def items(self):
        """(scan_id, item) pairs in scan order."""
        return list(self._items.items())

    def snapshot(self):
        """Shallow copy of the mapping, for readers that must not mutate."""
        return dict(self._items)

    # --- queueing and settling lookups ---

    def add(self, scan_id):
        """Queue a scanned code for lookup.

        Returns ``(item, created)``. Scanning a code that is already in
        the session returns the existing entry.
        """
        item = self._items.get(scan_id)
        if item is not None:
            return item, False
        item = ScannedItem(scan_id, token=next(self._tokens))
        self._items[scan_id] = item
        return item, True

    def _live_entry(self, scan_id, token):
        item = self._items.get(scan_id)
        if item is None:
            logger.warning(
                "Dropping lookup result for %s: entry was removed", scan_id
            )
            return None
        if token is not None and item.token != token:
            logger.warning(
                "Dropping stale lookup result for %s (token %s, now %s)",
                scan_id,
                token,
                item.token,
            )
            return None
        if not item.is_pending:
            logger.warning(
                "Dropping lookup result for %s: entry already settled",
                scan_id,
            )
            return None
        return item

    def settle(self, scan_id, kind, payload, token=None):
        """Record a successful lookup. Returns True if it was applied.

        Results for entries that were removed, cleared and re-scanned, or
        already settled are dropped.
        """
        if kind not in KINDS:
            raise ValueError(f"Unknown scan kind '{kind}'.")
        item = self._live_entry(scan_id, token)
        if item is None:
            return False
        item.kind = kind
        item.payload = payload
        return True

    def fail(self, scan_id, error, token=None):
        """Record a failed lookup. Returns True if it was applied."""
        item = self._live_entry(scan_id, token)
        if item is None:
            return False
        item.error = error or "Lookup failed."
        return True

    # --- removal ---

    def clear(self):
        """Empty the session."""
        self._items.clear()

    def remove(self, scan_id):
        """Remove one entry by scan identifier."""
        self._items.pop(scan_id, None)

    def remove_many(self, scan_ids):
        """Remove every entry whose scan identifier is in ``scan_ids``."""
        for scan_id in set(scan_ids):
            self._items.pop(scan_id, None)

    def remove_by_asset_id(self, asset_ids):
        """Remove every entry that references one of ``asset_ids``.

        That covers asset entries for those assets (possibly scanned under
        several codes) and kit entries holding any of them.
        """
        wanted = {str(asset_id) for asset_id in asset_ids}
        if not wanted:
            return
        doomed = [
            scan_id
            for scan_id, item in self._items.items()
            if item is not None and item.references_asset(wanted)
        ]
        for scan_id in doomed:
            del self._items[scan_id]

    # --- derived views ---

    def pending_ids(self):
        return [
            scan_id for scan_id, item in self._items.items() if item.is_pending
        ]

    def asset_ids(self):
        """Asset ids to submit: scanned assets plus members of scanned kits.

        Pending and failed entries contribute nothing. Duplicates are
        collapsed, first occurrence wins.
        """
        ids = []
        seen = set()
        for item in self._items.values():
            if item.is_asset:
                candidates = [item.payload["id"]]
            elif item.is_kit:
                candidates = [m["id"] for m in item.payload.get("assets", [])]
            else:
                continue
            for asset_id in candidates:
                if asset_id not in seen:
                    seen.add(asset_id)
                    ids.append(asset_id)
        return ids

    def kit_ids(self):
        ids = []
        for item in self._items.values():
            if item.is_kit and item.payload["id"] not in ids:
                ids.append(item.payload["id"])
        return ids

    def to_dict(self):
        return {
            scan_id: item.to_dict() for scan_id, item in self._items.items()
        }

    @classmethod
    def from_dict(cls, data):
        """Rebuild a session from ``to_dict`` output; ``ValueError`` if bad."""
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValueError("Scan items must be an object.")
        session = cls()
        for scan_id, entry in data.items():
            item = ScannedItem.from_dict(scan_id, entry or {})
            item.token = next(session._tokens)
            session._items[scan_id] = item
        return session
